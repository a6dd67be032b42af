from autotablero.models.schemas.schemas import (
    ColumnType,
    DomainFamily,
    KPIFormat,
    ChartType,
    ColumnMetadata,
    Table,
    ClassificationResult,
    Bindings,
    KPIConfig,
    ChartConfig,
    DashboardSection,
    DashboardConfig,
    AnalysisResult,
    KPIValue,
    AnalyzeRequest,
    ProfileRequest,
    KPIRequest,
)

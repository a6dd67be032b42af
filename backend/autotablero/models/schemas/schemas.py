# Pydantic Schemas for the engine contract and the API
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any
from enum import Enum


# Enums
class ColumnType(str, Enum):
    NUMBER = "number"
    TEXT = "text"
    DATE = "date"


class DomainFamily(str, Enum):
    OBRA_PUBLICA = "OBRA_PUBLICA"
    FINANCIERO = "FINANCIERO"
    PROGRAMA_SOCIAL = "PROGRAMA_SOCIAL"
    GENERICO = "GENERICO"


class KPIFormat(str, Enum):
    NUMBER = "number"
    CURRENCY = "currency"
    PERCENT = "percent"
    MDP = "mdp"


class ChartType(str, Enum):
    BAR = "bar"
    PIE = "pie"
    LINE = "line"
    AREA = "area"
    COMBO = "combo"
    TIMELINE = "timeline"
    WEBVIEW = "webview"
    TOUR360 = "tour360"


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Table schemas
class ColumnMetadata(CamelModel):
    name: str
    alias: Optional[str] = None
    type: ColumnType
    unique_ratio: float
    is_metric: bool
    is_dimension: bool


class Table(CamelModel):
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    columns: Optional[Dict[str, ColumnMetadata]] = None


# Classification schemas
class ClassificationResult(CamelModel):
    family: DomainFamily
    scores: Dict[str, int]
    confidence: float
    operational_profile: bool = False


class Bindings(CamelModel):
    dimension: str
    metric1: str
    metric2: str


# Dashboard schemas
class KPIConfig(CamelModel):
    label: str
    table_ref: str
    column_key: str
    format: KPIFormat = KPIFormat.NUMBER
    status_label: Optional[str] = None
    status_color: Optional[str] = None


class ChartConfig(CamelModel):
    id: str
    type: ChartType
    title: str
    table_ref: str
    dimension: str
    metric: str
    metrics: Optional[List[str]] = None
    color: str
    url: Optional[str] = None
    start_date_col: Optional[str] = None
    end_date_col: Optional[str] = None


class DashboardSection(CamelModel):
    title: str
    description: str
    charts: List[ChartConfig] = Field(default_factory=list)


class DashboardConfig(CamelModel):
    family: DomainFamily
    title: str
    subtitle: str
    header_color: str
    kpis: List[KPIConfig] = Field(default_factory=list)
    sections: List[DashboardSection] = Field(default_factory=list)


class AnalysisResult(CamelModel):
    suggested_mapping: Bindings
    suggested_config: DashboardConfig
    insights: List[str] = Field(default_factory=list)
    confidence_score: float


class KPIValue(CamelModel):
    label: str
    table_ref: str
    column_key: str
    format: KPIFormat
    value: float
    display: str


# Request schemas
class AnalyzeRequest(CamelModel):
    tables: Dict[str, Table]


class ProfileRequest(CamelModel):
    rows: List[Dict[str, Any]] = Field(default_factory=list)


class KPIRequest(CamelModel):
    config: DashboardConfig
    tables: Dict[str, Table]

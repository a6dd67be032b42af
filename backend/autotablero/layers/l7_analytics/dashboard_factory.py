# Dashboard Factory - Builds the dashboard configuration from the
# detected family and the chosen column bindings.

from typing import Dict, List, Optional, Tuple

from autotablero.config import settings
from autotablero.core.exceptions import DanglingReferenceError
from autotablero.layers.l2_classification.binding_selector import (
    SUBDIMENSION_TAGS,
    find_column,
    select_bindings,
)
from autotablero.models.schemas import (
    Bindings,
    ChartConfig,
    ChartType,
    ClassificationResult,
    ColumnMetadata,
    DashboardConfig,
    DashboardSection,
    DomainFamily,
    KPIConfig,
    KPIFormat,
    Table,
)


# Institutional palette
GUINDA = "#691C32"
VERDE = "#006341"
DORADO = "#C5A572"
HEADER_COLOR = "#0F172A"

# Bar/pie colour pair by table index parity
TABLE_COLOR_PAIRS = [(GUINDA, VERDE), (DORADO, GUINDA)]

SUBTITLE = "Análisis semántico avanzado - Secretaría de Obras y Servicios CDMX"

FAMILY_TITLES = {
    DomainFamily.OBRA_PUBLICA: "Tablero de Control de Infraestructura",
    DomainFamily.FINANCIERO: "Tablero de Control Financiero",
    DomainFamily.PROGRAMA_SOCIAL: "Tablero de Programas Sociales",
}


class DashboardFactory:
    """Synthesizes a DashboardConfig for one or many tables."""

    def __init__(self, max_table_sections: int = None):
        self.max_table_sections = max_table_sections or settings.MAX_TABLE_SECTIONS

    def synthesize(
        self,
        tables: Dict[str, Table],
        metadata: Dict[str, Dict[str, ColumnMetadata]],
        classification: ClassificationResult,
        bindings: Bindings,
        main_table: Optional[str] = None
    ) -> DashboardConfig:
        """
        Build the dashboard configuration.

        Args:
            tables: Non-empty tables in input order
            metadata: Column metadata per table name
            classification: Family detected on the main table
            bindings: Bindings chosen on the main table
            main_table: Table the bindings belong to (defaults to the first)

        Returns:
            DashboardConfig whose column references all exist in `metadata`
        """
        names = list(tables.keys())
        main_table = main_table or names[0]

        if len(names) == 1:
            kpis, sections = self._single_table(main_table, metadata[main_table], classification, bindings)
        else:
            kpis, sections = self._multi_table(names, metadata, main_table, bindings)

        config = DashboardConfig(
            family=classification.family,
            title=self._get_title(classification.family, bindings),
            subtitle=SUBTITLE,
            header_color=HEADER_COLOR,
            kpis=kpis,
            sections=sections
        )

        verify_references(config, metadata)
        return config

    def _get_title(self, family: DomainFamily, bindings: Bindings) -> str:
        return FAMILY_TITLES.get(family, f"Tablero Ejecutivo: {bindings.dimension}")

    def _single_table(
        self,
        table: str,
        columns: Dict[str, ColumnMetadata],
        classification: ClassificationResult,
        bindings: Bindings
    ) -> Tuple[List[KPIConfig], List[DashboardSection]]:
        dim, met1, met2 = bindings.dimension, bindings.metric1, bindings.metric2

        if classification.operational_profile or classification.family == DomainFamily.OBRA_PUBLICA:
            kpis = [
                KPIConfig(label="Total Unidades/Obras", table_ref=table, column_key=dim, format=KPIFormat.NUMBER),
                KPIConfig(label="Inversión/Costo Total", table_ref=table, column_key=met1, format=KPIFormat.CURRENCY),
                KPIConfig(label="Personal/Avance", table_ref=table, column_key=met2, format=KPIFormat.NUMBER),
            ]
            sections = [
                DashboardSection(
                    title="Análisis Ejecutivo Global",
                    description="Distribución de recursos y costos por agrupador principal",
                    charts=[
                        _chart("g1", ChartType.BAR, f"Costo Total por {dim}", table, dim, met1, GUINDA),
                        _chart("g2", ChartType.PIE, f"Distribución de {met2}", table, dim, met2, VERDE),
                    ]
                )
            ]

            sub_dim = find_column(list(columns.keys()), SUBDIMENSION_TAGS)
            if sub_dim:
                sections.append(DashboardSection(
                    title="Desglose Operativo por Categoría",
                    description=f"Análisis detallado de conceptos y clasificaciones en {dim}",
                    charts=[
                        _chart("d1", ChartType.BAR, "Top 10 Conceptos", table, sub_dim, met1, DORADO),
                        _chart("d2", ChartType.PIE, "Participación de Clasificación", table, sub_dim, met1, GUINDA),
                    ]
                ))
            return kpis, sections

        # Standard profile
        first_column = next(iter(columns))
        kpis = [
            KPIConfig(label="Registros Totales", table_ref=table, column_key=first_column, format=KPIFormat.NUMBER),
            KPIConfig(label="Valor Acumulado", table_ref=table, column_key=met1, format=KPIFormat.CURRENCY),
        ]
        sections = [
            DashboardSection(
                title="Resumen de Gestión",
                description="Vista simplificada de indicadores clave",
                charts=[
                    _chart("s1", ChartType.BAR, "Rendimiento por Categoría", table, dim, met1, VERDE),
                    _chart("s2", ChartType.AREA, "Tendencia de Valores", table, dim, met1, DORADO),
                ]
            )
        ]
        return kpis, sections

    def _multi_table(
        self,
        names: List[str],
        metadata: Dict[str, Dict[str, ColumnMetadata]],
        main_table: str,
        main_bindings: Bindings
    ) -> Tuple[List[KPIConfig], List[DashboardSection]]:
        kpis = []
        sections = []

        for idx, table in enumerate(names[:self.max_table_sections]):
            # Each table gets its own local bindings
            local = main_bindings if table == main_table else select_bindings(metadata[table])
            bar_color, pie_color = TABLE_COLOR_PAIRS[idx % 2]

            kpis.append(KPIConfig(
                label=f"{local.metric1} · {table}",
                table_ref=table,
                column_key=local.metric1,
                format=KPIFormat.CURRENCY
            ))
            sections.append(DashboardSection(
                title=table,
                description=f"Análisis de {local.metric1} por {local.dimension}",
                charts=[
                    _chart(f"t{idx}-bar", ChartType.BAR, f"{local.metric1} por {local.dimension}",
                           table, local.dimension, local.metric1, bar_color),
                    _chart(f"t{idx}-pie", ChartType.PIE, f"Distribución de {local.metric2}",
                           table, local.dimension, local.metric2, pie_color),
                ]
            ))

        return kpis, sections


def _chart(
    chart_id: str,
    chart_type: ChartType,
    title: str,
    table: str,
    dimension: str,
    metric: str,
    color: str
) -> ChartConfig:
    return ChartConfig(
        id=chart_id,
        type=chart_type,
        title=title,
        table_ref=table,
        dimension=dimension,
        metric=metric,
        color=color
    )


def verify_references(config: DashboardConfig, metadata: Dict[str, Dict[str, ColumnMetadata]]):
    """Raise DanglingReferenceError if a KPI or chart names an unknown table or column."""
    refs = [(kpi.table_ref, kpi.column_key) for kpi in config.kpis]
    for section in config.sections:
        for chart in section.charts:
            refs.append((chart.table_ref, chart.dimension))
            refs.append((chart.table_ref, chart.metric))
            refs.extend((chart.table_ref, m) for m in chart.metrics or [])

    for table, column in refs:
        if column not in metadata.get(table, {}):
            raise DanglingReferenceError(f"Column '{column}' is not profiled in table '{table}'")


# Singleton
dashboard_factory = DashboardFactory()

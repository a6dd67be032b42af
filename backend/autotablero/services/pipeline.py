# Pipeline Service - Orchestrates one analysis run
# profile -> classify -> select bindings -> synthesize
from typing import Dict, Optional
import structlog

from autotablero.config import Settings, settings as default_settings
from autotablero.core.exceptions import EmptyInputError
from autotablero.layers.l2_classification.column_profiler import ColumnProfiler
from autotablero.layers.l2_classification.role_classifier import ColumnRoleClassifier, get_role_classifier
from autotablero.layers.l7_analytics.dashboard_factory import DashboardFactory
from autotablero.models.schemas import AnalysisResult, ColumnMetadata, Table

logger = structlog.get_logger()


def analyze_tables(
    tables: Dict[str, Table],
    classifier: Optional[ColumnRoleClassifier] = None,
    settings: Optional[Settings] = None
) -> AnalysisResult:
    """
    Propose a dashboard for a snapshot of tables.

    Raises EmptyInputError when there is nothing to analyze (no tables,
    or no table with rows and columns). Every other input yields a result,
    possibly a GENERICO one with weak bindings.
    """
    settings = settings or default_settings
    classifier = classifier or get_role_classifier(settings)
    profiler = ColumnProfiler(settings.PROFILE_SAMPLE_SIZE, settings.DIMENSION_MAX_UNIQUE)

    if not tables:
        raise EmptyInputError("No tables to analyze")

    # Profile, dropping tables with nothing to chart
    usable: Dict[str, Table] = {}
    metadata: Dict[str, Dict[str, ColumnMetadata]] = {}
    for name, table in tables.items():
        columns = table.columns if table.columns else profiler.profile(table.rows)
        if not table.rows or not columns:
            logger.warning("Skipping table without rows or columns", table=name)
            continue
        usable[name] = table
        metadata[name] = columns

    if not usable:
        raise EmptyInputError("All tables are empty", {"tables": list(tables.keys())})

    # Main table: most rows among the rendered tables, last one wins ties
    rendered = list(usable)[:settings.MAX_TABLE_SECTIONS]
    main_table = max(reversed(rendered), key=lambda n: len(usable[n].rows))
    main_rows = usable[main_table].rows

    classification, bindings = classifier.classify_table(metadata[main_table], main_rows)

    factory = DashboardFactory(settings.MAX_TABLE_SECTIONS)
    config = factory.synthesize(usable, metadata, classification, bindings, main_table=main_table)

    logger.info(
        "Analysis complete",
        family=classification.family.value,
        tables=len(usable),
        main_table=main_table,
        dimension=bindings.dimension
    )

    return AnalysisResult(
        suggested_mapping=bindings,
        suggested_config=config,
        insights=[
            f"Familia detectada: {classification.family.value}",
            f"Dimensión clave: {bindings.dimension}",
            "Lógica aplicada: Perfil de Explorador de Datos SOBSE",
        ],
        confidence_score=classification.confidence
    )

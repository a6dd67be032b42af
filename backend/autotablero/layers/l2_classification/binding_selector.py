# L2: Classification Layer - Binding Selector
from typing import Dict, List, Optional, Sequence

from autotablero.core.exceptions import EmptyInputError
from autotablero.models.schemas import Bindings, ColumnMetadata, ColumnType


# Keyword priority per chart/KPI role
DEFAULT_BINDING_TAGS = {
    "dimension": ["cuadrilla", "utopia", "alcaldia", "estatus"],
    "metric1": ["importe", "monto", "presupuesto", "total"],
    "metric2": ["cantidad", "avance", "fisico", "%", "ejercido"],
}

SUBDIMENSION_TAGS = ["clasificacion", "tipo", "concepto", "categoria"]


def find_column(column_names: Sequence[str], tags: Sequence[str]) -> Optional[str]:
    """First column (in column order) whose lower-cased name contains any tag."""
    for name in column_names:
        lower = name.lower()
        if any(tag in lower for tag in tags):
            return name
    return None


def select_bindings(
    columns: Dict[str, ColumnMetadata],
    tags: Dict[str, List[str]] = None
) -> Bindings:
    """
    Pick the dimension and the two metric columns of a table.

    Keyword matches come first; otherwise the dimension falls back to the
    first dimension-flagged column (then the first column), metric1 to the
    first numeric column (then the second column) and metric2 to metric1.
    """
    if not columns:
        raise EmptyInputError("Cannot select bindings for a table without columns")

    tags = tags or DEFAULT_BINDING_TAGS
    names = list(columns.keys())

    dimension = (
        find_column(names, tags.get("dimension", []))
        or next((n for n in names if columns[n].is_dimension), None)
        or names[0]
    )
    metric1 = (
        find_column(names, tags.get("metric1", []))
        or next((n for n in names if columns[n].type == ColumnType.NUMBER), None)
        or names[min(1, len(names) - 1)]
    )
    metric2 = find_column(names, tags.get("metric2", [])) or metric1

    return Bindings(dimension=dimension, metric1=metric1, metric2=metric2)

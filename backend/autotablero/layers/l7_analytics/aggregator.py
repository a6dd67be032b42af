# L7: Analytics Layer - Aggregator
from typing import Dict, Any, List, Sequence
import pandas as pd

from autotablero.layers.l1_ingestion.cells import CellKind, to_cell, to_number
from autotablero.models.schemas import DashboardConfig, Table

MISSING_LABEL = "Sin Dato"


def chart_series(
    rows: Sequence[Dict[str, Any]],
    dimension: str,
    metric: str,
    limit: int = 10
) -> List[Dict[str, Any]]:
    """
    Sum `metric` per `dimension` value.
    Returns the top `limit` groups as [{"name", "value"}], largest first.
    """
    if not rows:
        return []

    df = pd.DataFrame({
        "name": [_label(row.get(dimension)) for row in rows],
        "value": [to_number(row.get(metric)) for row in rows],
    })

    grouped = df.groupby("name", sort=False)["value"].sum().reset_index()
    grouped = grouped.sort_values("value", ascending=False, kind="mergesort").head(limit)

    return [
        {"name": name, "value": float(value)}
        for name, value in zip(grouped["name"], grouped["value"])
    ]


def dashboard_series(config: DashboardConfig, tables: Dict[str, Table]) -> Dict[str, List[Dict[str, Any]]]:
    """Series for every chart of a dashboard, keyed by chart id."""
    series = {}
    for section in config.sections:
        for chart in section.charts:
            table = tables.get(chart.table_ref)
            series[chart.id] = chart_series(table.rows if table else [], chart.dimension, chart.metric)
    return series


def _label(value: Any) -> str:
    if to_cell(value).kind == CellKind.NULL or value == "":
        return MISSING_LABEL
    return str(value)

# L7: Analytics Layer - KPI Calculations
from typing import Dict, List
import pandas as pd

from autotablero.layers.l1_ingestion.cells import to_number
from autotablero.models.schemas import DashboardConfig, KPIFormat, KPIValue, Table


def evaluate_kpis(config: DashboardConfig, tables: Dict[str, Table]) -> List[KPIValue]:
    """
    Compute the value shown on each KPI card.
    Totals are sums of the parsed column values; percent KPIs use the average.
    """
    results = []

    for kpi in config.kpis:
        table = tables.get(kpi.table_ref)
        rows = table.rows if table else []

        values = pd.Series([to_number(row.get(kpi.column_key)) for row in rows], dtype="float64")
        total = float(values.sum())

        if kpi.format == KPIFormat.PERCENT:
            value = total / (len(rows) or 1)
        else:
            value = total

        results.append(KPIValue(
            label=kpi.label,
            table_ref=kpi.table_ref,
            column_key=kpi.column_key,
            format=kpi.format,
            value=value,
            display=format_kpi_value(value, kpi.format)
        ))

    return results


def format_kpi_value(value: float, fmt: KPIFormat) -> str:
    """Display string for a KPI value."""
    if fmt == KPIFormat.CURRENCY:
        return f"${value:,.0f}"
    if fmt == KPIFormat.PERCENT:
        return f"{value:.1f}%"
    if fmt == KPIFormat.MDP:
        return f"${value / 1_000_000:,.1f} MDP"
    if float(value).is_integer():
        return f"{value:,.0f}"
    return f"{value:,.2f}"

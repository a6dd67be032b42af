import unittest

from autotablero.layers.l7_analytics.aggregator import MISSING_LABEL, chart_series
from autotablero.layers.l7_analytics.kpi import evaluate_kpis, format_kpi_value
from autotablero.models.schemas import DashboardConfig, DomainFamily, KPIConfig, KPIFormat, Table


ROWS = [
    {"ALCALDIA": "Tlalpan", "MONTO": "$1,000", "AVANCE": 40},
    {"ALCALDIA": "Iztapalapa", "MONTO": 3000, "AVANCE": 80},
    {"ALCALDIA": "Tlalpan", "MONTO": 500, "AVANCE": "sin dato"},
    {"ALCALDIA": None, "MONTO": 200, "AVANCE": 30},
]


def _config(*kpis):
    return DashboardConfig(
        family=DomainFamily.GENERICO,
        title="t",
        subtitle="s",
        header_color="#0F172A",
        kpis=list(kpis),
    )


class TestKPIs(unittest.TestCase):
    def test_totals(self):
        config = _config(
            KPIConfig(label="Monto", table_ref="obras", column_key="MONTO", format=KPIFormat.CURRENCY),
            KPIConfig(label="Avance", table_ref="obras", column_key="AVANCE", format=KPIFormat.PERCENT),
        )
        monto, avance = evaluate_kpis(config, {"obras": Table(rows=ROWS)})

        self.assertEqual(monto.value, 4700)
        self.assertEqual(monto.display, "$4,700")
        self.assertEqual(avance.value, 37.5)
        self.assertEqual(avance.display, "37.5%")

    def test_missing_table_is_zero(self):
        config = _config(KPIConfig(label="Monto", table_ref="otra", column_key="MONTO"))
        self.assertEqual(evaluate_kpis(config, {})[0].value, 0)

    def test_formats(self):
        self.assertEqual(format_kpi_value(3000000, KPIFormat.CURRENCY), "$3,000,000")
        self.assertEqual(format_kpi_value(2500000, KPIFormat.MDP), "$2.5 MDP")
        self.assertEqual(format_kpi_value(1234, KPIFormat.NUMBER), "1,234")
        self.assertEqual(format_kpi_value(1234.5, KPIFormat.NUMBER), "1,234.50")


class TestChartSeries(unittest.TestCase):
    def test_groups_and_sorts(self):
        series = chart_series(ROWS, "ALCALDIA", "MONTO")
        self.assertEqual(series, [
            {"name": "Iztapalapa", "value": 3000.0},
            {"name": "Tlalpan", "value": 1500.0},
            {"name": MISSING_LABEL, "value": 200.0},
        ])

    def test_limit(self):
        rows = [{"k": f"zona {chr(65 + i)}", "v": i} for i in range(15)]
        series = chart_series(rows, "k", "v", limit=5)
        self.assertEqual(len(series), 5)
        self.assertEqual(series[0]["value"], 14.0)

    def test_empty_rows(self):
        self.assertEqual(chart_series([], "k", "v"), [])


if __name__ == '__main__':
    unittest.main()

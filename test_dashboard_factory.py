import unittest

from autotablero.core.exceptions import DanglingReferenceError
from autotablero.layers.l2_classification.binding_selector import select_bindings
from autotablero.layers.l2_classification.column_profiler import profile
from autotablero.layers.l2_classification.domain_classifier import classify_domain
from autotablero.layers.l7_analytics.dashboard_factory import (
    DORADO,
    GUINDA,
    VERDE,
    DashboardFactory,
    verify_references,
)
from autotablero.models.schemas import (
    ChartConfig,
    ChartType,
    DashboardConfig,
    DashboardSection,
    DomainFamily,
    KPIConfig,
    KPIFormat,
    Table,
)


OBRAS = [
    {"OBRA": "Parque A", "ALCALDIA": "Iztapalapa", "TIPO": "Parque", "MONTO": 1000000, "AVANCE": 40},
    {"OBRA": "Parque B", "ALCALDIA": "Tlalpan", "TIPO": "Parque", "MONTO": 2000000, "AVANCE": 80},
    {"OBRA": "Mercado C", "ALCALDIA": "Tlalpan", "TIPO": "Mercado", "MONTO": 500000, "AVANCE": 100},
]

PRESUPUESTO = [
    {"PARTIDA": "Materiales", "MONTO": 1500, "PAGADO": 1000},
    {"PARTIDA": "Servicios", "MONTO": 900, "PAGADO": 900},
]


def _synthesize(tables, factory=None):
    factory = factory or DashboardFactory()
    metadata = {name: profile(table.rows) for name, table in tables.items()}
    main = next(iter(tables))
    classification = classify_domain(metadata[main].keys())
    bindings = select_bindings(metadata[main])
    return factory.synthesize(tables, metadata, classification, bindings, main_table=main), metadata


class TestSingleTable(unittest.TestCase):
    def test_public_works_template(self):
        config, _ = _synthesize({"obras.json": Table(rows=OBRAS)})

        self.assertEqual(config.family, DomainFamily.OBRA_PUBLICA)
        self.assertEqual(config.title, "Tablero de Control de Infraestructura")
        self.assertEqual([k.label for k in config.kpis],
                         ["Total Unidades/Obras", "Inversión/Costo Total", "Personal/Avance"])
        self.assertEqual(config.kpis[1].format, KPIFormat.CURRENCY)

        executive = config.sections[0]
        self.assertEqual([c.type for c in executive.charts], [ChartType.BAR, ChartType.PIE])
        self.assertEqual([c.color for c in executive.charts], [GUINDA, VERDE])
        self.assertEqual(executive.charts[0].dimension, "ALCALDIA")
        self.assertEqual(executive.charts[0].metric, "MONTO")
        self.assertEqual(executive.charts[1].metric, "AVANCE")

    def test_breakdown_section_when_subclassification_exists(self):
        config, _ = _synthesize({"obras.json": Table(rows=OBRAS)})

        self.assertEqual(len(config.sections), 2)
        breakdown = config.sections[1]
        self.assertEqual(breakdown.title, "Desglose Operativo por Categoría")
        self.assertTrue(all(c.dimension == "TIPO" for c in breakdown.charts))
        self.assertEqual([c.color for c in breakdown.charts], [DORADO, GUINDA])

    def test_no_breakdown_without_subclassification(self):
        rows = [{k: v for k, v in row.items() if k != "TIPO"} for row in OBRAS]
        config, _ = _synthesize({"obras.json": Table(rows=rows)})
        self.assertEqual(len(config.sections), 1)

    def test_standard_template(self):
        config, _ = _synthesize({"presupuesto.json": Table(rows=PRESUPUESTO)})

        self.assertEqual(config.family, DomainFamily.FINANCIERO)
        self.assertEqual(config.title, "Tablero de Control Financiero")
        self.assertEqual([k.label for k in config.kpis], ["Registros Totales", "Valor Acumulado"])
        self.assertEqual(config.kpis[0].column_key, "PARTIDA")

        charts = config.sections[0].charts
        self.assertEqual([c.type for c in charts], [ChartType.BAR, ChartType.AREA])
        self.assertEqual([c.color for c in charts], [VERDE, DORADO])
        self.assertEqual(charts[0].dimension, "PARTIDA")
        self.assertEqual(charts[0].metric, "MONTO")

    def test_generic_title_uses_dimension(self):
        rows = [{"region": "Norte", "ventas": 10}, {"region": "Sur", "ventas": 5}]
        config, _ = _synthesize({"ventas.csv": Table(rows=rows)})
        self.assertEqual(config.family, DomainFamily.GENERICO)
        self.assertEqual(config.title, "Tablero Ejecutivo: region")

    def test_deterministic(self):
        first, _ = _synthesize({"obras.json": Table(rows=OBRAS)})
        second, _ = _synthesize({"obras.json": Table(rows=OBRAS)})
        self.assertEqual(first.model_dump_json(), second.model_dump_json())


class TestMultiTable(unittest.TestCase):
    def _tables(self, count):
        return {f"tabla_{i}.json": Table(rows=OBRAS if i % 2 == 0 else PRESUPUESTO) for i in range(count)}

    def test_sections_are_capped(self):
        config, _ = _synthesize(self._tables(6))
        self.assertEqual(len(config.sections), 4)
        self.assertEqual(len(config.kpis), 4)
        self.assertEqual([s.title for s in config.sections], [f"tabla_{i}.json" for i in range(4)])

    def test_custom_cap(self):
        config, _ = _synthesize(self._tables(6), DashboardFactory(max_table_sections=3))
        self.assertEqual(len(config.sections), 3)

    def test_bindings_are_local_to_each_table(self):
        config, _ = _synthesize(self._tables(2))
        self.assertEqual(config.sections[0].charts[0].dimension, "ALCALDIA")
        self.assertEqual(config.sections[1].charts[0].dimension, "PARTIDA")
        self.assertEqual(config.sections[1].charts[0].table_ref, "tabla_1.json")

    def test_colors_alternate_by_parity(self):
        config, _ = _synthesize(self._tables(3))
        pairs = [tuple(c.color for c in s.charts) for s in config.sections]
        self.assertEqual(pairs, [(GUINDA, VERDE), (DORADO, GUINDA), (GUINDA, VERDE)])

    def test_chart_ids_are_unique(self):
        config, _ = _synthesize(self._tables(4))
        ids = [c.id for s in config.sections for c in s.charts]
        self.assertEqual(len(ids), len(set(ids)))


class TestReferences(unittest.TestCase):
    def test_every_reference_exists(self):
        config, metadata = _synthesize({"a.json": Table(rows=OBRAS), "b.json": Table(rows=PRESUPUESTO)})
        for kpi in config.kpis:
            self.assertIn(kpi.column_key, metadata[kpi.table_ref])
        for section in config.sections:
            for chart in section.charts:
                self.assertIn(chart.dimension, metadata[chart.table_ref])
                self.assertIn(chart.metric, metadata[chart.table_ref])

    def test_dangling_reference_is_an_assertion(self):
        _, metadata = _synthesize({"obras.json": Table(rows=OBRAS)})
        config = DashboardConfig(
            family=DomainFamily.GENERICO,
            title="t",
            subtitle="s",
            header_color="#000000",
            kpis=[KPIConfig(label="x", table_ref="obras.json", column_key="NO_EXISTE")],
            sections=[DashboardSection(title="s", description="d", charts=[
                ChartConfig(id="c", type=ChartType.BAR, title="c", table_ref="obras.json",
                            dimension="ALCALDIA", metric="MONTO", color=GUINDA)
            ])]
        )
        with self.assertRaises(DanglingReferenceError):
            verify_references(config, metadata)
        with self.assertRaises(AssertionError):
            verify_references(config, metadata)


if __name__ == '__main__':
    unittest.main()

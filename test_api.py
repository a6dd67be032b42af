import json
import unittest

from fastapi.testclient import TestClient

from autotablero.api.deps import get_classifier
from autotablero.layers.l2_classification.role_classifier import KeywordHeuristicClassifier
from autotablero.main import app


ROWS = [
    {"OBRA": "Parque A", "ALCALDIA": "Iztapalapa", "MONTO": 1000000},
    {"OBRA": "Parque B", "ALCALDIA": "Tlalpan", "MONTO": 2000000},
]


def _keyword_classifier():
    yield KeywordHeuristicClassifier()


class TestAnalysisAPI(unittest.TestCase):
    def setUp(self):
        app.dependency_overrides[get_classifier] = _keyword_classifier
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")

    def test_analyze(self):
        response = self.client.post("/api/analyze", json={"tables": {"obras.json": {"rows": ROWS}}})
        self.assertEqual(response.status_code, 200)

        body = response.json()
        print(f"\nInsights: {body['insights']}")
        self.assertEqual(body["suggestedConfig"]["family"], "OBRA_PUBLICA")
        self.assertEqual(body["suggestedMapping"]["dimension"], "ALCALDIA")
        chart = body["suggestedConfig"]["sections"][0]["charts"][0]
        self.assertEqual(chart["tableRef"], "obras.json")
        self.assertEqual(chart["metric"], "MONTO")

    def test_analyze_empty_input(self):
        response = self.client.post("/api/analyze", json={"tables": {"vacia.json": {"rows": []}}})
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["detail"], "No se pudieron analizar los datos")

        response = self.client.post("/api/analyze", json={"tables": {}})
        self.assertEqual(response.status_code, 422)

    def test_upload_json_and_csv(self):
        csv_content = "PARTIDA,MONTO,PAGADO\nMateriales,1500,1000\nServicios,900,\n"
        files = [
            ("files", ("obras.json", json.dumps({"data": ROWS}).encode("utf-8"), "application/json")),
            ("files", ("presupuesto.csv", csv_content.encode("utf-8"), "text/csv")),
        ]
        response = self.client.post("/api/analyze/upload", files=files)
        self.assertEqual(response.status_code, 200)

        sections = response.json()["suggestedConfig"]["sections"]
        self.assertEqual([s["title"] for s in sections], ["obras.json", "presupuesto.csv"])

    def test_upload_rejects_extension(self):
        files = [("files", ("notas.txt", b"hola", "text/plain"))]
        response = self.client.post("/api/analyze/upload", files=files)
        self.assertEqual(response.status_code, 400)

    def test_upload_rejects_broken_json(self):
        files = [("files", ("roto.json", b"{no es json", "application/json"))]
        response = self.client.post("/api/analyze/upload", files=files)
        self.assertEqual(response.status_code, 400)

    def test_upload_rejects_corrupt_workbook(self):
        files = [("files", ("roto.xlsx", b"PK\x03\x04garbage", "application/octet-stream"))]
        response = self.client.post("/api/analyze/upload", files=files)
        self.assertEqual(response.status_code, 400)

    def test_profile(self):
        response = self.client.post("/api/profile", json={"rows": ROWS})
        self.assertEqual(response.status_code, 200)

        columns = response.json()
        self.assertEqual(list(columns.keys()), ["OBRA", "ALCALDIA", "MONTO"])
        self.assertTrue(columns["MONTO"]["isMetric"])
        self.assertTrue(columns["ALCALDIA"]["isDimension"])
        self.assertEqual(columns["MONTO"]["type"], "number")

    def test_dashboard_data(self):
        tables = {"obras.json": {"rows": ROWS}}
        config = self.client.post("/api/analyze", json={"tables": tables}).json()["suggestedConfig"]

        response = self.client.post("/api/dashboard/data", json={"config": config, "tables": tables})
        self.assertEqual(response.status_code, 200)

        body = response.json()
        kpis = {kpi["label"]: kpi for kpi in body["kpis"]}
        self.assertEqual(kpis["Inversión/Costo Total"]["value"], 3000000)
        self.assertEqual(kpis["Inversión/Costo Total"]["display"], "$3,000,000")

        series = body["charts"]["g1"]
        self.assertEqual(series[0], {"name": "Tlalpan", "value": 2000000.0})
        self.assertEqual(len(series), 2)


if __name__ == '__main__':
    unittest.main()

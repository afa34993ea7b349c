import io

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from lca_backend.app import main
from lca_backend.app.config import Settings
from lca_backend.app.errors import ReportGenerationError
from lca_backend.app.lca_engine import build_lca_json
from lca_backend.app.report_service import NarrativeClient


@pytest.fixture
def client():
    return TestClient(main.app)


class StubNarrativeClient:
    def __init__(self, markdown="# Life Cycle Assessment\n\nAll good.", error=None):
        self.markdown = markdown
        self.error = error

    def generate(self, lca_json):
        if self.error:
            raise self.error
        return self.markdown


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_single_assessment(client, steel_road_record):
    response = client.post("/api/lca", json=steel_road_record)
    assert response.status_code == 200
    body = response.json()
    assert body["impact_assessment_results"]["totals"]["gwp_kg_co2e"] == 333.6
    assert body["impact_assessment_results"]["by_stage"]["transportation"]["gwp_kg_co2e"] == 62.5
    assert body["project_details"]["report_id"].startswith("LCA-")


def test_empty_body_uses_defaults(client):
    response = client.post("/api/lca", json={})
    assert response.status_code == 200
    assert response.json()["scope_and_boundaries"]["functional_unit"] == "1 tonne of steel at the factory gate"


def test_human_readable_keys_and_bad_numbers(client):
    response = client.post("/api/lca", json={"Metal Type": "Copper", "transportDistanceKm": "not a number"})
    assert response.status_code == 200
    body = response.json()
    assert body["project_details"]["product_name"] == "Copper Product"
    assert body["life_cycle_inventory"]["transportation"]["distance_km"] == 0.0


def test_non_string_values_are_coerced_not_rejected(client, steel_road_record):
    response = client.post("/api/lca", json={"metal": 7, "companyName": 123, "transportMode": 5, "geographicalScope": True})
    assert response.status_code == 200
    body = response.json()
    assert body["project_details"]["company_name"] == "123"
    assert body["life_cycle_inventory"]["transportation"]["mode"] == "5"
    assert body["scope_and_boundaries"]["functional_unit"] == "1 tonne of 7 at the factory gate"

    numeric_mode = client.post("/api/lca", json={**steel_road_record, "transportMode": 5}).json()
    assert numeric_mode["impact_assessment_results"]["totals"]["gwp_kg_co2e"] == 333.6


def test_batch(client):
    response = client.post("/api/lca/batch", json={"records": [{"metal": "steel"}, {"metal": "aluminium"}]})
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert [r["project_details"]["product_name"] for r in body["results"]] == ["Steel Product", "Aluminium Product"]
    assert body["averages"]["avg_gwp_kg_co2e"] == 283.6


def test_upload_csv(client):
    csv = b"Metal Type,Transport Mode,Transport Distance (km)\nZinc,Ship,4000\nNickel,Air,100\n"
    response = client.post("/api/lca/upload", files={"file": ("data.csv", csv, "text/csv")})
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert body["results"][1]["life_cycle_inventory"]["transportation"]["mode"] == "air"


def test_upload_xlsx(client):
    buffer = io.BytesIO()
    pd.DataFrame([{"Metal Type": "Titanium"}]).to_excel(buffer, index=False, engine="openpyxl")
    response = client.post("/api/lca/upload", files={"file": ("data.xlsx", buffer.getvalue(), "application/octet-stream")})
    assert response.status_code == 200
    assert response.json()["results"][0]["project_details"]["product_name"] == "Titanium Product"


@pytest.mark.parametrize("name,content", [
    ("data.csv", b""),
    ("data.csv", b"Metal Type\n"),
    ("data.txt", b"Metal Type\nsteel\n"),
    ("data.xlsx", b"garbage"),
])
def test_upload_rejects_unusable_files(client, name, content):
    response = client.post("/api/lca/upload", files={"file": (name, content, "application/octet-stream")})
    assert response.status_code == 400


def test_compare(client):
    response = client.post("/api/lca/compare", json={"metal": "steel", "productionRoute": "recycled"})
    assert response.status_code == 200
    rows = response.json()
    assert [r["name"] for r in rows] == ["Conventional Route", "Circular Route"]
    assert rows[0]["carbon_footprint_kg_co2e"] > rows[1]["carbon_footprint_kg_co2e"]


def test_templates(client):
    basic = client.get("/api/templates/basic")
    assert basic.status_code == 200
    assert "basic_lca_template.csv" in basic.headers["content-disposition"]
    assert basic.text.startswith("Metal Type,")
    advanced = client.get("/api/templates/advanced")
    assert advanced.status_code == 200
    assert advanced.content[:2] == b"PK"
    assert client.get("/api/templates/expert").status_code == 404


def test_pdf_requires_a_body(client):
    assert client.post("/generate-lca-pdf", json={}).status_code == 400


def test_pdf_without_api_key(client, monkeypatch):
    monkeypatch.setattr(main, "get_narrative_client", lambda: NarrativeClient(Settings(llm_api_key=None)))
    response = client.post("/generate-lca-pdf", json=build_lca_json({}))
    assert response.status_code == 503


def test_pdf_when_narrative_service_fails(client, monkeypatch):
    stub = StubNarrativeClient(error=ReportGenerationError("No content returned from the narrative service."))
    monkeypatch.setattr(main, "get_narrative_client", lambda: stub)
    response = client.post("/generate-lca-pdf", json=build_lca_json({}))
    assert response.status_code == 502
    assert "No content" in response.json()["detail"]


def test_pdf_success(client, monkeypatch):
    monkeypatch.setattr(main, "get_narrative_client", lambda: StubNarrativeClient())
    response = client.post("/generate-lca-pdf", json=build_lca_json({}))
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "LCA_Report_" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")

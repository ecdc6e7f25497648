"""Tests for the FastAPI underwriting endpoints."""

from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

import main
from underwriting_analyzer import AnalysisError, SampleAnalysisProvider
from underwriting_output import UnderwritingOutputGenerator

ADDRESS = "5678 Oak Ave, Dallas, TX"


def _files(t12_name="t12.pdf", rent_roll_name="rent_roll.xlsx"):
    return {
        "t12": (t12_name, b"%PDF-1.4 trailing twelve", "application/pdf"),
        "rent_roll": (rent_roll_name, b"PK\x03\x04 rent roll", "application/octet-stream"),
    }


class FailingProvider:
    def analyze(self, request):
        raise AnalysisError("rent roll unreadable")


@pytest.fixture
def client():
    main.app.dependency_overrides[main.get_analysis_provider] = lambda: SampleAnalysisProvider(delay_seconds=0)
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()
    main.processing_sessions.clear()
    main.deal_history.clear()
    main.buy_box_settings["current"] = main.BuyBoxCriteria()


def _analyze(client, address=ADDRESS):
    response = client.post(
        "/api/analyze",
        data={"address": address, "city": "Dallas", "state": "TX"},
        files=_files(),
    )
    assert response.status_code == 200
    return response.json()


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_analyze_returns_result_with_entered_address(client):
    body = _analyze(client)
    results = body["results"]

    assert body["session_id"]
    assert results["propertyInfo"]["address"] == ADDRESS
    assert results["financials"]["capRate"] == 6.2
    assert results["recommendation"] == "pass"
    assert [r["type"] for r in results["riskFactors"]] == ["low", "medium", "low"]


def test_results_endpoint(client):
    session_id = _analyze(client)["session_id"]
    response = client.get(f"/api/results/{session_id}")

    assert response.status_code == 200
    assert response.json()["confidenceScore"] == 87


def test_unknown_session(client):
    assert client.get("/api/results/nope").status_code == 404
    assert client.get("/api/export/nope/excel").status_code == 404


def test_unsupported_upload_type(client):
    response = client.post("/api/analyze", data={"address": ADDRESS}, files=_files(t12_name="t12.docx"))
    assert response.status_code == 400
    assert "t12.docx" in response.json()["detail"]


def test_analysis_failure(client):
    main.app.dependency_overrides[main.get_analysis_provider] = lambda: FailingProvider()
    response = client.post("/api/analyze", data={"address": ADDRESS}, files=_files())

    assert response.status_code == 502
    assert "rent roll unreadable" in response.json()["detail"]
    assert main.deal_history == []


def test_unexpected_provider_error_closes_the_session(client):
    class BrokenParser:
        def analyze(self, request):
            raise ValueError("could not convert string to float: 'N/A'")

    main.app.dependency_overrides[main.get_analysis_provider] = lambda: BrokenParser()
    response = client.post("/api/analyze", data={"address": ADDRESS}, files=_files())

    assert response.status_code == 502
    assert "could not convert" in response.json()["detail"]
    [session] = main.processing_sessions.values()
    assert session.status == "error"
    assert session.error_message == "could not convert string to float: 'N/A'"
    assert client.get(f"/api/results/{session.session_id}").status_code == 409
    assert main.deal_history == []


def test_excel_export_download(client):
    session_id = _analyze(client)["session_id"]
    response = client.get(f"/api/export/{session_id}/excel")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    disposition = response.headers["content-disposition"]
    assert 'filename="CRE_Analysis_5678_Oak_Ave_Dallas_TX_' in disposition
    assert disposition.endswith('.xlsx"')

    wb = load_workbook(BytesIO(response.content))
    assert wb.sheetnames == ["Summary", "Financial Model", "Risk Analysis"]


def test_pdf_export_download(client):
    session_id = _analyze(client)["session_id"]
    response = client.get(f"/api/export/{session_id}/pdf")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_invalid_export_type(client):
    session_id = _analyze(client)["session_id"]
    assert client.get(f"/api/export/{session_id}/csv").status_code == 400


def test_export_before_analysis_completes(client):
    main.processing_sessions["pending"] = main.AnalysisSession(
        session_id="pending",
        status="processing",
        property_input=main.PropertyInput(address=ADDRESS),
        created_at=main.datetime.now(),
    )
    response = client.get("/api/export/pending/pdf")

    assert response.status_code == 409
    assert client.get("/api/results/pending").status_code == 409


def test_export_failure_names_the_export(client, monkeypatch):
    generator = UnderwritingOutputGenerator()

    def boom(result, generated_on):
        raise RuntimeError("workbook assembly failed")

    monkeypatch.setattr(generator.excel, "render", boom)
    main.app.dependency_overrides[main.get_output_generator] = lambda: generator

    session_id = _analyze(client)["session_id"]
    response = client.get(f"/api/export/{session_id}/excel")

    assert response.status_code == 500
    assert response.json()["detail"] == "Spreadsheet export failed: workbook assembly failed"
    assert client.get(f"/api/export/{session_id}/pdf").status_code == 200


def test_export_can_be_saved(client, tmp_path, monkeypatch):
    monkeypatch.setattr(main.settings, "EXPORT_DIR", str(tmp_path))
    session_id = _analyze(client)["session_id"]

    response = client.get(f"/api/export/{session_id}/pdf", params={"save": "true"})

    assert response.status_code == 200
    saved = list(tmp_path.iterdir())
    assert len(saved) == 1
    assert saved[0].read_bytes() == response.content


def test_buy_box_round_trip(client):
    assert client.get("/api/buy-box").json() == {
        "minCocReturn": 8.0,
        "minCapRate": 6.0,
        "maxYearBuilt": 1990,
        "targetHoldPeriod": 5,
    }

    update = {"minCocReturn": 10, "minCapRate": 6.5, "maxYearBuilt": 2000, "targetHoldPeriod": 7}
    assert client.put("/api/buy-box", json=update).status_code == 200
    assert client.get("/api/buy-box").json()["minCapRate"] == 6.5


def test_buy_box_reaches_the_provider(client):
    seen = []

    class RecordingProvider(SampleAnalysisProvider):
        def analyze(self, request):
            seen.append(request.criteria)
            return super().analyze(request)

    main.app.dependency_overrides[main.get_analysis_provider] = lambda: RecordingProvider()
    client.put("/api/buy-box", json={"minCocReturn": 12, "minCapRate": 7,
                                     "maxYearBuilt": 1985, "targetHoldPeriod": 10})
    _analyze(client)

    assert seen[0].min_coc_return == 12


def test_deal_history(client):
    _analyze(client, "1234 Main St, Austin, TX")
    _analyze(client, "9101 Pine Rd, Houston, TX")

    body = client.get("/api/deals").json()

    assert body["total"] == 2
    assert body["approved"] == 2
    assert [d["address"] for d in body["deals"]] == ["9101 Pine Rd, Houston, TX", "1234 Main St, Austin, TX"]
    assert body["deals"][0]["status"] == "pass"
    assert body["deals"][0]["cocReturn"] == 11.4

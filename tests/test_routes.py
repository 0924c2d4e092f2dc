"""Tests for the HTTP API."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from server import app
from services.dependencies import get_scanner_service
from services.scan_store import MemoryScanStore
from services.scanner_service import ScannerService


class BrokenStore(MemoryScanStore):
    async def insert_scan(self, scan):
        raise ConnectionError("database went away")


@pytest.fixture
def client(scanner):
    app.dependency_overrides[get_scanner_service] = lambda: scanner
    yield TestClient(app)
    app.dependency_overrides.clear()


def submit(client, code="eval(userInput)", **extra):
    return client.post("/api/scan", json={"code": code, **extra})


class TestScanRoutes:
    def test_scan_returns_camel_case_record(self, client):
        response = submit(client, filename="app.js", repo="acme/web", prNumber=3)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        scan = body["scan"]
        assert scan["prNumber"] == 3
        assert scan["riskScore"] == 2.5
        assert scan["findings"][0]["type"] == "RCE"
        assert scan["llmProvider"] == "none"

    def test_missing_code_is_400(self, client):
        response = client.post("/api/scan", json={"filename": "a.js"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Code is required"

    def test_empty_code_is_400(self, client):
        assert submit(client, code="").status_code == 400

    def test_persistence_failure_is_500(self, offline_gateway):
        app.dependency_overrides[get_scanner_service] = lambda: ScannerService(
            BrokenStore(), llm_gateway=offline_gateway
        )
        try:
            response = submit(TestClient(app))
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["scan"]["status"] == "failed"
        assert "Persistence failed" in body["error"]

    def test_history_and_stats(self, client):
        submit(client)
        submit(client, code="const a = 1;")

        body = client.get("/api/scan", params={"limit": 10}).json()

        assert body["count"] == 2
        assert body["stats"]["totalScans"] == 2
        assert body["stats"]["totalVulns"] == 1
        assert client.get("/api/scan", params={"limit": 1}).json()["count"] == 1

    def test_limit_is_bounded(self, client):
        assert client.get("/api/scan", params={"limit": 0}).status_code == 422

    def test_stats_endpoint(self, client):
        submit(client)
        body = client.get("/api/scan/stats").json()
        assert body["success"] is True
        assert body["stats"]["totalVulns"] == 1

    def test_get_scan(self, client):
        scan_id = submit(client).json()["scan"]["id"]

        response = client.get(f"/api/scan/{scan_id}")
        assert response.status_code == 200
        assert response.json()["scan"]["id"] == scan_id

        assert client.get("/api/scan/does-not-exist").status_code == 404


class TestFeedbackRoutes:
    def test_confirm_finding(self, client):
        scan_id = submit(client).json()["scan"]["id"]

        response = client.post("/api/feedback", json={"scanId": scan_id, "isReal": True, "comment": "yes"})

        assert response.status_code == 200
        body = response.json()
        assert body["scan"]["userFeedback"]["isReal"] is True
        assert body["scan"]["accuracyScore"] == 100
        assert body["message"].startswith("Thank you for confirming")

    def test_reject_finding(self, client):
        scan_id = submit(client).json()["scan"]["id"]

        body = client.post("/api/feedback", json={"scanId": scan_id, "isReal": False}).json()

        assert body["scan"]["accuracyScore"] == 0
        assert "learn from this pattern" in body["message"]

    def test_missing_fields_is_400(self, client):
        assert client.post("/api/feedback", json={"scanId": "x"}).status_code == 400
        assert client.post("/api/feedback", json={"isReal": True}).status_code == 400

    def test_unknown_scan_is_404(self, client):
        response = client.post("/api/feedback", json={"scanId": "missing", "isReal": True})
        assert response.status_code == 404


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json()["status"] == "OK"
        assert client.get("/api/health").json()["status"] == "healthy"

"""Tests for /health, /api/health and / endpoints."""

from fastapi.testclient import TestClient

from brms.main import app
from brms.services import VersionService


class TestHealth:

    def test_health_returns_200(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["db"] == "ok"
        assert "uptime_seconds" in data
        assert "version" in data
        assert data["document_count"] == 0

    def test_api_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}

    def test_root_returns_api_info(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["name"] == "BRMS API"


class TestResponseHeaders:

    def test_response_includes_middleware_headers(self, client):
        resp = client.get("/health")
        assert "x-request-id" in resp.headers
        assert "x-response-time" in resp.headers

    def test_request_id_is_propagated(self, client):
        resp = client.get("/api/health", headers={"X-Request-ID": "abc123"})
        assert resp.headers["x-request-id"] == "abc123"


class TestUnhandledErrors:

    def test_unexpected_exception_uses_error_envelope(self, client, monkeypatch):
        def _explode(self, project_id):
            raise RuntimeError("boom")

        monkeypatch.setattr(VersionService, "list_documents", _explode)
        resp = TestClient(app, raise_server_exceptions=False).get("/api/documents")
        assert resp.status_code == 500
        assert resp.headers["content-type"].startswith("application/json")
        assert resp.json() == {"error": "Internal server error", "code": "INTERNAL_ERROR", "details": {}}

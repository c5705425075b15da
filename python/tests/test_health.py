"""Tests for the health endpoint.

The health endpoint is a liveness check that:
- Does not touch the database, broker or video service
- Always returns 200 if the process is running
"""

from fastapi.testclient import TestClient


class TestHealthEndpoint:
    """Tests for GET /health"""

    def test_health_returns_200(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_returns_correct_envelope(self, client: TestClient):
        """Health endpoint returns proper success envelope."""
        response = client.get("/health")

        assert response.json() == {"data": {"status": "ok"}}

    def test_health_content_type_is_json(self, client: TestClient):
        response = client.get("/health")
        assert response.headers["content-type"] == "application/json"

    def test_unknown_route_uses_error_envelope(self, client: TestClient):
        response = client.get("/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E_NOT_FOUND"

"""Tests for the health endpoint.

The health endpoint is a liveness check that:
- Does not require authentication
- Does not touch the database
- Always returns 200 if the process is running
"""

from fastapi.testclient import TestClient


class TestHealthEndpoint:
    """Tests for GET /health"""

    def test_health_returns_correct_envelope(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"data": {"status": "ok"}}

    def test_health_is_public_behind_auth(self, auth_client: TestClient):
        """No bearer token is needed even when auth middleware is installed."""
        response = auth_client.get("/health")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"

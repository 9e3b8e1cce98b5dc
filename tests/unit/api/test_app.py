"""Tests for the application factory and health endpoint."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from chatgate import __version__
from chatgate.api.app import _parse_cors_origins, create_app


class TestCreateApp:

    def test_routes_registered(self):
        paths = create_app().openapi()["paths"]

        assert "/health" in paths
        assert "/api/user-subscription/increment" in paths
        assert "/api/user-subscription/limit" in paths
        assert "/api/user-subscription/usage" in paths
        assert "/api/user-subscription/quota" in paths
        assert "/api/subscription/plans" in paths
        assert "/api/admin/login" in paths
        assert "/api/admin/logout" in paths
        assert "/api/admin/session" in paths
        assert "/api/cron/admin-session-cleanup" in paths
        assert "/api/cron/idempotency-key-cleanup" in paths
        assert set(paths["/api/user-subscription/limit"]) == {"get", "post"}

    def test_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("API_PREFIX", "/v2/")

        paths = create_app().openapi()["paths"]

        assert "/v2/user-subscription/increment" in paths

    def test_openapi_schema(self):
        schema = TestClient(create_app()).get("/openapi.json").json()

        assert schema["info"]["version"] == __version__

    def test_unknown_route(self):
        response = TestClient(create_app()).get("/nope")

        assert response.status_code == 404
        assert response.json()["success"] is False


class TestCorsOrigins:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ('["*"]', ["*"]),
            ('["https://a.example", "https://b.example"]', ["https://a.example", "https://b.example"]),
            ("https://a.example, https://b.example", ["https://a.example", "https://b.example"]),
            ("", ["*"]),
        ],
    )
    def test_parse(self, raw, expected):
        assert _parse_cors_origins(raw) == expected


class TestHealthEndpoint:
    """Tests for GET /health."""

    def _database(self, enabled=True, connected=True):
        database = MagicMock()
        database.config.enabled = enabled
        database.test_connection = AsyncMock(return_value=connected)
        return database

    def test_healthy(self):
        with patch("chatgate.api.routers.health.db", self._database()):
            response = TestClient(create_app()).get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__
        assert data["components"]["database"]["status"] == "healthy"

    def test_database_down(self):
        with patch("chatgate.api.routers.health.db", self._database(connected=False)):
            data = TestClient(create_app()).get("/health").json()

        assert data["status"] == "unhealthy"

    def test_database_disabled(self):
        with patch("chatgate.api.routers.health.db", self._database(enabled=False)):
            data = TestClient(create_app()).get("/health").json()

        assert data["status"] == "healthy"
        assert data["components"]["database"]["status"] == "disabled"

"""Tests for application wiring: health, routing, errors and CORS."""

import asyncio
import logging

import pytest
from fastapi import APIRouter
from fastapi.testclient import TestClient

from timetide.api import create_app
from timetide.api.routes import ROUTE_PREFIXES
from timetide.database.connection import ConnectionState


def _boom_router() -> APIRouter:
    router = APIRouter()

    @router.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    return router


class TestHealth:
    """Tests for GET /api/health and /api/health/ready."""

    def test_health_ok(self, client):
        response = client.get("/api/health")
        data = response.json()

        assert response.status_code == 200
        assert data["status"] == "OK"
        assert data["message"] == "TimeTide API is running"
        assert data["timestamp"].endswith("Z")

    def test_health_ok_when_database_down(self, make_settings, make_connector, fake_mongo):
        fake_mongo.ping_failures = 10
        settings = make_settings(mongo_connect_attempts=1)
        connector = make_connector(settings)
        asyncio.run(connector.connect())
        client = TestClient(create_app(settings, connector=connector))

        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "OK"
        assert response.json()["database"] == "degraded"

    def test_health_ok_without_mongo(self, make_client):
        response = make_client(mongo_uri=None).get("/api/health")

        assert response.status_code == 200
        assert response.json()["database"] == "unconfigured"

    def test_ready_when_connected(self, settings, make_connector):
        connector = make_connector(settings)
        asyncio.run(connector.connect())
        client = TestClient(create_app(settings, connector=connector))

        response = client.get("/api/health/ready")

        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    def test_not_ready_before_connecting(self, client):
        response = client.get("/api/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "DEGRADED"


class TestRouting:
    """Tests for unknown routes and collaborator mounting."""

    def test_unknown_route(self, client):
        response = client.get("/api/unknown-path")

        assert response.status_code == 404
        assert response.json()["error"] == "Route not found"
        assert "API server" in response.json()["message"]

    def test_unknown_route_any_method(self, client):
        response = client.post("/nowhere", json={})
        assert response.status_code == 404
        assert response.json()["error"] == "Route not found"

    def test_wrong_method_is_unmatched(self, client):
        response = client.post("/api/health")

        assert response.status_code == 404
        assert response.json()["error"] == "Route not found"

    def test_handler_http_errors_keep_default_body(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json() == {"detail": "Not authenticated"}

    @pytest.mark.parametrize(
        "path",
        [
            "/api/auth/status",
            "/api/sessions/current",
            "/api/onboarding",
            "/api/leaderboard",
            "/api/progress",
        ],
    )
    def test_default_collaborators_mounted(self, client, path):
        assert path.startswith(ROUTE_PREFIXES)
        assert client.get(path).status_code == 200

    def test_replacement_collaborator(self, settings, make_connector):
        router = APIRouter()

        @router.get("/top")
        async def top():
            return {"scores": [42]}

        app = create_app(
            settings,
            connector=make_connector(settings),
            collaborators={"/api/leaderboard": router},
        )
        response = TestClient(app).get("/api/leaderboard/top")

        assert response.json() == {"scores": [42]}

    def test_unknown_collaborator_prefix_rejected(self, settings, make_connector):
        with pytest.raises(ValueError, match="/api/shop"):
            create_app(
                settings,
                connector=make_connector(settings),
                collaborators={"/api/shop": APIRouter()},
            )


class TestErrorHandler:
    """Tests for the terminal error handler."""

    def _client(self, make_settings, make_connector, **overrides) -> TestClient:
        settings = make_settings(**overrides)
        app = create_app(
            settings,
            connector=make_connector(settings),
            collaborators={"/api/progress": _boom_router()},
        )
        return TestClient(app, base_url="https://testserver", raise_server_exceptions=False)

    def test_development_reveals_message(self, make_settings, make_connector):
        response = self._client(make_settings, make_connector).get("/api/progress/boom")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "message": "kaboom"}

    def test_production_hides_message(self, make_settings, make_connector):
        client = self._client(make_settings, make_connector, node_env="production")
        response = client.get("/api/progress/boom")

        assert response.status_code == 500
        assert response.json() == {
            "error": "Internal server error",
            "message": "Something went wrong",
        }

    def test_error_is_logged(self, make_settings, make_connector, caplog):
        with caplog.at_level(logging.ERROR, logger="timetide.api.app"):
            self._client(make_settings, make_connector).get("/api/progress/boom")

        assert "kaboom" in caplog.text


class TestCors:
    """Tests for the production-only CORS policy."""

    ALLOWED = "https://app.example.com"
    OTHER = "https://evil.example.com"

    def _production_client(self, make_client, **overrides) -> TestClient:
        return make_client(
            base_url="https://testserver",
            node_env="production",
            **overrides,
        )

    def test_development_does_not_block(self, client):
        response = client.get("/api/health", headers={"Origin": self.OTHER})

        assert response.status_code == 200
        assert "access-control-allow-origin" not in response.headers

    def test_production_allows_listed_origin(self, make_client):
        client = self._production_client(make_client, frontend_origin=f"{self.ALLOWED},https://b.example.com")
        response = client.get("/api/health", headers={"Origin": self.ALLOWED})

        assert response.headers["access-control-allow-origin"] == self.ALLOWED
        assert response.headers["access-control-allow-credentials"] == "true"

    def test_production_rejects_preflight_from_other_origin(self, make_client):
        client = self._production_client(make_client, frontend_origin=self.ALLOWED)
        response = client.options(
            "/api/health",
            headers={"Origin": self.OTHER, "Access-Control-Request-Method": "GET"},
        )

        assert response.status_code == 400
        assert "access-control-allow-origin" not in response.headers

    def test_production_other_origin_gets_no_cors_headers(self, make_client):
        client = self._production_client(make_client, frontend_origin=self.ALLOWED)
        response = client.get("/api/health", headers={"Origin": self.OTHER})

        assert "access-control-allow-origin" not in response.headers

    def test_production_without_allowlist_denies_all(self, make_client):
        client = self._production_client(make_client)
        response = client.options(
            "/api/health",
            headers={"Origin": self.ALLOWED, "Access-Control-Request-Method": "GET"},
        )

        assert response.status_code == 400


class TestLifespan:
    """Tests for startup and shutdown."""

    def test_startup_banner_and_shutdown(self, make_client, caplog):
        client = make_client()

        with caplog.at_level(logging.INFO, logger="timetide"):
            with client:
                client.get("/api/health")

        assert "Server running on http://localhost:5000" in caplog.text
        assert client.app.state.connector.state is ConnectionState.CLOSED

    def test_missing_mongo_uri_logged(self, make_client, caplog):
        client = make_client(mongo_uri=None)

        with caplog.at_level(logging.ERROR, logger="timetide"):
            with client:
                pass

        assert "Missing MONGO_URI" in caplog.text

"""Contract tests for service metadata, authentication and the error body format."""

import uuid
from unittest.mock import patch

import pytest


@pytest.mark.contract
class TestServiceEndpoints:
    """Test root and health check endpoints."""

    @pytest.mark.asyncio
    async def test_root(self, client) -> None:
        """Test that the root lists documentation and health checks."""
        response = await client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "Open House API"
        assert "version" in data
        assert data["health"]["liveness"] == "/v1/liveness"
        assert data["areas"]["idea_validator"] == "/v1/idea-validator"
        assert data["documentation"]["openapi"] == "/openapi.json"

    @pytest.mark.asyncio
    async def test_liveness(self, client) -> None:
        """Test liveness never depends on the database."""
        response = await client.get("/v1/liveness")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    @pytest.mark.asyncio
    async def test_readiness_without_database(self, client) -> None:
        """Test that readiness reports 503 until the database is initialized."""
        with patch("openhouse.api.routes.health.get_database_manager", return_value=None):
            response = await client.get("/v1/readiness")

        assert response.status_code == 503
        assert response.json() == {
            "status": "not_ready",
            "checks": {"database": "not_initialized"},
        }


@pytest.mark.contract
class TestAuthentication:
    """Test protected endpoints without valid credentials."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/v1/profiles/me"),
            ("post", "/v1/ideas"),
            ("get", "/v1/connections"),
            ("get", "/v1/payments/status"),
            ("get", "/v1/idea-validator/sessions"),
        ],
    )
    async def test_missing_token(self, client, method, path) -> None:
        """Test that protected endpoints answer 401 with a bearer challenge."""
        response = await client.request(method, path, json={})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_unknown_token(self, client) -> None:
        """Test that an unrecognized token is rejected."""
        response = await client.get(
            "/v1/profiles/me", headers={"Authorization": "Bearer someone-else"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_public_listing_without_token(self, client) -> None:
        """Test that browsing ideas needs no sign-in."""
        response = await client.get("/v1/ideas")

        assert response.status_code == 200
        assert response.json() == []


@pytest.mark.contract
class TestErrorFormat:
    """Test the ``{"error": {type, message, details}}`` body."""

    @pytest.mark.asyncio
    async def test_not_found(self, client) -> None:
        """Test the body for a missing row."""
        response = await client.get(f"/v1/ideas/{uuid.uuid4()}")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["type"] == "not_found"
        assert "not found" in error["message"]

    @pytest.mark.asyncio
    async def test_validation_error(self, client, paid_headers) -> None:
        """Test that blank form fields produce 422 with per-field details."""
        response = await client.post(
            "/v1/ideas",
            headers=paid_headers,
            json={"title": "   ", "description": "", "category": "EdTech", "stage": "idea"},
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["type"] == "validation_error"
        assert error["message"] == "Request validation failed"
        fields = {tuple(item["loc"])[-1] for item in error["details"]}
        assert {"title", "description"} <= fields
        for item in error["details"]:
            assert set(item) == {"loc", "msg", "type"}

    @pytest.mark.asyncio
    async def test_malformed_path_parameter(self, client) -> None:
        """Test that a non-UUID id is a validation error, not a 500."""
        response = await client.get("/v1/ideas/not-a-uuid")

        assert response.status_code == 422
        assert response.json()["error"]["type"] == "validation_error"

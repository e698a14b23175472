"""Tests for API key authentication."""
import pytest
from httpx import AsyncClient, ASGITransport

from rng_service.auth.api_key import api_key_matches

PREFIX = "/api/v1"

PROTECTED_PATHS = [
    "/RandomFloat0to1",
    "/RandomFloat0to1/alice",
    "/GetAverageRNG",
    "/GetAverageRNG/alice",
    "/GetAllAveragesRNG",
    "/GetUsers",
    "/GetGenerationDetails",
]


def test_api_key_matches():
    assert api_key_matches("secret", "secret") is True
    assert api_key_matches("Secret", "secret") is False
    assert api_key_matches("", "secret") is False
    assert api_key_matches(None, "secret") is False


def test_api_key_matches_non_ascii():
    assert api_key_matches("clé", "clé") is True
    assert api_key_matches("cle", "clé") is False


@pytest.mark.parametrize("path", PROTECTED_PATHS)
def test_missing_key_rejected(client, store, path):
    r = client.get(PREFIX + path)
    assert r.status_code == 401

    data = r.json()
    assert data["error"] == "API Key does not match"
    assert "timestamp" in data
    assert store.list_events(limit=10) == []


@pytest.mark.parametrize("path", PROTECTED_PATHS)
def test_wrong_key_rejected(client, store, path):
    r = client.get(PREFIX + path, headers={"Authorization": "wrong-key"})
    assert r.status_code == 401
    assert store.list_events(limit=10) == []


def test_bearer_prefix_is_not_stripped(client, auth_headers):
    r = client.get(
        f"{PREFIX}/GetUsers",
        headers={"Authorization": f"Bearer {auth_headers['Authorization']}"},
    )
    assert r.status_code == 401


def test_auth_runs_before_paging_validation(client):
    r = client.get(f"{PREFIX}/GetGenerationDetails?page=abc")
    assert r.status_code == 401


def test_auth_failures_counted(client, app):
    client.get(f"{PREFIX}/GetUsers")
    client.get(f"{PREFIX}/GetUsers", headers={"Authorization": "nope"})

    assert app.state.metrics.registry.get_sample_value("rng_auth_failures_total") == 2.0


@pytest.mark.asyncio
async def test_valid_api_key_allows_access(app, auth_headers):
    """Test that valid API key allows access to protected endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get(f"{PREFIX}/GetUsers", headers=auth_headers)
        assert response.status_code == 200

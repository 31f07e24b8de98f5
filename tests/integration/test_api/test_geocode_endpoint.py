"""Integration tests for the /geocode endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from reseller_map.api.v1.geocoding import geocoding_router
from reseller_map.core.config import Settings, get_settings
from reseller_map.lib.geocoder import ResolutionPolicy
from reseller_map.services.batch_service import BatchResolver
from reseller_map.services.resolution_service import AddressResolver

LOUVRE = "Musée du Louvre, Paris, France"


@pytest.fixture
def primary(make_geocoder, make_coords):
    """Primary provider that knows only the Louvre."""
    return make_geocoder(script={LOUVRE: make_coords(48.8606, 2.3376)})


@pytest.fixture
def app(settings: Settings, cache, primary) -> FastAPI:
    """Create a minimal FastAPI app with the geocoding router and a scripted resolver."""
    resolver = AddressResolver(primary, cache, policy=ResolutionPolicy(fallback_countries=()))
    app = FastAPI()
    app.include_router(geocoding_router, prefix="/api/v1")
    app.state.cache = cache
    app.state.resolver = resolver
    app.state.batch_resolver = BatchResolver(resolver)
    app.dependency_overrides[get_settings] = lambda: settings
    return app


@pytest.fixture
def client(app: FastAPI) -> AsyncClient:
    """Create an async test client."""
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test", follow_redirects=False)


class TestGeocodeEndpoint:
    """Tests for POST /api/v1/geocode."""

    async def test_valid_address_returns_coordinates(self, client) -> None:
        resp = await client.post("/api/v1/geocode", json={"address": LOUVRE})
        assert resp.status_code == 200
        assert resp.json() == {"lat": 48.8606, "lng": 2.3376}

    async def test_second_request_served_from_cache(self, client, primary) -> None:
        await client.post("/api/v1/geocode", json={"address": LOUVRE})
        resp = await client.post("/api/v1/geocode", json={"address": f"  {LOUVRE}\n"})
        assert resp.status_code == 200
        assert primary.calls == [LOUVRE]

    async def test_unknown_address_returns_404(self, client) -> None:
        resp = await client.post("/api/v1/geocode", json={"address": "Nowhere Lane, France"})
        assert resp.status_code == 404
        assert resp.json()["detail"] == "not_found"

    async def test_whitespace_address_returns_422(self, client) -> None:
        resp = await client.post("/api/v1/geocode", json={"address": "   "})
        assert resp.status_code == 422

    async def test_missing_address_returns_422(self, client) -> None:
        resp = await client.post("/api/v1/geocode", json={})
        assert resp.status_code == 422

    async def test_missing_key_returns_503(self, client, primary) -> None:
        primary.configured = False
        resp = await client.post("/api/v1/geocode", json={"address": LOUVRE})
        assert resp.status_code == 503
        assert "not configured" in resp.json()["detail"]


class TestMapSecret:
    """Tests for the ?key= access check."""

    async def test_secret_required_when_configured(self, client, settings) -> None:
        settings.map_secret = "s3cret"
        resp = await client.post("/api/v1/geocode", json={"address": LOUVRE})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "unauthorized"

    async def test_wrong_secret_rejected(self, client, settings) -> None:
        settings.map_secret = "s3cret"
        resp = await client.post("/api/v1/geocode?key=guess", json={"address": LOUVRE})
        assert resp.status_code == 401

    async def test_correct_secret_accepted(self, client, settings) -> None:
        settings.map_secret = "s3cret"
        resp = await client.post("/api/v1/geocode?key=s3cret", json={"address": LOUVRE})
        assert resp.status_code == 200

    async def test_secret_guards_every_route(self, client, settings) -> None:
        settings.map_secret = "s3cret"
        resp = await client.get("/api/v1/geocode/cache")
        assert resp.status_code == 401


class TestBatchEndpoint:
    """Tests for POST /api/v1/geocode/batch."""

    async def test_returns_only_resolved_addresses(self, client) -> None:
        resp = await client.post(
            "/api/v1/geocode/batch",
            json={"addresses": [LOUVRE, "Nowhere Lane, France", LOUVRE]},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert [r["address"] for r in data["results"]] == [LOUVRE, LOUVRE]
        assert data["succeeded"] == 2
        assert data["failed"] == 1
        assert data["last_error"] == "Address not found"

    async def test_empty_list_rejected(self, client) -> None:
        resp = await client.post("/api/v1/geocode/batch", json={"addresses": []})
        assert resp.status_code == 422

    async def test_missing_key_returns_503(self, client, primary) -> None:
        primary.configured = False
        resp = await client.post("/api/v1/geocode/batch", json={"addresses": [LOUVRE]})
        assert resp.status_code == 503

    async def test_client_disconnect_skips_remaining_addresses(self, client, primary) -> None:
        with patch("starlette.requests.Request.is_disconnected", new_callable=AsyncMock, return_value=True):
            resp = await client.post("/api/v1/geocode/batch", json={"addresses": [LOUVRE, "Nowhere Lane, France"]})

        assert resp.status_code == 200
        data = resp.json()
        assert data["results"] == []
        assert data["skipped"] == 2
        assert primary.calls == []

    async def test_connected_client_runs_whole_batch(self, client, primary) -> None:
        with patch("starlette.requests.Request.is_disconnected", new_callable=AsyncMock, return_value=False):
            resp = await client.post("/api/v1/geocode/batch", json={"addresses": [LOUVRE]})

        assert resp.status_code == 200
        assert resp.json()["succeeded"] == 1
        assert primary.calls == [LOUVRE]


class TestNearbyEndpoint:
    """Tests for POST /api/v1/geocode/nearby."""

    async def test_lists_resellers_nearest_first(self, client) -> None:
        resp = await client.post(
            "/api/v1/geocode/nearby",
            json={
                "address": LOUVRE,
                "resellers": [
                    {"name": "Palais Royal", "address": "Place du Palais Royal", "lat": 48.8638, "lng": 2.3370},
                    {"name": "Tuileries", "address": "Jardin des Tuileries", "lat": 48.8606, "lng": 2.3380},
                    {"name": "Versailles", "address": "Versailles", "lat": 48.8049, "lng": 2.1204},
                    {"name": "Unplaced", "address": "Somewhere"},
                ],
            },
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["center"] == {"lat": 48.8606, "lng": 2.3376}
        assert data["radius_km"] == 1.0
        assert [r["name"] for r in data["resellers"]] == ["Tuileries", "Palais Royal"]

    async def test_unresolvable_candidate_returns_404(self, client) -> None:
        resp = await client.post("/api/v1/geocode/nearby", json={"address": "Nowhere Lane, France"})
        assert resp.status_code == 404

    async def test_negative_radius_rejected(self, client) -> None:
        resp = await client.post("/api/v1/geocode/nearby", json={"address": LOUVRE, "radius_km": -1})
        assert resp.status_code == 422


class TestCacheEndpoint:
    """Tests for GET /api/v1/geocode/cache."""

    async def test_reports_entry_count(self, client) -> None:
        empty = await client.get("/api/v1/geocode/cache")
        assert empty.status_code == 200
        assert empty.json()["entry_count"] == 0

        await client.post("/api/v1/geocode", json={"address": LOUVRE})
        resp = await client.get("/api/v1/geocode/cache")
        assert resp.json()["entry_count"] == 1
        assert resp.json()["newest_entry"] is not None

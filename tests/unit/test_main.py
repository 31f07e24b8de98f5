"""Unit tests for the FastAPI application factory and lifespan."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from reseller_map.core.logging import setup_logging
from reseller_map.main import create_app
from reseller_map.services.batch_service import BatchResolver
from reseller_map.services.resolution_service import AddressResolver


class TestCreateApp:
    """Tests for create_app()."""

    def test_routes_registered_under_prefix(self, settings) -> None:
        with patch("reseller_map.main.get_settings", return_value=settings):
            app = create_app()
        paths = app.openapi()["paths"]
        assert "post" in paths["/api/v1/geocode"]
        assert "post" in paths["/api/v1/geocode/batch"]
        assert "post" in paths["/api/v1/geocode/nearby"]
        assert "get" in paths["/api/v1/geocode/cache"]

    def test_lifespan_opens_cache_and_builds_resolvers(self, settings) -> None:
        with patch("reseller_map.main.get_settings", return_value=settings):
            app = create_app()
            with TestClient(app) as client:
                assert isinstance(app.state.resolver, AddressResolver)
                assert isinstance(app.state.batch_resolver, BatchResolver)
                assert app.state.cache.durable is not None

                resp = client.get("/api/v1/geocode/cache")
                assert resp.status_code == 200
                assert resp.json()["entry_count"] == 0
        setup_logging("INFO")

    def test_lifespan_degrades_to_memory_cache(self, settings, tmp_path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        settings.cache_dir = str(blocker / "sub")

        with patch("reseller_map.main.get_settings", return_value=settings):
            app = create_app()
            with TestClient(app) as client:
                assert isinstance(app.state.resolver, AddressResolver)
                assert app.state.cache.durable is None

                resp = client.get("/api/v1/geocode/cache")
                assert resp.status_code == 200
                assert resp.json()["entry_count"] == 0
        setup_logging("INFO")

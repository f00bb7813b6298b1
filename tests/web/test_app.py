"""
Tests for the web server application wiring.
"""

import importlib

import pytest
from fastapi.testclient import TestClient

from shared.review_sentiment.config import get_cached_settings
from web.server.api import claims, places


@pytest.fixture
def main_module(tmp_path, monkeypatch):
    """Import the server module with logs, claims and keys pointed at test values."""
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("REVIEW_SENTIMENT_CLAIMS_DB_PATH", str(tmp_path / "claims.db"))
    monkeypatch.setenv("REVIEW_SENTIMENT_USE_MOCK_LLM", "true")
    for name in ("REVIEW_SENTIMENT_PLACES_API_KEY", "GOOGLE_PLACES_API_KEY", "NEXT_PUBLIC_GOOGLE_PLACES_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    get_cached_settings.cache_clear()
    module = importlib.import_module("web.server.main")
    yield module
    get_cached_settings.cache_clear()
    places.set_service(None)
    claims.set_claim_store(None)


@pytest.mark.integration
class TestApp:
    """Tests for startup and health."""

    def test_health(self, main_module):
        with TestClient(main_module.app) as client:
            response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_startup_without_places_key(self, main_module):
        with TestClient(main_module.app) as client:
            health = client.get("/api/health").json()
            search = client.get("/api/places", params={"q": "cafe"})
            claimed = client.get("/api/places/claimed", headers={"X-User-Id": "user-1"})

        assert health["service_configured"] is False
        assert search.status_code == 500
        assert search.json() == {"error": "API key is not configured"}
        assert claimed.status_code == 200

    def test_startup_with_keys(self, main_module, monkeypatch):
        monkeypatch.setenv("REVIEW_SENTIMENT_PLACES_API_KEY", "test-key")
        get_cached_settings.cache_clear()

        with TestClient(main_module.app) as client:
            health = client.get("/api/health").json()

        assert health["service_configured"] is True

    def test_security_headers(self, main_module):
        with TestClient(main_module.app) as client:
            response = client.get("/api/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"

"""
Tests for the Suggestion Service endpoints.
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient

from service_suggest.app.domain.models import Suggestion
from conftest import entity_payload, error_payload, suggestion_payload


ONE_DAY = "public, max-age=86400"


def _async_client(service) -> httpx.AsyncClient:
    """Client that runs the app on the test's own event loop."""
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=service.app), base_url="http://test")


class TestRequestValidation:
    """Test cases for request and configuration validation."""

    @pytest.fixture
    def client(self, suggest_service):
        return TestClient(suggest_service.app)

    def test_missing_query(self, client, fake_api, app_id_env):
        """Requests without q are rejected before any upstream call."""
        response = client.get("/suggest")

        assert response.status_code == 400
        assert response.content == b""
        assert fake_api.requests == []

    def test_missing_credential(self, client, fake_api, monkeypatch):
        """An unset credential fails the request without network calls."""
        monkeypatch.delenv("BING_APP_ID", raising=False)

        response = client.get("/suggest", params={"q": "weather"})

        assert response.status_code == 500
        assert fake_api.requests == []

    def test_credential_read_per_request(self, client, fake_api, monkeypatch):
        """The credential is looked up at call time, not at startup."""
        monkeypatch.delenv("BING_APP_ID", raising=False)
        assert client.get("/suggest", params={"q": "weather"}).status_code == 500

        monkeypatch.setenv("BING_APP_ID", "rotated-id")
        response = client.get("/suggest", params={"q": "weather"})

        assert response.status_code == 200
        assert fake_api.calls("/suggestions")[0].url.params["appid"] == "rotated-id"


class TestSuggestEndpoint:
    """Test cases for GET /suggest."""

    @pytest.fixture
    def client(self, suggest_service):
        return TestClient(suggest_service.app)

    def test_plain_suggestions(self, client, fake_api, app_id_env):
        """Without enhance, upstream suggestions are returned unchanged and cacheable."""
        fake_api.suggestions = suggestion_payload(["red", "green", "blue"])

        response = client.get("/suggest", params={"q": "colo"})

        assert response.status_code == 200
        assert response.headers["cache-control"] == ONE_DAY
        assert response.json() == {
            "q": "colo",
            "suggestions": [
                {"type": "search", "title": title, "value": f"https://search.test/?q={title}"}
                for title in ["red", "green", "blue"]
            ],
        }
        assert fake_api.calls("/search") == []

    def test_enhance_other_values_skip_enrichment(self, client, fake_api, app_id_env):
        """Only the exact string "true" requests enrichment."""
        fake_api.suggestions = suggestion_payload(["red"])

        response = client.get("/suggest", params={"q": "r", "enhance": "1"})

        assert response.status_code == 200
        assert response.headers["cache-control"] == ONE_DAY
        assert fake_api.calls("/search") == []

    def test_empty_query_is_present(self, client, fake_api, app_id_env):
        """An empty q is forwarded rather than rejected."""
        response = client.get("/suggest?q=")

        assert response.status_code == 200
        assert response.json() == {"q": "", "suggestions": []}

    def test_rate_limited_suggestions(self, client, fake_api, app_id_env):
        """An upstream rate limit answers 429 and skips enrichment."""
        fake_api.suggestions = error_payload("RateLimitExceeded")

        response = client.get("/suggest", params={"q": "weather", "enhance": "true"})

        assert response.status_code == 429
        assert response.content == b""
        assert fake_api.calls("/search") == []

    def test_upstream_error_envelope(self, client, fake_api, app_id_env):
        """Other upstream error envelopes answer a status-only 500."""
        fake_api.suggestions = error_payload("InvalidAuthorization")

        response = client.get("/suggest", params={"q": "weather"})

        assert response.status_code == 500
        assert response.content == b""

    def test_unexpected_suggestion_shape(self, client, fake_api, app_id_env):
        """A suggestion body of the wrong shape answers a status-only 500."""
        fake_api.suggestions = {"unexpected": True}

        response = client.get("/suggest", params={"q": "weather"})

        assert response.status_code == 500
        assert response.content == b""

    def test_unclassified_error(self, client, suggest_service, app_id_env):
        """Unexpected exceptions always produce a 500."""
        with patch.object(
            suggest_service.bing_client,
            "fetch_suggestions",
            new=AsyncMock(side_effect=RuntimeError("boom")),
        ):
            response = client.get("/suggest", params={"q": "weather"})

        assert response.status_code == 500
        assert response.content == b""


class TestEnhancedSuggestions:
    """Test cases for GET /suggest?enhance=true."""

    @pytest.mark.asyncio
    async def test_all_cached(self, suggest_service, cache, fake_api, app_id_env):
        """Fully cached results are returned with the public cache header."""
        fake_api.suggestions = suggestion_payload(["Adele", "weather"])
        cache.set("Adele", Suggestion(
            type="entity",
            title="Adele",
            value="https://search.test/entity?q=Adele",
            entity_image="https://img.test/adele.jpg",
            subtitle2="Singer",
        ))
        cache.set("weather", Suggestion.search("weather", "https://search.test/?q=weather"))

        async with _async_client(suggest_service) as client:
            response = await client.get("/suggest", params={"q": "a", "enhance": "true"})

        assert response.status_code == 200
        assert response.headers["cache-control"] == ONE_DAY
        assert response.json()["suggestions"][0] == {
            "type": "entity",
            "title": "Adele",
            "value": "https://search.test/entity?q=Adele",
            "entityImage": "https://img.test/adele.jpg",
            "subtitle2": "Singer",
        }
        assert suggest_service.background.pending == 0
        assert fake_api.calls("/search") == []

    @pytest.mark.asyncio
    async def test_uncached_then_cached(self, suggest_service, fake_api, app_id_env):
        """Misses return raw suggestions now and cached enrichments next time."""
        titles = ["Adele", "adele songs", "weather"]
        fake_api.suggestions = suggestion_payload(titles)
        fake_api.entities["Adele"] = entity_payload("Adele")
        fake_api.entities["adele songs"] = entity_payload("Adele")

        async with _async_client(suggest_service) as client:
            first = await client.get("/suggest", params={"q": "adele", "enhance": "true"})

            assert first.status_code == 200
            assert "cache-control" not in first.headers
            assert [s["type"] for s in first.json()["suggestions"]] == ["search"] * 3

            await suggest_service.background.settle()
            assert len(fake_api.calls("/search")) == 3

            second = await client.get("/suggest", params={"q": "adele", "enhance": "true"})

        assert second.status_code == 200
        assert second.headers["cache-control"] == ONE_DAY
        body = second.json()["suggestions"]
        assert [s["type"] for s in body] == ["entity", "search", "search"]
        assert body[0]["entityImage"] == "https://img.test/thumb.jpg"
        assert body[1] == {
            "type": "search",
            "title": "adele songs",
            "value": "https://search.test/?q=adele songs",
        }
        assert len(fake_api.calls("/search")) == 3

    @pytest.mark.asyncio
    async def test_enrichment_rate_limit_does_not_fail_request(self, suggest_service, fake_api, app_id_env):
        """Entity API rate limits are logged in the background and the plain suggestion is cached."""
        fake_api.suggestions = suggestion_payload(["Adele"])
        fake_api.entities["Adele"] = error_payload("RateLimitExceeded")

        async with _async_client(suggest_service) as client:
            response = await client.get("/suggest", params={"q": "a", "enhance": "true"})
            await suggest_service.background.settle()

        assert response.status_code == 200
        assert response.json()["suggestions"][0]["type"] == "search"
        assert suggest_service.cache.get("Adele").to_wire() == response.json()["suggestions"][0]


class TestOperationalEndpoints:
    """Test cases for service endpoints."""

    @pytest.fixture
    def client(self, suggest_service):
        return TestClient(suggest_service.app)

    def test_root_endpoint(self, client):
        """Test root endpoint."""
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "suggest"

    def test_health_endpoint(self, client):
        """Test health endpoint."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "suggest"
        assert data["status"] == "ok"

    def test_request_id_header(self, client):
        """Request ids are echoed back."""
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["x-request-id"] == "req-123"

    def test_cache_stats(self, client, cache):
        """Cache stats expose footprint and threshold."""
        cache.set("red", Suggestion.search("red", "https://search.test/?q=red"))

        response = client.get("/cache/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["keys"] == 1
        assert data["ksize"] == 3
        assert data["max_size_mb"] == 128.0
        assert data["pending_enrichments"] == 0

    def test_metrics_endpoint(self, client, fake_api, app_id_env):
        """Prometheus metrics are exposed."""
        client.get("/suggest", params={"q": "weather"})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text
        assert "cache_hits_total" in response.text

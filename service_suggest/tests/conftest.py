"""
Shared fixtures for Suggestion Service tests.
"""

from typing import Any, Dict, List, Optional

import httpx
import pytest

from shared.config import get_config
from service_suggest.app.adapters.bing_client import BingClient
from service_suggest.app.caching.suggestion_cache import SuggestionCache
from service_suggest.app.domain.background import BackgroundTaskRunner
from service_suggest.app.main import SuggestService


API_URL = "https://api.test/v7"
APP_ID = "test-app-id"


def suggestion_payload(titles: List[str]) -> Dict[str, Any]:
    """Success envelope of the suggestions API."""
    return {
        "_type": "Suggestions",
        "suggestionGroups": [
            {
                "name": "Web",
                "searchSuggestions": [
                    {"displayText": title, "url": f"https://search.test/?q={title}"}
                    for title in titles
                ],
            }
        ],
    }


def entity_payload(
    name: str,
    scenario: str = "DominantEntity",
    thumbnail: Optional[str] = "https://img.test/thumb.jpg",
    hint: Optional[str] = "Musician",
) -> Dict[str, Any]:
    """Success envelope of the entity search API with one entity."""
    entity: Dict[str, Any] = {
        "name": name,
        "webSearchUrl": f"https://search.test/entity?q={name}",
        "entityPresentationInfo": {"entityScenario": scenario},
    }
    if thumbnail is not None:
        entity["image"] = {"thumbnailUrl": thumbnail}
    if hint is not None:
        entity["entityPresentationInfo"]["entityTypeDisplayHint"] = hint
    return {"_type": "SearchResponse", "entities": {"value": [entity]}}


def error_payload(code: str) -> Dict[str, Any]:
    """Error envelope shared by both upstream APIs."""
    return {"_type": "ErrorResponse", "errors": [{"code": code, "message": code}]}


class FakeSearchApi:
    """Upstream stand-in serving canned payloads and recording requests."""

    def __init__(self):
        self.suggestions: Any = suggestion_payload([])
        self.entities: Dict[str, Any] = {}
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/suggestions"):
            return httpx.Response(200, json=self.suggestions)
        if request.url.path.endswith("/search"):
            title = request.url.params["q"]
            payload = self.entities.get(title, {"_type": "SearchResponse"})
            return httpx.Response(200, json=payload)
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(path)]


@pytest.fixture
def fake_api():
    """Fake upstream search API."""
    return FakeSearchApi()


@pytest.fixture
def bing_client(fake_api):
    """BingClient wired to the fake upstream."""
    return BingClient(API_URL, transport=fake_api.transport)


@pytest.fixture
def cache():
    """Empty suggestion cache."""
    return SuggestionCache(ttl_seconds=3600)


@pytest.fixture
def runner():
    """Background task runner."""
    return BackgroundTaskRunner()


@pytest.fixture
def app_id_env(monkeypatch):
    """Configure the upstream credential."""
    monkeypatch.setenv("BING_APP_ID", APP_ID)
    return APP_ID


@pytest.fixture
def suggest_service(fake_api, cache):
    """Suggestion service wired to the fake upstream and a test cache."""
    config = get_config("suggest", 8000, bing_api_url=API_URL)
    return SuggestService(config, cache=cache, transport=fake_api.transport)

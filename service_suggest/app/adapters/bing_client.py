"""
Search API client for the suggestion service.
"""

from typing import Any, Dict, List, Optional
import httpx

from shared.logging import get_logger
from shared.errors import RateLimitError, UpstreamErrorEnvelope, UpstreamResponseError
from ..domain.models import Suggestion
from .envelopes import (
    EntityEnvelope,
    ErrorEnvelope,
    decode_entity_payload,
    decode_suggestion_payload,
)


class BingClient:
    """Client for the upstream suggestion and entity search APIs."""

    def __init__(
        self,
        api_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = api_url.rstrip('/')
        self.timeout = timeout
        self.transport = transport
        self.logger = get_logger("suggest.bing_client")

    async def fetch_suggestions(self, query: str, app_id: str) -> List[Suggestion]:
        """Fetch search suggestions for a free-text query, in upstream order."""
        payload = await self._get_json(
            "/suggestions",
            {"appid": app_id, "q": query},
            service="suggestions_api",
        )
        envelope = decode_suggestion_payload(payload)

        if isinstance(envelope, ErrorEnvelope):
            self._raise_for_error(envelope, "suggestions_api", "Suggestion API rate limit exceeded")

        suggestions = [
            Suggestion.search(raw.display_text, raw.url)
            for raw in envelope.raw_suggestions()
        ]
        self.logger.debug("Suggestions retrieved", query=query, count=len(suggestions))
        return suggestions

    async def fetch_entity(self, title: str, app_id: str) -> EntityEnvelope:
        """Look up entity metadata for a suggestion title."""
        payload = await self._get_json(
            "/search",
            {"appid": app_id, "q": title, "responseFilter": "entities", "count": 1},
            service="entity_api",
        )
        envelope = decode_entity_payload(payload)

        if isinstance(envelope, ErrorEnvelope):
            self._raise_for_error(envelope, "entity_api", "Entity search API rate limit exceeded")

        return envelope

    async def _get_json(self, path: str, params: Dict[str, Any], service: str) -> Any:
        """Issue a GET request and parse the JSON body."""
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            self.logger.error("Upstream request failed", service=service, url=url, error=str(exc))
            raise UpstreamResponseError(
                service=service,
                message=str(exc),
                details={"url": url}
            ) from exc

        try:
            return response.json()
        except ValueError as exc:
            self.logger.error(
                "Upstream returned a non-JSON body",
                service=service,
                url=url,
                status_code=response.status_code,
            )
            raise UpstreamResponseError(
                service=service,
                message="Response body is not valid JSON",
                details={"status_code": response.status_code}
            ) from exc

    def _raise_for_error(self, envelope: ErrorEnvelope, service: str, rate_limit_message: str):
        if envelope.is_rate_limited:
            raise RateLimitError(rate_limit_message, details={"service": service})

        self.logger.error("Upstream error response", service=service, code=envelope.code)
        raise UpstreamErrorEnvelope(service, envelope.code)

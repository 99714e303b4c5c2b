"""
Suggestion service for the Search Suggestion Proxy.
"""

import os
from typing import Optional

import httpx
from fastapi import Query, Response
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import ConfigurationError, SuggestProxyException, ValidationError
from .adapters.bing_client import BingClient
from .caching.maintenance import CacheMaintenanceTask
from .caching.suggestion_cache import SuggestionCache
from .domain.background import BackgroundTaskRunner
from .domain.enrichment import EnrichmentMerger
from .domain.models import SuggestResponse


APP_ID_ENV = "BING_APP_ID"


class SuggestService(BaseService):
    """Suggestion proxy service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        cache: Optional[SuggestionCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__("suggest", 8000, config=config)
        if cache is None:
            cache = SuggestionCache(
                ttl_seconds=self.config.cache_ttl_seconds,
                maxsize=self.config.cache_max_entries,
            )
        self.cache = cache
        self.bing_client = BingClient(
            self.config.bing_api_url,
            timeout=self.config.bing_timeout_seconds,
            transport=transport,
        )
        self.background = BackgroundTaskRunner()
        self.enrichment_merger = EnrichmentMerger(
            self.bing_client,
            self.cache,
            self.background,
            metrics=self.metrics,
        )
        self.cache_maintenance = CacheMaintenanceTask(
            self.cache,
            max_size_mb=self.config.cache_max_size_mb,
            run_at_hour=self.config.cache_maintenance_hour,
            metrics=self.metrics,
        )

        @self.app.on_event("startup")
        async def _startup():
            await self.cache_maintenance.start()

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.cache_maintenance.stop()
            await self.background.close()

        self._setup_suggest_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.suggest_service = self

    def _cache_control(self) -> str:
        return f"public, max-age={self.config.suggest_cache_max_age}"

    async def suggest(self, q: Optional[str], enhance: Optional[str]) -> Response:
        """Fetch suggestions for ``q`` and optionally merge cached enrichments."""
        try:
            if q is None:
                raise ValidationError('Missing query parameter "q"')

            # Credential is read per request, never cached
            app_id = os.getenv(APP_ID_ENV)
            if app_id is None:
                raise ConfigurationError(f"Missing {APP_ID_ENV} environment variable")

            suggestions = await self.bing_client.fetch_suggestions(q, app_id)
            fully_enhanced = True

            if enhance == "true":
                merged = self.enrichment_merger.merge(suggestions, app_id)
                suggestions = merged.suggestions
                fully_enhanced = merged.fully_enhanced

            body = SuggestResponse(q=q, suggestions=[s.to_wire() for s in suggestions])
            response = JSONResponse(content=body.model_dump())
            if fully_enhanced:
                response.headers["Cache-Control"] = self._cache_control()
            return response

        except SuggestProxyException as exc:
            self.logger.error(
                "Suggestion request failed",
                code=exc.code,
                message=exc.message,
                status_code=exc.status_code,
            )
            self.metrics.record_error(exc.code)
            return Response(status_code=exc.status_code)
        except Exception as exc:
            self.logger.error("Unhandled suggestion error", error=str(exc), exc_info=exc)
            self.metrics.record_error("INTERNAL_ERROR")
            return Response(status_code=500)

    def _setup_suggest_routes(self):
        """Set up suggestion routes."""

        @self.app.get("/suggest")
        async def get_suggestions(
            q: Optional[str] = Query(None, description="Free-text query"),
            enhance: Optional[str] = Query(None, description='"true" to merge entity enrichments'),
        ):
            """Return upstream suggestions, enriched from cache when requested."""
            return await self.suggest(q, enhance)

        @self.app.get("/cache/stats")
        async def get_cache_stats():
            """Current suggestion cache counters and estimated footprint."""
            stats = self.cache.stats()
            return {
                "service": self.service_name,
                "max_size_mb": self.cache_maintenance.max_size_mb,
                "pending_enrichments": self.background.pending,
                **stats.to_dict(),
            }

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": self.service_name,
                "message": "Search Suggestion Proxy",
                "version": "1.0.0"
            }


def create_app():
    """Create FastAPI application."""
    service = SuggestService()
    return service.app


if __name__ == "__main__":
    service = SuggestService()
    service.run()

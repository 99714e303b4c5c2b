"""
Merge of fetched suggestions with cached entity enrichments.
"""

from typing import List, Optional, TYPE_CHECKING

from shared.logging import get_logger
from shared.errors import RateLimitError, UpstreamErrorEnvelope
from .background import BackgroundTaskRunner
from .models import EnrichmentResult, Suggestion, SuggestionType

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..adapters.bing_client import BingClient
    from ..adapters.envelopes import EntityEnvelope
    from ..caching.suggestion_cache import SuggestionCache
    from shared.metrics import MetricsCollector


CACHE_TYPE = "suggestions"


def build_enriched_suggestion(suggestion: Suggestion, envelope: "EntityEnvelope") -> Suggestion:
    """Entity form of ``suggestion`` when upstream has a matching dominant entity.

    Falls back to the plain suggestion so that mismatches are cached too and
    not looked up again.
    """
    entity = envelope.dominant_entity()
    if entity is None or entity.name.lower() != suggestion.title.lower():
        return suggestion

    return Suggestion(
        type=SuggestionType.ENTITY,
        title=entity.name,
        value=entity.web_search_url,
        entity_image=entity.image.thumbnail_url if entity.image else None,
        subtitle2=entity.entity_presentation_info.entity_type_display_hint,
    )


class EnrichmentMerger:
    """Serves cached enrichments and fills the cache in the background."""

    def __init__(
        self,
        client: "BingClient",
        cache: "SuggestionCache",
        runner: BackgroundTaskRunner,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.client = client
        self.cache = cache
        self.runner = runner
        self.metrics = metrics
        self.logger = get_logger("suggest.enrichment")

    def merge(self, suggestions: List[Suggestion], app_id: str) -> EnrichmentResult:
        """Replace each suggestion with its cached enrichment where one exists.

        Every miss schedules an enrichment lookup that writes the cache once it
        resolves; the returned result never waits for those lookups.
        """
        results: List[Suggestion] = []
        fully_enhanced = True

        for suggestion in suggestions:
            cached = self.cache.get(suggestion.title)
            if cached is not None:
                self._count("cache_hits_total")
                results.append(cached)
                continue

            self._count("cache_misses_total")
            fully_enhanced = False
            results.append(suggestion)
            self.runner.schedule(
                self.enrich(suggestion, app_id),
                name=f"enrich:{suggestion.title}",
            )

        self.logger.debug(
            "Suggestions merged with cache",
            total=len(suggestions),
            fully_enhanced=fully_enhanced,
        )
        return EnrichmentResult(suggestions=results, fully_enhanced=fully_enhanced)

    async def enrich(self, suggestion: Suggestion, app_id: str) -> Optional[Suggestion]:
        """Look up entity data for one suggestion and cache the result.

        Upstream error envelopes, rate limits included, are logged and the plain
        suggestion is cached. Transport and decode failures leave the cache
        untouched. Returns the cached value, or None when nothing was written.
        """
        try:
            envelope = await self.client.fetch_entity(suggestion.title, app_id)
        except RateLimitError:
            self.logger.warning("Entity search rate limit exceeded", title=suggestion.title)
            self._record_outcome("rate_limited")
            return self._store(suggestion.title, suggestion)
        except UpstreamErrorEnvelope as exc:
            self.logger.error("Entity search error response", title=suggestion.title, code=exc.error_code)
            self._record_outcome("upstream_error")
            return self._store(suggestion.title, suggestion)
        except Exception as exc:
            self.logger.error("Entity enrichment failed", title=suggestion.title, error=str(exc))
            self._record_outcome("error")
            return None

        result = build_enriched_suggestion(suggestion, envelope)
        self._record_outcome("enriched" if result.type == SuggestionType.ENTITY else "plain")
        return self._store(suggestion.title, result)

    def _store(self, title: str, value: Suggestion) -> Suggestion:
        self.cache.set(title, value)
        return value

    def _count(self, metric_name: str):
        if self.metrics:
            self.metrics.increment_counter(metric_name, cache_type=CACHE_TYPE)

    def _record_outcome(self, outcome: str):
        if self.metrics:
            self.metrics.increment_counter("enrichment_requests_total", outcome=outcome)

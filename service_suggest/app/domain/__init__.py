"""
Domain helpers for the Suggestion Service: suggestion models, the
enrichment merger and background task tracking.
"""

from .models import EnrichmentResult, Suggestion, SuggestionType, SuggestResponse
from .background import BackgroundTaskRunner
from .enrichment import EnrichmentMerger, build_enriched_suggestion

__all__ = [
    "EnrichmentResult",
    "Suggestion",
    "SuggestionType",
    "SuggestResponse",
    "BackgroundTaskRunner",
    "EnrichmentMerger",
    "build_enriched_suggestion",
]

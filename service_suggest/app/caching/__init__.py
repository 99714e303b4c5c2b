"""
Suggestion caching package.

Holds the title-keyed suggestion cache and the daily job that flushes it
when it grows too large. Entries are re-derivable from upstream, so the
cache favours simplicity over consistency.
"""

from .suggestion_cache import CacheStats, SuggestionCache
from .maintenance import CacheMaintenanceTask

__all__ = ["CacheStats", "SuggestionCache", "CacheMaintenanceTask"]

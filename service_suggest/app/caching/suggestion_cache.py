"""
In-process expiring cache of enriched suggestions.
"""

import json
import sys
import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Tuple

from cachetools import TLRUCache

from shared.logging import get_logger
from ..domain.models import Suggestion


BYTES_PER_MEGABYTE = 1_000_000


@dataclass
class CacheStats:
    """Snapshot of cache counters and estimated footprint."""
    keys: int
    hits: int
    misses: int
    ksize: int
    vsize: int

    @property
    def size_mb(self) -> float:
        return (self.ksize + self.vsize) / BYTES_PER_MEGABYTE

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["size_mb"] = self.size_mb
        return data


def _time_to_use(key: str, entry: Tuple[Suggestion, float], now: float) -> float:
    return now + entry[1]


class SuggestionCache:
    """Title-keyed cache of suggestions with a default expiry.

    Each entry stores its own lifetime so ``set`` can override the default
    per key. Concurrent writers are not coordinated: the last write for a
    title wins.
    """

    def __init__(self, ttl_seconds: int = 86400, maxsize: int = sys.maxsize, timer=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.logger = get_logger("suggest.cache")
        self._store: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_time_to_use, timer=timer)
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Suggestion]:
        """Return the cached suggestion for ``key`` or ``None``."""
        entry = self._store.get(key)
        if entry is None:
            self._misses += 1
            return None

        self._hits += 1
        return entry[0]

    def set(self, key: str, value: Suggestion, ttl: Optional[float] = None) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds (default expiry when omitted)."""
        lifetime = self.ttl_seconds if ttl is None else ttl
        self._store[key] = (value, lifetime)
        self.logger.debug("Cached suggestion", key=key, type=value.type, ttl=lifetime)

    def stats(self) -> CacheStats:
        """Counters plus key and value size accounting for live entries."""
        self._store.expire()
        ksize = 0
        vsize = 0
        for key, (value, _) in list(self._store.items()):
            ksize += len(key.encode("utf-8"))
            vsize += len(json.dumps(value.to_wire()).encode("utf-8"))

        return CacheStats(
            keys=len(self._store),
            hits=self._hits,
            misses=self._misses,
            ksize=ksize,
            vsize=vsize,
        )

    def clear(self) -> int:
        """Drop every entry. Returns how many entries were removed."""
        removed = len(self._store)
        self._store.clear()
        self.logger.info("Cache cleared", removed=removed)
        return removed

    def __len__(self) -> int:
        return len(self._store)

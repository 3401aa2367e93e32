"""
Response Cache - In-memory TTL cache keyed by request identity.

Freshness is checked lazily on lookup; nothing is evicted in the background
and an expired entry is simply replaced by the next store for its key.
"""

import logging
import time
from typing import Any, Callable, Optional, Union

from prtg_adapters.models import CacheEntry


logger = logging.getLogger(__name__)

CacheKey = Union[int, str]

# Returned by lookup on a miss when the caller needs to tell it apart from a
# cached None
MISSING = object()


def java_string_hash(value: str) -> int:
    """
    32-bit signed string hash, ``h = (h << 5) - h + code`` per character.

    Deterministic and non-cryptographic; different strings can collide.
    """
    result = 0
    for char in value:
        result = ((result << 5) - result + ord(char)) & 0xFFFFFFFF
    if result & 0x80000000:
        result -= 0x100000000
    return result


class ResponseCache:
    """
    TTL cache for normalized PRTG responses.

    By default entries are keyed by the literal request identity. With
    ``legacy_hash_keys`` they are keyed by ``java_string_hash`` of it instead,
    which matches keys produced by older PRTG dashboard caches, collisions included.
    """

    DEFAULT_TTL_MINUTES = 5

    def __init__(
        self,
        ttl_minutes: float = DEFAULT_TTL_MINUTES,
        legacy_hash_keys: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl_seconds = ttl_minutes * 60
        self._legacy_hash_keys = legacy_hash_keys
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def key_for(self, identity: str) -> CacheKey:
        """Derive the cache key for a request identity."""
        if self._legacy_hash_keys:
            return java_string_hash(identity)
        return identity

    def is_fresh(self, key: CacheKey) -> bool:
        """True if an entry exists and is no older than the TTL."""
        entry = self._entries.get(key)
        if entry is None:
            return False
        return entry.age_seconds(self._clock()) <= self._ttl_seconds

    def lookup(self, key: CacheKey, default: Any = None) -> Optional[Any]:
        """Return the cached value if fresh, else ``default``. Counts the hit or miss."""
        if not self.is_fresh(key):
            self._misses += 1
            return default
        entry = self._entries[key]
        entry.hits += 1
        self._hits += 1
        return entry.value

    def store(self, key: CacheKey, value: Any) -> Any:
        """Store (or overwrite) a value and return it."""
        self._entries[key] = CacheEntry(key=key, value=value, stored_at=self._clock())
        return value

    def clear(self) -> None:
        """Clear all cache entries."""
        self._entries.clear()
        logger.info("[cache] Cache cleared")

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        total_requests = self._hits + self._misses
        hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0

        return {
            "entries": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate_percent": round(hit_rate, 2),
            "ttl_seconds": self._ttl_seconds,
        }

    def __len__(self) -> int:
        return len(self._entries)

import time
import datetime
from typing import Any, Callable, Dict, Hashable, Optional, Tuple


class TtlCache:
    """
    In-memory Time-to-Live cache for upstream API responses (battle logs,
    owned cards), with hit/miss statistics.
    """
    def __init__(self, ttl_seconds: int = 120):
        self.ttl = ttl_seconds
        self.cache: Dict[Hashable, Tuple[Any, float]] = {}
        self.hits = 0
        self.misses = 0
        self.last_cleanup: Optional[str] = None

    def set(self, key: Hashable, value: Any):
        self.cache[key] = (value, time.monotonic() + self.ttl)

    def get(self, key: Hashable) -> Optional[Any]:
        """Returns the cached value, or None if absent or expired."""
        item = self.cache.get(key)
        if item is None:
            self.misses += 1
            return None

        value, expires_at = item
        if time.monotonic() > expires_at:
            self.cache.pop(key, None)
            self.misses += 1
            return None

        self.hits += 1
        return value

    def get_or_set(self, key: Hashable, factory: Callable[[], Any]) -> Any:
        """Returns the cached value, computing and storing it on a miss.

        Exceptions from `factory` propagate and nothing is cached.
        """
        value = self.get(key)
        if value is None:
            value = factory()
            self.set(key, value)
        return value

    def clear_expired(self) -> int:
        """Removes expired entries and returns how many were removed."""
        now = time.monotonic()
        expired_keys = [key for key, (_, expires_at) in self.cache.items() if now > expires_at]
        for key in expired_keys:
            self.cache.pop(key, None)
        if expired_keys:
            self.last_cleanup = datetime.datetime.now().isoformat()
        return len(expired_keys)

    def get_stats(self) -> Dict[str, Any]:
        expired_count = self.clear_expired()
        total_requests = self.hits + self.misses
        hit_rate = (self.hits / total_requests) * 100 if total_requests > 0 else 0.0
        return {
            "hits": self.hits,
            "misses": self.misses,
            "total_requests": total_requests,
            "hit_rate": hit_rate,
            "current_items": len(self.cache),
            "expired_items_cleared": expired_count,
            "last_cleanup": self.last_cleanup,
        }

"""
Short-lived query cache

Screens poll the kitchen and order lists every few seconds; caching the
reads for a few seconds keeps several open tablets from hammering the
database. Realtime change events drop the affected keys early.
"""
import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from .config import settings


class QueryCache:
    """
    In-memory TTL cache keyed by tuples whose first element is the query name

    Request threads and the realtime listener share one instance, so every
    access to the entries goes through a lock.

    Example:
        cache.get_or_load(("kitchen-items", None), load_items)
        cache.invalidate("kitchen-items")   # drops every ("kitchen-items", ...) key
    """

    def __init__(self, ttl_seconds: float = 4.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # {key: (stored_at, value)}
        self._entries: Dict[Tuple[Hashable, ...], Tuple[float, Any]] = {}

    def get(self, key: Tuple[Hashable, ...]) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            stored_at, value = entry
            if self._clock() - stored_at > self.ttl_seconds:
                del self._entries[key]
                return None
            return value

    def set(self, key: Tuple[Hashable, ...], value: Any) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), value)

    def get_or_load(self, key: Tuple[Hashable, ...], loader: Callable[[], Any]) -> Any:
        """Return the cached value or call loader and store its result"""
        value = self.get(key)
        if value is None:
            # Loader runs unlocked; a concurrent miss may load twice
            value = loader()
            self.set(key, value)
        return value

    def invalidate(self, name: str) -> int:
        """Drop every key whose query name matches. Returns how many were dropped."""
        with self._lock:
            doomed = [key for key in list(self._entries) if key and key[0] == name]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


# Global cache instance shared by services and the realtime listener
query_cache = QueryCache(ttl_seconds=settings.CACHE_TTL_SECONDS)

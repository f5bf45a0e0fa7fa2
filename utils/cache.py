"""
In-process response cache with a per-entry time-to-live.

Expiry is passive: an entry is checked when it is read, and an expired entry
is dropped on that read. Nothing is shared between processes.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class ResponseCache:
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def _lookup(self, key: str):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return _MISSING
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                logger.debug("cache expired: %s", key)
                return _MISSING
            return entry.value

    def get(self, key: str, default=None):
        value = self._lookup(key)
        return default if value is _MISSING else value

    def __contains__(self, key: str) -> bool:
        return self._lookup(key) is not _MISSING

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store value; overwriting a key restarts its TTL window."""
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def get_or_fetch(self, key: str, ttl: float, fetch: Callable[[], Any]) -> Any:
        """
        Return the cached value for key, or call fetch() and cache its result.
        Concurrent misses may each call fetch(). If fetch() raises, nothing is cached.
        """
        value = self._lookup(key)
        if value is not _MISSING:
            logger.debug("cache hit: %s", key)
            return value
        logger.debug("cache miss: %s", key)
        value = fetch()
        self.set(key, value, ttl)
        return value

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        with self._lock:
            n = len(self._entries)
            self._entries.clear()
            return n

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

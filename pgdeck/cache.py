"""Time-bounded memoization for metadata lookups."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

DEFAULT_TTL = 30.0


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A cached value and the clock reading at which it was stored."""

    value: Any
    created_at: float


class ResultCache:
    """Key/value store whose entries expire ``ttl`` seconds after being set.

    Stale entries are evicted lazily on the next ``get``. There is no per-key
    invalidation: schema changes call ``invalidate_all``.
    """

    def __init__(self, ttl: float = DEFAULT_TTL, *, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: str, default: Any = None) -> Any:
        """Return the fresh value for ``key`` or ``default``."""

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if self._is_fresh(entry):
                return entry.value
            del self._entries[key]
            return default

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""

        with self._lock:
            self._entries[key] = CacheEntry(value=value, created_at=self._clock())

    def invalidate_all(self) -> None:
        """Drop every entry."""

        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._entries.get(key)  # type: ignore[arg-type]
            return entry is not None and self._is_fresh(entry)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.created_at < self._ttl


__all__ = ["CacheEntry", "DEFAULT_TTL", "ResultCache"]

"""Time-bounded cache for raw upstream result sets, keyed by sport."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol, Sequence

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


class _Miss:
    _instance: "_Miss | None" = None

    def __new__(cls) -> "_Miss":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "CACHE_MISS"


CACHE_MISS = _Miss()


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: tuple[Any, ...]
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        return now <= self.expires_at


class ResultCache(Protocol):
    def get(self, key: str) -> tuple[Any, ...] | _Miss: ...

    def set(self, key: str, payload: Sequence[Any], ttl_seconds: float) -> None: ...


class MemoryResultCache:
    """In-process ResultCache.

    Entries are replaced wholesale on set and only ever expire; concurrent
    writers to the same key resolve as last-writer-wins.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> tuple[Any, ...] | _Miss:
        entry = self._entries.get(key)
        if entry is None:
            return CACHE_MISS
        if not entry.is_fresh(self._clock()):
            with self._lock:
                if self._entries.get(key) is entry:
                    del self._entries[key]
            logger.debug("Cache entry expired key=%s", key)
            return CACHE_MISS
        return entry.payload

    def set(self, key: str, payload: Sequence[Any], ttl_seconds: float) -> None:
        entry = CacheEntry(
            key=key,
            payload=tuple(payload),
            expires_at=self._clock() + ttl_seconds,
        )
        with self._lock:
            self._entries[key] = entry
        logger.debug("Cached %s records key=%s ttl=%ss", len(entry.payload), key, ttl_seconds)

    def stats(self) -> dict[str, int]:
        now = self._clock()
        entries = list(self._entries.values())
        return {
            "entries": len(entries),
            "fresh": sum(1 for entry in entries if entry.is_fresh(now)),
        }


def cache_get(cache: ResultCache | None, key: str) -> tuple[Any, ...] | _Miss:
    """Read through a cache that may be absent or broken; both read as a miss."""
    if cache is None:
        return CACHE_MISS
    try:
        return cache.get(key)
    except Exception:
        logger.warning("Cache read failed key=%s; treating as miss", key, exc_info=True)
        return CACHE_MISS


def cache_set(cache: ResultCache | None, key: str, payload: Sequence[Any], ttl_seconds: float) -> None:
    if cache is None:
        return
    try:
        cache.set(key, payload, ttl_seconds)
    except Exception:
        logger.warning("Cache write failed key=%s", key, exc_info=True)

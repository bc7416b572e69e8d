from __future__ import annotations

from collections.abc import Callable, Hashable
from dataclasses import dataclass
from time import monotonic
from typing import Any

MIN_TTL_SECONDS = 1
MAX_TTL_SECONDS = 3600


def clamp_ttl_seconds(value: int) -> int:
    return max(MIN_TTL_SECONDS, min(MAX_TTL_SECONDS, int(value)))


@dataclass(slots=True)
class _CacheEntry:
    expires_at_mono: float
    value: Any


@dataclass(slots=True)
class CacheStats:
    hits: int = 0
    misses: int = 0
    keys: int = 0


class TtlCache:
    """In-process key/value map whose entries expire ``ttl_seconds`` after being set.

    Expired entries are dropped when touched, and writes sweep the whole map at
    most once per TTL period. ``invalidate`` removes entries immediately.
    """

    def __init__(self, *, ttl_seconds: int, clock: Callable[[], float] = monotonic) -> None:
        self.ttl_seconds = clamp_ttl_seconds(ttl_seconds)
        self._clock = clock
        self._entries: dict[Hashable, _CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._next_sweep_at = 0.0

    def _live_entry(self, key: Hashable) -> _CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at_mono:
            self._entries.pop(key, None)
            return None
        return entry

    def get(self, key: Hashable) -> Any | None:
        entry = self._live_entry(key)
        if entry is None:
            self._misses += 1
            return None
        self._hits += 1
        return entry.value

    def _sweep_expired(self, now: float) -> None:
        if now < self._next_sweep_at:
            return
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at_mono]
        for key in expired:
            del self._entries[key]
        self._next_sweep_at = now + self.ttl_seconds

    def set(self, key: Hashable, value: Any) -> None:
        now = self._clock()
        self._sweep_expired(now)
        self._entries[key] = _CacheEntry(
            expires_at_mono=now + self.ttl_seconds,
            value=value,
        )

    def set_if_absent(self, key: Hashable, value: Any) -> Any:
        """Store ``value`` unless a live entry exists; return whichever is cached."""
        entry = self._live_entry(key)
        if entry is not None:
            return entry.value
        self.set(key, value)
        return value

    def invalidate(self, key: Hashable | None = None) -> None:
        if key is None:
            self._entries.clear()
            return
        self._entries.pop(key, None)

    def stats(self) -> CacheStats:
        return CacheStats(hits=self._hits, misses=self._misses, keys=len(self._entries))

from __future__ import annotations

import asyncio
from collections.abc import Callable, Hashable
from enum import Enum
from time import monotonic
from typing import Any

from brainbolt.core.config import Settings
from brainbolt.game.cache.ttl_cache import CacheStats, TtlCache


class CacheNamespace(str, Enum):
    USER_STATE = "user_state"
    QUESTION_POOL = "question_pool"
    LEADERBOARD = "leaderboard"
    METRICS = "metrics"
    IDEMPOTENCY = "idempotency"


DEFAULT_TTL_SECONDS: dict[CacheNamespace, int] = {
    CacheNamespace.USER_STATE: 30,
    CacheNamespace.QUESTION_POOL: 300,
    CacheNamespace.LEADERBOARD: 15,
    CacheNamespace.METRICS: 60,
    CacheNamespace.IDEMPOTENCY: 300,
}


class CacheLayer:
    """Independent TTL caches, one per namespace.

    Caches only short-cut reads: every value can be recomputed from the store,
    so a miss is always safe.
    """

    def __init__(
        self,
        ttl_seconds: dict[CacheNamespace, int] | None = None,
        *,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        resolved = dict(DEFAULT_TTL_SECONDS)
        if ttl_seconds:
            resolved.update(ttl_seconds)
        self._caches = {
            namespace: TtlCache(ttl_seconds=resolved[namespace], clock=clock)
            for namespace in CacheNamespace
        }
        self.question_pool_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> CacheLayer:
        return cls(
            {
                CacheNamespace.USER_STATE: settings.cache_user_state_ttl_seconds,
                CacheNamespace.QUESTION_POOL: settings.cache_question_pool_ttl_seconds,
                CacheNamespace.LEADERBOARD: settings.cache_leaderboard_ttl_seconds,
                CacheNamespace.METRICS: settings.cache_metrics_ttl_seconds,
                CacheNamespace.IDEMPOTENCY: settings.cache_idempotency_ttl_seconds,
            }
        )

    def get(self, namespace: CacheNamespace, key: Hashable) -> Any | None:
        return self._caches[namespace].get(key)

    def set(self, namespace: CacheNamespace, key: Hashable, value: Any) -> None:
        self._caches[namespace].set(key, value)

    def set_if_absent(self, namespace: CacheNamespace, key: Hashable, value: Any) -> Any:
        return self._caches[namespace].set_if_absent(key, value)

    def invalidate(self, namespace: CacheNamespace, key: Hashable | None = None) -> None:
        self._caches[namespace].invalidate(key)

    def stats(self) -> dict[str, CacheStats]:
        return {namespace.value: cache.stats() for namespace, cache in self._caches.items()}

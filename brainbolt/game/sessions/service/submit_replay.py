from __future__ import annotations

from brainbolt.game.cache.layer import CacheLayer, CacheNamespace
from brainbolt.game.sessions.types import AnswerResult


def idempotency_cache_key(*, user_id: str, idempotency_key: str) -> tuple[str, str]:
    return (user_id, idempotency_key)


def find_replayed_answer(caches: CacheLayer, *, user_id: str, idempotency_key: str) -> AnswerResult | None:
    return caches.get(
        CacheNamespace.IDEMPOTENCY,
        idempotency_cache_key(user_id=user_id, idempotency_key=idempotency_key),
    )


def remember_answer(
    caches: CacheLayer,
    *,
    user_id: str,
    idempotency_key: str,
    result: AnswerResult,
) -> AnswerResult:
    """First writer wins; later writers get the stored result back."""
    return caches.set_if_absent(
        CacheNamespace.IDEMPOTENCY,
        idempotency_cache_key(user_id=user_id, idempotency_key=idempotency_key),
        result,
    )

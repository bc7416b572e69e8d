from __future__ import annotations

import asyncio

from brainbolt.game.cache.layer import CacheLayer, CacheNamespace
from brainbolt.game.sessions.store import QuizStore
from brainbolt.game.sessions.types import UserMetrics

from .constants import RECENT_PERFORMANCE_LIMIT

EMPTY_METRICS = UserMetrics(
    current_difficulty=1.0,
    streak=0,
    max_streak=0,
    total_score=0.0,
    accuracy=0.0,
    difficulty_histogram=(),
    recent_performance=(),
    total_answered=0,
    total_correct=0,
)


async def get_user_metrics(store: QuizStore, caches: CacheLayer, *, user_id: str) -> UserMetrics:
    cached = caches.get(CacheNamespace.METRICS, user_id)
    if cached is not None:
        return cached

    state = await store.get_user_state(user_id)
    if state is None:
        return EMPTY_METRICS

    answer_stats, histogram, recent_performance = await asyncio.gather(
        store.get_user_answer_stats(user_id),
        store.get_difficulty_histogram(user_id),
        store.get_recent_performance(user_id, RECENT_PERFORMANCE_LIMIT),
    )
    metrics = UserMetrics(
        current_difficulty=state.current_difficulty,
        streak=state.streak,
        max_streak=state.max_streak,
        total_score=state.total_score,
        accuracy=answer_stats.accuracy,
        difficulty_histogram=tuple(histogram),
        recent_performance=tuple(recent_performance),
        total_answered=answer_stats.total_answered,
        total_correct=answer_stats.total_correct,
    )
    caches.set(CacheNamespace.METRICS, user_id, metrics)
    return metrics

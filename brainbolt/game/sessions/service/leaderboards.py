from __future__ import annotations

from brainbolt.game.cache.layer import CacheLayer, CacheNamespace
from brainbolt.game.sessions.store import QuizStore
from brainbolt.game.sessions.types import LeaderboardKind, LeaderboardRow


async def get_leaderboard(
    store: QuizStore,
    caches: CacheLayer,
    *,
    kind: LeaderboardKind,
    limit: int,
) -> tuple[LeaderboardRow, ...]:
    cache_key = (kind.value, limit)
    cached = caches.get(CacheNamespace.LEADERBOARD, cache_key)
    if cached is not None:
        return cached

    if kind is LeaderboardKind.SCORE:
        rows = await store.get_score_leaderboard(limit)
    else:
        rows = await store.get_streak_leaderboard(limit)
    board = tuple(rows)
    caches.set(CacheNamespace.LEADERBOARD, cache_key, board)
    return board

from __future__ import annotations

from datetime import datetime, timedelta

import structlog

from brainbolt.game.cache.layer import CacheLayer, CacheNamespace
from brainbolt.game.sessions.store import QuizStore
from brainbolt.game.sessions.types import UserState
from brainbolt.game.streak.rules import compute_streak_decay

logger = structlog.get_logger(__name__)


def session_id_for(state: UserState) -> str:
    return f"{state.user_id}-{state.state_version}"


async def _read_user_state(store: QuizStore, caches: CacheLayer, *, user_id: str) -> UserState | None:
    cached = caches.get(CacheNamespace.USER_STATE, user_id)
    if cached is not None:
        return cached
    state = await store.get_user_state(user_id)
    if state is not None:
        caches.set(CacheNamespace.USER_STATE, user_id, state)
    return state


async def _apply_streak_decay(
    store: QuizStore,
    caches: CacheLayer,
    *,
    state: UserState,
    now_utc: datetime,
    decay_interval: timedelta,
) -> UserState:
    decay = compute_streak_decay(
        streak=state.streak,
        last_answer_at=state.last_answer_at,
        decay_anchor_at=state.decay_anchor_at,
        now_utc=now_utc,
        interval=decay_interval,
    )
    if decay is None:
        return state

    decayed = await store.upsert_user_state(
        state.user_id,
        {"streak": decay.streak, "decay_anchor_at": decay.decay_anchor_at},
        now_utc=now_utc,
        expected_version=state.state_version,
    )
    if decayed is None:
        # An answer landed after our read; its fresh state supersedes the decay.
        caches.invalidate(CacheNamespace.USER_STATE, state.user_id)
        decayed = await store.get_user_state(state.user_id)
        if decayed is None:
            return state
    else:
        logger.info(
            "quiz_streak_decayed",
            user_id=state.user_id,
            streak_before=state.streak,
            streak_after=decayed.streak,
            intervals=decay.intervals,
        )

    caches.set(CacheNamespace.USER_STATE, state.user_id, decayed)
    caches.invalidate(CacheNamespace.METRICS, state.user_id)
    return decayed


async def load_user_state(
    store: QuizStore,
    caches: CacheLayer,
    *,
    user_id: str,
    now_utc: datetime,
    decay_interval: timedelta,
) -> UserState | None:
    state = await _read_user_state(store, caches, user_id=user_id)
    if state is None:
        return None
    return await _apply_streak_decay(
        store,
        caches,
        state=state,
        now_utc=now_utc,
        decay_interval=decay_interval,
    )


async def load_or_create_user_state(
    store: QuizStore,
    caches: CacheLayer,
    *,
    user_id: str,
    now_utc: datetime,
    decay_interval: timedelta,
) -> UserState:
    state = await load_user_state(
        store,
        caches,
        user_id=user_id,
        now_utc=now_utc,
        decay_interval=decay_interval,
    )
    if state is not None:
        return state

    # Insert-only: a row created by a concurrent request is returned untouched.
    stored = await store.create_user_state_if_absent(user_id, now_utc=now_utc)
    logger.info("quiz_user_state_created", user_id=user_id, state_version=stored.state_version)
    caches.set(CacheNamespace.USER_STATE, user_id, stored)
    return await _apply_streak_decay(
        store,
        caches,
        state=stored,
        now_utc=now_utc,
        decay_interval=decay_interval,
    )

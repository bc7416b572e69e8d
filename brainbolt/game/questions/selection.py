from __future__ import annotations

import random
from collections.abc import Sequence

import structlog

from brainbolt.game.cache.layer import CacheLayer, CacheNamespace
from brainbolt.game.questions.types import Question
from brainbolt.game.scoring.rules import difficulty_bucket
from brainbolt.game.sessions.errors import NoQuestionsAvailableError
from brainbolt.game.sessions.store import QuizStore

logger = structlog.get_logger(__name__)


async def _load_pool(store: QuizStore, caches: CacheLayer, *, difficulty: int) -> tuple[Question, ...]:
    cached = caches.get(CacheNamespace.QUESTION_POOL, difficulty)
    if cached is not None:
        return cached

    async with caches.question_pool_lock:
        cached = caches.get(CacheNamespace.QUESTION_POOL, difficulty)
        if cached is not None:
            return cached

        pool = tuple(await store.get_questions_by_difficulty(difficulty))
        if pool:
            caches.set(CacheNamespace.QUESTION_POOL, difficulty, pool)
        logger.info("question_pool_loaded", difficulty=difficulty, pool_size=len(pool))
        return pool


def pick_from_pool(
    pool: Sequence[Question],
    *,
    exclude_question_id: str | None,
    rng: random.Random,
) -> Question | None:
    if not pool:
        return None
    candidates = list(pool)
    if exclude_question_id is not None and len(candidates) > 1:
        candidates = [question for question in candidates if question.question_id != exclude_question_id]
        if not candidates:
            candidates = list(pool)
    return rng.choice(candidates)


async def select_next_question(
    store: QuizStore,
    caches: CacheLayer,
    *,
    current_difficulty: float,
    last_question_id: str | None,
    rng: random.Random,
) -> Question:
    pool = await _load_pool(store, caches, difficulty=difficulty_bucket(current_difficulty))
    question = pick_from_pool(pool, exclude_question_id=last_question_id, rng=rng)
    if question is not None:
        return question

    question = await store.get_random_question(current_difficulty, last_question_id)
    if question is None:
        raise NoQuestionsAvailableError
    return question

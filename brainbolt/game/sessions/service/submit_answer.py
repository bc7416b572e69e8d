from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

import structlog

from brainbolt.game.cache.layer import CacheLayer, CacheNamespace
from brainbolt.game.integrity.answer_hash import find_correct_answer, verify_answer
from brainbolt.game.scoring.rules import momentum, next_difficulty, score_delta
from brainbolt.game.sessions.errors import (
    NotActiveSessionError,
    QuestionNotFoundError,
    SessionMismatchError,
    StaleStateVersionError,
    StateVersionConflictError,
)
from brainbolt.game.sessions.store import QuizStore
from brainbolt.game.sessions.types import AnswerLogEntry, AnswerResult, SubmitAnswerCommand

from .constants import RECENT_ANSWERS_LIMIT
from .state_loading import load_user_state, session_id_for
from .submit_replay import find_replayed_answer, remember_answer

logger = structlog.get_logger(__name__)


async def submit_answer(
    store: QuizStore,
    caches: CacheLayer,
    *,
    user_id: str,
    command: SubmitAnswerCommand,
    now_utc: datetime,
    decay_interval: timedelta,
    answer_secret: str,
) -> AnswerResult:
    replayed = find_replayed_answer(caches, user_id=user_id, idempotency_key=command.idempotency_key)
    if replayed is not None:
        logger.info("quiz_answer_replayed", user_id=user_id, idempotency_key=command.idempotency_key)
        return replayed

    state = await load_user_state(
        store,
        caches,
        user_id=user_id,
        now_utc=now_utc,
        decay_interval=decay_interval,
    )
    if state is None:
        raise NotActiveSessionError

    if session_id_for(state) != command.session_id:
        raise SessionMismatchError
    if state.state_version != command.state_version:
        raise StaleStateVersionError

    question = await store.get_question_by_id(command.question_id)
    if question is None:
        raise QuestionNotFoundError

    correct = verify_answer(command.answer, question.correct_answer_hash, secret=answer_secret)
    correct_answer = find_correct_answer(question.correct_answer_hash, secret=answer_secret)

    new_streak = state.streak + 1 if correct else 0
    new_max_streak = max(state.max_streak, new_streak)
    delta = score_delta(
        correct=correct,
        difficulty=question.difficulty,
        streak=new_streak if correct else state.streak,
    )
    new_total_score = max(0.0, state.total_score + delta)

    history = await store.get_recent_answers(user_id, RECENT_ANSWERS_LIMIT - 1)
    momentum_value = momentum([correct, *history])
    new_difficulty = next_difficulty(
        state.current_difficulty,
        correct=correct,
        post_answer_streak=new_streak,
        momentum_value=momentum_value,
    )

    await store.insert_answer_log(
        AnswerLogEntry(
            user_id=user_id,
            question_id=question.question_id,
            difficulty=question.difficulty,
            answer_index=command.answer,
            correct=correct,
            score_delta=delta,
            streak_at_answer=new_streak,
            answered_at=now_utc,
        )
    )

    updated_state = await store.atomic_update_user_state(
        user_id,
        state.state_version,
        {
            "current_difficulty": new_difficulty,
            "streak": new_streak,
            "max_streak": new_max_streak,
            "total_score": new_total_score,
            "last_question_id": question.question_id,
            "last_answer_at": now_utc,
            "decay_anchor_at": None,
        },
        now_utc=now_utc,
    )
    if updated_state is None:
        caches.invalidate(CacheNamespace.USER_STATE, user_id)
        logger.info(
            "quiz_answer_conflict",
            user_id=user_id,
            expected_version=state.state_version,
        )
        raise StateVersionConflictError

    await store.update_leaderboard(user_id, new_total_score, new_max_streak, now_utc=now_utc)
    caches.invalidate(CacheNamespace.USER_STATE, user_id)
    caches.invalidate(CacheNamespace.METRICS, user_id)
    caches.invalidate(CacheNamespace.LEADERBOARD)

    rank_score, rank_streak, answer_stats = await asyncio.gather(
        store.get_user_score_rank(user_id),
        store.get_user_streak_rank(user_id),
        store.get_user_answer_stats(user_id),
    )

    result = AnswerResult(
        correct=correct,
        correct_answer=correct_answer,
        new_difficulty=new_difficulty,
        new_streak=new_streak,
        score_delta=delta,
        total_score=new_total_score,
        state_version=updated_state.state_version,
        leaderboard_rank_score=rank_score,
        leaderboard_rank_streak=rank_streak,
        max_streak=new_max_streak,
        accuracy=answer_stats.accuracy,
    )
    logger.info(
        "quiz_answer_accepted",
        user_id=user_id,
        question_id=question.question_id,
        correct=correct,
        score_delta=delta,
        state_version=updated_state.state_version,
        new_difficulty=new_difficulty,
    )
    return remember_answer(
        caches,
        user_id=user_id,
        idempotency_key=command.idempotency_key,
        result=result,
    )

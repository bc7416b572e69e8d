from __future__ import annotations

import random
from datetime import datetime, timedelta

from brainbolt.game.cache.layer import CacheLayer
from brainbolt.game.questions.selection import select_next_question
from brainbolt.game.sessions.store import QuizStore
from brainbolt.game.sessions.types import NextQuestionResult

from .state_loading import load_or_create_user_state, session_id_for


async def fetch_next_question(
    store: QuizStore,
    caches: CacheLayer,
    *,
    user_id: str,
    now_utc: datetime,
    decay_interval: timedelta,
    rng: random.Random,
) -> NextQuestionResult:
    state = await load_or_create_user_state(
        store,
        caches,
        user_id=user_id,
        now_utc=now_utc,
        decay_interval=decay_interval,
    )
    question = await select_next_question(
        store,
        caches,
        current_difficulty=state.current_difficulty,
        last_question_id=state.last_question_id,
        rng=rng,
    )
    return NextQuestionResult(
        question_id=question.question_id,
        difficulty=question.difficulty,
        prompt=question.prompt,
        choices=question.choices,
        session_id=session_id_for(state),
        state_version=state.state_version,
        current_score=state.total_score,
        current_streak=state.streak,
        tags=question.tags,
        current_difficulty=state.current_difficulty,
        max_streak=state.max_streak,
    )

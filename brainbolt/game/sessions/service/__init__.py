from __future__ import annotations

import random
from collections.abc import Sequence
from datetime import datetime, timedelta

from brainbolt.game.cache.layer import CacheLayer
from brainbolt.game.questions.ingest import ingest_questions
from brainbolt.game.questions.types import QuestionDraft
from brainbolt.game.sessions.store import QuizStore
from brainbolt.game.sessions.types import (
    AnswerResult,
    LeaderboardKind,
    LeaderboardRow,
    NextQuestionResult,
    SubmitAnswerCommand,
    UserMetrics,
)

from .constants import DEFAULT_STREAK_DECAY_INTERVAL
from .leaderboards import get_leaderboard
from .metrics import get_user_metrics
from .next_question import fetch_next_question
from .submit_answer import submit_answer


class QuizSessionController:
    """Next-question / submit-answer protocol over durable per-user state.

    Holds no per-user state of its own: each call re-reads state through the
    cache layer and the only write that can conflict is the versioned
    compare-and-swap inside ``submit_answer``.
    """

    def __init__(
        self,
        *,
        store: QuizStore,
        caches: CacheLayer,
        answer_secret: str,
        decay_interval: timedelta = DEFAULT_STREAK_DECAY_INTERVAL,
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.caches = caches
        self._answer_secret = answer_secret
        self._decay_interval = decay_interval
        self._rng = rng or random.Random()

    async def next_question(self, *, user_id: str, now_utc: datetime) -> NextQuestionResult:
        return await fetch_next_question(
            self.store,
            self.caches,
            user_id=user_id,
            now_utc=now_utc,
            decay_interval=self._decay_interval,
            rng=self._rng,
        )

    async def submit_answer(
        self,
        *,
        user_id: str,
        command: SubmitAnswerCommand,
        now_utc: datetime,
    ) -> AnswerResult:
        return await submit_answer(
            self.store,
            self.caches,
            user_id=user_id,
            command=command,
            now_utc=now_utc,
            decay_interval=self._decay_interval,
            answer_secret=self._answer_secret,
        )

    async def metrics(self, *, user_id: str) -> UserMetrics:
        return await get_user_metrics(self.store, self.caches, user_id=user_id)

    async def leaderboard(self, *, kind: LeaderboardKind, limit: int) -> tuple[LeaderboardRow, ...]:
        return await get_leaderboard(self.store, self.caches, kind=kind, limit=limit)

    async def ingest_questions(self, *, drafts: Sequence[QuestionDraft], now_utc: datetime) -> int:
        return await ingest_questions(
            self.store,
            self.caches,
            drafts=drafts,
            secret=self._answer_secret,
            now_utc=now_utc,
        )


__all__ = ["QuizSessionController"]

from __future__ import annotations

import random
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from brainbolt.db.models.answer_logs import AnswerLogRow
from brainbolt.db.models.leaderboard import LeaderboardScoreRow, LeaderboardStreakRow
from brainbolt.db.models.questions import QuestionRow
from brainbolt.db.models.user_state import UserStateRow
from brainbolt.db.repo.answer_logs_repo import AnswerLogsRepo
from brainbolt.db.repo.leaderboard_repo import LeaderboardRepo
from brainbolt.db.repo.questions_repo import QuestionsRepo
from brainbolt.db.repo.user_state_repo import UserStateRepo
from brainbolt.game.questions.types import Question
from brainbolt.game.scoring.constants import MAX_DIFFICULTY, MIN_DIFFICULTY
from brainbolt.game.scoring.rules import difficulty_bucket
from brainbolt.game.sessions.types import (
    AnswerLogEntry,
    AnswerStats,
    DifficultyBucket,
    LeaderboardRow,
    RecentPerformanceEntry,
    UserState,
)


class QuizStore(Protocol):
    """Durable state used by the session controller.

    ``atomic_update_user_state`` is the only synchronization point: it must
    apply the patch and bump ``state_version`` only if the stored version still
    equals ``expected_version``, and return ``None`` otherwise.
    """

    async def get_user_state(self, user_id: str) -> UserState | None: ...

    async def create_user_state_if_absent(self, user_id: str, *, now_utc: datetime) -> UserState: ...

    async def upsert_user_state(
        self,
        user_id: str,
        fields: Mapping[str, Any],
        *,
        now_utc: datetime,
        expected_version: int | None = None,
    ) -> UserState | None: ...

    async def atomic_update_user_state(
        self,
        user_id: str,
        expected_version: int,
        fields: Mapping[str, Any],
        *,
        now_utc: datetime,
    ) -> UserState | None: ...

    async def insert_answer_log(self, entry: AnswerLogEntry) -> None: ...

    async def get_recent_answers(self, user_id: str, limit: int) -> list[bool]: ...

    async def get_questions_by_difficulty(self, difficulty: int) -> list[Question]: ...

    async def get_question_by_id(self, question_id: str) -> Question | None: ...

    async def get_random_question(
        self,
        difficulty: float,
        exclude_id: str | None = None,
    ) -> Question | None: ...

    async def insert_questions(self, questions: Sequence[Question], *, now_utc: datetime) -> int: ...

    async def update_leaderboard(
        self,
        user_id: str,
        total_score: float,
        max_streak: int,
        *,
        now_utc: datetime,
    ) -> None: ...

    async def get_user_score_rank(self, user_id: str) -> int: ...

    async def get_user_streak_rank(self, user_id: str) -> int: ...

    async def get_score_leaderboard(self, limit: int) -> list[LeaderboardRow]: ...

    async def get_streak_leaderboard(self, limit: int) -> list[LeaderboardRow]: ...

    async def get_user_answer_stats(self, user_id: str) -> AnswerStats: ...

    async def get_difficulty_histogram(self, user_id: str) -> list[DifficultyBucket]: ...

    async def get_recent_performance(self, user_id: str, limit: int) -> list[RecentPerformanceEntry]: ...


def to_user_state(row: UserStateRow) -> UserState:
    return UserState(
        user_id=row.user_id,
        current_difficulty=float(row.current_difficulty),
        streak=row.streak,
        max_streak=row.max_streak,
        total_score=float(row.total_score),
        last_question_id=row.last_question_id,
        last_answer_at=row.last_answer_at,
        state_version=row.state_version,
        decay_anchor_at=row.decay_anchor_at,
    )


def to_question(row: QuestionRow) -> Question:
    return Question(
        question_id=row.question_id,
        difficulty=row.difficulty,
        prompt=row.prompt,
        choices=(row.option_1, row.option_2, row.option_3, row.option_4),
        correct_answer_hash=row.correct_answer_hash,
        tags=tuple(row.tags),
    )


def _question_values(question: Question, *, now_utc: datetime) -> dict[str, Any]:
    return {
        "question_id": question.question_id,
        "difficulty": question.difficulty,
        "prompt": question.prompt,
        "option_1": question.choices[0],
        "option_2": question.choices[1],
        "option_3": question.choices[2],
        "option_4": question.choices[3],
        "correct_answer_hash": question.correct_answer_hash,
        "tags": list(question.tags),
        "created_at": now_utc,
    }


def _fallback_difficulties(difficulty: float) -> list[int]:
    rounded = difficulty_bucket(difficulty)
    nearby = [level for level in (rounded - 1, rounded + 1) if MIN_DIFFICULTY <= level <= MAX_DIFFICULTY]
    return [rounded, *nearby]


class SqlQuizStore:
    """QuizStore backed by PostgreSQL; every call runs in its own transaction."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        rng: random.Random | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._rng = rng or random.Random()

    async def get_user_state(self, user_id: str) -> UserState | None:
        async with self._session_factory.begin() as session:
            row = await UserStateRepo.get_by_user_id(session, user_id)
            return to_user_state(row) if row is not None else None

    async def create_user_state_if_absent(self, user_id: str, *, now_utc: datetime) -> UserState:
        """Insert the default row unless one exists; return the stored row either way."""
        async with self._session_factory.begin() as session:
            await UserStateRepo.insert_default_if_absent(
                session,
                user_id=user_id,
                fields={},
                now_utc=now_utc,
            )
            row = await UserStateRepo.get_by_user_id(session, user_id)
            if row is None:
                raise RuntimeError(f"user state was not created for {user_id}")
            return to_user_state(row)

    async def upsert_user_state(
        self,
        user_id: str,
        fields: Mapping[str, Any],
        *,
        now_utc: datetime,
        expected_version: int | None = None,
    ) -> UserState | None:
        """Create the row with defaults or apply ``fields`` without bumping the version.

        With ``expected_version`` the patch only lands if nobody changed the
        row since it was read; ``None`` is returned when it did not land.
        """
        async with self._session_factory.begin() as session:
            existing = await UserStateRepo.get_by_user_id(session, user_id)
            if existing is None:
                await UserStateRepo.insert_default_if_absent(
                    session,
                    user_id=user_id,
                    fields=fields,
                    now_utc=now_utc,
                )
                created = await UserStateRepo.get_by_user_id(session, user_id)
                return to_user_state(created) if created is not None else None

            row = await UserStateRepo.apply_patch(
                session,
                user_id=user_id,
                fields=fields,
                now_utc=now_utc,
                expected_version=expected_version,
            )
            return to_user_state(row) if row is not None else None

    async def atomic_update_user_state(
        self,
        user_id: str,
        expected_version: int,
        fields: Mapping[str, Any],
        *,
        now_utc: datetime,
    ) -> UserState | None:
        async with self._session_factory.begin() as session:
            row = await UserStateRepo.compare_and_swap(
                session,
                user_id=user_id,
                expected_version=expected_version,
                fields=fields,
                now_utc=now_utc,
            )
            return to_user_state(row) if row is not None else None

    async def insert_answer_log(self, entry: AnswerLogEntry) -> None:
        async with self._session_factory.begin() as session:
            await AnswerLogsRepo.create(
                session,
                row=AnswerLogRow(
                    user_id=entry.user_id,
                    question_id=entry.question_id,
                    difficulty=entry.difficulty,
                    answer_index=entry.answer_index,
                    is_correct=entry.correct,
                    score_delta=entry.score_delta,
                    streak_at_answer=entry.streak_at_answer,
                    answered_at=entry.answered_at,
                ),
            )

    async def get_recent_answers(self, user_id: str, limit: int) -> list[bool]:
        async with self._session_factory.begin() as session:
            return await AnswerLogsRepo.list_recent_correctness(session, user_id=user_id, limit=limit)

    async def get_questions_by_difficulty(self, difficulty: int) -> list[Question]:
        async with self._session_factory.begin() as session:
            rows = await QuestionsRepo.list_by_difficulty(session, difficulty=difficulty)
            return [to_question(row) for row in rows]

    async def get_question_by_id(self, question_id: str) -> Question | None:
        async with self._session_factory.begin() as session:
            row = await QuestionsRepo.get_by_id(session, question_id)
            return to_question(row) if row is not None else None

    async def get_random_question(
        self,
        difficulty: float,
        exclude_id: str | None = None,
    ) -> Question | None:
        async with self._session_factory.begin() as session:
            candidates: list[QuestionRow] = []
            for level in _fallback_difficulties(difficulty):
                candidates = await QuestionsRepo.list_by_difficulty(session, difficulty=level)
                if candidates:
                    break
            if not candidates:
                candidates = await QuestionsRepo.list_all(session)

            filtered = [row for row in candidates if row.question_id != exclude_id] or candidates
            if not filtered:
                return None
            return to_question(self._rng.choice(filtered))

    async def insert_questions(self, questions: Sequence[Question], *, now_utc: datetime) -> int:
        async with self._session_factory.begin() as session:
            return await QuestionsRepo.insert_many(
                session,
                rows=[_question_values(question, now_utc=now_utc) for question in questions],
            )

    async def update_leaderboard(
        self,
        user_id: str,
        total_score: float,
        max_streak: int,
        *,
        now_utc: datetime,
    ) -> None:
        async with self._session_factory.begin() as session:
            await LeaderboardRepo.upsert_score(
                session,
                user_id=user_id,
                total_score=total_score,
                now_utc=now_utc,
            )
            await LeaderboardRepo.upsert_streak(
                session,
                user_id=user_id,
                max_streak=max_streak,
                now_utc=now_utc,
            )

    async def get_user_score_rank(self, user_id: str) -> int:
        async with self._session_factory.begin() as session:
            return await LeaderboardRepo.get_score_rank(session, user_id=user_id)

    async def get_user_streak_rank(self, user_id: str) -> int:
        async with self._session_factory.begin() as session:
            return await LeaderboardRepo.get_streak_rank(session, user_id=user_id)

    async def get_score_leaderboard(self, limit: int) -> list[LeaderboardRow]:
        async with self._session_factory.begin() as session:
            rows: list[LeaderboardScoreRow] = await LeaderboardRepo.list_top_scores(session, limit=limit)
            return [
                LeaderboardRow(user_id=row.user_id, value=float(row.total_score), updated_at=row.updated_at)
                for row in rows
            ]

    async def get_streak_leaderboard(self, limit: int) -> list[LeaderboardRow]:
        async with self._session_factory.begin() as session:
            rows: list[LeaderboardStreakRow] = await LeaderboardRepo.list_top_streaks(session, limit=limit)
            return [
                LeaderboardRow(user_id=row.user_id, value=row.max_streak, updated_at=row.updated_at)
                for row in rows
            ]

    async def get_user_answer_stats(self, user_id: str) -> AnswerStats:
        async with self._session_factory.begin() as session:
            total_answered, total_correct = await AnswerLogsRepo.get_stats(session, user_id=user_id)
            return AnswerStats(total_answered=total_answered, total_correct=total_correct)

    async def get_difficulty_histogram(self, user_id: str) -> list[DifficultyBucket]:
        async with self._session_factory.begin() as session:
            buckets = await AnswerLogsRepo.get_difficulty_histogram(session, user_id=user_id)
            return [DifficultyBucket(difficulty=difficulty, count=count) for difficulty, count in buckets]

    async def get_recent_performance(self, user_id: str, limit: int) -> list[RecentPerformanceEntry]:
        async with self._session_factory.begin() as session:
            rows = await AnswerLogsRepo.list_recent(session, user_id=user_id, limit=limit)
            return [
                RecentPerformanceEntry(
                    question_id=row.question_id,
                    difficulty=row.difficulty,
                    correct=row.is_correct,
                    score_delta=float(row.score_delta),
                    answered_at=row.answered_at,
                )
                for row in rows
            ]

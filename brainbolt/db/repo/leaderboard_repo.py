from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from brainbolt.db.models.leaderboard import LeaderboardScoreRow, LeaderboardStreakRow


class LeaderboardRepo:
    @staticmethod
    async def upsert_score(
        session: AsyncSession,
        *,
        user_id: str,
        total_score: float,
        now_utc: datetime,
    ) -> None:
        stmt = pg_insert(LeaderboardScoreRow).values(
            user_id=user_id,
            total_score=total_score,
            updated_at=now_utc,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[LeaderboardScoreRow.user_id],
            set_={"total_score": stmt.excluded.total_score, "updated_at": stmt.excluded.updated_at},
        )
        await session.execute(stmt)

    @staticmethod
    async def upsert_streak(
        session: AsyncSession,
        *,
        user_id: str,
        max_streak: int,
        now_utc: datetime,
    ) -> None:
        stmt = pg_insert(LeaderboardStreakRow).values(
            user_id=user_id,
            max_streak=max_streak,
            updated_at=now_utc,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[LeaderboardStreakRow.user_id],
            set_={"max_streak": stmt.excluded.max_streak, "updated_at": stmt.excluded.updated_at},
        )
        await session.execute(stmt)

    @staticmethod
    async def get_score_rank(session: AsyncSession, *, user_id: str) -> int:
        own_score = await session.scalar(
            select(LeaderboardScoreRow.total_score).where(LeaderboardScoreRow.user_id == user_id)
        )
        if own_score is None:
            return 0
        ahead = await session.scalar(
            select(func.count(LeaderboardScoreRow.user_id)).where(
                LeaderboardScoreRow.total_score > own_score
            )
        )
        return int(ahead or 0) + 1

    @staticmethod
    async def get_streak_rank(session: AsyncSession, *, user_id: str) -> int:
        own_streak = await session.scalar(
            select(LeaderboardStreakRow.max_streak).where(LeaderboardStreakRow.user_id == user_id)
        )
        if own_streak is None:
            return 0
        ahead = await session.scalar(
            select(func.count(LeaderboardStreakRow.user_id)).where(
                LeaderboardStreakRow.max_streak > own_streak
            )
        )
        return int(ahead or 0) + 1

    @staticmethod
    async def list_top_scores(session: AsyncSession, *, limit: int) -> list[LeaderboardScoreRow]:
        stmt = (
            select(LeaderboardScoreRow)
            .order_by(LeaderboardScoreRow.total_score.desc(), LeaderboardScoreRow.updated_at.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_top_streaks(session: AsyncSession, *, limit: int) -> list[LeaderboardStreakRow]:
        stmt = (
            select(LeaderboardStreakRow)
            .order_by(LeaderboardStreakRow.max_streak.desc(), LeaderboardStreakRow.updated_at.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

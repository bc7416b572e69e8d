from __future__ import annotations

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from brainbolt.db.models.answer_logs import AnswerLogRow


class AnswerLogsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, row: AnswerLogRow) -> AnswerLogRow:
        session.add(row)
        await session.flush()
        return row

    @staticmethod
    async def list_recent(session: AsyncSession, *, user_id: str, limit: int) -> list[AnswerLogRow]:
        stmt = (
            select(AnswerLogRow)
            .where(AnswerLogRow.user_id == user_id)
            .order_by(AnswerLogRow.answered_at.desc(), AnswerLogRow.id.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_recent_correctness(session: AsyncSession, *, user_id: str, limit: int) -> list[bool]:
        stmt = (
            select(AnswerLogRow.is_correct)
            .where(AnswerLogRow.user_id == user_id)
            .order_by(AnswerLogRow.answered_at.desc(), AnswerLogRow.id.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return [bool(value) for value in result.scalars().all()]

    @staticmethod
    async def get_stats(session: AsyncSession, *, user_id: str) -> tuple[int, int]:
        stmt = select(
            func.count(AnswerLogRow.id),
            func.coalesce(func.sum(case((AnswerLogRow.is_correct.is_(True), 1), else_=0)), 0),
        ).where(AnswerLogRow.user_id == user_id)
        result = await session.execute(stmt)
        total_answered, total_correct = result.one()
        return int(total_answered or 0), int(total_correct or 0)

    @staticmethod
    async def get_difficulty_histogram(session: AsyncSession, *, user_id: str) -> list[tuple[int, int]]:
        stmt = (
            select(AnswerLogRow.difficulty, func.count(AnswerLogRow.id))
            .where(AnswerLogRow.user_id == user_id)
            .group_by(AnswerLogRow.difficulty)
            .order_by(AnswerLogRow.difficulty.asc())
        )
        result = await session.execute(stmt)
        return [(int(difficulty), int(count)) for difficulty, count in result.all()]

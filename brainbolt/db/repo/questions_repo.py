from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from brainbolt.db.models.questions import QuestionRow


class QuestionsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, question_id: str) -> QuestionRow | None:
        return await session.get(QuestionRow, question_id)

    @staticmethod
    async def list_by_difficulty(session: AsyncSession, *, difficulty: int) -> list[QuestionRow]:
        stmt = (
            select(QuestionRow)
            .where(QuestionRow.difficulty == difficulty)
            .order_by(QuestionRow.question_id.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_all(session: AsyncSession) -> list[QuestionRow]:
        stmt = select(QuestionRow).order_by(QuestionRow.question_id.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def insert_many(session: AsyncSession, *, rows: Sequence[dict[str, Any]]) -> int:
        if not rows:
            return 0
        stmt = (
            pg_insert(QuestionRow)
            .values(list(rows))
            .on_conflict_do_nothing(index_elements=[QuestionRow.question_id])
            .returning(QuestionRow.question_id)
        )
        result = await session.execute(stmt)
        return len(result.scalars().all())

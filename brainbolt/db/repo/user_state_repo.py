from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from brainbolt.db.models.user_state import UserStateRow

USER_STATE_PATCH_FIELDS = frozenset(
    {
        "current_difficulty",
        "streak",
        "max_streak",
        "total_score",
        "last_question_id",
        "last_answer_at",
        "decay_anchor_at",
    }
)


def _checked_patch(fields: Mapping[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - USER_STATE_PATCH_FIELDS
    if unknown:
        raise ValueError(f"unsupported user_state fields: {sorted(unknown)}")
    return dict(fields)


class UserStateRepo:
    @staticmethod
    async def get_by_user_id(session: AsyncSession, user_id: str) -> UserStateRow | None:
        stmt = select(UserStateRow).where(UserStateRow.user_id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def insert_default_if_absent(
        session: AsyncSession,
        *,
        user_id: str,
        fields: Mapping[str, Any],
        now_utc: datetime,
    ) -> None:
        values: dict[str, Any] = {
            "user_id": user_id,
            "current_difficulty": 1.0,
            "streak": 0,
            "max_streak": 0,
            "total_score": 0.0,
            "state_version": 0,
            "updated_at": now_utc,
        }
        values.update(_checked_patch(fields))
        stmt = (
            pg_insert(UserStateRow)
            .values(**values)
            .on_conflict_do_nothing(index_elements=[UserStateRow.user_id])
        )
        await session.execute(stmt)

    @staticmethod
    async def apply_patch(
        session: AsyncSession,
        *,
        user_id: str,
        fields: Mapping[str, Any],
        now_utc: datetime,
        expected_version: int | None = None,
    ) -> UserStateRow | None:
        stmt = (
            update(UserStateRow)
            .where(UserStateRow.user_id == user_id)
            .values(**_checked_patch(fields), updated_at=now_utc)
            .returning(UserStateRow)
        )
        if expected_version is not None:
            stmt = stmt.where(UserStateRow.state_version == expected_version)
        result = await session.execute(
            stmt.execution_options(synchronize_session=False, populate_existing=True),
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def compare_and_swap(
        session: AsyncSession,
        *,
        user_id: str,
        expected_version: int,
        fields: Mapping[str, Any],
        now_utc: datetime,
    ) -> UserStateRow | None:
        stmt = (
            update(UserStateRow)
            .where(
                UserStateRow.user_id == user_id,
                UserStateRow.state_version == expected_version,
            )
            .values(
                **_checked_patch(fields),
                state_version=expected_version + 1,
                updated_at=now_utc,
            )
            .returning(UserStateRow)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

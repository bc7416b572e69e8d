from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from brainbolt.db.models.base import Base


class UserStateRow(Base):
    __tablename__ = "user_state"
    __table_args__ = (
        CheckConstraint(
            "current_difficulty >= 1 AND current_difficulty <= 10",
            name="ck_user_state_difficulty_range",
        ),
        CheckConstraint("streak >= 0", name="ck_user_state_streak_non_negative"),
        CheckConstraint("max_streak >= streak", name="ck_user_state_max_streak_covers_streak"),
        CheckConstraint("total_score >= 0", name="ck_user_state_total_score_non_negative"),
        CheckConstraint("state_version >= 0", name="ck_user_state_version_non_negative"),
    )

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    current_difficulty: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    last_question_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_answer_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    decay_anchor_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    state_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Float, Index, Integer, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from brainbolt.db.models.base import Base


class AnswerLogRow(Base):
    __tablename__ = "answer_logs"
    __table_args__ = (
        CheckConstraint(
            "answer_index >= 0 AND answer_index <= 3",
            name="ck_answer_logs_answer_index_range",
        ),
        CheckConstraint("streak_at_answer >= 0", name="ck_answer_logs_streak_non_negative"),
        Index("idx_answer_logs_user_time", "user_id", "answered_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    question_id: Mapped[str] = mapped_column(String(64), nullable=False)
    difficulty: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    answer_index: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    is_correct: Mapped[bool] = mapped_column(nullable=False)
    score_delta: Mapped[float] = mapped_column(Float, nullable=False)
    streak_at_answer: Mapped[int] = mapped_column(Integer, nullable=False)
    answered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

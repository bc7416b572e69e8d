from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, SmallInteger, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from brainbolt.db.models.base import Base


class QuestionRow(Base):
    __tablename__ = "quiz_questions"
    __table_args__ = (
        CheckConstraint(
            "difficulty >= 1 AND difficulty <= 10",
            name="ck_quiz_questions_difficulty_range",
        ),
        CheckConstraint("cardinality(tags) >= 1", name="ck_quiz_questions_tags_non_empty"),
        Index("idx_quiz_questions_difficulty", "difficulty"),
    )

    question_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    difficulty: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    option_1: Mapped[str] = mapped_column(Text, nullable=False)
    option_2: Mapped[str] = mapped_column(Text, nullable=False)
    option_3: Mapped[str] = mapped_column(Text, nullable=False)
    option_4: Mapped[str] = mapped_column(Text, nullable=False)
    correct_answer_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    tags: Mapped[list[str]] = mapped_column(ARRAY(Text), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from brainbolt.db.models.base import Base


class LeaderboardScoreRow(Base):
    __tablename__ = "leaderboard_scores"
    __table_args__ = (Index("idx_leaderboard_scores_value", "total_score"),)

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    total_score: Mapped[float] = mapped_column(Float, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class LeaderboardStreakRow(Base):
    __tablename__ = "leaderboard_streaks"
    __table_args__ = (Index("idx_leaderboard_streaks_value", "max_streak"),)

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    max_streak: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

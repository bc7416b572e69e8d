"""b1_adaptive_quiz_core_tables

Revision ID: 1c2d3e4f5a6b
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "1c2d3e4f5a6b"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "user_state",
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("current_difficulty", sa.Float(), nullable=False),
        sa.Column("streak", sa.Integer(), nullable=False),
        sa.Column("max_streak", sa.Integer(), nullable=False),
        sa.Column("total_score", sa.Float(), nullable=False),
        sa.Column("last_question_id", sa.String(length=64), nullable=True),
        sa.Column("last_answer_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decay_anchor_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("state_version", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "current_difficulty >= 1 AND current_difficulty <= 10",
            name="ck_user_state_difficulty_range",
        ),
        sa.CheckConstraint("streak >= 0", name="ck_user_state_streak_non_negative"),
        sa.CheckConstraint("max_streak >= streak", name="ck_user_state_max_streak_covers_streak"),
        sa.CheckConstraint("total_score >= 0", name="ck_user_state_total_score_non_negative"),
        sa.CheckConstraint("state_version >= 0", name="ck_user_state_version_non_negative"),
        sa.PrimaryKeyConstraint("user_id"),
    )

    op.create_table(
        "quiz_questions",
        sa.Column("question_id", sa.String(length=64), nullable=False),
        sa.Column("difficulty", sa.SmallInteger(), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("option_1", sa.Text(), nullable=False),
        sa.Column("option_2", sa.Text(), nullable=False),
        sa.Column("option_3", sa.Text(), nullable=False),
        sa.Column("option_4", sa.Text(), nullable=False),
        sa.Column("correct_answer_hash", sa.String(length=128), nullable=False),
        sa.Column("tags", postgresql.ARRAY(sa.Text()), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "difficulty >= 1 AND difficulty <= 10",
            name="ck_quiz_questions_difficulty_range",
        ),
        sa.CheckConstraint("cardinality(tags) >= 1", name="ck_quiz_questions_tags_non_empty"),
        sa.PrimaryKeyConstraint("question_id"),
    )
    op.create_index("idx_quiz_questions_difficulty", "quiz_questions", ["difficulty"])

    op.create_table(
        "answer_logs",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("question_id", sa.String(length=64), nullable=False),
        sa.Column("difficulty", sa.SmallInteger(), nullable=False),
        sa.Column("answer_index", sa.SmallInteger(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("score_delta", sa.Float(), nullable=False),
        sa.Column("streak_at_answer", sa.Integer(), nullable=False),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "answer_index >= 0 AND answer_index <= 3",
            name="ck_answer_logs_answer_index_range",
        ),
        sa.CheckConstraint("streak_at_answer >= 0", name="ck_answer_logs_streak_non_negative"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_answer_logs_user_time", "answer_logs", ["user_id", "answered_at"])

    op.create_table(
        "leaderboard_scores",
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("total_score", sa.Float(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index("idx_leaderboard_scores_value", "leaderboard_scores", ["total_score"])

    op.create_table(
        "leaderboard_streaks",
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("max_streak", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index("idx_leaderboard_streaks_value", "leaderboard_streaks", ["max_streak"])


def downgrade() -> None:
    op.drop_index("idx_leaderboard_streaks_value", table_name="leaderboard_streaks")
    op.drop_table("leaderboard_streaks")
    op.drop_index("idx_leaderboard_scores_value", table_name="leaderboard_scores")
    op.drop_table("leaderboard_scores")
    op.drop_index("idx_answer_logs_user_time", table_name="answer_logs")
    op.drop_table("answer_logs")
    op.drop_index("idx_quiz_questions_difficulty", table_name="quiz_questions")
    op.drop_table("quiz_questions")
    op.drop_table("user_state")

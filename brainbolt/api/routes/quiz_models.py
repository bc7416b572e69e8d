from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NextQuestionResponse(CamelModel):
    question_id: str
    difficulty: int = Field(ge=1, le=10)
    prompt: str
    choices: list[str] = Field(min_length=4, max_length=4)
    session_id: str
    state_version: int = Field(ge=0)
    current_score: float = Field(ge=0.0)
    current_streak: int = Field(ge=0)
    tags: list[str]
    current_difficulty: float = Field(ge=1.0, le=10.0)
    max_streak: int = Field(ge=0)


class SubmitAnswerRequest(CamelModel):
    question_id: str = Field(min_length=1, max_length=64)
    answer: int = Field(ge=0, le=3)
    session_id: str = Field(min_length=1, max_length=160)
    state_version: int = Field(ge=0)
    answer_idempotency_key: str = Field(min_length=1, max_length=96)


class SubmitAnswerResponse(CamelModel):
    correct: bool
    correct_answer: int = Field(ge=-1, le=3)
    new_difficulty: float = Field(ge=1.0, le=10.0)
    new_streak: int = Field(ge=0)
    score_delta: float
    total_score: float = Field(ge=0.0)
    state_version: int = Field(ge=1)
    leaderboard_rank_score: int = Field(ge=0)
    leaderboard_rank_streak: int = Field(ge=0)
    max_streak: int = Field(ge=0)
    accuracy: float = Field(ge=0.0, le=1.0)


class DifficultyBucketResponse(CamelModel):
    difficulty: int
    count: int = Field(ge=0)


class RecentPerformanceResponse(CamelModel):
    question_id: str
    difficulty: int
    correct: bool
    score_delta: float
    answered_at: datetime


class UserMetricsResponse(CamelModel):
    current_difficulty: float
    streak: int = Field(ge=0)
    max_streak: int = Field(ge=0)
    total_score: float = Field(ge=0.0)
    accuracy: float = Field(ge=0.0, le=1.0)
    difficulty_histogram: list[DifficultyBucketResponse]
    recent_performance: list[RecentPerformanceResponse]
    total_answered: int = Field(ge=0)
    total_correct: int = Field(ge=0)


class LeaderboardEntryResponse(CamelModel):
    rank: int = Field(ge=1)
    user_id: str
    value: float
    updated_at: datetime | None = None


class LeaderboardResponse(CamelModel):
    kind: str
    entries: list[LeaderboardEntryResponse]


class QuestionDraftRequest(CamelModel):
    question_id: str | None = Field(default=None, min_length=1, max_length=64)
    difficulty: int = Field(ge=1, le=10)
    prompt: str = Field(min_length=1, max_length=2000)
    choices: list[str] = Field(min_length=4, max_length=4)
    correct_index: int = Field(ge=0, le=3)
    tags: list[str] = Field(min_length=1, max_length=16)


class QuestionImportRequest(CamelModel):
    questions: list[QuestionDraftRequest] = Field(min_length=1, max_length=500)


class QuestionImportResponse(CamelModel):
    received: int = Field(ge=0)
    inserted: int = Field(ge=0)

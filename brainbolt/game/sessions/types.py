from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class LeaderboardKind(str, Enum):
    SCORE = "score"
    STREAK = "streak"


@dataclass(frozen=True, slots=True)
class UserState:
    user_id: str
    current_difficulty: float
    streak: int
    max_streak: int
    total_score: float
    last_question_id: str | None
    last_answer_at: datetime | None
    state_version: int
    decay_anchor_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class AnswerLogEntry:
    user_id: str
    question_id: str
    difficulty: int
    answer_index: int
    correct: bool
    score_delta: float
    streak_at_answer: int
    answered_at: datetime


@dataclass(frozen=True, slots=True)
class AnswerStats:
    total_answered: int
    total_correct: int

    @property
    def accuracy(self) -> float:
        if self.total_answered <= 0:
            return 0.0
        return self.total_correct / self.total_answered


@dataclass(frozen=True, slots=True)
class DifficultyBucket:
    difficulty: int
    count: int


@dataclass(frozen=True, slots=True)
class RecentPerformanceEntry:
    question_id: str
    difficulty: int
    correct: bool
    score_delta: float
    answered_at: datetime


@dataclass(frozen=True, slots=True)
class LeaderboardRow:
    user_id: str
    value: float
    updated_at: datetime | None


@dataclass(frozen=True, slots=True)
class SubmitAnswerCommand:
    question_id: str
    answer: int
    session_id: str
    state_version: int
    idempotency_key: str


@dataclass(frozen=True, slots=True)
class NextQuestionResult:
    question_id: str
    difficulty: int
    prompt: str
    choices: tuple[str, str, str, str]
    session_id: str
    state_version: int
    current_score: float
    current_streak: int
    tags: tuple[str, ...]
    current_difficulty: float
    max_streak: int


@dataclass(frozen=True, slots=True)
class AnswerResult:
    correct: bool
    correct_answer: int
    new_difficulty: float
    new_streak: int
    score_delta: float
    total_score: float
    state_version: int
    leaderboard_rank_score: int
    leaderboard_rank_streak: int
    max_streak: int
    accuracy: float


@dataclass(frozen=True, slots=True)
class UserMetrics:
    current_difficulty: float
    streak: int
    max_streak: int
    total_score: float
    accuracy: float
    difficulty_histogram: tuple[DifficultyBucket, ...]
    recent_performance: tuple[RecentPerformanceEntry, ...]
    total_answered: int
    total_correct: int

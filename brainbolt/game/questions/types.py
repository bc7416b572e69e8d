from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Question:
    question_id: str
    difficulty: int
    prompt: str
    choices: tuple[str, str, str, str]
    correct_answer_hash: str
    tags: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class QuestionDraft:
    difficulty: int
    prompt: str
    choices: tuple[str, ...]
    correct_index: int
    tags: tuple[str, ...]
    question_id: str | None = None

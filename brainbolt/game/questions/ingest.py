from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import uuid4

import structlog

from brainbolt.game.cache.layer import CacheLayer, CacheNamespace
from brainbolt.game.integrity.answer_hash import ANSWER_CHOICES_COUNT, hash_answer
from brainbolt.game.questions.types import Question, QuestionDraft
from brainbolt.game.scoring.constants import MAX_DIFFICULTY, MIN_DIFFICULTY
from brainbolt.game.sessions.errors import InvalidQuestionError
from brainbolt.game.sessions.store import QuizStore

logger = structlog.get_logger(__name__)

MAX_QUESTION_ID_LENGTH = 64


def build_question(draft: QuestionDraft, *, secret: str) -> Question:
    if not MIN_DIFFICULTY <= draft.difficulty <= MAX_DIFFICULTY:
        raise InvalidQuestionError(f"difficulty out of range: {draft.difficulty}")
    if not draft.prompt.strip():
        raise InvalidQuestionError("empty prompt")
    choices = tuple(choice.strip() for choice in draft.choices)
    if len(choices) != ANSWER_CHOICES_COUNT or not all(choices):
        raise InvalidQuestionError("exactly four non-empty choices are required")
    if not 0 <= draft.correct_index < ANSWER_CHOICES_COUNT:
        raise InvalidQuestionError(f"correct index out of range: {draft.correct_index}")
    tags = tuple(tag.strip() for tag in draft.tags if tag.strip())
    if not tags:
        raise InvalidQuestionError("at least one tag is required")

    question_id = (draft.question_id or uuid4().hex).strip()
    if not question_id or len(question_id) > MAX_QUESTION_ID_LENGTH:
        raise InvalidQuestionError("question id must be 1..64 characters")

    return Question(
        question_id=question_id,
        difficulty=draft.difficulty,
        prompt=draft.prompt.strip(),
        choices=(choices[0], choices[1], choices[2], choices[3]),
        correct_answer_hash=hash_answer(draft.correct_index, secret=secret),
        tags=tags,
    )


async def ingest_questions(
    store: QuizStore,
    caches: CacheLayer,
    *,
    drafts: Sequence[QuestionDraft],
    secret: str,
    now_utc: datetime,
) -> int:
    """Validate, commit and store a batch; returns the number of new questions."""
    questions = [build_question(draft, secret=secret) for draft in drafts]
    seen: set[str] = set()
    for question in questions:
        if question.question_id in seen:
            raise InvalidQuestionError(f"duplicate question id in batch: {question.question_id}")
        seen.add(question.question_id)

    inserted = await store.insert_questions(questions, now_utc=now_utc)
    caches.invalidate(CacheNamespace.QUESTION_POOL)
    logger.info("questions_ingested", received=len(questions), inserted=inserted)
    return inserted

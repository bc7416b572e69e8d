from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError

from brainbolt.api.dependencies import get_quiz_controller
from brainbolt.game.questions.types import QuestionDraft
from brainbolt.game.sessions.errors import QuizSessionError
from brainbolt.game.sessions.service import QuizSessionController

from .quiz_helpers import _as_http_error, _internal_error, require_internal_access
from .quiz_models import QuestionImportRequest, QuestionImportResponse

router = APIRouter(
    prefix="/internal/questions",
    tags=["internal", "questions"],
    dependencies=[Depends(require_internal_access)],
)


@router.post("/import", response_model=QuestionImportResponse)
async def import_questions(
    payload: QuestionImportRequest,
    controller: QuizSessionController = Depends(get_quiz_controller),
) -> QuestionImportResponse:
    drafts = [
        QuestionDraft(
            question_id=item.question_id,
            difficulty=item.difficulty,
            prompt=item.prompt,
            choices=tuple(item.choices),
            correct_index=item.correct_index,
            tags=tuple(item.tags),
        )
        for item in payload.questions
    ]
    try:
        inserted = await controller.ingest_questions(drafts=drafts, now_utc=datetime.now(timezone.utc))
    except QuizSessionError as exc:
        raise _as_http_error(exc) from exc
    except (SQLAlchemyError, OSError) as exc:
        raise _internal_error(operation="import_questions") from exc

    return QuestionImportResponse(received=len(drafts), inserted=inserted)

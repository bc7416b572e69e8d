from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError

from brainbolt.api.dependencies import get_quiz_controller
from brainbolt.game.sessions.errors import QuizSessionError
from brainbolt.game.sessions.service import QuizSessionController
from brainbolt.game.sessions.types import SubmitAnswerCommand

from .quiz_helpers import (
    _answer_response,
    _as_http_error,
    _internal_error,
    _metrics_response,
    _next_question_response,
    require_user_id,
)
from .quiz_models import NextQuestionResponse, SubmitAnswerRequest, SubmitAnswerResponse, UserMetricsResponse

router = APIRouter(prefix="/api/quiz", tags=["quiz"])


@router.get("/next", response_model=NextQuestionResponse)
async def next_question(
    user_id: str = Depends(require_user_id),
    controller: QuizSessionController = Depends(get_quiz_controller),
) -> NextQuestionResponse:
    now_utc = datetime.now(timezone.utc)
    try:
        result = await controller.next_question(user_id=user_id, now_utc=now_utc)
    except QuizSessionError as exc:
        raise _as_http_error(exc) from exc
    except (SQLAlchemyError, OSError) as exc:
        raise _internal_error(operation="next_question") from exc

    return _next_question_response(result)


@router.post("/answer", response_model=SubmitAnswerResponse)
async def answer(
    payload: SubmitAnswerRequest,
    user_id: str = Depends(require_user_id),
    controller: QuizSessionController = Depends(get_quiz_controller),
) -> SubmitAnswerResponse:
    command = SubmitAnswerCommand(
        question_id=payload.question_id,
        answer=payload.answer,
        session_id=payload.session_id,
        state_version=payload.state_version,
        idempotency_key=payload.answer_idempotency_key,
    )
    now_utc = datetime.now(timezone.utc)
    try:
        result = await controller.submit_answer(user_id=user_id, command=command, now_utc=now_utc)
    except QuizSessionError as exc:
        raise _as_http_error(exc) from exc
    except (SQLAlchemyError, OSError) as exc:
        raise _internal_error(operation="submit_answer") from exc

    return _answer_response(result)


@router.get("/metrics", response_model=UserMetricsResponse)
async def metrics(
    user_id: str = Depends(require_user_id),
    controller: QuizSessionController = Depends(get_quiz_controller),
) -> UserMetricsResponse:
    try:
        result = await controller.metrics(user_id=user_id)
    except (SQLAlchemyError, OSError) as exc:
        raise _internal_error(operation="metrics") from exc

    return _metrics_response(result)

from __future__ import annotations

import structlog
from fastapi import Depends, HTTPException, Request

from brainbolt.core.config import get_settings
from brainbolt.game.sessions.errors import (
    InvalidQuestionError,
    NoQuestionsAvailableError,
    NotActiveSessionError,
    QuestionNotFoundError,
    QuizSessionError,
    SessionMismatchError,
    StaleStateVersionError,
    StateVersionConflictError,
)
from brainbolt.game.sessions.types import (
    AnswerResult,
    LeaderboardKind,
    LeaderboardRow,
    NextQuestionResult,
    UserMetrics,
)
from brainbolt.services.internal_auth import (
    extract_client_ip,
    extract_user_id,
    is_client_ip_allowed,
    is_internal_request_authenticated,
)

from .quiz_models import (
    DifficultyBucketResponse,
    LeaderboardEntryResponse,
    LeaderboardResponse,
    NextQuestionResponse,
    RecentPerformanceResponse,
    SubmitAnswerResponse,
    UserMetricsResponse,
)

logger = structlog.get_logger(__name__)

# Subclasses first: the first matching entry wins.
_QUIZ_ERROR_STATUS: tuple[tuple[type[QuizSessionError], int, str], ...] = (
    (NotActiveSessionError, 400, "E_NO_ACTIVE_SESSION"),
    (SessionMismatchError, 409, "E_SESSION_MISMATCH"),
    (StaleStateVersionError, 409, "E_STALE_STATE_VERSION"),
    (StateVersionConflictError, 409, "E_STATE_VERSION_CONFLICT"),
    (QuestionNotFoundError, 404, "E_QUESTION_NOT_FOUND"),
    (NoQuestionsAvailableError, 404, "E_NO_QUESTIONS"),
    (InvalidQuestionError, 400, "E_VALIDATION"),
)


def require_internal_access(request: Request) -> None:
    settings = get_settings()
    client_ip = extract_client_ip(
        request,
        trusted_proxies=settings.internal_api_trusted_proxies,
    )

    if not is_client_ip_allowed(client_ip=client_ip, allowlist=settings.internal_api_allowlist):
        logger.warning("internal_access_denied", reason="ip_not_allowed", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})

    if not is_internal_request_authenticated(
        request,
        expected_token=settings.internal_api_token,
    ):
        logger.warning("internal_access_denied", reason="invalid_credentials", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})


def require_user_id(
    request: Request,
    _access: None = Depends(require_internal_access),
) -> str:
    user_id = extract_user_id(request)
    if user_id is None:
        logger.warning("internal_access_denied", reason="missing_user_id")
        raise HTTPException(status_code=401, detail={"code": "E_UNAUTHENTICATED"})
    return user_id


def _as_http_error(exc: QuizSessionError) -> HTTPException:
    for error_type, status_code, code in _QUIZ_ERROR_STATUS:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail={"code": code})
    return HTTPException(status_code=400, detail={"code": "E_QUIZ_REJECTED"})


def _internal_error(*, operation: str) -> HTTPException:
    logger.exception("quiz_store_failure", operation=operation)
    return HTTPException(status_code=500, detail={"code": "E_INTERNAL"})


def _next_question_response(result: NextQuestionResult) -> NextQuestionResponse:
    return NextQuestionResponse(
        question_id=result.question_id,
        difficulty=result.difficulty,
        prompt=result.prompt,
        choices=list(result.choices),
        session_id=result.session_id,
        state_version=result.state_version,
        current_score=result.current_score,
        current_streak=result.current_streak,
        tags=list(result.tags),
        current_difficulty=result.current_difficulty,
        max_streak=result.max_streak,
    )


def _answer_response(result: AnswerResult) -> SubmitAnswerResponse:
    return SubmitAnswerResponse(
        correct=result.correct,
        correct_answer=result.correct_answer,
        new_difficulty=result.new_difficulty,
        new_streak=result.new_streak,
        score_delta=result.score_delta,
        total_score=result.total_score,
        state_version=result.state_version,
        leaderboard_rank_score=result.leaderboard_rank_score,
        leaderboard_rank_streak=result.leaderboard_rank_streak,
        max_streak=result.max_streak,
        accuracy=result.accuracy,
    )


def _metrics_response(metrics: UserMetrics) -> UserMetricsResponse:
    return UserMetricsResponse(
        current_difficulty=metrics.current_difficulty,
        streak=metrics.streak,
        max_streak=metrics.max_streak,
        total_score=metrics.total_score,
        accuracy=metrics.accuracy,
        difficulty_histogram=[
            DifficultyBucketResponse(difficulty=bucket.difficulty, count=bucket.count)
            for bucket in metrics.difficulty_histogram
        ],
        recent_performance=[
            RecentPerformanceResponse(
                question_id=entry.question_id,
                difficulty=entry.difficulty,
                correct=entry.correct,
                score_delta=entry.score_delta,
                answered_at=entry.answered_at,
            )
            for entry in metrics.recent_performance
        ],
        total_answered=metrics.total_answered,
        total_correct=metrics.total_correct,
    )


def _leaderboard_response(kind: LeaderboardKind, rows: tuple[LeaderboardRow, ...]) -> LeaderboardResponse:
    return LeaderboardResponse(
        kind=kind.value,
        entries=[
            LeaderboardEntryResponse(
                rank=position,
                user_id=row.user_id,
                value=row.value,
                updated_at=row.updated_at,
            )
            for position, row in enumerate(rows, start=1)
        ],
    )

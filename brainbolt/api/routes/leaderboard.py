from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError

from brainbolt.api.dependencies import get_quiz_controller
from brainbolt.core.config import get_settings
from brainbolt.game.sessions.service import QuizSessionController
from brainbolt.game.sessions.types import LeaderboardKind

from .quiz_helpers import _internal_error, _leaderboard_response, require_internal_access
from .quiz_models import LeaderboardResponse

router = APIRouter(
    prefix="/api/leaderboard",
    tags=["leaderboard"],
    dependencies=[Depends(require_internal_access)],
)

MIN_LIMIT = 1
MAX_LIMIT = 100


def _resolve_limit(limit: int | None) -> int:
    if limit is not None:
        return limit
    default = get_settings().leaderboard_default_limit
    return max(MIN_LIMIT, min(MAX_LIMIT, default))


async def _read_leaderboard(
    controller: QuizSessionController,
    *,
    kind: LeaderboardKind,
    limit: int | None,
) -> LeaderboardResponse:
    try:
        rows = await controller.leaderboard(kind=kind, limit=_resolve_limit(limit))
    except (SQLAlchemyError, OSError) as exc:
        raise _internal_error(operation=f"leaderboard_{kind.value}") from exc
    return _leaderboard_response(kind, rows)


@router.get("/score", response_model=LeaderboardResponse)
async def score_leaderboard(
    limit: int | None = Query(default=None, ge=MIN_LIMIT, le=MAX_LIMIT),
    controller: QuizSessionController = Depends(get_quiz_controller),
) -> LeaderboardResponse:
    return await _read_leaderboard(controller, kind=LeaderboardKind.SCORE, limit=limit)


@router.get("/streak", response_model=LeaderboardResponse)
async def streak_leaderboard(
    limit: int | None = Query(default=None, ge=MIN_LIMIT, le=MAX_LIMIT),
    controller: QuizSessionController = Depends(get_quiz_controller),
) -> LeaderboardResponse:
    return await _read_leaderboard(controller, kind=LeaderboardKind.STREAK, limit=limit)

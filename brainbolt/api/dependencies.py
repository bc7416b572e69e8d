from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from brainbolt.core.config import get_settings
from brainbolt.db.session import SessionLocal
from brainbolt.game.cache import CacheLayer
from brainbolt.game.sessions.service import QuizSessionController
from brainbolt.game.sessions.store import SqlQuizStore


@lru_cache(maxsize=1)
def get_quiz_controller() -> QuizSessionController:
    """Process-wide controller; the caches it owns live as long as the worker."""
    settings = get_settings()
    return QuizSessionController(
        store=SqlQuizStore(SessionLocal),
        caches=CacheLayer.from_settings(settings),
        answer_secret=settings.answer_hash_secret,
        decay_interval=timedelta(minutes=settings.streak_decay_interval_minutes),
    )

from __future__ import annotations

import pytest
from sqlalchemy import text

from brainbolt.core.integration_db_safety import assert_safe_integration_db, assess_integration_db_safety
from brainbolt.db.models import Base
from brainbolt.db.session import engine

TRUNCATE_TABLES = (
    "answer_logs",
    "leaderboard_scores",
    "leaderboard_streaks",
    "quiz_questions",
    "user_state",
)

TRUNCATE_SQL = f"TRUNCATE TABLE {', '.join(TRUNCATE_TABLES)} RESTART IDENTITY CASCADE"


@pytest.fixture(scope="session", autouse=True)
def guard_integration_db_target() -> None:
    result = assess_integration_db_safety(str(engine.url))
    if not result.is_safe:
        pytest.skip(f"Integration tests need a local PostgreSQL test database: {result.reason}")


@pytest.fixture(autouse=True)
async def cleanup_db() -> None:
    # Dispose pooled connections between tests to avoid cross-event-loop asyncpg reuse.
    await engine.dispose()

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:  # pragma: no cover - environment-dependent
        pytest.skip(f"Postgres is required for integration tests: {exc}")

    assert_safe_integration_db(engine.url.render_as_string(hide_password=False))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(text(TRUNCATE_SQL))

    yield

    await engine.dispose()

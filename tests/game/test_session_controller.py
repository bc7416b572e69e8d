from __future__ import annotations

import asyncio
import random
from dataclasses import replace
from datetime import timedelta

import pytest

from brainbolt.game.cache import CacheLayer, CacheNamespace
from brainbolt.game.sessions.errors import (
    NotActiveSessionError,
    QuestionNotFoundError,
    SessionMismatchError,
    StaleStateVersionError,
    StateVersionConflictError,
)
from brainbolt.game.sessions.service import QuizSessionController
from brainbolt.game.sessions.service.metrics import EMPTY_METRICS
from brainbolt.game.sessions.types import AnswerResult, LeaderboardKind, SubmitAnswerCommand
from tests.game.quiz_store_fixtures import NOW, SECRET, InMemoryQuizStore, make_question, make_user_state


def _controller(store: InMemoryQuizStore) -> QuizSessionController:
    return QuizSessionController(
        store=store,
        caches=CacheLayer(),
        answer_secret=SECRET,
        rng=random.Random(0),
    )


def _default_store() -> InMemoryQuizStore:
    return InMemoryQuizStore(
        [
            make_question("q1", difficulty=1, correct_index=1),
            make_question("q2", difficulty=1, correct_index=1),
            make_question("q5", difficulty=5, correct_index=1),
        ]
    )


def _command(
    *,
    question_id: str,
    answer: int,
    session_id: str,
    state_version: int,
    idempotency_key: str = "idem-1",
) -> SubmitAnswerCommand:
    return SubmitAnswerCommand(
        question_id=question_id,
        answer=answer,
        session_id=session_id,
        state_version=state_version,
        idempotency_key=idempotency_key,
    )


async def _answer_next(
    controller: QuizSessionController,
    *,
    user_id: str,
    answer: int,
    idempotency_key: str,
    now_utc=NOW,  # noqa: ANN001
) -> AnswerResult:
    question = await controller.next_question(user_id=user_id, now_utc=now_utc)
    return await controller.submit_answer(
        user_id=user_id,
        command=_command(
            question_id=question.question_id,
            answer=answer,
            session_id=question.session_id,
            state_version=question.state_version,
            idempotency_key=idempotency_key,
        ),
        now_utc=now_utc,
    )


@pytest.mark.asyncio
async def test_next_question_creates_default_state() -> None:
    store = _default_store()
    controller = _controller(store)

    result = await controller.next_question(user_id="u1", now_utc=NOW)

    assert result.session_id == "u1-0"
    assert result.state_version == 0
    assert result.current_score == 0.0
    assert result.current_streak == 0
    assert result.current_difficulty == 1.0
    assert result.difficulty == 1
    assert result.question_id in {"q1", "q2"}
    assert len(result.choices) == 4
    assert store.user_states["u1"].state_version == 0


@pytest.mark.asyncio
async def test_correct_answer_scenario_scores_with_post_answer_streak() -> None:
    store = _default_store()
    store.user_states["u1"] = make_user_state(
        current_difficulty=5.0,
        streak=3,
        max_streak=3,
        total_score=100.0,
        last_answer_at=NOW - timedelta(minutes=1),
        state_version=4,
    )
    controller = _controller(store)

    result = await controller.submit_answer(
        user_id="u1",
        command=_command(question_id="q5", answer=1, session_id="u1-4", state_version=4),
        now_utc=NOW,
    )

    assert result.correct is True
    assert result.correct_answer == 1
    assert result.new_streak == 4
    assert result.score_delta == pytest.approx(70.0)
    assert result.total_score == pytest.approx(170.0)
    assert result.state_version == 5
    assert result.max_streak == 4
    assert result.new_difficulty == 5.0
    assert result.leaderboard_rank_score == 1
    assert result.leaderboard_rank_streak == 1
    assert result.accuracy == 1.0
    assert store.answer_logs[-1].streak_at_answer == 4
    assert store.user_states["u1"].last_question_id == "q5"


@pytest.mark.asyncio
async def test_incorrect_answer_resets_streak_and_applies_penalty() -> None:
    store = _default_store()
    store.user_states["u1"] = make_user_state(
        current_difficulty=5.0,
        streak=7,
        max_streak=9,
        total_score=55.0,
        last_answer_at=NOW - timedelta(minutes=1),
        state_version=3,
    )
    controller = _controller(store)

    result = await controller.submit_answer(
        user_id="u1",
        command=_command(question_id="q5", answer=2, session_id="u1-3", state_version=3),
        now_utc=NOW,
    )

    assert result.correct is False
    assert result.correct_answer == 1
    assert result.score_delta == -10.0
    assert result.new_streak == 0
    assert result.max_streak == 9
    assert result.total_score == pytest.approx(45.0)


@pytest.mark.asyncio
async def test_total_score_never_goes_negative() -> None:
    controller = _controller(_default_store())

    results = [
        await _answer_next(controller, user_id="u1", answer=0, idempotency_key=f"miss-{index}")
        for index in range(4)
    ]

    assert all(result.total_score == 0.0 for result in results)
    assert all(result.score_delta == -10.0 for result in results)
    assert [result.state_version for result in results] == [1, 2, 3, 4]


@pytest.mark.asyncio
async def test_replayed_submission_returns_identical_result_and_mutates_once() -> None:
    store = _default_store()
    controller = _controller(store)
    question = await controller.next_question(user_id="u1", now_utc=NOW)
    command = _command(
        question_id=question.question_id,
        answer=1,
        session_id=question.session_id,
        state_version=question.state_version,
        idempotency_key="same-key",
    )

    first = await controller.submit_answer(user_id="u1", command=command, now_utc=NOW)
    second = await controller.submit_answer(user_id="u1", command=command, now_utc=NOW)

    assert second == first
    assert first.state_version == 1
    assert first.score_delta == pytest.approx(11.0)
    assert len(store.answer_logs) == 1
    assert store.user_states["u1"].state_version == 1
    assert store.user_states["u1"].total_score == pytest.approx(11.0)


@pytest.mark.asyncio
async def test_idempotency_keys_are_scoped_per_user() -> None:
    store = _default_store()
    controller = _controller(store)

    first = await _answer_next(controller, user_id="u1", answer=1, idempotency_key="shared")
    second = await _answer_next(controller, user_id="u2", answer=0, idempotency_key="shared")

    assert first.correct is True
    assert second.correct is False
    assert len(store.answer_logs) == 2


@pytest.mark.asyncio
async def test_concurrent_submissions_on_same_version_have_one_winner() -> None:
    store = _default_store()
    controller = _controller(store)
    question = await controller.next_question(user_id="u1", now_utc=NOW)

    outcomes = await asyncio.gather(
        *(
            controller.submit_answer(
                user_id="u1",
                command=_command(
                    question_id=question.question_id,
                    answer=1,
                    session_id=question.session_id,
                    state_version=question.state_version,
                    idempotency_key=f"tab-{tab}",
                ),
                now_utc=NOW,
            )
            for tab in range(2)
        ),
        return_exceptions=True,
    )

    winners = [outcome for outcome in outcomes if isinstance(outcome, AnswerResult)]
    losers = [outcome for outcome in outcomes if isinstance(outcome, StateVersionConflictError)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert winners[0].state_version == question.state_version + 1
    assert store.user_states["u1"].state_version == 1
    assert store.user_states["u1"].streak == 1


@pytest.mark.asyncio
async def test_state_version_counts_accepted_answers_and_max_streak_is_monotonic() -> None:
    store = _default_store()
    controller = _controller(store)
    answers = [1, 1, 0, 1, 1, 1, 0]

    results: list[AnswerResult] = []
    for index, answer in enumerate(answers):
        results.append(
            await _answer_next(
                controller,
                user_id="u1",
                answer=answer,
                idempotency_key=f"answer-{index}",
                now_utc=NOW + timedelta(minutes=index),
            )
        )

    assert [result.state_version for result in results] == list(range(1, len(answers) + 1))
    assert store.user_states["u1"].state_version == len(answers)
    max_streaks = [result.max_streak for result in results]
    assert max_streaks == sorted(max_streaks)
    assert max_streaks[-1] == 3
    assert all(result.max_streak >= result.new_streak for result in results)


@pytest.mark.asyncio
async def test_stale_state_version_is_rejected_without_side_effects() -> None:
    store = _default_store()
    seeded = make_user_state(
        streak=2,
        max_streak=2,
        total_score=30.0,
        last_answer_at=NOW - timedelta(minutes=1),
        state_version=4,
    )
    store.user_states["u1"] = seeded
    controller = _controller(store)

    with pytest.raises(StaleStateVersionError):
        await controller.submit_answer(
            user_id="u1",
            command=_command(question_id="q1", answer=1, session_id="u1-4", state_version=3),
            now_utc=NOW,
        )

    assert store.answer_logs == []
    assert store.user_states["u1"] == seeded


@pytest.mark.asyncio
async def test_session_mismatch_is_rejected() -> None:
    store = _default_store()
    store.user_states["u1"] = make_user_state(state_version=2)
    controller = _controller(store)

    with pytest.raises(SessionMismatchError):
        await controller.submit_answer(
            user_id="u1",
            command=_command(question_id="q1", answer=1, session_id="u1-1", state_version=2),
            now_utc=NOW,
        )

    assert store.answer_logs == []


@pytest.mark.asyncio
async def test_submit_without_state_requires_next_question_first() -> None:
    controller = _controller(_default_store())

    with pytest.raises(NotActiveSessionError):
        await controller.submit_answer(
            user_id="ghost",
            command=_command(question_id="q1", answer=1, session_id="ghost-0", state_version=0),
            now_utc=NOW,
        )


@pytest.mark.asyncio
async def test_unknown_question_is_rejected() -> None:
    store = _default_store()
    store.user_states["u1"] = make_user_state()
    controller = _controller(store)

    with pytest.raises(QuestionNotFoundError):
        await controller.submit_answer(
            user_id="u1",
            command=_command(question_id="missing", answer=1, session_id="u1-0", state_version=0),
            now_utc=NOW,
        )


@pytest.mark.asyncio
async def test_cas_conflict_invalidates_cached_state_and_is_not_remembered() -> None:
    class RacingStore(InMemoryQuizStore):
        async def insert_answer_log(self, entry) -> None:  # noqa: ANN001
            await super().insert_answer_log(entry)
            current = self.user_states[entry.user_id]
            self.user_states[entry.user_id] = replace(current, state_version=current.state_version + 1)

    store = RacingStore([make_question("q1", difficulty=1, correct_index=1)])
    controller = _controller(store)
    question = await controller.next_question(user_id="u1", now_utc=NOW)

    with pytest.raises(StateVersionConflictError) as exc_info:
        await controller.submit_answer(
            user_id="u1",
            command=_command(
                question_id=question.question_id,
                answer=1,
                session_id=question.session_id,
                state_version=question.state_version,
                idempotency_key="lost-race",
            ),
            now_utc=NOW,
        )

    assert not isinstance(exc_info.value, StaleStateVersionError)
    assert controller.caches.get(CacheNamespace.USER_STATE, "u1") is None
    assert controller.caches.get(CacheNamespace.IDEMPOTENCY, ("u1", "lost-race")) is None
    # The log row of the losing attempt stays; it is not part of the swap.
    assert len(store.answer_logs) == 1
    assert store.score_board == {}


@pytest.mark.asyncio
async def test_next_question_applies_streak_decay_once_per_interval() -> None:
    store = _default_store()
    store.user_states["u1"] = make_user_state(
        streak=5,
        max_streak=5,
        last_answer_at=NOW - timedelta(minutes=65),
        state_version=2,
    )
    controller = _controller(store)

    first = await controller.next_question(user_id="u1", now_utc=NOW)
    second = await controller.next_question(user_id="u1", now_utc=NOW + timedelta(minutes=10))

    assert first.current_streak == 3
    assert first.max_streak == 5
    assert first.session_id == "u1-2"
    assert second.current_streak == 3
    assert store.user_states["u1"].streak == 3
    assert store.user_states["u1"].state_version == 2
    assert store.user_states["u1"].decay_anchor_at == NOW - timedelta(minutes=5)


@pytest.mark.asyncio
async def test_decay_never_overwrites_a_newer_answer() -> None:
    class RacingStore(InMemoryQuizStore):
        async def upsert_user_state(self, user_id, fields, *, now_utc, expected_version=None):  # noqa: ANN001
            current = self.user_states[user_id]
            self.user_states[user_id] = replace(
                current,
                streak=6,
                max_streak=6,
                last_answer_at=now_utc,
                state_version=current.state_version + 1,
            )
            return await super().upsert_user_state(
                user_id,
                fields,
                now_utc=now_utc,
                expected_version=expected_version,
            )

    store = RacingStore([make_question("q1", difficulty=1, correct_index=1)])
    store.user_states["u1"] = make_user_state(
        streak=5,
        max_streak=5,
        last_answer_at=NOW - timedelta(minutes=65),
        state_version=2,
    )
    controller = _controller(store)

    result = await controller.next_question(user_id="u1", now_utc=NOW)

    assert result.current_streak == 6
    assert result.state_version == 3
    assert store.user_states["u1"].streak == 6


@pytest.mark.asyncio
async def test_metrics_for_unknown_user_are_empty_and_not_cached() -> None:
    controller = _controller(_default_store())

    metrics = await controller.metrics(user_id="ghost")

    assert metrics == EMPTY_METRICS
    assert controller.caches.get(CacheNamespace.METRICS, "ghost") is None


@pytest.mark.asyncio
async def test_metrics_summarize_history_and_refresh_after_answer() -> None:
    store = _default_store()
    controller = _controller(store)
    await _answer_next(controller, user_id="u1", answer=1, idempotency_key="a1")
    await _answer_next(
        controller,
        user_id="u1",
        answer=0,
        idempotency_key="a2",
        now_utc=NOW + timedelta(minutes=1),
    )

    metrics = await controller.metrics(user_id="u1")
    cached = await controller.metrics(user_id="u1")

    assert cached is metrics
    assert store.calls.count("get_user_answer_stats") == 2 + 1
    assert metrics.total_answered == 2
    assert metrics.total_correct == 1
    assert metrics.accuracy == pytest.approx(0.5)
    assert [(bucket.difficulty, bucket.count) for bucket in metrics.difficulty_histogram] == [(1, 2)]
    assert [entry.correct for entry in metrics.recent_performance] == [False, True]

    await _answer_next(
        controller,
        user_id="u1",
        answer=1,
        idempotency_key="a3",
        now_utc=NOW + timedelta(minutes=2),
    )
    refreshed = await controller.metrics(user_id="u1")
    assert refreshed.total_answered == 3


@pytest.mark.asyncio
async def test_leaderboard_orders_users_and_reports_ranks() -> None:
    store = _default_store()
    controller = _controller(store)

    await _answer_next(controller, user_id="alice", answer=1, idempotency_key="a1")
    await _answer_next(
        controller,
        user_id="alice",
        answer=1,
        idempotency_key="a2",
        now_utc=NOW + timedelta(minutes=1),
    )
    bob = await _answer_next(controller, user_id="bob", answer=1, idempotency_key="b1")

    scores = await controller.leaderboard(kind=LeaderboardKind.SCORE, limit=20)
    streaks = await controller.leaderboard(kind=LeaderboardKind.STREAK, limit=1)

    assert [row.user_id for row in scores] == ["alice", "bob"]
    assert [row.user_id for row in streaks] == ["alice"]
    assert bob.leaderboard_rank_score == 2
    assert bob.leaderboard_rank_streak == 2
    assert await controller.leaderboard(kind=LeaderboardKind.SCORE, limit=20) is scores
    assert store.calls.count("get_score_leaderboard") == 1


@pytest.mark.asyncio
async def test_first_fetch_keeps_row_created_by_concurrent_request() -> None:
    class StaleFirstReadStore(InMemoryQuizStore):
        def __init__(self, *args, **kwargs) -> None:  # noqa: ANN002, ANN003
            super().__init__(*args, **kwargs)
            self.stale_reads = 1

        async def get_user_state(self, user_id: str):  # noqa: ANN201
            if self.stale_reads:
                self.stale_reads -= 1
                await self._touch("get_user_state")
                return None
            return await super().get_user_state(user_id)

    store = StaleFirstReadStore([make_question("q5", difficulty=5, correct_index=1)])
    store.user_states["u1"] = make_user_state(
        current_difficulty=5.0,
        streak=4,
        max_streak=4,
        total_score=250.0,
        last_answer_at=NOW - timedelta(minutes=1),
        state_version=5,
    )
    controller = _controller(store)

    result = await controller.next_question(user_id="u1", now_utc=NOW)

    assert result.session_id == "u1-5"
    assert result.current_streak == 4
    assert result.max_streak == 4
    assert result.current_score == 250.0
    stored = store.user_states["u1"]
    assert (stored.streak, stored.max_streak, stored.total_score) == (4, 4, 250.0)
    assert stored.state_version == 5
    assert "upsert_user_state" not in store.calls


@pytest.mark.asyncio
async def test_concurrent_first_fetches_create_one_default_state() -> None:
    store = _default_store()
    controller = _controller(store)

    results = await asyncio.gather(
        *(controller.next_question(user_id="u1", now_utc=NOW) for _ in range(3))
    )

    assert {result.session_id for result in results} == {"u1-0"}
    assert store.user_states["u1"] == make_user_state()


@pytest.mark.asyncio
async def test_momentum_window_reads_nine_prior_answers() -> None:
    class RecordingStore(InMemoryQuizStore):
        def __init__(self, *args, **kwargs) -> None:  # noqa: ANN002, ANN003
            super().__init__(*args, **kwargs)
            self.history_limits: list[int] = []

        async def get_recent_answers(self, user_id: str, limit: int) -> list[bool]:
            self.history_limits.append(limit)
            return await super().get_recent_answers(user_id, limit)

    store = RecordingStore([make_question("q1", difficulty=1, correct_index=1)])
    controller = _controller(store)
    question = await controller.next_question(user_id="u1", now_utc=NOW)

    await controller.submit_answer(
        user_id="u1",
        command=_command(
            question_id=question.question_id,
            answer=1,
            session_id=question.session_id,
            state_version=question.state_version,
        ),
        now_utc=NOW,
    )

    assert store.history_limits == [9]

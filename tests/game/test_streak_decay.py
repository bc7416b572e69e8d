from __future__ import annotations

from datetime import datetime, timedelta, timezone

from brainbolt.game.streak.rules import compute_streak_decay

UTC = timezone.utc
INTERVAL = timedelta(minutes=30)
LAST_ANSWER_AT = datetime(2026, 3, 1, 10, 0, tzinfo=UTC)


def test_two_full_intervals_remove_two_points() -> None:
    decay = compute_streak_decay(
        streak=5,
        last_answer_at=LAST_ANSWER_AT,
        decay_anchor_at=None,
        now_utc=LAST_ANSWER_AT + timedelta(minutes=65),
        interval=INTERVAL,
    )

    assert decay is not None
    assert decay.streak == 3
    assert decay.intervals == 2
    assert decay.decay_anchor_at == LAST_ANSWER_AT + timedelta(minutes=60)


def test_no_decay_within_first_interval() -> None:
    assert (
        compute_streak_decay(
            streak=5,
            last_answer_at=LAST_ANSWER_AT,
            decay_anchor_at=None,
            now_utc=LAST_ANSWER_AT + timedelta(minutes=30),
            interval=INTERVAL,
        )
        is None
    )


def test_anchor_prevents_repeated_decay_inside_same_window() -> None:
    first = compute_streak_decay(
        streak=5,
        last_answer_at=LAST_ANSWER_AT,
        decay_anchor_at=None,
        now_utc=LAST_ANSWER_AT + timedelta(minutes=65),
        interval=INTERVAL,
    )
    assert first is not None

    second = compute_streak_decay(
        streak=first.streak,
        last_answer_at=LAST_ANSWER_AT,
        decay_anchor_at=first.decay_anchor_at,
        now_utc=LAST_ANSWER_AT + timedelta(minutes=80),
        interval=INTERVAL,
    )
    assert second is None

    third = compute_streak_decay(
        streak=first.streak,
        last_answer_at=LAST_ANSWER_AT,
        decay_anchor_at=first.decay_anchor_at,
        now_utc=LAST_ANSWER_AT + timedelta(minutes=95),
        interval=INTERVAL,
    )
    assert third is not None
    assert third.streak == 2


def test_streak_never_goes_below_zero() -> None:
    decay = compute_streak_decay(
        streak=2,
        last_answer_at=LAST_ANSWER_AT,
        decay_anchor_at=None,
        now_utc=LAST_ANSWER_AT + timedelta(days=1),
        interval=INTERVAL,
    )
    assert decay is not None
    assert decay.streak == 0


def test_zero_streak_or_missing_answer_time_never_decays() -> None:
    now_utc = LAST_ANSWER_AT + timedelta(hours=5)
    assert (
        compute_streak_decay(
            streak=0,
            last_answer_at=LAST_ANSWER_AT,
            decay_anchor_at=None,
            now_utc=now_utc,
            interval=INTERVAL,
        )
        is None
    )
    assert (
        compute_streak_decay(
            streak=4,
            last_answer_at=None,
            decay_anchor_at=None,
            now_utc=now_utc,
            interval=INTERVAL,
        )
        is None
    )

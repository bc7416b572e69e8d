from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True, slots=True)
class StreakDecay:
    streak: int
    decay_anchor_at: datetime
    intervals: int


def decay_reference(*, last_answer_at: datetime | None, decay_anchor_at: datetime | None) -> datetime | None:
    if decay_anchor_at is not None:
        return decay_anchor_at
    return last_answer_at


def compute_streak_decay(
    *,
    streak: int,
    last_answer_at: datetime | None,
    decay_anchor_at: datetime | None,
    now_utc: datetime,
    interval: timedelta,
) -> StreakDecay | None:
    """Lazy streak decay: one point per full idle interval, floored at zero.

    Returns ``None`` when nothing decays. The returned anchor moves forward by
    whole intervals only, so the partially elapsed interval still counts on
    the next read.
    """
    if streak <= 0:
        return None
    reference = decay_reference(last_answer_at=last_answer_at, decay_anchor_at=decay_anchor_at)
    if reference is None:
        return None

    elapsed = now_utc - reference
    if elapsed <= interval:
        return None

    intervals = elapsed // interval
    decayed_streak = max(0, streak - intervals)
    if decayed_streak == streak:
        return None
    return StreakDecay(
        streak=decayed_streak,
        decay_anchor_at=reference + interval * intervals,
        intervals=intervals,
    )

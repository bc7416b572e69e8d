"""Pure scoring and difficulty rules.

Every function here is deterministic and free of I/O so it can be called from
any number of concurrent requests.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from brainbolt.game.scoring.constants import (
    BASE_DIFFICULTY_STEP,
    HYSTERESIS_BAND,
    MAX_DIFFICULTY,
    MAX_STREAK_MULTIPLIER,
    MIN_DIFFICULTY,
    MIN_STREAK_TO_INCREASE,
    MOMENTUM_CORRECT_BOOST,
    MOMENTUM_DECAY,
    MOMENTUM_HISTORY_LIMIT,
    MOMENTUM_STEP_WEIGHT,
    MOMENTUM_WRONG_PENALTY,
    POINTS_PER_DIFFICULTY,
    STREAK_MULTIPLIER_STEP,
    WRONG_ANSWER_PENALTY,
)


def clamp_difficulty(value: float) -> float:
    return max(float(MIN_DIFFICULTY), min(float(MAX_DIFFICULTY), value))


def difficulty_bucket(value: float) -> int:
    """Pool key for a real-valued difficulty; halves round up."""
    return int(math.floor(clamp_difficulty(value) + 0.5))


def streak_multiplier(streak: int) -> float:
    return min(1 + STREAK_MULTIPLIER_STEP * max(0, streak), MAX_STREAK_MULTIPLIER)


def score_delta(*, correct: bool, difficulty: int, streak: int) -> float:
    """Points for one answer.

    ``streak`` is the streak after the answer was applied for correct answers;
    incorrect answers always cost a flat penalty.
    """
    if not correct:
        return WRONG_ANSWER_PENALTY
    return difficulty * POINTS_PER_DIFFICULTY * streak_multiplier(streak)


def momentum(history: Sequence[bool]) -> float:
    """Exponentially decayed performance signal in [-1, 1].

    ``history`` holds correctness flags newest first. Only the newest
    ``MOMENTUM_HISTORY_LIMIT`` entries count, folded from oldest to newest.
    """
    recent = list(history[:MOMENTUM_HISTORY_LIMIT])
    if not recent:
        return 0.0

    value = 0.0
    for correct in reversed(recent):
        value = value * MOMENTUM_DECAY + (
            MOMENTUM_CORRECT_BOOST if correct else MOMENTUM_WRONG_PENALTY
        )
    return max(-1.0, min(1.0, value))


def next_difficulty(
    current: float,
    *,
    correct: bool,
    post_answer_streak: int,
    momentum_value: float,
) -> float:
    next_value = current
    if (
        correct
        and post_answer_streak >= MIN_STREAK_TO_INCREASE
        and momentum_value > HYSTERESIS_BAND
    ):
        next_value = current + BASE_DIFFICULTY_STEP + (momentum_value - HYSTERESIS_BAND) * MOMENTUM_STEP_WEIGHT
    elif not correct and momentum_value < -HYSTERESIS_BAND:
        next_value = current - BASE_DIFFICULTY_STEP - (abs(momentum_value) - HYSTERESIS_BAND) * MOMENTUM_STEP_WEIGHT
    return clamp_difficulty(next_value)

"""
Scoring Engine
Pure functions: points for one answer from correctness and response time
FILE: quizblitz/services/scoring.py
"""
import math
from typing import NamedTuple

from quizblitz.core.errors import ValidationError


# A correct answer always earns at least this share of the base points;
# the rest is the speed bonus.
BASE_SHARE = 0.5
SPEED_SHARE = 0.5


class ScoreResult(NamedTuple):
    points_earned: int
    streak: int


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_points(
    base_points: int,
    is_correct: bool,
    time_taken_ms: int,
    time_limit_ms: int
) -> int:
    """
    Calculate points for one answer

    A correct answer earns between 50% and 100% of base_points, scaling
    linearly with how much of the time limit was left.

    Args:
        base_points: Question's point value
        is_correct: Whether the selected option is the correct one
        time_taken_ms: Client-measured response time in milliseconds
        time_limit_ms: Question time limit in milliseconds

    Returns:
        Integer points, 0 for an incorrect answer

    Raises:
        ValidationError: If time_limit_ms is not positive

    Example:
        calculate_points(1000, True, 5000, 30000)  # 917
    """
    if time_limit_ms <= 0:
        raise ValidationError(f"time limit must be positive, got {time_limit_ms}")

    if not is_correct:
        return 0

    time_bonus = (time_limit_ms - time_taken_ms) / time_limit_ms
    time_bonus = min(1.0, max(0.0, time_bonus))

    return round_half_up(base_points * (BASE_SHARE + SPEED_SHARE * time_bonus))


def score_answer(
    base_points: int,
    is_correct: bool,
    time_taken_ms: int,
    time_limit_ms: int,
    prior_streak: int
) -> ScoreResult:
    """Points plus the player's streak after this answer"""
    points = calculate_points(base_points, is_correct, time_taken_ms, time_limit_ms)
    streak = prior_streak + 1 if is_correct else 0
    return ScoreResult(points_earned=points, streak=streak)

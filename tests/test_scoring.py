import pytest

from quizblitz.core.errors import ValidationError
from quizblitz.services.scoring import calculate_points, round_half_up, score_answer


def test_fast_correct_answer_scores_917():
    assert calculate_points(1000, True, 5000, 30000) == 917


def test_instant_answer_earns_full_points():
    assert calculate_points(1000, True, 0, 30000) == 1000


def test_answer_at_or_after_limit_earns_half():
    assert calculate_points(1000, True, 30000, 30000) == 500
    assert calculate_points(1000, True, 95000, 30000) == 500


def test_negative_time_is_clamped_to_full_bonus():
    assert calculate_points(1000, True, -500, 30000) == 1000


def test_incorrect_answer_scores_zero():
    assert calculate_points(1000, False, 0, 30000) == 0


@pytest.mark.parametrize("taken", [0, 1, 7500, 15000, 29999, 30000, 60000])
def test_correct_points_stay_within_half_and_full(taken):
    points = calculate_points(800, True, taken, 30000)
    assert 400 <= points <= 800


def test_non_positive_time_limit_is_rejected():
    with pytest.raises(ValidationError):
        calculate_points(1000, True, 100, 0)
    with pytest.raises(ValidationError):
        calculate_points(1000, False, 100, -1)


def test_rounding_is_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert calculate_points(3, True, 10, 10) == 2


def test_streak_grows_on_correct_and_resets_on_wrong():
    assert score_answer(1000, True, 0, 30000, prior_streak=2).streak == 3
    result = score_answer(1000, False, 0, 30000, prior_streak=4)
    assert result.streak == 0
    assert result.points_earned == 0

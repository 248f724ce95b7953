import numpy as np
import pytest

from models.position_model import (
    BONUS_POSITION, PRIMARY_POSITIONS, PositionBasedPredictor, PositionPrediction, enforce_min_gap
)
from models.utils.confidence_intervals import ConfidenceInterval
from utils.exceptions import InvalidDrawDataError
from utils.validation import Draw


def make_position(position, value, width=3):
    interval = ConfidenceInterval(prediction=value, lower=value - width, upper=value + width,
                                  method='bootstrap', confidence_level=0.95)
    return PositionPrediction(position=position, prediction=value, interval=interval, statistics={})


def test_ordering_repair_pushes_duplicate_slot():
    values = [10, 10, 30, 40, 50]
    predictions = [make_position(pos, v) for pos, v in zip(PRIMARY_POSITIONS, values)]
    predictions.append(make_position(BONUS_POSITION, 10))

    adjusted = PositionBasedPredictor.adjust_for_position_constraints(predictions, min_gap=2)
    primary = [p.prediction for p in adjusted[:5]]

    assert primary == [10, 12, 30, 40, 50]
    assert all(b - a >= 2 for a, b in zip(primary, primary[1:]))
    assert [p.constraint_adjusted for p in adjusted[:5]] == [False, True, False, False, False]
    # Bounds move with the point estimate
    assert (adjusted[1].interval.lower, adjusted[1].interval.upper) == (9, 15)
    assert adjusted[1].display['interval'] == '[9, 15]'


def test_ordering_repair_leaves_bonus_alone():
    predictions = [make_position(pos, 20) for pos in PRIMARY_POSITIONS]
    predictions.append(make_position(BONUS_POSITION, 20))
    adjusted = PositionBasedPredictor.adjust_for_position_constraints(predictions)
    assert adjusted[5].prediction == 20
    assert adjusted[5].constraint_adjusted is False


def test_enforce_min_gap_stays_in_domain():
    result = enforce_min_gap([60, 66, 67, 68, 69], min_gap=2, max_value=69)
    assert result[-1] <= 69
    assert all(b - a >= 2 for a, b in zip(result, result[1:]))


def test_all_malformed_draws_raise():
    bad = [Draw(primary_numbers=(1, 1, 2, 3, 4), bonus_number=5),
           Draw(primary_numbers=(1, 2, 3, 4, 70), bonus_number=5)]
    with pytest.raises(InvalidDrawDataError):
        PositionBasedPredictor(bad)


def test_malformed_draws_are_filtered(synthetic_draws):
    bad = Draw(primary_numbers=(1, 2, 3, 4, 5), bonus_number=27)
    predictor = PositionBasedPredictor(list(synthetic_draws[:20]) + [bad])
    assert len(predictor.data) == 20
    assert len(predictor.get_position_data('ball1')) == 20


def test_series_are_sorted_slots(synthetic_draws):
    predictor = PositionBasedPredictor(synthetic_draws)
    for i, draw in enumerate(synthetic_draws):
        slots = [predictor.series[pos][i] for pos in PRIMARY_POSITIONS]
        assert slots == sorted(draw.primary_numbers)
    assert predictor.position_stats['ball1'].mean < predictor.position_stats['ball5'].mean
    assert len(predictor.position_stats['bonus'].recent) == 20


@pytest.mark.parametrize("method", ['bootstrap', 'normal', 'time-weighted'])
def test_generate_prediction_is_valid(synthetic_draws, method):
    predictor = PositionBasedPredictor(synthetic_draws, rng=np.random.default_rng(3))
    predictions = predictor.generate_prediction(0.95, method, bootstrap_iterations=200)

    assert [p.position for p in predictions] == list(PRIMARY_POSITIONS) + [BONUS_POSITION]
    primary = [p.prediction for p in predictions[:5]]
    assert all(b - a >= 2 for a, b in zip(primary, primary[1:]))
    for p in predictions[:5]:
        assert 1 <= p.interval.lower <= p.prediction <= p.interval.upper <= 69
    bonus = predictions[5]
    assert 1 <= bonus.interval.lower <= bonus.prediction <= bonus.interval.upper <= 26


def test_unknown_position_raises(synthetic_draws):
    predictor = PositionBasedPredictor(synthetic_draws)
    with pytest.raises(ValueError):
        predictor.get_position_data('ball6')


def test_data_quality(synthetic_draws, short_history):
    assert PositionBasedPredictor(synthetic_draws).assess_data_quality()['sufficient'] is True
    quality = PositionBasedPredictor(short_history).assess_data_quality()
    assert quality['sufficient'] is False
    assert quality['draw_count'] == 30

    stats = PositionBasedPredictor(synthetic_draws).system_stats()
    assert stats['total_draws'] == 150
    assert set(stats['position_stats']) == set(PRIMARY_POSITIONS) | {BONUS_POSITION}

import numpy as np
import pytest

from models.base import Prediction
from models.ensemble import ENSEMBLE_METHOD, EnsembleCombiner, project_weights

NAMES = ['confidence', 'signature', 'frequency', 'sequence']


def make_prediction(primary, bonus, method):
    return Prediction(primary_numbers=tuple(primary), bonus_number=bonus, confidence=0.5, method=method)


def assert_weights_in_bounds(weights, min_weight=0.05, max_weight=0.7):
    assert sum(weights.values()) == pytest.approx(1.0)
    for weight in weights.values():
        assert min_weight - 1e-9 <= weight <= max_weight + 1e-9


def test_weighted_voting():
    combiner = EnsembleCombiner(['a', 'b'])
    predictions = {
        'a': make_prediction([1, 2, 3, 4, 5], 3, 'a'),
        'b': make_prediction([4, 5, 6, 7, 8], 9, 'b'),
    }
    combined = combiner.combine(predictions, {'a': 0.6, 'b': 0.4})
    assert combined.primary_numbers == (1, 2, 3, 4, 5)
    assert combined.bonus_number == 3
    assert combined.method == ENSEMBLE_METHOD
    assert combined.details['contributing_methods'] == 2

    heavier_b = combiner.combine(predictions, {'a': 0.3, 'b': 0.7})
    assert heavier_b.primary_numbers == (4, 5, 6, 7, 8)
    assert heavier_b.bonus_number == 9


def test_voting_ties_go_to_lower_numbers():
    combiner = EnsembleCombiner(['a', 'b'])
    predictions = {
        'a': make_prediction([10, 20, 30, 40, 50], 9, 'a'),
        'b': make_prediction([11, 21, 31, 41, 51], 3, 'b'),
    }
    combined = combiner.combine(predictions, {'a': 0.5, 'b': 0.5})
    assert combined.primary_numbers == (10, 11, 20, 21, 30)
    assert combined.bonus_number == 3


def test_combine_requires_predictions():
    with pytest.raises(ValueError):
        EnsembleCombiner(['a']).combine({})


def test_equal_initial_weights():
    combiner = EnsembleCombiner(NAMES)
    assert combiner.weights == pytest.approx({name: 0.25 for name in NAMES})


def test_update_moves_weight_towards_better_method():
    combiner = EnsembleCombiner(NAMES)
    weights = combiner.update_weights({'confidence': 1.0, 'signature': 0.0,
                                       'frequency': 0.0, 'sequence': 0.0})
    assert weights['confidence'] == pytest.approx(0.325)
    assert weights['signature'] == pytest.approx(0.225)
    assert_weights_in_bounds(weights)
    assert {s.name: s.accuracy for s in combiner.snapshot()}['confidence'] == 1.0


def test_update_is_deterministic_for_same_scores():
    scores = {'confidence': 0.4, 'signature': 0.2, 'frequency': 0.35, 'sequence': 0.1}
    first = EnsembleCombiner(NAMES)
    second = EnsembleCombiner(NAMES)
    assert first.update_weights(scores) == second.update_weights(scores)


def test_repeated_updates_stay_in_bounds():
    rng = np.random.default_rng(0)
    combiner = EnsembleCombiner(NAMES, learning_rate=1.0)
    for _ in range(50):
        scores = dict(zip(NAMES, rng.random(len(NAMES)) * 3))
        assert_weights_in_bounds(combiner.update_weights(scores))


def test_update_ignores_unknown_methods():
    combiner = EnsembleCombiner(NAMES)
    before = combiner.weights
    assert combiner.update_weights({'astrology': 1.0}) == before


def test_snapshot_is_a_copy():
    combiner = EnsembleCombiner(NAMES)
    snapshot = combiner.snapshot()
    snapshot[0].weight = 0.9
    assert combiner.weights['confidence'] == pytest.approx(0.25)


def test_project_weights_clips_into_bounds():
    projected = project_weights({'a': 10.0, 'b': 0.1, 'c': 0.1}, 0.05, 0.7)
    assert_weights_in_bounds(projected)
    assert projected['a'] == pytest.approx(0.7)


def test_project_weights_with_infeasible_bounds_normalises():
    projected = project_weights({'a': 1.0, 'b': 1.0, 'c': 1.0}, 0.5, 0.7)
    assert projected == pytest.approx({'a': 1 / 3, 'b': 1 / 3, 'c': 1 / 3})


def test_invalid_configuration():
    with pytest.raises(ValueError):
        EnsembleCombiner([])
    with pytest.raises(ValueError):
        EnsembleCombiner(['a'], initial_weights={'b': 1.0})
    with pytest.raises(ValueError):
        EnsembleCombiner(['a', 'b'], min_weight=0.8, max_weight=0.2)

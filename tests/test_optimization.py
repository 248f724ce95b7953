import numpy as np
import pytest

from models.utils.cross_validation import create_cross_validation_splits
from models.utils.optimization import (
    GridSearch, OptimizationType, ParameterOptimizer, average_performance,
    calculate_improvement, generate_random_offsets, generate_spread_offsets, quick_optimize
)
from models.utils.progress import CancellationToken
from utils.exceptions import (
    InsufficientDataError, OptimizationAlreadyRunningError, UnknownOptimizationTypeError
)
from utils.synthetic import generate_synthetic_draws


@pytest.fixture
def draws():
    return generate_synthetic_draws(60, seed=11)


def small_search(method='random', iterations=3, **extra):
    return dict({'method': method, 'iterations': iterations, 'cross_validation_folds': 3}, **extra)


def test_splits_are_chronological(synthetic_draws):
    splits = create_cross_validation_splits(synthetic_draws[:100], folds=5)
    assert len(splits) == 5
    assert [len(s.train) for s in splits] == [30, 44, 58, 72, 86]
    for split in splits:
        assert len(split.test) == 14
        assert split.train == tuple(synthetic_draws[:len(split.train)])
        assert split.test[0] == synthetic_draws[len(split.train)]


def test_splits_reject_zero_folds(synthetic_draws):
    with pytest.raises(ValueError):
        create_cross_validation_splits(synthetic_draws, folds=0)


def test_random_offsets_are_distinct_and_bounded():
    offsets = generate_random_offsets(np.random.default_rng(0), 8, (1, 68))
    assert len(set(offsets)) == 8
    assert all(1 <= o <= 68 for o in offsets)
    with pytest.raises(ValueError):
        generate_random_offsets(np.random.default_rng(0), 10, (1, 5))


@pytest.mark.parametrize("spread", range(3, 16))
def test_spread_offsets_are_distinct(spread):
    offsets = generate_spread_offsets(60, spread, 8, (1, 68))
    assert len(offsets) == 8
    assert all(1 <= o <= 68 for o in offsets)


def test_unknown_type(draws):
    with pytest.raises(UnknownOptimizationTypeError):
        ParameterOptimizer('astrology').optimize(draws, small_search())


def test_concurrent_run_rejected(draws):
    optimizer = ParameterOptimizer('offsets')
    optimizer.is_running = True
    with pytest.raises(OptimizationAlreadyRunningError):
        optimizer.optimize(draws, small_search())


def test_insufficient_data():
    optimizer = ParameterOptimizer('offsets')
    with pytest.raises(InsufficientDataError):
        optimizer.optimize(generate_synthetic_draws(3, seed=1), small_search())
    assert optimizer.is_running is False


@pytest.mark.parametrize("optimization_type", [t.value for t in OptimizationType])
def test_random_search(draws, optimization_type):
    optimizer = ParameterOptimizer(optimization_type, random_state=4)
    result = optimizer.optimize(draws, small_search())

    assert len(result.trials) == 3
    assert result.cancelled is False
    assert result.best_performance['hit_rate'] == max(t.performance['hit_rate'] for t in result.trials)
    assert result.best_performance['folds'] == 3
    assert 'fold_std' in result.best_performance
    assert set(result.improvement) == {'hit_rate_improvement', 'average_match_improvement',
                                       'confidence_interval'}
    if optimization_type in ('offsets', 'hybrid'):
        assert len(result.best_params['offsets']) == 8
    if optimization_type in ('weights', 'hybrid'):
        assert sum(result.best_params['weights'].values()) == pytest.approx(1.0)
    assert optimizer.best_params == result.best_params
    assert optimizer.is_running is False


def test_best_trial_is_first_on_ties(draws):
    result = ParameterOptimizer('offsets', random_state=1).optimize(draws, small_search(iterations=4))
    best_rate = result.best_performance['hit_rate']
    first_best = next(t for t in result.trials if t.performance['hit_rate'] == best_rate)
    assert result.best_params == first_best.params


def test_grid_search(draws):
    result = ParameterOptimizer('hybrid', random_state=2).optimize(draws, small_search('grid', 5))
    assert len(result.trials) == 5
    keys = [(tuple(t.params['offsets']), tuple(sorted(t.params['weights'].items()))) for t in result.trials]
    assert len(set(keys)) == 5
    assert result.search_method == 'grid'


def test_grid_removes_proportional_weight_duplicates():
    config = {'offset_range': (1, 68), 'num_offsets': 8, 'min_spread': 3, 'max_spread': 15,
              'weight_levels': 2}
    search = GridSearch(OptimizationType.WEIGHTS, config)
    samples = []
    while True:
        params = search.sample(len(samples))
        if params is None:
            break
        samples.append(params)
    # 2**4 grid points, of which (0.5,0.5,0.5,0.5) and (1,1,1,1) coincide
    assert len(samples) == 15


def test_bayesian_search(draws):
    result = ParameterOptimizer('weights', random_state=3).optimize(draws, small_search('bayesian', 4))
    assert len(result.trials) == 4
    assert result.search_method == 'bayesian'
    for trial in result.trials:
        assert sum(trial.params['weights'].values()) == pytest.approx(1.0)


def test_cancellation_returns_partial_result(draws):
    token = CancellationToken()
    token.cancel()
    result = ParameterOptimizer('offsets').optimize(draws, small_search(iterations=10),
                                                    cancel_token=token)
    assert result.cancelled is True
    assert len(result.trials) == 1


def test_progress_every_ten_iterations(draws):
    events = []
    ParameterOptimizer('weights', random_state=0).optimize(
        draws, small_search(iterations=12), progress_callback=events.append)
    assert [e.window_index for e in events] == [0, 10, 11]
    assert events[-1].progress == pytest.approx(100.0)
    assert events[0].current_method == 'weights'


def test_improvement_against_baseline():
    performance = {'hit_rate': 0.2, 'average_matches': 1.8}
    trials = [type('Trial', (), {'performance': {'hit_rate': rate}})() for rate in (0.1, 0.2, 0.3)]
    improvement = calculate_improvement(performance, trials)
    assert improvement['hit_rate_improvement'] == pytest.approx(100.0)
    assert improvement['average_match_improvement'] == pytest.approx(50.0)
    interval = improvement['confidence_interval']
    margin = 1.96 * np.std([0.1, 0.2, 0.3]) / np.sqrt(3)
    assert interval['lower'] == pytest.approx(0.2 - margin)
    assert interval['upper'] == pytest.approx(0.2 + margin)


def test_average_performance():
    folds = [
        {'hit_rate': 0.2, 'average_matches': 1.0, 'max_matches': 3, 'consistency': 0.5, 'total_predictions': 10},
        {'hit_rate': 0.4, 'average_matches': 2.0, 'max_matches': 4, 'consistency': 0.7, 'total_predictions': 10},
    ]
    averaged = average_performance(folds)
    assert averaged['hit_rate'] == pytest.approx(0.3)
    assert averaged['fold_std'] == pytest.approx(0.1)
    assert averaged['max_matches'] == 4
    assert averaged['total_predictions'] == 20
    assert average_performance([])['folds'] == 0


def test_quick_optimize(draws):
    result = quick_optimize(draws, 'offsets', iterations=2, random_state=5)
    assert len(result.trials) == 2
    assert result.best_performance['folds'] == 3

from unittest.mock import MagicMock

import pytest

from config.options import ValidationOptions
from models.base import MethodKind, Prediction, PredictionMethod, RandomContext
from models.utils.progress import CancellationToken
from scripts.walk_forward import ValidatorState, WalkForwardValidator
from utils.exceptions import (
    InsufficientDataError, PredictionFailedError, ValidationAlreadyRunningError
)

SCENARIO_OPTIONS = {
    'minTrainingSize': 100,
    'testWindowSize': 20,
    'stepSize': 10,
    'bootstrapIterations': 50,
}


class SpyMethod(PredictionMethod):
    """Records every training context it is given."""

    kind = MethodKind.FREQUENCY

    def __init__(self, on_call=None):
        super().__init__(random_context=RandomContext.from_seed(0))
        self.contexts = []
        self.on_call = on_call

    def _predict(self, training_data, params):
        self.contexts.append(training_data)
        if self.on_call is not None:
            self.on_call(len(self.contexts))
        return Prediction(primary_numbers=(1, 2, 3, 4, 5), bonus_number=1,
                          confidence=0.5, method=self.name)


class FailingMethod(PredictionMethod):
    kind = MethodKind.SEQUENCE

    def _predict(self, training_data, params):
        raise PredictionFailedError(self.name, "model unavailable")


def test_scenario_window_count(synthetic_draws):
    options = ValidationOptions.from_dict(SCENARIO_OPTIONS)
    windows = WalkForwardValidator.generate_windows(len(synthetic_draws), options)
    assert len(windows) == 4
    assert windows[-1].test_end == 150


def test_window_invariants():
    options = ValidationOptions(min_training_size=50, test_window_size=15, step_size=7,
                                max_validation_periods=100)
    windows = WalkForwardValidator.generate_windows(300, options)
    assert windows[0].training_start == 0
    for window in windows:
        assert window.test_start == window.training_end
        assert window.training_size == 50
        assert window.test_size == 15
        assert window.test_end <= 300
    for previous, current in zip(windows, windows[1:]):
        assert current.training_start == previous.training_start + 7


def test_window_count_is_capped():
    options = ValidationOptions(min_training_size=100, test_window_size=50, step_size=10,
                                max_validation_periods=3)
    assert len(WalkForwardValidator.generate_windows(1000, options)) == 3


def test_insufficient_data_fails_before_work(synthetic_draws):
    spy = SpyMethod()
    validator = WalkForwardValidator(methods=[spy])
    with pytest.raises(InsufficientDataError):
        validator.run(synthetic_draws[:119], SCENARIO_OPTIONS)
    assert spy.contexts == []
    assert validator.state is ValidatorState.IDLE


def test_training_context_never_includes_current_draw(synthetic_draws):
    spy = SpyMethod()
    validator = WalkForwardValidator(methods=[spy])
    results = validator.run(synthetic_draws, SCENARIO_OPTIONS)

    expected = []
    for window in results.windows:
        for i in range(window.test_size):
            expected.append(tuple(synthetic_draws[window.training_start:window.test_start + i]))
    assert spy.contexts == expected

    for window_index in range(len(results.windows)):
        lengths = [len(c) for c in spy.contexts[window_index * 20:(window_index + 1) * 20]]
        assert lengths == list(range(100, 120))


def test_failures_are_counted_not_fatal(synthetic_draws):
    validator = WalkForwardValidator(methods=[SpyMethod(), FailingMethod()])
    results = validator.run(synthetic_draws, SCENARIO_OPTIONS)

    assert results.failures == {'frequency': 0, 'sequence': 80}
    assert results.methods['sequence'].accuracy.total_predictions == 0
    assert results.methods['frequency'].accuracy.total_predictions == 80
    assert validator.state is ValidatorState.COMPLETED


def test_cancellation_returns_partial_results(synthetic_draws):
    token = CancellationToken()

    def cancel_after_five(calls):
        if calls == 5:
            token.cancel()

    spy = SpyMethod(on_call=cancel_after_five)
    validator = WalkForwardValidator(methods=[spy])
    before = validator.combiner.weights
    results = validator.run(synthetic_draws, SCENARIO_OPTIONS, cancel_token=token)

    assert results.cancelled is True
    assert len(results.methods['frequency'].records) == 5
    assert results.summary['cancelled'] is True
    assert validator.state is ValidatorState.CANCELLED
    assert validator.combiner.weights == before


def test_progress_events(synthetic_draws):
    events = []
    validator = WalkForwardValidator(methods=[SpyMethod(), FailingMethod()])
    validator.run(synthetic_draws, SCENARIO_OPTIONS, progress_callback=events.append)

    assert len(events) == 8
    assert events[-1].progress == pytest.approx(100.0)
    assert [e.window_index for e in events[:4]] == [0, 1, 2, 3]
    assert all(e.total_windows == 4 for e in events)
    assert events[0].to_message()['currentMethod'] == 'frequency'


def test_failing_progress_callback_does_not_abort(synthetic_draws):
    def broken(event):
        raise RuntimeError("display went away")

    validator = WalkForwardValidator(methods=[SpyMethod()])
    results = validator.run(synthetic_draws, SCENARIO_OPTIONS, progress_callback=broken)
    assert len(results.methods['frequency'].records) == 80


def test_already_running(synthetic_draws):
    validator = WalkForwardValidator(methods=[SpyMethod()])
    validator.state = ValidatorState.RUNNING
    with pytest.raises(ValidationAlreadyRunningError):
        validator.run(synthetic_draws, SCENARIO_OPTIONS)


def test_unexpected_error_marks_run_failed(synthetic_draws, monkeypatch):
    validator = WalkForwardValidator(methods=[SpyMethod()])

    def boom(results):
        raise RuntimeError("summary failed")

    monkeypatch.setattr(validator, 'generate_summary', boom)
    with pytest.raises(RuntimeError):
        validator.run(synthetic_draws, SCENARIO_OPTIONS)
    assert validator.state is ValidatorState.FAILED


def test_full_run_with_default_methods(synthetic_draws):
    validator = WalkForwardValidator(random_state=1)
    initial_weights = validator.combiner.weights
    validator.combiner.combine = MagicMock(wraps=validator.combiner.combine)

    results = validator.run(synthetic_draws, SCENARIO_OPTIONS)

    assert len(results.windows) == 4
    assert set(results.methods) == {'confidence', 'signature', 'frequency', 'sequence'}
    for result in results.methods.values():
        assert len(result.records) == 80
        assert result.failures == 0
    assert len(results.ensemble.records) == 80

    # Ensemble votes with the weights from before the run
    for call in validator.combiner.combine.call_args_list:
        assert call.args[1] == initial_weights

    weights = {state.name: state.weight for state in results.weights}
    assert sum(weights.values()) == pytest.approx(1.0)
    assert all(0.05 - 1e-9 <= w <= 0.7 + 1e-9 for w in weights.values())

    summary = results.summary
    assert len(summary['method_ranking']) == 4
    scores = [entry['overall_score'] for entry in summary['method_ranking']]
    assert scores == sorted(scores, reverse=True)
    assert summary['key_findings'][-1] == 'Analysis based on 320 total predictions'
    assert summary['validation_periods'] == 4
    assert len(summary['significance']) == 6

    confidence_summary = results.methods['confidence'].accuracy
    assert confidence_summary.calibration is not None

    status = validator.status()
    assert status['state'] == 'completed'
    assert status['has_historical_results'] is True
    assert len(validator.accuracy_history) == 1


def test_without_ensemble_or_adaptive_weighting(synthetic_draws):
    validator = WalkForwardValidator(methods=[SpyMethod()])
    before = validator.combiner.weights
    options = dict(SCENARIO_OPTIONS, includeEnsemble=False, adaptiveWeighting=False)
    results = validator.run(synthetic_draws, options)
    assert results.ensemble is None
    assert validator.combiner.weights == before


def test_export_results(synthetic_draws):
    validator = WalkForwardValidator(methods=[SpyMethod()])
    results = validator.run(synthetic_draws, SCENARIO_OPTIONS)
    exported = validator.export_results(results, include_records=True)

    assert exported['method_details'][0]['sample_size'] == 80
    assert exported['test_parameters']['min_training_size'] == 100
    assert len(exported['records']) == 160
    assert exported['ensemble']['total_predictions'] == 80


def test_duplicate_method_names_rejected():
    with pytest.raises(ValueError):
        WalkForwardValidator(methods=[SpyMethod(), SpyMethod()])

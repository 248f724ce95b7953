"""
Walk-forward validation of prediction methods.

This module contains the WalkForwardValidator class that implements:
1. Chronological validation windows (fixed training length, sliding start)
2. Expanding context inside each test segment so no test draw leaks
3. Per-method accuracy aggregation and the weighted ensemble
4. Run summaries, status and export for reporting collaborators
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union
import logging
import threading

from config.model_config import METHOD_WEIGHTS
from config.options import ScoringPolicy, ValidationOptions
from models.base import MethodKind, Prediction, PredictionMethod, RandomContext
from models.ensemble import ENSEMBLE_METHOD, EnsembleCombiner, MethodState
from models.registry import default_methods
from models.utils.model_metrics import (
    AccuracyMetrics, AccuracySummary, PredictionRecord, pairwise_significance, records_to_frame
)
from models.utils.progress import CancellationToken, ProgressCallback, ProgressEvent, emit_progress
from utils.exceptions import InsufficientDataError, ValidationAlreadyRunningError
from utils.validation import Draw

logger = logging.getLogger(__name__)


class ValidatorState(str, Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    FAILED = 'failed'


@dataclass(frozen=True)
class ValidationWindow:
    """Half-open index ranges of one training segment and the test segment after it."""

    period: int
    training_start: int
    training_end: int
    test_start: int
    test_end: int

    @property
    def training_size(self) -> int:
        return self.training_end - self.training_start

    @property
    def test_size(self) -> int:
        return self.test_end - self.test_start


@dataclass
class MethodResult:
    name: str
    display_name: str
    records: List[PredictionRecord]
    accuracy: AccuracySummary
    performance: Dict[str, Any] = field(default_factory=dict)
    failures: int = 0


@dataclass
class ValidationResults:
    """Everything a run produced; the only structure exporters should read."""

    methods: Dict[str, MethodResult]
    ensemble: Optional[MethodResult]
    summary: Dict[str, Any]
    weights: List[MethodState]
    windows: List[ValidationWindow]
    options: ValidationOptions
    cancelled: bool = False
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def failures(self) -> Dict[str, int]:
        return {name: result.failures for name, result in self.methods.items()}

    @property
    def total_predictions(self) -> int:
        return sum(len(result.records) for result in self.methods.values())


class WalkForwardValidator:
    """
    Compares prediction methods with time-respecting walk-forward validation.

    One instance runs one validation at a time. Method weights live in the
    ensemble combiner and change only through its once-per-run update.
    """

    def __init__(self, methods: Optional[Sequence[PredictionMethod]] = None,
                 combiner: Optional[EnsembleCombiner] = None,
                 random_state: Optional[int] = None,
                 policy: Optional[ScoringPolicy] = None):
        self.random_context = RandomContext.from_seed(random_state)
        self.methods = list(methods) if methods is not None else default_methods(self.random_context)
        if not self.methods:
            raise ValueError("WalkForwardValidator needs at least one prediction method")

        names = [m.name for m in self.methods]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate method names: {names}")

        if combiner is None:
            initial = {n: METHOD_WEIGHTS[n] for n in names if n in METHOD_WEIGHTS}
            combiner = EnsembleCombiner(names, initial_weights=initial or None)
        self.combiner = combiner
        self.policy = policy or ScoringPolicy()

        self.state = ValidatorState.IDLE
        self.progress = 0.0
        self.data_size = 0
        self.accuracy_history: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    @staticmethod
    def generate_windows(data_length: int, options: ValidationOptions) -> List[ValidationWindow]:
        """
        Windows of `min_training_size` training draws followed by
        `test_window_size` test draws, starting at index 0 and advancing by
        `step_size` until the data runs out or `max_validation_periods` is hit.
        """
        windows = []
        start = 0
        while len(windows) < options.max_validation_periods:
            training_end = start + options.min_training_size
            test_end = training_end + options.test_window_size
            if test_end > data_length:
                break
            windows.append(ValidationWindow(
                period=len(windows) + 1,
                training_start=start,
                training_end=training_end,
                test_start=training_end,
                test_end=test_end,
            ))
            start += options.step_size
        return windows

    @staticmethod
    def method_parameters(options: ValidationOptions) -> Dict[str, Dict[str, Any]]:
        return {
            MethodKind.CONFIDENCE.value: {
                'confidence_level': options.confidence_level,
                'interval_method': options.method,
                'bootstrap_iterations': options.bootstrap_iterations,
            },
        }

    def run(self, historical_data: Sequence[Draw],
            options: Union[ValidationOptions, Mapping[str, Any], None] = None,
            progress_callback: Optional[ProgressCallback] = None,
            cancel_token: Optional[CancellationToken] = None) -> ValidationResults:
        """
        Run walk-forward validation over every registered method.

        Args:
            historical_data: Draws in chronological order
            options: ValidationOptions or a flat mapping of option keys
            progress_callback: Receives a ProgressEvent per (method, window)
            cancel_token: Polled after every test draw

        Returns:
            ValidationResults; partial with `cancelled=True` when the token fired

        Raises:
            InsufficientDataError: fewer draws than one training plus test segment
            ValidationAlreadyRunningError: this instance is already running
        """
        options = ValidationOptions.from_dict(options)
        data = tuple(historical_data)

        with self._lock:
            if self.state is ValidatorState.RUNNING:
                raise ValidationAlreadyRunningError("Accuracy test is already running")
            required = options.min_training_size + options.test_window_size
            if len(data) < required:
                raise InsufficientDataError(required, len(data))
            self.state = ValidatorState.RUNNING
            self.progress = 0.0
            self.data_size = len(data)

        try:
            results = self._execute(data, options, progress_callback, cancel_token)
        except Exception as e:
            self.state = ValidatorState.FAILED
            logger.error(f"Walk-forward validation failed: {str(e)}")
            raise

        self.state = ValidatorState.CANCELLED if results.cancelled else ValidatorState.COMPLETED
        return results

    def _execute(self, data: Tuple[Draw, ...], options: ValidationOptions,
                 progress_callback: Optional[ProgressCallback],
                 cancel_token: Optional[CancellationToken]) -> ValidationResults:
        started_at = datetime.now()
        windows = self.generate_windows(len(data), options)
        metrics = AccuracyMetrics(self.policy, options.confidence_level)
        parameters = self.method_parameters(options)
        voting_weights = self.combiner.weights

        logger.info(f"Starting walk-forward validation: {len(self.methods)} methods, "
                    f"{len(windows)} windows, {len(data)} draws")

        total_steps = len(windows) * len(self.methods)
        step = 0
        cancelled = False
        method_results: Dict[str, MethodResult] = {}
        predictions_by_draw: Dict[Tuple[int, int], Dict[str, Prediction]] = {}

        for method in self.methods:
            records: List[PredictionRecord] = []
            failures = 0
            logger.info(f"Testing method: {method.name}")

            for window in windows:
                for i in range(window.test_size):
                    draw_index = window.test_start + i
                    context = data[window.training_start:draw_index]
                    actual = data[draw_index]
                    try:
                        prediction = method.predict(context, parameters.get(method.name))
                    except Exception as e:
                        failures += 1
                        logger.warning(f"{method.name} failed on draw {draw_index} "
                                       f"(period {window.period}): {str(e)}")
                    else:
                        records.append(metrics.score_prediction(
                            prediction, actual, method.name, window.period, draw_index))
                        predictions_by_draw.setdefault((window.period, draw_index), {})[method.name] = prediction

                    if cancel_token is not None and cancel_token.is_cancelled:
                        cancelled = True
                        break

                step += 1
                self.progress = step / total_steps * 100
                emit_progress(progress_callback, ProgressEvent(
                    progress=self.progress,
                    current_method=method.name,
                    window_index=window.period - 1,
                    total_windows=len(windows),
                ))
                if cancelled:
                    break

            method_results[method.name] = MethodResult(
                name=method.name,
                display_name=method.display_name or method.name,
                records=records,
                accuracy=metrics.summarize(records),
                performance=metrics.expected_value_report(records),
                failures=failures,
            )
            if failures:
                logger.warning(f"{method.name}: {failures} predictions failed")
            if cancelled:
                logger.info(f"Validation cancelled during {method.name}")
                break

        ensemble = None
        if options.include_ensemble and predictions_by_draw:
            ensemble = self._ensemble_result(data, predictions_by_draw, voting_weights, metrics)

        if options.adaptive_weighting and not cancelled:
            scores = {name: result.accuracy.overall_score
                      for name, result in method_results.items()
                      if result.accuracy.total_predictions > 0}
            if scores:
                self.combiner.update_weights(scores)

        results = ValidationResults(
            methods=method_results,
            ensemble=ensemble,
            summary={},
            weights=self.combiner.snapshot(),
            windows=windows,
            options=options,
            cancelled=cancelled,
            started_at=started_at,
            finished_at=datetime.now(),
        )
        results.summary = self.generate_summary(results)

        self.accuracy_history.append({
            'timestamp': results.finished_at,
            'summary': results.summary,
            'method_weights': self.combiner.weights,
        })
        logger.info(f"Walk-forward validation {'cancelled' if cancelled else 'completed'}: "
                    f"{results.total_predictions} predictions")
        return results

    def _ensemble_result(self, data: Tuple[Draw, ...],
                         predictions_by_draw: Dict[Tuple[int, int], Dict[str, Prediction]],
                         voting_weights: Dict[str, float],
                         metrics: AccuracyMetrics) -> MethodResult:
        records = []
        for (period, draw_index), predictions in sorted(predictions_by_draw.items()):
            combined = self.combiner.combine(predictions, voting_weights)
            records.append(metrics.score_prediction(
                combined, data[draw_index], ENSEMBLE_METHOD, period, draw_index))

        return MethodResult(
            name=ENSEMBLE_METHOD,
            display_name='Ensemble',
            records=records,
            accuracy=metrics.summarize(records),
            performance=metrics.expected_value_report(records),
        )

    def generate_summary(self, results: ValidationResults) -> Dict[str, Any]:
        """Ranking of methods by overall score plus headline findings."""
        weights = {state.name: state.weight for state in results.weights}
        ranking = []
        for name, result in results.methods.items():
            accuracy = result.accuracy
            ranking.append({
                'name': name,
                'display_name': result.display_name,
                'overall_score': accuracy.overall_score,
                'average_matches': accuracy.average_matches,
                'hit_rate': accuracy.hit_rate,
                'win_rate': accuracy.win_rate,
                'consistency': accuracy.consistency_score,
                'weight': weights.get(name, 0.0),
                'total_predictions': accuracy.total_predictions,
            })
        ranking.sort(key=lambda entry: entry['overall_score'], reverse=True)

        best_method = ranking[0] if ranking and ranking[0]['overall_score'] > 0 else None
        ensemble = None
        if results.ensemble is not None:
            ensemble = {
                'overall_score': results.ensemble.accuracy.overall_score,
                'average_matches': results.ensemble.accuracy.average_matches,
                'hit_rate': results.ensemble.accuracy.hit_rate,
            }

        duration = 0.0
        if results.started_at and results.finished_at:
            duration = (results.finished_at - results.started_at).total_seconds()

        return {
            'best_method': best_method,
            'method_ranking': ranking,
            'ensemble': ensemble,
            'total_predictions': results.total_predictions,
            'validation_periods': len(results.windows),
            'test_duration': duration,
            'adaptive_weights': weights,
            'significance': pairwise_significance({n: r.records for n, r in results.methods.items()}),
            'key_findings': self.key_findings(ranking, ensemble),
            'cancelled': results.cancelled,
        }

    @staticmethod
    def key_findings(ranking: List[Dict[str, Any]], ensemble: Optional[Dict[str, Any]]) -> List[str]:
        findings = []
        if ranking:
            best = ranking[0]
            findings.append(f"Best method: {best['display_name']} ({best['overall_score'] * 100:.1f}% score)")
            findings.append(f"Hit rate: {best['hit_rate'] * 100:.1f}% (3+ matches)")
            findings.append(f"Average matches: {best['average_matches']:.2f} per draw")

        if ensemble and ensemble['overall_score'] > 0:
            findings.append(f"Ensemble method achieved {ensemble['overall_score'] * 100:.1f}% overall score")

        total = sum(entry['total_predictions'] for entry in ranking)
        findings.append(f"Analysis based on {total} total predictions")
        return findings

    def status(self) -> Dict[str, Any]:
        return {
            'state': self.state.value,
            'is_running': self.state is ValidatorState.RUNNING,
            'progress': self.progress,
            'methods_registered': len(self.methods),
            'data_size': self.data_size,
            'adaptive_weights': self.combiner.weights,
            'has_historical_results': len(self.accuracy_history) > 0,
        }

    def export_results(self, results: ValidationResults, include_records: bool = False) -> Dict[str, Any]:
        """
        Plain-dict export of a run.

        Args:
            results: Output of `run`
            include_records: Add a pandas DataFrame of every prediction record
        """
        exported = {
            'summary': results.summary,
            'method_details': [{
                'method': name,
                'accuracy': result.accuracy.to_dict(),
                'performance': result.performance,
                'sample_size': len(result.records),
                'failures': result.failures,
            } for name, result in results.methods.items()],
            'ensemble': results.ensemble.accuracy.to_dict() if results.ensemble else None,
            'weights': {state.name: state.weight for state in results.weights},
            'cancelled': results.cancelled,
            'export_timestamp': datetime.now().isoformat(),
            'test_parameters': results.options.to_dict(),
        }
        if include_records:
            records = [r for result in results.methods.values() for r in result.records]
            if results.ensemble:
                records.extend(results.ensemble.records)
            exported['records'] = records_to_frame(records)
        return exported

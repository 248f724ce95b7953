"""Parameter optimization for the offset and signature prediction methods."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence
import logging
import math
import threading

import numpy as np
import optuna
from sklearn.model_selection import ParameterGrid

from config.model_config import OPTIMIZATION_CONFIG, OPTIMIZATION_BASELINE, SCORING_CONFIG
from utils.exceptions import (
    InsufficientDataError, OptimizationAlreadyRunningError, UnknownOptimizationTypeError
)
from utils.validation import Draw
from .cross_validation import CrossValidationSplit, create_cross_validation_splits
from .model_metrics import count_matches, summarize_matches
from .progress import CancellationToken, ProgressCallback, ProgressEvent, emit_progress

logger = logging.getLogger(__name__)

SIGNATURE_WEIGHT_KEYS = ('prime', 'digital_root', 'mod5', 'grid_position')
OFFSET_START_STEP = 4


class OptimizationType(str, Enum):
    OFFSETS = 'offsets'
    WEIGHTS = 'weights'
    HYBRID = 'hybrid'


class SearchMethod(str, Enum):
    RANDOM = 'random'
    GRID = 'grid'
    BAYESIAN = 'bayesian'


@dataclass(frozen=True)
class OptimizationTrial:
    iteration: int
    params: Dict[str, Any]
    performance: Dict[str, Any]


@dataclass
class OptimizationResult:
    optimization_type: str
    search_method: str
    best_params: Optional[Dict[str, Any]]
    best_performance: Optional[Dict[str, Any]]
    trials: List[OptimizationTrial] = field(default_factory=list)
    improvement: Optional[Dict[str, Any]] = None
    cancelled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.optimization_type,
            'search_method': self.search_method,
            'best_params': self.best_params,
            'best_performance': self.best_performance,
            'improvement': self.improvement,
            'trials': len(self.trials),
            'cancelled': self.cancelled,
        }


def generate_random_offsets(rng: np.random.Generator, num_offsets: int = 8,
                            offset_range=(1, 68)) -> List[int]:
    """Distinct offsets drawn uniformly from the inclusive range, sorted."""
    low, high = offset_range
    if num_offsets > high - low + 1:
        raise ValueError(f"Cannot draw {num_offsets} distinct offsets from {offset_range}")
    return sorted(int(v) for v in rng.choice(np.arange(low, high + 1), size=num_offsets, replace=False))


def generate_spread_offsets(start: int, spread: int, num_offsets: int = 8,
                            offset_range=(1, 68)) -> List[int]:
    """Evenly spaced offsets from `start`, wrapping inside the range."""
    low, high = offset_range
    span = high - low + 1
    return sorted({low + (start - low + k * spread) % span for k in range(num_offsets)})


def normalize_weights(weights: Dict[str, float]) -> Dict[str, float]:
    total = sum(weights.values())
    if total <= 0:
        return {k: 1.0 / len(weights) for k in weights}
    return {k: float(v) / total for k, v in weights.items()}


def generate_random_weights(rng: np.random.Generator) -> Dict[str, float]:
    """Uniform draw per signature component, normalised to sum to 1."""
    return normalize_weights({k: float(rng.random()) for k in SIGNATURE_WEIGHT_KEYS})


class RandomSearch:
    """Independent uniform samples of the search space."""

    def __init__(self, optimization_type: OptimizationType, config: Dict[str, Any],
                 rng: np.random.Generator):
        self.optimization_type = optimization_type
        self.config = config
        self.rng = rng

    def sample(self, iteration: int) -> Optional[Dict[str, Any]]:
        params = {}
        if self.optimization_type in (OptimizationType.OFFSETS, OptimizationType.HYBRID):
            params['offsets'] = generate_random_offsets(
                self.rng, self.config['num_offsets'], self.config['offset_range'])
        if self.optimization_type in (OptimizationType.WEIGHTS, OptimizationType.HYBRID):
            params['weights'] = generate_random_weights(self.rng)
        return params

    def observe(self, params: Dict[str, Any], performance: Dict[str, Any]) -> None:
        pass


class GridSearch:
    """
    Walks a ParameterGrid in order.

    Offsets are parameterised by a start and an even spread; weights by a
    number of levels per component, with proportional duplicates removed.
    """

    def __init__(self, optimization_type: OptimizationType, config: Dict[str, Any]):
        self.optimization_type = optimization_type
        self.config = config
        low, high = config['offset_range']
        grid = {}
        if optimization_type in (OptimizationType.OFFSETS, OptimizationType.HYBRID):
            grid['start'] = list(range(low, high + 1, OFFSET_START_STEP))
            grid['spread'] = list(range(config['min_spread'], config['max_spread'] + 1))
        if optimization_type in (OptimizationType.WEIGHTS, OptimizationType.HYBRID):
            levels = [float(v) for v in np.linspace(1.0 / config['weight_levels'], 1.0,
                                                     config['weight_levels'])]
            for key in SIGNATURE_WEIGHT_KEYS:
                grid[key] = levels
        self.grid = ParameterGrid(grid)
        self._seen = set()
        self._position = 0

    def __len__(self) -> int:
        return len(self.grid)

    def _to_params(self, point: Dict[str, Any]) -> Dict[str, Any]:
        params = {}
        if 'start' in point:
            params['offsets'] = generate_spread_offsets(
                point['start'], point['spread'], self.config['num_offsets'], self.config['offset_range'])
        if SIGNATURE_WEIGHT_KEYS[0] in point:
            params['weights'] = normalize_weights({k: point[k] for k in SIGNATURE_WEIGHT_KEYS})
        return params

    def _key(self, params: Dict[str, Any]):
        offsets = tuple(params.get('offsets', ()))
        weights = tuple(round(params['weights'][k], 9) for k in SIGNATURE_WEIGHT_KEYS) \
            if 'weights' in params else ()
        return offsets, weights

    def sample(self, iteration: int) -> Optional[Dict[str, Any]]:
        while self._position < len(self.grid):
            params = self._to_params(self.grid[self._position])
            self._position += 1
            key = self._key(params)
            if key not in self._seen:
                self._seen.add(key)
                return params
        return None

    def observe(self, params: Dict[str, Any], performance: Dict[str, Any]) -> None:
        pass


class BayesianSearch:
    """Optuna TPE search driven through the ask/tell interface, maximising hit rate."""

    def __init__(self, optimization_type: OptimizationType, config: Dict[str, Any],
                 seed: Optional[int] = None):
        optuna.logging.set_verbosity(optuna.logging.WARNING)
        self.optimization_type = optimization_type
        self.config = config
        self.study = optuna.create_study(direction='maximize',
                                         sampler=optuna.samplers.TPESampler(seed=seed))
        self._trial = None

    def sample(self, iteration: int) -> Optional[Dict[str, Any]]:
        trial = self.study.ask()
        self._trial = trial
        params = {}
        if self.optimization_type in (OptimizationType.OFFSETS, OptimizationType.HYBRID):
            low, high = self.config['offset_range']
            start = trial.suggest_int('start', low, high)
            spread = trial.suggest_int('spread', self.config['min_spread'], self.config['max_spread'])
            params['offsets'] = generate_spread_offsets(
                start, spread, self.config['num_offsets'], self.config['offset_range'])
        if self.optimization_type in (OptimizationType.WEIGHTS, OptimizationType.HYBRID):
            weights = {k: trial.suggest_float(f'weight_{k}', 1e-6, 1.0) for k in SIGNATURE_WEIGHT_KEYS}
            params['weights'] = normalize_weights(weights)
        return params

    def observe(self, params: Dict[str, Any], performance: Dict[str, Any]) -> None:
        if self._trial is not None:
            self.study.tell(self._trial, performance['hit_rate'])
            self._trial = None


def average_performance(fold_results: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """Mean of fold metrics plus the spread of hit rate across folds."""
    if not fold_results:
        return {**summarize_matches([]), 'fold_std': 0.0, 'folds': 0}

    hit_rates = np.array([r['hit_rate'] for r in fold_results])
    return {
        'hit_rate': float(hit_rates.mean()),
        'average_matches': float(np.mean([r['average_matches'] for r in fold_results])),
        'max_matches': int(max(r['max_matches'] for r in fold_results)),
        'consistency': float(np.mean([r['consistency'] for r in fold_results])),
        'total_predictions': int(sum(r['total_predictions'] for r in fold_results)),
        'fold_std': float(hit_rates.std()),
        'folds': len(fold_results),
    }


def calculate_improvement(best_performance: Dict[str, Any], trials: Sequence[OptimizationTrial],
                          baseline: Optional[Dict[str, float]] = None) -> Dict[str, Any]:
    """Relative improvement over the fixed baseline and a 95% interval over trial hit rates."""
    baseline = baseline or OPTIMIZATION_BASELINE
    hit_rates = np.array([t.performance['hit_rate'] for t in trials], dtype=float)
    mean = float(hit_rates.mean()) if len(hit_rates) else 0.0
    std = float(hit_rates.std()) if len(hit_rates) else 0.0
    margin = 1.96 * std / math.sqrt(len(hit_rates)) if len(hit_rates) else 0.0

    return {
        'hit_rate_improvement': (best_performance['hit_rate'] - baseline['hit_rate'])
                                / baseline['hit_rate'] * 100,
        'average_match_improvement': (best_performance['average_matches'] - baseline['average_matches'])
                                     / baseline['average_matches'] * 100,
        'confidence_interval': {
            'lower': mean - margin,
            'upper': mean + margin,
            'mean': mean,
            'std_dev': std,
        },
    }


class ParameterOptimizer:
    """
    Cross-validated search over offsets, signature weights, or both.

    One instance runs one optimization at a time.
    """

    def __init__(self, optimization_type: str = 'hybrid', random_state: Optional[int] = None):
        self.optimization_type = optimization_type
        self.random_state = random_state
        self.results: List[OptimizationTrial] = []
        self.best_params: Optional[Dict[str, Any]] = None
        self.is_running = False
        self._lock = threading.Lock()

    def _resolve_type(self) -> OptimizationType:
        try:
            return OptimizationType(self.optimization_type)
        except ValueError:
            raise UnknownOptimizationTypeError(self.optimization_type) from None

    def _build_method(self, optimization_type: OptimizationType):
        # Imported here; models.registry imports this package
        from models.base import RandomContext
        from models.registry import create_method

        context = RandomContext.from_seed(self.random_state)
        if optimization_type is OptimizationType.OFFSETS:
            return create_method('offset', random_context=context)
        if optimization_type is OptimizationType.WEIGHTS:
            return create_method('signature', {'candidates': 'domain'}, random_context=context)
        return create_method('hybrid', random_context=context)

    def _make_search(self, optimization_type: OptimizationType, method: SearchMethod,
                     config: Dict[str, Any]):
        if method is SearchMethod.GRID:
            return GridSearch(optimization_type, config)
        if method is SearchMethod.BAYESIAN:
            return BayesianSearch(optimization_type, config, seed=self.random_state)
        return RandomSearch(optimization_type, config, np.random.default_rng(self.random_state))

    def evaluate_parameters(self, method, params: Dict[str, Any],
                            splits: Sequence[CrossValidationSplit]) -> Dict[str, Any]:
        """Run `method` with `params` over every fold and average the fold metrics."""
        fold_results = []
        failures = 0
        for split in splits:
            matches = []
            for i, actual in enumerate(split.test):
                context = split.train + split.test[:i]
                try:
                    prediction = method.predict(context, params)
                except Exception as e:
                    failures += 1
                    logger.debug(f"Prediction failed in fold {split.fold}, draw {i}: {str(e)}")
                    continue
                matches.append(count_matches(prediction.primary_numbers, actual.primary_numbers))
            fold_results.append(summarize_matches(matches, SCORING_CONFIG['hit_threshold']))

        if failures:
            logger.warning(f"{failures} predictions failed while evaluating {params}")
        return average_performance(fold_results)

    def optimize(self, historical_data: Sequence[Draw], search_params: Optional[Dict[str, Any]] = None,
                 progress_callback: Optional[ProgressCallback] = None,
                 cancel_token: Optional[CancellationToken] = None) -> OptimizationResult:
        """
        Search the parameter space and return the best cross-validated configuration.

        Args:
            historical_data: Draws in chronological order
            search_params: Overrides for OPTIMIZATION_CONFIG (method, iterations,
                cross_validation_folds, num_offsets, offset_range, ...)
            progress_callback: Receives a ProgressEvent every few iterations
            cancel_token: Polled after each iteration

        Returns:
            OptimizationResult; `cancelled` is set when the token stopped the search
        """
        with self._lock:
            if self.is_running:
                raise OptimizationAlreadyRunningError("Optimization already in progress")
            self.is_running = True

        try:
            optimization_type = self._resolve_type()
            config = {**OPTIMIZATION_CONFIG, **(search_params or {})}
            search_method = SearchMethod(config['method'])
            iterations = int(config['iterations'])
            folds = int(config['cross_validation_folds'])
            fraction = float(config['min_training_fraction'])

            splits = create_cross_validation_splits(historical_data, folds, fraction)
            if len(splits) < folds or not splits[0].train:
                required = max(math.ceil(folds / (1 - fraction)), math.ceil(1 / fraction))
                raise InsufficientDataError(required, len(historical_data))

            logger.info(f"Starting {optimization_type.value} optimization with "
                        f"{search_method.value} search ({iterations} iterations, {len(splits)} folds)")

            method = self._build_method(optimization_type)
            search = self._make_search(optimization_type, search_method, config)
            self.results = []
            cancelled = False
            interval = max(1, int(config['progress_interval']))

            for i in range(iterations):
                params = search.sample(i)
                if params is None:
                    logger.info(f"Search space exhausted after {i} iterations")
                    break
                performance = self.evaluate_parameters(method, params, splits)
                search.observe(params, performance)
                self.results.append(OptimizationTrial(iteration=i + 1, params=params,
                                                      performance=performance))

                if i % interval == 0 or i == iterations - 1:
                    logger.info(f"{optimization_type.value} optimization progress: {i + 1}/{iterations}")
                    emit_progress(progress_callback, ProgressEvent(
                        progress=(i + 1) / iterations * 100,
                        current_method=optimization_type.value,
                        window_index=i,
                        total_windows=iterations,
                    ))

                if cancel_token is not None and cancel_token.is_cancelled:
                    logger.info(f"Optimization cancelled after {i + 1} iterations")
                    cancelled = True
                    break

            return self._build_result(optimization_type, search_method, cancelled)
        finally:
            self.is_running = False

    def _build_result(self, optimization_type: OptimizationType, search_method: SearchMethod,
                      cancelled: bool) -> OptimizationResult:
        if not self.results:
            return OptimizationResult(optimization_type.value, search_method.value,
                                      None, None, [], None, cancelled)

        best = self.results[0]
        for trial in self.results[1:]:
            if trial.performance['hit_rate'] > best.performance['hit_rate']:
                best = trial
        self.best_params = best.params

        return OptimizationResult(
            optimization_type=optimization_type.value,
            search_method=search_method.value,
            best_params=best.params,
            best_performance=best.performance,
            trials=list(self.results),
            improvement=calculate_improvement(best.performance, self.results),
            cancelled=cancelled,
        )

    def status(self) -> Dict[str, Any]:
        return {
            'is_running': self.is_running,
            'type': self.optimization_type,
            'results_count': len(self.results),
            'has_best_params': self.best_params is not None,
            'best_params': self.best_params,
        }


def quick_optimize(historical_data: Sequence[Draw], optimization_type: str = 'hybrid',
                   iterations: int = 50, random_state: Optional[int] = None) -> OptimizationResult:
    """Random search with three folds for common use cases."""
    optimizer = ParameterOptimizer(optimization_type, random_state=random_state)
    return optimizer.optimize(historical_data, {
        'method': 'random',
        'iterations': iterations,
        'cross_validation_folds': 3,
    })

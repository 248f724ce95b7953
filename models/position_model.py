"""Position-specific statistics and confidence-interval predictions."""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence
import logging

import numpy as np

from utils.constants import (
    PRIMARY_COUNT, PRIMARY_MIN, PRIMARY_MAX, BONUS_MIN, BONUS_MAX, RECENT_WINDOW
)
from utils.exceptions import InvalidDrawDataError
from utils.validation import Draw, filter_valid_draws
from .utils import statistics as stats
from .utils.confidence_intervals import (
    ConfidenceInterval, IntervalMethod, compute_interval, format_interval_display
)

logger = logging.getLogger(__name__)

PRIMARY_POSITIONS = tuple(f'ball{i + 1}' for i in range(PRIMARY_COUNT))
BONUS_POSITION = 'bonus'
POSITIONS = PRIMARY_POSITIONS + (BONUS_POSITION,)
DEFAULT_MIN_GAP = 2
MIN_RECOMMENDED_DRAWS = 100


@dataclass(frozen=True)
class PositionStatistics:
    mean: float
    median: float
    std: float
    min: int
    max: int
    sample_size: int
    distribution: Dict[int, int]
    recent: List[int]


@dataclass(frozen=True)
class PositionPrediction:
    """Prediction for one slot with its interval and summary statistics."""

    position: str
    prediction: int
    interval: ConfidenceInterval
    statistics: Dict[str, Any]
    constraint_adjusted: bool = False

    @property
    def display(self) -> Dict[str, Any]:
        return format_interval_display(self.prediction, self.interval.lower, self.interval.upper)


def position_domain(position: str):
    if position == BONUS_POSITION:
        return BONUS_MIN, BONUS_MAX
    return PRIMARY_MIN, PRIMARY_MAX


def enforce_min_gap(values: Sequence[int], min_gap: int = DEFAULT_MIN_GAP,
                    max_value: int = PRIMARY_MAX) -> List[int]:
    """
    Sort ascending and push each value up to at least `min_gap` above its predecessor.

    If the top value ends up past `max_value`, a backward pass pulls values
    down so the gap is still held and everything stays in the domain.
    """
    adjusted = sorted(int(v) for v in values)
    for i in range(1, len(adjusted)):
        if adjusted[i] - adjusted[i - 1] < min_gap:
            adjusted[i] = adjusted[i - 1] + min_gap
    if adjusted and adjusted[-1] > max_value:
        adjusted[-1] = max_value
        for i in range(len(adjusted) - 2, -1, -1):
            adjusted[i] = min(adjusted[i], adjusted[i + 1] - min_gap)
    return adjusted


class PositionBasedPredictor:
    """
    Per-position statistics over the sorted primary numbers and the bonus number.

    Position `ball1` holds the lowest primary number of each draw, `ball5` the
    highest, and `bonus` the bonus number.
    """

    def __init__(self, historical_data: Sequence[Draw], rng: Optional[np.random.Generator] = None):
        self.data = filter_valid_draws(historical_data)
        if not self.data:
            raise InvalidDrawDataError(
                f"No usable draws among {len(historical_data)} supplied records")
        self.rng = rng if rng is not None else np.random.default_rng()
        self.series = self._extract_series()
        self.position_stats = {pos: self._describe(values) for pos, values in self.series.items()}

    def _extract_series(self) -> Dict[str, List[int]]:
        series = {pos: [] for pos in POSITIONS}
        for draw in self.data:
            for pos, value in zip(PRIMARY_POSITIONS, draw.sorted_primary):
                series[pos].append(int(value))
            series[BONUS_POSITION].append(int(draw.bonus_number))
        return series

    @staticmethod
    def _describe(values: List[int]) -> PositionStatistics:
        return PositionStatistics(
            mean=stats.mean(values),
            median=stats.median(values),
            std=stats.standard_deviation(values),
            min=int(min(values)),
            max=int(max(values)),
            sample_size=len(values),
            distribution=stats.frequency_distribution(values),
            recent=list(values[-RECENT_WINDOW:]),
        )

    def get_position_data(self, position: str) -> List[int]:
        if position not in self.series:
            raise ValueError(f"Unknown position: {position}")
        return list(self.series[position])

    def generate_prediction(self, confidence_level: float = 0.95, method='bootstrap',
                            include_correlations: bool = True,
                            bootstrap_iterations: int = 1000,
                            decay_rate: float = 0.95,
                            min_gap: int = DEFAULT_MIN_GAP) -> List[PositionPrediction]:
        """
        Generate predictions with confidence intervals for all six positions.

        Args:
            confidence_level: Nominal interval coverage
            method: 'bootstrap', 'normal' or 'time-weighted'
            include_correlations: Repair primary-slot ordering after estimation
            bootstrap_iterations: Resamples for the bootstrap estimator
            decay_rate: Decay for the time-weighted estimator
            min_gap: Minimum spacing between adjacent primary slots

        Returns:
            Five primary-slot predictions in ascending order followed by the bonus
        """
        method = IntervalMethod(method)
        predictions = []
        for position in POSITIONS:
            position_stats = self.position_stats[position]
            interval = compute_interval(
                method, self.series[position], confidence_level,
                iterations=bootstrap_iterations, decay_rate=decay_rate, rng=self.rng,
            )
            min_value, max_value = position_domain(position)
            interval = interval.clamp(min_value, max_value)

            predictions.append(PositionPrediction(
                position=position,
                prediction=interval.prediction,
                interval=interval,
                statistics={
                    'mean': round(position_stats.mean, 2),
                    'median': position_stats.median,
                    'std': round(position_stats.std, 2),
                    'sample_size': position_stats.sample_size,
                },
            ))

        if include_correlations:
            return self.adjust_for_position_constraints(predictions, min_gap)
        return predictions

    @staticmethod
    def adjust_for_position_constraints(predictions: List[PositionPrediction],
                                        min_gap: int = DEFAULT_MIN_GAP) -> List[PositionPrediction]:
        """
        Ensure ball1 < ball2 < ... < ball5 with at least `min_gap` between neighbours.

        Adjusted slots have their interval shifted by the same amount as the
        point estimate and are flagged. The bonus prediction passes through.
        """
        primary = sorted(predictions[:PRIMARY_COUNT], key=lambda p: p.prediction)
        bonus = predictions[PRIMARY_COUNT:]

        targets = enforce_min_gap([p.prediction for p in primary], min_gap, PRIMARY_MAX)
        adjusted = []
        for pred, target in zip(primary, targets):
            shift = target - pred.prediction
            if shift:
                interval = pred.interval.shift(shift).clamp(PRIMARY_MIN, PRIMARY_MAX)
                pred = replace(pred, prediction=target, interval=interval,
                               constraint_adjusted=True)
            adjusted.append(pred)

        return adjusted + list(bonus)

    def system_stats(self) -> Dict[str, Any]:
        """Summary statistics for the whole position model."""
        return {
            'total_draws': len(self.data),
            'position_stats': {
                pos: {
                    'mean': round(s.mean, 2),
                    'range': f"{s.min}-{s.max}",
                    'std': round(s.std, 2),
                }
                for pos, s in self.position_stats.items()
            },
            'data_quality': self.assess_data_quality(),
        }

    def assess_data_quality(self) -> Dict[str, Any]:
        sufficient = len(self.data) >= MIN_RECOMMENDED_DRAWS
        if sufficient:
            recommendation = 'Sufficient data for reliable confidence intervals'
        else:
            recommendation = (f"Consider collecting more data. Current: {len(self.data)}, "
                              f"Recommended: {MIN_RECOMMENDED_DRAWS}+")
        return {
            'sufficient': sufficient,
            'draw_count': len(self.data),
            'recommendation': recommendation,
        }

"""
Confidence interval estimators for a single numeric series.

Three interchangeable estimators share one result shape so callers can
switch between them without special-casing:

1. Bootstrap: percentile interval over resampled means
2. Time-weighted: exponentially decayed normal approximation
3. Normal: classic mean +/- z * std / sqrt(n)
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional, Sequence
import logging
import math

import numpy as np

from . import statistics as stats

logger = logging.getLogger(__name__)


class IntervalMethod(str, Enum):
    BOOTSTRAP = 'bootstrap'
    NORMAL = 'normal'
    TIME_WEIGHTED = 'time-weighted'


@dataclass(frozen=True)
class ConfidenceInterval:
    """Point estimate with rounded interval bounds and a diagnostic field."""

    prediction: int
    lower: int
    upper: int
    method: str
    confidence_level: float
    iterations: Optional[int] = None
    effective_sample_size: Optional[int] = None
    sample_size: Optional[int] = None

    @property
    def width(self) -> int:
        return self.upper - self.lower

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper

    def clamp(self, min_value: int, max_value: int) -> 'ConfidenceInterval':
        """Clamp to a domain while keeping lower <= prediction <= upper."""
        prediction = min(max(self.prediction, min_value), max_value)
        lower = max(min_value, min(self.lower, prediction))
        upper = min(max_value, max(self.upper, prediction))
        return replace(self, prediction=prediction, lower=lower, upper=upper)

    def shift(self, amount: int) -> 'ConfidenceInterval':
        return replace(self, prediction=self.prediction + amount,
                       lower=self.lower + amount, upper=self.upper + amount)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'prediction': self.prediction,
            'lower': self.lower,
            'upper': self.upper,
            'method': self.method,
            'confidence_level': self.confidence_level,
        }
        for key in ('iterations', 'effective_sample_size', 'sample_size'):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


def bootstrap_interval(sample: Sequence[float], confidence_level: float = 0.95,
                       iterations: int = 1000,
                       rng: Optional[np.random.Generator] = None) -> ConfidenceInterval:
    """
    Bootstrap confidence interval - more robust than normal approximation.

    Args:
        sample: Observed values
        confidence_level: Nominal coverage, e.g. 0.95
        iterations: Number of resamples
        rng: Random generator used for resampling

    Returns:
        ConfidenceInterval with the iteration count as diagnostic
    """
    if rng is None:
        rng = np.random.default_rng()

    means = np.sort(stats.bootstrap_means(sample, iterations, rng))
    alpha = 1 - confidence_level
    lower_index = min(int(math.floor(alpha / 2 * iterations)), iterations - 1)
    upper_index = min(int(math.floor((1 - alpha / 2) * iterations)), iterations - 1)

    return ConfidenceInterval(
        prediction=stats.round_half_up(stats.mean(sample)),
        lower=stats.round_half_up(means[lower_index]),
        upper=stats.round_half_up(means[upper_index]),
        method=IntervalMethod.BOOTSTRAP.value,
        confidence_level=confidence_level,
        iterations=iterations,
    )


def time_weighted_interval(sample: Sequence[float], confidence_level: float = 0.95,
                           decay_rate: float = 0.95) -> ConfidenceInterval:
    """Normal-approximation interval with recent observations weighted more heavily."""
    n = len(sample)
    weights = np.power(decay_rate, np.arange(n - 1, -1, -1, dtype=float))

    center = stats.weighted_mean(sample, weights)
    variance = stats.weighted_variance(sample, weights, center)
    effective_sample_size = weights.sum() ** 2 / np.sum(weights ** 2)

    standard_error = math.sqrt(variance / effective_sample_size)
    margin = stats.z_score(confidence_level) * standard_error

    return ConfidenceInterval(
        prediction=stats.round_half_up(center),
        lower=stats.round_half_up(center - margin),
        upper=stats.round_half_up(center + margin),
        method=IntervalMethod.TIME_WEIGHTED.value,
        confidence_level=confidence_level,
        effective_sample_size=stats.round_half_up(effective_sample_size),
    )


def normal_interval(sample: Sequence[float], confidence_level: float = 0.95) -> ConfidenceInterval:
    """Normal approximation confidence interval."""
    center = stats.mean(sample)
    n = len(sample)
    margin = stats.z_score(confidence_level) * (stats.standard_deviation(sample) / math.sqrt(n))

    return ConfidenceInterval(
        prediction=stats.round_half_up(center),
        lower=stats.round_half_up(center - margin),
        upper=stats.round_half_up(center + margin),
        method=IntervalMethod.NORMAL.value,
        confidence_level=confidence_level,
        sample_size=n,
    )


def compute_interval(method, sample: Sequence[float], confidence_level: float = 0.95,
                     iterations: int = 1000, decay_rate: float = 0.95,
                     rng: Optional[np.random.Generator] = None) -> ConfidenceInterval:
    """Dispatch to one of the three estimators by IntervalMethod (or its string value)."""
    method = IntervalMethod(method)
    if method is IntervalMethod.BOOTSTRAP:
        return bootstrap_interval(sample, confidence_level, iterations, rng)
    if method is IntervalMethod.TIME_WEIGHTED:
        return time_weighted_interval(sample, confidence_level, decay_rate)
    return normal_interval(sample, confidence_level)


def format_interval_display(prediction: int, lower: int, upper: int) -> Dict[str, Any]:
    """Human-readable renderings of an interval around its point estimate."""
    lower_diff = prediction - lower
    upper_diff = upper - prediction
    symmetric = lower_diff == upper_diff
    return {
        'range': f"{prediction} {{-{lower_diff}, +{upper_diff}}}",
        'interval': f"[{lower}, {upper}]",
        'symmetric': symmetric,
        'precision': f"±{lower_diff}" if symmetric else f"{{-{lower_diff}, +{upper_diff}}}",
    }

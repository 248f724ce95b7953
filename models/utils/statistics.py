"""Descriptive statistics and resampling helpers used by the interval estimators."""

from collections import Counter
import math
from typing import Dict, Optional, Sequence

import numpy as np

# Two-sided z-scores for the supported confidence levels
Z_SCORES = {
    0.90: 1.645,
    0.95: 1.96,
    0.99: 2.576,
}
DEFAULT_Z_SCORE = Z_SCORES[0.95]


def mean(values: Sequence[float]) -> float:
    return float(np.mean(values))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (34.5 -> 35, -0.5 -> 0)."""
    return int(math.floor(float(value) + 0.5))


def median(values: Sequence[float]) -> float:
    """Median; for even lengths the average of the two middle elements."""
    return float(np.median(values))


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation (divides by n, not n - 1)."""
    return float(np.std(values, ddof=0))


def weighted_mean(values: Sequence[float], weights: Sequence[float]) -> float:
    values = np.asarray(values, dtype=float)
    weights = np.asarray(weights, dtype=float)
    return float(np.sum(values * weights) / np.sum(weights))


def weighted_variance(values: Sequence[float], weights: Sequence[float],
                      center: Optional[float] = None) -> float:
    """Weighted population variance around `center` (the weighted mean by default)."""
    values = np.asarray(values, dtype=float)
    weights = np.asarray(weights, dtype=float)
    if center is None:
        center = weighted_mean(values, weights)
    return float(np.sum(weights * (values - center) ** 2) / np.sum(weights))


def z_score(confidence_level: float) -> float:
    """Fixed-table z-score; unrecognised levels fall back to the 95% value."""
    for level, z in Z_SCORES.items():
        if np.isclose(confidence_level, level):
            return z
    return DEFAULT_Z_SCORE


def resample(data: Sequence[float], rng: np.random.Generator) -> np.ndarray:
    """Draw len(data) elements uniformly with replacement."""
    data = np.asarray(data)
    return data[rng.integers(0, len(data), size=len(data))]


def bootstrap_means(data: Sequence[float], iterations: int,
                    rng: np.random.Generator) -> np.ndarray:
    """
    Means of `iterations` independent resamples of `data`.

    Each row of the index matrix is one resample with replacement, so this is
    the vectorised equivalent of calling `resample` then `mean` per iteration.
    """
    data = np.asarray(data, dtype=float)
    indices = rng.integers(0, len(data), size=(iterations, len(data)))
    return data[indices].mean(axis=1)


def frequency_distribution(values: Sequence[int]) -> Dict[int, int]:
    """Occurrence count per distinct value."""
    return dict(sorted(Counter(int(v) for v in values).items()))

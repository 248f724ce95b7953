"""Accuracy metrics for walk-forward prediction records."""

from dataclasses import dataclass, field, asdict
from itertools import combinations
from typing import Any, Dict, List, Mapping, Optional, Sequence
import logging
import math

import numpy as np
import pandas as pd
from scipy.stats import ttest_ind

from config.options import ScoringPolicy
from utils.constants import PRIMARY_COUNT
from utils.validation import Draw

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PredictionRecord:
    """Outcome of one (method, test draw) pair."""

    method: str
    period: int
    draw_index: int
    predicted_primary: tuple
    predicted_bonus: int
    actual: Draw
    match_count: int
    bonus_match: bool
    prize_tier: Optional[str]
    position_errors: tuple
    interval_coverage: Optional[float] = None

    @property
    def mean_absolute_error(self) -> float:
        return float(np.mean(self.position_errors)) if self.position_errors else 0.0

    @property
    def is_winning(self) -> bool:
        return self.prize_tier is not None


@dataclass(frozen=True)
class AccuracySummary:
    """Aggregated accuracy for one method."""

    total_predictions: int = 0
    average_matches: float = 0.0
    hit_rate: float = 0.0
    bonus_hit_rate: float = 0.0
    win_rate: float = 0.0
    prize_tier_distribution: Dict[str, int] = field(default_factory=dict)
    match_distribution: Dict[int, int] = field(default_factory=dict)
    mean_absolute_error: float = 0.0
    calibration: Optional[Dict[str, float]] = None
    consistency: Dict[str, float] = field(default_factory=dict)
    overall_score: float = 0.0

    @property
    def consistency_score(self) -> float:
        return self.consistency.get('consistency_score', 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def count_matches(predicted: Sequence[int], actual: Sequence[int]) -> int:
    """Size of the intersection between predicted and actual primary numbers."""
    return len(set(int(n) for n in predicted) & set(int(n) for n in actual))


def calculate_consistency(values: Sequence[float]) -> Dict[str, float]:
    """
    Consistency of a series of match counts.

    consistency_score = max(0, 1 - std / mean), or 0 when the mean is 0.
    """
    if len(values) == 0:
        return {'mean': 0.0, 'variance': 0.0, 'standard_deviation': 0.0,
                'coefficient_of_variation': 0.0, 'consistency_score': 0.0}

    values = np.asarray(values, dtype=float)
    mean = float(values.mean())
    variance = float(values.var())
    std = math.sqrt(variance)
    if mean == 0:
        cv, score = 0.0, 0.0
    else:
        cv = std / mean
        score = max(0.0, 1 - cv)
    return {
        'mean': mean,
        'variance': variance,
        'standard_deviation': std,
        'coefficient_of_variation': cv,
        'consistency_score': score,
    }


def match_distribution(match_counts: Sequence[int], max_matches: int = PRIMARY_COUNT) -> Dict[int, int]:
    return {m: int(sum(1 for c in match_counts if c == m)) for m in range(max_matches + 1)}


def summarize_matches(match_counts: Sequence[int], hit_threshold: int = 3) -> Dict[str, Any]:
    """Match-only performance used by the optimizer's fold evaluation."""
    if len(match_counts) == 0:
        return {
            'hit_rate': 0.0,
            'average_matches': 0.0,
            'max_matches': 0,
            'consistency': 0.0,
            'total_predictions': 0,
            'match_distribution': match_distribution([]),
        }
    hits = sum(1 for m in match_counts if m >= hit_threshold)
    return {
        'hit_rate': hits / len(match_counts),
        'average_matches': float(np.mean(match_counts)),
        'max_matches': int(max(match_counts)),
        'consistency': calculate_consistency(match_counts)['consistency_score'],
        'total_predictions': len(match_counts),
        'match_distribution': match_distribution(match_counts),
    }


def interval_coverage(intervals: Sequence[Any], actual: Draw) -> Optional[float]:
    """Fraction of primary slots whose actual (sorted) value fell inside the predicted interval."""
    primary = list(intervals)[:PRIMARY_COUNT]
    if len(primary) < PRIMARY_COUNT:
        return None
    sorted_actual = actual.sorted_primary
    within = 0
    for item, value in zip(primary, sorted_actual):
        interval = getattr(item, 'interval', item)
        if interval.lower <= value <= interval.upper:
            within += 1
    return within / PRIMARY_COUNT


class AccuracyMetrics:
    """
    Scores predictions against actual draws and aggregates the results.

    The scoring policy is fixed per instance so every method in a run is
    compared on identical terms.
    """

    def __init__(self, policy: Optional[ScoringPolicy] = None, confidence_level: float = 0.95):
        self.policy = policy or ScoringPolicy()
        self.confidence_level = confidence_level

    def score_prediction(self, prediction, actual: Draw, method: Optional[str] = None,
                         period: int = 0, draw_index: int = 0) -> PredictionRecord:
        """Build the PredictionRecord for one prediction against the draw it targeted."""
        matches = count_matches(prediction.primary_numbers, actual.primary_numbers)
        bonus_match = int(prediction.bonus_number) == int(actual.bonus_number)

        sorted_predicted = sorted(prediction.primary_numbers)
        position_errors = tuple(abs(int(p) - int(a))
                                for p, a in zip(sorted_predicted, actual.sorted_primary))

        coverage = interval_coverage(prediction.intervals, actual) if prediction.intervals else None

        return PredictionRecord(
            method=method or prediction.method,
            period=period,
            draw_index=draw_index,
            predicted_primary=tuple(sorted_predicted),
            predicted_bonus=int(prediction.bonus_number),
            actual=actual,
            match_count=matches,
            bonus_match=bonus_match,
            prize_tier=self.policy.prize_tier(matches, bonus_match),
            position_errors=position_errors,
            interval_coverage=coverage,
        )

    def summarize(self, records: Sequence[PredictionRecord]) -> AccuracySummary:
        """Aggregate a method's records into an AccuracySummary."""
        if not records:
            return AccuracySummary(consistency=calculate_consistency([]))

        n = len(records)
        match_counts = [r.match_count for r in records]
        average_matches = float(np.mean(match_counts))
        hit_rate = sum(1 for m in match_counts if m >= self.policy.hit_threshold) / n
        win_rate = sum(1 for r in records if r.is_winning) / n
        bonus_hit_rate = sum(1 for r in records if r.bonus_match) / n
        mae = float(np.mean([r.mean_absolute_error for r in records]))

        tiers: Dict[str, int] = {}
        for r in records:
            if r.prize_tier:
                tiers[r.prize_tier] = tiers.get(r.prize_tier, 0) + 1

        return AccuracySummary(
            total_predictions=n,
            average_matches=average_matches,
            hit_rate=hit_rate,
            bonus_hit_rate=bonus_hit_rate,
            win_rate=win_rate,
            prize_tier_distribution=tiers,
            match_distribution=match_distribution(match_counts),
            mean_absolute_error=mae,
            calibration=self.calibration(records),
            consistency=calculate_consistency(match_counts),
            overall_score=self.composite_score(average_matches, hit_rate, win_rate, mae),
        )

    def composite_score(self, average_matches: float, hit_rate: float,
                        win_rate: float, mean_absolute_error: float) -> float:
        weights = self.policy.weights
        position_error = min(1.0, max(0.0, mean_absolute_error / self.policy.position_error_scale))
        return (
            weights['average_matches'] * (average_matches / PRIMARY_COUNT)
            + weights['hit_rate'] * hit_rate
            + weights['win_rate'] * win_rate
            + weights['position_accuracy'] * (1 - position_error)
        )

    def calibration(self, records: Sequence[PredictionRecord]) -> Optional[Dict[str, float]]:
        """Observed interval coverage against the nominal confidence level."""
        coverages = [r.interval_coverage for r in records if r.interval_coverage is not None]
        if not coverages:
            return None
        average = float(np.mean(coverages))
        return {
            'average_accuracy': average,
            'expected_accuracy': self.confidence_level,
            'calibration_error': abs(average - self.confidence_level),
            'samples': len(coverages),
        }

    def expected_value_report(self, records: Sequence[PredictionRecord]) -> Dict[str, float]:
        """Ticket economics under the prize-value table."""
        total_cost = len(records) * self.policy.ticket_cost
        total_value = float(sum(self.policy.prize_values.get(r.prize_tier, 0)
                                for r in records if r.prize_tier))
        if not total_cost:
            return {'total_cost': 0, 'total_expected_value': 0.0, 'roi': 0.0,
                    'profitability': 0.0, 'average_ticket_value': 0.0, 'break_even_rate': None}
        return {
            'total_cost': total_cost,
            'total_expected_value': total_value,
            'roi': (total_value - total_cost) / total_cost,
            'profitability': total_value / total_cost,
            'average_ticket_value': total_value / len(records),
            'break_even_rate': total_cost / total_value if total_value else None,
        }


def pairwise_significance(records_by_method: Mapping[str, Sequence[PredictionRecord]],
                          alpha: float = 0.05) -> List[Dict[str, Any]]:
    """Welch t-test on match counts for every pair of methods."""
    results = []
    for (name_a, recs_a), (name_b, recs_b) in combinations(records_by_method.items(), 2):
        a = [r.match_count for r in recs_a]
        b = [r.match_count for r in recs_b]
        entry = {
            'methods': (name_a, name_b),
            'mean_difference': (float(np.mean(a)) if a else 0.0) - (float(np.mean(b)) if b else 0.0),
            't_statistic': None,
            'p_value': None,
            'significant': False,
        }
        if len(a) > 1 and len(b) > 1 and (np.var(a) > 0 or np.var(b) > 0):
            t_stat, p_value = ttest_ind(a, b, equal_var=False)
            entry['t_statistic'] = round(float(t_stat), 4)
            entry['p_value'] = round(float(p_value), 6)
            entry['significant'] = bool(p_value < alpha)
        results.append(entry)
    return results


def records_to_frame(records: Sequence[PredictionRecord]) -> pd.DataFrame:
    """Flat table of prediction records for export collaborators."""
    rows = [{
        'method': r.method,
        'period': r.period,
        'draw_index': r.draw_index,
        'date': r.actual.date,
        'predicted': list(r.predicted_primary),
        'predicted_bonus': r.predicted_bonus,
        'actual': r.actual.sorted_primary,
        'actual_bonus': r.actual.bonus_number,
        'matches': r.match_count,
        'bonus_match': r.bonus_match,
        'prize_tier': r.prize_tier,
        'mean_absolute_error': r.mean_absolute_error,
        'interval_coverage': r.interval_coverage,
    } for r in records]
    return pd.DataFrame(rows)

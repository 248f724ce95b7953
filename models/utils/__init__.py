"""
Statistics, interval estimation, metrics and search helpers for prediction methods.
"""

from .statistics import mean, median, standard_deviation, weighted_mean, weighted_variance, z_score
from .confidence_intervals import (
    ConfidenceInterval, IntervalMethod, bootstrap_interval, compute_interval,
    normal_interval, time_weighted_interval
)
from .decorators import log_prediction_errors
from .model_metrics import AccuracyMetrics, AccuracySummary, PredictionRecord
from .progress import CancellationToken, ProgressEvent
from .cross_validation import CrossValidationSplit, create_cross_validation_splits
from .optimization import OptimizationResult, ParameterOptimizer, quick_optimize

__all__ = [
    'mean', 'median', 'standard_deviation', 'weighted_mean', 'weighted_variance', 'z_score',
    'ConfidenceInterval', 'IntervalMethod', 'bootstrap_interval', 'compute_interval',
    'normal_interval', 'time_weighted_interval',
    'log_prediction_errors',
    'AccuracyMetrics', 'AccuracySummary', 'PredictionRecord',
    'CancellationToken', 'ProgressEvent',
    'CrossValidationSplit', 'create_cross_validation_splits',
    'OptimizationResult', 'ParameterOptimizer', 'quick_optimize',
]

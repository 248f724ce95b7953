"""Configuration for validation runs, ensemble weighting and optimization."""

from .options import ValidationOptions, ScoringPolicy, SUPPORTED_CONFIDENCE_LEVELS, INTERVAL_METHODS

__all__ = ['ValidationOptions', 'ScoringPolicy', 'SUPPORTED_CONFIDENCE_LEVELS', 'INTERVAL_METHODS']

"""Run options and scoring policy objects built from the model_config dicts."""

from dataclasses import dataclass, field, fields, asdict
from typing import Any, Dict, Mapping, Optional, Tuple
import logging

from .model_config import (
    VALIDATION_CONFIG, SCORING_WEIGHTS, SCORING_CONFIG, PRIZE_TIERS, PRIZE_VALUES
)

logger = logging.getLogger(__name__)

SUPPORTED_CONFIDENCE_LEVELS = (0.90, 0.95, 0.99)
INTERVAL_METHODS = ('bootstrap', 'normal', 'time-weighted')

# Recognised external keys mapped onto option fields
_OPTION_ALIASES = {
    'minTrainingSize': 'min_training_size',
    'testWindowSize': 'test_window_size',
    'stepSize': 'step_size',
    'maxValidationPeriods': 'max_validation_periods',
    'bootstrapIterations': 'bootstrap_iterations',
    'confidenceLevel': 'confidence_level',
    'method': 'method',
    'includeEnsemble': 'include_ensemble',
    'adaptiveWeighting': 'adaptive_weighting',
}


@dataclass(frozen=True)
class ValidationOptions:
    """Options for one walk-forward validation run."""

    min_training_size: int = VALIDATION_CONFIG['min_training_size']
    test_window_size: int = VALIDATION_CONFIG['test_window_size']
    step_size: int = VALIDATION_CONFIG['step_size']
    max_validation_periods: int = VALIDATION_CONFIG['max_validation_periods']
    bootstrap_iterations: int = VALIDATION_CONFIG['bootstrap_iterations']
    confidence_level: float = VALIDATION_CONFIG['confidence_level']
    method: str = VALIDATION_CONFIG['method']
    include_ensemble: bool = VALIDATION_CONFIG['include_ensemble']
    adaptive_weighting: bool = VALIDATION_CONFIG['adaptive_weighting']

    def __post_init__(self):
        for name in ('min_training_size', 'test_window_size', 'step_size',
                     'max_validation_periods', 'bootstrap_iterations'):
            if int(getattr(self, name)) < 1:
                raise ValueError(f"{name} must be a positive integer, got {getattr(self, name)}")
        if self.method not in INTERVAL_METHODS:
            raise ValueError(f"Unsupported interval method: {self.method}. "
                             f"Expected one of {INTERVAL_METHODS}")
        if self.confidence_level not in SUPPORTED_CONFIDENCE_LEVELS:
            logger.warning(f"Confidence level {self.confidence_level} has no z-score entry; "
                           f"normal intervals will use the 0.95 value")

    @classmethod
    def from_dict(cls, options: Optional[Mapping[str, Any]] = None) -> 'ValidationOptions':
        """
        Build options from a flat mapping.

        Accepts both the camelCase keys of the external contract and the
        snake_case field names. Unrecognised keys are ignored.
        """
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options

        field_names = {f.name for f in fields(cls)}
        values = {}
        for key, value in options.items():
            name = _OPTION_ALIASES.get(key, key)
            if name in field_names and value is not None:
                values[name] = value
            else:
                logger.debug(f"Ignoring unrecognised option: {key}")
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ScoringPolicy:
    """Composite-score weights and prize tables used to compare methods."""

    weights: Dict[str, float] = field(default_factory=lambda: dict(SCORING_WEIGHTS))
    hit_threshold: int = SCORING_CONFIG['hit_threshold']
    position_error_scale: float = SCORING_CONFIG['position_error_scale']
    ticket_cost: float = SCORING_CONFIG['ticket_cost']
    prize_tiers: Dict[Tuple[int, bool], str] = field(default_factory=lambda: dict(PRIZE_TIERS))
    prize_values: Dict[str, float] = field(default_factory=lambda: dict(PRIZE_VALUES))

    def prize_tier(self, match_count: int, bonus_match: bool) -> Optional[str]:
        return self.prize_tiers.get((int(match_count), bool(bonus_match)))

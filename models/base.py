"""Base classes for prediction methods."""

from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
import logging

import numpy as np

from config.model_config import BONUS_CONFIG
from utils.constants import BONUS_MIN, BONUS_MAX, PRIMARY_COUNT
from utils.exceptions import PredictionFailedError
from utils.validation import Draw, ensure_valid_prediction
from .utils.decorators import log_prediction_errors

logger = logging.getLogger(__name__)


class MethodKind(str, Enum):
    """Closed set of prediction strategies."""

    CONFIDENCE = 'confidence'
    SIGNATURE = 'signature'
    FREQUENCY = 'frequency'
    SEQUENCE = 'sequence'
    OFFSET = 'offset'
    HYBRID = 'hybrid'


@dataclass(frozen=True)
class Prediction:
    """Typed output of a single prediction call."""

    primary_numbers: Tuple[int, ...]
    bonus_number: int
    confidence: float
    method: str
    intervals: Tuple[Any, ...] = ()
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'primary_numbers': list(self.primary_numbers),
            'bonus_number': self.bonus_number,
            'confidence': self.confidence,
            'method': self.method,
        }


@dataclass
class RandomContext:
    """
    Injected random sources.

    `sampling` drives statistically meaningful draws (bootstrap resampling);
    `filler` drives placeholder values such as tie-breaks and empty-history
    fallbacks, so the two never share a stream.
    """

    sampling: np.random.Generator
    filler: np.random.Generator

    @classmethod
    def from_seed(cls, seed: Optional[int] = None) -> 'RandomContext':
        sampling_seq, filler_seq = np.random.SeedSequence(seed).spawn(2)
        return cls(sampling=np.random.default_rng(sampling_seq),
                   filler=np.random.default_rng(filler_seq))


def predict_bonus(training_data: Sequence[Draw], filler: np.random.Generator,
                  recent_draws: int = BONUS_CONFIG['recent_draws']) -> int:
    """Most frequent bonus number among the recent draws; ties broken at random."""
    recent = [int(d.bonus_number) for d in training_data[-recent_draws:]]
    if not recent:
        return int(filler.integers(BONUS_MIN, BONUS_MAX + 1))

    counts = Counter(recent)
    top = max(counts.values())
    tied = sorted(value for value, count in counts.items() if count == top)
    if len(tied) == 1:
        return tied[0]
    return int(filler.choice(tied))


class PredictionMethod(ABC):
    """
    Abstract base class for all prediction methods.

    Subclasses implement `_predict`; `predict` validates the output so an
    invalid prediction surfaces as PredictionFailedError.
    """

    kind: MethodKind
    display_name: str = ''

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 random_context: Optional[RandomContext] = None):
        self.config = dict(config or {})
        self.random = random_context or RandomContext.from_seed()

    @property
    def name(self) -> str:
        return self.kind.value

    @log_prediction_errors
    def predict(self, training_data: Sequence[Draw],
                parameters: Optional[Mapping[str, Any]] = None) -> Prediction:
        """
        Predict the next draw from `training_data`.

        Args:
            training_data: Chronological draws visible to the method (read-only)
            parameters: Per-call parameter bag merged over the method config

        Returns:
            Validated Prediction
        """
        if not training_data:
            raise PredictionFailedError(self.name, "no training data supplied")

        params = {**self.config, **{k: v for k, v in (parameters or {}).items() if v is not None}}
        prediction = self._predict(tuple(training_data), params)
        return self._validate(prediction)

    @abstractmethod
    def _predict(self, training_data: Tuple[Draw, ...], params: Dict[str, Any]) -> Prediction:
        """Produce a prediction; implemented by each method."""

    def _validate(self, prediction: Prediction) -> Prediction:
        try:
            primary = ensure_valid_prediction(list(prediction.primary_numbers), PRIMARY_COUNT)
        except ValueError as e:
            raise PredictionFailedError(self.name, str(e)) from e
        if not BONUS_MIN <= int(prediction.bonus_number) <= BONUS_MAX:
            raise PredictionFailedError(
                self.name, f"bonus number {prediction.bonus_number} outside {BONUS_MIN}-{BONUS_MAX}")
        return Prediction(
            primary_numbers=tuple(primary),
            bonus_number=int(prediction.bonus_number),
            confidence=float(prediction.confidence),
            method=prediction.method,
            intervals=tuple(prediction.intervals),
            details=prediction.details,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(config={self.config!r})"


def top_n(scores: Mapping[int, float], n: int = PRIMARY_COUNT) -> List[int]:
    """Highest-scoring keys, ties broken by the lower number."""
    ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
    return [number for number, _ in ranked[:n]]


def fill_unique(numbers: Sequence[int], n: int, candidates: Sequence[int]) -> List[int]:
    """Deduplicate `numbers` in order and pad from `candidates` until `n` remain."""
    result = []
    for num in list(numbers) + list(candidates):
        if num not in result:
            result.append(int(num))
        if len(result) == n:
            break
    return result

"""Offset and hybrid methods tuned by the parameter optimizer."""

from collections import Counter
from typing import Any, Dict, List, Sequence, Tuple

from config.model_config import METHOD_PARAMS
from utils.constants import PRIMARY_COUNT, PRIMARY_MIN, PRIMARY_MAX
from utils.validation import Draw
from .base import MethodKind, Prediction, PredictionMethod, fill_unique, predict_bonus
from .signature_model import SignatureModel
from .utils import statistics as stats


def frequency_center(training_data: Sequence[Draw], default: int = 35) -> int:
    """Frequency-weighted mean of all primary numbers seen, rounded."""
    counts = Counter(int(n) for draw in training_data for n in draw.primary_numbers
                     if PRIMARY_MIN <= n <= PRIMARY_MAX)
    total = sum(counts.values())
    if not total:
        return default
    return stats.round_half_up(sum(n * c for n, c in counts.items()) / total)


def offset_numbers(base: int, offsets: Sequence[int]) -> List[int]:
    return [(base + int(offset)) % PRIMARY_MAX + 1 for offset in offsets]


class OffsetModel(PredictionMethod):
    """Numbers displaced from the history's frequency-weighted centre by fixed offsets."""

    kind = MethodKind.OFFSET
    display_name = 'Offset Projection'

    def __init__(self, config=None, random_context=None):
        super().__init__({**METHOD_PARAMS['offset'], **(config or {})}, random_context)

    def _predict(self, training_data: Tuple[Draw, ...], params: Dict[str, Any]) -> Prediction:
        offsets = params.get('offsets')
        if not offsets:
            raise ValueError("OffsetModel requires a non-empty 'offsets' parameter")

        base = frequency_center(training_data, int(params.get('default_base', 35)))
        candidates = offset_numbers(base, offsets)
        # Colliding offsets are padded with the next free numbers after the base
        padding = [(base + k) % PRIMARY_MAX + 1 for k in range(PRIMARY_MAX)]
        numbers = fill_unique(candidates, PRIMARY_COUNT, padding)

        return Prediction(
            primary_numbers=tuple(numbers),
            bonus_number=predict_bonus(training_data, self.random.filler),
            confidence=params.get('confidence', 0.70),
            method=self.name,
            details={'base': base, 'offsets': list(offsets)},
        )


class HybridModel(PredictionMethod):
    """Offset numbers first, then signature numbers, first five unique values."""

    kind = MethodKind.HYBRID
    display_name = 'Offset + Signature Hybrid'

    def __init__(self, config=None, random_context=None):
        super().__init__({**METHOD_PARAMS['hybrid'], **(config or {})}, random_context)
        self._offset = OffsetModel(random_context=self.random)
        self._signature = SignatureModel({'candidates': 'domain'}, random_context=self.random)

    def _predict(self, training_data: Tuple[Draw, ...], params: Dict[str, Any]) -> Prediction:
        offset_pred = self._offset.predict(training_data, {'offsets': params.get('offsets')})
        signature_pred = self._signature.predict(training_data, {'weights': params.get('weights')})

        numbers = fill_unique(offset_pred.primary_numbers, PRIMARY_COUNT,
                              signature_pred.primary_numbers)

        return Prediction(
            primary_numbers=tuple(numbers),
            bonus_number=offset_pred.bonus_number,
            confidence=params.get('confidence', 0.80),
            method=self.name,
        )

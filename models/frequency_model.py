"""Frequency analysis over a configurable lookback window."""

from collections import Counter
from typing import Any, Dict, Tuple

from config.model_config import METHOD_PARAMS
from utils.constants import PRIMARY_COUNT, PRIMARY_MIN, PRIMARY_MAX
from utils.validation import Draw
from .base import MethodKind, Prediction, PredictionMethod, fill_unique, predict_bonus, top_n


class FrequencyModel(PredictionMethod):
    """Most frequent primary numbers within the last `lookback_period` draws."""

    kind = MethodKind.FREQUENCY
    display_name = 'Frequency Analysis'

    def __init__(self, config=None, random_context=None):
        super().__init__({**METHOD_PARAMS['frequency'], **(config or {})}, random_context)

    def _predict(self, training_data: Tuple[Draw, ...], params: Dict[str, Any]) -> Prediction:
        lookback = int(params.get('lookback_period', 100))
        recent = training_data[-lookback:]

        counts = Counter(
            int(n) for draw in recent for n in draw.primary_numbers
            if PRIMARY_MIN <= n <= PRIMARY_MAX
        )
        numbers = top_n(counts, PRIMARY_COUNT)
        # Short histories may not cover five distinct values
        numbers = fill_unique(numbers, PRIMARY_COUNT, range(PRIMARY_MIN, PRIMARY_MAX + 1))

        return Prediction(
            primary_numbers=tuple(numbers),
            bonus_number=predict_bonus(training_data, self.random.filler),
            confidence=params.get('confidence', 0.60),
            method=self.name,
            details={'frequencies': {n: counts[n] / len(recent) for n in numbers}},
        )

"""
Placeholder for a learned sequence model.

A trained sequence network is not part of this package; this class satisfies
the same `predict` contract with a temporal average of the most recent sorted
draws so the validator and ensemble can treat it like any other method.
"""

from typing import Any, Dict, Tuple

import numpy as np

from config.model_config import METHOD_PARAMS
from utils.constants import PRIMARY_MAX
from utils.validation import Draw
from .base import MethodKind, Prediction, PredictionMethod, predict_bonus
from .position_model import enforce_min_gap
from .utils import statistics as stats


class SequenceModel(PredictionMethod):

    kind = MethodKind.SEQUENCE
    display_name = 'Sequence Model (temporal average)'

    def __init__(self, config=None, random_context=None):
        super().__init__({**METHOD_PARAMS['sequence'], **(config or {})}, random_context)

    def _predict(self, training_data: Tuple[Draw, ...], params: Dict[str, Any]) -> Prediction:
        recent = training_data[-int(params.get('lookback', 10)):]
        slots = np.array([draw.sorted_primary for draw in recent], dtype=float)
        averages = [stats.round_half_up(v) for v in slots.mean(axis=0)]

        return Prediction(
            primary_numbers=tuple(enforce_min_gap(averages, 1, PRIMARY_MAX)),
            bonus_number=predict_bonus(training_data, self.random.filler),
            confidence=params.get('confidence', 0.65),
            method=self.name,
            details={'pattern': 'temporal-average'},
        )

"""Interval-based prediction method built on the position model."""

from typing import Any, Dict, Tuple
import logging

from config.model_config import METHOD_PARAMS
from utils.constants import PRIMARY_COUNT
from utils.validation import Draw
from .base import MethodKind, Prediction, PredictionMethod
from .position_model import PositionBasedPredictor

logger = logging.getLogger(__name__)


class ConfidenceIntervalModel(PredictionMethod):
    """Takes the point estimates of the five primary slots and the bonus slot."""

    kind = MethodKind.CONFIDENCE
    display_name = 'Confidence Intervals'

    def __init__(self, config=None, random_context=None):
        super().__init__({**METHOD_PARAMS['confidence'], **(config or {})}, random_context)

    def _predict(self, training_data: Tuple[Draw, ...], params: Dict[str, Any]) -> Prediction:
        confidence_level = params.get('confidence_level', 0.95)
        predictor = PositionBasedPredictor(training_data, rng=self.random.sampling)
        positions = predictor.generate_prediction(
            confidence_level=confidence_level,
            method=params.get('interval_method', 'bootstrap'),
            include_correlations=True,
            bootstrap_iterations=int(params.get('bootstrap_iterations', 1000)),
            decay_rate=params.get('decay_rate', 0.95),
            min_gap=int(params.get('min_gap', 2)),
        )

        return Prediction(
            primary_numbers=tuple(p.prediction for p in positions[:PRIMARY_COUNT]),
            bonus_number=positions[PRIMARY_COUNT].prediction,
            confidence=params.get('confidence') or confidence_level,
            method=self.name,
            intervals=tuple(positions),
        )

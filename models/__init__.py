"""Prediction methods, position model and ensemble combiner."""

from .base import MethodKind, Prediction, PredictionMethod, RandomContext
from .confidence_model import ConfidenceIntervalModel
from .frequency_model import FrequencyModel
from .signature_model import SignatureModel
from .sequence_model import SequenceModel
from .offset_model import OffsetModel, HybridModel
from .position_model import PositionBasedPredictor, PositionPrediction
from .registry import create_method, default_methods
from .ensemble import EnsembleCombiner, MethodState

__all__ = [
    'MethodKind',
    'Prediction',
    'PredictionMethod',
    'RandomContext',
    'ConfidenceIntervalModel',
    'FrequencyModel',
    'SignatureModel',
    'SequenceModel',
    'OffsetModel',
    'HybridModel',
    'PositionBasedPredictor',
    'PositionPrediction',
    'create_method',
    'default_methods',
    'EnsembleCombiner',
    'MethodState',
]

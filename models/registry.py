"""Lookup from MethodKind to its implementation."""

from typing import Any, Dict, Iterable, List, Optional

from config.model_config import ACTIVE_METHODS
from .base import MethodKind, PredictionMethod, RandomContext
from .confidence_model import ConfidenceIntervalModel
from .frequency_model import FrequencyModel
from .offset_model import HybridModel, OffsetModel
from .sequence_model import SequenceModel
from .signature_model import SignatureModel

METHOD_CLASSES = {
    MethodKind.CONFIDENCE: ConfidenceIntervalModel,
    MethodKind.SIGNATURE: SignatureModel,
    MethodKind.FREQUENCY: FrequencyModel,
    MethodKind.SEQUENCE: SequenceModel,
    MethodKind.OFFSET: OffsetModel,
    MethodKind.HYBRID: HybridModel,
}

# Methods compared by the walk-forward validator
VALIDATION_METHODS = (
    MethodKind.CONFIDENCE,
    MethodKind.SIGNATURE,
    MethodKind.FREQUENCY,
    MethodKind.SEQUENCE,
)


def create_method(kind, config: Optional[Dict[str, Any]] = None,
                  random_context: Optional[RandomContext] = None) -> PredictionMethod:
    """Instantiate the method for `kind` (a MethodKind or its string value)."""
    return METHOD_CLASSES[MethodKind(kind)](config, random_context)


def default_methods(random_context: Optional[RandomContext] = None,
                    kinds: Optional[Iterable[MethodKind]] = None) -> List[PredictionMethod]:
    """Active validation methods in a fixed order, sharing one random context."""
    random_context = random_context or RandomContext.from_seed()
    if kinds is None:
        kinds = [k for k in VALIDATION_METHODS if ACTIVE_METHODS.get(k.value, False)]
    return [create_method(kind, random_context=random_context) for kind in kinds]

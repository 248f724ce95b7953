"""
Structural scoring signature.

Every candidate number gets a composite score from four features:

- primality (1 or 0)
- digital root (1..9)
- a modular residue, (n % 5) * 0.2
- a positional weight read from a fixed 5 x 14 grid layout

The features are combined by a caller-supplied weight vector.
"""

from typing import Any, Dict, Iterable, List, Mapping, Tuple

from config.model_config import METHOD_PARAMS
from utils.constants import PRIMARY_COUNT, PRIMARY_MIN, PRIMARY_MAX
from utils.validation import Draw
from .base import MethodKind, Prediction, PredictionMethod, fill_unique, predict_bonus, top_n

SIGNATURE_FEATURES = ('prime', 'digital_root', 'mod5', 'grid_position')
DEFAULT_SIGNATURE_WEIGHTS = dict(METHOD_PARAMS['signature']['weights'])

GRID = (
    (0.3, 0.5, 0.7, 0.9, 1.0, 0.9, 0.7, 0.5, 0.3, 0.5, 0.7, 0.9, 1.0, 0.9),
    (0.5, 0.7, 0.9, 1.0, 0.9, 0.7, 0.5, 0.7, 0.9, 1.0, 0.9, 0.7, 0.5, 0.7),
    (0.7, 0.9, 1.0, 0.9, 0.7, 0.5, 0.3, 0.5, 0.7, 0.9, 1.0, 0.9, 0.7, 0.5),
    (0.5, 0.7, 0.9, 1.0, 0.9, 0.7, 0.5, 0.7, 0.9, 1.0, 0.9, 0.7, 0.5, 0.7),
    (0.3, 0.5, 0.7, 0.9, 1.0, 0.9, 0.7, 0.5, 0.3, 0.5, 0.7, 0.9, 1.0, 0.9),
)
GRID_COLUMNS = 14
GRID_DEFAULT = 0.5


def is_prime(num: int) -> bool:
    if num <= 1:
        return False
    if num <= 3:
        return True
    if num % 2 == 0 or num % 3 == 0:
        return False
    i = 5
    while i * i <= num:
        if num % i == 0 or num % (i + 2) == 0:
            return False
        i += 6
    return True


def digital_root(num: int) -> int:
    return num - 9 * ((num - 1) // 9)


def grid_position_score(num: int) -> float:
    row, col = divmod(num - 1, GRID_COLUMNS)
    if num < 1 or row >= len(GRID):
        return GRID_DEFAULT
    return GRID[row][col]


def signature_components(num: int) -> Dict[str, float]:
    return {
        'prime': 1.0 if is_prime(num) else 0.0,
        'digital_root': float(digital_root(num)),
        'mod5': (num % 5) * 0.2,
        'grid_position': grid_position_score(num),
    }


def signature_scores(numbers: Iterable[int], weights: Mapping[str, float]) -> Dict[int, float]:
    """Composite score per number for the given weight vector."""
    missing = set(SIGNATURE_FEATURES) - set(weights)
    if missing:
        raise ValueError(f"Signature weights missing components: {sorted(missing)}")
    scores = {}
    for num in numbers:
        components = signature_components(int(num))
        scores[int(num)] = sum(components[f] * weights[f] for f in SIGNATURE_FEATURES)
    return scores


class SignatureModel(PredictionMethod):
    """Top-N candidates by composite signature score."""

    kind = MethodKind.SIGNATURE
    display_name = 'Scoring Signature'

    def __init__(self, config=None, random_context=None):
        super().__init__({**METHOD_PARAMS['signature'], **(config or {})}, random_context)

    @staticmethod
    def candidates(training_data: Tuple[Draw, ...], mode: str) -> List[int]:
        if mode == 'domain':
            return list(range(PRIMARY_MIN, PRIMARY_MAX + 1))
        return sorted({int(n) for draw in training_data for n in draw.primary_numbers})

    def _predict(self, training_data: Tuple[Draw, ...], params: Dict[str, Any]) -> Prediction:
        weights = params.get('weights') or DEFAULT_SIGNATURE_WEIGHTS
        scores = signature_scores(self.candidates(training_data, params.get('candidates', 'history')),
                                  weights)
        numbers = fill_unique(top_n(scores, PRIMARY_COUNT), PRIMARY_COUNT,
                              range(PRIMARY_MIN, PRIMARY_MAX + 1))

        return Prediction(
            primary_numbers=tuple(numbers),
            bonus_number=predict_bonus(training_data, self.random.filler),
            confidence=params.get('confidence', 0.70),
            method=self.name,
            details={'scores': {n: scores.get(n) for n in numbers}},
        )

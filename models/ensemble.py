"""
Ensemble combiner for prediction methods.

This file contains the EnsembleCombiner class that implements:
1. Weighted voting across the predictions of several methods
2. The adaptive weight update applied once per accuracy run
3. Ownership of the per-method MethodState (weight and rolling score)

Method weights are only ever mutated through `update_weights`.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
import logging

import numpy as np
from scipy.optimize import brentq

from config.model_config import ENSEMBLE_CONFIG
from utils.constants import PRIMARY_COUNT
from .base import Prediction

logger = logging.getLogger(__name__)

ENSEMBLE_METHOD = 'ensemble'


@dataclass
class MethodState:
    """Current weight and last accuracy score for one method."""

    name: str
    weight: float
    accuracy: float = 0.5


def project_weights(raw: Mapping[str, float], min_weight: float, max_weight: float) -> Dict[str, float]:
    """
    Scale and clip weights so they sum to 1 with every weight in [min_weight, max_weight].

    Finds the scale factor c with sum(clip(c * w)) == 1. When the bounds cannot
    be met for this many methods the weights are only normalised.
    """
    names = list(raw)
    values = np.array([max(float(raw[n]), 1e-12) for n in names])
    n = len(values)

    if n == 0:
        return {}
    if not n * min_weight <= 1 <= n * max_weight:
        logger.warning(f"Weight bounds [{min_weight}, {max_weight}] infeasible for {n} methods; "
                       f"normalising without clipping")
        return dict(zip(names, (values / values.sum()).tolist()))

    def excess(scale: float) -> float:
        return float(np.clip(scale * values, min_weight, max_weight).sum() - 1.0)

    upper = max_weight / values.min()
    if excess(0.0) >= 0:
        scale = 0.0
    else:
        scale = brentq(excess, 0.0, upper)
    projected = np.clip(scale * values, min_weight, max_weight)
    projected = np.clip(projected / projected.sum(), min_weight, max_weight)
    return dict(zip(names, projected.tolist()))


class EnsembleCombiner:
    """Weighted voting plus adaptive weight learning across methods."""

    def __init__(self, method_names: Iterable[str], initial_weights: Optional[Mapping[str, float]] = None,
                 learning_rate: float = ENSEMBLE_CONFIG['learning_rate'],
                 min_weight: float = ENSEMBLE_CONFIG['min_weight'],
                 max_weight: float = ENSEMBLE_CONFIG['max_weight']):
        names = list(method_names)
        if not names:
            raise ValueError("EnsembleCombiner needs at least one method")
        if min_weight > max_weight:
            raise ValueError(f"min_weight {min_weight} exceeds max_weight {max_weight}")

        self.learning_rate = learning_rate
        self.min_weight = min_weight
        self.max_weight = max_weight

        if initial_weights is None:
            initial_weights = {name: 1.0 / len(names) for name in names}
        unknown = set(initial_weights) - set(names)
        if unknown:
            raise ValueError(f"Weight dictionary contains unknown method names: {sorted(unknown)}")
        weights = project_weights({n: initial_weights.get(n, 1.0 / len(names)) for n in names},
                                  min_weight, max_weight)
        self._states = {name: MethodState(name=name, weight=weights[name]) for name in names}

    @property
    def weights(self) -> Dict[str, float]:
        return {name: state.weight for name, state in self._states.items()}

    def snapshot(self) -> List[MethodState]:
        """Copies of the current method states."""
        return [MethodState(s.name, s.weight, s.accuracy) for s in self._states.values()]

    def combine(self, predictions: Mapping[str, Prediction],
                weights: Optional[Mapping[str, float]] = None) -> Prediction:
        """
        Combine method predictions by weighted voting.

        Each method adds its weight to every value it predicted; the five
        primary values and the bonus value with the largest vote win, ties
        going to the lower number.

        Args:
            predictions: Prediction per method name
            weights: Voting weights (defaults to the current method weights)
        """
        if not predictions:
            raise ValueError("No method predictions to combine")
        weights = dict(weights) if weights is not None else self.weights

        primary_votes: Dict[int, float] = {}
        bonus_votes: Dict[int, float] = {}
        for name, prediction in predictions.items():
            weight = weights.get(name, 0.0)
            for number in prediction.primary_numbers:
                primary_votes[int(number)] = primary_votes.get(int(number), 0.0) + weight
            bonus = int(prediction.bonus_number)
            bonus_votes[bonus] = bonus_votes.get(bonus, 0.0) + weight

        ranked = sorted(primary_votes.items(), key=lambda item: (-item[1], item[0]))
        primary = sorted(number for number, _ in ranked[:PRIMARY_COUNT])
        bonus = min(bonus_votes.items(), key=lambda item: (-item[1], item[0]))[0]

        return Prediction(
            primary_numbers=tuple(primary),
            bonus_number=bonus,
            confidence=ENSEMBLE_CONFIG['confidence'],
            method=ENSEMBLE_METHOD,
            details={'voting_weights': weights, 'contributing_methods': len(predictions)},
        )

    def update_weights(self, scores: Mapping[str, float]) -> Dict[str, float]:
        """
        Adaptive weight update, applied once per accuracy run.

        new = clamp(old + learning_rate * (score - mean score), min, max),
        then all weights are renormalised to sum to 1 inside the bounds.
        Methods without a score keep their weight before renormalisation.
        """
        scored = {name: float(score) for name, score in scores.items() if name in self._states}
        if not scored:
            logger.warning("No scores for known methods; weights unchanged")
            return self.weights

        mean_score = float(np.mean(list(scored.values())))
        raw = {}
        for name, state in self._states.items():
            if name in scored:
                adjusted = state.weight + self.learning_rate * (scored[name] - mean_score)
                raw[name] = min(self.max_weight, max(self.min_weight, adjusted))
                state.accuracy = scored[name]
            else:
                raw[name] = state.weight

        for name, weight in project_weights(raw, self.min_weight, self.max_weight).items():
            self._states[name].weight = weight

        logger.info("Updated method weights: " +
                    ", ".join(f"{n}={w:.3f}" for n, w in self.weights.items()))
        return self.weights

"""Chronological cross-validation splits for parameter search."""

from dataclasses import dataclass
from typing import List, Sequence, Tuple
import logging
import math

from utils.validation import Draw

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CrossValidationSplit:
    fold: int
    train: Tuple[Draw, ...]
    test: Tuple[Draw, ...]


def create_cross_validation_splits(data: Sequence[Draw], folds: int = 5,
                                   min_training_fraction: float = 0.3) -> List[CrossValidationSplit]:
    """
    Expanding-window chronological splits.

    The first `min_training_fraction` of the data is always training. The rest
    is cut into `folds` contiguous test blocks of equal length, each paired
    with every draw that precedes it. Draws left over after the last full
    block are not tested.

    Args:
        data: Draws in chronological order
        folds: Number of test blocks
        min_training_fraction: Share of the data reserved as the training prefix

    Returns:
        Splits ordered by fold number
    """
    if folds < 1:
        raise ValueError(f"folds must be at least 1, got {folds}")

    data = tuple(data)
    min_training_size = int(math.floor(len(data) * min_training_fraction))
    step = (len(data) - min_training_size) // folds

    splits = []
    for i in range(folds):
        train_end = min_training_size + i * step
        test_end = min(train_end + step, len(data))
        if test_end > train_end:
            splits.append(CrossValidationSplit(
                fold=i + 1,
                train=data[:train_end],
                test=data[train_end:test_end],
            ))

    logger.debug(f"Created {len(splits)} splits (prefix={min_training_size}, block={step})")
    return splits

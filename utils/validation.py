from dataclasses import dataclass
from datetime import date as date_type
from typing import Iterable, List, Optional, Sequence, Tuple, Union
import logging

import numpy as np
import pandas as pd

from .constants import PRIMARY_COUNT, PRIMARY_MIN, PRIMARY_MAX, BONUS_MIN, BONUS_MAX

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Draw:
    """One historical draw: the primary-number set plus the bonus number."""

    primary_numbers: Tuple[int, ...]
    bonus_number: int
    date: Optional[date_type] = None

    def is_valid(self) -> bool:
        """Check cardinality, distinctness and domain without raising."""
        try:
            numbers = [int(n) for n in self.primary_numbers]
            bonus = int(self.bonus_number)
        except (TypeError, ValueError):
            return False
        if len(numbers) != PRIMARY_COUNT or len(set(numbers)) != PRIMARY_COUNT:
            return False
        if not all(PRIMARY_MIN <= n <= PRIMARY_MAX for n in numbers):
            return False
        return BONUS_MIN <= bonus <= BONUS_MAX

    @property
    def sorted_primary(self) -> List[int]:
        return sorted(self.primary_numbers)


def filter_valid_draws(draws: Iterable[Draw]) -> List[Draw]:
    """Drop draws that break the draw invariant, logging how many were rejected."""
    draws = list(draws)
    valid = [d for d in draws if isinstance(d, Draw) and d.is_valid()]
    rejected = len(draws) - len(valid)
    if rejected:
        logger.warning(f"Discarded {rejected} malformed draws out of {len(draws)}")
    return valid


def draws_from_frame(df: pd.DataFrame) -> List[Draw]:
    """
    Convert an already-normalised DataFrame into Draw records.

    Args:
        df: Frame with 'primary_numbers' (sequence), 'bonus_number' and
            optionally 'date' columns, in chronological order

    Returns:
        List of Draw records (unvalidated)
    """
    missing = {'primary_numbers', 'bonus_number'} - set(df.columns)
    if missing:
        raise ValueError(f"DataFrame is missing required columns: {sorted(missing)}")

    has_date = 'date' in df.columns
    draws = []
    for row in df.itertuples(index=False):
        draw_date = getattr(row, 'date') if has_date else None
        if isinstance(draw_date, pd.Timestamp):
            draw_date = draw_date.date()
        draws.append(Draw(
            primary_numbers=tuple(int(n) for n in row.primary_numbers),
            bonus_number=int(row.bonus_number),
            date=draw_date,
        ))
    return draws


def ensure_valid_prediction(prediction: Union[Sequence[int], np.ndarray],
                            numbers_count: int = PRIMARY_COUNT,
                            min_value: int = PRIMARY_MIN,
                            max_value: int = PRIMARY_MAX) -> List[int]:
    """
    Ensure prediction is a valid primary-number prediction.

    Args:
        prediction: Sequence of predicted numbers
        numbers_count: Expected count of numbers (default: 5)
        min_value: Minimum valid number (default: 1)
        max_value: Maximum valid number (default: 69)

    Returns:
        List of validated and sorted numbers

    Raises:
        ValueError: If the prediction is invalid
    """
    if isinstance(prediction, np.ndarray):
        prediction = prediction.tolist()
    if not isinstance(prediction, (list, tuple)):
        raise ValueError(f"Prediction must be a list or tuple, got {type(prediction).__name__}")

    prediction = list(prediction)

    if len(prediction) != numbers_count:
        raise ValueError(f"Prediction must contain exactly {numbers_count} numbers, got {len(prediction)}")

    if not all(isinstance(n, (int, np.integer)) for n in prediction):
        raise ValueError("All predicted numbers must be integers")
    prediction = [int(n) for n in prediction]

    if not all(min_value <= n <= max_value for n in prediction):
        out_of_range = [n for n in prediction if not (min_value <= n <= max_value)]
        raise ValueError(f"All numbers must be between {min_value} and {max_value}, got {out_of_range}")

    if len(set(prediction)) != len(prediction):
        duplicates = sorted({n for n in prediction if prediction.count(n) > 1})
        raise ValueError(f"Prediction contains duplicate numbers: {duplicates}")

    return sorted(prediction)

"""Seeded synthetic draw histories for demos and tests."""

from datetime import date, timedelta
from typing import List, Optional

import numpy as np

from .constants import PRIMARY_COUNT, PRIMARY_MAX, BONUS_MAX
from .validation import Draw


def generate_synthetic_draws(n_draws: int, seed: Optional[int] = None,
                             start: date = date(2015, 1, 3),
                             days_between: int = 3) -> List[Draw]:
    """
    Generate uniformly random draws in chronological order.

    Args:
        n_draws: Number of draws to generate
        seed: Seed for the random generator
        start: Date of the first draw
        days_between: Days between consecutive draws

    Returns:
        List of valid Draw records
    """
    rng = np.random.default_rng(seed)
    draws = []
    for i in range(n_draws):
        primary = rng.choice(np.arange(1, PRIMARY_MAX + 1), size=PRIMARY_COUNT, replace=False)
        bonus = int(rng.integers(1, BONUS_MAX + 1))
        draws.append(Draw(
            primary_numbers=tuple(sorted(int(n) for n in primary)),
            bonus_number=bonus,
            date=start + timedelta(days=i * days_between),
        ))
    return draws

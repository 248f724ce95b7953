import os
import sys

import numpy as np
import pytest

# Add project root to path to resolve imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from utils.synthetic import generate_synthetic_draws
from utils.validation import Draw


@pytest.fixture
def synthetic_draws():
    """150 seeded synthetic draws."""
    return generate_synthetic_draws(150, seed=42)


@pytest.fixture
def short_history():
    """A history shorter than one default validation window."""
    return generate_synthetic_draws(30, seed=7)


@pytest.fixture
def rng():
    return np.random.default_rng(123)


@pytest.fixture
def seven_every_draw():
    """Ten draws where 7 appears every time and no other number repeats."""
    draws = []
    for i in range(10):
        others = tuple(range(8 + 4 * i, 12 + 4 * i))
        draws.append(Draw(primary_numbers=(7,) + others, bonus_number=i + 1))
    return draws

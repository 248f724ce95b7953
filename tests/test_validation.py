from datetime import date

import numpy as np
import pandas as pd
import pytest

from utils.synthetic import generate_synthetic_draws
from utils.validation import Draw, draws_from_frame, ensure_valid_prediction, filter_valid_draws


@pytest.mark.parametrize("primary,bonus,valid", [
    ((1, 2, 3, 4, 5), 1, True),
    ((65, 66, 67, 68, 69), 26, True),
    ((1, 2, 3, 4), 1, False),
    ((1, 1, 3, 4, 5), 1, False),
    ((0, 2, 3, 4, 5), 1, False),
    ((1, 2, 3, 4, 70), 1, False),
    ((1, 2, 3, 4, 5), 27, False),
    ((1, 2, 3, 4, 'x'), 1, False),
])
def test_draw_validity(primary, bonus, valid):
    assert Draw(primary, bonus).is_valid() is valid


def test_filter_valid_draws():
    draws = [Draw((1, 2, 3, 4, 5), 1), Draw((1, 2, 3, 4, 5), 0), 'not a draw']
    assert filter_valid_draws(draws) == [draws[0]]


def test_ensure_valid_prediction():
    assert ensure_valid_prediction(np.array([5, 3, 1, 4, 2])) == [1, 2, 3, 4, 5]
    with pytest.raises(ValueError):
        ensure_valid_prediction([1, 2, 3, 4])
    with pytest.raises(ValueError):
        ensure_valid_prediction([1, 2, 3, 4, 4])
    with pytest.raises(ValueError):
        ensure_valid_prediction([1, 2, 3, 4, 99])
    with pytest.raises(ValueError):
        ensure_valid_prediction([1, 2, 3, 4, 5.5])


def test_draws_from_frame():
    df = pd.DataFrame({
        'date': pd.to_datetime(['2024-01-01', '2024-01-04']),
        'primary_numbers': [[5, 4, 3, 2, 1], [10, 20, 30, 40, 50]],
        'bonus_number': [7, 8],
    })
    draws = draws_from_frame(df)
    assert draws[0].primary_numbers == (5, 4, 3, 2, 1)
    assert draws[0].sorted_primary == [1, 2, 3, 4, 5]
    assert draws[1].date == date(2024, 1, 4)

    with pytest.raises(ValueError):
        draws_from_frame(df.drop(columns=['bonus_number']))


def test_synthetic_draws_are_valid_and_seeded():
    first = generate_synthetic_draws(50, seed=9)
    assert all(d.is_valid() for d in first)
    assert first == generate_synthetic_draws(50, seed=9)
    assert first[1].date > first[0].date

from .constants import (
    PRIMARY_COUNT, PRIMARY_MIN, PRIMARY_MAX, BONUS_MIN, BONUS_MAX, RECENT_WINDOW
)
from .validation import Draw, draws_from_frame, ensure_valid_prediction, filter_valid_draws

__all__ = ['Draw', 'draws_from_frame', 'ensure_valid_prediction', 'filter_valid_draws',
           'PRIMARY_COUNT', 'PRIMARY_MIN', 'PRIMARY_MAX',
           'BONUS_MIN', 'BONUS_MAX', 'RECENT_WINDOW']

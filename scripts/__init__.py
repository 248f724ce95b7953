from .walk_forward import (
    ValidationResults,
    ValidationWindow,
    ValidatorState,
    WalkForwardValidator
)

from .background import (
    BackgroundTask,
    TaskMessage
)

__all__ = [
    'ValidationResults',
    'ValidationWindow',
    'ValidatorState',
    'WalkForwardValidator',
    'BackgroundTask',
    'TaskMessage'
]

"""
Decorators for prediction methods and utilities
"""
import functools
import logging
import traceback
from typing import Callable, Any

logger = logging.getLogger(__name__)

def log_prediction_errors(func: Callable) -> Callable:
    """
    Decorator to log errors raised while producing a prediction

    Args:
        func: Function to decorate

    Returns:
        Decorated function that logs errors and re-raises them
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        try:
            return func(*args, **kwargs)
        except Exception as e:
            logger.debug(f"Error in {func.__qualname__}: {str(e)}")
            logger.debug(traceback.format_exc())
            raise
    return wrapper

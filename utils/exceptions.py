"""Typed errors raised by the validation and optimization engine."""


class LotteryValidationError(Exception):
    """Base class for all engine errors."""


class InsufficientDataError(LotteryValidationError):
    """Raised before any work starts when the history is too short for the run."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(f"Insufficient data. Need at least {required} draws, got {available}")


class InvalidDrawDataError(LotteryValidationError):
    """Raised when no usable draw remains after filtering malformed records."""


class PredictionFailedError(LotteryValidationError):
    """Raised by a prediction method for a single failed prediction."""

    def __init__(self, method: str, message: str):
        self.method = method
        super().__init__(f"{method}: {message}")


class ValidationAlreadyRunningError(LotteryValidationError):
    """Raised when a validator instance is asked to start a second concurrent run."""


class OptimizationAlreadyRunningError(LotteryValidationError):
    """Raised when an optimizer instance is asked to start a second concurrent run."""


class UnknownOptimizationTypeError(LotteryValidationError):
    """Raised for an unrecognised optimization target."""

    def __init__(self, optimization_type):
        self.optimization_type = optimization_type
        super().__init__(f"Unknown optimization type: {optimization_type}")

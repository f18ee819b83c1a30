"""Exceptions and warnings raised by the correction routines."""

__all__ = [
    "BatchSmoothError",
    "DegenerateInputError",
    "DegenerateInputWarning",
    "DimensionMismatchError",
    "InvalidArgumentError",
]


class BatchSmoothError(Exception):
    """Base class for errors raised by batchsmooth."""


class DimensionMismatchError(BatchSmoothError, ValueError):
    """Input matrices or index vectors have inconsistent shapes."""


class InvalidArgumentError(BatchSmoothError, ValueError):
    """A scalar option or index is outside its valid range."""


class DegenerateInputError(BatchSmoothError, ArithmeticError):
    """The computation cannot produce a defined value for the whole call."""


class DegenerateInputWarning(UserWarning):
    """Some output elements were set to NaN because their inputs are degenerate."""

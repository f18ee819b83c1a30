"""Validation helpers for scalar options and matrix shapes."""

import numbers

import numpy as np

from .errors import DimensionMismatchError, InvalidArgumentError

__all__ = [
    "check_anchor_index",
    "check_numeric_scalar",
    "check_positive_int",
    "check_same_length",
]


def check_numeric_scalar(value, name):
    """Return ``value`` as a positive, finite float.

    Parameters
    ----------
    value : object
        Candidate scalar.
    name : str
        Argument name used in the error message.

    Returns
    -------
    float
        The validated value.

    Raises
    ------
    InvalidArgumentError
        If ``value`` is not a real scalar, is not finite, or is not positive.
    """
    if isinstance(value, np.ndarray):
        if value.size != 1:
            raise InvalidArgumentError(f"{name} should be a numeric scalar, got an array of size {value.size}")
        value = value.reshape(-1)[0]
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidArgumentError(f"{name} should be a numeric scalar, got {type(value).__name__}")
    value = float(value)
    if not np.isfinite(value) or value <= 0:
        raise InvalidArgumentError(f"{name}={value} is not valid. Must be a positive finite number.")
    return value


def check_positive_int(value, name, allow_all=False):
    """Return ``value`` as a positive int, or ``-1`` when ``allow_all`` is set."""
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidArgumentError(f"{name}={value!r} is not valid. Must be an integer.")
    value = int(value)
    if allow_all and value == -1:
        return value
    if value < 1:
        suffix = " or -1" if allow_all else ""
        raise InvalidArgumentError(f"{name}={value} is not valid. Must be a positive integer{suffix}.")
    return value


def check_anchor_index(index, name="anchor_index", upper=None):
    """Convert an identifier vector to int64 and check its range.

    Parameters
    ----------
    index : array_like
        One-dimensional vector of 0-based identifiers.
    name : str
        Argument name used in error messages.
    upper : int, optional
        Exclusive upper bound on identifiers.

    Returns
    -------
    ndarray
        The identifiers as a contiguous int64 array.

    Raises
    ------
    DimensionMismatchError
        If ``index`` is not one-dimensional or an identifier is not below
        ``upper``.
    InvalidArgumentError
        If an identifier is negative or not an integer.
    """
    arr = np.asarray(index)
    if arr.ndim != 1:
        raise DimensionMismatchError(f"{name} should be one-dimensional, got shape {arr.shape}")
    if arr.size == 0:
        return np.zeros(0, dtype=np.int64)
    if not np.issubdtype(arr.dtype, np.integer):
        if not np.issubdtype(arr.dtype, np.floating) or not np.all(np.mod(arr, 1) == 0):
            raise InvalidArgumentError(f"{name} should contain integer identifiers")
    arr = np.ascontiguousarray(arr, dtype=np.int64)
    if arr.min() < 0:
        raise InvalidArgumentError(f"{name} should contain non-negative identifiers")
    if upper is not None and arr.max() >= upper:
        raise DimensionMismatchError(f"{name} contains identifier {arr.max()} but only {upper} samples are available")
    return arr


def check_same_length(expected, observed, message):
    """Raise ``DimensionMismatchError`` with ``message`` unless the sizes agree."""
    if expected != observed:
        raise DimensionMismatchError(f"{message} ({expected} != {observed})")

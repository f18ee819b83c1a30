"""Tests for the top-level package namespace."""

import batchsmooth


def test_public_names_are_importable():
    for name in batchsmooth.__all__:
        assert hasattr(batchsmooth, name), name


def test_error_hierarchy():
    assert issubclass(batchsmooth.DimensionMismatchError, ValueError)
    assert issubclass(batchsmooth.InvalidArgumentError, ValueError)
    assert issubclass(batchsmooth.DegenerateInputError, ArithmeticError)
    for cls in (batchsmooth.DimensionMismatchError, batchsmooth.InvalidArgumentError, batchsmooth.DegenerateInputError):
        assert issubclass(cls, batchsmooth.BatchSmoothError)
    assert issubclass(batchsmooth.DegenerateInputWarning, UserWarning)

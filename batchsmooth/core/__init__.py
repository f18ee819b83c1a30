"""Shared infrastructure: matrix access, kernels, validation and errors."""

from .accessor import DaskMatrixAccessor, DenseMatrixAccessor, MatrixAccessor, SparseMatrixAccessor, as_accessor
from .config import CorrectionConfig
from .errors import (
    BatchSmoothError,
    DegenerateInputError,
    DegenerateInputWarning,
    DimensionMismatchError,
    InvalidArgumentError,
)

__all__ = [
    "MatrixAccessor",
    "DenseMatrixAccessor",
    "SparseMatrixAccessor",
    "DaskMatrixAccessor",
    "as_accessor",
    "CorrectionConfig",
    "BatchSmoothError",
    "DimensionMismatchError",
    "InvalidArgumentError",
    "DegenerateInputError",
    "DegenerateInputWarning",
]

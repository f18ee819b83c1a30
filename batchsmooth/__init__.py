"""Kernel smoothing and variance adjustment for batch-effect correction."""

from batchsmooth.core import (
    BatchSmoothError,
    CorrectionConfig,
    DaskMatrixAccessor,
    DegenerateInputError,
    DegenerateInputWarning,
    DenseMatrixAccessor,
    DimensionMismatchError,
    InvalidArgumentError,
    MatrixAccessor,
    SparseMatrixAccessor,
    as_accessor,
)
from batchsmooth.mnn import CorrectionResult, compute_correction_vectors, correct_batch
from batchsmooth.smooth import AverageVectors, compute_average_vectors, smooth_gaussian_kernel
from batchsmooth.variance import adjust_shift_variance

__version__ = "0.1.0"

__all__ = [
    "smooth_gaussian_kernel",
    "adjust_shift_variance",
    "compute_average_vectors",
    "AverageVectors",
    "correct_batch",
    "compute_correction_vectors",
    "CorrectionResult",
    "CorrectionConfig",
    "MatrixAccessor",
    "DenseMatrixAccessor",
    "SparseMatrixAccessor",
    "DaskMatrixAccessor",
    "as_accessor",
    "BatchSmoothError",
    "DimensionMismatchError",
    "InvalidArgumentError",
    "DegenerateInputError",
    "DegenerateInputWarning",
]

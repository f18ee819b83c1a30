"""Batch correction from supplied mutual nearest neighbour pairs."""

from . import format as _format  # noqa: F401
from .correct import compute_correction_vectors, correct_batch
from .results import CorrectionResult

__all__ = [
    "compute_correction_vectors",
    "correct_batch",
    "CorrectionResult",
]

"""Gaussian kernel smoothing of correction vectors."""

from .averages import AverageVectors, compute_average_vectors
from .kernel import anchor_log_density, smooth_average_vectors, smooth_gaussian_kernel

__all__ = [
    "AverageVectors",
    "compute_average_vectors",
    "anchor_log_density",
    "smooth_average_vectors",
    "smooth_gaussian_kernel",
]

"""Result containers."""

from typing import Any, NamedTuple

import numpy as np


class CorrectionResult(NamedTuple):
    """Container for a batch correction of a query population.

    Attributes
    ----------
    corrected : ndarray of shape (n_genes, n_query)
        Query matrix with the correction field added.
    correction : ndarray of shape (n_genes, n_query)
        Smoothed correction vector of each query sample, after scaling.
    scaling : ndarray of shape (n_query,) or None
        Scale factor applied to each correction vector, or None when variance
        adjustment was not requested.
    anchors : ndarray of int64
        Query samples that anchor at least one pair.
    n_pairs : int
        Number of pairs used.
    estimation_params : dict
        Options used for the correction.
    """

    corrected: np.ndarray
    correction: np.ndarray
    scaling: np.ndarray | None
    anchors: np.ndarray
    n_pairs: int
    estimation_params: dict[str, Any]

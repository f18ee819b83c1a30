"""Per-anchor averaging of correction vectors."""

import logging
from typing import NamedTuple

import numpy as np

from batchsmooth.core.accessor import as_accessor
from batchsmooth.core.config import DEFAULT_BLOCK_SIZE
from batchsmooth.core.numba_utils import sum_rows_by_index
from batchsmooth.core.parallel import chunk_ranges
from batchsmooth.core.validators import check_anchor_index, check_positive_int, check_same_length

log = logging.getLogger("batchsmooth.smooth.averages")


class AverageVectors(NamedTuple):
    """Mean correction vector of every anchor that has at least one pair.

    Attributes
    ----------
    anchors : ndarray of int64
        Anchor identifiers in ascending order.
    vectors : ndarray of shape (n_anchors, n_features)
        Mean correction vector of each anchor, aligned with ``anchors``.
    counts : ndarray of int64
        Number of correction vectors averaged for each anchor.
    """

    anchors: np.ndarray
    vectors: np.ndarray
    counts: np.ndarray

    def __len__(self):
        return len(self.anchors)

    def __contains__(self, anchor):
        pos = np.searchsorted(self.anchors, anchor)
        return bool(pos < len(self.anchors) and self.anchors[pos] == anchor)

    def vector(self, anchor):
        """Return the mean correction vector of ``anchor``."""
        pos = np.searchsorted(self.anchors, anchor)
        if pos >= len(self.anchors) or self.anchors[pos] != anchor:
            raise KeyError(anchor)
        return self.vectors[pos]

    def to_dict(self):
        """Map each anchor identifier to its mean vector."""
        return {int(a): v for a, v in zip(self.anchors, self.vectors, strict=True)}


def compute_average_vectors(correction_vectors, anchor_index, n_samples=None, block_size=DEFAULT_BLOCK_SIZE):
    """Average the correction vectors that share an anchor identifier.

    Parameters
    ----------
    correction_vectors : array_like or MatrixAccessor
        Matrix of shape (n_pairs, n_features), one correction vector per row.
    anchor_index : array_like of int
        Anchor identifier of each row. Identifiers are 0-based sample indices
        and need not be contiguous.
    n_samples : int, optional
        Number of samples the identifiers index into. Defaults to the largest
        identifier plus one.
    block_size : int, default 512
        Number of rows read at once.

    Returns
    -------
    AverageVectors
        Mean vectors of the identifiers that occur in ``anchor_index``.
        Identifiers without rows are absent rather than zero-filled.

    Raises
    ------
    DimensionMismatchError
        If the length of ``anchor_index`` differs from the number of rows, or
        an identifier is not below ``n_samples``.
    InvalidArgumentError
        If an identifier is negative or not an integer.
    """
    vect = as_accessor(correction_vectors)
    n_pairs, n_features = vect.dimensions()
    index = np.asarray(anchor_index)
    check_same_length(
        n_pairs,
        index.shape[0] if index.ndim else -1,
        "number of rows in 'correction_vectors' should be equal to length of 'anchor_index'",
    )
    block_size = check_positive_int(block_size, "block_size")
    if n_samples is not None:
        n_samples = int(n_samples)
    index = check_anchor_index(index, upper=n_samples)

    if n_samples is None:
        n_samples = int(index.max()) + 1 if index.size else 0

    sums = np.zeros((n_samples, n_features))
    counts = np.zeros(n_samples, dtype=np.int64)
    for start, stop in chunk_ranges(n_pairs, block_size):
        rows = vect.read_rows(start, stop)
        sum_rows_by_index(rows, index[start:stop], sums, counts)

    anchors = np.flatnonzero(counts).astype(np.int64)
    vectors = sums[anchors] / counts[anchors, np.newaxis]
    log.debug("averaged %d correction vectors into %d anchors", n_pairs, len(anchors))
    return AverageVectors(anchors=anchors, vectors=vectors, counts=counts[anchors])

"""Gaussian kernel smoothing of anchor correction vectors."""

import logging

import numpy as np

from batchsmooth.core.accessor import as_accessor
from batchsmooth.core.config import DEFAULT_BLOCK_SIZE, DEFAULT_N_JOBS
from batchsmooth.core.errors import DegenerateInputError, DimensionMismatchError
from batchsmooth.core.numba_utils import column_log_sum_exp, log_kernel_block
from batchsmooth.core.parallel import chunk_ranges, parallel_map
from batchsmooth.core.validators import (
    check_anchor_index,
    check_numeric_scalar,
    check_positive_int,
    check_same_length,
)

from .averages import AverageVectors, compute_average_vectors

log = logging.getLogger("batchsmooth.smooth.kernel")


def smooth_gaussian_kernel(
    correction_vectors,
    anchor_index,
    sample_matrix,
    sigma,
    n_jobs=DEFAULT_N_JOBS,
    block_size=DEFAULT_BLOCK_SIZE,
):
    r"""Smooth per-pair correction vectors into one correction vector per sample.

    Correction vectors sharing an anchor are first averaged. Each anchor
    :math:`a` then contributes its mean vector :math:`v_a` to every sample
    :math:`s` with weight

    .. math::

        w(a, s) = \exp\left(L(a, s) - \log \sum_{a'} e^{L(a, a')}\right),
        \qquad L(a, s) = -\frac{\lVert x_a - x_s \rVert^2}{\sigma}

    where :math:`x` are the columns of ``sample_matrix`` and the sum runs
    over all anchors. The second term down-weights anchors in dense anchor
    regions. The smoothed vector of sample :math:`s` is
    :math:`\sum_a w(a, s) v_a / \sum_a w(a, s)`.

    All sums over kernel values are kept in log space using the pairwise rule
    :math:`\max(x, y) + \log(1 + e^{-|x - y|})`, so very small bandwidths do
    not underflow.

    Parameters
    ----------
    correction_vectors : array_like or MatrixAccessor
        Matrix of shape (n_pairs, n_genes), one correction vector per row.
    anchor_index : array_like of int
        0-based sample index of the anchor of each row.
    sample_matrix : array_like or MatrixAccessor
        Matrix of shape (n_features, n_samples) used for distances. Its
        feature count may differ from ``n_genes``.
    sigma : float
        Squared kernel bandwidth. Must be positive.
    n_jobs : int, default 1
        Number of worker threads over sample blocks. -1 uses all cores.
    block_size : int, default 512
        Number of samples processed per block.

    Returns
    -------
    ndarray of shape (n_genes, n_samples)
        Smoothed correction vector of each sample, one per column.

    Raises
    ------
    DimensionMismatchError
        If ``anchor_index`` and ``correction_vectors`` disagree in length, or
        an anchor does not index a column of ``sample_matrix``.
    InvalidArgumentError
        If ``sigma`` is not a positive finite scalar.
    DegenerateInputError
        If some sample receives zero total weight, e.g. when there are no
        anchors at all.
    """
    vect = as_accessor(correction_vectors)
    mat = as_accessor(sample_matrix)
    index = np.asarray(anchor_index)
    check_same_length(
        vect.nrow,
        index.shape[0] if index.ndim else -1,
        "number of rows in 'correction_vectors' should be equal to length of 'anchor_index'",
    )
    index = check_anchor_index(index, upper=mat.ncol)
    s2 = check_numeric_scalar(sigma, "sigma")
    n_jobs = check_positive_int(n_jobs, "n_jobs", allow_all=True)
    block_size = check_positive_int(block_size, "block_size")

    averages = compute_average_vectors(vect, index, n_samples=mat.ncol, block_size=block_size)
    return smooth_average_vectors(averages, mat, s2, n_jobs=n_jobs, block_size=block_size)


def smooth_average_vectors(averages, sample_matrix, sigma, n_jobs=DEFAULT_N_JOBS, block_size=DEFAULT_BLOCK_SIZE):
    """Smooth precomputed anchor averages over all samples.

    Parameters
    ----------
    averages : AverageVectors
        Anchor identifiers and their mean correction vectors.
    sample_matrix : array_like or MatrixAccessor
        Matrix of shape (n_features, n_samples) used for distances.
    sigma : float
        Squared kernel bandwidth.
    n_jobs : int, default 1
        Number of worker threads over sample blocks.
    block_size : int, default 512
        Number of samples processed per block.

    Returns
    -------
    ndarray of shape (n_genes, n_samples)
        Smoothed correction field.
    """
    if not isinstance(averages, AverageVectors):
        raise TypeError(f"averages should be AverageVectors, got {type(averages).__name__}")
    mat = as_accessor(sample_matrix)
    n_features, n_samples = mat.dimensions()
    s2 = check_numeric_scalar(sigma, "sigma")
    n_jobs = check_positive_int(n_jobs, "n_jobs", allow_all=True)
    block_size = check_positive_int(block_size, "block_size")
    n_genes = averages.vectors.shape[1]
    if len(averages) and averages.anchors[-1] >= n_samples:
        raise DimensionMismatchError(
            f"anchor {averages.anchors[-1]} is out of range for 'sample_matrix' with {n_samples} columns"
        )

    anchor_data = _read_anchor_columns(mat, averages.anchors)
    density = anchor_log_density(anchor_data, s2)
    log.debug(
        "smoothing %d anchors over %d samples (%d distance features, %d output features)",
        len(averages),
        n_samples,
        n_features,
        n_genes,
    )

    ranges = chunk_ranges(n_samples, block_size)
    args_list = [(mat, start, stop, anchor_data, averages.vectors, density, s2) for start, stop in ranges]
    blocks = parallel_map(_smooth_block, args_list, n_jobs=n_jobs)

    output = np.empty((n_genes, n_samples))
    degenerate = []
    for (start, stop), (values, log_total) in zip(ranges, blocks, strict=True):
        output[:, start:stop] = values
        bad = ~np.isfinite(log_total)
        if bad.any():
            degenerate.extend((start + np.flatnonzero(bad)).tolist())

    if degenerate:
        shown = ", ".join(str(i) for i in degenerate[:10])
        more = "" if len(degenerate) <= 10 else f" and {len(degenerate) - 10} more"
        raise DegenerateInputError(f"zero total kernel weight for samples {shown}{more}")
    return output


def anchor_log_density(anchor_data, sigma):
    """Log kernel density of each anchor among all anchors.

    Parameters
    ----------
    anchor_data : ndarray of shape (n_features, n_anchors)
        Feature vectors of the anchors.
    sigma : float
        Squared kernel bandwidth.

    Returns
    -------
    ndarray of shape (n_anchors,)
        ``log(sum_a' exp(-||x_a - x_a'||^2 / sigma))`` for each anchor ``a``.
    """
    anchor_data = np.ascontiguousarray(anchor_data, dtype=np.float64)
    if anchor_data.shape[1] == 0:
        return np.zeros(0)
    return column_log_sum_exp(log_kernel_block(anchor_data, anchor_data, sigma).T.copy())


def _read_anchor_columns(mat, anchors):
    n_features = mat.nrow
    anchor_data = np.empty((len(anchors), n_features))
    for k, a in enumerate(anchors):
        mat.read_column(int(a), anchor_data[k])
    return np.ascontiguousarray(anchor_data.T)


def _smooth_block(mat, start, stop, anchor_data, vectors, density, s2):
    """Smoothed vectors and log total weight for samples ``start:stop``."""
    block = mat.read_columns(start, stop)
    # Rows are anchors, columns are samples in the block.
    log_weight = log_kernel_block(anchor_data, block, s2) - density[:, np.newaxis]
    log_total = column_log_sum_exp(log_weight)

    with np.errstate(invalid="ignore"):
        weight = np.exp(log_weight - log_total[np.newaxis, :])
    return vectors.T @ weight, log_total

"""Variance adjustment of correction vectors by weighted quantile matching."""

import logging
import warnings

import numpy as np

from batchsmooth.core.accessor import as_accessor
from batchsmooth.core.config import DEFAULT_BLOCK_SIZE, DEFAULT_BUFFER_ELEMENTS, DEFAULT_N_JOBS
from batchsmooth.core.errors import DegenerateInputWarning, DimensionMismatchError
from batchsmooth.core.numba_utils import line_cumulative_weight, line_projection_weights, project_column
from batchsmooth.core.parallel import chunk_ranges, parallel_map
from batchsmooth.core.validators import check_numeric_scalar, check_positive_int

log = logging.getLogger("batchsmooth.variance.adjust")


def adjust_shift_variance(
    reference_matrix,
    query_matrix,
    gradient_matrix,
    sigma,
    n_jobs=DEFAULT_N_JOBS,
    block_size=DEFAULT_BLOCK_SIZE,
):
    r"""Scale factors that match each query sample's quantile to the reference.

    For query sample :math:`c` with feature vector :math:`x_c` and gradient
    :math:`g_c`, let :math:`u = g_c / \lVert g_c \rVert`. Every sample is
    projected onto :math:`u` and weighted by
    :math:`\exp(-d^2 / \sigma)`, where :math:`d` is its distance to the line
    through :math:`x_c` along :math:`u`. The weighted fraction of the query
    population projecting at or before :math:`u^\top x_c` gives a cumulative
    probability :math:`p`. The reference coordinate :math:`q` at which the
    weighted reference distribution first reaches :math:`p` is then located,
    and the scale factor is

    .. math::

        \frac{q - u^\top x_c}{\lVert g_c \rVert}

    so that adding the scaled gradient to :math:`x_c` moves its projection to
    :math:`q`.

    Parameters
    ----------
    reference_matrix : array_like or MatrixAccessor
        Reference population of shape (n_genes, n_reference).
    query_matrix : array_like or MatrixAccessor
        Query population of shape (n_genes, n_query).
    gradient_matrix : array_like or MatrixAccessor
        Direction vectors of shape (n_query, n_genes), one per query sample.
        They need not be normalised.
    sigma : float
        Squared kernel bandwidth. Must be positive.
    n_jobs : int, default 1
        Number of worker threads over query chunks. -1 uses all cores.
    block_size : int, default 512
        Number of columns read at once.

    Returns
    -------
    ndarray of shape (n_query,)
        Scale factor of each query sample. Samples with a zero-length
        gradient, or any sample when the reference population is empty, get
        NaN and a :class:`DegenerateInputWarning` is issued.

    Raises
    ------
    DimensionMismatchError
        If the gene counts of the three matrices differ, or the gradient
        matrix does not have one row per query sample.
    InvalidArgumentError
        If ``sigma`` is not a positive finite scalar.
    """
    d1 = as_accessor(reference_matrix)
    d2 = as_accessor(query_matrix)
    v = as_accessor(gradient_matrix)

    n_genes, n_reference = d1.dimensions()
    n_genes_query, n_query = d2.dimensions()
    n_vectors, n_genes_vect = v.dimensions()
    if n_genes != n_genes_query or n_genes != n_genes_vect:
        raise DimensionMismatchError(
            f"number of genes do not match up between matrices ({n_genes}, {n_genes_query}, {n_genes_vect})"
        )
    if n_query != n_vectors:
        raise DimensionMismatchError(f"number of samples do not match up between matrices ({n_query} != {n_vectors})")

    s2 = check_numeric_scalar(sigma, "sigma")
    n_jobs = check_positive_int(n_jobs, "n_jobs", allow_all=True)
    block_size = check_positive_int(block_size, "block_size")

    chunk_size = max(1, min(block_size, DEFAULT_BUFFER_ELEMENTS // max(n_reference, 1)))
    log.debug(
        "adjusting %d query samples against %d reference samples in chunks of %d",
        n_query,
        n_reference,
        chunk_size,
    )
    args_list = [(d1, d2, v, start, stop, s2, block_size) for start, stop in chunk_ranges(n_query, chunk_size)]
    chunks = parallel_map(_adjust_chunk, args_list, n_jobs=n_jobs)

    output = np.concatenate([values for values, _ in chunks]) if chunks else np.zeros(0)
    zero_norm = [i for _, bad in chunks for i in bad]

    if zero_norm:
        shown = ", ".join(str(i) for i in zero_norm[:10])
        more = "" if len(zero_norm) <= 10 else f" and {len(zero_norm) - 10} more"
        warnings.warn(
            f"Gradient vectors have zero or non-finite length for query samples {shown}{more}; "
            "their scale factors are NaN.",
            DegenerateInputWarning,
            stacklevel=2,
        )
    if n_reference == 0 and n_query > 0:
        warnings.warn(
            "The reference population is empty; all scale factors are NaN.",
            DegenerateInputWarning,
            stacklevel=2,
        )
    return output


def match_quantile(projections, weights, target):
    """Return the first projection at which the cumulative weight reaches ``target``.

    Pairs are visited in ascending order of projection, ties broken by
    weight.

    Parameters
    ----------
    projections : ndarray
        Projected coordinates of the reference population.
    weights : ndarray
        Kernel weight of each reference sample.
    target : float
        Cumulative weight to reach.

    Returns
    -------
    float
        The matched coordinate. The largest projection if the cumulative
        weight never reaches ``target``, and NaN if there are no samples.
    """
    projections = np.asarray(projections, dtype=np.float64)
    weights = np.asarray(weights, dtype=np.float64)
    if projections.size == 0:
        return np.nan

    order = np.lexsort((weights, projections))
    cumulative = np.cumsum(weights[order])
    reached = cumulative >= target
    if not reached.any():
        return float(projections[order[-1]])
    return float(projections[order[np.argmax(reached)]])


def _adjust_chunk(d1, d2, v, start, stop, s2, block_size):
    """Scale factors for query samples ``start:stop`` and the samples with a degenerate gradient."""
    n_reference = d1.ncol
    n_query = d2.ncol
    n_chunk = stop - start

    grads = v.read_rows(start, stop)
    norms = np.sqrt(np.sum(grads * grads, axis=1))
    valid = np.flatnonzero(np.isfinite(norms) & (norms > 0))
    unit = np.zeros_like(grads)
    unit[valid] = grads[valid] / norms[valid, np.newaxis]

    current = d2.read_columns(start, stop)
    current_rows = np.ascontiguousarray(current.T)
    curproj = np.full(n_chunk, np.nan)
    for q in valid:
        curproj[q] = project_column(unit[q], current, q)

    # Cumulative probability of each query sample within its own population.
    below = np.zeros(n_chunk)
    total_same = np.zeros(n_chunk)
    for bstart, bstop in chunk_ranges(n_query, block_size):
        block = d2.read_columns(bstart, bstop)
        for q in valid:
            cell = start + q
            self_col = cell - bstart if bstart <= cell < bstop else -1
            b, t = line_cumulative_weight(current_rows[q], unit[q], block, s2, curproj[q], self_col)
            below[q] += b
            total_same[q] += t

    ref_proj = np.empty((n_chunk, n_reference))
    ref_weight = np.empty((n_chunk, n_reference))
    for bstart, bstop in chunk_ranges(n_reference, block_size):
        block = d1.read_columns(bstart, bstop)
        for q in valid:
            line_projection_weights(
                current_rows[q],
                unit[q],
                block,
                s2,
                ref_proj[q, bstart:bstop],
                ref_weight[q, bstart:bstop],
            )

    output = np.full(n_chunk, np.nan)
    for q in valid:
        prob = below[q] / total_same[q]
        ref_quan = match_quantile(ref_proj[q], ref_weight[q], prob * ref_weight[q].sum())
        # Distance between quantiles as a multiple of the original vector.
        output[q] = (ref_quan - curproj[q]) / norms[q]

    bad = np.setdiff1d(np.arange(n_chunk), valid)
    return output, (start + bad).tolist()

"""Batch correction from mutual nearest neighbour pairs."""

import logging

import numpy as np

from batchsmooth.core.accessor import as_accessor
from batchsmooth.core.config import DEFAULT_BLOCK_SIZE, DEFAULT_N_JOBS, DEFAULT_SIGMA, CorrectionConfig
from batchsmooth.core.errors import DimensionMismatchError
from batchsmooth.core.validators import check_anchor_index, check_same_length
from batchsmooth.smooth.averages import compute_average_vectors
from batchsmooth.smooth.kernel import smooth_average_vectors
from batchsmooth.variance.adjust import adjust_shift_variance

from .results import CorrectionResult

log = logging.getLogger("batchsmooth.mnn.correct")


def compute_correction_vectors(reference_matrix, query_matrix, pairs_reference, pairs_query):
    """Difference between the reference and query member of each pair.

    Parameters
    ----------
    reference_matrix : array_like or MatrixAccessor
        Reference population of shape (n_genes, n_reference).
    query_matrix : array_like or MatrixAccessor
        Query population of shape (n_genes, n_query).
    pairs_reference, pairs_query : array_like of int
        0-based column indices of the paired samples in each population.

    Returns
    -------
    ndarray of shape (n_pairs, n_genes)
        ``reference[:, pairs_reference[k]] - query[:, pairs_query[k]]`` in row ``k``.
    """
    d1 = as_accessor(reference_matrix)
    d2 = as_accessor(query_matrix)
    n_genes, n_reference = d1.dimensions()
    n_genes_query, n_query = d2.dimensions()
    check_same_length(n_genes, n_genes_query, "number of genes do not match up between matrices")

    pairs_reference = np.asarray(pairs_reference)
    pairs_query = np.asarray(pairs_query)
    check_same_length(
        pairs_reference.shape[0] if pairs_reference.ndim else -1,
        pairs_query.shape[0] if pairs_query.ndim else -1,
        "'pairs_reference' and 'pairs_query' should have the same length",
    )
    pairs_reference = check_anchor_index(pairs_reference, "pairs_reference", upper=n_reference)
    pairs_query = check_anchor_index(pairs_query, "pairs_query", upper=n_query)

    vectors = np.empty((len(pairs_reference), n_genes))
    ref_buffer = np.empty(n_genes)
    query_buffer = np.empty(n_genes)
    for k, (r, q) in enumerate(zip(pairs_reference, pairs_query, strict=True)):
        d1.read_column(int(r), ref_buffer)
        d2.read_column(int(q), query_buffer)
        vectors[k] = ref_buffer - query_buffer
    return vectors


def correct_batch(
    reference_matrix,
    query_matrix,
    pairs_reference,
    pairs_query,
    sigma=DEFAULT_SIGMA,
    var_adj=True,
    n_jobs=DEFAULT_N_JOBS,
    block_size=DEFAULT_BLOCK_SIZE,
):
    r"""Correct a query population towards a reference using supplied pairs.

    Each pair defines a correction vector from its query member to its
    reference member. These are averaged per query anchor and smoothed over
    the query population with :func:`~batchsmooth.smooth.smooth_gaussian_kernel`.
    With ``var_adj=True`` each smoothed vector is then rescaled by
    :func:`~batchsmooth.variance.adjust_shift_variance`, floored at 1 so that
    the correction is never shrunk, to match the spread of the query
    population along the correction direction to that of the reference.

    Parameters
    ----------
    reference_matrix : array_like or MatrixAccessor
        Reference population of shape (n_genes, n_reference).
    query_matrix : array_like or MatrixAccessor
        Query population of shape (n_genes, n_query).
    pairs_reference, pairs_query : array_like of int
        0-based column indices of the paired samples. Pair selection is left
        to the caller.
    sigma : float, default 0.1
        Squared kernel bandwidth used by both steps.
    var_adj : bool, default True
        Whether to rescale the correction vectors.
    n_jobs : int, default 1
        Number of worker threads. -1 uses all cores.
    block_size : int, default 512
        Number of columns read at once.

    Returns
    -------
    CorrectionResult
        Corrected query matrix, correction field and scale factors.

    Raises
    ------
    DimensionMismatchError
        If the populations have different gene counts, the pair vectors
        differ in length or a pair index is out of range.
    InvalidArgumentError
        If an option is invalid.
    DegenerateInputError
        If there are no pairs.
    """
    d1 = as_accessor(reference_matrix)
    d2 = as_accessor(query_matrix)
    n_genes, n_reference = d1.dimensions()
    n_genes_query, n_query = d2.dimensions()
    if n_genes != n_genes_query:
        raise DimensionMismatchError(f"number of genes do not match up between matrices ({n_genes} != {n_genes_query})")

    vectors = compute_correction_vectors(d1, d2, pairs_reference, pairs_query)
    config = CorrectionConfig(sigma=sigma, var_adj=var_adj, n_jobs=n_jobs, block_size=block_size)
    averages = compute_average_vectors(vectors, pairs_query, n_samples=n_query, block_size=config.block_size)
    log.info("correcting %d query samples using %d pairs over %d anchors", n_query, len(vectors), len(averages))

    correction = smooth_average_vectors(
        averages, d2, config.sigma, n_jobs=config.n_jobs, block_size=config.block_size
    )

    scaling = None
    if config.var_adj:
        scaling = adjust_shift_variance(
            d1, d2, correction.T, config.sigma, n_jobs=config.n_jobs, block_size=config.block_size
        )
        # NaN scales come from zero-length corrections, which stay zero.
        scaling = np.fmax(scaling, 1.0)
        correction = correction * scaling[np.newaxis, :]

    corrected = d2.read_columns(0, n_query) + correction
    params = config.to_dict()
    params["n_reference"] = n_reference
    return CorrectionResult(
        corrected=corrected,
        correction=correction,
        scaling=scaling,
        anchors=averages.anchors,
        n_pairs=len(vectors),
        estimation_params=params,
    )

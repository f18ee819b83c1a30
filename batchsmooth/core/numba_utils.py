"""Numba-accelerated kernels for log-space accumulation and distance computation."""

import numba as nb
import numpy as np

__all__ = [
    "column_log_sum_exp",
    "line_cumulative_weight",
    "line_projection_weights",
    "log_kernel_block",
    "log_sum_exp",
    "logspace_add",
    "project_column",
    "sum_rows_by_index",
]


@nb.njit(cache=True, nogil=True)
def logspace_add(x, y):
    """Return ``log(exp(x) + exp(y))`` without leaving log space.

    Uses ``max(x, y) + log1p(exp(-|x - y|))`` so that neither argument is
    exponentiated directly.
    """
    if x == -np.inf:
        return y
    if y == -np.inf:
        return x
    larger = max(x, y)
    diff = abs(x - y)
    return larger + np.log1p(np.exp(-diff))


@nb.njit(cache=True, nogil=True)
def log_sum_exp(values):
    """Return ``log(sum(exp(values)))`` by iterating :func:`logspace_add`.

    An empty input gives ``-inf``.
    """
    total = -np.inf
    for i in range(values.shape[0]):
        total = logspace_add(total, values[i])
    return total


@nb.njit(cache=True, nogil=True)
def column_log_sum_exp(values):
    """Apply :func:`log_sum_exp` down each column of a 2-D array."""
    n_rows, n_cols = values.shape
    out = np.empty(n_cols)
    for j in range(n_cols):
        total = -np.inf
        for i in range(n_rows):
            total = logspace_add(total, values[i, j])
        out[j] = total
    return out


@nb.njit(cache=True, nogil=True)
def log_kernel_block(centers, block, s2):
    """Log Gaussian kernel between every center column and every block column.

    Parameters
    ----------
    centers : ndarray of shape (n_features, n_centers)
        Feature vectors of the kernel centers.
    block : ndarray of shape (n_features, n_cols)
        Feature vectors of the samples.
    s2 : float
        Squared bandwidth.

    Returns
    -------
    ndarray of shape (n_centers, n_cols)
        ``-||centers[:, a] - block[:, s]||^2 / s2``.
    """
    n_features, n_centers = centers.shape
    n_cols = block.shape[1]
    out = np.empty((n_centers, n_cols))
    for a in range(n_centers):
        for s in range(n_cols):
            dist2 = 0.0
            for g in range(n_features):
                tmp = centers[g, a] - block[g, s]
                dist2 += tmp * tmp
            out[a, s] = dist2 / -s2
    return out


@nb.njit(cache=True, nogil=True)
def _sq_distance_to_line(current, grad, block, col):
    # Residual of (current - point) after removing its component along grad.
    n_features = current.shape[0]
    scale = 0.0
    for g in range(n_features):
        scale += (current[g] - block[g, col]) * grad[g]
    dist = 0.0
    for g in range(n_features):
        w = current[g] - block[g, col] - scale * grad[g]
        dist += w * w
    return dist


@nb.njit(cache=True, nogil=True)
def project_column(grad, block, col):
    """Return the dot product of ``grad`` with column ``col`` of ``block``."""
    proj = 0.0
    for g in range(grad.shape[0]):
        proj += grad[g] * block[g, col]
    return proj


@nb.njit(cache=True, nogil=True)
def line_projection_weights(current, grad, block, s2, proj_out, weight_out):
    """Project block columns onto ``grad`` and weight them by distance to the line.

    The line passes through ``current`` in the unit direction ``grad``. For
    each column ``o`` of ``block``, ``proj_out[o]`` receives its projection and
    ``weight_out[o]`` receives ``exp(-dist / s2)`` where ``dist`` is the squared
    perpendicular distance to the line.
    """
    for o in range(block.shape[1]):
        proj_out[o] = project_column(grad, block, o)
        weight_out[o] = np.exp(-_sq_distance_to_line(current, grad, block, o) / s2)


@nb.njit(cache=True, nogil=True)
def line_cumulative_weight(current, grad, block, s2, curproj, self_col):
    """Sum line weights of block columns, and of those projecting at or before ``curproj``.

    Column ``self_col`` is the sample defining the line; it contributes weight
    1 and always counts as at or before its own projection. Pass ``-1`` when
    the sample is not in the block.

    Returns
    -------
    below : float
        Weight of columns with projection ``<= curproj``.
    total : float
        Weight of all columns.
    """
    below = 0.0
    total = 0.0
    for o in range(block.shape[1]):
        if o == self_col:
            below += 1.0
            total += 1.0
            continue
        weight = np.exp(-_sq_distance_to_line(current, grad, block, o) / s2)
        if project_column(grad, block, o) <= curproj:
            below += weight
        total += weight
    return below, total


@nb.njit(cache=True, nogil=True)
def sum_rows_by_index(rows, index, sums, counts):
    """Add each row of ``rows`` into ``sums[index[i]]`` and count it in ``counts``."""
    n_rows, n_cols = rows.shape
    for i in range(n_rows):
        target = index[i]
        counts[target] += 1
        for g in range(n_cols):
            sums[target, g] += rows[i, g]

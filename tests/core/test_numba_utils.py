"""Tests for numba-accelerated kernels."""

import numpy as np
import pytest
from scipy.special import logsumexp

from batchsmooth.core.numba_utils import (
    column_log_sum_exp,
    line_cumulative_weight,
    line_projection_weights,
    log_kernel_block,
    log_sum_exp,
    logspace_add,
    project_column,
    sum_rows_by_index,
)


@pytest.mark.parametrize(
    "x,y",
    [
        (0.0, 0.0),
        (1.5, -2.0),
        (-3.0, 4.0),
        (-700.0, -701.0),
        (50.0, 49.999),
    ],
)
def test_logspace_add_matches_logaddexp(x, y):
    np.testing.assert_allclose(logspace_add(x, y), np.logaddexp(x, y), rtol=1e-14)


def test_logspace_add_negative_infinity_is_identity():
    assert logspace_add(-np.inf, 2.5) == 2.5
    assert logspace_add(-1.0, -np.inf) == -1.0
    assert logspace_add(-np.inf, -np.inf) == -np.inf


def test_log_sum_exp_matches_scipy(rng):
    values = rng.normal(scale=5.0, size=200)
    np.testing.assert_allclose(log_sum_exp(values), logsumexp(values), rtol=1e-12)


def test_log_sum_exp_matches_direct_sum_for_moderate_values(rng):
    values = rng.uniform(-5, 5, size=50)
    np.testing.assert_allclose(log_sum_exp(values), np.log(np.sum(np.exp(values))), rtol=1e-12)


@pytest.mark.parametrize("scale", [1e4, -1e4])
def test_log_sum_exp_extreme_values_stay_finite(scale):
    values = np.array([scale, scale, scale - 1.0])
    expected = scale + np.log(2.0 + np.exp(-1.0))

    result = log_sum_exp(values)

    assert np.isfinite(result)
    np.testing.assert_allclose(result, expected, rtol=1e-12)

    with np.errstate(over="ignore", divide="ignore"):
        direct = np.log(np.sum(np.exp(values)))
    assert not np.isfinite(direct)


def test_log_sum_exp_empty_is_negative_infinity():
    assert log_sum_exp(np.zeros(0)) == -np.inf


def test_column_log_sum_exp(rng):
    values = rng.normal(size=(7, 4))
    np.testing.assert_allclose(column_log_sum_exp(values), logsumexp(values, axis=0), rtol=1e-12)


def test_log_kernel_block_matches_bruteforce(rng):
    centers = rng.normal(size=(5, 3))
    block = rng.normal(size=(5, 8))
    s2 = 2.5

    expected = -np.sum((centers[:, :, np.newaxis] - block[:, np.newaxis, :]) ** 2, axis=0) / s2

    np.testing.assert_allclose(log_kernel_block(centers, block, s2), expected, rtol=1e-12)


def test_line_projection_weights_geometry():
    current = np.array([0.0, 0.0])
    grad = np.array([1.0, 0.0])
    block = np.array([[3.0, 2.0, -1.0], [0.0, 1.0, 2.0]])
    s2 = 2.0
    proj = np.empty(3)
    weight = np.empty(3)

    line_projection_weights(current, grad, block, s2, proj, weight)

    np.testing.assert_allclose(proj, [3.0, 2.0, -1.0])
    np.testing.assert_allclose(weight, np.exp(-np.array([0.0, 1.0, 4.0]) / s2))


def test_line_distance_ignores_offset_along_line():
    current = np.array([1.0, 1.0, 1.0])
    grad = np.array([0.0, 0.0, 1.0])
    block = np.array([[1.0], [1.0], [-20.0]])
    proj = np.empty(1)
    weight = np.empty(1)

    line_projection_weights(current, grad, block, 0.5, proj, weight)

    assert proj[0] == -20.0
    assert weight[0] == 1.0


def test_line_cumulative_weight_counts_self_as_below():
    current = np.array([0.0, 0.0])
    grad = np.array([1.0, 0.0])
    block = np.array([[3.0, 2.0, -1.0, 0.0], [0.0, 1.0, 2.0, 0.0]])
    s2 = 2.0
    weights = np.exp(-np.array([0.0, 1.0, 4.0]) / s2)

    below, total = line_cumulative_weight(current, grad, block, s2, 0.0, 3)

    np.testing.assert_allclose(below, weights[2] + 1.0)
    np.testing.assert_allclose(total, weights.sum() + 1.0)


def test_line_cumulative_weight_without_self():
    current = np.array([0.0, 0.0])
    grad = np.array([1.0, 0.0])
    block = np.array([[3.0, -2.0], [0.0, 0.0]])

    below, total = line_cumulative_weight(current, grad, block, 1.0, 0.0, -1)

    assert below == 1.0
    assert total == 2.0


def test_project_column():
    grad = np.array([0.6, 0.8])
    block = np.array([[1.0, 5.0], [2.0, -1.0]])
    assert project_column(grad, block, 0) == pytest.approx(2.2)
    assert project_column(grad, block, 1) == pytest.approx(2.2)


def test_sum_rows_by_index():
    rows = np.array([[1.0, 1.0], [3.0, 3.0], [10.0, 10.0]])
    index = np.array([0, 0, 2], dtype=np.int64)
    sums = np.zeros((3, 2))
    counts = np.zeros(3, dtype=np.int64)

    sum_rows_by_index(rows, index, sums, counts)

    np.testing.assert_array_equal(sums, [[4.0, 4.0], [0.0, 0.0], [10.0, 10.0]])
    np.testing.assert_array_equal(counts, [2, 0, 1])

"""Tests for batch correction from supplied pairs."""

import numpy as np
import pytest

from batchsmooth.core.errors import (
    DegenerateInputError,
    DegenerateInputWarning,
    DimensionMismatchError,
    InvalidArgumentError,
)
from batchsmooth.mnn import CorrectionResult, compute_correction_vectors, correct_batch
from batchsmooth.smooth import smooth_gaussian_kernel


@pytest.fixture
def shifted_batches(rng):
    reference = rng.normal(size=(5, 30))
    shift = np.array([2.0, -1.0, 0.5, 0.0, 3.0])
    query = reference[:, :20] + shift[:, np.newaxis]
    pairs = np.arange(10)
    return reference, query, pairs, shift


def test_compute_correction_vectors(shifted_batches):
    reference, query, pairs, shift = shifted_batches

    vectors = compute_correction_vectors(reference, query, pairs, pairs)

    assert vectors.shape == (10, 5)
    np.testing.assert_allclose(vectors, np.tile(-shift, (10, 1)), atol=1e-12)


def test_compute_correction_vectors_uses_pair_columns():
    reference = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
    query = np.array([[0.0, 10.0], [0.0, 20.0]])

    vectors = compute_correction_vectors(reference, query, [2, 0], [1, 1])

    np.testing.assert_array_equal(vectors, [[-7.0, -14.0], [-9.0, -16.0]])


def test_pure_shift_is_removed(shifted_batches):
    reference, query, pairs, shift = shifted_batches

    result = correct_batch(reference, query, pairs, pairs, sigma=2.0, var_adj=False)

    assert isinstance(result, CorrectionResult)
    assert result.scaling is None
    assert result.n_pairs == 10
    np.testing.assert_array_equal(result.anchors, pairs)
    np.testing.assert_allclose(result.correction, np.tile(-shift[:, np.newaxis], (1, 20)), atol=1e-10)
    np.testing.assert_allclose(result.corrected, reference[:, :20], atol=1e-10)


def test_correction_matches_smoother(rng):
    reference = rng.normal(size=(4, 25))
    query = rng.normal(loc=1.0, size=(4, 18))
    pairs_reference = rng.integers(0, 25, size=12)
    pairs_query = rng.integers(0, 18, size=12)

    result = correct_batch(reference, query, pairs_reference, pairs_query, sigma=1.5, var_adj=False)

    vectors = reference[:, pairs_reference].T - query[:, pairs_query].T
    expected = smooth_gaussian_kernel(vectors, pairs_query, query, 1.5)
    np.testing.assert_allclose(result.correction, expected, rtol=1e-10, atol=1e-12)
    np.testing.assert_allclose(result.corrected, query + expected, rtol=1e-10, atol=1e-12)


def test_variance_adjustment_never_shrinks(rng):
    reference = rng.normal(scale=2.0, size=(4, 40))
    query = rng.normal(loc=3.0, scale=0.5, size=(4, 30))
    pairs = np.arange(15)

    plain = correct_batch(reference, query, pairs, pairs, sigma=4.0, var_adj=False)
    adjusted = correct_batch(reference, query, pairs, pairs, sigma=4.0, var_adj=True)

    assert adjusted.scaling.shape == (30,)
    assert np.all(adjusted.scaling >= 1.0)
    np.testing.assert_allclose(adjusted.correction, plain.correction * adjusted.scaling, rtol=1e-12)


def test_zero_correction_keeps_query_unchanged(rng):
    reference = rng.normal(size=(3, 10))
    query = reference.copy()
    pairs = np.arange(10)

    with pytest.warns(DegenerateInputWarning, match="zero or non-finite length"):
        result = correct_batch(reference, query, pairs, pairs, sigma=1.0)

    np.testing.assert_array_equal(result.scaling, np.ones(10))
    np.testing.assert_allclose(result.corrected, query)


def test_estimation_params(shifted_batches):
    reference, query, pairs, _ = shifted_batches

    result = correct_batch(reference, query, pairs, pairs, sigma=2.0, var_adj=False, block_size=7)

    assert result.estimation_params == {
        "sigma": 2.0,
        "var_adj": False,
        "n_jobs": 1,
        "block_size": 7,
        "n_reference": 30,
    }


def test_result_summary(shifted_batches):
    reference, query, pairs, _ = shifted_batches

    result = correct_batch(reference, query, pairs, pairs, sigma=2.0)
    text = str(result)

    assert "Mutual Nearest Neighbour Batch Correction" in text
    assert "Scale" in text
    assert "Reference samples: 30" in text
    assert "Query samples: 20" in text
    assert "Pairs: 10" in text
    assert "Variance adjustment: Yes" in text
    assert repr(result) == text


def test_gene_mismatch_raises(shifted_batches):
    reference, query, pairs, _ = shifted_batches
    with pytest.raises(DimensionMismatchError, match="number of genes"):
        correct_batch(reference[:4], query, pairs, pairs)


def test_pair_length_mismatch_raises(shifted_batches):
    reference, query, pairs, _ = shifted_batches
    with pytest.raises(DimensionMismatchError, match="same length"):
        correct_batch(reference, query, pairs, pairs[:-1])


def test_pair_out_of_range_raises(shifted_batches):
    reference, query, pairs, _ = shifted_batches
    with pytest.raises(DimensionMismatchError, match="pairs_query"):
        correct_batch(reference, query, pairs, pairs + 15)


def test_invalid_options_raise(shifted_batches):
    reference, query, pairs, _ = shifted_batches
    with pytest.raises(InvalidArgumentError, match="sigma"):
        correct_batch(reference, query, pairs, pairs, sigma=-1.0)
    with pytest.raises(InvalidArgumentError, match="n_jobs"):
        correct_batch(reference, query, pairs, pairs, n_jobs=0)


def test_dimension_check_happens_before_sigma_check(shifted_batches):
    reference, query, pairs, _ = shifted_batches
    with pytest.raises(DimensionMismatchError, match="same length"):
        correct_batch(reference, query, pairs, pairs[:-1], sigma=-1.0)


def test_no_pairs_is_degenerate(shifted_batches):
    reference, query, _, _ = shifted_batches
    with pytest.raises(DegenerateInputError):
        correct_batch(reference, query, [], [])

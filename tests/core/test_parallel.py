"""Tests for parallel execution utilities."""

import threading

import pytest

from batchsmooth.core.parallel import chunk_ranges, parallel_map


@pytest.mark.parametrize(
    "n,size,expected",
    [
        (0, 4, []),
        (3, 4, [(0, 3)]),
        (8, 4, [(0, 4), (4, 8)]),
        (10, 4, [(0, 4), (4, 8), (8, 10)]),
        (3, 1, [(0, 1), (1, 2), (2, 3)]),
    ],
)
def test_chunk_ranges(n, size, expected):
    assert chunk_ranges(n, size) == expected


@pytest.mark.parametrize("n_jobs", [1, 2, 4, -1])
def test_parallel_map_preserves_order(n_jobs):
    results = parallel_map(lambda a, b: a * b, [(i, i + 1) for i in range(20)], n_jobs=n_jobs)
    assert results == [i * (i + 1) for i in range(20)]


def test_parallel_map_sequential_runs_in_caller_thread():
    caller = threading.get_ident()
    results = parallel_map(lambda _: threading.get_ident(), [(i,) for i in range(3)], n_jobs=1)
    assert all(r == caller for r in results)


def test_parallel_map_propagates_exceptions():
    def fail(i):
        if i == 3:
            raise ZeroDivisionError("boom")
        return i

    with pytest.raises(ZeroDivisionError, match="boom"):
        parallel_map(fail, [(i,) for i in range(5)], n_jobs=2)


def test_parallel_map_empty():
    assert parallel_map(lambda x: x, [], n_jobs=4) == []

"""Parallel execution utilities for the outer sample loops."""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, as_completed


def chunk_ranges(n, size):
    """Split ``range(n)`` into consecutive ``(start, stop)`` pairs of at most ``size`` items."""
    return [(start, min(start + size, n)) for start in range(0, n, size)]


def parallel_map(func, args_list, n_jobs=1):
    """Execute func(*args) for each args in args_list, optionally in parallel.

    Uses threads rather than processes because the work is dominated by
    numba kernels compiled with ``nogil=True`` and NumPy calls that release
    the GIL, and threads share the input matrices without pickling them.

    Parameters
    ----------
    func : callable
        Function to call for each set of arguments.
    args_list : list of tuples
        Arguments for each call.
    n_jobs : int
        1 = sequential (default), -1 = all cores, >1 = that many workers.

    Returns
    -------
    list
        Results in the same order as args_list.
    """
    if n_jobs == 1 or len(args_list) <= 1:
        return [func(*args) for args in args_list]

    max_workers = os.cpu_count() if n_jobs == -1 else n_jobs
    results = [None] * len(args_list)

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_idx = {executor.submit(func, *args): i for i, args in enumerate(args_list)}
        for future in as_completed(future_to_idx):
            idx = future_to_idx[future]
            results[idx] = future.result()
    return results

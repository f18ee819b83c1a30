"""Uniform row and column access over dense, sparse and chunked matrices."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np
import scipy.sparse as sp

from .errors import DimensionMismatchError, InvalidArgumentError

__all__ = [
    "DaskMatrixAccessor",
    "DenseMatrixAccessor",
    "MatrixAccessor",
    "SparseMatrixAccessor",
    "as_accessor",
]


class MatrixAccessor(ABC):
    """Random access to the rows and columns of a two-dimensional matrix.

    Subclasses only need to implement :meth:`dimensions`, :meth:`read_row`
    and :meth:`read_column`. The block readers fall back to repeated
    single-vector reads and should be overridden when the backend can slice
    more efficiently.
    """

    @abstractmethod
    def dimensions(self) -> tuple[int, int]:
        """Return ``(rows, cols)``."""

    @abstractmethod
    def read_row(self, i: int, buffer: np.ndarray) -> np.ndarray:
        """Fill ``buffer`` (length ``cols``) with row ``i`` and return it."""

    @abstractmethod
    def read_column(self, j: int, buffer: np.ndarray) -> np.ndarray:
        """Fill ``buffer`` (length ``rows``) with column ``j`` and return it."""

    @property
    def nrow(self) -> int:
        return self.dimensions()[0]

    @property
    def ncol(self) -> int:
        return self.dimensions()[1]

    def read_rows(self, start: int, stop: int) -> np.ndarray:
        """Return rows ``start:stop`` as a dense ``(stop - start, cols)`` block."""
        ncol = self.ncol
        out = np.empty((stop - start, ncol), dtype=np.float64)
        for k, i in enumerate(range(start, stop)):
            self.read_row(i, out[k])
        return out

    def read_columns(self, start: int, stop: int) -> np.ndarray:
        """Return columns ``start:stop`` as a dense ``(rows, stop - start)`` block."""
        nrow = self.nrow
        out = np.empty((stop - start, nrow), dtype=np.float64)
        for k, j in enumerate(range(start, stop)):
            self.read_column(j, out[k])
        return np.ascontiguousarray(out.T)

    def _check_buffer(self, buffer, expected):
        if buffer.shape != (expected,):
            raise DimensionMismatchError(f"buffer should have length {expected}, got shape {buffer.shape}")


class DenseMatrixAccessor(MatrixAccessor):
    """Accessor for in-memory or memory-mapped NumPy arrays."""

    def __init__(self, data):
        data = np.asarray(data)
        if data.ndim != 2:
            raise InvalidArgumentError(f"expected a two-dimensional matrix, got shape {data.shape}")
        self._data = data

    def dimensions(self):
        return self._data.shape

    def read_row(self, i, buffer):
        self._check_buffer(buffer, self._data.shape[1])
        buffer[:] = self._data[i, :]
        return buffer

    def read_column(self, j, buffer):
        self._check_buffer(buffer, self._data.shape[0])
        buffer[:] = self._data[:, j]
        return buffer

    def read_rows(self, start, stop):
        return np.ascontiguousarray(self._data[start:stop, :], dtype=np.float64)

    def read_columns(self, start, stop):
        return np.ascontiguousarray(self._data[:, start:stop], dtype=np.float64)


class SparseMatrixAccessor(MatrixAccessor):
    """Accessor for ``scipy.sparse`` matrices and arrays.

    The input is converted once to CSR for row reads and lazily to CSC for
    column reads, so each read touches only the stored entries of the slice.
    """

    def __init__(self, data):
        if not sp.issparse(data):
            raise InvalidArgumentError(f"expected a scipy.sparse matrix, got {type(data).__name__}")
        if len(data.shape) != 2:
            raise InvalidArgumentError(f"expected a two-dimensional matrix, got shape {data.shape}")
        self._csr = sp.csr_matrix(data, dtype=np.float64)
        self._csc = None

    def _columns(self):
        if self._csc is None:
            self._csc = self._csr.tocsc()
        return self._csc

    def dimensions(self):
        return self._csr.shape

    def read_row(self, i, buffer):
        self._check_buffer(buffer, self._csr.shape[1])
        buffer[:] = 0.0
        lo, hi = self._csr.indptr[i], self._csr.indptr[i + 1]
        buffer[self._csr.indices[lo:hi]] = self._csr.data[lo:hi]
        return buffer

    def read_column(self, j, buffer):
        csc = self._columns()
        self._check_buffer(buffer, csc.shape[0])
        buffer[:] = 0.0
        lo, hi = csc.indptr[j], csc.indptr[j + 1]
        buffer[csc.indices[lo:hi]] = csc.data[lo:hi]
        return buffer

    def read_rows(self, start, stop):
        return np.ascontiguousarray(self._csr[start:stop, :].toarray())

    def read_columns(self, start, stop):
        return np.ascontiguousarray(self._columns()[:, start:stop].toarray())


class DaskMatrixAccessor(MatrixAccessor):
    """Accessor for chunked, possibly out-of-core ``dask.array`` matrices.

    Only the requested slice is computed, so the full matrix never needs to
    fit in memory.
    """

    def __init__(self, data):
        if not _is_dask_array(data):
            raise InvalidArgumentError(f"expected a dask array, got {type(data).__name__}")
        if data.ndim != 2:
            raise InvalidArgumentError(f"expected a two-dimensional matrix, got shape {data.shape}")
        self._data = data

    def dimensions(self):
        return tuple(int(x) for x in self._data.shape)

    def read_row(self, i, buffer):
        self._check_buffer(buffer, self.ncol)
        buffer[:] = np.asarray(self._data[i, :].compute())
        return buffer

    def read_column(self, j, buffer):
        self._check_buffer(buffer, self.nrow)
        buffer[:] = np.asarray(self._data[:, j].compute())
        return buffer

    def read_rows(self, start, stop):
        return np.ascontiguousarray(np.asarray(self._data[start:stop, :].compute()), dtype=np.float64)

    def read_columns(self, start, stop):
        return np.ascontiguousarray(np.asarray(self._data[:, start:stop].compute()), dtype=np.float64)


def _is_dask_array(obj):
    return type(obj).__module__.split(".")[0] == "dask" and hasattr(obj, "compute") and hasattr(obj, "ndim")


def as_accessor(data) -> MatrixAccessor:
    """Wrap ``data`` in the matching :class:`MatrixAccessor`.

    Parameters
    ----------
    data : ndarray, scipy.sparse matrix, dask.array.Array or MatrixAccessor
        Two-dimensional input. Objects that already implement the accessor
        interface are returned unchanged.

    Returns
    -------
    MatrixAccessor
        Accessor over ``data``.
    """
    if isinstance(data, MatrixAccessor):
        return data
    if sp.issparse(data):
        return SparseMatrixAccessor(data)
    if _is_dask_array(data):
        return DaskMatrixAccessor(data)
    if isinstance(data, (np.ndarray, list, tuple)) or hasattr(data, "__array__"):
        return DenseMatrixAccessor(data)
    raise InvalidArgumentError(f"cannot read matrix values from object of type {type(data).__name__}")

"""Sparse export of LD matrices."""

from __future__ import annotations

import numpy as np
from scipy import sparse


def to_sparse(R: np.ndarray, row_block: int = 2048) -> sparse.csr_matrix:
    """Convert a dense matrix to CSR, keeping only entries not exactly zero.

    The CSR arrays are sized from a nonzero count and filled ``row_block``
    rows at a time, so no coordinate copy of the whole matrix is built.

    Args:
        R: Dense matrix.
        row_block: Rows converted per step.

    Returns:
        CSR matrix with no explicitly stored zeros.
    """
    R = np.asarray(R)
    n_rows, n_cols = R.shape

    row_nnz = np.empty(n_rows, dtype=np.int64)
    for start in range(0, n_rows, row_block):
        row_nnz[start : start + row_block] = np.count_nonzero(
            R[start : start + row_block], axis=1
        )
    nnz = int(row_nnz.sum())
    idx_dtype = np.int32 if max(nnz, n_cols) <= np.iinfo(np.int32).max else np.int64

    indptr = np.zeros(n_rows + 1, dtype=idx_dtype)
    indptr[1:] = np.cumsum(row_nnz)
    indices = np.empty(nnz, dtype=idx_dtype)
    data = np.empty(nnz, dtype=R.dtype)

    for start in range(0, n_rows, row_block):
        stop = min(start + row_block, n_rows)
        block = R[start:stop]
        rows, cols = np.nonzero(block)
        lo, hi = indptr[start], indptr[stop]
        indices[lo:hi] = cols
        data[lo:hi] = block[rows, cols]

    return sparse.csr_matrix((data, indices, indptr), shape=(n_rows, n_cols))


def to_dense(mat: sparse.spmatrix) -> np.ndarray:
    """Convert a sparse matrix back to a dense ndarray."""
    return mat.toarray()

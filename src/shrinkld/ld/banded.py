"""Bandwidth detection and banded storage of LD matrices.

Banded storage follows the LAPACK general-band ("ab") layout used by
``scipy.linalg.solve_banded``: for a matrix with ``bw`` sub- and
super-diagonals,

    data[bw + i - j, j] == R[i, j]   for |i - j| <= bw

so ``data`` has shape (2 * bw + 1, p). Corner cells that fall outside the
matrix are zero.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy import linalg, sparse

from shrinkld.core.threading import blas_threads


@dataclass(frozen=True)
class BandedLD:
    """Band-limited storage of a square matrix.

    Attributes:
        bandwidth: Number of stored sub-diagonals (and super-diagonals).
        data: Band array (2 * bandwidth + 1, n_variants).
    """

    bandwidth: int
    data: np.ndarray

    @property
    def n_variants(self) -> int:
        return self.data.shape[1]

    def to_dense(self) -> np.ndarray:
        """Unpack into a dense (p, p) matrix."""
        return unpack_band(self)

    def solve(self, b: np.ndarray, n_threads: int | None = None) -> np.ndarray:
        """Solve R x = b using the band structure.

        The LAPACK band solver runs under a scoped BLAS thread limit.

        Args:
            b: Right-hand side, shape (p,) or (p, k).
            n_threads: BLAS threads for the solve. None uses
                get_blas_thread_count().

        Returns:
            Solution with the same shape as b.
        """
        with blas_threads(n_threads):
            return linalg.solve_banded((self.bandwidth, self.bandwidth), self.data, b)


def find_bandwidth(R: np.ndarray | sparse.spmatrix, row_block: int = 2048) -> int:
    """Largest diagonal offset holding a nonzero entry.

    Args:
        R: Square matrix, dense or scipy sparse.
        row_block: Rows of a dense matrix scanned per step.

    Returns:
        max |i - j| over entries with R[i, j] != 0, or 0 if there are none.

    Example:
        >>> R = np.array([[1.0, 0.2, 0.0], [0.2, 1.0, 0.0], [0.0, 0.0, 1.0]])
        >>> find_bandwidth(R)
        1
    """
    if sparse.issparse(R):
        coo = sparse.coo_matrix(R)
        keep = coo.data != 0
        rows = coo.row[keep].astype(np.int64)
        cols = coo.col[keep].astype(np.int64)
        return int(np.max(np.abs(rows - cols))) if rows.size else 0

    # Dense input is scanned in row blocks to avoid full-size index arrays
    R = np.asarray(R)
    bandwidth = 0
    for start in range(0, R.shape[0], row_block):
        rows, cols = np.nonzero(R[start : start + row_block])
        if rows.size:
            rows += start
            rows -= cols
            bandwidth = max(bandwidth, int(np.abs(rows, out=rows).max()))
    return bandwidth


def band_storage(
    R: np.ndarray, bandwidth: int | None = None, row_block: int = 2048
) -> BandedLD:
    """Pack a square matrix into banded storage.

    Args:
        R: Dense square matrix (p, p).
        bandwidth: Number of off-diagonals to keep on each side. Defaults to
            find_bandwidth(R).
        row_block: Rows scanned per step when detecting the bandwidth.

    Returns:
        BandedLD holding every entry within the band.

    Raises:
        ValueError: If R is not square, or bandwidth is negative or smaller
            than the detected bandwidth (entries would be lost).
    """
    R = np.asarray(R)
    if R.ndim != 2 or R.shape[0] != R.shape[1]:
        raise ValueError(f"Matrix must be square, got shape {R.shape}")

    detected = find_bandwidth(R, row_block=row_block)
    bw = detected if bandwidth is None else int(bandwidth)
    if bw < 0:
        raise ValueError(f"bandwidth must be non-negative, got {bw}")
    if bw < detected:
        raise ValueError(
            f"bandwidth {bw} would drop nonzero entries; "
            f"matrix bandwidth is {detected}"
        )

    n_variants = R.shape[0]
    data = np.zeros((2 * bw + 1, n_variants), dtype=R.dtype)
    for k in range(-min(bw, n_variants - 1), min(bw, n_variants - 1) + 1):
        # offset k holds R[i, i + k]
        if k >= 0:
            data[bw - k, k:] = np.diagonal(R, offset=k)
        else:
            data[bw - k, : n_variants + k] = np.diagonal(R, offset=k)

    return BandedLD(bandwidth=bw, data=data)


def unpack_band(banded: BandedLD) -> np.ndarray:
    """Rebuild the dense matrix from banded storage; zero outside the band."""
    bw = banded.bandwidth
    n_variants = banded.n_variants
    R = np.zeros((n_variants, n_variants), dtype=banded.data.dtype)
    for k in range(-min(bw, n_variants - 1), min(bw, n_variants - 1) + 1):
        if k >= 0:
            idx = np.arange(n_variants - k)
            R[idx, idx + k] = banded.data[bw - k, k:]
        else:
            idx = np.arange(-k, n_variants)
            R[idx, idx + k] = banded.data[bw - k, : n_variants + k]
    return R

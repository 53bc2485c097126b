"""Covariance to correlation conversion."""

from __future__ import annotations

import numpy as np

from shrinkld.core.errors import DegenerateVarianceError


def cov_to_corr(sig_hat: np.ndarray, row_block: int = 2048) -> np.ndarray:
    """Rescale a covariance matrix to a correlation matrix.

    R[i, j] = SigHat[i, j] / (sd_i * sd_j), with the diagonal set to exactly 1.
    Rows are scaled ``row_block`` at a time so only the result is dense.

    Args:
        sig_hat: Symmetric covariance matrix (p, p).
        row_block: Rows scaled per step.

    Returns:
        Correlation matrix (p, p). Zero covariances stay exactly zero.

    Raises:
        DegenerateVarianceError: If any diagonal entry is non-positive or not
            finite.
    """
    variances = np.diag(sig_hat)
    degenerate = np.flatnonzero(~(np.isfinite(variances) & (variances > 0)))
    if degenerate.size:
        shown = ", ".join(str(i) for i in degenerate[:10])
        more = f" (and {degenerate.size - 10} more)" if degenerate.size > 10 else ""
        raise DegenerateVarianceError(
            f"Non-positive variance at variant index {shown}{more}; "
            f"cannot normalize to a correlation matrix"
        )

    sd = np.sqrt(variances)
    n_variants = sig_hat.shape[0]
    R = np.empty_like(sig_hat, dtype=np.float64)
    # sd_i * sd_j is commutative, so blocks stay bitwise symmetric
    for start in range(0, n_variants, row_block):
        stop = min(start + row_block, n_variants)
        np.divide(sig_hat[start:stop], np.outer(sd[start:stop], sd), out=R[start:stop])
    np.fill_diagonal(R, 1.0)
    return R

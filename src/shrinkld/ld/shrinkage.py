"""Genetic-distance shrinkage and coalescent regularization.

Implements the covariance estimator of Wen & Stephens (2010, Ann. Appl.
Stat. 4:1158). Off-diagonal covariances are shrunk toward zero by

    w_ij = exp(-rho_ij / (2m)),   rho_ij = 4 * Ne * (cM_j - cM_i) / 100

and weights below ``cutoff`` are set to exactly zero, which makes the
estimate banded. The shrunk matrix is then blended with a scaled identity
from the Li & Stephens (2003) model:

    SigHat = (1 - theta)^2 * S' + 0.5 * theta * (1 - 0.5 * theta) * I
    theta  = (1 / H) / (2m + 1 / H),  H = sum_{k=1}^{2m-1} 1/k
"""

from __future__ import annotations

import jax.numpy as jnp
import numpy as np
from jax import jit
from loguru import logger

from shrinkld.core.errors import OrderingError
from shrinkld.core.jax_config import ensure_jax_configured
from shrinkld.core.progress import progress_iterator


def check_map_order(
    genetic_map: np.ndarray, n_variants: int | None = None
) -> np.ndarray:
    """Validate a cumulative genetic map.

    Checking consecutive steps is enough: a map with no negative step has
    cM[j] >= cM[i] for every i < j.

    Args:
        genetic_map: Cumulative positions in cM, one per variant.
        n_variants: Expected length (number of panel columns), if known.

    Returns:
        The map as a 1-D float64 array.

    Raises:
        ValueError: If the map is not 1-D, has the wrong length, or holds
            non-finite values.
        OrderingError: If the map decreases anywhere.
    """
    cummap = np.asarray(genetic_map, dtype=np.float64)
    if cummap.ndim != 1:
        raise ValueError(f"Genetic map must be 1-D, got shape {cummap.shape}")
    if n_variants is not None and cummap.shape[0] != n_variants:
        raise ValueError(
            f"Genetic map has {cummap.shape[0]} positions "
            f"but panel has {n_variants} variants"
        )
    if not np.all(np.isfinite(cummap)):
        raise ValueError("Genetic map contains non-finite positions")

    decreasing = np.flatnonzero(np.diff(cummap) < 0)
    if decreasing.size:
        i = int(decreasing[0])
        raise OrderingError(
            f"Negative recombination distance: genetic map drops from "
            f"{cummap[i]} cM at variant {i} to {cummap[i + 1]} cM at variant {i + 1}"
        )
    return cummap


@jit
def _weight_block(
    row_pos: jnp.ndarray,
    row_idx: jnp.ndarray,
    cummap: jnp.ndarray,
    ne: float,
    m: float,
    cutoff: float,
) -> jnp.ndarray:
    """Thresholded shrinkage weights for a block of rows.

    Entries on or below the diagonal are zero.

    Args:
        row_pos: Map positions of the block rows (block,).
        row_idx: Global variant indices of the block rows (block,).
        cummap: Full genetic map (p,).
        ne: Effective population size.
        m: Panel size.
        cutoff: Hard threshold.

    Returns:
        Weights (block, p).
    """
    rho = 4.0 * ne * (cummap[None, :] - row_pos[:, None]) / 100.0
    weights = jnp.exp(-rho / (2.0 * m))
    weights = jnp.where(weights < cutoff, 0.0, weights)
    col_idx = jnp.arange(cummap.shape[0])
    return jnp.where(col_idx[None, :] > row_idx[:, None], weights, 0.0)


def shrinkage_weights(
    genetic_map: np.ndarray,
    ne: int,
    m: int,
    cutoff: float,
    rows: slice | None = None,
) -> np.ndarray:
    """Strictly upper-triangular shrinkage weights.

    Args:
        genetic_map: Cumulative positions in cM, non-decreasing.
        ne: Effective population size.
        m: Panel size.
        cutoff: Weights below this value are set to 0.
        rows: Optional contiguous row range; default is all rows.

    Returns:
        Weight matrix (n_rows, p) with W[i, j] = 0 for j <= i.

    Raises:
        OrderingError: If the map decreases anywhere.
        ValueError: If rows has a step other than 1.
    """
    ensure_jax_configured()
    cummap = check_map_order(genetic_map)
    start, stop, step = (rows or slice(None)).indices(cummap.shape[0])
    if step != 1:
        raise ValueError(f"rows must be a contiguous slice, got step {step}")
    block = _weight_block(
        jnp.asarray(cummap[start:stop]),
        jnp.arange(start, stop),
        jnp.asarray(cummap),
        float(ne),
        float(m),
        float(cutoff),
    )
    return np.asarray(block)


def apply_distance_shrinkage(
    S: np.ndarray,
    genetic_map: np.ndarray,
    ne: int,
    m: int,
    cutoff: float,
    chunk_size: int = 2048,
    show_progress: bool = False,
) -> np.ndarray:
    """Shrink off-diagonal covariances by genetic distance.

    Weighted upper-triangle values are written into a fresh matrix one row
    block at a time. Each block is mirrored into the lower triangle as soon
    as it is written, and the diagonal is copied from S, giving
    ``U + U.T + diag(S)`` without any further dense temporary. S is not
    modified.

    Args:
        S: Sample covariance (p, p).
        genetic_map: Cumulative positions in cM, non-decreasing.
        ne: Effective population size.
        m: Panel size.
        cutoff: Hard threshold on the weights.
        chunk_size: Rows of the weight matrix computed at once.
        show_progress: Show a progress bar when there is more than one block.

    Returns:
        Shrunk symmetric covariance (p, p).

    Raises:
        OrderingError: If the map decreases anywhere.
        ValueError: If S is not square or chunk_size is not positive.
    """
    ensure_jax_configured()

    if S.ndim != 2 or S.shape[0] != S.shape[1]:
        raise ValueError(f"Covariance must be square, got shape {S.shape}")
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    n_variants = S.shape[0]
    cummap = check_map_order(genetic_map, n_variants=n_variants)
    cummap_jax = jnp.asarray(cummap)

    upper = np.zeros_like(S, dtype=np.float64)
    starts = range(0, n_variants, chunk_size)
    n_blocks = len(starts)
    logger.debug(
        f"Shrinkage: {n_variants:,} variants in {n_blocks} blocks of {chunk_size:,}"
    )

    for start in progress_iterator(
        starts, total=n_blocks, desc="Shrinkage", enabled=show_progress and n_blocks > 1
    ):
        stop = min(start + chunk_size, n_variants)
        weights = _weight_block(
            cummap_jax[start:stop],
            jnp.arange(start, stop),
            cummap_jax,
            float(ne),
            float(m),
            float(cutoff),
        )
        upper[start:stop] = np.asarray(weights) * S[start:stop]

        # Rows above this block are final, so their columns here can be mirrored
        upper[start:stop, :start] = upper[:start, start:stop].T
        diag_block = upper[start:stop, start:stop]
        diag_block += np.triu(diag_block, k=1).T

    np.fill_diagonal(upper, np.diag(S))
    return upper


def coalescent_theta(m: int) -> float:
    """Population-scaled mutation rate proxy for a panel of m individuals.

    Args:
        m: Panel size.

    Returns:
        theta = (1/H) / (2m + 1/H) with H the (2m-1)-th harmonic number.

    Example:
        >>> round(coalescent_theta(1), 6)  # H = 1
        0.333333
    """
    harmonic = float(np.sum(1.0 / np.arange(1, 2 * m)))
    return (1.0 / harmonic) / (2 * m + 1.0 / harmonic)


def regularize(S_shrunk: np.ndarray, theta: float) -> np.ndarray:
    """Blend the shrunk covariance with a scaled identity.

    Zero off-diagonal entries of ``S_shrunk`` stay exactly zero.

    Args:
        S_shrunk: Shrunk covariance (p, p).
        theta: Mutation-rate proxy from coalescent_theta.

    Returns:
        SigHat (p, p).
    """
    sig_hat = (1 - theta) ** 2 * S_shrunk
    sig_hat[np.diag_indices_from(sig_hat)] += 0.5 * theta * (1 - 0.5 * theta)
    return sig_hat

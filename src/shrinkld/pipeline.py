"""Top-level LD estimation API for shrinkld.

Provides a single-call entry point running the full estimator:
covariance, distance shrinkage, regularization, normalization, and the
sparse (and optionally banded) export of the resulting LD matrix.

Example:
    >>> from shrinkld import compute_ld
    >>> result = compute_ld(panel, ne=11418, genetic_map=cm, m=100, cutoff=1e-3)
    >>> print(f"{result.R.nnz} nonzeros, theta={result.theta:.4g}")
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np
from loguru import logger
from scipy import sparse

from shrinkld.core.config import ShrinkageParams
from shrinkld.core.memory import (
    check_memory_available,
    estimate_ld_memory,
    log_memory_snapshot,
)
from shrinkld.ld.banded import BandedLD, band_storage
from shrinkld.ld.correlation import cov_to_corr
from shrinkld.ld.covariance import sample_covariance
from shrinkld.ld.shrinkage import (
    apply_distance_shrinkage,
    check_map_order,
    coalescent_theta,
    regularize,
)
from shrinkld.ld.sparse import to_sparse

Notifier = Callable[[str], None]


@dataclass
class LDResult:
    """Result of one LD estimation.

    Attributes:
        R: Estimated LD correlation matrix in CSR form, exact zeros elided.
        banded: Banded storage of R; None unless requested.
        n_samples: Number of panel rows.
        n_variants: Number of variants.
        theta: Coalescent mutation-rate proxy used by the regularizer.
        timing: Timing breakdown with keys 'covariance_s', 'shrinkage_s',
            'correlation_s', 'banded_s' (when requested), 'total_s'.
    """

    R: sparse.csr_matrix
    banded: BandedLD | None
    n_samples: int
    n_variants: int
    theta: float
    timing: dict[str, float] = field(default_factory=dict)

    @property
    def bandwidth(self) -> int | None:
        """Bandwidth of R if banded storage was produced."""
        return None if self.banded is None else self.banded.bandwidth


def estimate_ld(
    panel: np.ndarray,
    genetic_map: np.ndarray,
    params: ShrinkageParams,
    *,
    banded: bool = False,
    chunk_size: int = 2048,
    check_memory: bool = True,
    show_progress: bool = False,
    notify: Notifier | None = None,
) -> LDResult:
    """Estimate the shrinkage LD matrix for a reference panel.

    Args:
        panel: Reference panel (n_samples, n_variants); not modified.
        genetic_map: Cumulative genetic map in cM, one entry per variant,
            non-decreasing.
        params: Estimator parameters.
        banded: Also produce banded storage of R.
        chunk_size: Rows of the shrinkage weight matrix computed at once.
        check_memory: Raise MemoryError up front if the dense matrices
            will not fit in available memory.
        show_progress: Show a progress bar over shrinkage row blocks.
        notify: Optional callback receiving the informational progress
            notices that are also logged.

    Returns:
        LDResult with the sparse LD matrix and, if requested, its banded
        storage.

    Raises:
        OrderingError: If the genetic map decreases anywhere. Raised before
            any weight is computed.
        DegenerateVarianceError: If a regularized variance is non-positive.
        ValueError: If panel or map have incompatible shapes, the panel has
            fewer than 2 rows, or chunk_size is not positive.
        MemoryError: If check_memory=True and memory is insufficient.
    """
    t_start = time.perf_counter()

    def _notice(message: str) -> None:
        logger.info(message)
        if notify is not None:
            notify(message)

    panel = np.asarray(panel)
    if panel.ndim != 2:
        raise ValueError(f"Panel must be a 2-D matrix, got shape {panel.shape}")
    n_samples, n_variants = panel.shape
    cummap = check_map_order(genetic_map, n_variants=n_variants)
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    if check_memory:
        est = estimate_ld_memory(n_samples, n_variants, chunk_size, banded=banded)
        check_memory_available(
            est.total_gb, operation=f"LD estimation of {n_variants:,} variants"
        )

    timing: dict[str, float] = {}

    _notice("Compute Wen-Stephens shrinkage LD estimator ...")
    logger.debug(
        f"LD: {n_samples:,} samples x {n_variants:,} variants, "
        f"m={params.m}, Ne={params.ne}, cutoff={params.cutoff:g}, "
        f"max distance={params.max_distance_cm:.4g} cM"
    )

    t0 = time.perf_counter()
    if params.is_genotype:
        _notice("Panel is an unphased genotype matrix.")
    S = sample_covariance(panel, is_genotype=params.is_genotype)
    timing["covariance_s"] = time.perf_counter() - t0
    log_memory_snapshot("after_covariance")

    t0 = time.perf_counter()
    S = apply_distance_shrinkage(
        S,
        cummap,
        ne=params.ne,
        m=params.m,
        cutoff=params.cutoff,
        chunk_size=chunk_size,
        show_progress=show_progress,
    )
    theta = coalescent_theta(params.m)
    sig_hat = regularize(S, theta)
    del S
    timing["shrinkage_s"] = time.perf_counter() - t0

    t0 = time.perf_counter()
    R = cov_to_corr(sig_hat, row_block=chunk_size)
    del sig_hat
    timing["correlation_s"] = time.perf_counter() - t0

    banded_ld = None
    if banded:
        _notice("Convert LD matrix to a banded storage ...")
        t0 = time.perf_counter()
        banded_ld = band_storage(R, row_block=chunk_size)
        timing["banded_s"] = time.perf_counter() - t0

    R_sparse = to_sparse(R, row_block=chunk_size)
    del R

    timing["total_s"] = time.perf_counter() - t_start

    density = R_sparse.nnz / n_variants**2 if n_variants else 0.0
    bw_str = f", bandwidth {banded_ld.bandwidth}" if banded_ld is not None else ""
    logger.info(
        f"LD matrix: {n_variants:,} variants, {R_sparse.nnz:,} nonzeros "
        f"({density:.1%}){bw_str}, {timing['total_s']:.2f}s"
    )

    return LDResult(
        R=R_sparse,
        banded=banded_ld,
        n_samples=n_samples,
        n_variants=n_variants,
        theta=theta,
        timing=timing,
    )


def compute_ld(
    panel: np.ndarray,
    ne: int,
    genetic_map: np.ndarray,
    m: int,
    cutoff: float = 1e-3,
    *,
    is_genotype: bool = False,
    banded: bool = False,
    chunk_size: int = 2048,
    check_memory: bool = True,
    show_progress: bool = False,
    notify: Notifier | None = None,
) -> LDResult:
    """Compute the shrinkage LD matrix in a single call.

    Convenience wrapper building ShrinkageParams from keyword values and
    calling estimate_ld.

    Args:
        panel: Reference panel (n_samples, n_variants); haplotypes 0/1 or
            genotype dosages 0/1/2.
        ne: Effective population size (diploid).
        genetic_map: Cumulative genetic map in cM, non-decreasing.
        m: Number of individuals in the reference panel.
        cutoff: Hard threshold for small shrinkage weights, in [0, 1).
        is_genotype: True if the panel is an unphased genotype matrix.
            Defaults to False (phased haplotypes).
        banded: Also produce banded storage of R.
        chunk_size: Rows of the shrinkage weight matrix computed at once.
        check_memory: Check available memory before computation.
        show_progress: Show a progress bar over shrinkage row blocks.
        notify: Optional callback for informational notices.

    Returns:
        LDResult, see estimate_ld.

    Raises:
        ValueError: If m or ne is not positive or cutoff is outside [0, 1),
            plus everything estimate_ld raises.

    Example:
        >>> result = compute_ld(H, ne=10_000, genetic_map=cm, m=100, banded=True)
        >>> result.banded.bandwidth
        2
    """
    params = ShrinkageParams(m=m, ne=ne, cutoff=cutoff, is_genotype=is_genotype)
    return estimate_ld(
        panel,
        genetic_map,
        params,
        banded=banded,
        chunk_size=chunk_size,
        check_memory=check_memory,
        show_progress=show_progress,
        notify=notify,
    )

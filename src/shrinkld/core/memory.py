"""Memory estimation and checking for dense LD computation.

The shrinkage estimator works on dense p x p matrices, so memory grows
quadratically with the number of variants. These helpers estimate the peak
before allocation and log process memory for debugging.
"""

from typing import NamedTuple

import psutil
from loguru import logger


class LDMemoryBreakdown(NamedTuple):
    """Detailed memory breakdown for one LD computation.

    All values in GB.
    """

    panel_gb: float  # n * p * 8 bytes (float64 copy of the panel)
    dense_gb: float  # p^2 * 8 bytes, one dense p x p matrix
    weight_block_gb: float  # chunk_size * p * 8 bytes (shrinkage weights)
    banded_gb: float  # (2 * bwd + 1) * p * 8 bytes, worst case bwd = p - 1
    total_gb: float  # Peak memory
    available_gb: float  # Current available system memory
    sufficient: bool  # Whether available >= total * 1.1


def estimate_ld_memory(
    n_samples: int,
    n_variants: int,
    chunk_size: int = 2048,
    banded: bool = False,
) -> LDMemoryBreakdown:
    """Estimate peak memory for computing a shrinkage LD matrix.

    The caller's panel stays alive throughout. On top of it, the largest
    of three stages sets the peak:

    - covariance: float64 panel copy, its device copy and the centered
      panel inside the kernel, plus the kernel result and its host copy
      (3 panels + 2 dense)
    - shrinkage: sample covariance and the matrix being shrunk, plus the
      device weight block, its host copy and the weighted product
      (2 dense + 3 weight blocks). Regularization and normalization each
      hold only an input and an output (2 dense).
    - export: correlation matrix plus CSR values and column indices
      (3 dense with 64-bit indices), per-block nonzero coordinates and
      values (3 weight blocks), plus banded storage sized for the
      worst case where nothing was thresholded

    Args:
        n_samples: Number of individuals (panel rows).
        n_variants: Number of variants (panel columns).
        chunk_size: Rows processed per block by shrinkage, normalization
            and export.
        banded: Whether banded storage will also be produced.

    Returns:
        LDMemoryBreakdown with component estimates and total.

    Example:
        >>> est = estimate_ld_memory(500, 20_000)
        >>> print(f"Need {est.total_gb:.1f}GB, have {est.available_gb:.0f}GB")
    """
    panel_gb = n_samples * n_variants * 8 / 1e9
    dense_gb = n_variants**2 * 8 / 1e9
    weight_block_gb = min(chunk_size, n_variants) * n_variants * 8 / 1e9
    banded_gb = (2 * n_variants - 1) * n_variants * 8 / 1e9 if banded else 0.0

    covariance_gb = 3 * panel_gb + 2 * dense_gb
    shrinkage_gb = 2 * dense_gb + 3 * weight_block_gb
    export_gb = 3 * dense_gb + 3 * weight_block_gb + banded_gb
    total_gb = panel_gb + max(covariance_gb, shrinkage_gb, export_gb)

    available_gb = psutil.virtual_memory().available / 1e9
    sufficient = total_gb * 1.1 < available_gb

    return LDMemoryBreakdown(
        panel_gb=panel_gb,
        dense_gb=dense_gb,
        weight_block_gb=weight_block_gb,
        banded_gb=banded_gb,
        total_gb=total_gb,
        available_gb=available_gb,
        sufficient=sufficient,
    )


def check_memory_available(
    required_gb: float,
    safety_margin: float = 0.1,
    operation: str = "operation",
) -> bool:
    """Check if sufficient memory is available, raise if not.

    Args:
        required_gb: Memory required in GB.
        safety_margin: Additional margin (0.1 = 10%).
        operation: Description for error message.

    Returns:
        True if sufficient memory available.

    Raises:
        MemoryError: If insufficient memory with detailed message.
    """
    available_gb = psutil.virtual_memory().available / 1e9
    required_with_margin = required_gb * (1 + safety_margin)

    if required_with_margin > available_gb:
        raise MemoryError(
            f"Insufficient memory for {operation}. "
            f"Need {required_gb:.1f}GB (+{safety_margin*100:.0f}% margin = "
            f"{required_with_margin:.1f}GB), but only {available_gb:.1f}GB available. "
            f"Consider splitting the region into smaller variant blocks."
        )

    return True


class MemorySnapshot(NamedTuple):
    """Snapshot of current memory state for debugging.

    All values in GB.
    """

    rss_gb: float  # Resident Set Size (actual RAM used by process)
    available_gb: float  # Available system memory
    total_gb: float  # Total system memory
    percent_used: float  # Percentage of total system memory in use


def get_memory_snapshot() -> MemorySnapshot:
    """Get current memory usage snapshot."""
    vm = psutil.virtual_memory()
    return MemorySnapshot(
        rss_gb=psutil.Process().memory_info().rss / 1e9,
        available_gb=vm.available / 1e9,
        total_gb=vm.total / 1e9,
        percent_used=((vm.total - vm.available) / vm.total) * 100,
    )


def log_memory_snapshot(label: str = "", level: str = "DEBUG") -> MemorySnapshot:
    """Log current memory state with optional label.

    The reading is bound to the record (``label`` extra) so JSON log sinks
    can filter on it.

    Args:
        label: Optional label for this snapshot (e.g., "after_covariance").
        level: Log level ("DEBUG", "INFO", "WARNING").

    Returns:
        MemorySnapshot for chaining/assertions.
    """
    snap = get_memory_snapshot()
    label_str = f" [{label}]" if label else ""
    logger.bind(label=label, rss_gb=snap.rss_gb).log(
        level,
        f"Memory{label_str}: RSS={snap.rss_gb:.2f}GB, "
        f"Available={snap.available_gb:.1f}GB/{snap.total_gb:.1f}GB "
        f"({snap.percent_used:.1f}% used)",
    )
    return snap

"""Core support modules for shrinkld.

This package contains configuration, errors and resource helpers:
- config: Estimator parameter dataclass
- errors: Exception hierarchy
- jax_config: JAX precision setup
- memory: Memory estimation and snapshots
- progress: Progress bar for block-wise computation
- threading: BLAS thread limits
"""

from shrinkld.core.config import ShrinkageParams
from shrinkld.core.errors import (
    DegenerateVarianceError,
    OrderingError,
    ShrinkLDError,
)
from shrinkld.core.jax_config import (
    configure_jax,
    ensure_jax_configured,
    get_jax_info,
)
from shrinkld.core.memory import (
    LDMemoryBreakdown,
    MemorySnapshot,
    check_memory_available,
    estimate_ld_memory,
    get_memory_snapshot,
    log_memory_snapshot,
)

__all__ = [
    "ShrinkageParams",
    "ShrinkLDError",
    "OrderingError",
    "DegenerateVarianceError",
    "configure_jax",
    "ensure_jax_configured",
    "get_jax_info",
    "LDMemoryBreakdown",
    "MemorySnapshot",
    "check_memory_available",
    "estimate_ld_memory",
    "get_memory_snapshot",
    "log_memory_snapshot",
]

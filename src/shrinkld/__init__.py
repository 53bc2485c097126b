"""shrinkld: shrinkage estimation of linkage-disequilibrium matrices.

shrinkld computes the Wen & Stephens (2010) shrinkage estimate of the LD
correlation matrix of a reference panel. Off-diagonal covariances decay
with genetic distance and are hard-thresholded to zero, so the estimate is
banded and is returned in sparse (and optionally banded) form, ready for
use in Bayesian multiple-regression models of GWAS summary data.

Example:
    >>> from shrinkld import compute_ld
    >>> result = compute_ld(panel, ne=11418, genetic_map=cm, m=379, banded=True)
    >>> print(f"{result.n_variants} variants, bandwidth {result.bandwidth}")
"""

import sys
from importlib.metadata import version

from loguru import logger

__version__ = version("shrinkld")

# Configure loguru with sensible defaults on import
# Users can override by calling logger.remove()/add() or setup_logging()
logger.remove()
logger.add(
    sys.stdout,
    level="INFO",
    format="{time:HH:mm:ss} | <level>{level: <8}</level> | {message}",
    colorize=True,
)

from shrinkld.core.config import ShrinkageParams  # noqa: E402
from shrinkld.core.errors import (  # noqa: E402
    DegenerateVarianceError,
    OrderingError,
    ShrinkLDError,
)
from shrinkld.pipeline import LDResult, compute_ld, estimate_ld  # noqa: E402

__all__ = [
    "compute_ld",
    "estimate_ld",
    "LDResult",
    "ShrinkageParams",
    "ShrinkLDError",
    "OrderingError",
    "DegenerateVarianceError",
    "__version__",
]

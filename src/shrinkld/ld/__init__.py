"""Shrinkage LD matrix estimation.

This module implements the Wen & Stephens (2010) shrinkage estimator of
the LD correlation matrix, and the storage formats it is handed on in.

Key functions:
- sample_covariance: Unbiased panel covariance (halved for genotypes)
- apply_distance_shrinkage: Genetic-distance decay with hard threshold
- coalescent_theta / regularize: Blend with a scaled identity
- cov_to_corr: Normalize to a unit-diagonal correlation matrix
- find_bandwidth / band_storage / unpack_band: Banded storage
- to_sparse / to_dense: Zero-eliding CSR export
"""

from shrinkld.ld.banded import BandedLD, band_storage, find_bandwidth, unpack_band
from shrinkld.ld.correlation import cov_to_corr
from shrinkld.ld.covariance import sample_covariance
from shrinkld.ld.shrinkage import (
    apply_distance_shrinkage,
    check_map_order,
    coalescent_theta,
    regularize,
    shrinkage_weights,
)
from shrinkld.ld.sparse import to_dense, to_sparse

__all__ = [
    "BandedLD",
    "apply_distance_shrinkage",
    "band_storage",
    "check_map_order",
    "coalescent_theta",
    "cov_to_corr",
    "find_bandwidth",
    "regularize",
    "sample_covariance",
    "shrinkage_weights",
    "to_dense",
    "to_sparse",
    "unpack_band",
]

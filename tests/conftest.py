"""Pytest fixtures for the shrinkld test suite."""

from __future__ import annotations

import numpy as np
import pytest

# =============================================================================
# Test Tier System
# =============================================================================
#
# tier0 - Fast Unit Tests (<5s each)
#   - Pure computation on small synthetic panels
#   - Run: pytest -m tier0
#
# tier2 - Scale Tests (memory/time intensive)
#   - Thousands of variants, many shrinkage blocks
#   - Run: pytest -m tier2
#
# The @pytest.mark.slow marker is an alias for tier2.
# =============================================================================


def reference_shrinkage_ld(panel, ne, cummap, m, cutoff, is_genotype=False):
    """Straightforward double-loop estimator used as a test oracle."""
    S = np.cov(np.asarray(panel, dtype=np.float64), rowvar=False)
    if is_genotype:
        S = 0.5 * S
    p = S.shape[0]
    shrunk = S.copy()
    for i in range(p):
        for j in range(i + 1, p):
            rho = 4 * ne * (cummap[j] - cummap[i]) / 100
            weight = np.exp(-rho / (2 * m))
            if weight < cutoff:
                weight = 0.0
            shrunk[i, j] = weight * S[i, j]
            shrunk[j, i] = shrunk[i, j]

    nmsum = np.sum(1.0 / np.arange(1, 2 * m))
    theta = (1 / nmsum) / (2 * m + 1 / nmsum)
    sig_hat = (1 - theta) ** 2 * shrunk + 0.5 * theta * (1 - 0.5 * theta) * np.eye(p)

    sd = np.sqrt(np.diag(sig_hat))
    R = sig_hat / np.outer(sd, sd)
    np.fill_diagonal(R, 1.0)
    return R


@pytest.fixture
def haplotype_panel() -> np.ndarray:
    """200 x 3 haplotype panel of 0/1 values with linked columns."""
    rng = np.random.default_rng(42)
    base = rng.integers(0, 2, size=200)
    flip = rng.random((200, 3)) < np.array([0.0, 0.1, 0.3])
    return np.where(flip, 1 - base[:, None], base[:, None]).astype(np.float64)


@pytest.fixture
def example_params() -> dict:
    """Parameters of the three-variant worked example."""
    return {"m": 100, "ne": 10_000, "cutoff": 1e-3}


@pytest.fixture
def example_map() -> np.ndarray:
    """Three-variant cumulative map (cM)."""
    return np.array([0.0, 0.01, 0.05])


@pytest.fixture
def region_panel() -> tuple[np.ndarray, np.ndarray]:
    """50-variant haplotype panel with a map long enough to threshold.

    Returns:
        Tuple of (panel (120, 50), cumulative map in cM (50,)).
    """
    rng = np.random.default_rng(7)
    n_samples, n_variants = 120, 50
    panel = np.zeros((n_samples, n_variants), dtype=np.float64)
    panel[:, 0] = rng.integers(0, 2, size=n_samples)
    for j in range(1, n_variants):
        keep = rng.random(n_samples) < 0.85
        panel[:, j] = np.where(keep, panel[:, j - 1], rng.integers(0, 2, n_samples))
    cummap = np.cumsum(rng.uniform(0.0, 0.4, size=n_variants))
    return panel, cummap


@pytest.fixture
def reference_ld():
    """Double-loop oracle for the full estimator."""
    return reference_shrinkage_ld

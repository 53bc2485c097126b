"""Tests for memory estimation module."""

import tracemalloc
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from shrinkld import compute_ld
from shrinkld.core import (
    LDMemoryBreakdown,
    MemorySnapshot,
    check_memory_available,
    configure_jax,
    estimate_ld_memory,
    get_memory_snapshot,
    log_memory_snapshot,
)
from shrinkld.ld import apply_distance_shrinkage, sample_covariance


class TestLDMemoryEstimation:
    """Tests for estimate_ld_memory."""

    def test_dense_matrix_size(self):
        """20k variants: one dense float64 matrix is 3.2GB."""
        est = estimate_ld_memory(500, 20_000)
        assert est.dense_gb == pytest.approx(3.2)
        assert est.panel_gb == pytest.approx(0.08)

    def test_total_is_panel_plus_export_stage(self):
        """Export (R + CSR arrays + block temporaries) dominates for wide panels."""
        est = estimate_ld_memory(500, 20_000, chunk_size=1000)
        expected = est.panel_gb + 3 * est.dense_gb + 3 * est.weight_block_gb
        assert est.total_gb == pytest.approx(expected)
        assert est.weight_block_gb == pytest.approx(1000 * 20_000 * 8 / 1e9)

    def test_covariance_stage_dominates_tall_panels(self):
        """Many samples over few variants: panel copies set the peak."""
        est = estimate_ld_memory(1_000_000, 100, chunk_size=100)
        expected = est.panel_gb + 3 * est.panel_gb + 2 * est.dense_gb
        assert est.total_gb == pytest.approx(expected)

    def test_weight_block_capped_by_variants(self):
        est = estimate_ld_memory(100, 50, chunk_size=4096)
        assert est.weight_block_gb == pytest.approx(50 * 50 * 8 / 1e9)

    def test_banded_adds_storage(self):
        plain = estimate_ld_memory(100, 1000)
        banded = estimate_ld_memory(100, 1000, banded=True)
        assert plain.banded_gb == 0.0
        assert banded.total_gb > plain.total_gb

    def test_small_problem_sufficient(self):
        est = estimate_ld_memory(100, 10)
        assert isinstance(est, LDMemoryBreakdown)
        assert est.sufficient

    def test_insufficient_when_memory_low(self):
        with patch("shrinkld.core.memory.psutil.virtual_memory") as mock_vm:
            mock_vm.return_value = MagicMock(available=1e6)
            assert not estimate_ld_memory(1000, 10_000).sufficient


def _traced_peak(func, *args, **kwargs):
    """Run func under tracemalloc and return (result, peak bytes)."""
    tracemalloc.start()
    try:
        result = func(*args, **kwargs)
        _, peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()
    return result, peak


class TestMeasuredPeak:
    """Measured numpy allocations stay within the estimate."""

    @pytest.fixture(autouse=True)
    def setup_jax(self):
        configure_jax(enable_x64=True)

    def test_shrinkage_within_stage_estimate(self):
        """Covariance held by the caller plus shrinkage work fits 2 dense + 3 blocks."""
        rng = np.random.default_rng(11)
        n_samples, n_variants, chunk = 60, 1500, 256
        panel = rng.integers(0, 2, size=(n_samples, n_variants)).astype(np.float64)
        cummap = np.cumsum(rng.uniform(0.0, 0.01, size=n_variants))
        S = sample_covariance(panel)
        args = (S, cummap, 10_000, n_samples, 1e-3)

        # Compile every block shape before measuring
        apply_distance_shrinkage(*args, chunk_size=chunk)
        _, peak = _traced_peak(apply_distance_shrinkage, *args, chunk_size=chunk)

        est = estimate_ld_memory(n_samples, n_variants, chunk_size=chunk)
        stage_bytes = (2 * est.dense_gb + 3 * est.weight_block_gb) * 1e9
        assert peak + S.nbytes <= stage_bytes

    def test_pipeline_within_estimate(self):
        rng = np.random.default_rng(12)
        n_samples, n_variants, chunk = 60, 800, 128
        panel = rng.integers(0, 2, size=(n_samples, n_variants)).astype(np.float64)
        cummap = np.cumsum(rng.uniform(0.0, 0.002, size=n_variants))
        kwargs = dict(banded=True, chunk_size=chunk, check_memory=False)

        compute_ld(panel, 10_000, cummap, n_samples, 1e-3, **kwargs)
        result, peak = _traced_peak(
            compute_ld, panel, 10_000, cummap, n_samples, 1e-3, **kwargs
        )

        est = estimate_ld_memory(n_samples, n_variants, chunk, banded=True)
        assert result.R.nnz > n_variants
        assert peak <= est.total_gb * 1e9


class TestCheckMemoryAvailable:
    """Tests for check_memory_available."""

    def test_small_requirement_passes(self):
        assert check_memory_available(0.001) is True

    def test_huge_requirement_raises(self):
        with pytest.raises(MemoryError, match="LD test"):
            check_memory_available(1e9, operation="LD test")


class TestMemorySnapshot:
    """Tests for snapshots."""

    def test_snapshot_fields(self):
        snap = get_memory_snapshot()
        assert isinstance(snap, MemorySnapshot)
        assert snap.rss_gb > 0
        assert 0 <= snap.percent_used <= 100

    def test_log_snapshot_returns_snapshot(self):
        snap = log_memory_snapshot("unit_test", level="INFO")
        assert isinstance(snap, MemorySnapshot)

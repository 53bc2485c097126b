"""Tests for covariance-to-correlation normalization."""

import numpy as np
import pytest

from shrinkld.core import DegenerateVarianceError
from shrinkld.ld import cov_to_corr


@pytest.mark.tier0
class TestCovToCorr:
    """Tests for unit-diagonal normalization."""

    def test_known_values(self):
        sig = np.array([[4.0, 1.0], [1.0, 9.0]])
        R = cov_to_corr(sig)
        np.testing.assert_allclose(R, [[1.0, 1.0 / 6.0], [1.0 / 6.0, 1.0]])

    def test_diagonal_exactly_one(self):
        rng = np.random.default_rng(0)
        A = rng.standard_normal((30, 8))
        R = cov_to_corr(A.T @ A / 29)
        assert np.all(np.diag(R) == 1.0)

    def test_symmetric(self):
        rng = np.random.default_rng(1)
        A = rng.standard_normal((30, 8))
        sig = A.T @ A
        sig = np.triu(sig) + np.triu(sig, 1).T
        R = cov_to_corr(sig)
        np.testing.assert_array_equal(R, R.T)

    def test_zero_covariance_stays_zero(self):
        sig = np.array([[2.0, 0.0], [0.0, 3.0]])
        R = cov_to_corr(sig)
        assert R[0, 1] == 0.0

    def test_input_not_modified(self):
        sig = np.array([[4.0, 1.0], [1.0, 9.0]])
        before = sig.copy()
        cov_to_corr(sig)
        np.testing.assert_array_equal(sig, before)

    def test_row_blocks_identical(self):
        """Block size does not change a single bit of the result."""
        rng = np.random.default_rng(6)
        A = rng.standard_normal((40, 17))
        sig = A.T @ A
        sig = np.triu(sig) + np.triu(sig, 1).T
        full = cov_to_corr(sig)
        for row_block in (1, 3, 17):
            blocked = cov_to_corr(sig, row_block=row_block)
            np.testing.assert_array_equal(blocked, full)
            np.testing.assert_array_equal(blocked, blocked.T)


@pytest.mark.tier0
class TestDegenerateVariance:
    """Tests for non-positive variances."""

    def test_zero_variance_raises(self):
        with pytest.raises(DegenerateVarianceError, match="index 0"):
            cov_to_corr(np.array([[0.0, 0.0], [0.0, 1.0]]))

    def test_negative_variance_raises(self):
        with pytest.raises(DegenerateVarianceError, match="index 1"):
            cov_to_corr(np.array([[1.0, 0.0], [0.0, -1.0]]))

    def test_nan_variance_raises(self):
        with pytest.raises(DegenerateVarianceError):
            cov_to_corr(np.array([[np.nan, 0.0], [0.0, 1.0]]))

    def test_many_degenerate_indices_truncated(self):
        with pytest.raises(DegenerateVarianceError, match="and 2 more"):
            cov_to_corr(np.zeros((12, 12)))

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            cov_to_corr(np.zeros((2, 2)))

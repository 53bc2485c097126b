"""Sample covariance of a reference panel.

The covariance is the unbiased estimator over panel columns:

    S = X_c.T @ X_c / (n - 1)

where X_c is the panel with each variant column centered. Unphased
genotype panels hold dosages summed over two haplotypes, so their
covariance is halved to put it on the haplotype scale (random mating).
"""

from __future__ import annotations

import jax.numpy as jnp
import numpy as np
from jax import jit

from shrinkld.core.jax_config import ensure_jax_configured


@jit
def _centered_crossprod(X: jnp.ndarray, scale: float) -> jnp.ndarray:
    """Scaled cross-product of the column-centered panel.

    Scaling inside the kernel means only one dense result leaves XLA.

    Args:
        X: Panel matrix (n_samples, n_variants).
        scale: Factor applied to every entry of the product.

    Returns:
        scale * X_c.T @ X_c with shape (n_variants, n_variants).
    """
    X_centered = X - jnp.mean(X, axis=0, keepdims=True)
    return jnp.matmul(X_centered.T, X_centered) * scale


def sample_covariance(panel: np.ndarray, is_genotype: bool = False) -> np.ndarray:
    """Compute the sample covariance of panel columns.

    Args:
        panel: Reference panel (n_samples, n_variants). Haplotypes coded 0/1
            or genotypes coded as allele dosage 0/1/2. Not modified.
        is_genotype: True if the panel is an unphased genotype matrix; the
            covariance is then scaled by 0.5.

    Returns:
        Covariance matrix (n_variants, n_variants), float64.

    Raises:
        ValueError: If the panel is not 2-D or has fewer than 2 rows.

    Example:
        >>> H = np.array([[0, 1], [1, 1], [1, 0]], dtype=np.float64)
        >>> S = sample_covariance(H)
        >>> S.shape
        (2, 2)
    """
    ensure_jax_configured()

    X = np.asarray(panel, dtype=np.float64)
    if X.ndim != 2:
        raise ValueError(f"Panel must be a 2-D matrix, got shape {X.shape}")

    n_samples = X.shape[0]
    if n_samples < 2:
        raise ValueError(
            f"Panel needs at least 2 individuals for a sample covariance, "
            f"got {n_samples}"
        )

    scale = 1.0 / (n_samples - 1)
    if is_genotype:
        scale *= 0.5

    return np.asarray(_centered_crossprod(jnp.asarray(X), scale))

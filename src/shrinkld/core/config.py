"""Configuration dataclasses for shrinkld.

This module contains the parameter set of the Wen-Stephens shrinkage
estimator. Parameters are validated on construction so that every
downstream kernel can assume well-formed values.
"""

import math
import numbers
from dataclasses import dataclass


@dataclass(frozen=True)
class ShrinkageParams:
    """Parameters of the shrinkage LD estimator.

    Attributes:
        m: Number of individuals in the reference panel used by the
            coalescent model (sets both the decay scale and theta).
        ne: Effective population size (diploid).
        cutoff: Hard threshold in [0, 1). Shrinkage weights below this value
            are set to exactly zero, which makes the estimate banded.
        is_genotype: True if the panel holds unphased allele dosages (0/1/2)
            rather than phased haplotypes (0/1). Defaults to False.

    Raises:
        ValueError: If m or ne is not a positive integer, or cutoff is not
            a finite value in [0, 1).

    Example:
        >>> params = ShrinkageParams(m=100, ne=10_000, cutoff=1e-3)
        >>> params.is_genotype
        False
    """

    m: int
    ne: int
    cutoff: float = 1e-3
    is_genotype: bool = False

    def __post_init__(self) -> None:
        for name in ("m", "ne"):
            value = getattr(self, name)
            if (
                isinstance(value, bool)
                or not isinstance(value, numbers.Integral)
                or value <= 0
            ):
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
            object.__setattr__(self, name, int(value))

        if isinstance(self.cutoff, bool) or not isinstance(self.cutoff, numbers.Real):
            raise ValueError(f"cutoff must be a real number, got {self.cutoff!r}")
        cutoff = float(self.cutoff)
        if not math.isfinite(cutoff) or not 0.0 <= cutoff < 1.0:
            raise ValueError(f"cutoff must lie in [0, 1), got {self.cutoff!r}")
        object.__setattr__(self, "cutoff", cutoff)
        object.__setattr__(self, "is_genotype", bool(self.is_genotype))

    @property
    def max_distance_cm(self) -> float:
        """Largest map distance (cM) whose weight survives the cutoff.

        Pairs further apart than this are zeroed by the hard threshold.
        Returns inf when cutoff is 0 (nothing is thresholded).
        """
        if self.cutoff == 0.0:
            return math.inf
        return -math.log(self.cutoff) * 2 * self.m * 100 / (4 * self.ne)

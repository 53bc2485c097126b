"""Exception types raised by shrinkld.

All errors indicate invalid input rather than transient conditions, so
none of them are retried internally. ``OrderingError`` and
``DegenerateVarianceError`` also subclass ``ValueError`` so callers that
already guard numeric routines with ``except ValueError`` keep working.
"""


class ShrinkLDError(Exception):
    """Base class for shrinkld errors."""


class OrderingError(ShrinkLDError, ValueError):
    """Genetic map is not non-decreasing in variant order.

    A decreasing map produces a negative recombination distance, which makes
    the shrinkage weights meaningless.
    """


class DegenerateVarianceError(ShrinkLDError, ValueError):
    """A variance on the covariance diagonal is non-positive."""

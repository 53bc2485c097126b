"""BLAS thread limits for LAPACK solves on banded LD.

``BandedLD.solve`` hands the band array to LAPACK (``gbsv`` through
``scipy.linalg.solve_banded``), which threads through the system BLAS.
Callers solving many small systems in parallel workers usually want one
thread per solve; ``SHRINKLD_BLAS_THREADS`` sets that default without code
changes.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import contextmanager

import psutil
from loguru import logger
from threadpoolctl import threadpool_limits

ENV_BLAS_THREADS = "SHRINKLD_BLAS_THREADS"


def get_blas_thread_count() -> int:
    """Thread count for banded solves.

    ``SHRINKLD_BLAS_THREADS`` wins when it parses as an integer; otherwise
    the physical core count is used. The result is clamped to
    [1, os.cpu_count()].
    """
    max_threads = os.cpu_count() or 1

    requested = os.environ.get(ENV_BLAS_THREADS)
    if requested is not None:
        try:
            return max(1, min(int(requested), max_threads))
        except ValueError:
            logger.warning(
                f"Ignoring {ENV_BLAS_THREADS}={requested!r}: not an integer"
            )

    return max(1, min(psutil.cpu_count(logical=False) or max_threads, max_threads))


@contextmanager
def blas_threads(n_threads: int | None = None) -> Generator[None, None, None]:
    """Limit BLAS threads for the duration of a LAPACK call.

    Args:
        n_threads: Thread limit. None uses get_blas_thread_count().

    Example:
        >>> with blas_threads(1):
        ...     x = linalg.solve_banded((bw, bw), data, b)
    """
    if n_threads is None:
        n_threads = get_blas_thread_count()
    logger.debug(f"BLAS thread limit: {n_threads}")

    with threadpool_limits(limits=n_threads, user_api="blas"):
        yield

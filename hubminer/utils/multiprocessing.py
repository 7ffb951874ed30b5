# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
from multiprocessing import cpu_count
from typing import List, Tuple

from ..exceptions import ConfigurationError

__all__ = [
    "row_ranges",
    "validate_n_jobs",
]


def validate_n_jobs(n_jobs):
    """ Handle special integers and non-integer `n_jobs` values. """
    if n_jobs is None:
        n_jobs = 1
    elif n_jobs == -1:
        n_jobs = cpu_count()
    elif n_jobs < -1 or n_jobs == 0:
        raise ConfigurationError(f"Number of parallel threads 'n_jobs' must be "
                                 f"a positive integer, or ``-1`` to use all local"
                                 f" CPU cores. Was {n_jobs} instead.")
    return n_jobs


def row_ranges(n_rows: int, n_jobs: int) -> List[Tuple[int, int]]:
    """ Split rows ``[0, n_rows)`` into contiguous, disjoint ranges.

    Each range spans ``ceil(n_rows / n_jobs)`` rows, the last one takes
    whatever remains. Empty ranges are dropped, so fewer than `n_jobs`
    ranges are returned for very small inputs.

    Returns
    -------
    ranges : list of (start, end)
        Half-open row ranges.
    """
    if n_rows <= 0:
        return []
    chunk_size = -(-n_rows // n_jobs)
    ranges = []
    for start in range(0, n_rows, chunk_size):
        ranges.append((start, min(start + chunk_size, n_rows)))
    return ranges

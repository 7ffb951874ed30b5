# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
Pairwise distance and kernel matrices in upper-triangular storage.

A distance matrix over n instances is a list of n 1D arrays. Row i holds
the distances from instance i to all instances j > i, i.e. it has length
``n - i - 1``. Concatenating the rows yields exactly the condensed
distance vector of :func:`scipy.spatial.distance.squareform`.
Kernel matrices additionally store the diagonal, so row i has length ``n - i``.

Both matrices may be computed by several threads. Each thread owns a
contiguous, disjoint range of rows, so no locking is required.
Failing evaluations for single pairs do not abort the computation,
but store :data:`MAX_DISTANCE` for that pair instead.
"""
from __future__ import annotations
import logging
from typing import Callable, List, Sequence, Tuple, Union
import warnings

import numpy as np
from joblib import Parallel, delayed
from scipy.spatial.distance import squareform
from tqdm.auto import tqdm

from ..data.dataset import DataSet, DataInstance
from ..exceptions import ConfigurationError, MetricError, ThreadExecutionError
from ..utils.io import validate_verbose
from ..utils.multiprocessing import row_ranges, validate_n_jobs

__all__ = [
    "MAX_DISTANCE",
    "calculate_dist_matrix",
    "calculate_kernel_matrix",
    "calculate_query_distances",
    "condensed_distances",
    "distance_mean_and_variance",
    "from_square",
    "get_distance",
    "kernel_to_square",
    "row_distances",
    "to_square",
]

#: Sentinel stored for pairs whose distance could not be evaluated
MAX_DISTANCE = float(np.finfo(np.float64).max)

PairFunction = Callable[[DataInstance, DataInstance], float]


def _evaluate(pair_function: PairFunction, first: DataInstance, second: DataInstance) -> float:
    value = pair_function(first, second)
    if np.isnan(value):
        raise MetricError("Pair evaluation returned NaN.", first, second)
    return value


def _fill_row_range(
        dataset: DataSet,
        pair_function: PairFunction,
        matrix: List[np.ndarray],
        start: int,
        end: int,
        include_diagonal: bool,
        verbose: int = 0,
) -> List[Exception]:
    """ Fill rows [start, end) of `matrix`, returning all absorbed errors. """
    n = len(dataset)
    offset = 0 if include_diagonal else 1
    errors = []
    try:
        for i in tqdm(range(start, end),
                      desc=f"Rows {start}-{end}",
                      disable=verbose < 1):
            first = dataset.data[i]
            row = np.empty(n - i - offset, dtype=np.float64)
            n_failed = 0
            for j in range(i + offset, n):
                try:
                    row[j - i - offset] = _evaluate(pair_function, first, dataset.data[j])
                except MetricError as e:
                    row[j - i - offset] = MAX_DISTANCE
                    e.first, e.second = i, j
                    errors.append(e)
                    n_failed += 1
            if n_failed:
                logging.warning(f"Row {i}: {n_failed} pair evaluations failed, "
                                f"stored the maximal distance instead.")
            matrix[i] = row
    except Exception as e:
        error = ThreadExecutionError(f"Worker for rows [{start}, {end}) failed: {e!r}",
                                     start_row=start, end_row=end)
        error.__cause__ = e
        logging.error(str(error))
        for i in range(start, end):
            matrix[i] = np.full(n - i - offset, MAX_DISTANCE, dtype=np.float64)
        errors.append(error)
    return errors


def _calculate_upper_triangular(
        dataset: DataSet,
        pair_function: PairFunction,
        include_diagonal: bool,
        n_jobs: int,
        verbose: int,
) -> Tuple[List[np.ndarray], List[Exception]]:
    if dataset is None:
        raise ConfigurationError("Cannot calculate a matrix without a data set.")
    if pair_function is None:
        raise ConfigurationError("Cannot calculate a matrix without a metric or kernel.")
    n_jobs = validate_n_jobs(n_jobs)
    verbose = validate_verbose(verbose)

    n = len(dataset)
    matrix: List[np.ndarray] = [None] * n
    ranges = row_ranges(n, n_jobs)
    if len(ranges) <= 1:
        errors = [e for start, end in ranges
                  for e in _fill_row_range(dataset, pair_function, matrix, start, end,
                                           include_diagonal, verbose)]
    else:
        # Threads write to disjoint rows only. Parallel returns after all workers joined.
        results = Parallel(n_jobs=len(ranges), prefer="threads")(
            delayed(_fill_row_range)(dataset, pair_function, matrix, start, end,
                                     include_diagonal, verbose - 1)
            for start, end in ranges
        )
        errors = [e for worker_errors in results for e in worker_errors]

    if errors:
        n_thread_errors = sum(isinstance(e, ThreadExecutionError) for e in errors)
        warnings.warn(f"{len(errors) - n_thread_errors} pair evaluations and "
                      f"{n_thread_errors} workers failed. The affected entries "
                      f"hold the maximal distance {MAX_DISTANCE}.")
    return matrix, errors


def calculate_dist_matrix(
        dataset: DataSet,
        metric: PairFunction,
        n_jobs: int = 1,
        return_errors: bool = False,
        verbose: int = 0,
) -> Union[List[np.ndarray], Tuple[List[np.ndarray], List[Exception]]]:
    """ Calculate all pairwise distances in upper-triangular storage.

    Parameters
    ----------
    dataset : DataSet
        The n instances
    metric : callable
        Distance between two instances, e.g. a
        :class:`hubminer.distances.CombinedMetric`.
        May raise :class:`hubminer.exceptions.MetricError`.
    n_jobs : int, default = 1
        Number of threads. Rows are split into contiguous ranges of
        ``ceil(n / n_jobs)`` rows. ``-1`` uses all CPU cores.
    return_errors : bool, default = False
        Also return the list of absorbed errors
    verbose : int, default = 0
        Show progress bars, if verbose > 0

    Returns
    -------
    dist_matrix : list of ndarray
        Row i has length n - i - 1
    errors : list of Exception
        Only returned if `return_errors`. Contains a
        :class:`MetricError` per failed pair, and a
        :class:`ThreadExecutionError` per failed worker.
    """
    matrix, errors = _calculate_upper_triangular(
        dataset, metric, include_diagonal=False, n_jobs=n_jobs, verbose=verbose)
    if return_errors:
        return matrix, errors
    return matrix


def calculate_kernel_matrix(
        dataset: DataSet,
        kernel: PairFunction,
        n_jobs: int = 1,
        return_errors: bool = False,
        verbose: int = 0,
) -> Union[List[np.ndarray], Tuple[List[np.ndarray], List[Exception]]]:
    """ Calculate the kernel matrix including the diagonal in upper-triangular storage.

    Same as :func:`calculate_dist_matrix`, except that row i has length n - i,
    and position 0 of row i holds the self-similarity of instance i.
    """
    matrix, errors = _calculate_upper_triangular(
        dataset, kernel, include_diagonal=True, n_jobs=n_jobs, verbose=verbose)
    if return_errors:
        return matrix, errors
    return matrix


def get_distance(dist_matrix: List[np.ndarray], i: int, j: int) -> float:
    """ Distance between instances i and j, regardless of their order. """
    if i == j:
        return 0.
    if i > j:
        i, j = j, i
    return float(dist_matrix[i][j - i - 1])


def condensed_distances(dist_matrix: List[np.ndarray]) -> np.ndarray:
    """ Concatenate the rows into a condensed distance vector. """
    if len(dist_matrix) == 0:
        return np.empty(0, dtype=np.float64)
    return np.concatenate(dist_matrix).astype(np.float64, copy=False)


def row_distances(condensed: np.ndarray, n: int, i: int) -> np.ndarray:
    """ Distances from instance i to all n instances (including itself, at position i).

    Parameters
    ----------
    condensed : ndarray
        Condensed distance vector, see :func:`condensed_distances`
    n : int
        Number of instances
    i : int
        Query instance
    """
    j = np.arange(i)
    # Entries (j, i) for j < i live in earlier rows
    before = condensed[n * j - j * (j + 1) // 2 + (i - j - 1)]
    start = n * i - i * (i + 1) // 2
    after = condensed[start:start + n - i - 1]
    return np.concatenate([before, [0.], after])


def to_square(dist_matrix: List[np.ndarray]) -> np.ndarray:
    """ Symmetric square matrix with zero diagonal. """
    n = len(dist_matrix)
    if n == 0:
        return np.empty((0, 0), dtype=np.float64)
    if n == 1:
        return np.zeros((1, 1), dtype=np.float64)
    return squareform(condensed_distances(dist_matrix), checks=False)


def from_square(D: np.ndarray) -> List[np.ndarray]:
    """ Upper-triangular rows of a square distance matrix. """
    D = np.asarray(D, dtype=np.float64)
    if D.ndim != 2 or D.shape[0] != D.shape[1]:
        raise ConfigurationError(f"Expected a square distance matrix, got shape {D.shape}.")
    return [D[i, i + 1:].copy() for i in range(D.shape[0])]


def kernel_to_square(kernel_matrix: List[np.ndarray]) -> np.ndarray:
    """ Symmetric square kernel matrix from rows that include the diagonal. """
    n = len(kernel_matrix)
    K = np.empty((n, n), dtype=np.float64)
    for i, row in enumerate(kernel_matrix):
        K[i, i:] = row
        K[i:, i] = row
    return K


def distance_mean_and_variance(dist_matrix: List[np.ndarray]) -> Tuple[float, float]:
    """ Mean and (population) variance over all pairwise distances. """
    condensed = condensed_distances(dist_matrix)
    if condensed.size == 0:
        return 0., 0.
    return float(condensed.mean()), float(condensed.var())


def _fill_query_rows(queries, dataset, metric, D, start, end) -> List[Exception]:
    errors = []
    try:
        for q in range(start, end):
            query = queries[q]
            for j, instance in enumerate(dataset.data):
                try:
                    D[q, j] = _evaluate(metric, query, instance)
                except MetricError as e:
                    D[q, j] = MAX_DISTANCE
                    e.first, e.second = q, j
                    errors.append(e)
    except Exception as e:
        error = ThreadExecutionError(f"Worker for queries [{start}, {end}) failed: {e!r}",
                                     start_row=start, end_row=end)
        error.__cause__ = e
        logging.error(str(error))
        D[start:end, :] = MAX_DISTANCE
        errors.append(error)
    return errors


def calculate_query_distances(
        queries: Sequence[DataInstance],
        dataset: DataSet,
        metric: PairFunction,
        n_jobs: int = 1,
) -> np.ndarray:
    """ Distances from each query instance to all instances of `dataset`.

    Failing pairs hold :data:`MAX_DISTANCE`, as in :func:`calculate_dist_matrix`.

    Returns
    -------
    D : ndarray of shape (n_query, n_samples)
    """
    if metric is None:
        raise ConfigurationError("Cannot calculate distances without a metric.")
    n_jobs = validate_n_jobs(n_jobs)
    D = np.empty((len(queries), len(dataset)), dtype=np.float64)
    ranges = row_ranges(len(queries), n_jobs)
    results = Parallel(n_jobs=max(1, len(ranges)), prefer="threads")(
        delayed(_fill_query_rows)(queries, dataset, metric, D, start, end)
        for start, end in ranges
    )
    errors = [e for worker_errors in results for e in worker_errors]
    if errors:
        warnings.warn(f"{len(errors)} query distance evaluations failed. The affected "
                      f"entries hold the maximal distance {MAX_DISTANCE}.")
    return D

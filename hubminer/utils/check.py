# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
from typing import List

import numpy as np
from scipy.sparse import csr_matrix, issparse
from sklearn.utils.validation import check_array
import numba

from ..exceptions import ConfigurationError

__all__ = [
    "check_distance_matrix",
    "check_kneighbors_graph",
    "check_neighborhood_size",
]


@numba.jit
def _is_sorted_per_row(arr: np.ndarray) -> bool:
    n, m = arr.shape
    for i in range(n):
        for j in range(m - 1):
            if arr[i, j] > arr[i, j + 1]:
                return False
    return True


def check_neighborhood_size(k) -> int:
    """ Ensure `k` is a non-negative integer neighborhood size. """
    if k is None or isinstance(k, bool) or not np.issubdtype(type(k), np.integer):
        raise ConfigurationError(f"Neighborhood size k must be an integer, got {k!r}.")
    if k < 0:
        raise ConfigurationError(f"Neighborhood size k must be >= 0, got {k}.")
    return int(k)


def check_distance_matrix(dist_matrix: List[np.ndarray], n_samples: int, include_diagonal: bool = False):
    """ Ensure an upper-triangular matrix matches a data set of `n_samples` objects.

    Parameters
    ----------
    dist_matrix : list of ndarray
        Row i holds the values for all pairs (i, j) with j > i,
        or j >= i if `include_diagonal` is set (kernel matrices).
    n_samples : int
        Number of objects in the data set the matrix should describe
    include_diagonal : bool, default = False
        Expect the diagonal to be stored in position 0 of each row.

    Returns
    -------
    dist_matrix : list of ndarray

    Raises
    ------
    ConfigurationError
        If the matrix is missing, contains NaN, or its shape does not match `n_samples`.
    """
    if dist_matrix is None:
        raise ConfigurationError("No distance matrix available. Provide a matrix or a metric.")
    if len(dist_matrix) != n_samples:
        raise ConfigurationError(f"Distance matrix has {len(dist_matrix)} rows, "
                                 f"but the data set contains {n_samples} instances.")
    offset = 0 if include_diagonal else 1
    for i, row in enumerate(dist_matrix):
        if row is None or np.size(row) != n_samples - i - offset:
            length = None if row is None else np.size(row)
            raise ConfigurationError(f"Misshaped upper-triangular matrix: row {i} has length "
                                     f"{length}, expected {n_samples - i - offset}.")
        if np.isnan(row).any():
            raise ConfigurationError(f"Upper-triangular matrix contains NaN in row {i}. "
                                     f"Use a large value (e.g. MAX_DISTANCE) for unknown distances.")
    return dist_matrix


def check_kneighbors_graph(
        kng: csr_matrix,
        check_sparse: bool = True,
        check_empty: bool = True,
        check_shape: bool = True,
        check_sorted: str = "full",
) -> csr_matrix:
    """ Ensure validity of a k-neighbors graph, casting to CSR format if necessary.

    Parameters
    ----------
    kng : csr_matrix of shape (n_query, n_indexed)
        The k-neighbors graph with n_neighbors stored distances per query object.
    check_sparse : bool
    check_empty : bool
    check_shape : bool
    check_sorted : False, "simple", "full", default = "full"
        Ensure sorted distances (increasing).

        - "simple": Check sorting in first row as a proxy for whole array
        - "full": Check sorting in all rows
        - False: disable check

    Returns
    -------
    kneighbors_graph : csr_matrix
    """
    # Start off with standard sklearn checks
    kng = check_array(kng, accept_sparse=True)

    if check_sparse and not issparse(kng):
        raise ConfigurationError("The k-neighbors graph is expected to be a sparse matrix.")
    kng = csr_matrix(kng)

    n_query, n_indexed = kng.shape
    if check_empty and (n_query < 1 or n_indexed < 1):
        raise ConfigurationError(f"K-neighbors graph must not be empty. Got shape ({n_query}, {n_indexed}).")

    n_neighbors = kng.indptr[1]
    if check_shape:
        msg = "Misshaped k-neighbors graph. For each object, identically many neighbors must be stored."
        if np.any(np.diff(kng.indptr) != n_neighbors):
            raise ConfigurationError(msg + " Array indptr must be a homogeneous grid.")
        if kng.data.shape != kng.indices.shape:
            raise ConfigurationError(f"Shape of data {kng.data.shape} must match "
                                     f"shape of indices {kng.indices.shape}.")

    if check_sorted and n_neighbors > 1:
        msg = "K-neighbors graph must be sorted, that is, store ascending distances per row."
        if check_sorted == "simple":
            dist = kng.data[:n_neighbors]
            if np.any(dist[:-1] > dist[1:]):
                raise ConfigurationError(msg)
        elif check_sorted == "full" or check_sorted is True:
            if not _is_sorted_per_row(kng.data.reshape(n_query, n_neighbors)):
                raise ConfigurationError(msg)
        else:
            raise ConfigurationError(f"Invalid argument passed for check_sorted = {check_sorted}.")

    return kng

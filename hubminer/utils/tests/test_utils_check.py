# SPDX-License-Identifier: BSD-3-Clause

import pytest
import numpy as np
from scipy.sparse import csr_matrix
from sklearn.datasets import make_classification
from sklearn.neighbors import NearestNeighbors

from hubminer.exceptions import ConfigurationError
from hubminer.utils import (check_distance_matrix, check_kneighbors_graph, check_neighborhood_size,
                            row_ranges, validate_n_jobs, validate_verbose)


@pytest.mark.parametrize("k", [0, 1, 10, np.int64(3)])
def test_valid_neighborhood_size(k):
    assert check_neighborhood_size(k) == k


@pytest.mark.parametrize("k", [-1, 2.5, None, "5", True])
def test_invalid_neighborhood_size(k):
    with pytest.raises(ConfigurationError):
        check_neighborhood_size(k)


def test_check_distance_matrix():
    dist_matrix = [np.zeros(2), np.zeros(1), np.zeros(0)]
    assert check_distance_matrix(dist_matrix, 3) is dist_matrix
    with pytest.raises(ConfigurationError):
        check_distance_matrix(None, 3)
    with pytest.raises(ConfigurationError):
        check_distance_matrix(dist_matrix, 4)
    with pytest.raises(ConfigurationError):
        check_distance_matrix([np.zeros(2), np.zeros(2), np.zeros(0)], 3)
    kernel_matrix = [np.zeros(3), np.zeros(2), np.zeros(1)]
    assert check_distance_matrix(kernel_matrix, 3, include_diagonal=True) is kernel_matrix


def test_check_distance_matrix_rejects_nan():
    with pytest.raises(ConfigurationError):
        check_distance_matrix([np.array([1., np.nan]), np.zeros(1), np.zeros(0)], 3)
    with pytest.raises(ConfigurationError):
        check_distance_matrix([np.zeros(2), np.array([np.nan])], 2, include_diagonal=True)
    # Infinite distances are valid
    dist_matrix = [np.array([1., np.inf]), np.array([np.inf]), np.zeros(0)]
    assert check_distance_matrix(dist_matrix, 3) is dist_matrix


def test_check_kneighbors_graph():
    X, _ = make_classification(n_samples=30, random_state=1)
    kng = NearestNeighbors(n_neighbors=5).fit(X).kneighbors_graph(mode="distance")
    assert check_kneighbors_graph(kng).shape == (30, 30)

    with pytest.raises(ConfigurationError):
        check_kneighbors_graph(kng.toarray())

    unsorted = kng.copy()
    unsorted.data = unsorted.data[::-1].copy()
    with pytest.raises(ConfigurationError):
        check_kneighbors_graph(unsorted)

    ragged = csr_matrix(([1., 2., 3.], [1, 2, 0], [0, 2, 3]), shape=(2, 3))
    with pytest.raises(ConfigurationError):
        check_kneighbors_graph(ragged)


@pytest.mark.parametrize("n_jobs, expected", [(None, 1), (1, 1), (4, 4)])
def test_validate_n_jobs(n_jobs, expected):
    assert validate_n_jobs(n_jobs) == expected
    assert validate_n_jobs(-1) >= 1


@pytest.mark.parametrize("n_jobs", [0, -2])
def test_invalid_n_jobs(n_jobs):
    with pytest.raises(ConfigurationError):
        validate_n_jobs(n_jobs)


@pytest.mark.parametrize("verbose, expected", [(None, 0), (-1, 0), (0, 0), (2, 2)])
def test_validate_verbose(verbose, expected):
    assert validate_verbose(verbose) == expected


@pytest.mark.parametrize("n_rows, n_jobs, expected", [
    (10, 1, [(0, 10)]),
    (10, 2, [(0, 5), (5, 10)]),
    (10, 3, [(0, 4), (4, 8), (8, 10)]),
    (2, 5, [(0, 1), (1, 2)]),
    (0, 3, []),
])
def test_row_ranges(n_rows, n_jobs, expected):
    assert row_ranges(n_rows, n_jobs) == expected

# SPDX-License-Identifier: BSD-3-Clause

import pytest
import numpy as np
from numpy.testing import assert_array_almost_equal, assert_array_equal
from scipy.spatial.distance import pdist, squareform
from sklearn.datasets import make_classification

from hubminer.data import DataSet
from hubminer.distances import (CombinedMetric, GeneralizedHistogramKernel, LinearKernel, MAX_DISTANCE,
                                calculate_dist_matrix, calculate_kernel_matrix, calculate_query_distances,
                                distance_mean_and_variance, from_square, get_distance, kernel_to_square,
                                to_square)
from hubminer.distances.matrix import condensed_distances, row_distances
from hubminer.exceptions import ConfigurationError, MetricError, ThreadExecutionError


def _dataset(n_samples=30, n_features=5):
    X, y = make_classification(n_samples=n_samples, n_features=n_features, n_informative=3,
                               n_redundant=0, random_state=123)
    return X, DataSet.from_arrays(X, y)


class FailingMetric:
    """ Fails for all pairs involving instance `bad`. """

    def __init__(self, dataset, bad):
        self.bad = dataset[bad]

    def __call__(self, first, second):
        if first is self.bad or second is self.bad:
            raise MetricError("corrupt feature value")
        return CombinedMetric.FLOAT_EUCLIDEAN(first, second)


class CrashingMetric:
    """ Raises an unexpected error for pairs starting at instance `row`. """

    def __init__(self, dataset, row):
        self.first = dataset[row]

    def __call__(self, first, second):
        if first is self.first:
            raise RuntimeError("worker crashed")
        return CombinedMetric.FLOAT_EUCLIDEAN(first, second)


def test_upper_triangular_layout_matches_pdist():
    X, ds = _dataset()
    dist_matrix = calculate_dist_matrix(ds, CombinedMetric.FLOAT_EUCLIDEAN)
    n = len(ds)
    assert len(dist_matrix) == n
    for i, row in enumerate(dist_matrix):
        assert row.shape == (n - i - 1, )
    assert_array_almost_equal(condensed_distances(dist_matrix), pdist(X))


def test_symmetric_with_zero_diagonal():
    _, ds = _dataset(n_samples=12)
    dist_matrix = calculate_dist_matrix(ds, CombinedMetric.FLOAT_MANHATTAN)
    D = to_square(dist_matrix)
    assert_array_equal(D, D.T)
    assert_array_equal(np.diag(D), 0.)
    for i in range(len(ds)):
        for j in range(len(ds)):
            assert get_distance(dist_matrix, i, j) == get_distance(dist_matrix, j, i) == D[i, j]


@pytest.mark.parametrize("n_jobs", [2, 5, -1])
@pytest.mark.parametrize("n_samples", [1, 4, 23])
def test_multithreaded_equals_single_threaded(n_jobs, n_samples):
    _, ds = _dataset()
    ds = ds.get_subsample(range(n_samples))
    single = calculate_dist_matrix(ds, CombinedMetric.FLOAT_EUCLIDEAN, n_jobs=1)
    multi = calculate_dist_matrix(ds, CombinedMetric.FLOAT_EUCLIDEAN, n_jobs=n_jobs)
    assert len(single) == len(multi) == n_samples
    for row_single, row_multi in zip(single, multi):
        assert_array_equal(row_single, row_multi)


def test_empty_dataset():
    ds = DataSet(float_attr_names=["x"])
    assert calculate_dist_matrix(ds, CombinedMetric.FLOAT_EUCLIDEAN) == []
    assert to_square([]).shape == (0, 0)
    assert distance_mean_and_variance([]) == (0., 0.)


@pytest.mark.parametrize("n_jobs", [1, 3])
def test_metric_errors_store_sentinel(n_jobs):
    _, ds = _dataset(n_samples=10)
    bad = 4
    with pytest.warns(UserWarning):
        dist_matrix, errors = calculate_dist_matrix(ds, FailingMetric(ds, bad), n_jobs=n_jobs,
                                                    return_errors=True)
    D = to_square(dist_matrix)
    others = np.delete(np.arange(10), bad)
    assert_array_equal(D[bad, others], MAX_DISTANCE)
    assert_array_equal(D[others, bad], MAX_DISTANCE)
    assert D[bad, bad] == 0.
    assert len(errors) == 9
    assert all(isinstance(e, MetricError) for e in errors)
    assert {(e.first, e.second) for e in errors} == {(min(bad, j), max(bad, j)) for j in others}

    valid = np.ix_(others, others)
    reference = to_square(calculate_dist_matrix(ds, CombinedMetric.FLOAT_EUCLIDEAN))
    assert_array_equal(D[valid], reference[valid])


def test_worker_failure_fills_its_rows():
    _, ds = _dataset(n_samples=10)
    with pytest.warns(UserWarning):
        dist_matrix, errors = calculate_dist_matrix(ds, CrashingMetric(ds, row=6), n_jobs=2,
                                                    return_errors=True)
    assert len(errors) == 1
    error = errors[0]
    assert isinstance(error, ThreadExecutionError)
    assert (error.start_row, error.end_row) == (5, 10)
    for i in range(5, 10):
        assert_array_equal(dist_matrix[i], MAX_DISTANCE)
        assert dist_matrix[i].shape == (10 - i - 1, )
    reference = calculate_dist_matrix(ds, CombinedMetric.FLOAT_EUCLIDEAN)
    for i in range(5):
        assert_array_equal(dist_matrix[i], reference[i])


def test_nan_distances_store_sentinel():
    _, ds = _dataset(n_samples=6)
    first = ds[2]

    def nan_metric(a, b):
        return np.nan if a is first or b is first else CombinedMetric.FLOAT_EUCLIDEAN(a, b)

    with pytest.warns(UserWarning):
        dist_matrix, errors = calculate_dist_matrix(ds, nan_metric, return_errors=True)
    D = to_square(dist_matrix)
    assert not np.isnan(D).any()
    assert_array_equal(D[2, [0, 1, 3, 4, 5]], MAX_DISTANCE)
    assert len(errors) == 5
    assert all(isinstance(e, MetricError) for e in errors)

    with pytest.warns(UserWarning):
        Q = calculate_query_distances([first], ds, nan_metric)
    assert_array_equal(Q, MAX_DISTANCE)


@pytest.mark.parametrize("dataset, metric", [(None, CombinedMetric.FLOAT_EUCLIDEAN), ("ds", None)])
def test_missing_inputs_raise(dataset, metric):
    _, ds = _dataset(n_samples=5)
    with pytest.raises(ConfigurationError):
        calculate_dist_matrix(ds if dataset == "ds" else dataset, metric)


def test_invalid_n_jobs():
    _, ds = _dataset(n_samples=5)
    with pytest.raises(ConfigurationError):
        calculate_dist_matrix(ds, CombinedMetric.FLOAT_EUCLIDEAN, n_jobs=0)


@pytest.mark.parametrize("n_jobs", [1, 2, 5])
def test_kernel_matrix_includes_diagonal(n_jobs):
    X, ds = _dataset(n_samples=9)
    kernel_matrix = calculate_kernel_matrix(ds, LinearKernel(), n_jobs=n_jobs)
    for i, row in enumerate(kernel_matrix):
        assert row.shape == (9 - i, )
    assert_array_almost_equal(kernel_to_square(kernel_matrix), X @ X.T)

    ghk = kernel_to_square(calculate_kernel_matrix(ds, GeneralizedHistogramKernel(), n_jobs=n_jobs))
    expected = np.minimum(np.abs(X)[:, None, :], np.abs(X)[None, :, :]).sum(axis=2)
    assert_array_almost_equal(ghk, expected)


def test_kernel_length_mismatch_is_absorbed():
    ds = DataSet.from_arrays([[1., 2.], [3., 4.]])
    ds[1].float_attr = np.array([1.])
    with pytest.warns(UserWarning):
        K, errors = calculate_kernel_matrix(ds, LinearKernel(), return_errors=True)
    assert K[0][0] == 5.
    assert K[0][1] == MAX_DISTANCE
    assert K[1][0] == 1.
    assert len(errors) == 1


def test_square_conversions():
    X, ds = _dataset(n_samples=8)
    D = squareform(pdist(X))
    dist_matrix = from_square(D)
    assert_array_almost_equal(to_square(dist_matrix), D)
    with pytest.raises(ConfigurationError):
        from_square(np.zeros((3, 2)))


def test_row_distances():
    X, _ = _dataset(n_samples=7)
    D = squareform(pdist(X))
    condensed = pdist(X)
    for i in range(7):
        assert_array_almost_equal(row_distances(condensed, 7, i), D[i])


def test_distance_mean_and_variance():
    X, ds = _dataset(n_samples=15)
    mean, variance = distance_mean_and_variance(calculate_dist_matrix(ds, CombinedMetric.FLOAT_EUCLIDEAN))
    assert_array_almost_equal([mean, variance], [pdist(X).mean(), pdist(X).var()])


@pytest.mark.parametrize("n_jobs", [1, 2])
def test_query_distances(n_jobs):
    X, ds = _dataset(n_samples=20)
    queries = DataSet.from_arrays(X[:5] + .1)
    D = calculate_query_distances(queries.data, ds, CombinedMetric.FLOAT_EUCLIDEAN, n_jobs=n_jobs)
    expected = np.sqrt(((X[:5, None, :] + .1 - X[None, :, :]) ** 2).sum(axis=2))
    assert_array_almost_equal(D, expected)

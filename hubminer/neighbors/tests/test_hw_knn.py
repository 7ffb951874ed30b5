# SPDX-License-Identifier: BSD-3-Clause

import pytest
import numpy as np
from numpy.testing import assert_array_almost_equal, assert_array_equal
from sklearn.datasets import make_classification
from sklearn.neighbors import KNeighborsClassifier

from hubminer.analysis import VALID_WEIGHTINGS
from hubminer.data import DataSet
from hubminer.distances import CombinedMetric
from hubminer.exceptions import ConfigurationError
from hubminer.neighbors import HubnessWeightedKNeighborsClassifier, NeighborSetFinder


def _data(n_samples=120, random_state=123):
    X, y = make_classification(n_samples=n_samples, n_features=30, n_informative=10,
                               n_classes=3, random_state=random_state)
    return X[:100], y[:100], X[100:], y[100:]


@pytest.mark.parametrize("weighting", sorted(VALID_WEIGHTINGS))
def test_predict_proba_is_normalized(weighting):
    X_train, y_train, X_test, _ = _data()
    clf = HubnessWeightedKNeighborsClassifier(k=5, weighting=weighting).fit(X_train, y_train)
    proba = clf.predict_proba(X_test)
    assert proba.shape == (20, 3)
    assert_array_almost_equal(proba.sum(axis=1), 1.)
    assert_array_equal(clf.predict(X_test), clf.classes_[np.argmax(proba, axis=1)])


def test_uniform_weighting_matches_sklearn():
    X_train, y_train, X_test, _ = _data()
    clf = HubnessWeightedKNeighborsClassifier(k=5, weighting="uniform").fit(X_train, y_train)
    reference = KNeighborsClassifier(n_neighbors=5).fit(X_train, y_train)
    assert_array_almost_equal(clf.predict_proba(X_test), reference.predict_proba(X_test))
    dist, ind = clf.kneighbors(X_test)
    ref_dist, ref_ind = reference.kneighbors(X_test)
    assert_array_equal(ind, ref_ind)
    assert_array_almost_equal(dist, ref_dist)


def test_weights_follow_bad_occurrence():
    X_train, y_train, _, _ = _data()
    clf = HubnessWeightedKNeighborsClassifier(k=5).fit(X_train, y_train)
    bad = clf.nsf_.bad_frequencies
    assert clf.weights_.shape == (100, )
    assert clf.weights_[np.argmax(bad)] == clf.weights_.min()


def test_string_labels():
    X_train, y_train, X_test, _ = _data()
    names = np.array(["a", "b", "c"])
    clf = HubnessWeightedKNeighborsClassifier(k=3).fit(X_train, names[y_train])
    assert_array_equal(clf.classes_, names)
    assert set(clf.predict(X_test)) <= set(names)
    assert clf.score(X_train, names[y_train]) > .5


def test_shared_neighbor_set_finder_is_not_modified():
    X_train, y_train, X_test, _ = _data()
    ds = DataSet.from_arrays(X_train, y_train)
    nsf = NeighborSetFinder(ds, metric=CombinedMetric.FLOAT_EUCLIDEAN).calculate_neighbor_sets(10)
    frequencies = nsf.neighbor_frequencies.copy()

    shared = HubnessWeightedKNeighborsClassifier(k=5, nsf=nsf).fit()
    assert shared.nsf_ is nsf
    assert nsf.current_k == 10
    assert_array_equal(nsf.neighbor_frequencies, frequencies)

    own = HubnessWeightedKNeighborsClassifier(k=5).fit(ds)
    assert_array_almost_equal(shared.weights_, own.weights_)
    assert_array_equal(shared.predict(X_test), own.predict(X_test))


def test_queries_use_metric_of_shared_finder():
    X_train, y_train, X_test, _ = _data()
    nsf = NeighborSetFinder(DataSet.from_arrays(X_train, y_train),
                            metric=CombinedMetric.FLOAT_MANHATTAN).calculate_neighbor_sets(5)
    clf = HubnessWeightedKNeighborsClassifier(k=5, nsf=nsf).fit()
    assert clf.metric_ is nsf.metric
    reference = KNeighborsClassifier(n_neighbors=5, metric="manhattan").fit(X_train, y_train)
    assert_array_equal(clf.kneighbors(X_test, return_distance=False),
                       reference.kneighbors(X_test, return_distance=False))

    explicit = HubnessWeightedKNeighborsClassifier(k=5, nsf=nsf, metric="euclidean").fit()
    assert_array_equal(explicit.kneighbors(X_test, return_distance=False),
                       KNeighborsClassifier(n_neighbors=5).fit(X_train, y_train)
                       .kneighbors(X_test, return_distance=False))


def test_shared_finder_must_be_large_enough():
    X_train, y_train, _, _ = _data()
    nsf = NeighborSetFinder(DataSet.from_arrays(X_train, y_train),
                            metric=CombinedMetric.FLOAT_EUCLIDEAN).calculate_neighbor_sets(3)
    with pytest.raises(ConfigurationError):
        HubnessWeightedKNeighborsClassifier(k=5, nsf=nsf).fit()
    with pytest.raises(ConfigurationError):
        HubnessWeightedKNeighborsClassifier(k=3, nsf=nsf).fit(X_train[:10], y_train[:10])


@pytest.mark.parametrize("k", [0, -1])
def test_invalid_k(k):
    X_train, y_train, _, _ = _data()
    with pytest.raises(ConfigurationError):
        HubnessWeightedKNeighborsClassifier(k=k).fit(X_train, y_train)


def test_missing_training_data():
    with pytest.raises(ConfigurationError):
        HubnessWeightedKNeighborsClassifier().fit()
    with pytest.raises(ConfigurationError):
        HubnessWeightedKNeighborsClassifier().fit(np.zeros((5, 2)))
    with pytest.raises(ConfigurationError):
        HubnessWeightedKNeighborsClassifier(weighting="inverse").fit(np.eye(8), np.arange(8))

# SPDX-License-Identifier: BSD-3-Clause

import pytest

import numpy as np
from scipy.spatial.distance import squareform
from scipy.sparse import csr_matrix
from sklearn.datasets import make_classification
from sklearn.metrics import euclidean_distances
from sklearn.neighbors import NearestNeighbors

from hubminer import Hubness
from hubminer.analysis.estimation import VALID_HUBNESS_MEASURES
from hubminer.data import DataSet

DIST = squareform(np.array([.2, .1, .8, .4, .3, .5, .7, 1., .6, .9]))


def test_hubness_from_kneighbors_graphs(hubness_k: int = 10):
    X, y = make_classification(
        n_samples=200,
        n_features=50,
        n_informative=40,
        random_state=123,
    )
    nn = NearestNeighbors()
    nn.fit(X[:150])
    for n_neighbors in [1, 5, 10]:
        kng_train = nn.kneighbors_graph(
            n_neighbors=n_neighbors,
            mode="distance",
        )
        kng_test = nn.kneighbors_graph(
            X[150:],
            n_neighbors=n_neighbors,
            mode="distance",
        )
        hub = Hubness(k=hubness_k)
        if n_neighbors < hubness_k:
            with pytest.raises(ValueError):
                hub.fit(kng_train)
            continue
        hub.fit(kng_train)
        score = hub.score(kng_test)
        assert np.isfinite(score)


@pytest.mark.parametrize("verbose", [-1, 0, 1, 2, 3, None])
def test_hubness(verbose):
    """Test hubness against ground truth calc on spreadsheet"""
    HUBNESS_TRUE = -0.2561204163  # Hubness truth: skewness calculated with bias
    hub = Hubness(k=2, metric="precomputed", verbose=verbose)
    hub.fit(DIST)
    Sk2 = hub.score()
    np.testing.assert_almost_equal(Sk2, HUBNESS_TRUE, decimal=10)


def test_vector_data_matches_kneighbors_graph():
    X, y = make_classification(random_state=12354)
    kng = NearestNeighbors(n_neighbors=10).fit(X).kneighbors_graph(mode="distance")
    from_vectors = Hubness(k=10).fit(X).score()
    from_graph = Hubness(k=10).fit(kng).score()
    from_dataset = Hubness(k=10).fit(DataSet.from_arrays(X, y)).score()
    np.testing.assert_almost_equal(from_vectors, from_graph)
    np.testing.assert_almost_equal(from_vectors, from_dataset)


def test_precomputed_square_matrix():
    X, _ = make_classification(random_state=12354)
    from_vectors = Hubness(k=5).fit(X).score()
    precomputed = Hubness(k=5, metric="precomputed").fit(euclidean_distances(X)).score()
    np.testing.assert_almost_equal(from_vectors, precomputed)


def test_query_vectors():
    X, _ = make_classification(random_state=123)
    hub = Hubness(k=5, return_value="all").fit(X[:80])
    measures = hub.score(X[80:])
    kng = NearestNeighbors(n_neighbors=5).fit(X[:80]).kneighbors_graph(X[80:], mode="distance")
    reference = Hubness(k=5, return_value="all").fit(
        NearestNeighbors(n_neighbors=5).fit(X[:80]).kneighbors_graph(mode="distance"))
    expected = reference.score(kng)
    for measure in ["k_skewness", "robinhood", "gini", "antihub_occurrence"]:
        np.testing.assert_almost_equal(measures[measure], expected[measure])


def test_return_k_neighbors():
    """ This was only available in legacy Hubness estimation """
    X, _ = make_classification()
    hub = Hubness(return_value="k_neighbors")
    with pytest.raises(ValueError):
        hub.fit(X)


def test_single_sample():
    with pytest.raises(ValueError):
        Hubness(k=3).fit(np.zeros((1, 3)))


def test_k_is_reduced_for_tiny_data():
    X = np.arange(10, dtype=float).reshape(5, 2)
    with pytest.warns(UserWarning):
        hub = Hubness(k=10).fit(X)
    assert hub.k_ == 4
    assert hub.k == 10


@pytest.mark.parametrize("return_value", ["all", "k_skewness"])
@pytest.mark.parametrize("return_k_occurrence", [True, False])
def test_return_k_occurrence(return_value, return_k_occurrence):
    X, _ = make_classification()
    hub = Hubness(
        return_value=return_value,
        return_k_occurrence=return_k_occurrence,
    )
    hub.fit(X)
    result = hub.score()
    if return_k_occurrence:
        k_occ = result["k_occurrence"]
        assert k_occ.shape == (X.shape[0], )
        assert k_occ.sum() == X.shape[0] * 10
    else:
        ExpectedError = KeyError if return_value == "all" else TypeError
        with pytest.raises(ExpectedError):
            _ = result["k_occurrence"]


@pytest.mark.parametrize("return_value", ["all", "k_skewness"])
@pytest.mark.parametrize("return_hubs", [True, False])
def test_return_hubs(return_value, return_hubs):
    X, _ = make_classification(random_state=123)
    hub = Hubness(
        return_value=return_value,
        return_hubs=return_hubs,
    )
    hub.fit(X)
    result = hub.score()
    if return_hubs:
        hubs = result["hubs"]
        k_occ = np.bincount(hub.nsf_.kneighbors.ravel(), minlength=X.shape[0])
        np.testing.assert_array_equal(hubs, np.flatnonzero(k_occ >= 2 * 10))
    else:
        ExpectedError = KeyError if return_value == "all" else TypeError
        with pytest.raises(ExpectedError):
            _ = result["hubs"]


@pytest.mark.parametrize("return_value", ["all", "k_skewness"])
@pytest.mark.parametrize("return_antihubs", [True, False])
def test_return_antihubs(return_value, return_antihubs):
    X, _ = make_classification(random_state=123)
    hub = Hubness(
        return_value=return_value,
        return_antihubs=return_antihubs,
    )
    hub.fit(X)
    result = hub.score()
    if return_antihubs:
        antihubs = result["antihubs"]
        np.testing.assert_array_equal(hub.nsf_.neighbor_frequencies[antihubs], 0)
    else:
        ExpectedError = KeyError if return_value == "all" else TypeError
        with pytest.raises(ExpectedError):
            _ = result["antihubs"]


def test_all_but_gini():
    X, _ = make_classification()
    hub = Hubness(
        return_k_occurrence=True,
        return_antihubs=True,
        return_hubs=True,
        return_value="all_but_gini",
    )
    hub.fit(X)
    measures = hub.score()

    hit_gini = False
    for m in VALID_HUBNESS_MEASURES:
        if m in ["all", "all_but_gini"]:
            continue
        elif m == "gini":
            assert m not in measures
            hit_gini = True
        else:
            assert m in measures
    assert hit_gini


@pytest.mark.parametrize("hub_size", [0, -1.])
def test_invalid_hub_size(hub_size):
    X, _ = make_classification()
    with pytest.raises(ValueError):
        Hubness(hub_size=hub_size).fit(X)


def test_sparse_precomputed_graph():
    X, _ = make_classification(random_state=123)
    dist = euclidean_distances(X)
    np.fill_diagonal(dist, np.inf)
    order = np.argsort(dist, axis=1)[:, :10]
    data = np.take_along_axis(dist, order, axis=1).ravel()
    kng = csr_matrix((data, order.ravel(), np.arange(0, data.size + 1, 10)), shape=dist.shape)
    np.testing.assert_almost_equal(Hubness(k=10).fit(kng).score(), Hubness(k=10).fit(X).score())

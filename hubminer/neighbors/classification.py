# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
This file is part of hub-miner.

Hubness-weighted k-nearest neighbor classification (hw-kNN).
"""
from __future__ import annotations

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.utils.validation import check_array, check_is_fitted

from ..analysis.statistics import HubnessStatistics
from ..analysis.weighting import hubness_weights
from ..data.dataset import DataSet
from ..distances.combined import CombinedMetric
from ..distances.matrix import calculate_query_distances
from ..exceptions import ConfigurationError
from ..utils.check import check_neighborhood_size
from ..utils.io import validate_verbose
from ..utils.multiprocessing import validate_n_jobs
from .neighbor_set_finder import NeighborSetFinder

__all__ = [
    "HubnessWeightedKNeighborsClassifier",
]


class HubnessWeightedKNeighborsClassifier(BaseEstimator, ClassifierMixin):
    """ k-nearest neighbor vote, weighted by the hubness of each neighbor.

    Neighbors that frequently occur with label mismatches in the training data
    (bad hubs) get smaller weights under the default scheme.

    Parameters
    ----------
    k : int, default = 5
        Neighborhood size for both the training occurrence statistics and the vote
    metric : str or CombinedMetric, optional
        Distance between instances. Names are resolved by
        :meth:`CombinedMetric.from_name`. Defaults to the metric of a shared
        neighbor set finder, or Euclidean distance otherwise.
    p : float, default = 2
        Order of the Minkowski distance; only used for ``metric="minkowski"``.
    weighting : str, default = "hw_knn"
        One of :data:`hubminer.analysis.VALID_WEIGHTINGS`
    nsf : NeighborSetFinder, optional
        Precomputed neighbor sets of the training data, calculated up to at least `k`.
        The finder is only read, so it can be shared between several
        classifiers (e.g. in cross-validation). Its data set is the training data.
    n_jobs : int, default = 1
        Number of threads for distance calculations
    verbose : int, default = 0

    Attributes
    ----------
    classes_ : ndarray
        Class labels known to the classifier
    weights_ : ndarray of shape (n_train, )
        Vote weight of each training instance

    References
    ----------
    .. [1] `Radovanović, M.; Nanopoulos, A. & Ivanović, M.
            Nearest neighbors in high-dimensional data: the emergence and
            influence of hubs. ICML 2009.`
    """

    def __init__(
            self,
            k: int = 5,
            metric=None,
            p: float = 2,
            weighting: str = "hw_knn",
            nsf: NeighborSetFinder = None,
            n_jobs: int = 1,
            verbose: int = 0,
    ):
        self.k = k
        self.metric = metric
        self.p = p
        self.weighting = weighting
        self.nsf = nsf
        self.n_jobs = n_jobs
        self.verbose = verbose

    def _resolve_metric(self):
        if isinstance(self.metric, str):
            return CombinedMetric.from_name(self.metric, p=self.p)
        if self.metric is None:
            if self.nsf is not None and self.nsf.metric is not None:
                return self.nsf.metric
            return CombinedMetric.EUCLIDEAN
        return self.metric

    def fit(self, X=None, y=None) -> HubnessWeightedKNeighborsClassifier:
        """ Fit the model using X as training data and y as target values.

        Parameters
        ----------
        X : DataSet or array-like of shape (n_samples, n_features)
            Training data. May be omitted, if a neighbor set finder was passed.
        y : array-like of shape (n_samples, ), optional
            Target values. Taken from the data set, if X is a DataSet.
        """
        k = check_neighborhood_size(self.k)
        if k < 1:
            raise ConfigurationError(f"Neighborhood size k must be >= 1, got {k}.")
        self.n_jobs_ = validate_n_jobs(self.n_jobs)
        verbose = validate_verbose(self.verbose)
        self.metric_ = self._resolve_metric()

        if self.nsf is not None:
            nsf = self.nsf
            if X is not None and len(X) != len(nsf.dataset):
                raise ConfigurationError(f"Training data of {len(X)} instances does not match the "
                                         f"neighbor set finder of {len(nsf.dataset)} instances.")
            if not nsf.is_calculated_up_to_k(k):
                raise ConfigurationError(f"The shared neighbor set finder must be calculated "
                                         f"up to k={k}, but has k_max={nsf.k_max}.")
            dataset = nsf.dataset
            self.classes_, y_encoded = np.unique(dataset.labels, return_inverse=True)
        else:
            if X is None:
                raise ConfigurationError("Training data or a neighbor set finder is required.")
            if isinstance(X, DataSet):
                if y is None:
                    y = X.labels
                self.classes_, y_encoded = np.unique(y, return_inverse=True)
                dataset = X.copy()
                for i, label in enumerate(y_encoded):
                    dataset.set_label_of(i, label)
            else:
                X = check_array(X)
                if y is None:
                    raise ConfigurationError("Target values y are required for array input.")
                self.classes_, y_encoded = np.unique(y, return_inverse=True)
                dataset = DataSet.from_arrays(X, y_encoded)
            nsf = NeighborSetFinder(dataset, metric=self.metric_, n_jobs=self.n_jobs_, verbose=verbose)
            nsf.calculate_neighbor_sets(k)

        self.nsf_ = nsf
        self.dataset_ = dataset
        self._y = np.asarray(y_encoded, dtype=np.int64).ravel()
        statistics = HubnessStatistics(nsf, k)
        self.weights_ = hubness_weights(statistics, self.weighting)
        return self

    def _query_instances(self, X):
        if isinstance(X, DataSet):
            return X.data
        X = check_array(X)
        return DataSet.from_arrays(X).data

    def kneighbors(self, X, return_distance: bool = True):
        """ Indices of (and distances to) the k nearest training instances of each query.

        Ties are broken by ascending training index.
        """
        check_is_fitted(self, "nsf_")
        queries = self._query_instances(X)
        dist = calculate_query_distances(queries, self.dataset_, self.metric_, n_jobs=self.n_jobs_)
        k = min(self.k, len(self.dataset_))
        ind = np.argsort(dist, axis=1, kind="stable")[:, :k]
        if return_distance:
            return np.take_along_axis(dist, ind, axis=1), ind
        return ind

    def predict_proba(self, X) -> np.ndarray:
        """ Weighted class votes of the k nearest training instances, normalized to one. """
        ind = self.kneighbors(X, return_distance=False)
        n_queries = ind.shape[0]
        proba = np.zeros((n_queries, self.classes_.size), dtype=np.float64)
        rows = np.repeat(np.arange(n_queries), ind.shape[1])
        np.add.at(proba, (rows, self._y[ind].ravel()), self.weights_[ind].ravel())
        normalizer = proba.sum(axis=1, keepdims=True)
        normalizer[normalizer == 0.] = 1.
        return proba / normalizer

    def predict(self, X) -> np.ndarray:
        """ Class with the largest weighted vote (ties to the first class). """
        proba = self.predict_proba(X)
        return self.classes_[np.argmax(proba, axis=1)]

# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
This file is part of hub-miner.

Estimate hubness of a data set from its neighbor occurrence frequencies.
"""
from __future__ import annotations
from typing import Union
import warnings

import numpy as np
from scipy.sparse import csr_matrix, issparse
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_array, check_is_fitted

from .statistics import (antihub_occurrence, atkinson_index, gini_index, groupie_ratio, hub_occurrence,
                         k_skewness, robinhood_index, skewness_truncnorm)
from ..data.dataset import DataSet
from ..distances.combined import CombinedMetric
from ..distances.matrix import calculate_query_distances, from_square
from ..neighbors.neighbor_set_finder import NeighborSetFinder
from ..utils.check import check_kneighbors_graph
from ..utils.io import validate_verbose
from ..utils.multiprocessing import validate_n_jobs

__all__ = [
    "Hubness",
    "VALID_HUBNESS_MEASURES",
]

#: Available hubness measures
VALID_HUBNESS_MEASURES = [
    "all",
    "all_but_gini",
    "antihub_occurrence",
    "atkinson",
    "gini",
    "groupie_ratio",
    "hub_occurrence",
    "k_skewness",
    "k_skewness_truncnorm",
    "robinhood",
]


class Hubness(BaseEstimator):
    """ Examine hubness characteristics of data.

    Parameters
    ----------
    k : int, default = 10
        Neighborhood size
    return_value : str, default = "k_skewness"
        Hubness measure to return by :meth:`score`
        By default, return the skewness of the k-occurrence histogram.
        Use "all_but_gini" to return all measures except the Gini index,
        which is slow on large datasets.
        Use "all" to return a dict of all available measures,
        or check `hubminer.analysis.VALID_HUBNESS_MEASURES`
        for available measures.
    hub_size : float, default = 2
        Hubs are defined as objects with k-occurrence >= hub_size * k.
    metric : str, default = "euclidean"
        If "precomputed", a square distance matrix or a sparse k-neighbors graph
        must be provided in fit and score functions.
        Otherwise, the name of a :class:`hubminer.distances.DistanceMeasure`
        applied to the vector data.
    p : float, default = 2
        Order of the Minkowski distance; only used for ``metric="minkowski"``.
    return_hubs : bool
        Whether to return the list of indices to hub objects
    return_antihubs : bool
        Whether to return the list of indices to antihub objects
    return_k_occurrence: bool
        Whether to save the list of k-occurrences. Requires O(n_test) memory.
    n_jobs : int, optional
        Number of threads for distance calculations.

        - `1`: Don't use multithreading.
        - `-1`: Use all CPUs
    verbose: int, optional
        Level of output messages

    Attributes
    ----------
    nsf_ : NeighborSetFinder
        Neighbor sets of the fitted objects
    k_ : int
        Neighborhood size actually used (reduced for tiny data sets)

    References
    ----------
    .. [1] `Radovanović, M.; Nanopoulos, A. & Ivanović, M.
            Hubs in space: Popular nearest neighbors in high-dimensional data.
            Journal of Machine Learning Research, 2010, 11, 2487-2531`
    .. [2] `Feldbauer, R.; Leodolter, M.; Plant, C. & Flexer, A.
            Fast approximate hubness reduction for large high-dimensional data.
            IEEE International Conference of Big Knowledge (2018).`
    """

    def __init__(
            self,
            k: int = 10,
            hub_size: float = 2,
            metric: str = "euclidean",
            p: float = 2,
            return_value: str = "k_skewness",
            return_hubs: bool = False,
            return_antihubs: bool = False,
            return_k_occurrence: bool = False,
            verbose: int = 0,
            n_jobs: int = 1,
    ):
        self.k = k
        self.return_value = return_value
        self.hub_size = hub_size
        self.metric = metric
        self.p = p
        self.return_hubs = return_hubs
        self.return_antihubs = return_antihubs
        self.return_k_occurrence = return_k_occurrence
        self.verbose = verbose
        self.n_jobs = n_jobs

    def _validate_params(self):
        return_value = self.return_value
        if return_value is None:
            return_value = "k_skewness"
        elif return_value not in VALID_HUBNESS_MEASURES:
            raise ValueError(f"Unknown return value: {return_value}. "
                             f"Allowed hubness measures: {VALID_HUBNESS_MEASURES}.")
        self.return_value = return_value

        hub_size = self.hub_size
        if hub_size is None:
            hub_size = 2.
        elif hub_size <= 0:
            raise ValueError("Hub size must be greater than zero.")
        self.hub_size = hub_size

        if self.metric is None:
            self.metric = "euclidean"
        self.n_jobs = validate_n_jobs(self.n_jobs)
        self.verbose = validate_verbose(self.verbose)

    def _reduce_k(self, n_samples: int) -> int:
        # Reduce k for (test) cases with very few objects
        k = self.k
        if n_samples <= k:
            k = n_samples - 1
            if k < 1:
                raise ValueError("Cannot compute hubness as there is only one sample.")
            warnings.warn(f"Parameter k was automatically reduced to {k}, "
                          f"because there are only {n_samples} samples.")
        return k

    def fit(self, X, y=None) -> Hubness:
        """ Fit indexed objects.

        Parameters
        ----------
        X : DataSet, array-like of shape (n_indexed, n_features), or csr_matrix
            Indexed objects. A sparse matrix is interpreted as k-neighbors graph
            of the indexed objects without self hits, which must contain
            at least `k` neighbors per object. With ``metric="precomputed"``,
            a dense X is a square distance matrix.
        y : array-like of shape (n_indexed, ), optional
            Class labels; enables good and bad occurrence counts.

        Returns
        -------
        self:
            Fitted instance of :mod:Hubness
        """
        if self.k is None or self.k < 1:
            raise ValueError(f"Neighborhood size 'k' must be >= 1, but is {self.k}")
        self._validate_params()
        self.metric_ = None

        if isinstance(X, DataSet):
            dataset = X
            self.metric_ = CombinedMetric.from_name(self.metric, p=self.p)
            k = self._reduce_k(len(dataset))
            nsf = NeighborSetFinder(dataset, metric=self.metric_, n_jobs=self.n_jobs, verbose=self.verbose)
        elif issparse(X):
            kng: csr_matrix = check_kneighbors_graph(X)
            n_neighbors = kng.indptr[1]
            if self.k > n_neighbors:
                raise ValueError(f"X does not contain enough neighbors per object "
                                 f"(has {n_neighbors} < {self.k}).")
            k = self.k
            dataset = DataSet.from_arrays(np.empty((kng.shape[0], 0)), y)
            nsf = NeighborSetFinder.from_kneighbors_graph(dataset, kng)
        else:
            X: np.ndarray = check_array(X, accept_sparse=False)  # noqa
            if self.metric == "precomputed":
                dataset = DataSet.from_arrays(np.empty((X.shape[0], 0)), y)
                nsf = NeighborSetFinder(dataset, dist_matrix=from_square(X), verbose=self.verbose)
            else:
                dataset = DataSet.from_arrays(X, y)
                self.metric_ = CombinedMetric.from_name(self.metric, p=self.p)
                nsf = NeighborSetFinder(dataset, metric=self.metric_, n_jobs=self.n_jobs, verbose=self.verbose)
            k = self._reduce_k(X.shape[0])

        if nsf.k_max < k:
            nsf.calculate_neighbor_sets(k)
        else:
            nsf.recalculate_stats_for_smaller_k(k)

        self.k_ = k
        self.dataset_ = dataset
        self.nsf_ = nsf
        self.n_samples_in_ = len(dataset)
        return self

    def _query_k_neighbors(self, X) -> np.ndarray:
        """ Indices of the k nearest indexed objects for each query object. """
        k = self.k_
        if issparse(X):
            kng = check_kneighbors_graph(X, check_sparse=False)
            n_neighbors = kng.indptr[1]
            if k > n_neighbors:
                raise ValueError(f"X does not contain enough neighbors per object "
                                 f"(has {n_neighbors} < {k}).")
            return kng.indices.reshape(-1, n_neighbors)[:, :k]

        if isinstance(X, DataSet):
            queries = X.data
        else:
            X: np.ndarray = check_array(X, accept_sparse=False)  # noqa
            if self.metric == "precomputed":
                dist = X
                return np.argsort(dist, axis=1, kind="stable")[:, :k]
            queries = DataSet.from_arrays(X).data
        if self.metric_ is None:
            raise ValueError("Query vectors require an estimator fitted on vector data.")
        dist = calculate_query_distances(queries, self.dataset_, self.metric_, n_jobs=self.n_jobs)
        return np.argsort(dist, axis=1, kind="stable")[:, :k]

    def score(self, X=None, y=None) -> Union[float, dict]:
        """ Estimate hubness in a k-neighbors graph.

        Hubness is estimated from the nearest indexed neighbors of the query
        objects in `X`. If `X` is None, compute hubness within the indexed objects.

        Parameters
        ----------
        X : DataSet, array-like, or csr_matrix, optional
            Query objects, or k-neighbors graph of query vs. indexed objects
            (sorted, each row holding at least `k` neighbors).
            With ``metric="precomputed"``, a dense X holds the distances of
            query vs. indexed objects.
        y : ignored

        Returns
        -------
        hubness_measure: float or dict
            Return the hubness measure as indicated by `return_value`.
            if return_value is "all", a dict of all hubness measures is returned.
        """
        check_is_fitted(self, "nsf_")
        n_samples_indexed = self.n_samples_in_
        if X is None:
            k_neighbors = self.nsf_.get_kneighbors(self.k_)
        else:
            k_neighbors = self._query_k_neighbors(X)
        n_samples_query = k_neighbors.shape[0]
        k_occurrence = np.bincount(
            k_neighbors.astype(int).ravel(),
            minlength=n_samples_indexed,
        )

        hubness_measures = {}
        calc_all = self.return_value.startswith("all")
        if calc_all or self.return_value == "k_skewness":
            hubness_measures["k_skewness"] = k_skewness(k_occurrence)

        if calc_all or self.return_value == "k_skewness_truncnorm":
            hubness_measures["k_skewness_truncnorm"] = skewness_truncnorm(k_occurrence)

        # don't calc gini in case of "all_but_gini"
        if self.return_value in ["gini", "all"]:
            limiting = "space" if k_occurrence.shape[0] > 10_000 else "time"
            hubness_measures["gini"] = gini_index(k_occurrence, limiting, verbose=self.verbose)

        if calc_all or self.return_value == "robinhood":
            hubness_measures["robinhood"] = robinhood_index(k_occurrence)

        if calc_all or self.return_value == "atkinson":
            hubness_measures["atkinson"] = atkinson_index(k_occurrence)

        if self.return_k_occurrence:
            hubness_measures["k_occurrence"] = k_occurrence

        return_antihub_occurrence = calc_all or self.return_value == "antihub_occurrence"
        if return_antihub_occurrence or self.return_antihubs:
            antihubs, antihub_occ = antihub_occurrence(k_occurrence)
            if self.return_antihubs:
                hubness_measures["antihubs"] = antihubs
            if return_antihub_occurrence:
                hubness_measures["antihub_occurrence"] = antihub_occ

        return_hub_occurrence = calc_all or self.return_value == "hub_occurrence"
        if return_hub_occurrence or self.return_hubs:
            hubs, hub_occ = hub_occurrence(
                k=self.k_,
                k_occurrence=k_occurrence,
                n_test=n_samples_query,
                hub_size=self.hub_size,
            )
            if self.return_hubs:
                hubness_measures["hubs"] = hubs
            if return_hub_occurrence:
                hubness_measures["hub_occurrence"] = hub_occ

        if calc_all or self.return_value == "groupie_ratio":
            hubness_measures["groupie_ratio"] = groupie_ratio(self.k_, k_occurrence, n_samples_indexed)

        # If there is only one measure, return the value only
        if len(hubness_measures) == 1:
            hubness_measures = hubness_measures.get(self.return_value, None)
            if hubness_measures is None:
                raise ValueError(f"Internal error: could not retrieve {self.return_value}")
        # Otherwise, return a dict of all values
        return hubness_measures

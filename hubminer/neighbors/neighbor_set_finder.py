# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
This file is part of hub-miner.

k-nearest neighbor sets and neighbor occurrence frequencies (hubness scores).
"""
from __future__ import annotations
import logging
from typing import List
import warnings

import numpy as np
from scipy.sparse import csr_matrix
from tqdm.auto import tqdm
import numba

from ..data.dataset import DataSet
from ..distances.matrix import calculate_dist_matrix, condensed_distances, row_distances
from ..exceptions import ConfigurationError
from ..utils.check import check_distance_matrix, check_kneighbors_graph, check_neighborhood_size
from ..utils.io import validate_verbose
from ..utils.multiprocessing import validate_n_jobs

__all__ = [
    "NeighborSetFinder",
]


@numba.jit
def _k_smallest(row: np.ndarray, self_index: int, k: int, banned: np.ndarray):
    """ Bounded insertion sort of the k smallest entries of `row`.

    Entries at `self_index` and at banned positions are skipped.
    Ties keep the earlier index first, that is, the result is sorted
    by ascending (distance, index).
    """
    indices = np.empty(k, dtype=np.int64)
    distances = np.empty(k, dtype=np.float64)
    length = 0
    for j in range(row.size):
        if j == self_index or banned[j]:
            continue
        d = row[j]
        if length == k:
            if d >= distances[k - 1]:
                continue
            pos = k - 1
        else:
            pos = length
            length += 1
        while pos > 0 and d < distances[pos - 1]:
            distances[pos] = distances[pos - 1]
            indices[pos] = indices[pos - 1]
            pos -= 1
        distances[pos] = d
        indices[pos] = j
    return indices[:length], distances[:length]


def _entropy(counts: np.ndarray, denominator: float) -> float:
    counts = counts[counts > 0]
    if counts.size == 0 or denominator <= 0:
        return 0.
    p = counts / denominator
    return float(-np.sum(p * np.log2(p)))


class NeighborSetFinder:
    """ Find the k nearest neighbors of all instances, and count their occurrences.

    The finder keeps, for each instance, its neighbors sorted by ascending
    distance (ties by ascending index), and the number of times each
    instance occurs in the neighbor sets of the others (k-occurrence).
    Occurrences are split into good occurrences (query and neighbor share
    their label) and bad occurrences (labels differ).

    Parameters
    ----------
    dataset : DataSet
        The instances, read-only
    dist_matrix : list of ndarray, optional
        Precomputed upper-triangular distance matrix, see
        :mod:`hubminer.distances.matrix`. It is referenced, not copied,
        and must not be altered while in use.
    metric : callable, optional
        Distance between two instances. Used to compute the distance matrix,
        if `dist_matrix` is not provided.
    n_jobs : int, default = 1
        Number of threads for the distance matrix computation
    verbose : int, default = 0
        Show progress bars, if verbose > 0

    Attributes
    ----------
    current_k : int
        Neighborhood size of the current occurrence frequencies
    k_max : int
        Length of the stored neighbor lists

    Examples
    --------
    >>> from hubminer.data import DataSet
    >>> from hubminer.distances import CombinedMetric
    >>> ds = DataSet.from_arrays([[0.], [1.], [2.], [10.]])
    >>> nsf = NeighborSetFinder(ds, metric=CombinedMetric.FLOAT_EUCLIDEAN)
    >>> nsf.calculate_neighbor_sets(k=2).kneighbors[3]
    array([2, 1])

    References
    ----------
    .. [1] `Radovanović, M.; Nanopoulos, A. & Ivanović, M.
            Hubs in space: Popular nearest neighbors in high-dimensional data.
            Journal of Machine Learning Research, 2010, 11, 2487-2531`
    .. [2] `Tomašev, N. & Buza, K.
            Hubness-aware kNN classification of high-dimensional data
            in presence of label noise. Neurocomputing, 2015, 160, 157-172`
    """

    def __init__(
            self,
            dataset: DataSet,
            dist_matrix: List[np.ndarray] = None,
            metric=None,
            n_jobs: int = 1,
            verbose: int = 0,
    ):
        if dataset is None:
            raise ConfigurationError("NeighborSetFinder requires a data set.")
        self.dataset = dataset
        self.metric = metric
        if dist_matrix is not None:
            check_distance_matrix(dist_matrix, len(dataset))
        self.dist_matrix = dist_matrix
        self.n_jobs = validate_n_jobs(n_jobs)
        self.verbose = validate_verbose(verbose)

        self._kneighbors: np.ndarray = None
        self._kdistances: np.ndarray = None
        self._tabu = set()
        self.current_k = 0
        self.neighbor_frequencies: np.ndarray = None
        self.good_frequencies: np.ndarray = None
        self.bad_frequencies: np.ndarray = None

    @classmethod
    def from_kneighbors(cls, dataset: DataSet, kneighbors, kdistances, dist_matrix=None, metric=None):
        """ Wrap externally computed neighbor sets.

        Parameters
        ----------
        dataset : DataSet
        kneighbors : array-like of shape (n_samples, k)
            Neighbor indices per instance, nearest first, without self hits
        kdistances : array-like of shape (n_samples, k)
            Corresponding distances
        dist_matrix, metric : optional
            Required only for operations that search beyond the given neighbors
        """
        kneighbors = np.array(kneighbors, dtype=np.int64, ndmin=2)
        kdistances = np.array(kdistances, dtype=np.float64, ndmin=2)
        n = len(dataset)
        if kneighbors.shape != kdistances.shape:
            raise ConfigurationError(f"Shape of kneighbors {kneighbors.shape} must match "
                                     f"shape of kdistances {kdistances.shape}.")
        if kneighbors.shape[0] != n:
            raise ConfigurationError(f"Neighbor sets for {kneighbors.shape[0]} instances "
                                     f"do not match the data set of {n} instances.")
        if kneighbors.size and (kneighbors.min() < 0 or kneighbors.max() >= n):
            raise ConfigurationError("Neighbor indices must lie in [0, n_samples).")
        if np.any(kneighbors == np.arange(n).reshape(-1, 1)):
            raise ConfigurationError("Neighbor sets must not contain the query instance itself.")
        if np.any(np.diff(kdistances, axis=1) < 0):
            raise ConfigurationError("Neighbor sets must be sorted by ascending distance.")

        nsf = cls(dataset, dist_matrix=dist_matrix, metric=metric)
        nsf._kneighbors = kneighbors
        nsf._kdistances = kdistances
        nsf._count_occurrences(kneighbors.shape[1])
        return nsf

    @classmethod
    def from_kneighbors_graph(cls, dataset: DataSet, kng: csr_matrix):
        """ Wrap a sorted sparse k-neighbors graph without self hits,
        as obtained from :meth:`sklearn.neighbors.NearestNeighbors.kneighbors_graph`.
        """
        kng = check_kneighbors_graph(kng)
        n_query, _ = kng.shape
        n_neighbors = kng.indptr[1]
        return cls.from_kneighbors(
            dataset,
            kneighbors=kng.indices.reshape(n_query, n_neighbors),
            kdistances=kng.data.reshape(n_query, n_neighbors),
        )

    def copy(self) -> NeighborSetFinder:
        """ Copy neighbor sets and frequencies. Data set and distance matrix are shared. """
        nsf = NeighborSetFinder(self.dataset, self.dist_matrix, self.metric,
                                n_jobs=self.n_jobs, verbose=self.verbose)
        if self._kneighbors is not None:
            nsf._kneighbors = self._kneighbors.copy()
            nsf._kdistances = self._kdistances.copy()
            nsf._tabu = set(self._tabu)
            nsf._count_occurrences(self.current_k)
        return nsf

    def distances_calculated(self) -> bool:
        return self.dist_matrix is not None

    def calculate_distances(self) -> List[np.ndarray]:
        """ Compute the distance matrix with the metric passed on construction. """
        if self.metric is None:
            raise ConfigurationError("Cannot calculate distances without a metric.")
        logging.info(f"Calculating distance matrix for {len(self.dataset)} instances "
                     f"with {self.n_jobs} thread(s).")
        self.dist_matrix = calculate_dist_matrix(
            self.dataset, self.metric, n_jobs=self.n_jobs, verbose=self.verbose)
        return self.dist_matrix

    def _ensure_distances(self):
        if self.dist_matrix is None:
            if self.metric is None:
                raise ConfigurationError("No distance matrix available. Provide a matrix or a metric.")
            self.calculate_distances()
        return check_distance_matrix(self.dist_matrix, len(self.dataset))

    def _effective_k(self, k: int) -> int:
        k = check_neighborhood_size(k)
        n_candidates = max(0, len(self.dataset) - 1 - len(self._tabu))
        if k > n_candidates:
            warnings.warn(f"Neighborhood size k={k} exceeds the {n_candidates} available "
                          f"neighbors. Using k={n_candidates} instead.")
            k = n_candidates
        return k

    def _check_calculated(self):
        if self._kneighbors is None:
            raise ConfigurationError("Neighbor sets have not been calculated yet. "
                                     "Call calculate_neighbor_sets() first.")

    def calculate_neighbor_sets(self, k: int) -> NeighborSetFinder:
        """ Find the k nearest neighbors of each instance and count occurrences.

        Parameters
        ----------
        k : int
            Neighborhood size. Values larger than n - 1 are reduced to n - 1.

        Returns
        -------
        self

        Raises
        ------
        ConfigurationError
            If k is invalid, or no valid distance matrix is available.
        """
        self._tabu = set()
        k = check_neighborhood_size(k)
        dist_matrix = self._ensure_distances()
        k = self._effective_k(k)
        n = len(self.dataset)

        kneighbors = np.empty((n, k), dtype=np.int64)
        kdistances = np.empty((n, k), dtype=np.float64)
        if k > 0:
            condensed = condensed_distances(dist_matrix)
            banned = np.zeros(n, dtype=np.bool_)
            for i in tqdm(range(n), desc=f"{k}-NN sets", disable=self.verbose < 1):
                kneighbors[i], kdistances[i] = _k_smallest(row_distances(condensed, n, i), i, k, banned)

        self._kneighbors = kneighbors
        self._kdistances = kdistances
        self._count_occurrences(k)
        return self

    def extend_neighbor_sets(self, k: int) -> NeighborSetFinder:
        """ Grow the stored neighbor lists to size k, keeping the existing prefixes.

        Only neighbors beyond the current list are searched. If the neighbor
        sets are already at least of size k, only the occurrence frequencies
        are recalculated for k.
        """
        k = check_neighborhood_size(k)
        if self._kneighbors is None:
            return self.calculate_neighbor_sets(k)
        k = self._effective_k(k)
        k_old = self.k_max
        if k <= k_old:
            return self.recalculate_stats_for_smaller_k(k)

        dist_matrix = self._ensure_distances()
        n = len(self.dataset)
        condensed = condensed_distances(dist_matrix)
        tabu = np.zeros(n, dtype=np.bool_)
        tabu[list(self._tabu)] = True
        kneighbors = np.empty((n, k), dtype=np.int64)
        kdistances = np.empty((n, k), dtype=np.float64)
        kneighbors[:, :k_old] = self._kneighbors
        kdistances[:, :k_old] = self._kdistances
        for i in tqdm(range(n), desc=f"Extend to {k}-NN", disable=self.verbose < 1):
            banned = tabu.copy()
            banned[self._kneighbors[i]] = True
            kneighbors[i, k_old:], kdistances[i, k_old:] = _k_smallest(
                row_distances(condensed, n, i), i, k - k_old, banned)

        self._kneighbors = kneighbors
        self._kdistances = kdistances
        self._count_occurrences(k)
        return self

    def recalculate_stats_for_smaller_k(self, k: int) -> NeighborSetFinder:
        """ Recount occurrence frequencies for a neighborhood size up to `k_max`.

        Larger values of k are reduced to `k_max`.
        """
        k = check_neighborhood_size(k)
        self._check_calculated()
        self._count_occurrences(min(k, self.k_max))
        return self

    def _occurrences(self, k: int):
        n = len(self.dataset)
        kneighbors = self._kneighbors[:, :k]
        labels = self.dataset.labels
        total = np.bincount(kneighbors.ravel(), minlength=n).astype(np.int64)
        same_label = labels[kneighbors] == labels.reshape(-1, 1)
        good = np.bincount(kneighbors[same_label], minlength=n).astype(np.int64)
        return total, good, total - good

    def _count_occurrences(self, k: int):
        total, good, bad = self._occurrences(k)
        self.current_k = k
        self.neighbor_frequencies = total
        self.good_frequencies = good
        self.bad_frequencies = bad

    def get_occurrence_frequencies(self, k: int = None):
        """ Total, good, and bad occurrence frequencies for neighborhood size k.

        Unlike :meth:`recalculate_stats_for_smaller_k`, this does not change
        the current state, so it is safe on finders shared between consumers.

        Returns
        -------
        total, good, bad : ndarray of shape (n_samples, )
        """
        self._check_calculated()
        k = self.current_k if k is None else min(check_neighborhood_size(k), self.k_max)
        return self._occurrences(k)

    def tabu_neighbor(self, index: int) -> NeighborSetFinder:
        """ Remove an instance from all neighbor sets.

        Each affected neighbor set is completed with the next nearest
        instance that is not tabu. Occurrence frequencies are recounted
        for the current k.
        """
        self._check_calculated()
        n = len(self.dataset)
        if not 0 <= index < n:
            raise ConfigurationError(f"Index {index} is out of range for {n} instances.")
        if index in self._tabu:
            return self
        if n - 2 - len(self._tabu) < self.k_max:
            raise ConfigurationError(f"Cannot tabu instance {index}: too few instances remain "
                                     f"to fill neighbor sets of size {self.k_max}.")
        condensed = condensed_distances(self._ensure_distances())
        self._tabu.add(index)
        tabu = np.zeros(n, dtype=np.bool_)
        tabu[list(self._tabu)] = True

        for i in np.flatnonzero(np.any(self._kneighbors == index, axis=1)):
            keep = self._kneighbors[i] != index
            neighbors = self._kneighbors[i][keep]
            distances = self._kdistances[i][keep]
            banned = tabu.copy()
            banned[neighbors] = True
            ind, dist = _k_smallest(row_distances(condensed, n, i), i, 1, banned)
            self._kneighbors[i] = np.append(neighbors, ind)
            self._kdistances[i] = np.append(distances, dist)

        self._count_occurrences(self.current_k)
        return self

    @property
    def tabu(self) -> frozenset:
        return frozenset(self._tabu)

    @property
    def k_max(self) -> int:
        return 0 if self._kneighbors is None else self._kneighbors.shape[1]

    def is_calculated_up_to_k(self, k: int) -> bool:
        if self._kneighbors is None:
            return False
        return min(k, len(self.dataset) - 1 - len(self._tabu)) <= self.k_max

    @staticmethod
    def _read_only(arr: np.ndarray) -> np.ndarray:
        view = arr.view()
        view.flags.writeable = False
        return view

    def get_kneighbors(self, k: int = None) -> np.ndarray:
        """ Read-only view of the k nearest neighbors of each instance (default: current k). """
        self._check_calculated()
        k = self.current_k if k is None else min(check_neighborhood_size(k), self.k_max)
        return self._read_only(self._kneighbors[:, :k])

    def get_kdistances(self, k: int = None) -> np.ndarray:
        """ Read-only view of the distances to the k nearest neighbors (default: current k). """
        self._check_calculated()
        k = self.current_k if k is None else min(check_neighborhood_size(k), self.k_max)
        return self._read_only(self._kdistances[:, :k])

    @property
    def kneighbors(self) -> np.ndarray:
        return self.get_kneighbors()

    @property
    def kdistances(self) -> np.ndarray:
        return self.get_kdistances()

    @property
    def reverse_neighbors(self) -> List[np.ndarray]:
        """ For each instance, the (ascending) indices of instances that have it as a neighbor. """
        self._check_calculated()
        n = len(self.dataset)
        if n == 0:
            return []
        k = self.current_k
        targets = self._kneighbors[:, :k].ravel()
        order = np.argsort(targets, kind="stable")
        queries = np.repeat(np.arange(n), k)[order]
        return np.split(queries, np.cumsum(self.neighbor_frequencies)[:-1])

    def get_neighbor_occ_frequencies(self, k: int) -> np.ndarray:
        """ Occurrence frequencies for neighborhood size k, without changing the current state. """
        self._check_calculated()
        k = min(check_neighborhood_size(k), self.k_max)
        return np.bincount(self._kneighbors[:, :k].ravel(), minlength=len(self.dataset))

    def get_occ_freqs_for_all_k(self) -> np.ndarray:
        """ Occurrence frequencies for all k in [1, k_max], of shape (k_max, n_samples). """
        self._check_calculated()
        n = len(self.dataset)
        occurrences = np.zeros((self.k_max, n), dtype=np.int64)
        running = np.zeros(n, dtype=np.int64)
        for k_index in range(self.k_max):
            running += np.bincount(self._kneighbors[:, k_index], minlength=n)
            occurrences[k_index] = running
        return occurrences

    def get_avg_dist_to_neighbors(self, k: int) -> np.ndarray:
        """ Mean distance of each instance to its k nearest neighbors. """
        self._check_calculated()
        k = check_neighborhood_size(k)
        if k < 1:
            raise ConfigurationError("Average neighbor distances require k >= 1.")
        k = min(k, self.k_max)
        return self._kdistances[:, :k].mean(axis=1)

    def get_label_mismatch_percs_all_k(self, k_max: int = None) -> np.ndarray:
        """ Fraction of label mismatches among all neighbor pairs, for each k in [1, k_max]. """
        self._check_calculated()
        k_max = self.k_max if k_max is None else min(check_neighborhood_size(k_max), self.k_max)
        n = len(self.dataset)
        labels = self.dataset.labels
        mismatches = labels[self._kneighbors[:, :k_max]] != labels.reshape(-1, 1)
        cumulative = np.cumsum(mismatches.sum(axis=0))
        return cumulative / (n * np.arange(1, k_max + 1))

    def get_k_entropies(self, k: int = None) -> np.ndarray:
        """ Label entropy within the k-neighborhood of each instance. Noise labels are not counted. """
        self._check_calculated()
        k = self.current_k if k is None else min(check_neighborhood_size(k), self.k_max)
        n_categories = self.dataset.count_categories()
        labels = self.dataset.labels
        entropies = np.zeros(len(self.dataset), dtype=np.float64)
        for i, neighbors in enumerate(self._kneighbors[:, :k]):
            neighbor_labels = labels[neighbors]
            counts = np.bincount(neighbor_labels[neighbor_labels >= 0], minlength=n_categories)
            entropies[i] = _entropy(counts, k)
        return entropies

    def get_reverse_neighbor_entropies(self) -> np.ndarray:
        """ Label entropy of the reverse neighbors of each instance.

        Instances with at most one reverse neighbor have zero entropy.
        """
        self._check_calculated()
        n_categories = self.dataset.count_categories()
        labels = self.dataset.labels
        entropies = np.zeros(len(self.dataset), dtype=np.float64)
        for i, reverse in enumerate(self.reverse_neighbors):
            if reverse.size <= 1:
                continue
            reverse_labels = labels[reverse]
            counts = np.bincount(reverse_labels[reverse_labels >= 0], minlength=n_categories)
            entropies[i] = _entropy(counts, reverse.size)
        return entropies

    def kneighbors_graph(self, k: int = None, mode: str = "distance") -> csr_matrix:
        """ Sparse k-neighbors graph in the layout of :func:`sklearn.neighbors.kneighbors_graph`.

        Parameters
        ----------
        k : int, optional
            Neighborhood size (default: current k)
        mode : "distance" or "connectivity"
            Store distances, or ones.
        """
        kneighbors = self.get_kneighbors(k)
        n, k = kneighbors.shape
        if mode == "distance":
            data = self.get_kdistances(k).ravel().copy()
        elif mode == "connectivity":
            data = np.ones(n * k, dtype=np.float64)
        else:
            raise ConfigurationError(f'Unsupported mode, must be one of "connectivity" '
                                     f'or "distance" but got "{mode}" instead')
        indptr = np.arange(0, n * k + 1, k) if k > 0 else np.zeros(n + 1, dtype=np.int64)
        return csr_matrix((data, kneighbors.ravel().copy(), indptr), shape=(n, n))

    def __repr__(self):
        return (f"NeighborSetFinder(n_instances={len(self.dataset)}, "
                f"k_max={self.k_max}, current_k={self.current_k})")

# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
This file is part of hub-miner.

Summary statistics over neighbor occurrence frequencies.

All functions and :class:`HubnessStatistics` only read the occurrence
arrays. They never change the state of a :class:`NeighborSetFinder`.
"""
from __future__ import annotations
from typing import Tuple

import numpy as np
from scipy import stats
from tqdm.auto import tqdm

from ..exceptions import ConfigurationError
from ..neighbors.neighbor_set_finder import NeighborSetFinder

__all__ = [
    "HUB_THRESHOLD_STDS",
    "HubnessStatistics",
    "antihub_occurrence",
    "atkinson_index",
    "gini_index",
    "groupie_ratio",
    "hub_occurrence",
    "hubness_extremes_for_k_values",
    "k_skewness",
    "occurrence_mean_std",
    "robinhood_index",
    "skewness_truncnorm",
]

#: Hubs occur at least this many standard deviations above the mean occurrence
HUB_THRESHOLD_STDS = 2.


def occurrence_mean_std(occurrences: np.ndarray) -> Tuple[float, float]:
    """ Mean and population standard deviation. Both are zero for empty input. """
    occurrences = np.asarray(occurrences, dtype=np.float64)
    if occurrences.size == 0:
        return 0., 0.
    mean = occurrences.mean()
    std = np.sqrt(np.mean((occurrences - mean) ** 2))
    return float(mean), float(std)


def k_skewness(k_occurrence: np.ndarray) -> float:
    """ Hubness measure; skewness of the k-occurrence distribution.

    Defined as zero for empty or constant k-occurrence.
    """
    k_occurrence = np.asarray(k_occurrence, dtype=np.float64)
    if k_occurrence.size == 0 or np.all(k_occurrence == k_occurrence[0]):
        return 0.
    return float(stats.skew(k_occurrence))


def skewness_truncnorm(k_occurrence: np.ndarray) -> float:
    """ Hubness measure; corrected for non-negativity of k-occurrence.

    Hubness as skewness of truncated normal distribution estimated from k-occurrence histogram.

    Parameters
    ----------
    k_occurrence : np.ndarray
        Reverse nearest neighbor count for each object.
    """
    if k_occurrence.size < 2:
        return 0.
    clip_left = 0
    clip_right = np.iinfo(np.int64).max
    k_occurrence_mean = k_occurrence.mean()
    k_occurrence_std = k_occurrence.std(ddof=1)
    if k_occurrence_std == 0:
        return 0.
    a = (clip_left - k_occurrence_mean) / k_occurrence_std
    b = (clip_right - k_occurrence_mean) / k_occurrence_std
    skew_truncnorm = stats.truncnorm(a, b).moment(3)
    return float(skew_truncnorm)


def gini_index(k_occurrence: np.ndarray, limiting="memory", verbose: int = 0) -> float:
    """ Hubness measure; Gini index

    Parameters
    ----------
    k_occurrence : np.ndarray
        Reverse nearest neighbor count for each object.
    limiting : "memory" or "cpu"
        If "cpu", use fast implementation with high memory usage,
        if "memory", use slightly slower, but memory-efficient implementation.
    verbose : int
        Show progress bar in memory-efficient mode, if verbose > 0
    """
    n = k_occurrence.size
    denominator = 2 * n * np.sum(k_occurrence)
    if denominator == 0:
        return 0.
    if limiting in ["memory", "space"]:
        numerator = np.int64(0)
        for i in tqdm(range(n), disable=verbose < 1, desc="Gini"):
            numerator += np.sum(np.abs(k_occurrence[:] - k_occurrence[i]))
    elif limiting in ["time", "cpu"]:
        numerator = np.sum(np.abs(k_occurrence.reshape(1, -1) - k_occurrence.reshape(-1, 1)))
    else:
        raise ConfigurationError(f"Unknown limiting resource '{limiting}'. Try 'memory' or 'cpu'.")
    return float(numerator / denominator)


def robinhood_index(k_occurrence: np.ndarray) -> float:
    """ Hubness measure; Robin hood/Hoover/Schutz index.

    What share of k-occurrence must be redistributed, so that all objects
    are equally often nearest neighbors to others?

    References
    ----------
    .. [1] `Feldbauer, R.; Leodolter, M.; Plant, C. & Flexer, A.
            Fast approximate hubness reduction for large high-dimensional data.
            IEEE International Conference of Big Knowledge (2018).`
    """
    denominator = float(np.sum(k_occurrence))
    if denominator == 0:
        return 0.
    numerator = .5 * float(np.sum(np.abs(k_occurrence - k_occurrence.mean())))
    return numerator / denominator


def atkinson_index(k_occurrence: np.ndarray, eps: float = .5) -> float:
    """ Hubness measure; Atkinson index.

    Parameters
    ----------
    k_occurrence : np.ndarray
        Reverse nearest neighbor count for each object.
    eps: float, default = 0.5
        "Income" weight. Turns the index into a normative measure.
    """
    if k_occurrence.size == 0 or k_occurrence.mean() == 0:
        return 0.
    if eps == 1:
        term = np.prod(k_occurrence) ** (1. / k_occurrence.size)
    else:
        term = np.mean(k_occurrence ** (1 - eps)) ** (1 / (1 - eps))
    return float(1. - 1. / k_occurrence.mean() * term)


def antihub_occurrence(k_occurrence: np.ndarray) -> Tuple[np.ndarray, float]:
    """ Proportion of antihubs in data set.

    Antihubs are objects that are never among the nearest neighbors
    of other objects.
    """
    antihubs = np.argwhere(k_occurrence == 0).ravel()
    if k_occurrence.size == 0:
        return antihubs, 0.
    return antihubs, antihubs.size / k_occurrence.size


def hub_occurrence(k: int, k_occurrence: np.ndarray, n_test: int, hub_size: float = 2):
    """ Proportion of nearest neighbor slots occupied by hubs.

    Here, hubs are objects with k-occurrence >= hub_size * k.

    Parameters
    ----------
    k : int
        Number of nearest neighbors
    k_occurrence : np.ndarray
        Reverse nearest neighbor count for each object.
    n_test : int
        Number of queries (or objects in a test set)
    hub_size : float
        Factor to determine hubs
    """
    hubs = np.argwhere(k_occurrence >= hub_size * k).ravel()
    if k == 0 or n_test == 0:
        return hubs, 0.
    return hubs, k_occurrence[hubs].sum() / k / n_test


def groupie_ratio(k: int, k_occurrence: np.ndarray, n_indexed: int) -> float:
    """ Occurrence of the largest hub relative to the number of neighbor slots. """
    if k == 0 or n_indexed == 0 or k_occurrence.size == 0:
        return 0.
    return float(k_occurrence.max() / n_indexed / k)


def _standardize(values: np.ndarray, mean: float, std: float) -> np.ndarray:
    if std == 0:
        return np.zeros(values.shape, dtype=np.float64)
    return (values - mean) / std


class HubnessStatistics:
    """ Snapshot of hubness statistics for one neighborhood size.

    Parameters
    ----------
    nsf : NeighborSetFinder
        Finder with calculated neighbor sets. Read, never modified.
    k : int, optional
        Neighborhood size up to the finder's `k_max`. Defaults to its current k.

    Attributes
    ----------
    mean, std, skewness : float
        Of the total occurrence frequencies
    good_mean, good_std, bad_mean, bad_std : float
        Of the good and bad occurrence frequencies
    gmb_mean, gmb_std : float
        Of the good-minus-bad occurrence differential
    relative_gmb_mean, relative_gmb_std : float
        Of the good-minus-bad differential relative to total occurrence
        (instances that never occur count as 1)
    """

    def __init__(self, nsf: NeighborSetFinder, k: int = None):
        if k is None:
            k = nsf.current_k
        total, good, bad = nsf.get_occurrence_frequencies(k)
        self._set_frequencies(min(k, nsf.k_max), total, good, bad)

    @classmethod
    def from_frequencies(cls, neighbor_frequencies, good_frequencies=None, bad_frequencies=None, k: int = None):
        """ Statistics from plain occurrence arrays.

        Good (bad) occurrences default to total (zero) occurrences, if missing.
        """
        total = np.asarray(neighbor_frequencies, dtype=np.int64)
        good = total.copy() if good_frequencies is None else np.asarray(good_frequencies, dtype=np.int64)
        if good.shape != total.shape:
            raise ConfigurationError("Occurrence frequency arrays must have identical shapes.")
        bad = total - good if bad_frequencies is None else np.asarray(bad_frequencies, dtype=np.int64)
        if bad.shape != total.shape:
            raise ConfigurationError("Occurrence frequency arrays must have identical shapes.")
        statistics = cls.__new__(cls)
        statistics._set_frequencies(k, total, good, bad)
        return statistics

    def _set_frequencies(self, k, total, good, bad):
        self.k = k
        self.neighbor_frequencies = total
        self.good_frequencies = good
        self.bad_frequencies = bad

        self.mean, self.std = occurrence_mean_std(total)
        self.skewness = k_skewness(total)
        self.good_mean, self.good_std = occurrence_mean_std(good)
        self.bad_mean, self.bad_std = occurrence_mean_std(bad)
        self.gmb_mean, self.gmb_std = occurrence_mean_std(self.good_minus_bad())
        self.relative_gmb_mean, self.relative_gmb_std = occurrence_mean_std(self.relative_good_minus_bad())

    @property
    def n_samples(self) -> int:
        return self.neighbor_frequencies.size

    @property
    def hub_threshold(self) -> float:
        return self.mean + HUB_THRESHOLD_STDS * self.std

    def hubs(self) -> np.ndarray:
        """ Indices of instances with occurrence >= mean + 2 std, by descending occurrence.

        Without any variation in occurrence, there are no hubs.
        """
        if self.std == 0:
            return np.empty(0, dtype=np.int64)
        hubs = np.flatnonzero(self.neighbor_frequencies >= self.hub_threshold)
        order = np.argsort(-self.neighbor_frequencies[hubs], kind="stable")
        return hubs[order]

    def is_hub(self, index: int) -> bool:
        return bool(self.std > 0 and self.neighbor_frequencies[index] >= self.hub_threshold)

    def _check_n_elements(self, n_elements):
        if n_elements is None:
            return self.hubs().size
        if n_elements < 0:
            raise ConfigurationError(f"Number of elements must be non-negative, got {n_elements}.")
        return min(int(n_elements), self.n_samples)

    def antihubs(self, n_elements: int = None) -> np.ndarray:
        """ Indices of the `n_elements` least frequently occurring instances.

        Parameters
        ----------
        n_elements : int, optional
            Defaults to the number of hubs.
        """
        n_elements = self._check_n_elements(n_elements)
        return self.occurrence_ranking()[:n_elements]

    def is_antihub(self, index: int, n_elements: int = None) -> bool:
        return self.occurrence_rank(index) < self._check_n_elements(n_elements)

    def occurrence_ranking(self) -> np.ndarray:
        """ All indices by ascending occurrence (ties by ascending index). """
        return np.argsort(self.neighbor_frequencies, kind="stable")

    def occurrence_rank(self, index: int) -> int:
        """ Position of `index` in :meth:`occurrence_ranking`. """
        return int(np.flatnonzero(self.occurrence_ranking() == index)[0])

    def good_minus_bad(self) -> np.ndarray:
        return self.good_frequencies - self.bad_frequencies

    def relative_good_minus_bad(self) -> np.ndarray:
        """ Good-minus-bad occurrence relative to total occurrence (1 for never occurring instances). """
        relative = np.ones(self.n_samples, dtype=np.float64)
        occurring = self.neighbor_frequencies > 0
        relative[occurring] = self.good_minus_bad()[occurring] / self.neighbor_frequencies[occurring]
        return relative

    def bad_hubs(self, n_elements: int = None) -> np.ndarray:
        """ Indices with the most negative good-minus-bad differential first. """
        n_elements = self.n_samples if n_elements is None else self._check_n_elements(n_elements)
        return np.argsort(self.good_minus_bad(), kind="stable")[:n_elements]

    def good_hubs(self, n_elements: int = None) -> np.ndarray:
        """ Indices with the most positive good-minus-bad differential first. """
        n_elements = self.n_samples if n_elements is None else self._check_n_elements(n_elements)
        return np.argsort(-self.good_minus_bad(), kind="stable")[:n_elements]

    def frequent_at_least(self, threshold: int) -> np.ndarray:
        return np.flatnonzero(self.neighbor_frequencies >= threshold)

    def perc_frequent_at_least(self, threshold: int) -> float:
        if self.n_samples == 0:
            return 0.
        return float(np.count_nonzero(self.neighbor_frequencies >= threshold) / self.n_samples)

    def perc_frequent_at_most(self, threshold: int) -> float:
        if self.n_samples == 0:
            return 0.
        return float(np.count_nonzero(self.neighbor_frequencies <= threshold) / self.n_samples)

    def standardized_bad_occurrence(self) -> np.ndarray:
        """ z-scores of the bad occurrence frequencies (zero without variation). """
        return _standardize(self.bad_frequencies, self.bad_mean, self.bad_std)

    def standardized_occurrence(self) -> np.ndarray:
        return _standardize(self.neighbor_frequencies, self.mean, self.std)

    def standardized_good_minus_bad(self) -> np.ndarray:
        return _standardize(self.good_minus_bad(), self.gmb_mean, self.gmb_std)

    def standardized_relative_good_minus_bad(self) -> np.ndarray:
        return _standardize(self.relative_good_minus_bad(), self.relative_gmb_mean, self.relative_gmb_std)

    def as_dict(self) -> dict:
        return {
            "k": self.k,
            "mean": self.mean,
            "std": self.std,
            "skewness": self.skewness,
            "good_mean": self.good_mean,
            "good_std": self.good_std,
            "bad_mean": self.bad_mean,
            "bad_std": self.bad_std,
            "gmb_mean": self.gmb_mean,
            "gmb_std": self.gmb_std,
            "hub_threshold": self.hub_threshold,
            "n_hubs": int(self.hubs().size),
        }

    def __repr__(self):
        return (f"HubnessStatistics(k={self.k}, mean={self.mean:.4f}, "
                f"std={self.std:.4f}, skewness={self.skewness:.4f})")


def hubness_extremes_for_k_values(
        nsf: NeighborSetFinder,
        n_elements: int,
        fetch_higher: bool = True,
) -> Tuple[np.ndarray, np.ndarray]:
    """ Most (or least) frequently occurring instances for each k in [1, k_max].

    Parameters
    ----------
    nsf : NeighborSetFinder
        Finder with calculated neighbor sets. Not modified.
    n_elements : int
        Number of extreme instances per k
    fetch_higher : bool, default = True
        Fetch the most frequent instances, otherwise the least frequent ones.

    Returns
    -------
    scores : ndarray of shape (k_max, n_elements)
        Occurrence frequencies of the extremes, in ascending order
    indices : ndarray of shape (k_max, n_elements)
        Indices of the extremes
    """
    occurrences = nsf.get_occ_freqs_for_all_k()
    n_samples = occurrences.shape[1]
    if not 0 <= n_elements <= n_samples:
        raise ConfigurationError(f"Cannot fetch {n_elements} extremes from {n_samples} instances.")
    order = np.argsort(occurrences, axis=1, kind="stable")
    if fetch_higher:
        order = order[:, n_samples - n_elements:]
    else:
        order = order[:, :n_elements]
    return np.take_along_axis(occurrences, order, axis=1), order

# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
Primary distance measures between attribute vectors.

All measures skip positions where either value is missing (non-finite),
and raise :class:`hubminer.exceptions.MetricError` for vectors that
cannot be compared.
"""
from abc import ABC, abstractmethod

import numpy as np

from ..exceptions import ConfigurationError, MetricError

__all__ = [
    "BrayCurtis",
    "Canberra",
    "Cosine",
    "DistanceMeasure",
    "Euclidean",
    "Hamming",
    "Manhattan",
    "Minkowski",
    "VALID_MEASURES",
    "get_distance_measure",
]


def assert_arrays(first, second):
    """ Raise MetricError if the two vectors cannot be compared position-wise. """
    if first is None or second is None:
        raise MetricError("Null feature array encountered.")
    if np.shape(first) != np.shape(second):
        raise MetricError(f"Array length mismatch: {np.shape(first)} and {np.shape(second)}.")


def _acceptable(first: np.ndarray, second: np.ndarray):
    """ Restrict both vectors to positions where both values are finite. """
    first = np.asarray(first, dtype=np.float64)
    second = np.asarray(second, dtype=np.float64)
    mask = np.isfinite(first) & np.isfinite(second)
    if mask.all():
        return first, second
    return first[mask], second[mask]


class DistanceMeasure(ABC):
    """ Base class for distances between two attribute vectors. """

    name = None

    @abstractmethod
    def dist(self, first: np.ndarray, second: np.ndarray) -> float:
        pass

    def __call__(self, first: np.ndarray, second: np.ndarray) -> float:
        return self.dist(first, second)

    def __repr__(self):
        return f"{self.__class__.__name__}()"


class Minkowski(DistanceMeasure):
    """ Minkowski distance of order `p`.

    Parameters
    ----------
    p : float, default = 2
        Order of the norm. Must be positive.
    """

    name = "minkowski"

    def __init__(self, p: float = 2):
        if p <= 0:
            raise ConfigurationError(f"Minkowski order p must be positive, but is {p}.")
        self.p = p

    def dist(self, first, second) -> float:
        assert_arrays(first, second)
        first, second = _acceptable(first, second)
        diff = np.abs(first - second)
        if self.p == 2:
            return float(np.sqrt(np.dot(diff, diff)))
        if self.p == 1:
            return float(diff.sum())
        return float(np.sum(diff ** self.p) ** (1. / self.p))

    def norm(self, vector) -> float:
        if vector is None:
            return 0.
        vector = np.asarray(vector, dtype=np.float64)
        vector = np.abs(vector[np.isfinite(vector)])
        return float(np.sum(vector ** self.p) ** (1. / self.p))

    def __repr__(self):
        return f"{self.__class__.__name__}(p={self.p})"


class Euclidean(Minkowski):
    name = "euclidean"

    def __init__(self):
        super().__init__(p=2)

    def __repr__(self):
        return "Euclidean()"


class Manhattan(Minkowski):
    name = "manhattan"

    def __init__(self):
        super().__init__(p=1)

    def __repr__(self):
        return "Manhattan()"


class Cosine(DistanceMeasure):
    """ Cosine dissimilarity, scaled to [0, 1].

    Two zero vectors are identical (distance 0), a zero vector and a
    non-zero vector are maximally dissimilar (distance 1).
    """

    name = "cosine"

    def dist(self, first, second) -> float:
        assert_arrays(first, second)
        first, second = _acceptable(first, second)
        norm_first = np.linalg.norm(first)
        norm_second = np.linalg.norm(second)
        if norm_first > 0 and norm_second > 0:
            similarity = np.dot(first, second) / (norm_first * norm_second)
        elif norm_first == 0 and norm_second == 0:
            similarity = 1.
        else:
            similarity = -1.
        return float((1. - similarity) * .5)


class Canberra(DistanceMeasure):
    name = "canberra"

    def dist(self, first, second) -> float:
        assert_arrays(first, second)
        first, second = _acceptable(first, second)
        denominator = np.abs(first) + np.abs(second)
        nonzero = denominator > 0
        return float(np.sum(np.abs(first - second)[nonzero] / denominator[nonzero]))


class BrayCurtis(DistanceMeasure):
    name = "bray_curtis"

    def dist(self, first, second) -> float:
        assert_arrays(first, second)
        first, second = _acceptable(first, second)
        denominator = np.sum(np.abs(first) + np.abs(second))
        if denominator == 0:
            return 0.
        return float(np.sum(np.abs(first - second)) / denominator)


class Hamming(DistanceMeasure):
    """ Fraction of mismatching positions, for nominal attributes. """

    name = "hamming"

    def dist(self, first, second) -> float:
        assert_arrays(first, second)
        first = np.asarray(first, dtype=object)
        second = np.asarray(second, dtype=object)
        if first.size == 0:
            return 0.
        return float(np.count_nonzero(first != second) / first.size)


#: Names accepted by :func:`get_distance_measure`
VALID_MEASURES = {
    "bray_curtis": BrayCurtis,
    "braycurtis": BrayCurtis,
    "canberra": Canberra,
    "cityblock": Manhattan,
    "cosine": Cosine,
    "euclidean": Euclidean,
    "hamming": Hamming,
    "l1": Manhattan,
    "l2": Euclidean,
    "manhattan": Manhattan,
    "minkowski": Minkowski,
}


def get_distance_measure(metric, p: float = 2) -> DistanceMeasure:
    """ Resolve a measure name (or pass through a measure instance).

    Parameters
    ----------
    metric : str or DistanceMeasure
    p : float, default = 2
        Order of the Minkowski distance; only used for ``metric="minkowski"``.
    """
    if isinstance(metric, DistanceMeasure):
        return metric
    try:
        Measure = VALID_MEASURES[str(metric).lower()]
    except KeyError:
        raise ConfigurationError(f"Unknown distance measure '{metric}'. "
                                 f"Try one of {sorted(VALID_MEASURES)}.") from None
    if Measure is Minkowski:
        return Minkowski(p=p)
    return Measure()

# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
Distances between whole instances, combined from per-attribute-type measures.
"""
from __future__ import annotations

import numpy as np

from .primary import DistanceMeasure, get_distance_measure
from ..data.dataset import DataInstance
from ..exceptions import ConfigurationError, MetricError

__all__ = [
    "CombinedMetric",
    "VALID_MIXERS",
]

#: Ways to combine the integer, float and nominal sub-distances
VALID_MIXERS = [
    "sum",
    "average",
    "max",
    "min",
    "product",
    "euclidean",
]


def assert_instances(first: DataInstance, second: DataInstance):
    """ Raise MetricError unless both instances come from compatible data sets. """
    if first is None or second is None:
        raise MetricError("Null instance passed to metric.")
    if first.dataset is not None and second.dataset is not None \
            and not first.dataset.equals_in_feature_definition(second.dataset):
        raise MetricError("Data set definitions mismatch.")


class CombinedMetric:
    """ Distance between instances with integer, float and nominal attributes.

    Each attribute type is handled by its own :class:`DistanceMeasure`
    (or skipped, if None). The partial distances are merged according to `mixer`.
    Non-finite partial distances are ignored.

    Parameters
    ----------
    int_metric, float_metric, nominal_metric : DistanceMeasure or str, optional
        Measures for the respective attribute type
    mixer : str, default = "sum"
        One of :data:`VALID_MIXERS`

    Examples
    --------
    >>> from hubminer.data import DataSet
    >>> ds = DataSet.from_arrays([[0.], [3.]])
    >>> CombinedMetric(float_metric="euclidean").dist(ds[0], ds[1])
    3.0
    """

    def __init__(
            self,
            int_metric: DistanceMeasure = None,
            float_metric: DistanceMeasure = None,
            nominal_metric: DistanceMeasure = None,
            mixer: str = "sum",
    ):
        self.int_metric = None if int_metric is None else get_distance_measure(int_metric)
        self.float_metric = None if float_metric is None else get_distance_measure(float_metric)
        self.nominal_metric = None if nominal_metric is None else get_distance_measure(nominal_metric)
        if mixer is None:
            mixer = "sum"
        mixer = mixer.lower()
        if mixer not in VALID_MIXERS:
            raise ConfigurationError(f"Unknown mixer '{mixer}'. Allowed: {VALID_MIXERS}.")
        self.mixer = mixer

    @classmethod
    def from_name(cls, metric: str, p: float = 2, mixer: str = "sum") -> CombinedMetric:
        """ Apply the named measure to integer and float attributes alike. """
        return cls(
            int_metric=get_distance_measure(metric, p=p),
            float_metric=get_distance_measure(metric, p=p),
            mixer=mixer,
        )

    def _partial_distances(self, first: DataInstance, second: DataInstance) -> np.ndarray:
        partial = []
        for metric, attr in [(self.int_metric, "int_attr"),
                             (self.float_metric, "float_attr"),
                             (self.nominal_metric, "nominal_attr")]:
            first_attr = getattr(first, attr)
            second_attr = getattr(second, attr)
            if metric is None or (first_attr.size == 0 and second_attr.size == 0):
                continue
            if first_attr.size != second_attr.size:
                raise MetricError(f"Instances differ in their number of {attr.split('_')[0]} "
                                  f"attributes: {first_attr.size} vs. {second_attr.size}.", first, second)
            partial.append(metric.dist(first_attr, second_attr))
        partial = np.asarray(partial, dtype=np.float64)
        return partial[np.isfinite(partial)]

    def dist(self, first: DataInstance, second: DataInstance) -> float:
        """ Distance between two instances.

        Raises
        ------
        MetricError
            If the instances are missing or have incompatible schemas.
        """
        assert_instances(first, second)
        partial = self._partial_distances(first, second)
        if partial.size == 0:
            return 0.

        if self.mixer == "sum":
            return float(partial.sum())
        elif self.mixer == "average":
            return float(partial.mean())
        elif self.mixer == "max":
            return float(partial.max())
        elif self.mixer == "min":
            return float(partial.min())
        elif self.mixer == "product":
            return float(np.prod(partial))
        elif self.mixer == "euclidean":
            return float(np.sqrt(np.dot(partial, partial)))
        raise ConfigurationError(f"Internal: invalid mixer {self.mixer}.")

    def __call__(self, first: DataInstance, second: DataInstance) -> float:
        return self.dist(first, second)

    def __repr__(self):
        return (f"CombinedMetric(int_metric={self.int_metric}, float_metric={self.float_metric}, "
                f"nominal_metric={self.nominal_metric}, mixer='{self.mixer}')")


CombinedMetric.EUCLIDEAN = CombinedMetric("euclidean", "euclidean")
CombinedMetric.MANHATTAN = CombinedMetric("manhattan", "manhattan")
CombinedMetric.FLOAT_EUCLIDEAN = CombinedMetric(float_metric="euclidean")
CombinedMetric.FLOAT_MANHATTAN = CombinedMetric(float_metric="manhattan")
CombinedMetric.FLOAT_COSINE = CombinedMetric(float_metric="cosine")
CombinedMetric.INT_EUCLIDEAN = CombinedMetric(int_metric="euclidean")

# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
In-memory representation of data sets with mixed attribute types.

Each :class:`DataInstance` holds integer, float and nominal attribute
values together with an integer category label (``-1`` marks noise or
unlabeled instances). All instances of a :class:`DataSet` share the
same attribute schema.
"""
from __future__ import annotations
from typing import Iterator, List, Optional, Sequence

import numpy as np

from ..exceptions import ConfigurationError

__all__ = [
    "DataInstance",
    "DataSet",
    "NOISE_LABEL",
]

#: Category used for noise or unlabeled instances
NOISE_LABEL = -1


class DataInstance:
    """ A single data point with integer, float and nominal attributes.

    Parameters
    ----------
    dataset : DataSet, optional
        Embedding data set. If given, missing attribute arrays are
        initialized to zeros (empty strings) according to its schema.
    int_attr, float_attr, nominal_attr : array-like, optional
        Attribute values. Non-finite float values are treated as missing.
    category : int, default = 0
        Class label, or ``-1`` for noise/unlabeled data.
    """

    def __init__(
            self,
            dataset: DataSet = None,
            int_attr=None,
            float_attr=None,
            nominal_attr=None,
            category: int = 0,
    ):
        self.dataset = dataset
        if dataset is not None:
            if int_attr is None:
                int_attr = np.zeros(dataset.n_int_attr, dtype=np.int64)
            if float_attr is None:
                float_attr = np.zeros(dataset.n_float_attr, dtype=np.float64)
            if nominal_attr is None:
                nominal_attr = np.full(dataset.n_nominal_attr, "", dtype=object)
        self.int_attr = np.asarray(int_attr if int_attr is not None else [], dtype=np.int64)
        self.float_attr = np.asarray(float_attr if float_attr is not None else [], dtype=np.float64)
        self.nominal_attr = np.asarray(nominal_attr if nominal_attr is not None else [], dtype=object)
        self.category = int(category)

    @property
    def n_int_attr(self) -> int:
        return self.int_attr.size

    @property
    def n_float_attr(self) -> int:
        return self.float_attr.size

    @property
    def n_nominal_attr(self) -> int:
        return self.nominal_attr.size

    def has_int_attr(self) -> bool:
        return self.n_int_attr > 0

    def has_float_attr(self) -> bool:
        return self.n_float_attr > 0

    def has_nominal_attr(self) -> bool:
        return self.n_nominal_attr > 0

    def is_noise(self) -> bool:
        return self.category == NOISE_LABEL

    def copy(self, dataset: DataSet = None) -> DataInstance:
        """ Deep copy of the attribute values, optionally re-embedded in another data set. """
        return DataInstance(
            dataset=self.dataset if dataset is None else dataset,
            int_attr=self.int_attr.copy(),
            float_attr=self.float_attr.copy(),
            nominal_attr=self.nominal_attr.copy(),
            category=self.category,
        )

    def __repr__(self):
        return (f"DataInstance(int_attr={self.int_attr.tolist()}, "
                f"float_attr={self.float_attr.tolist()}, "
                f"nominal_attr={self.nominal_attr.tolist()}, "
                f"category={self.category})")


class DataSet:
    """ Ordered collection of instances sharing one attribute schema.

    Parameters
    ----------
    int_attr_names, float_attr_names, nominal_attr_names : sequence of str, optional
        Attribute names per attribute type. They define the schema.
    name : str, optional
        Human-readable name of the data set
    """

    def __init__(
            self,
            int_attr_names: Sequence[str] = None,
            float_attr_names: Sequence[str] = None,
            nominal_attr_names: Sequence[str] = None,
            name: str = None,
    ):
        self.int_attr_names: List[str] = list(int_attr_names or [])
        self.float_attr_names: List[str] = list(float_attr_names or [])
        self.nominal_attr_names: List[str] = list(nominal_attr_names or [])
        self.name = name
        self.data: List[DataInstance] = []

    @classmethod
    def from_arrays(cls, X=None, y=None, X_int=None, X_nominal=None, name: str = None) -> DataSet:
        """ Build a data set from per-type attribute matrices.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_float_features), optional
            Float attributes
        y : array-like of shape (n_samples, ), optional
            Integer class labels. All instances get label 0, if None.
        X_int : array-like of shape (n_samples, n_int_features), optional
            Integer attributes
        X_nominal : array-like of shape (n_samples, n_nominal_features), optional
            Nominal attributes (strings)
        name : str, optional

        Returns
        -------
        dataset : DataSet
        """
        blocks = {}
        for key, arr, dtype in [("float", X, np.float64),
                                ("int", X_int, np.int64),
                                ("nominal", X_nominal, object)]:
            if arr is None:
                continue
            arr = np.asarray(arr, dtype=dtype)
            if arr.ndim == 1:
                arr = arr.reshape(-1, 1)
            if arr.ndim != 2:
                raise ConfigurationError(f"Expected a 2D array of {key} attributes, got {arr.ndim} dimensions.")
            blocks[key] = arr
        if not blocks:
            raise ConfigurationError("At least one attribute matrix must be provided.")
        n_samples = {arr.shape[0] for arr in blocks.values()}
        if len(n_samples) != 1:
            raise ConfigurationError(f"Attribute matrices differ in their number of samples: {sorted(n_samples)}.")
        n_samples = n_samples.pop()

        if y is None:
            y = np.zeros(n_samples, dtype=np.int64)
        else:
            y = np.asarray(y)
            if y.shape != (n_samples, ):
                raise ConfigurationError(f"Labels of shape {y.shape} do not match {n_samples} samples.")
            y = y.astype(np.int64)

        dataset = cls(
            int_attr_names=[f"i{j}" for j in range(blocks["int"].shape[1])] if "int" in blocks else None,
            float_attr_names=[f"f{j}" for j in range(blocks["float"].shape[1])] if "float" in blocks else None,
            nominal_attr_names=[f"n{j}" for j in range(blocks["nominal"].shape[1])] if "nominal" in blocks else None,
            name=name,
        )
        for i in range(n_samples):
            instance = DataInstance(
                dataset=dataset,
                int_attr=blocks["int"][i] if "int" in blocks else None,
                float_attr=blocks["float"][i] if "float" in blocks else None,
                nominal_attr=blocks["nominal"][i] if "nominal" in blocks else None,
                category=y[i],
            )
            dataset.data.append(instance)
        return dataset

    @property
    def n_int_attr(self) -> int:
        return len(self.int_attr_names)

    @property
    def n_float_attr(self) -> int:
        return len(self.float_attr_names)

    @property
    def n_nominal_attr(self) -> int:
        return len(self.nominal_attr_names)

    @property
    def n_attr(self) -> int:
        return self.n_int_attr + self.n_float_attr + self.n_nominal_attr

    def __len__(self) -> int:
        return len(self.data)

    def __getitem__(self, index: int) -> DataInstance:
        return self.data[index]

    def __iter__(self) -> Iterator[DataInstance]:
        return iter(self.data)

    def is_empty(self) -> bool:
        return len(self.data) == 0

    def get_instance(self, index: int) -> DataInstance:
        return self.data[index]

    def get_label_of(self, index: int) -> int:
        return self.data[index].category

    def set_label_of(self, index: int, label: int):
        self.data[index].category = int(label)

    @property
    def labels(self) -> np.ndarray:
        """ Category of each instance as an integer array. """
        return np.fromiter((instance.category for instance in self.data),
                           dtype=np.int64, count=len(self.data))

    def equals_in_feature_definition(self, other: Optional[DataSet]) -> bool:
        """ Whether `other` uses an identical attribute schema. """
        if other is None:
            return False
        if other is self:
            return True
        return (self.int_attr_names == other.int_attr_names
                and self.float_attr_names == other.float_attr_names
                and self.nominal_attr_names == other.nominal_attr_names)

    def _conforms(self, instance: DataInstance) -> bool:
        return (instance.n_int_attr == self.n_int_attr
                and instance.n_float_attr == self.n_float_attr
                and instance.n_nominal_attr == self.n_nominal_attr)

    def add_instance(self, instance: DataInstance):
        """ Append an instance, embedding it into this data set.

        Raises
        ------
        ConfigurationError
            If the instance violates the attribute schema.
        """
        if not self._conforms(instance):
            raise ConfigurationError(
                f"Instance with ({instance.n_int_attr}, {instance.n_float_attr}, "
                f"{instance.n_nominal_attr}) int/float/nominal attributes does not fit the schema "
                f"({self.n_int_attr}, {self.n_float_attr}, {self.n_nominal_attr}).")
        instance.dataset = self
        self.data.append(instance)

    def find_max_label(self) -> int:
        """ Highest category in the data, or -1 for empty data sets. """
        if self.is_empty():
            return NOISE_LABEL
        return int(max(NOISE_LABEL, self.labels.max()))

    def count_categories(self) -> int:
        """ Number of categories, assuming labels 0, ..., max_label. """
        return self.find_max_label() + 1

    def class_frequencies(self) -> np.ndarray:
        """ Number of instances per category (noise is not counted). """
        labels = self.labels
        return np.bincount(labels[labels >= 0], minlength=self.count_categories())

    def class_priors(self) -> np.ndarray:
        frequencies = self.class_frequencies()
        total = frequencies.sum()
        if total == 0:
            return np.zeros_like(frequencies, dtype=np.float64)
        return frequencies / total

    def clone_definition(self) -> DataSet:
        """ Empty data set with the same schema. """
        return DataSet(
            int_attr_names=self.int_attr_names,
            float_attr_names=self.float_attr_names,
            nominal_attr_names=self.nominal_attr_names,
            name=self.name,
        )

    def get_subsample(self, indices: Sequence[int]) -> DataSet:
        """ New data set referencing copies of the instances at `indices`. """
        subsample = self.clone_definition()
        for index in indices:
            subsample.add_instance(self.data[index].copy())
        return subsample

    def copy(self) -> DataSet:
        return self.get_subsample(range(len(self)))

    def float_matrix(self) -> np.ndarray:
        """ Float attributes of all instances stacked to shape (n_samples, n_float_attr). """
        if self.is_empty():
            return np.empty((0, self.n_float_attr), dtype=np.float64)
        return np.vstack([instance.float_attr for instance in self.data])

    def __repr__(self):
        return (f"DataSet(name={self.name!r}, n_instances={len(self)}, "
                f"n_int_attr={self.n_int_attr}, n_float_attr={self.n_float_attr}, "
                f"n_nominal_attr={self.n_nominal_attr})")

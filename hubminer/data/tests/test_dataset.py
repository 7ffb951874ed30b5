# SPDX-License-Identifier: BSD-3-Clause

import pytest
import numpy as np
from numpy.testing import assert_array_equal

from hubminer.data import DataInstance, DataSet, NOISE_LABEL
from hubminer.exceptions import ConfigurationError


def test_from_arrays_builds_schema():
    X = np.arange(6, dtype=float).reshape(3, 2)
    X_int = np.array([[1], [2], [3]])
    X_nominal = np.array([["a"], ["b"], ["a"]], dtype=object)
    ds = DataSet.from_arrays(X, y=[0, 1, 1], X_int=X_int, X_nominal=X_nominal, name="toy")

    assert len(ds) == 3
    assert ds.float_attr_names == ["f0", "f1"]
    assert ds.int_attr_names == ["i0"]
    assert ds.nominal_attr_names == ["n0"]
    assert_array_equal(ds[1].float_attr, [2., 3.])
    assert ds.get_instance(2).int_attr[0] == 3
    assert ds[2].nominal_attr[0] == "a"
    assert_array_equal(ds.labels, [0, 1, 1])
    assert ds[0].dataset is ds


def test_default_labels_are_zero():
    ds = DataSet.from_arrays([[0.], [1.]])
    assert_array_equal(ds.labels, [0, 0])
    assert ds.count_categories() == 1


@pytest.mark.parametrize("kwargs", [
    {},
    {"X": np.zeros((3, 2)), "X_int": np.zeros((2, 1))},
    {"X": np.zeros((3, 2)), "y": [0, 1]},
    {"X": np.zeros((2, 2, 2))},
])
def test_from_arrays_rejects_malformed_input(kwargs):
    with pytest.raises(ConfigurationError):
        DataSet.from_arrays(**kwargs)


def test_add_instance_checks_schema():
    ds = DataSet.from_arrays([[0., 1.]])
    ds.add_instance(DataInstance(float_attr=[2., 3.], category=1))
    assert len(ds) == 2
    assert ds[1].dataset is ds
    with pytest.raises(ConfigurationError):
        ds.add_instance(DataInstance(float_attr=[2.]))
    with pytest.raises(ConfigurationError):
        ds.add_instance(DataInstance(float_attr=[2., 3.], int_attr=[1]))


def test_instance_defaults_from_dataset():
    ds = DataSet(int_attr_names=["a"], float_attr_names=["b", "c"], nominal_attr_names=["d"])
    instance = DataInstance(dataset=ds)
    assert instance.n_int_attr == 1
    assert instance.n_float_attr == 2
    assert instance.n_nominal_attr == 1
    assert instance.has_float_attr()
    assert not instance.is_noise()


def test_labels_and_categories():
    ds = DataSet.from_arrays(np.zeros((5, 1)), y=[0, 2, 2, NOISE_LABEL, 1])
    assert ds.find_max_label() == 2
    assert ds.count_categories() == 3
    assert_array_equal(ds.class_frequencies(), [1, 1, 2])
    np.testing.assert_array_almost_equal(ds.class_priors(), [.25, .25, .5])
    assert ds[3].is_noise()

    ds.set_label_of(3, 1)
    assert ds.get_label_of(3) == 1


def test_empty_dataset():
    ds = DataSet(float_attr_names=["x"])
    assert ds.is_empty()
    assert ds.find_max_label() == NOISE_LABEL
    assert ds.count_categories() == 0
    assert ds.labels.shape == (0, )
    assert ds.float_matrix().shape == (0, 1)


def test_feature_definition_equality():
    first = DataSet.from_arrays(np.zeros((2, 3)))
    second = DataSet.from_arrays(np.ones((4, 3)))
    third = DataSet.from_arrays(np.ones((4, 2)))
    assert first.equals_in_feature_definition(second)
    assert not first.equals_in_feature_definition(third)
    assert not first.equals_in_feature_definition(None)


def test_copy_is_deep():
    ds = DataSet.from_arrays([[0.], [1.]], y=[0, 1])
    ds_copy = ds.copy()
    ds_copy[0].float_attr[0] = 42.
    ds_copy.set_label_of(1, 0)
    assert ds[0].float_attr[0] == 0.
    assert ds.get_label_of(1) == 1
    assert ds_copy[0].dataset is ds_copy


def test_subsample_and_float_matrix():
    X = np.arange(8, dtype=float).reshape(4, 2)
    ds = DataSet.from_arrays(X, y=[0, 1, 0, 1])
    sub = ds.get_subsample([3, 1])
    assert len(sub) == 2
    assert_array_equal(sub.float_matrix(), X[[3, 1]])
    assert_array_equal(sub.labels, [1, 1])
    assert sub.equals_in_feature_definition(ds)

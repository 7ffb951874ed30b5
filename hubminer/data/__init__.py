# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.data` package provides the in-memory data set representation.
"""
from .dataset import DataInstance, DataSet, NOISE_LABEL

__all__ = [
    "DataInstance",
    "DataSet",
    "NOISE_LABEL",
]

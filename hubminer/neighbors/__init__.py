# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.neighbors` package finds k-nearest neighbor sets,
counts neighbor occurrences, and classifies by hubness-weighted votes.
"""
from .neighbor_set_finder import NeighborSetFinder
from .classification import HubnessWeightedKNeighborsClassifier

__all__ = [
    "HubnessWeightedKNeighborsClassifier",
    "NeighborSetFinder",
]

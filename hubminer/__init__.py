# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

""" Python package for hubness-aware analysis of k-nearest neighbor sets."""

__version__ = '0.1.0'

from . import data
from . import distances
from . import neighbors
from . import analysis
from .analysis.estimation import Hubness
from .analysis.statistics import HubnessStatistics
from .neighbors.neighbor_set_finder import NeighborSetFinder
from . import reduction
from . import utils


__all__ = ['analysis',
           'data',
           'distances',
           'Hubness',
           'HubnessStatistics',
           'NeighborSetFinder',
           'neighbors',
           'reduction',
           'utils',
           ]

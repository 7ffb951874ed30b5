# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

from .check import check_distance_matrix, check_kneighbors_graph, check_neighborhood_size
from .io import validate_verbose
from .multiprocessing import validate_n_jobs, row_ranges

__all__ = [
    "check_distance_matrix",
    "check_kneighbors_graph",
    "check_neighborhood_size",
    "row_ranges",
    "validate_n_jobs",
    "validate_verbose",
]

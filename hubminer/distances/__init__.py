# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.distances` package provides distance measures, kernels,
and the computation of upper-triangular distance and kernel matrices.
"""
from .primary import (BrayCurtis, Canberra, Cosine, DistanceMeasure, Euclidean,
                      Hamming, Manhattan, Minkowski, VALID_MEASURES, get_distance_measure)
from .combined import CombinedMetric, VALID_MIXERS
from .kernel import GeneralizedHistogramKernel, Kernel, LinearKernel
from .matrix import (MAX_DISTANCE, calculate_dist_matrix, calculate_kernel_matrix,
                     calculate_query_distances, distance_mean_and_variance, from_square, get_distance,
                     kernel_to_square, to_square)

__all__ = [
    "BrayCurtis",
    "Canberra",
    "CombinedMetric",
    "Cosine",
    "DistanceMeasure",
    "Euclidean",
    "GeneralizedHistogramKernel",
    "Hamming",
    "Kernel",
    "LinearKernel",
    "MAX_DISTANCE",
    "Manhattan",
    "Minkowski",
    "VALID_MEASURES",
    "VALID_MIXERS",
    "calculate_dist_matrix",
    "calculate_kernel_matrix",
    "calculate_query_distances",
    "distance_mean_and_variance",
    "from_square",
    "get_distance",
    "get_distance_measure",
    "kernel_to_square",
    "to_square",
]

# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.analysis` package provides methods for measuring hubness.
"""
from .estimation import Hubness, VALID_HUBNESS_MEASURES
from .statistics import (HUB_THRESHOLD_STDS, HubnessStatistics, antihub_occurrence, atkinson_index,
                         gini_index, groupie_ratio, hub_occurrence, hubness_extremes_for_k_values,
                         k_skewness, occurrence_mean_std, robinhood_index, skewness_truncnorm)
from .weighting import (VALID_WEIGHTINGS, bounded_good_minus_bad_weights, hubness_weights, hw_knn_weights,
                        maxed_at_one_hw_knn_weights, penalize_hubness_weights,
                        relative_good_minus_bad_weights, reward_hubness_weights)

__all__ = [
    "HUB_THRESHOLD_STDS",
    "Hubness",
    "HubnessStatistics",
    "VALID_HUBNESS_MEASURES",
    "VALID_WEIGHTINGS",
    "antihub_occurrence",
    "atkinson_index",
    "bounded_good_minus_bad_weights",
    "gini_index",
    "groupie_ratio",
    "hub_occurrence",
    "hubness_extremes_for_k_values",
    "hubness_weights",
    "hw_knn_weights",
    "k_skewness",
    "maxed_at_one_hw_knn_weights",
    "occurrence_mean_std",
    "penalize_hubness_weights",
    "relative_good_minus_bad_weights",
    "reward_hubness_weights",
    "robinhood_index",
    "skewness_truncnorm",
]

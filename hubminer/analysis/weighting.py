# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
Hubness-aware instance weights for neighbor votes.

Every scheme maps standardized occurrence statistics of a
:class:`HubnessStatistics` snapshot to one positive weight per instance.
Without variation in the underlying statistic, all weights are one.
"""
import numpy as np

from .statistics import HubnessStatistics
from ..exceptions import ConfigurationError

__all__ = [
    "VALID_WEIGHTINGS",
    "bounded_good_minus_bad_weights",
    "hubness_weights",
    "hw_knn_weights",
    "maxed_at_one_hw_knn_weights",
    "penalize_hubness_weights",
    "relative_good_minus_bad_weights",
    "reward_hubness_weights",
]


def hw_knn_weights(statistics: HubnessStatistics) -> np.ndarray:
    """ Exponential weights of the standardized bad occurrence, as used in hw-kNN.

    .. math:: w_i = e^{-h_b(i)}

    References
    ----------
    .. [1] `Radovanović, M.; Nanopoulos, A. & Ivanović, M.
            Nearest neighbors in high-dimensional data: the emergence and
            influence of hubs. ICML 2009.`
    """
    return np.exp(-statistics.standardized_bad_occurrence())


def maxed_at_one_hw_knn_weights(statistics: HubnessStatistics) -> np.ndarray:
    """ hw-kNN weights cut off at one. """
    return np.minimum(hw_knn_weights(statistics), 1.)


def bounded_good_minus_bad_weights(statistics: HubnessStatistics, lower: float = .2, upper: float = 1.8) -> np.ndarray:
    """ Exponential weights of the standardized good-minus-bad occurrence, clipped to [lower, upper]. """
    if lower > upper:
        raise ConfigurationError(f"Lower weight limit {lower} exceeds upper limit {upper}.")
    if statistics.gmb_std == 0:
        return np.ones(statistics.n_samples, dtype=np.float64)
    return np.clip(np.exp(statistics.standardized_good_minus_bad()), lower, upper)


def relative_good_minus_bad_weights(statistics: HubnessStatistics) -> np.ndarray:
    """ Exponential weights of the standardized relative good-minus-bad occurrence. """
    return np.exp(statistics.standardized_relative_good_minus_bad())


def penalize_hubness_weights(statistics: HubnessStatistics) -> np.ndarray:
    """ Down-weight frequently occurring instances. """
    return np.exp(-statistics.standardized_occurrence())


def reward_hubness_weights(statistics: HubnessStatistics) -> np.ndarray:
    """ Up-weight frequently occurring instances. """
    return np.exp(statistics.standardized_occurrence())


#: Weighting schemes by name
VALID_WEIGHTINGS = {
    "bounded_gmb": bounded_good_minus_bad_weights,
    "hw_knn": hw_knn_weights,
    "maxed_hw_knn": maxed_at_one_hw_knn_weights,
    "penalize": penalize_hubness_weights,
    "relative_gmb": relative_good_minus_bad_weights,
    "reward": reward_hubness_weights,
    "uniform": lambda statistics: np.ones(statistics.n_samples, dtype=np.float64),
}


def hubness_weights(statistics: HubnessStatistics, weighting: str = "hw_knn") -> np.ndarray:
    """ Instance weights according to the named scheme, see :data:`VALID_WEIGHTINGS`. """
    try:
        scheme = VALID_WEIGHTINGS[weighting]
    except KeyError:
        raise ConfigurationError(f"Unknown weighting '{weighting}'. "
                                 f"Try one of {sorted(VALID_WEIGHTINGS)}.") from None
    return scheme(statistics)

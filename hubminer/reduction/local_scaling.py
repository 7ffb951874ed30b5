# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

from __future__ import annotations
from typing import List

import numpy as np
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_is_fitted
from tqdm.auto import tqdm

from ._base import SecondaryDistance
from ..distances.matrix import MAX_DISTANCE
from ..exceptions import ConfigurationError
from ..neighbors.neighbor_set_finder import NeighborSetFinder

__all__ = [
    "LocalScaling",
]


class LocalScaling(SecondaryDistance, BaseEstimator):
    """ Hubness reduction with Local Scaling [1]_ of an upper-triangular distance matrix.

    Parameters
    ----------
    k: int, default = 5
        Number of neighbors to consider for the rescaling
    method: 'standard' or 'nicdm', default = 'standard'
        Perform local scaling with the specified variant:

        - 'standard' or 'ls' rescale distances using the distance to the k-th neighbor
        - 'nicdm' rescales distances using the mean distance to the k nearest neighbors
    verbose: int, default = 0
        If verbose > 0, show progress bar.

    References
    ----------
    .. [1] Schnitzer, D., Flexer, A., Schedl, M., & Widmer, G. (2012).
           Local and global scaling reduce hubs in space. The Journal of Machine
           Learning Research, 13(1), 2871–2902.
    """

    def __init__(self, k: int = 5, *, method: str = "standard", verbose: int = 0):
        self.k = k
        self.method = method
        self.verbose = verbose

    def fit(self, X: NeighborSetFinder, y=None) -> LocalScaling:
        """ Extract local scaling parameters.

        Parameters
        ----------
        X : NeighborSetFinder
            Neighbor sets calculated up to at least `k`, with distance matrix
        y : ignored

        Returns
        -------
        self
        """
        dist_matrix = self._primary_distances(X)
        method = self.method.lower() if self.method is not None else "standard"
        if method in ["ls", "standard"]:
            self.effective_method_ = "ls"
        elif method == "nicdm":
            self.effective_method_ = "nicdm"
        else:
            raise ConfigurationError(f"Unknown local scaling method: {self.method}. "
                                     f"Must be one of: 'ls', 'standard', 'nicdm'.")
        k = self.k
        if k < 1 or k > X.k_max:
            raise ConfigurationError(f"Local scaling neighbor parameter k={k} must be in "
                                     f"[1, {X.k_max}], that is, at most the size of the "
                                     f"calculated neighbor sets.")
        kdistances = X.get_kdistances(k)
        if self.effective_method_ == "ls":
            self.r_dist_ = kdistances[:, k - 1].copy()
        else:
            # Sum of scaled terms stays finite for sentinel distances
            self.r_dist_ = (kdistances / k).sum(axis=1)
        self.dist_matrix_ = dist_matrix
        return self

    def transform(self, X=None, y=None) -> List[np.ndarray]:
        """ Rescale the fitted distance matrix.

        Returns
        -------
        secondary : list of ndarray
            Upper-triangular matrix of local scaling (or NICDM) distances
        """
        check_is_fitted(self, "r_dist_")
        sqrt_r = np.sqrt(self.r_dist_)
        secondary = []
        for i in tqdm(range(len(self.dist_matrix_)),
                      desc=f"LS ({self.effective_method_})",
                      disable=self.verbose < 1):
            d = self.dist_matrix_[i]
            with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
                # sqrt(r_i * r_j), without overflow for sentinel distances
                sqrt_scale = sqrt_r[i] * sqrt_r[i + 1:]
                ratio = d / sqrt_scale
                if self.effective_method_ == "ls":
                    row = 1. - np.exp(-ratio ** 2)
                    degenerate = 1.
                else:
                    row = ratio
                    degenerate = MAX_DISTANCE
            # Zero scale: identical points stay at distance zero
            zero_scale = sqrt_scale == 0
            row[zero_scale] = np.where(d[zero_scale] == 0, 0., degenerate)
            secondary.append(row)
        return secondary

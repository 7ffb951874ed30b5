# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

from __future__ import annotations
from typing import List

import numpy as np
from scipy import stats
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_is_fitted
from tqdm.auto import tqdm

from ._base import SecondaryDistance
from ..distances.matrix import condensed_distances, row_distances
from ..exceptions import ConfigurationError
from ..neighbors.neighbor_set_finder import NeighborSetFinder

__all__ = [
    "MutualProximity",
]


def _normal_sf(d: np.ndarray, mu: np.ndarray, sd: np.ndarray) -> np.ndarray:
    """ P(X > d) for X ~ N(mu, sd), with point masses where sd == 0. """
    sf = np.empty_like(d, dtype=np.float64)
    spread = sd > 0
    sf[spread] = stats.norm.sf(d[spread], mu[spread], sd[spread])
    sf[~spread] = (d[~spread] < mu[~spread]).astype(np.float64)
    return sf


class MutualProximity(SecondaryDistance, BaseEstimator):
    """ Hubness reduction with Mutual Proximity [1]_ of an upper-triangular distance matrix.

    Parameters
    ----------
    method: "normal" or "empiric", default = "normal"
        Model distance distribution with "method".

        - "normal" (="gaussi") models distance distributions with independent Gaussians (fast)
        - "empiric" (="exact") models distances with the empiric distributions (slow)

    verbose: int, default = 0
        If verbose > 0, show progress bar.

    References
    ----------
    .. [1] Schnitzer, D., Flexer, A., Schedl, M., & Widmer, G. (2012).
           Local and global scaling reduce hubs in space. The Journal of Machine
           Learning Research, 13(1), 2871–2902.
    """

    def __init__(self, method: str = "normal", verbose: int = 0):
        self.method = method
        self.verbose = verbose

    def fit(self, X: NeighborSetFinder, y=None) -> MutualProximity:
        """ Extract mutual proximity parameters.

        Parameters
        ----------
        X : NeighborSetFinder
            Finder holding the primary distance matrix
        y : ignored

        Returns
        -------
        self
        """
        dist_matrix = self._primary_distances(X)
        method = str(self.method).lower()
        if method in ["normal", "gaussi"]:
            self.effective_method_ = "normal"
        elif method in ["empiric", "exact"]:
            self.effective_method_ = "empiric"
        else:
            raise ConfigurationError(f'Mutual proximity method "{self.method}" not recognized. '
                                     f'Try "normal" or "empiric".')

        n = len(dist_matrix)
        condensed = condensed_distances(dist_matrix)
        # Full rows without the self distance
        rows = [np.delete(row_distances(condensed, n, i), i) for i in range(n)]
        if n > 1:
            self.mu_ = np.array([row.mean() for row in rows])
            self.sd_ = np.array([row.std(ddof=0) for row in rows])
        else:
            self.mu_ = np.zeros(n)
            self.sd_ = np.zeros(n)
        self.dist_matrix_ = dist_matrix
        self._condensed = condensed
        return self

    def transform(self, X=None, y=None) -> List[np.ndarray]:
        """ Mutual proximity distances 1 - P(X_i > d_ij, X_j > d_ij).

        Returns
        -------
        secondary : list of ndarray
            Upper-triangular matrix with values in [0, 1]
        """
        check_is_fitted(self, "mu_")
        n = len(self.dist_matrix_)
        secondary = []
        range_n = tqdm(range(n), desc=f"MP ({self.effective_method_})", disable=self.verbose < 1)
        for i in range_n:
            d = self.dist_matrix_[i]
            j = np.arange(i + 1, n)
            if self.effective_method_ == "normal":
                p1 = _normal_sf(d, np.full(d.size, self.mu_[i]), np.full(d.size, self.sd_[i]))
                p2 = _normal_sf(d, self.mu_[j], self.sd_[j])
                secondary.append(1. - p1 * p2)
            else:
                secondary.append(self._empiric_row(i, d, j, n))
        return secondary

    def _empiric_row(self, i: int, d: np.ndarray, j: np.ndarray, n: int) -> np.ndarray:
        if n <= 2:
            return np.zeros(d.size, dtype=np.float64)
        d_i = row_distances(self._condensed, n, i)
        row = np.empty(d.size, dtype=np.float64)
        for pos, (other, d_ij) in enumerate(zip(j, d)):
            d_j = row_distances(self._condensed, n, other)
            shared = (d_i > d_ij) & (d_j > d_ij)
            shared[[i, other]] = False
            row[pos] = 1. - np.count_nonzero(shared) / (n - 2)
        return row

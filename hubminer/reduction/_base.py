# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

from abc import ABC, abstractmethod
from typing import List

import numpy as np

from ..exceptions import ConfigurationError
from ..neighbors.neighbor_set_finder import NeighborSetFinder
from ..utils.check import check_distance_matrix


class SecondaryDistance(ABC):
    """ Base class for hubness reduction of an upper-triangular distance matrix.

    Secondary distances are fitted to the neighbor sets of a
    :class:`NeighborSetFinder`, and transform its primary distance matrix
    into a new upper-triangular matrix. The finder is not modified.
    """

    @abstractmethod
    def fit(self, X: NeighborSetFinder, y=None):
        pass

    @abstractmethod
    def transform(self, X=None, y=None) -> List[np.ndarray]:
        pass

    def fit_transform(self, X: NeighborSetFinder, y=None) -> List[np.ndarray]:
        return self.fit(X, y).transform()

    @staticmethod
    def _primary_distances(nsf: NeighborSetFinder) -> List[np.ndarray]:
        if not isinstance(nsf, NeighborSetFinder):
            raise ConfigurationError(f"Expected a NeighborSetFinder, got {type(nsf).__name__}.")
        if nsf.dist_matrix is None:
            raise ConfigurationError("Secondary distances require the primary distance matrix "
                                     "of the neighbor set finder.")
        return check_distance_matrix(nsf.dist_matrix, len(nsf.dataset))

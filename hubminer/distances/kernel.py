# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
Kernels (self-similarities) over the float attributes of instances.
"""
from abc import ABC, abstractmethod

import numpy as np

from .primary import assert_arrays
from .combined import assert_instances
from ..data.dataset import DataInstance

__all__ = [
    "GeneralizedHistogramKernel",
    "Kernel",
    "LinearKernel",
]


class Kernel(ABC):
    """ Base class for kernels. Calling a kernel evaluates it on two instances. """

    @abstractmethod
    def dot(self, first: np.ndarray, second: np.ndarray) -> float:
        pass

    def __call__(self, first: DataInstance, second: DataInstance) -> float:
        assert_instances(first, second)
        return self.dot(first.float_attr, second.float_attr)

    def __repr__(self):
        return f"{self.__class__.__name__}()"


class LinearKernel(Kernel):
    """ Plain dot product, skipping missing values. """

    def dot(self, first, second) -> float:
        assert_arrays(first, second)
        first = np.asarray(first, dtype=np.float64)
        second = np.asarray(second, dtype=np.float64)
        mask = np.isfinite(first) & np.isfinite(second)
        return float(np.dot(first[mask], second[mask]))


class GeneralizedHistogramKernel(Kernel):
    """ Generalized histogram intersection kernel.

    .. math:: K(x, y) = \\sum_i \\min(|x_i|^\\alpha, |y_i|^\\beta)

    Parameters
    ----------
    alpha, beta : float, default = 1
        Exponents applied to the first and second argument, respectively.

    References
    ----------
    .. [1] Boughorbel, S.; Tarel, J.-P. & Boujemaa, N.
           Generalized histogram intersection kernel for image recognition.
           IEEE International Conference on Image Processing (2005).
    """

    def __init__(self, alpha: float = 1., beta: float = 1.):
        self.alpha = alpha
        self.beta = beta

    def dot(self, first, second) -> float:
        assert_arrays(first, second)
        first = np.asarray(first, dtype=np.float64)
        second = np.asarray(second, dtype=np.float64)
        mask = np.isfinite(first) & np.isfinite(second)
        return float(np.sum(np.minimum(np.abs(first[mask]) ** self.alpha,
                                       np.abs(second[mask]) ** self.beta)))

    def __repr__(self):
        return f"GeneralizedHistogramKernel(alpha={self.alpha}, beta={self.beta})"

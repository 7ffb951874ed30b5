# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.reduction` package provides secondary distances for hubness reduction.
"""

from ._base import SecondaryDistance
from .local_scaling import LocalScaling
from .mutual_proximity import MutualProximity

__all__ = [
    "LocalScaling",
    "MutualProximity",
    "SecondaryDistance",
]

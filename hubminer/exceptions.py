# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.exceptions` module includes all custom warnings and error
classes used across hub-miner.
"""

__all__ = [
    "ConfigurationError",
    "MetricError",
    "ThreadExecutionError",
]


class ConfigurationError(ValueError):
    """ Malformed or missing input detected before any computation starts.

    Examples are a missing distance matrix, a matrix that does not match
    the data set, or an invalid neighborhood size.
    """


class MetricError(ValueError):
    """ A distance (or kernel) evaluation failed for one pair of instances.

    Matrix builders absorb this error per pair and store
    :data:`hubminer.distances.matrix.MAX_DISTANCE` instead.
    """

    def __init__(self, message, first=None, second=None):
        super().__init__(message)
        self.first = first
        self.second = second


class ThreadExecutionError(RuntimeError):
    """ A worker of a multi-threaded matrix computation failed unexpectedly.

    The rows owned by the worker are filled with the sentinel distance.

    Attributes
    ----------
    start_row, end_row : int
        Half-open row range ``[start_row, end_row)`` owned by the worker.
    """

    def __init__(self, message, start_row=None, end_row=None):
        super().__init__(message)
        self.start_row = start_row
        self.end_row = end_row

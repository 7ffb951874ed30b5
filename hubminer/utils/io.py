# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
import logging

__all__ = ['validate_verbose']


def validate_verbose(verbose):
    """ Handle special values for verbose parameter. """
    if verbose is None:
        verbose = 0
    elif verbose < 0:
        logging.warning(f'Verbosity level must be non-negative, but was {verbose}. '
                        f'Setting verbose = 0 instead.')
        verbose = 0
    return verbose

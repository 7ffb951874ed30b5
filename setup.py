#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

""" hub-miner: A Python package for hubness-aware analysis of k-nearest neighbor sets.

Package metadata and dependencies are declared in setup.cfg.
The hub-miner package is licensed under the terms the BSD 3-Clause license.
"""

import setuptools

if __name__ == "__main__":
    setuptools.setup()

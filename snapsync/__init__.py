# Copyright Red Hat
#
# snapsync/__init__.py - Snapshot sync package initialisation
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Snapsync top-level package.
"""
from ._snapsync import *  # noqa: F401, F403
from ._snapsync import __all__  # noqa: F401

__version__ = "0.1.0"

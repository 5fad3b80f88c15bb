# Copyright Red Hat
#
# snapsync/diff/difftypes.py - Snapshot sync diff types
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Snapshot diff types
"""
from enum import Enum


class FileStatus(Enum):
    """
    Enum for the classification of a path between two snapshots.
    """

    ADDED = "added"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"
    DELETED = "deleted"


class LineType(Enum):
    """
    Enum for the type of a single line in an edit script.
    """

    ADDED = "added"
    DELETED = "deleted"
    UNCHANGED = "unchanged"

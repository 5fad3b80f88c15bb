# Copyright Red Hat
#
# tests/diff/_util.py - Snapshot diff test utilities.
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
import os

from snapsync.diff.difftypes import LineType
from snapsync.diff.snapshot import StaticSnapshotProvider
from snapsync.diff.changes import ChangeClassifier


def write_tree(root, files):
    """
    Create ``files`` (a path -> str or bytes mapping) below ``root``.
    """
    for rel_path, content in files.items():
        path = os.path.join(root, rel_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        mode = "wb" if isinstance(content, bytes) else "w"
        with open(path, mode) as f:
            f.write(content)


def classifier_for(*snapshots):
    """
    Return a ``ChangeClassifier`` over a static sequence of snapshots.
    """
    return ChangeClassifier(StaticSnapshotProvider(snapshots))


def lines_of(changes, line_type):
    """
    Return the content of non-marker lines of ``line_type`` in order.
    """
    return [c.content for c in changes if c.type == line_type and not c.is_marker]


def triples(changes):
    """
    Return ``(type, content, line_number)`` tuples for ``changes``.
    """
    return [(c.type, c.content, c.line_number) for c in changes]


def is_subsequence(short, full):
    """
    Return ``True`` if ``short`` is an order-preserving subsequence of
    ``full``.
    """
    it = iter(full)
    return all(any(item == other for other in it) for item in short)


ADDED = LineType.ADDED
DELETED = LineType.DELETED
UNCHANGED = LineType.UNCHANGED

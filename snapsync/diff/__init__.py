# Copyright Red Hat
#
# snapsync/diff/__init__.py - Snapshot sync diff package
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Snapshot diff package.

Provides snapshot capture, change classification, line diffs and
contextual diff compression. The main entry points are
``ChangeClassifier``, ``LineDiffEngine`` and ``ContextualCompressor``.
"""
from .changes import ChangeClassifier, ClassifierState, FileChange
from .context import ContextualCompressor
from .difftypes import FileStatus, LineType
from .ignore import filter_snapshot, git_blob_hash, normalize_content
from .linediff import DiffLine, DiffResult, LineDiffEngine, SKIPPED_LINE_NUMBER
from .options import DiffOptions
from .snapshot import (
    DirectorySnapshotProvider,
    Snapshot,
    SnapshotProvider,
    StaticSnapshotProvider,
)

__all__ = [
    "ChangeClassifier",
    "ClassifierState",
    "ContextualCompressor",
    "DiffLine",
    "DiffOptions",
    "DiffResult",
    "DirectorySnapshotProvider",
    "FileChange",
    "FileStatus",
    "LineDiffEngine",
    "LineType",
    "SKIPPED_LINE_NUMBER",
    "Snapshot",
    "SnapshotProvider",
    "StaticSnapshotProvider",
    "filter_snapshot",
    "git_blob_hash",
    "normalize_content",
]

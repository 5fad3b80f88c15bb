# Copyright Red Hat
#
# snapsync/diff/changes.py - Snapshot sync change classification
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Classification of successive project snapshots into added, modified,
deleted and unchanged paths.
"""
from typing import Any, Dict, Optional
from datetime import datetime
from copy import copy
from enum import Enum
import logging

from snapsync import SNAPSYNC_SUBSYSTEM_DIFF

from .context import ContextualCompressor
from .difftypes import FileStatus, LineType
from .linediff import DiffResult, LineDiffEngine, whole_file_diff
from .snapshot import Snapshot, SnapshotProvider

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_diff(msg, *args, **kwargs):
    """A wrapper for diff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": SNAPSYNC_SUBSYSTEM_DIFF}, **kwargs)


class FileChange:
    """
    Representation of the change to one path between two snapshots.
    """

    def __init__(
        self,
        path: str,
        status: FileStatus,
        content: str,
        previous_content: Optional[str] = None,
        auth_method: Optional[str] = None,
        compared_at: Optional[datetime] = None,
    ):
        """
        Initialise a new ``FileChange`` object.

        :param path: The file path.
        :type path: ``str``
        :param status: The change classification.
        :type status: ``FileStatus``
        :param content: The current content (``""`` for deleted paths).
        :type content: ``str``
        :param previous_content: The previous content for modified and
                                 deleted paths.
        :type previous_content: ``Optional[str]``
        :param auth_method: Authentication method tag for remote comparisons.
        :type auth_method: ``Optional[str]``
        :param compared_at: Remote comparison time.
        :type compared_at: ``Optional[datetime]``
        """
        self.path = path
        self.status = status
        self.content = content
        self.previous_content = previous_content
        self.auth_method = auth_method
        self.compared_at = compared_at

    def __eq__(self, other):
        if not isinstance(other, FileChange):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"FileChange({self.path!r}, {self.status})"

    def __str__(self) -> str:
        """
        Return a string representation of this ``FileChange`` object.

        :returns: A human readable string representation of this instance.
        :rtype: str
        """
        lines = [f"       Path: {self.path}", f"     Status: {self.status.value}"]
        if self.auth_method:
            lines.append(f"AuthMethod: {self.auth_method}")
        if self.compared_at:
            lines.append(f" ComparedAt: {self.compared_at}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``FileChange`` object into a dictionary representation
        suitable for encoding as JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "path": self.path,
            "status": self.status.value,
            "content": self.content,
            "previous_content": self.previous_content,
            "auth_method": self.auth_method,
            "compared_at": (
                self.compared_at.isoformat() if self.compared_at else None
            ),
        }


class ClassifierState(Enum):
    """
    Enum for the snapshot lifecycle of a ``ChangeClassifier``.
    """

    NO_SNAPSHOT = "no_snapshot"
    FIRST_SNAPSHOT = "first_snapshot"
    STEADY_STATE = "steady_state"


class ChangeClassifier:
    """
    Holds the current and previous snapshot of a project and classifies the
    paths that differ between them.

    Loads are not serialised: callers must not overlap calls to ``load()``.
    """

    def __init__(self, provider: SnapshotProvider):
        """
        Initialise a new ``ChangeClassifier``.

        :param provider: The source of project snapshots.
        :type provider: ``SnapshotProvider``
        """
        self.provider = provider
        self.line_diff_engine = LineDiffEngine()
        self._current: Optional[Snapshot] = None
        self._previous: Optional[Snapshot] = None
        self._changes: Optional[Dict[str, FileChange]] = None

    @property
    def current(self) -> Optional[Snapshot]:
        """
        The current snapshot, or ``None`` if nothing has been loaded.
        """
        return self._current

    @property
    def previous(self) -> Optional[Snapshot]:
        """
        The previous snapshot, or ``None`` before the second load.
        """
        return self._previous

    @property
    def state(self) -> ClassifierState:
        """
        The snapshot lifecycle state of this classifier.
        """
        if self._current is None:
            return ClassifierState.NO_SNAPSHOT
        if self._previous is None:
            return ClassifierState.FIRST_SNAPSHOT
        return ClassifierState.STEADY_STATE

    def load(self, force_refresh: bool = False) -> Snapshot:
        """
        Load a snapshot from the provider.

        If a current snapshot exists and ``force_refresh`` is ``False`` it
        is returned without consulting the provider. Otherwise the current
        snapshot becomes the previous one and a fresh snapshot is fetched.
        Provider errors propagate and leave the classifier unchanged.

        :param force_refresh: Fetch a new snapshot even if one is loaded.
        :type force_refresh: ``bool``
        :returns: The current snapshot.
        :rtype: ``Snapshot``
        """
        if self._current is not None and not force_refresh:
            return self._current

        snapshot = dict(self.provider.get_snapshot(force_refresh))

        if self._current is not None:
            self._previous = self._current
        self._current = snapshot
        self._changes = None

        _log_debug_diff(
            "Loaded snapshot with %d paths (state=%s)",
            len(snapshot),
            self.state.value,
        )
        return snapshot

    def _classify(self) -> Dict[str, FileChange]:
        current = self._current or {}
        if self._previous is None:
            # First snapshot: no baseline, so every path is unchanged.
            return {
                path: FileChange(path, FileStatus.UNCHANGED, content)
                for path, content in current.items()
            }

        previous = self._previous
        changes: Dict[str, FileChange] = {}
        for path, content in current.items():
            if path not in previous:
                changes[path] = FileChange(path, FileStatus.ADDED, content)
            elif previous[path] != content:
                changes[path] = FileChange(
                    path, FileStatus.MODIFIED, content, previous_content=previous[path]
                )
            else:
                changes[path] = FileChange(path, FileStatus.UNCHANGED, content)

        for path, content in previous.items():
            if path not in current:
                changes[path] = FileChange(
                    path, FileStatus.DELETED, "", previous_content=content
                )
        return changes

    def get_changed_files(self) -> Dict[str, FileChange]:
        """
        Return the classification of every path in the current and previous
        snapshots. The classification is computed once per load and each
        call returns copies, so callers may modify the returned entries.

        :returns: A mapping of path to ``FileChange``.
        :rtype: ``Dict[str, FileChange]``
        """
        return {path: copy(change) for path, change in self._classified().items()}

    def _classified(self) -> Dict[str, FileChange]:
        if self._changes is None:
            self._changes = self._classify()
            if _log.isEnabledFor(logging.DEBUG):
                counts = {status: 0 for status in FileStatus}
                for change in self._changes.values():
                    counts[change.status] += 1
                _log_debug_diff(
                    "Classified %d paths: %s",
                    len(self._changes),
                    ", ".join(f"{s.value}={n}" for s, n in counts.items()),
                )
        return self._changes

    def get_file_content(self, path: str) -> Optional[str]:
        """
        Return the current content of ``path``.

        :param path: The file path.
        :type path: ``str``
        :returns: The content or ``None`` if ``path`` is not in the current
                  snapshot.
        :rtype: ``Optional[str]``
        """
        if self._current is None:
            return None
        return self._current.get(path)

    def get_file_diff(self, path: str, context_lines: int = 0) -> Optional[DiffResult]:
        """
        Return the line diff for ``path``.

        Added and deleted files produce a diff of all added or all deleted
        lines, compressed like any other diff when ``context_lines`` is
        positive. Unchanged and unknown paths return ``None``.

        :param path: The file path.
        :type path: ``str``
        :param context_lines: Context lines for a contextual diff (0 for a
                              full diff).
        :type context_lines: ``int``
        :returns: The diff or ``None``.
        :rtype: ``Optional[DiffResult]``
        """
        change = self._classified().get(path)
        if change is None or change.status == FileStatus.UNCHANGED:
            return None

        if change.status == FileStatus.ADDED:
            result = whole_file_diff(path, change.content, LineType.ADDED)
            return ContextualCompressor().compress(result, context_lines)
        if change.status == FileStatus.DELETED:
            result = whole_file_diff(path, change.previous_content or "", LineType.DELETED)
            return ContextualCompressor().compress(result, context_lines)

        return self.line_diff_engine.calculate_line_diff(
            path, change.previous_content or "", change.content, context_lines
        )

    def invalidate(self):
        """
        Discard all snapshots and cached classifications.
        """
        _log_debug_diff("Invalidating snapshots and change cache")
        self._current = None
        self._previous = None
        self._changes = None

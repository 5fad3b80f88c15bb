# Copyright Red Hat
#
# snapsync/diff/snapshot.py - Snapshot sync snapshot providers
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Project snapshots and the providers that capture them.

A snapshot is a plain mapping of relative file path to full text content.
Snapshots are never modified once captured: each load produces a new
mapping.
"""
from typing import Dict, Iterable, List, Optional
from abc import ABC, abstractmethod
from fnmatch import fnmatch
from pathlib import Path
import logging
import os

from snapsync import SNAPSYNC_SUBSYSTEM_DIFF, SnapsyncNotFoundError, SnapsyncStateError

from .filetypes import FileTypeDetector
from .options import DiffOptions

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_diff(msg, *args, **kwargs):
    """A wrapper for diff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": SNAPSYNC_SUBSYSTEM_DIFF}, **kwargs)


#: Type alias for a project snapshot: path -> text content
Snapshot = Dict[str, str]

#: Paths that are never included in a directory snapshot
_ALWAYS_EXCLUDE_PATTERNS = (".git", ".git/*")


class SnapshotProvider(ABC):
    """
    Source of project snapshots.
    """

    @abstractmethod
    def get_snapshot(self, force_refresh: bool = False) -> Snapshot:
        """
        Capture and return a snapshot of the project file tree.

        :param force_refresh: Bypass any provider-side cache.
        :type force_refresh: ``bool``
        :returns: A mapping of file path to text content.
        :rtype: ``Snapshot``
        """


class StaticSnapshotProvider(SnapshotProvider):
    """
    A provider returning a fixed sequence of snapshots, one per call. The last
    snapshot is repeated once the sequence is exhausted.
    """

    def __init__(self, snapshots: Iterable[Snapshot]):
        """
        Initialise a new ``StaticSnapshotProvider``.

        :param snapshots: The snapshots to return in order.
        :type snapshots: ``Iterable[Snapshot]``
        """
        self._snapshots: List[Snapshot] = [dict(snap) for snap in snapshots]
        self._index = 0
        if not self._snapshots:
            raise SnapsyncStateError("StaticSnapshotProvider needs a snapshot")

    def get_snapshot(self, force_refresh: bool = False) -> Snapshot:
        snapshot = self._snapshots[min(self._index, len(self._snapshots) - 1)]
        self._index += 1
        return dict(snapshot)


class DirectorySnapshotProvider(SnapshotProvider):
    """
    Capture snapshots by walking a directory tree and reading its text files.
    """

    def __init__(self, root: str, options: Optional[DiffOptions] = None):
        """
        Initialise a new ``DirectorySnapshotProvider``.

        :param root: The directory to snapshot.
        :type root: ``str``
        :param options: Options controlling file selection.
        :type options: ``Optional[DiffOptions]``
        """
        self.root = root
        self.options = options or DiffOptions()
        self.file_type_detector = FileTypeDetector()

    def _included(self, rel_path: str) -> bool:
        """
        Return ``True`` if ``rel_path`` passes the configured patterns.
        """
        exclude_patterns = _ALWAYS_EXCLUDE_PATTERNS + self.options.exclude_patterns
        if any(fnmatch(rel_path, pat) for pat in exclude_patterns):
            return False
        if self.options.file_patterns and not any(
            fnmatch(rel_path, pat) for pat in self.options.file_patterns
        ):
            return False
        return True

    def _read_text(self, file_path: Path) -> Optional[str]:
        """
        Read ``file_path`` as text, returning ``None`` for binary, oversized
        or unreadable files.

        :param file_path: The file to read.
        :type file_path: ``Path``
        :returns: The file content or ``None``.
        :rtype: ``Optional[str]``
        """
        max_size = self.options.max_file_size
        try:
            if max_size and file_path.stat().st_size > max_size:
                _log_debug_diff("Skipping oversized file %s", str(file_path))
                return None
        except OSError as err:
            _log_warn("Could not stat %s: %s", str(file_path), err)
            return None

        fti = self.file_type_detector.detect_file_type(
            file_path, use_magic=self.options.use_magic_file_type
        )
        if not fti.is_text:
            _log_debug_diff("Skipping binary file %s (%s)", str(file_path), fti)
            return None

        encoding = fti.encoding if fti.encoding not in (None, "binary") else "utf-8"
        try:
            with open(file_path, "r", encoding=encoding, errors="replace") as f:
                return f.read()
        except (OSError, LookupError) as err:
            _log_warn("Could not read %s: %s", str(file_path), err)
            return None

    def get_snapshot(self, force_refresh: bool = False) -> Snapshot:
        """
        Walk ``self.root`` and return a snapshot of its text files. Paths use
        forward slashes relative to the root.

        :param force_refresh: Unused: directory snapshots are always fresh.
        :type force_refresh: ``bool``
        :returns: A mapping of relative file path to text content.
        :rtype: ``Snapshot``
        """
        if not os.path.isdir(self.root):
            raise SnapsyncNotFoundError(f"Snapshot root not found: {self.root}")

        _log_info("Capturing snapshot of %s", self.root)
        snapshot: Snapshot = {}
        excluded = 0
        for dirpath, dirs, files in os.walk(self.root):
            dirs.sort()
            for name in sorted(files):
                file_path = Path(dirpath) / name
                rel_path = file_path.relative_to(self.root).as_posix()
                if not self._included(rel_path) or file_path.is_symlink():
                    excluded += 1
                    continue
                content = self._read_text(file_path)
                if content is None:
                    excluded += 1
                    continue
                snapshot[rel_path] = content

        _log_debug_diff(
            "Captured %d paths from %s (excluded %d)", len(snapshot), self.root, excluded
        )
        return snapshot

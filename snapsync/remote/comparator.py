# Copyright Red Hat
#
# snapsync/remote/comparator.py - Snapshot sync remote tree comparison
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Comparison of a local snapshot with the file tree of a remote repository
branch.
"""
from typing import Callable, Dict, Optional
from abc import ABC, abstractmethod
import logging

from snapsync import SNAPSYNC_SUBSYSTEM_REMOTE
from snapsync.diff.changes import FileChange
from snapsync.diff.difftypes import FileStatus
from snapsync.diff.ignore import (
    PROJECT_PREFIX,
    git_blob_hash,
    load_gitignore,
    normalize_content,
    strip_project_prefix,
)
from snapsync.diff.snapshot import Snapshot

from .auth import AuthMethod

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_remote(msg, *args, **kwargs):
    """A wrapper for remote subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": SNAPSYNC_SUBSYSTEM_REMOTE}, **kwargs)


#: Progress callback: ``callback(message, percent)``
ProgressCallback = Callable[[str, float], None]


class RemoteClient(ABC):
    """
    An authenticated client for a remote repository host.
    """

    #: The authentication method this client uses
    auth_method: AuthMethod = AuthMethod.UNKNOWN

    @abstractmethod
    def get_branch_tree(self, owner: str, repo: str, branch: str) -> Dict[str, str]:
        """
        Return the file tree at the head of ``branch``.

        :param owner: The repository owner.
        :type owner: ``str``
        :param repo: The repository name.
        :type repo: ``str``
        :param branch: The branch name.
        :type branch: ``str``
        :returns: A mapping of file path to git blob SHA-1.
        :rtype: ``Dict[str, str]``
        """

    @abstractmethod
    def get_file_content(
        self, owner: str, repo: str, path: str, ref: str
    ) -> Optional[str]:
        """
        Return the decoded text content of ``path`` at ``ref``.

        :param owner: The repository owner.
        :type owner: ``str``
        :param repo: The repository name.
        :type repo: ``str``
        :param path: The file path.
        :type path: ``str``
        :param ref: The branch or commit to read.
        :type ref: ``str``
        :returns: The content or ``None`` if the remote returned no content.
        :rtype: ``Optional[str]``
        """


class ComparisonSummary:
    """
    Per-status counts for a remote comparison.
    """

    def __init__(self, added=0, modified=0, deleted=0, unchanged=0):
        self.added = added
        self.modified = modified
        self.deleted = deleted
        self.unchanged = unchanged

    def __eq__(self, other):
        if not isinstance(other, ComparisonSummary):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __str__(self):
        return (
            f"added={self.added} modified={self.modified} "
            f"deleted={self.deleted} unchanged={self.unchanged}"
        )

    @classmethod
    def from_changes(cls, changes: Dict[str, FileChange]) -> "ComparisonSummary":
        """
        Count the statuses in ``changes``.

        :param changes: A mapping of path to ``FileChange``.
        :type changes: ``Dict[str, FileChange]``
        :rtype: ``ComparisonSummary``
        """
        summary = cls()
        for change in changes.values():
            name = change.status.value
            setattr(summary, name, getattr(summary, name) + 1)
        return summary

    def to_dict(self) -> Dict[str, int]:
        """
        Convert this ``ComparisonSummary`` into a dictionary.

        :rtype: ``Dict[str, int]``
        """
        return {
            "added": self.added,
            "modified": self.modified,
            "deleted": self.deleted,
            "unchanged": self.unchanged,
        }


class ComparisonResult:
    """
    The result of comparing a local snapshot with a remote branch.
    """

    def __init__(
        self,
        changes: Dict[str, FileChange],
        summary: Optional[ComparisonSummary] = None,
        remote_tree: Optional[Dict[str, str]] = None,
    ):
        """
        Initialise a new ``ComparisonResult``.

        :param changes: A mapping of path to ``FileChange``.
        :type changes: ``Dict[str, FileChange]``
        :param summary: Status counts, computed from ``changes`` if omitted.
        :type summary: ``Optional[ComparisonSummary]``
        :param remote_tree: The remote path to blob SHA mapping compared
                            against.
        :type remote_tree: ``Optional[Dict[str, str]]``
        """
        self.changes = changes
        self.summary = summary or ComparisonSummary.from_changes(changes)
        self.remote_tree = remote_tree or {}


class RemoteComparator(ABC):
    """
    Compares local snapshots with remote repository branches.
    """

    @abstractmethod
    def compare(
        self,
        local: Snapshot,
        owner: str,
        repo: str,
        branch: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> ComparisonResult:
        """
        Compare ``local`` with the head of ``branch`` in ``owner/repo``.

        :param local: The local snapshot.
        :type local: ``Snapshot``
        :param owner: The repository owner.
        :type owner: ``str``
        :param repo: The repository name.
        :type repo: ``str``
        :param branch: The branch name.
        :type branch: ``str``
        :param progress_callback: Optional progress callback.
        :type progress_callback: ``Optional[ProgressCallback]``
        :rtype: ``ComparisonResult``
        """


class TreeComparator(RemoteComparator):
    """
    A ``RemoteComparator`` that compares git blob hashes of normalised local
    content with the remote branch tree, confirming hash mismatches by
    fetching and normalising the remote content.
    """

    def __init__(self, client: RemoteClient):
        """
        Initialise a new ``TreeComparator``.

        :param client: The remote client used for tree and content requests.
        :type client: ``RemoteClient``
        """
        self.client = client

    def _fetch(self, owner: str, repo: str, path: str, branch: str) -> Optional[str]:
        try:
            return self.client.get_file_content(owner, repo, path, branch)
        except Exception as err:  # pylint: disable=broad-exception-caught
            _log_warn("Failed to fetch remote content for %s: %s", path, err)
            return None

    def _compare_one(
        self,
        path: str,
        content: str,
        remote_sha: str,
        coords: tuple,
    ) -> FileChange:
        normalized = normalize_content(content)
        if git_blob_hash(normalized) == remote_sha:
            return FileChange(path, FileStatus.UNCHANGED, content)

        owner, repo, branch = coords
        remote_content = self._fetch(owner, repo, strip_project_prefix(path), branch)
        if remote_content is None:
            # Unreadable remote content counts as modified.
            return FileChange(path, FileStatus.MODIFIED, content, previous_content="")

        if normalize_content(remote_content) != normalized:
            return FileChange(
                path, FileStatus.MODIFIED, content, previous_content=remote_content
            )
        _log_debug_remote("Hash mismatch for %s resolved by normalisation", path)
        return FileChange(
            path, FileStatus.UNCHANGED, content, previous_content=remote_content
        )

    def compare(
        self,
        local: Snapshot,
        owner: str,
        repo: str,
        branch: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> ComparisonResult:
        def notify(message: str, percent: float):
            if progress_callback:
                progress_callback(message, percent)

        notify("Fetching repository data...", 10)
        remote_tree = self.client.get_branch_tree(owner, repo, branch)

        notify("Analyzing repository files...", 30)
        _log_debug_remote(
            "Remote tree %s/%s@%s has %d paths", owner, repo, branch, len(remote_tree)
        )

        notify("Comparing files...", 50)
        changes: Dict[str, FileChange] = {}
        total = len(local)
        coords = (owner, repo, branch)

        for index, (path, content) in enumerate(local.items()):
            # Directory entries and empty files
            if content == "" or path.endswith("/"):
                continue
            remote_path = strip_project_prefix(path)
            if remote_path not in remote_tree:
                changes[path] = FileChange(path, FileStatus.ADDED, content)
                continue
            notify(f"Comparing {remote_path}...", 50 + (index / total) * 30)
            changes[path] = self._compare_one(
                path, content, remote_tree[remote_path], coords
            )

        notify("Checking for deleted files...", 90)
        gitignore = load_gitignore(local)
        for remote_path in remote_tree:
            if remote_path in local or PROJECT_PREFIX + remote_path in local:
                continue
            if gitignore.ignores(remote_path):
                continue
            previous = self._fetch(owner, repo, remote_path, branch)
            changes[remote_path] = FileChange(
                remote_path,
                FileStatus.DELETED,
                "",
                previous_content=previous if previous is not None else "",
            )

        notify("Comparison complete", 100)
        return ComparisonResult(changes, remote_tree=remote_tree)

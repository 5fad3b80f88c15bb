# Copyright Red Hat
#
# snapsync/session.py - Snapshot sync change session
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Change sessions: the public interface to snapshot change detection, line
diffs and remote comparison for one project.

Each caller constructs its own ``ChangeSession``; there is no shared
global instance.
"""
from typing import Callable, Dict, List, Optional
import logging

from snapsync import SNAPSYNC_SUBSYSTEM_SESSION
from snapsync.config import SnapsyncConfig
from snapsync.diff.changes import ChangeClassifier, FileChange
from snapsync.diff.ignore import filter_snapshot
from snapsync.diff.linediff import DiffResult, LineDiffEngine
from snapsync.diff.snapshot import Snapshot, SnapshotProvider
from snapsync.remote.auth import AuthStatus, ClientFactory
from snapsync.remote.comparator import ProgressCallback, RemoteClient
from snapsync.remote.orchestrator import (
    ComparisonOptions,
    RemoteComparisonOrchestrator,
)

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_session(msg, *args, **kwargs):
    """A wrapper for session subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": SNAPSYNC_SUBSYSTEM_SESSION}, **kwargs)


#: Cache refresh callback: ``callback(project_id)``
RefreshCallback = Callable[[str], None]


class CacheInvalidationSource:
    """
    A registry of callbacks notified when a project's underlying storage is
    refreshed externally.
    """

    def __init__(self):
        self._callbacks: List[RefreshCallback] = []

    def on_refresh_needed(self, callback: RefreshCallback):
        """
        Register ``callback`` for refresh notifications.

        :param callback: Called with the refreshed project identifier.
        :type callback: ``RefreshCallback``
        """
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def remove_refresh_callback(self, callback: RefreshCallback):
        """
        Unregister ``callback``. Unknown callbacks are ignored.

        :param callback: A previously registered callback.
        :type callback: ``RefreshCallback``
        """
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def notify_refresh(self, project_id: str):
        """
        Notify all registered callbacks that ``project_id`` was refreshed.

        :param project_id: The refreshed project identifier.
        :type project_id: ``str``
        """
        for callback in list(self._callbacks):
            callback(project_id)

    def __len__(self):
        return len(self._callbacks)


class ChangeSession:
    """
    Change detection, diffing and remote comparison for one project.

    A session holds one current/previous snapshot pair and one cached remote
    client and auth status. Loads are not serialised: callers must not
    overlap ``load_snapshot()`` calls on the same session.
    """

    def __init__(
        self,
        provider: SnapshotProvider,
        client_factory: Optional[ClientFactory] = None,
        invalidation_source: Optional[CacheInvalidationSource] = None,
        config: Optional[SnapsyncConfig] = None,
        orchestrator: Optional[RemoteComparisonOrchestrator] = None,
    ):
        """
        Initialise a new ``ChangeSession``.

        :param provider: The project snapshot provider.
        :type provider: ``SnapshotProvider``
        :param client_factory: Factory for authenticated remote clients.
        :type client_factory: ``Optional[ClientFactory]``
        :param invalidation_source: Source of external cache refresh
                                    notifications.
        :type invalidation_source: ``Optional[CacheInvalidationSource]``
        :param config: Snapsync configuration.
        :type config: ``Optional[SnapsyncConfig]``
        :param orchestrator: The remote comparison orchestrator to use.
        :type orchestrator: ``Optional[RemoteComparisonOrchestrator]``
        """
        self.config = config or SnapsyncConfig()
        self.classifier = ChangeClassifier(provider)
        self.line_diff_engine = LineDiffEngine()
        self.orchestrator = orchestrator or RemoteComparisonOrchestrator(
            client_factory=client_factory, config=self.config
        )
        self.invalidation_source = invalidation_source
        if invalidation_source is not None:
            invalidation_source.on_refresh_needed(self._handle_cache_refresh)

    def _handle_cache_refresh(self, project_id: str):
        _log_debug_session("Cache refreshed for project %s: clearing state", project_id)
        self.classifier.invalidate()
        self.orchestrator.invalidate()

    def load_snapshot(self, force_refresh: bool = False) -> Snapshot:
        """
        Load the project snapshot. See ``ChangeClassifier.load()``.

        :param force_refresh: Fetch a new snapshot even if one is loaded.
        :type force_refresh: ``bool``
        :returns: The current snapshot.
        :rtype: ``Snapshot``
        """
        return self.classifier.load(force_refresh)

    def get_processed_files(self, force_refresh: bool = False) -> Snapshot:
        """
        Return the current snapshot with gitignore rules applied.

        :param force_refresh: Fetch a new snapshot first.
        :type force_refresh: ``bool``
        :returns: A new, filtered snapshot.
        :rtype: ``Snapshot``
        """
        snapshot = self.load_snapshot(force_refresh)
        return filter_snapshot(snapshot)

    def get_changed_files(self) -> Dict[str, FileChange]:
        """
        Return the classification of the current snapshot against the
        previous one, loading a snapshot first if none is loaded.

        :returns: A mapping of path to ``FileChange``.
        :rtype: ``Dict[str, FileChange]``
        """
        if self.classifier.current is None:
            self.load_snapshot()
        return self.classifier.get_changed_files()

    def get_file_diff(self, path: str, context_lines: int = 0) -> Optional[DiffResult]:
        """
        Return the diff of ``path`` between the previous and current
        snapshot.

        :param path: The file path.
        :type path: ``str``
        :param context_lines: Context lines for a contextual diff (0 for a
                              full diff).
        :type context_lines: ``int``
        :returns: The diff, or ``None`` for unchanged or unknown paths.
        :rtype: ``Optional[DiffResult]``
        """
        if self.classifier.current is None:
            self.load_snapshot()
        return self.classifier.get_file_diff(path, context_lines)

    def get_file_content(self, path: str) -> Optional[str]:
        """
        Return the current content of ``path``.

        :param path: The file path.
        :type path: ``str``
        :returns: The content, or ``None`` if ``path`` does not exist.
        :rtype: ``Optional[str]``
        """
        if self.classifier.current is None:
            self.load_snapshot()
        return self.classifier.get_file_content(path)

    def calculate_line_diff(
        self,
        path: str,
        old_content: str,
        new_content: str,
        context_lines: int = 0,
    ) -> DiffResult:
        """
        Calculate the line diff between two versions of ``path``.

        :param path: The file path.
        :type path: ``str``
        :param old_content: The old content.
        :type old_content: ``str``
        :param new_content: The new content.
        :type new_content: ``str``
        :param context_lines: Context lines for a contextual diff (0 for a
                              full diff).
        :type context_lines: ``int``
        :rtype: ``DiffResult``
        """
        return self.line_diff_engine.calculate_line_diff(
            path, old_content, new_content, context_lines
        )

    def comparison_options(
        self,
        repo_owner: str,
        repo_name: str,
        target_branch: str,
        progress_callback: Optional[ProgressCallback] = None,
        client: Optional[RemoteClient] = None,
    ) -> ComparisonOptions:
        """
        Return ``ComparisonOptions`` for a remote branch using the
        session's configured ``AuthMethod`` and ``IncludeMetadata``
        settings.

        :param repo_owner: The repository owner.
        :type repo_owner: ``str``
        :param repo_name: The repository name.
        :type repo_name: ``str``
        :param target_branch: The branch to compare against.
        :type target_branch: ``str``
        :param progress_callback: Optional progress callback.
        :type progress_callback: ``Optional[ProgressCallback]``
        :param client: A pre-authenticated client to use.
        :type client: ``Optional[RemoteClient]``
        :rtype: ``ComparisonOptions``
        """
        return ComparisonOptions(
            repo_owner,
            repo_name,
            target_branch,
            auth_method=self.config.auth_method,
            progress_callback=progress_callback,
            include_metadata=self.config.include_metadata,
            client=client,
        )

    def compare_with_remote(self, options: ComparisonOptions) -> Dict[str, FileChange]:
        """
        Compare the gitignore-filtered current snapshot with a remote branch.

        :param options: The comparison options.
        :type options: ``ComparisonOptions``
        :returns: A mapping of path to ``FileChange``.
        :rtype: ``Dict[str, FileChange]``
        """
        processed = self.get_processed_files()
        return self.orchestrator.compare(processed, options)

    def get_auth_status(self) -> Optional[AuthStatus]:
        """
        Return the cached remote ``AuthStatus``.

        :rtype: ``Optional[AuthStatus]``
        """
        return self.orchestrator.get_auth_status()

    def refresh_auth_status(self, client: Optional[RemoteClient] = None) -> AuthStatus:
        """
        Refresh and cache the remote ``AuthStatus``.

        :param client: The client to inspect.
        :type client: ``Optional[RemoteClient]``
        :rtype: ``AuthStatus``
        """
        return self.orchestrator.refresh_auth_status(client)

    def cleanup(self):
        """
        Unregister from the invalidation source and discard all state.
        """
        if self.invalidation_source is not None:
            self.invalidation_source.remove_refresh_callback(self._handle_cache_refresh)
            self.invalidation_source = None
        self.classifier.invalidate()
        self.orchestrator.invalidate()
        _log_debug_session("Session cleaned up")

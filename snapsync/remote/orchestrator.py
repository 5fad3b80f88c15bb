# Copyright Red Hat
#
# snapsync/remote/orchestrator.py - Snapshot sync remote comparison
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Orchestration of local to remote snapshot comparisons: client selection,
progress annotation, metadata stamping, auth status caching and error
classification.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional, TYPE_CHECKING
import logging

from snapsync import (
    SNAPSYNC_SUBSYSTEM_REMOTE,
    SnapsyncArgumentError,
    SnapsyncAuthError,
    SnapsyncError,
)
from snapsync.diff.changes import FileChange
from snapsync.diff.snapshot import Snapshot

from .auth import AuthMethod, AuthStatus, ClientFactory, resolve_client
from .comparator import ProgressCallback, RemoteClient, RemoteComparator, TreeComparator
from .errors import classify_remote_error

if TYPE_CHECKING:
    from snapsync.config import SnapsyncConfig

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_remote(msg, *args, **kwargs):
    """A wrapper for remote subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": SNAPSYNC_SUBSYSTEM_REMOTE}, **kwargs)


#: Message for comparisons of an empty local snapshot
EMPTY_SNAPSHOT_MSG = "No files loaded or all files were ignored by gitignore rules."


@dataclass(frozen=True)
class ComparisonOptions:
    """
    Options for a remote comparison.
    """

    repo_owner: str
    repo_name: str
    target_branch: str
    #: Requested authentication method
    auth_method: AuthMethod = AuthMethod.AUTO
    #: Optional progress callback: ``callback(message, percent)``
    progress_callback: Optional[ProgressCallback] = None
    #: Stamp results with the auth method tag and comparison time
    include_metadata: bool = True
    #: A pre-authenticated client; always used when supplied
    client: Optional[RemoteClient] = None

    @property
    def target(self) -> str:
        """
        The remote object compared against, as ``owner/repo@branch``.
        """
        return f"{self.repo_owner}/{self.repo_name}@{self.target_branch}"


class RemoteComparisonOrchestrator:
    """
    Compare local snapshots with remote repository branches.

    The client and ``AuthStatus`` of the last successful comparison or auth
    refresh are cached until ``invalidate()`` is called.
    """

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        comparator_factory: Optional[Callable[[RemoteClient], RemoteComparator]] = None,
        config: Optional["SnapsyncConfig"] = None,
    ):
        """
        Initialise a new ``RemoteComparisonOrchestrator``.

        :param client_factory: Factory for authenticated remote clients.
        :type client_factory: ``Optional[ClientFactory]``
        :param comparator_factory: Callable returning the comparator to use
                                   for a client. Defaults to
                                   ``TreeComparator``.
        :type comparator_factory: ``Optional[Callable]``
        :param config: Snapsync configuration.
        :type config: ``Optional[SnapsyncConfig]``
        """
        self.client_factory = client_factory
        self.comparator_factory = comparator_factory or TreeComparator
        self.development = config.development if config else False
        self._client: Optional[RemoteClient] = None
        self._auth_status: Optional[AuthStatus] = None

    def _select_client(self, options: ComparisonOptions) -> RemoteClient:
        client = options.client
        if client is None and self._client is not None:
            if options.auth_method in (AuthMethod.AUTO, self._client.auth_method):
                client = self._client
        return resolve_client(client, options.auth_method, self.client_factory)

    def _wrap_progress(
        self, tag: str, callback: Optional[ProgressCallback]
    ) -> ProgressCallback:
        def progress(message: str, percent: float):
            tagged = f"[{tag}] {message}"
            if self.development:
                _log_debug_remote("Remote comparison: %s (%d%%)", tagged, percent)
            if callback:
                callback(tagged, percent)

        return progress

    def _status_for(
        self, client: RemoteClient, target: Optional[str] = None
    ) -> AuthStatus:
        if self.client_factory is None:
            return AuthStatus(current_auth=client.auth_method)
        try:
            return self.client_factory.get_auth_status(client)
        except Exception as err:
            classified = classify_remote_error(
                err, client.auth_method, "auth status refresh", target
            )
            _log_error("Auth status refresh failed: %s", classified)
            if classified is err:
                raise
            raise classified from err

    def compare(
        self, local_snapshot: Snapshot, options: ComparisonOptions
    ) -> Dict[str, FileChange]:
        """
        Compare ``local_snapshot`` with the remote branch named in
        ``options``.

        The comparison either returns a complete change map or raises a
        single classified ``SnapsyncRemoteError``.

        :param local_snapshot: The gitignore-filtered local snapshot.
        :type local_snapshot: ``Snapshot``
        :param options: The comparison options.
        :type options: ``ComparisonOptions``
        :returns: A mapping of path to ``FileChange``.
        :rtype: ``Dict[str, FileChange]``
        :raises SnapsyncArgumentError: if ``local_snapshot`` is empty.
        :raises SnapsyncAuthError: if no client can be selected.
        :raises SnapsyncRemoteError: if the comparison or the auth status
                                     lookup fails.
        """
        if not local_snapshot:
            raise SnapsyncArgumentError(EMPTY_SNAPSHOT_MSG)

        try:
            client = self._select_client(options)
        except SnapsyncError:
            raise
        except Exception as err:
            raise classify_remote_error(
                err, options.auth_method, "remote client creation", options.target
            ) from err

        auth_method = client.auth_method
        if auth_method in (AuthMethod.AUTO, AuthMethod.UNKNOWN) and options.client is None:
            auth_method = options.auth_method
        tag = auth_method.value
        progress = self._wrap_progress(tag, options.progress_callback)

        _log_info("Comparing %d local paths with %s", len(local_snapshot), options.target)
        try:
            comparator = self.comparator_factory(client)
            result = comparator.compare(
                local_snapshot,
                options.repo_owner,
                options.repo_name,
                options.target_branch,
                progress,
            )
        except Exception as err:
            classified = classify_remote_error(
                err, auth_method, "remote comparison", options.target
            )
            _log_error("Remote comparison failed: %s", classified)
            if classified is err:
                raise
            raise classified from err

        changes = result.changes
        if options.include_metadata:
            compared_at = datetime.now()
            changes = {
                path: FileChange(
                    change.path,
                    change.status,
                    change.content,
                    previous_content=change.previous_content,
                    auth_method=tag,
                    compared_at=compared_at,
                )
                for path, change in changes.items()
            }
        else:
            changes = dict(changes)

        status = self._status_for(client, options.target)
        self._client = client
        self._auth_status = status
        _log_debug_remote("Remote comparison complete: %s", result.summary)
        return changes

    def get_auth_status(self) -> Optional[AuthStatus]:
        """
        Return the cached ``AuthStatus``, or ``None`` if no comparison or
        refresh has succeeded since the last invalidation.

        :rtype: ``Optional[AuthStatus]``
        """
        return self._auth_status

    def refresh_auth_status(
        self, client: Optional[RemoteClient] = None
    ) -> AuthStatus:
        """
        Re-derive and cache the ``AuthStatus`` of ``client``, the cached
        client, or a newly created best-available client.

        :param client: The client to inspect.
        :type client: ``Optional[RemoteClient]``
        :returns: The refreshed ``AuthStatus``.
        :rtype: ``AuthStatus``
        :raises SnapsyncAuthError: if no client is available.
        :raises SnapsyncRemoteError: if the client or its status cannot be
                                     obtained.
        """
        client = client or self._client
        if client is None:
            if self.client_factory is None:
                raise SnapsyncAuthError("No remote client available for auth status")
            try:
                client = resolve_client(None, AuthMethod.AUTO, self.client_factory)
            except SnapsyncError:
                raise
            except Exception as err:
                raise classify_remote_error(
                    err, AuthMethod.AUTO, "remote client creation"
                ) from err

        status = self._status_for(client)
        self._client = client
        self._auth_status = status
        _log_debug_remote("Refreshed auth status: %s", status)
        return status

    def invalidate(self):
        """
        Discard the cached client and ``AuthStatus``.
        """
        _log_debug_remote("Invalidating cached remote client and auth status")
        self._client = None
        self._auth_status = None

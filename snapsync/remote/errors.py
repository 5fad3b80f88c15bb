# Copyright Red Hat
#
# snapsync/remote/errors.py - Snapshot sync remote error classification
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Classification of remote operation failures into the snapsync remote error
taxonomy.
"""
from typing import Optional
import logging

from snapsync import (
    SNAPSYNC_SUBSYSTEM_REMOTE,
    SnapsyncRemoteError,
    SnapsyncRemoteNotFoundError,
    SnapsyncRemoteForbiddenError,
    SnapsyncRemoteUnauthorizedError,
    SnapsyncRateLimitError,
    SnapsyncRemoteOperationError,
)

from .auth import AuthMethod

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_remote(msg, *args, **kwargs):
    """A wrapper for remote subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": SNAPSYNC_SUBSYSTEM_REMOTE}, **kwargs)


_AUTH_LABELS = {
    AuthMethod.PAT: "personal access token",
    AuthMethod.GITHUB_APP: "GitHub App",
}


def _status_of(err: BaseException) -> Optional[int]:
    """
    Return an HTTP-like status code carried by ``err``, if any.
    """
    for attr in ("status", "status_code"):
        value = getattr(err, attr, None)
        if isinstance(value, int):
            return value
    return None


def _forbidden_message(auth_method: AuthMethod, target: str) -> str:
    if auth_method == AuthMethod.PAT:
        return (
            f"Access denied to {target}: the personal access token lacks "
            "permission. Check that the token has repository scope."
        )
    if auth_method == AuthMethod.GITHUB_APP:
        return (
            f"Access denied to {target}: the GitHub App installation cannot "
            "access this repository. Grant the app access to it."
        )
    return f"Access denied to {target}"


def classify_remote_error(
    err: BaseException,
    auth_method: AuthMethod,
    operation: str,
    target: Optional[str] = None,
) -> SnapsyncRemoteError:
    """
    Classify a remote failure into the remote error taxonomy.

    The status code carried by ``err`` is used when present, otherwise the
    error message is inspected. Errors that are already classified are
    returned unchanged.

    :param err: The original exception.
    :type err: ``BaseException``
    :param auth_method: The authentication method in use.
    :type auth_method: ``AuthMethod``
    :param operation: A label for the failed operation.
    :type operation: ``str``
    :param target: A description of the remote object, for example
                   ``owner/repo@branch``.
    :type target: ``Optional[str]``
    :returns: A classified error to raise in place of ``err``.
    :rtype: ``SnapsyncRemoteError``
    """
    if isinstance(err, SnapsyncRemoteError):
        return err

    status = _status_of(err)
    message = str(err).lower()
    tag = auth_method.value
    target = target or "the remote repository"

    _log_debug_remote(
        "Classifying %s error (status=%s, auth=%s): %s", operation, status, tag, err
    )

    if status == 404 or "not found" in message:
        return SnapsyncRemoteNotFoundError(
            f"Repository or branch not found: {target} does not exist or is "
            "not accessible",
            auth_method=tag,
            cause=err,
        )

    if "rate limit" in message or (
        status in (403, 429) and getattr(err, "remaining", None) == 0
    ):
        remaining = getattr(err, "remaining", None)
        limit = getattr(err, "limit", None)
        msg = "Remote rate limit exceeded"
        if remaining is not None and limit is not None:
            msg += f" ({remaining} of {limit} requests remaining)"
        return SnapsyncRateLimitError(
            msg, auth_method=tag, cause=err, remaining=remaining, limit=limit
        )

    if status == 403 or "forbidden" in message:
        return SnapsyncRemoteForbiddenError(
            _forbidden_message(auth_method, target), auth_method=tag, cause=err
        )

    if status == 401 or "bad credentials" in message or "unauthorized" in message:
        label = _AUTH_LABELS.get(auth_method, "remote")
        return SnapsyncRemoteUnauthorizedError(
            f"Authentication failed: the {label} credential is invalid or has "
            "expired",
            auth_method=tag,
            cause=err,
        )

    return SnapsyncRemoteOperationError(operation, err, auth_method=tag)

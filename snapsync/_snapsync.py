# Copyright Red Hat
#
# snapsync/_snapsync.py - Snapshot sync global definitions
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Global definitions for the top-level snapsync package.
"""
from typing import Optional
import logging

_log = logging.getLogger("snapsync")

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

# Snapsync debugging subsystem mask
SNAPSYNC_DEBUG_DIFF = 1
SNAPSYNC_DEBUG_REMOTE = 2
SNAPSYNC_DEBUG_SESSION = 4
SNAPSYNC_DEBUG_COMMAND = 8
SNAPSYNC_DEBUG_ALL = (
    SNAPSYNC_DEBUG_DIFF
    | SNAPSYNC_DEBUG_REMOTE
    | SNAPSYNC_DEBUG_SESSION
    | SNAPSYNC_DEBUG_COMMAND
)

# Snapsync debugging subsystem names
SNAPSYNC_SUBSYSTEM_DIFF = "snapsync.diff"
SNAPSYNC_SUBSYSTEM_REMOTE = "snapsync.remote"
SNAPSYNC_SUBSYSTEM_SESSION = "snapsync.session"
SNAPSYNC_SUBSYSTEM_COMMAND = "snapsync.command"

_DEBUG_MASK_TO_SUBSYSTEM = {
    SNAPSYNC_DEBUG_DIFF: SNAPSYNC_SUBSYSTEM_DIFF,
    SNAPSYNC_DEBUG_REMOTE: SNAPSYNC_SUBSYSTEM_REMOTE,
    SNAPSYNC_DEBUG_SESSION: SNAPSYNC_SUBSYSTEM_SESSION,
    SNAPSYNC_DEBUG_COMMAND: SNAPSYNC_SUBSYSTEM_COMMAND,
}

# Subsystems enabled for debug output
_debug_subsystems = set()


class SubsystemFilter(logging.Filter):
    """
    Drop DEBUG records tagged with a ``subsystem`` that is not enabled.
    Records at other levels, and untagged records, always pass.
    """

    def __init__(self, name=""):
        super().__init__(name)
        self.enabled_subsystems = set(_debug_subsystems)

    def filter(self, record):
        subsystem = getattr(record, "subsystem", None)
        if record.levelno != logging.DEBUG or subsystem is None:
            return True
        return subsystem in self.enabled_subsystems

    def set_debug_subsystems(self, subsystems):
        """Replace the set of subsystems allowed to emit DEBUG records."""
        self.enabled_subsystems = set(subsystems)


def _subsystem_filters():
    for handler in logging.getLogger("snapsync").handlers:
        yield from (f for f in handler.filters if isinstance(f, SubsystemFilter))


def get_debug_mask():
    """
    Return the ``SNAPSYNC_DEBUG_*`` mask of subsystems with debug logging
    enabled.

    :returns: The current debug mask value
    :rtype: int
    """
    enabled = set(_debug_subsystems)
    for log_filter in _subsystem_filters():
        enabled |= log_filter.enabled_subsystems
    return sum(
        flag for flag, name in _DEBUG_MASK_TO_SUBSYSTEM.items() if name in enabled
    )


def set_debug_mask(mask):
    """
    Enable debug logging for the subsystems selected by ``mask`` and
    update any ``SubsystemFilter`` installed on the ``snapsync`` logger.

    :param mask: the logical OR of the ``SNAPSYNC_DEBUG_*``
                 values to log.
    :raises ValueError: if ``mask`` selects unknown subsystems.
    """
    # pylint: disable=global-statement
    global _debug_subsystems

    if not 0 <= mask <= SNAPSYNC_DEBUG_ALL:
        raise ValueError(f"Invalid snapsync debug mask: {mask}")

    _debug_subsystems = {
        name for flag, name in _DEBUG_MASK_TO_SUBSYSTEM.items() if mask & flag
    }
    for log_filter in _subsystem_filters():
        log_filter.set_debug_subsystems(_debug_subsystems)


#
# Snapsync exception types
#


class SnapsyncError(Exception):
    """
    Base class for snapsync errors.
    """


class SnapsyncArgumentError(SnapsyncError):
    """
    An invalid argument was passed to a snapsync API call.
    """


class SnapsyncNotFoundError(SnapsyncError):
    """
    The requested object does not exist.
    """


class SnapsyncStateError(SnapsyncError):
    """
    The state of an object does not allow an operation to proceed.
    """


class SnapsyncAuthError(SnapsyncError):
    """
    No usable authentication method is available for a remote operation.
    """


class SnapsyncRemoteError(SnapsyncError):
    """
    Base class for classified remote repository errors.
    """

    def __init__(
        self,
        msg: str,
        auth_method: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        """
        Initialise a new ``SnapsyncRemoteError`` exception.

        :param msg: The user-facing error message.
        :param auth_method: The authentication method tag in use when the
                            error occurred.
        :param cause: The original exception.
        """
        self.auth_method, self.cause = auth_method, cause
        super().__init__(msg)


class SnapsyncRemoteNotFoundError(SnapsyncRemoteError):
    """
    The remote repository or branch does not exist or is not accessible.
    """


class SnapsyncRemoteForbiddenError(SnapsyncRemoteError):
    """
    The authenticated principal lacks permission for the remote operation.
    """


class SnapsyncRemoteUnauthorizedError(SnapsyncRemoteError):
    """
    The remote credential is invalid or has expired.
    """


class SnapsyncRateLimitError(SnapsyncRemoteError):
    """
    The remote request budget has been exhausted.
    """

    def __init__(
        self,
        msg: str,
        auth_method: Optional[str] = None,
        cause: Optional[BaseException] = None,
        remaining: Optional[int] = None,
        limit: Optional[int] = None,
    ):
        """
        Initialise a new ``SnapsyncRateLimitError`` exception.

        :param msg: The user-facing error message.
        :param auth_method: The authentication method tag in use.
        :param cause: The original exception.
        :param remaining: Remaining request budget, if known.
        :param limit: Total request budget, if known.
        """
        self.remaining, self.limit = remaining, limit
        super().__init__(msg, auth_method=auth_method, cause=cause)


class SnapsyncRemoteOperationError(SnapsyncRemoteError):
    """
    A remote operation failed for a reason not covered by a more specific
    error class.
    """

    def __init__(
        self,
        operation: str,
        cause: BaseException,
        auth_method: Optional[str] = None,
    ):
        """
        Initialise a new ``SnapsyncRemoteOperationError`` exception.

        :param operation: A label for the failed operation.
        :param cause: The original exception.
        :param auth_method: The authentication method tag in use.
        """
        self.operation = operation
        msg = f"{operation} failed: {cause}"
        super().__init__(msg, auth_method=auth_method, cause=cause)


__all__ = [
    "SNAPSYNC_DEBUG_DIFF",
    "SNAPSYNC_DEBUG_REMOTE",
    "SNAPSYNC_DEBUG_SESSION",
    "SNAPSYNC_DEBUG_COMMAND",
    "SNAPSYNC_DEBUG_ALL",
    "SNAPSYNC_SUBSYSTEM_DIFF",
    "SNAPSYNC_SUBSYSTEM_REMOTE",
    "SNAPSYNC_SUBSYSTEM_SESSION",
    "SNAPSYNC_SUBSYSTEM_COMMAND",
    "SubsystemFilter",
    "get_debug_mask",
    "set_debug_mask",
    "SnapsyncError",
    "SnapsyncArgumentError",
    "SnapsyncNotFoundError",
    "SnapsyncStateError",
    "SnapsyncAuthError",
    "SnapsyncRemoteError",
    "SnapsyncRemoteNotFoundError",
    "SnapsyncRemoteForbiddenError",
    "SnapsyncRemoteUnauthorizedError",
    "SnapsyncRateLimitError",
    "SnapsyncRemoteOperationError",
]

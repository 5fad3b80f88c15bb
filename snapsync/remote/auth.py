# Copyright Red Hat
#
# snapsync/remote/auth.py - Snapshot sync remote authentication
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Remote authentication methods, status reporting and client selection.

Client selection follows an ordered precedence table: an explicitly
supplied client always wins, an explicit method request is honoured
exactly, and ``auto`` asks the client factory for the best available
method. Credentials are never fetched implicitly for personal access
tokens.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, TYPE_CHECKING
from abc import ABC, abstractmethod
from enum import Enum
import logging

from snapsync import SNAPSYNC_SUBSYSTEM_REMOTE, SnapsyncArgumentError, SnapsyncAuthError

if TYPE_CHECKING:
    from .comparator import RemoteClient

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_remote(msg, *args, **kwargs):
    """A wrapper for remote subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": SNAPSYNC_SUBSYSTEM_REMOTE}, **kwargs)


class AuthMethod(Enum):
    """
    Enum for remote authentication methods.
    """

    PAT = "pat"
    GITHUB_APP = "github_app"
    AUTO = "auto"
    UNKNOWN = "unknown"

    @classmethod
    def from_str(cls, value: str) -> "AuthMethod":
        """
        Parse an authentication method name.

        :param value: The method name (case insensitive).
        :type value: ``str``
        :returns: The matching ``AuthMethod``.
        :rtype: ``AuthMethod``
        :raises SnapsyncArgumentError: if ``value`` is not a known method.
        """
        try:
            return cls(value.strip().lower())
        except ValueError as err:
            raise SnapsyncArgumentError(
                f"Unknown authentication method: {value}"
            ) from err


@dataclass
class RateLimit:
    """
    Remote request budget for one authentication method.
    """

    limit: int
    remaining: int
    #: Reset time as a UNIX epoch timestamp
    reset: Optional[int] = None

    def __str__(self):
        return f"{self.remaining}/{self.limit}"

    def to_dict(self) -> Dict[str, Optional[int]]:
        """
        Convert this ``RateLimit`` into a dictionary suitable for encoding as
        JSON.

        :rtype: ``Dict[str, Optional[int]]``
        """
        return {"limit": self.limit, "remaining": self.remaining, "reset": self.reset}


@dataclass
class AuthStatus:
    """
    Description of the active remote credential class and its limits.
    """

    current_auth: AuthMethod = AuthMethod.UNKNOWN
    #: Rate limits keyed by authentication method name
    rate_limits: Dict[str, RateLimit] = field(default_factory=dict)
    #: ``True`` if a higher-trust method than ``current_auth`` is available
    can_upgrade: bool = False

    def __str__(self):
        limits = ", ".join(f"{key}={val}" for key, val in self.rate_limits.items())
        return (
            f"Auth: {self.current_auth.value}, "
            f"RateLimits: {limits if limits else 'unknown'}, "
            f"CanUpgrade: {'yes' if self.can_upgrade else 'no'}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``AuthStatus`` into a dictionary suitable for encoding
        as JSON.

        :rtype: ``Dict[str, Any]``
        """
        return {
            "current_auth": self.current_auth.value,
            "rate_limits": {k: v.to_dict() for k, v in self.rate_limits.items()},
            "can_upgrade": self.can_upgrade,
        }


class ClientFactory(ABC):
    """
    Constructs authenticated remote clients and reports their status.
    """

    @abstractmethod
    def create_client(self, method: AuthMethod) -> "RemoteClient":
        """
        Create an authenticated remote client.

        :param method: The method to use. ``AuthMethod.AUTO`` selects the
                       highest-trust method available.
        :type method: ``AuthMethod``
        :returns: A new remote client.
        :rtype: ``RemoteClient``
        """

    @abstractmethod
    def get_auth_status(self, client: "RemoteClient") -> AuthStatus:
        """
        Report the authentication status of ``client``.

        :param client: The client to inspect.
        :type client: ``RemoteClient``
        :rtype: ``AuthStatus``
        """


class AuthStrategy(Enum):
    """
    Outcome of remote client selection.
    """

    USE_SUPPLIED = "use_supplied"
    REJECT = "reject"
    CREATE_REQUESTED = "create_requested"
    CREATE_BEST = "create_best"


@dataclass(frozen=True)
class AuthRule:
    """
    One row of the client selection precedence table. ``None`` fields match
    any value.
    """

    client_supplied: Optional[bool]
    requested: Optional[AuthMethod]
    strategy: AuthStrategy

    def matches(self, client_supplied: bool, requested: AuthMethod) -> bool:
        """
        Return ``True`` if this rule applies.

        :param client_supplied: ``True`` if the caller supplied a client.
        :type client_supplied: ``bool``
        :param requested: The requested authentication method.
        :type requested: ``AuthMethod``
        :rtype: ``bool``
        """
        if self.client_supplied is not None and self.client_supplied != client_supplied:
            return False
        return self.requested is None or self.requested == requested


#: Client selection rules in precedence order: the first match wins.
AUTH_PRECEDENCE: Tuple[AuthRule, ...] = (
    AuthRule(True, None, AuthStrategy.USE_SUPPLIED),
    AuthRule(False, AuthMethod.PAT, AuthStrategy.REJECT),
    AuthRule(False, AuthMethod.GITHUB_APP, AuthStrategy.CREATE_REQUESTED),
    AuthRule(False, AuthMethod.AUTO, AuthStrategy.CREATE_BEST),
)


def select_auth_strategy(client_supplied: bool, requested: AuthMethod) -> AuthStrategy:
    """
    Look up the client selection strategy in ``AUTH_PRECEDENCE``.

    :param client_supplied: ``True`` if the caller supplied a client.
    :type client_supplied: ``bool``
    :param requested: The requested authentication method.
    :type requested: ``AuthMethod``
    :returns: The strategy of the first matching rule.
    :rtype: ``AuthStrategy``
    :raises SnapsyncArgumentError: if no rule matches.
    """
    for rule in AUTH_PRECEDENCE:
        if rule.matches(client_supplied, requested):
            return rule.strategy
    raise SnapsyncArgumentError(
        f"Unsupported authentication method request: {requested.value}"
    )


def resolve_client(
    client: Optional["RemoteClient"],
    requested: AuthMethod,
    factory: Optional[ClientFactory],
) -> "RemoteClient":
    """
    Return the remote client to use for an operation.

    :param client: A pre-authenticated client supplied by the caller.
    :type client: ``Optional[RemoteClient]``
    :param requested: The requested authentication method.
    :type requested: ``AuthMethod``
    :param factory: The factory used to construct clients.
    :type factory: ``Optional[ClientFactory]``
    :returns: The selected or newly created client.
    :rtype: ``RemoteClient``
    :raises SnapsyncAuthError: if no client can be obtained.
    """
    strategy = select_auth_strategy(client is not None, requested)
    _log_debug_remote(
        "Selected auth strategy %s (client supplied: %s, requested: %s)",
        strategy.value,
        client is not None,
        requested.value,
    )

    if strategy == AuthStrategy.USE_SUPPLIED:
        return client
    if strategy == AuthStrategy.REJECT:
        raise SnapsyncAuthError(
            "Personal access token authentication requires a "
            "pre-authenticated client"
        )
    if factory is None:
        raise SnapsyncAuthError(
            f"No client factory available to create a {requested.value} client"
        )
    if strategy == AuthStrategy.CREATE_REQUESTED:
        return factory.create_client(requested)
    return factory.create_client(AuthMethod.AUTO)

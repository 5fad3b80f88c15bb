# Copyright Red Hat
#
# snapsync/remote/__init__.py - Snapshot sync remote comparison package
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Remote comparison package.

Compares local snapshots with remote repository branches. The main entry
points are ``RemoteComparisonOrchestrator`` and ``ComparisonOptions``;
remote hosts are reached through ``ClientFactory`` and ``RemoteClient``
implementations supplied by the caller.
"""
from .auth import (
    AuthMethod,
    AuthStatus,
    AuthStrategy,
    ClientFactory,
    RateLimit,
    select_auth_strategy,
)
from .comparator import (
    ComparisonResult,
    ComparisonSummary,
    RemoteClient,
    RemoteComparator,
    TreeComparator,
)
from .errors import classify_remote_error
from .orchestrator import ComparisonOptions, RemoteComparisonOrchestrator

__all__ = [
    "AuthMethod",
    "AuthStatus",
    "AuthStrategy",
    "ClientFactory",
    "ComparisonOptions",
    "ComparisonResult",
    "ComparisonSummary",
    "RateLimit",
    "RemoteClient",
    "RemoteComparator",
    "RemoteComparisonOrchestrator",
    "TreeComparator",
    "classify_remote_error",
    "select_auth_strategy",
]

# Copyright Red Hat
#
# snapsync/diff/options.py - Snapshot sync diff options
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Snapshot diff options.
"""
from dataclasses import dataclass, field, fields
from typing import Tuple
from argparse import Namespace
import logging

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


@dataclass(frozen=True)
class DiffOptions:
    """
    Snapshot comparison options.
    """

    #: Number of context lines for contextual diffs (0 for full diffs)
    context_lines: int = 0
    #: Generate file type information using magic
    use_magic_file_type: bool = False
    #: Maximum file size to include in directory snapshots (0 for unlimited)
    max_file_size: int = 2**20
    #: File patterns to include (glob notation)
    file_patterns: Tuple[str, ...] = field(default_factory=tuple)
    #: File patterns to exclude (glob notation)
    exclude_patterns: Tuple[str, ...] = field(default_factory=tuple)
    #: Apply .gitignore rules before comparing with a remote
    apply_gitignore: bool = True

    def __str__(self):
        lines = []
        for option in fields(self):
            value = getattr(self, option.name)
            if isinstance(value, tuple):
                value = " ".join(value)
            lines.append(f"{option.name}={value}")
        return "\n".join(lines)

    @classmethod
    def from_cmd_args(cls, cmd_args: Namespace) -> "DiffOptions":
        """
        Build ``DiffOptions`` from parsed command line arguments. Arguments
        that are absent or ``None`` keep the default value, and pattern
        lists are stored as tuples.

        :param cmd_args: The parsed ``snapsync`` arguments.
        :type cmd_args: ``Namespace``
        :returns: The options selected on the command line.
        :rtype: ``DiffOptions``
        """
        selected = {}
        for option in fields(cls):
            value = getattr(cmd_args, option.name, None)
            if value is None:
                continue
            selected[option.name] = tuple(value) if isinstance(value, list) else value
        options = cls(**selected)
        _log_debug("Diff options from arguments: %s", repr(options))
        return options

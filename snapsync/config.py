# Copyright Red Hat
#
# snapsync/config.py - Snapshot sync configuration
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Snapsync configuration file support.
"""
from configparser import ConfigParser
from dataclasses import dataclass
from os.path import exists, join
import logging

from snapsync import SnapsyncArgumentError
from snapsync.remote.auth import AuthMethod

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Snapsync configuration directory
_SNAPSYNC_CFG_DIR = "/etc/snapsync"

#: Snapsync configuration file
SNAPSYNC_CFG_PATH = join(_SNAPSYNC_CFG_DIR, "snapsync.conf")

#: Global configuration section
_SNAPSYNC_CFG_GLOBAL = "Global"

#: Default number of context lines for diffs
_SNAPSYNC_CFG_CONTEXT_LINES = "ContextLines"

#: Default remote authentication method
_SNAPSYNC_CFG_AUTH_METHOD = "AuthMethod"

#: Stamp remote comparison results with auth metadata
_SNAPSYNC_CFG_INCLUDE_METADATA = "IncludeMetadata"

#: Enable development diagnostics
_SNAPSYNC_CFG_DEVELOPMENT = "Development"


@dataclass(frozen=True)
class SnapsyncConfig:
    """
    Snapsync configuration.
    """

    #: Default context lines for rendered diffs (0 for full diffs)
    context_lines: int = 0
    #: Default remote authentication method
    auth_method: AuthMethod = AuthMethod.AUTO
    #: Stamp remote comparison results with auth method and time
    include_metadata: bool = True
    #: Emit development diagnostics for remote comparison progress
    development: bool = False

    @classmethod
    def from_file(cls, config_file: str = SNAPSYNC_CFG_PATH) -> "SnapsyncConfig":
        """
        Load ``SnapsyncConfig`` from an INI-style configuration file located
        at ``config_file``. A missing file yields the default configuration.

        :param config_file: path to snapsync.conf
        :type config_file: ``str``.
        :returns: A ``SnapsyncConfig`` instance initialised from
                  ``config_file``.
        :rtype: ``SnapsyncConfig``
        :raises SnapsyncArgumentError: if a configuration value is invalid.
        """
        if not exists(config_file):
            return SnapsyncConfig()

        _log_debug("Loading configuration from '%s'", config_file)
        cfg = ConfigParser()
        cfg.read([config_file])

        kwargs = {}
        if cfg.has_section(_SNAPSYNC_CFG_GLOBAL):
            section = cfg[_SNAPSYNC_CFG_GLOBAL]
            try:
                if _SNAPSYNC_CFG_CONTEXT_LINES in section:
                    context_lines = section.getint(_SNAPSYNC_CFG_CONTEXT_LINES)
                    if context_lines < 0:
                        raise ValueError(f"negative context lines: {context_lines}")
                    kwargs["context_lines"] = context_lines
                if _SNAPSYNC_CFG_INCLUDE_METADATA in section:
                    kwargs["include_metadata"] = section.getboolean(
                        _SNAPSYNC_CFG_INCLUDE_METADATA
                    )
                if _SNAPSYNC_CFG_DEVELOPMENT in section:
                    kwargs["development"] = section.getboolean(
                        _SNAPSYNC_CFG_DEVELOPMENT
                    )
            except ValueError as err:
                raise SnapsyncArgumentError(
                    f"Invalid configuration value in {config_file}: {err}"
                ) from err
            if _SNAPSYNC_CFG_AUTH_METHOD in section:
                kwargs["auth_method"] = AuthMethod.from_str(
                    section[_SNAPSYNC_CFG_AUTH_METHOD]
                )

        return SnapsyncConfig(**kwargs)

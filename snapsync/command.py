# Copyright Red Hat
#
# snapsync/command.py - Snapshot sync command interface
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""The ``snapsync.command`` module provides the snapsync command line
interface and a simple procedural interface to the ``snapsync`` library
modules.
"""
from argparse import ArgumentParser
from os.path import basename
from typing import Optional
from json import dumps
import logging
import sys

from snapsync import (
    SnapsyncNotFoundError,
    SnapsyncArgumentError,
    SNAPSYNC_DEBUG_DIFF,
    SNAPSYNC_DEBUG_REMOTE,
    SNAPSYNC_DEBUG_SESSION,
    SNAPSYNC_DEBUG_COMMAND,
    SNAPSYNC_DEBUG_ALL,
    SNAPSYNC_SUBSYSTEM_COMMAND,
    SubsystemFilter,
    set_debug_mask,
    __version__,
)
from snapsync.config import SnapsyncConfig, SNAPSYNC_CFG_PATH
from snapsync.diff import (
    DiffOptions,
    DirectorySnapshotProvider,
    FileStatus,
    LineDiffEngine,
    StaticSnapshotProvider,
    filter_snapshot,
)
from snapsync.diff.render import (
    render_change_summary,
    render_diff_result,
    render_file_diff,
)
from snapsync.progress import TermControl, COLOR_MODES
from snapsync.session import ChangeSession

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_command(msg, *args, **kwargs):
    """A wrapper for command subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": SNAPSYNC_SUBSYSTEM_COMMAND}, **kwargs)


def _read_text_file(path: str) -> str:
    """
    Read ``path`` as UTF-8 text.

    :param path: The file to read.
    :type path: ``str``
    :returns: The file content.
    :rtype: ``str``
    :raises SnapsyncNotFoundError: if ``path`` cannot be read.
    """
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return f.read()
    except FileNotFoundError as err:
        raise SnapsyncNotFoundError(f"File not found: {path}") from err
    except OSError as err:
        raise SnapsyncNotFoundError(f"Could not read {path}: {err}") from err


def _context_lines(cmd_args, config: SnapsyncConfig) -> int:
    context = cmd_args.context_lines
    if context is None:
        return config.context_lines
    if context < 0:
        raise SnapsyncArgumentError(f"Invalid context line count: {context}")
    return context


def diff_files(old_path: str, new_path: str, context_lines: int = 0, color="never"):
    """
    Compute and render the line diff between two files.

    :param old_path: Path to the old file.
    :type old_path: ``str``
    :param new_path: Path to the new file.
    :type new_path: ``str``
    :param context_lines: Context lines for a contextual diff (0 for a full
                          diff).
    :type context_lines: ``int``
    :param color: Colour mode: "auto", "always" or "never".
    :type color: ``str``
    :returns: The rendered diff.
    :rtype: ``str``
    """
    old_content = _read_text_file(old_path)
    new_content = _read_text_file(new_path)
    result = LineDiffEngine().calculate_line_diff(
        new_path, old_content, new_content, context_lines
    )
    return render_diff_result(result, TermControl(color=color))


def compare_dirs(
    old_dir: str,
    new_dir: str,
    options: DiffOptions,
    config: Optional[SnapsyncConfig] = None,
) -> ChangeSession:
    """
    Snapshot two directories and return a ``ChangeSession`` holding the
    classification of ``new_dir`` against ``old_dir``.

    :param old_dir: The baseline directory.
    :type old_dir: ``str``
    :param new_dir: The updated directory.
    :type new_dir: ``str``
    :param options: Snapshot options.
    :type options: ``DiffOptions``
    :param config: Snapsync configuration for the session.
    :type config: ``Optional[SnapsyncConfig]``
    :returns: A session with both snapshots loaded.
    :rtype: ``ChangeSession``
    """
    snapshots = [
        DirectorySnapshotProvider(root, options).get_snapshot()
        for root in (old_dir, new_dir)
    ]
    if options.apply_gitignore:
        snapshots = [filter_snapshot(snapshot) for snapshot in snapshots]
    session = ChangeSession(StaticSnapshotProvider(snapshots), config=config)
    session.load_snapshot()
    session.load_snapshot(force_refresh=True)
    return session


def _diff_cmd(cmd_args):
    """
    Diff files command handler.

    :param cmd_args: Command line arguments for the command
    :returns: integer status code returned from ``main()``
    """
    config = SnapsyncConfig.from_file(cmd_args.config)
    context = _context_lines(cmd_args, config)
    print(diff_files(cmd_args.old, cmd_args.new, context, cmd_args.color))
    return 0


def _changes_cmd(cmd_args):
    """
    Directory changes command handler.

    :param cmd_args: Command line arguments for the command
    :returns: integer status code returned from ``main()``
    """
    config = SnapsyncConfig.from_file(cmd_args.config)
    context = _context_lines(cmd_args, config)
    options = DiffOptions.from_cmd_args(cmd_args)
    _log_debug_command(
        "Comparing %s to %s with options:\n%s", cmd_args.old, cmd_args.new, options
    )

    session = compare_dirs(cmd_args.old, cmd_args.new, options, config)
    changes = session.get_changed_files()
    shown = {
        path: change
        for path, change in sorted(changes.items())
        if cmd_args.all or change.status != FileStatus.UNCHANGED
    }

    if cmd_args.json:
        output = {}
        for path, change in shown.items():
            entry = change.to_dict()
            if cmd_args.diff:
                result = session.get_file_diff(path, context_lines=context)
                entry["diff"] = result.to_dict() if result else None
            output[path] = entry
        print(dumps(output, indent=4))
    else:
        term_control = TermControl(color=cmd_args.color)
        print(
            render_change_summary(
                changes, term_control, include_unchanged=cmd_args.all
            )
        )
        if cmd_args.diff:
            for path, change in shown.items():
                if change.status == FileStatus.UNCHANGED:
                    continue
                print()
                print(render_file_diff(session, path, context, term_control))

    session.cleanup()
    return 0


#: Console log level selected by each ``-v`` count
_VERBOSE_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)

#: Debug option names accepted by ``--debug``
_DEBUG_OPTIONS = {
    "diff": SNAPSYNC_DEBUG_DIFF,
    "remote": SNAPSYNC_DEBUG_REMOTE,
    "session": SNAPSYNC_DEBUG_SESSION,
    "command": SNAPSYNC_DEBUG_COMMAND,
    "all": SNAPSYNC_DEBUG_ALL,
}


def setup_logging(cmd_args):
    """
    Install the snapsync console log handler at the level selected by
    the ``-v`` count in ``cmd_args``.
    """
    verbose = min(cmd_args.verbose or 0, len(_VERBOSE_LEVELS) - 1)
    level = _VERBOSE_LEVELS[verbose]

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(levelname)s - %(message)s"))
    handler.addFilter(SubsystemFilter("snapsync"))

    snapsync_log = logging.getLogger("snapsync")
    snapsync_log.setLevel(level)
    snapsync_log.handlers.clear()
    snapsync_log.addHandler(handler)


def shutdown_logging():
    """
    Flush and close snapsync log handlers.
    """
    logging.shutdown()


def set_debug(debug_arg):
    """
    Set the debug mask from a comma separated ``--debug`` argument.

    :raises ValueError: if an unknown debug option is named.
    """
    if not debug_arg:
        return
    mask = 0
    for name in debug_arg.split(","):
        if name not in _DEBUG_OPTIONS:
            raise ValueError(f"Unknown debug option: {name}")
        mask |= _DEBUG_OPTIONS[name]
    set_debug_mask(mask)


def _add_common_args(parser):
    parser.add_argument(
        "-U",
        "--unified",
        dest="context_lines",
        metavar="LINES",
        type=int,
        default=None,
        help="Show LINES lines of context around changes (0 for full diffs)",
    )
    parser.add_argument(
        "--color",
        choices=COLOR_MODES,
        default="auto",
        help="Control colored output",
    )


def _add_changes_args(parser):
    parser.add_argument(
        "--diff",
        action="store_true",
        help="Show line diffs for changed files",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output changes as JSON",
    )
    parser.add_argument(
        "-a",
        "--all",
        action="store_true",
        help="Include unchanged files in the output",
    )
    parser.add_argument(
        "-i",
        "--include",
        dest="file_patterns",
        metavar="PATTERN",
        action="append",
        help="Only include paths matching PATTERN (glob notation)",
    )
    parser.add_argument(
        "-x",
        "--exclude",
        dest="exclude_patterns",
        metavar="PATTERN",
        action="append",
        help="Exclude paths matching PATTERN (glob notation)",
    )
    parser.add_argument(
        "-f",
        "--file-types",
        dest="use_magic_file_type",
        action="store_true",
        help="Detect text files using libmagic",
    )
    parser.add_argument(
        "--no-gitignore",
        dest="apply_gitignore",
        action="store_false",
        help="Do not apply .gitignore rules to the snapshots",
    )


def main(args):
    """
    Main entry point for snapsync.
    """
    parser = ArgumentParser(description="Snapshot Sync", prog=basename(args[0]))

    # Global arguments
    parser.add_argument(
        "-d",
        "--debug",
        metavar="DEBUGOPTS",
        type=str,
        help="A list of debug options to enable",
    )
    parser.add_argument("-v", "--verbose", help="Enable verbose output", action="count")
    parser.add_argument(
        "-c",
        "--config",
        metavar="PATH",
        default=SNAPSYNC_CFG_PATH,
        help="Path to the snapsync configuration file",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        help="Report the version number of snapsync",
        version=__version__,
    )
    command_subparser = parser.add_subparsers(dest="command", help="Command")

    diff_parser = command_subparser.add_parser(
        "diff", help="Show the line diff between two files"
    )
    diff_parser.add_argument("old", metavar="OLD", help="The original file")
    diff_parser.add_argument("new", metavar="NEW", help="The updated file")
    _add_common_args(diff_parser)
    diff_parser.set_defaults(func=_diff_cmd)

    changes_parser = command_subparser.add_parser(
        "changes", help="Classify the changes between two directory snapshots"
    )
    changes_parser.add_argument("old", metavar="OLD_DIR", help="The baseline directory")
    changes_parser.add_argument("new", metavar="NEW_DIR", help="The updated directory")
    _add_common_args(changes_parser)
    _add_changes_args(changes_parser)
    changes_parser.set_defaults(func=_changes_cmd)

    cmd_args = parser.parse_args(args[1:])

    status = 1

    try:
        set_debug(cmd_args.debug)
    except ValueError as err:
        print(err)
        parser.print_help()
        return status

    setup_logging(cmd_args)

    _log_debug_command("Parsed %s", " ".join(args[1:]))

    if "func" not in cmd_args:
        parser.print_help()
        return status

    if cmd_args.debug:
        status = cmd_args.func(cmd_args)
    else:
        try:
            status = cmd_args.func(cmd_args)
        # pylint: disable=broad-except
        except KeyboardInterrupt:  # pragma: no cover
            _log_info("Exiting on user cancel")
        except Exception as err:
            _log_error("Command failed: %s", err)

    shutdown_logging()
    return status


def _main():
    """
    Console script entry point.
    """
    sys.exit(main(sys.argv))


# vim: set et ts=4 sw=4 :

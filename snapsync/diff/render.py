# Copyright Red Hat
#
# snapsync/diff/render.py - Snapshot sync diff rendering
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Terminal rendering of file previews, line diffs and change summaries.

These helpers are display only: failures are rendered as an inline error
message instead of being raised.
"""
from typing import Dict, Optional, TYPE_CHECKING
import logging

from snapsync.progress import TermControl

from .changes import FileChange
from .difftypes import FileStatus, LineType
from .linediff import DiffLine, DiffResult

if TYPE_CHECKING:
    from snapsync.session import ChangeSession

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

_STATUS_MARKERS = {
    FileStatus.ADDED: "A",
    FileStatus.MODIFIED: "M",
    FileStatus.DELETED: "D",
    FileStatus.UNCHANGED: " ",
}


def _status_color(status: FileStatus, tc: TermControl) -> str:
    return {
        FileStatus.ADDED: tc.GREEN,
        FileStatus.MODIFIED: tc.YELLOW,
        FileStatus.DELETED: tc.RED,
    }.get(status, "")


def render_diff_line(line: DiffLine, width: int, tc: Optional[TermControl]) -> str:
    """
    Render one ``DiffLine`` with its line number and prefix.

    :param line: The line to render.
    :type line: ``DiffLine``
    :param width: Width of the line number column.
    :type width: ``int``
    :param tc: An optional ``TermControl`` instance for colour output.
    :type tc: ``Optional[TermControl]``
    :returns: The rendered line.
    :rtype: ``str``
    """
    if line.is_marker:
        text = f"{'':>{width}}  {line.content}"
        return tc.CYAN + text + tc.NORMAL if tc else text

    text = f"{line.line_number:>{width}} {line}"
    if not tc:
        return text
    if line.type == LineType.ADDED:
        return tc.GREEN + text + tc.NORMAL
    if line.type == LineType.DELETED:
        return tc.RED + text + tc.NORMAL
    return text


def render_diff_result(result: DiffResult, tc: Optional[TermControl] = None) -> str:
    """
    Render a ``DiffResult`` as text with a one line header.

    :param result: The diff to render.
    :type result: ``DiffResult``
    :param tc: An optional ``TermControl`` instance for colour output.
    :type tc: ``Optional[TermControl]``
    :returns: The rendered diff.
    :rtype: ``str``
    """
    header = f"diff {result.path} (+{result.added} -{result.deleted})"
    if result.is_contextual:
        shown = sum(1 for line in result.changes if not line.is_marker)
        header += f" showing {shown} of {result.total_lines} lines"
    if tc:
        header = tc.BOLD + header + tc.NORMAL

    numbers = [line.line_number for line in result.changes if not line.is_marker]
    width = len(str(max(numbers))) if numbers else 1
    lines = [header]
    lines.extend(render_diff_line(line, width, tc) for line in result.changes)
    return "\n".join(lines)


def render_file_preview(session: "ChangeSession", path: str) -> str:
    """
    Render the current content of ``path``.

    :param session: The session holding the loaded snapshots.
    :type session: ``ChangeSession``
    :param path: The file path.
    :type path: ``str``
    :returns: The file content or an inline error message.
    :rtype: ``str``
    """
    try:
        content = session.get_file_content(path)
    except Exception as err:  # pylint: disable=broad-exception-caught
        _log_error("Error rendering preview of %s: %s", path, err)
        return f"Error loading file {path}: {err}"
    if not content:
        return f"File not found: {path}"
    return content


def render_file_diff(
    session: "ChangeSession",
    path: str,
    context_lines: int = 0,
    term_control: Optional[TermControl] = None,
) -> str:
    """
    Render the diff of ``path`` between the previous and current snapshot.

    :param session: The session holding the loaded snapshots.
    :type session: ``ChangeSession``
    :param path: The file path.
    :type path: ``str``
    :param context_lines: Context lines for a contextual diff (0 for a full
                          diff).
    :type context_lines: ``int``
    :param term_control: An optional ``TermControl`` instance for colour
                         output.
    :type term_control: ``Optional[TermControl]``
    :returns: The rendered diff or an inline message.
    :rtype: ``str``
    """
    try:
        result = session.get_file_diff(path, context_lines=context_lines)
        if not result:
            return f"No changes in file: {path}"
        return render_diff_result(result, term_control)
    except Exception as err:  # pylint: disable=broad-exception-caught
        _log_error("Error rendering diff of %s: %s", path, err)
        return f"Error creating diff for {path}: {err}"


def render_change_summary(
    changes: Dict[str, FileChange],
    term_control: Optional[TermControl] = None,
    include_unchanged: bool = False,
) -> str:
    """
    Render a one line per path summary of ``changes`` followed by a totals
    line.

    :param changes: A mapping of path to ``FileChange``.
    :type changes: ``Dict[str, FileChange]``
    :param term_control: An optional ``TermControl`` instance for colour
                         output.
    :type term_control: ``Optional[TermControl]``
    :param include_unchanged: Also list unchanged paths.
    :type include_unchanged: ``bool``
    :returns: The rendered summary.
    :rtype: ``str``
    """
    counts = {status: 0 for status in FileStatus}
    lines = []
    for path in sorted(changes):
        change = changes[path]
        counts[change.status] += 1
        if change.status == FileStatus.UNCHANGED and not include_unchanged:
            continue
        line = f" {_STATUS_MARKERS[change.status]} {path}"
        color = _status_color(change.status, term_control) if term_control else ""
        lines.append(color + line + term_control.NORMAL if color else line)

    changed = len(changes) - counts[FileStatus.UNCHANGED]
    lines.append(
        f" {changed} file{'s' if changed != 1 else ''} changed, "
        f"{counts[FileStatus.ADDED]} added, "
        f"{counts[FileStatus.MODIFIED]} modified, "
        f"{counts[FileStatus.DELETED]} deleted, "
        f"{counts[FileStatus.UNCHANGED]} unchanged"
    )
    return "\n".join(lines)

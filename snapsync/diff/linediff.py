# Copyright Red Hat
#
# snapsync/diff/linediff.py - Snapshot sync line diff engine
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Line-level diff engine.

Computes a minimal edit script between two text blobs using a longest
common subsequence (LCS) alignment of their lines. Lines are compared
literally: no whitespace or line ending normalisation is applied.
"""
from typing import Any, Dict, List, Optional
from datetime import datetime
import logging

from snapsync import SNAPSYNC_SUBSYSTEM_DIFF

from .difftypes import LineType

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_diff(msg, *args, **kwargs):
    """A wrapper for diff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": SNAPSYNC_SUBSYSTEM_DIFF}, **kwargs)


#: Line number used for synthetic "lines skipped" marker lines
SKIPPED_LINE_NUMBER = -1


class DiffLine:
    """
    A single line of an edit script.

    ``line_number`` is 1-based and counts lines of the new text for
    ``ADDED`` and ``UNCHANGED`` lines, and lines of the old text for
    ``DELETED`` lines. Because of this an added and a deleted line may share
    a line number: rendering order is the order of the ``changes`` list.
    """

    __slots__ = ("type", "content", "line_number")

    def __init__(self, line_type: LineType, content: str, line_number: int):
        """
        Initialise a new ``DiffLine``.

        :param line_type: The line type.
        :type line_type: ``LineType``
        :param content: The line text without its line terminator.
        :type content: ``str``
        :param line_number: The 1-based line number, or
                            ``SKIPPED_LINE_NUMBER`` for a marker line.
        :type line_number: ``int``
        """
        self.type = line_type
        self.content = content
        self.line_number = line_number

    def __eq__(self, other):
        if not isinstance(other, DiffLine):
            return NotImplemented
        return (self.type, self.content, self.line_number) == (
            other.type,
            other.content,
            other.line_number,
        )

    def __hash__(self):
        return hash((self.type, self.content, self.line_number))

    def __repr__(self):
        return f"DiffLine({self.type}, {self.content!r}, {self.line_number})"

    def __str__(self):
        prefix = {LineType.ADDED: "+", LineType.DELETED: "-"}.get(self.type, " ")
        return f"{prefix}{self.content}"

    @property
    def is_marker(self) -> bool:
        """
        ``True`` if this is a synthetic "lines skipped" marker.
        """
        return self.line_number == SKIPPED_LINE_NUMBER

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``DiffLine`` into a dictionary suitable for encoding as
        JSON.

        :rtype: ``Dict[str, Any]``
        """
        return {
            "type": self.type.value,
            "content": self.content,
            "line_number": self.line_number,
        }


class DiffResult:
    """
    The edit script for one path, optionally compressed to a contextual view.
    """

    def __init__(
        self,
        path: str,
        changes: List[DiffLine],
        is_contextual: Optional[bool] = None,
        total_lines: Optional[int] = None,
        auth_method: Optional[str] = None,
        generated_at: Optional[datetime] = None,
    ):
        """
        Initialise a new ``DiffResult``.

        :param path: The path this diff describes.
        :type path: ``str``
        :param changes: The ordered edit script.
        :type changes: ``List[DiffLine]``
        :param is_contextual: ``True`` for a contextual (compressed) view.
        :type is_contextual: ``Optional[bool]``
        :param total_lines: Length of the full edit script for a contextual
                            view.
        :type total_lines: ``Optional[int]``
        :param auth_method: Authentication method tag for remote diffs.
        :type auth_method: ``Optional[str]``
        :param generated_at: Generation time.
        :type generated_at: ``Optional[datetime]``
        """
        self.path = path
        self.changes = changes
        self.is_contextual = is_contextual
        self.total_lines = total_lines
        self.auth_method = auth_method
        self.generated_at = generated_at

    def __repr__(self):
        return f"DiffResult({self.path!r}, [...{len(self.changes)} lines])"

    def _count(self, line_type: LineType) -> int:
        return sum(
            1 for c in self.changes if c.type == line_type and not c.is_marker
        )

    @property
    def added(self) -> int:
        """
        Number of added lines.
        """
        return self._count(LineType.ADDED)

    @property
    def deleted(self) -> int:
        """
        Number of deleted lines.
        """
        return self._count(LineType.DELETED)

    @property
    def unchanged(self) -> int:
        """
        Number of unchanged lines, excluding skip markers.
        """
        return self._count(LineType.UNCHANGED)

    @property
    def has_changes(self) -> bool:
        """
        ``True`` if any line was added or deleted.
        """
        return any(c.type != LineType.UNCHANGED for c in self.changes)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``DiffResult`` into a dictionary suitable for encoding
        as JSON. Unset optional fields are omitted.

        :rtype: ``Dict[str, Any]``
        """
        result: Dict[str, Any] = {
            "path": self.path,
            "changes": [c.to_dict() for c in self.changes],
        }
        if self.is_contextual is not None:
            result["is_contextual"] = self.is_contextual
        if self.total_lines is not None:
            result["total_lines"] = self.total_lines
        if self.auth_method is not None:
            result["auth_method"] = self.auth_method
        if self.generated_at is not None:
            result["generated_at"] = self.generated_at.isoformat()
        return result


def split_lines(content: str) -> List[str]:
    """
    Split ``content`` on newline characters. An empty string yields one
    empty line, and a trailing newline yields a trailing empty line.

    :param content: The text to split.
    :type content: ``str``
    :rtype: ``List[str]``
    """
    return content.split("\n")


class LineDiffEngine:
    """
    LCS based line differ.
    """

    @staticmethod
    def build_lcs_matrix(old_lines: List[str], new_lines: List[str]) -> List[List[int]]:
        """
        Build the (m+1) x (n+1) LCS length matrix for two line sequences.

        :param old_lines: Lines of the old text.
        :type old_lines: ``List[str]``
        :param new_lines: Lines of the new text.
        :type new_lines: ``List[str]``
        :returns: ``matrix[i][j]`` is the LCS length of ``old_lines[:i]`` and
                  ``new_lines[:j]``.
        :rtype: ``List[List[int]]``
        """
        cols = len(new_lines) + 1
        matrix = [[0] * cols]
        for i in range(1, len(old_lines) + 1):
            prev = matrix[i - 1]
            row = [0] * cols
            old_line = old_lines[i - 1]
            for j in range(1, cols):
                if old_line == new_lines[j - 1]:
                    row[j] = prev[j - 1] + 1
                else:
                    row[j] = max(prev[j], row[j - 1])
            matrix.append(row)
        return matrix

    @staticmethod
    def backtrack(
        matrix: List[List[int]], old_lines: List[str], new_lines: List[str]
    ) -> List[DiffLine]:
        """
        Walk ``matrix`` from (m, n) back to (0, 0) and return the edit script
        in document order.

        Equal lines are unchanged. Otherwise an insertion is preferred when
        its LCS value is at least that of the deletion.

        :param matrix: The LCS matrix from ``build_lcs_matrix()``.
        :type matrix: ``List[List[int]]``
        :param old_lines: Lines of the old text.
        :type old_lines: ``List[str]``
        :param new_lines: Lines of the new text.
        :type new_lines: ``List[str]``
        :rtype: ``List[DiffLine]``
        """
        changes: List[DiffLine] = []
        i, j = len(old_lines), len(new_lines)
        while i > 0 or j > 0:
            if i > 0 and j > 0 and old_lines[i - 1] == new_lines[j - 1]:
                changes.append(DiffLine(LineType.UNCHANGED, new_lines[j - 1], j))
                i -= 1
                j -= 1
            elif j > 0 and (i == 0 or matrix[i][j - 1] >= matrix[i - 1][j]):
                changes.append(DiffLine(LineType.ADDED, new_lines[j - 1], j))
                j -= 1
            else:
                changes.append(DiffLine(LineType.DELETED, old_lines[i - 1], i))
                i -= 1
        changes.reverse()
        return changes

    def diff(self, old_content: str, new_content: str) -> List[DiffLine]:
        """
        Compute the edit script transforming ``old_content`` into
        ``new_content``.

        The script is stable-sorted by line number so that added and
        unchanged lines (new numbering) interleave with deleted lines (old
        numbering) in document order.

        :param old_content: The old text.
        :type old_content: ``str``
        :param new_content: The new text.
        :type new_content: ``str``
        :rtype: ``List[DiffLine]``
        """
        old_lines = split_lines(old_content)
        new_lines = split_lines(new_content)
        matrix = self.build_lcs_matrix(old_lines, new_lines)
        changes = self.backtrack(matrix, old_lines, new_lines)
        changes.sort(key=lambda change: change.line_number)
        _log_debug_diff(
            "Computed line diff of %d/%d lines (LCS=%d)",
            len(old_lines),
            len(new_lines),
            matrix[-1][-1],
        )
        return changes

    def calculate_line_diff(
        self,
        path: str,
        old_content: str,
        new_content: str,
        context_lines: int = 0,
    ) -> DiffResult:
        """
        Calculate the line diff of ``path`` between two versions, compressing
        it to a contextual view when ``context_lines`` is positive.

        :param path: The file path.
        :type path: ``str``
        :param old_content: The old file content.
        :type old_content: ``str``
        :param new_content: The new file content.
        :type new_content: ``str``
        :param context_lines: Context lines around changes (0 for a full
                              diff).
        :type context_lines: ``int``
        :rtype: ``DiffResult``
        """
        # pylint: disable=import-outside-toplevel
        from .context import ContextualCompressor

        result = DiffResult(path, self.diff(old_content, new_content))
        if context_lines > 0:
            return ContextualCompressor().compress(result, context_lines)
        return result


def whole_file_diff(path: str, content: str, line_type: LineType) -> DiffResult:
    """
    Return a diff marking every line of ``content`` with ``line_type``, for
    added or deleted files.

    :param path: The file path.
    :type path: ``str``
    :param content: The file content.
    :type content: ``str``
    :param line_type: ``LineType.ADDED`` or ``LineType.DELETED``.
    :type line_type: ``LineType``
    :rtype: ``DiffResult``
    """
    lines = split_lines(content)
    return DiffResult(
        path,
        [DiffLine(line_type, line, index + 1) for index, line in enumerate(lines)],
    )


def apply_diff_lines(old_content: str, changes: List[DiffLine]) -> str:
    """
    Reconstruct the new text from ``old_content`` and a full edit script:
    deleted lines are removed from the old text and added lines inserted at
    their reported new line numbers.

    :param old_content: The old text.
    :type old_content: ``str``
    :param changes: A full (non-contextual) edit script.
    :type changes: ``List[DiffLine]``
    :returns: The new text.
    :rtype: ``str``
    """
    deleted = {c.line_number for c in changes if c.type == LineType.DELETED}
    lines = [
        line
        for number, line in enumerate(split_lines(old_content), start=1)
        if number not in deleted
    ]
    for change in sorted(
        (c for c in changes if c.type == LineType.ADDED), key=lambda c: c.line_number
    ):
        lines.insert(change.line_number - 1, change.content)
    return "\n".join(lines)

# Copyright Red Hat
#
# snapsync/diff/context.py - Snapshot sync contextual diffs
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Contextual diff compression.

Reduces a full edit script to its changed regions ("hunks") plus a number
of surrounding context lines, with a marker line wherever lines were
skipped.
"""
from typing import List, Tuple
import logging

from snapsync import SNAPSYNC_SUBSYSTEM_DIFF

from .difftypes import LineType
from .linediff import DiffLine, DiffResult, SKIPPED_LINE_NUMBER

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_diff(msg, *args, **kwargs):
    """A wrapper for diff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": SNAPSYNC_SUBSYSTEM_DIFF}, **kwargs)


#: Inclusive (start, end) index range into an edit script
Range = Tuple[int, int]


def skipped_marker(count: int) -> DiffLine:
    """
    Return a synthetic marker line standing in for ``count`` skipped lines.

    :param count: The number of skipped lines.
    :type count: ``int``
    :rtype: ``DiffLine``
    """
    plural = "s" if count != 1 else ""
    return DiffLine(
        LineType.UNCHANGED, f"... {count} line{plural} skipped ...", SKIPPED_LINE_NUMBER
    )


class ContextualCompressor:
    """
    Compress full edit scripts into contextual views.
    """

    @staticmethod
    def find_hunks(changes: List[DiffLine]) -> List[Range]:
        """
        Find the maximal runs of added or deleted lines in ``changes``.

        :param changes: A full edit script.
        :type changes: ``List[DiffLine]``
        :returns: Inclusive index ranges of each hunk in order.
        :rtype: ``List[Range]``
        """
        hunks: List[Range] = []
        start = None
        for index, change in enumerate(changes):
            if change.type != LineType.UNCHANGED:
                if start is None:
                    start = index
            elif start is not None:
                hunks.append((start, index - 1))
                start = None
        if start is not None:
            hunks.append((start, len(changes) - 1))
        return hunks

    @staticmethod
    def expand_ranges(hunks: List[Range], context_lines: int, length: int) -> List[Range]:
        """
        Widen each hunk by ``context_lines`` in both directions, clipped to
        ``[0, length - 1]``.

        :param hunks: Hunk ranges from ``find_hunks()``.
        :type hunks: ``List[Range]``
        :param context_lines: Context lines to add on each side.
        :type context_lines: ``int``
        :param length: Length of the edit script.
        :type length: ``int``
        :rtype: ``List[Range]``
        """
        return [
            (max(0, start - context_lines), min(length - 1, end + context_lines))
            for start, end in hunks
        ]

    @staticmethod
    def merge_ranges(ranges: List[Range]) -> List[Range]:
        """
        Merge ordered ranges that overlap or touch.

        :param ranges: Ranges ordered by start index.
        :type ranges: ``List[Range]``
        :rtype: ``List[Range]``
        """
        merged: List[Range] = []
        for start, end in ranges:
            if merged and start <= merged[-1][1] + 1:
                merged[-1] = (merged[-1][0], max(merged[-1][1], end))
            else:
                merged.append((start, end))
        return merged

    def compress(self, result: DiffResult, context_lines: int) -> DiffResult:
        """
        Compress ``result`` to hunks plus ``context_lines`` lines of context.

        A non-positive ``context_lines`` returns ``result`` unmodified. If
        ``result`` has no changes at all a preview of its first
        ``2 * context_lines`` lines is returned instead.

        :param result: The full diff.
        :type result: ``DiffResult``
        :param context_lines: Context lines around each hunk.
        :type context_lines: ``int``
        :returns: A new contextual ``DiffResult``.
        :rtype: ``DiffResult``
        """
        if context_lines <= 0:
            return result

        changes = result.changes
        total = len(changes)
        hunks = self.find_hunks(changes)

        if not hunks:
            compressed = list(changes[: 2 * context_lines])
        else:
            ranges = self.merge_ranges(
                self.expand_ranges(hunks, context_lines, total)
            )
            compressed: List[DiffLine] = []
            for index, (start, end) in enumerate(ranges):
                if index > 0:
                    skipped = start - ranges[index - 1][1] - 1
                    if skipped > 0:
                        compressed.append(skipped_marker(skipped))
                compressed.extend(changes[start : end + 1])

            _log_debug_diff(
                "Compressed %s: %d hunks in %d ranges, %d of %d lines",
                result.path,
                len(hunks),
                len(ranges),
                len(compressed),
                total,
            )

        return DiffResult(
            result.path,
            compressed,
            is_contextual=True,
            total_lines=total,
            auth_method=result.auth_method,
            generated_at=result.generated_at,
        )

# Copyright Red Hat
#
# tests/diff/test_context.py - Contextual diff tests.
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from datetime import datetime

from snapsync.diff.context import ContextualCompressor, skipped_marker
from snapsync.diff.linediff import DiffLine, DiffResult, LineDiffEngine, SKIPPED_LINE_NUMBER

from ._util import ADDED, DELETED, UNCHANGED, is_subsequence, triples


def _numbered(count, replace=None):
    lines = [str(i) for i in range(1, count + 1)]
    for old, new in (replace or {}).items():
        lines[old - 1] = new
    return "\n".join(lines)


class TestContextualCompressor(unittest.TestCase):
    def setUp(self):
        self.compressor = ContextualCompressor()
        self.engine = LineDiffEngine()

    def _full(self, old, new, path="f.txt"):
        return DiffResult(path, self.engine.diff(old, new))

    def test_skipped_marker_text(self):
        one = skipped_marker(1)
        self.assertEqual(one.content, "... 1 line skipped ...")
        self.assertEqual(one.type, UNCHANGED)
        self.assertEqual(one.line_number, SKIPPED_LINE_NUMBER)
        self.assertTrue(one.is_marker)
        self.assertEqual(skipped_marker(4).content, "... 4 lines skipped ...")

    def test_find_hunks(self):
        changes = [
            DiffLine(UNCHANGED, "a", 1),
            DiffLine(DELETED, "b", 2),
            DiffLine(ADDED, "B", 2),
            DiffLine(UNCHANGED, "c", 3),
            DiffLine(ADDED, "d", 4),
        ]
        self.assertEqual(ContextualCompressor.find_hunks(changes), [(1, 2), (4, 4)])
        self.assertEqual(ContextualCompressor.find_hunks(changes[:1]), [])
        self.assertEqual(ContextualCompressor.find_hunks([]), [])

    def test_expand_ranges_clips(self):
        self.assertEqual(
            ContextualCompressor.expand_ranges([(1, 2), (8, 9)], 3, 10),
            [(0, 5), (5, 9)],
        )

    def test_merge_ranges(self):
        self.assertEqual(
            ContextualCompressor.merge_ranges([(0, 3), (4, 6), (9, 12), (10, 11)]),
            [(0, 6), (9, 12)],
        )
        self.assertEqual(ContextualCompressor.merge_ranges([(0, 1), (3, 4)]), [(0, 1), (3, 4)])
        self.assertEqual(ContextualCompressor.merge_ranges([]), [])

    def test_zero_context_returns_full_result(self):
        full = self._full("a\nb", "a\nc")
        self.assertIs(self.compressor.compress(full, 0), full)
        self.assertIs(self.compressor.compress(full, -1), full)

    def test_single_hunk_with_context(self):
        full = self._full(_numbered(20), _numbered(20, {10: "ten"}))
        result = self.compressor.compress(full, 2)
        self.assertTrue(result.is_contextual)
        self.assertEqual(result.total_lines, 21)
        self.assertEqual(
            triples(result.changes),
            [
                (UNCHANGED, "8", 8),
                (UNCHANGED, "9", 9),
                (DELETED, "10", 10),
                (ADDED, "ten", 10),
                (UNCHANGED, "11", 11),
                (UNCHANGED, "12", 12),
            ],
        )

    def test_distant_hunks_get_marker(self):
        full = self._full(_numbered(30), _numbered(30, {5: "five", 25: "twenty-five"}))
        result = self.compressor.compress(full, 1)
        markers = [c for c in result.changes if c.is_marker]
        self.assertEqual(len(markers), 1)
        # Lines 7..22 are hidden between the two ranges.
        self.assertEqual(markers[0].content, "... 16 lines skipped ...")
        self.assertEqual(result.added, 2)
        self.assertEqual(result.deleted, 2)

    def test_nearby_hunks_merge(self):
        full = self._full(_numbered(12), _numbered(12, {4: "four", 7: "seven"}))
        result = self.compressor.compress(full, 2)
        self.assertFalse(any(c.is_marker for c in result.changes))
        self.assertEqual(result.changes[0].content, "2")
        self.assertEqual(result.changes[-1].content, "9")

    def test_no_changes_previews_leading_lines(self):
        full = self._full(_numbered(10), _numbered(10))
        result = self.compressor.compress(full, 3)
        self.assertEqual([c.content for c in result.changes], ["1", "2", "3", "4", "5", "6"])
        self.assertTrue(result.is_contextual)
        self.assertEqual(result.total_lines, 10)

    def test_compressed_is_subsequence_of_full(self):
        full = self._full(
            _numbered(40), _numbered(40, {2: "b", 15: "o", 16: "p", 33: "g"})
        )
        for context in (1, 2, 3, 5, 50):
            with self.subTest(context=context):
                result = self.compressor.compress(full, context)
                real = [c for c in result.changes if not c.is_marker]
                self.assertTrue(is_subsequence(real, full.changes))
                self.assertEqual(result.added, full.added)
                self.assertEqual(result.deleted, full.deleted)

    def test_large_context_keeps_everything(self):
        full = self._full(_numbered(5), _numbered(5, {3: "three"}))
        result = self.compressor.compress(full, 100)
        self.assertEqual(result.changes, full.changes)
        self.assertTrue(result.is_contextual)

    def test_metadata_carried(self):
        when = datetime(2024, 5, 6)
        full = DiffResult(
            "p",
            self.engine.diff("a\nb", "a\nc"),
            auth_method="github_app",
            generated_at=when,
        )
        result = self.compressor.compress(full, 1)
        self.assertEqual(result.path, "p")
        self.assertEqual(result.auth_method, "github_app")
        self.assertEqual(result.generated_at, when)

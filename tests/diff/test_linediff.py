# Copyright Red Hat
#
# tests/diff/test_linediff.py - Line diff engine tests.
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from datetime import datetime

from snapsync.diff.linediff import (
    DiffLine,
    DiffResult,
    LineDiffEngine,
    SKIPPED_LINE_NUMBER,
    apply_diff_lines,
    split_lines,
    whole_file_diff,
)

from ._util import ADDED, DELETED, UNCHANGED, lines_of, triples

_PAIRS = [
    ("a\nb\nc", "a\nb\nc"),
    ("a\nb", "a\nb\nc"),
    ("a\nb\nc", "a\nc"),
    ("", ""),
    ("", "x\ny"),
    ("x\ny", ""),
    ("a", "b"),
    ("x\ny", "y\nx"),
    ("one\ntwo\nthree\n", "zero\none\nthree\nfour\n"),
    ("1\n2\n3\n4\n5\n6", "1\n2\nthree\n4\n6\n7"),
    ("a\r\nb\r\n", "a\nb\n"),
    ("  indented\n\nblank", "indented\n\n\nblank"),
]


class TestLineDiffEngine(unittest.TestCase):
    def setUp(self):
        self.engine = LineDiffEngine()

    def test_split_lines(self):
        self.assertEqual(split_lines(""), [""])
        self.assertEqual(split_lines("a\n"), ["a", ""])
        self.assertEqual(split_lines("a\nb"), ["a", "b"])

    def test_identical_content(self):
        changes = self.engine.diff("a\nb\nc", "a\nb\nc")
        self.assertEqual(
            triples(changes),
            [(UNCHANGED, "a", 1), (UNCHANGED, "b", 2), (UNCHANGED, "c", 3)],
        )

    def test_appended_line(self):
        changes = self.engine.diff("a\nb", "a\nb\nc")
        self.assertEqual(
            triples(changes),
            [(UNCHANGED, "a", 1), (UNCHANGED, "b", 2), (ADDED, "c", 3)],
        )

    def test_deleted_line(self):
        changes = self.engine.diff("a\nb\nc", "a\nc")
        self.assertEqual(
            triples(changes),
            [(UNCHANGED, "a", 1), (DELETED, "b", 2), (UNCHANGED, "c", 2)],
        )

    def test_empty_against_empty(self):
        changes = self.engine.diff("", "")
        self.assertEqual(triples(changes), [(UNCHANGED, "", 1)])

    def test_replaced_line_orders_deletion_first(self):
        changes = self.engine.diff("a", "b")
        self.assertEqual(triples(changes), [(DELETED, "a", 1), (ADDED, "b", 1)])

    def test_ties_break_toward_insertion(self):
        # Both "x" and "y" are a valid LCS: preferring insertion keeps "y".
        changes = self.engine.diff("x\ny", "y\nx")
        self.assertEqual(
            triples(changes),
            [(DELETED, "x", 1), (UNCHANGED, "y", 1), (ADDED, "x", 2)],
        )

    def test_lines_compared_literally(self):
        changes = self.engine.diff("a \nb", "a\nb")
        self.assertEqual(lines_of(changes, DELETED), ["a "])
        self.assertEqual(lines_of(changes, ADDED), ["a"])
        self.assertEqual(lines_of(changes, UNCHANGED), ["b"])

    def test_build_lcs_matrix(self):
        old = ["a", "b", "c", "d"]
        new = ["a", "c", "d", "e"]
        matrix = LineDiffEngine.build_lcs_matrix(old, new)
        self.assertEqual(len(matrix), len(old) + 1)
        self.assertEqual(len(matrix[0]), len(new) + 1)
        self.assertEqual(matrix[-1][-1], 3)
        self.assertEqual(matrix[0], [0] * (len(new) + 1))

    def test_round_trip_unchanged(self):
        for content in ("", "a", "a\nb\n", "\n\n", "x\r\ny", "one\n\ttwo\n  three"):
            with self.subTest(content=content):
                changes = self.engine.diff(content, content)
                self.assertTrue(all(c.type == UNCHANGED for c in changes))
                self.assertEqual("\n".join(c.content for c in changes), content)

    def test_diff_correctness(self):
        for old, new in _PAIRS:
            with self.subTest(old=old, new=new):
                changes = self.engine.diff(old, new)
                self.assertEqual(apply_diff_lines(old, changes), new)

    def test_minimal_edit_script(self):
        for old, new in _PAIRS:
            with self.subTest(old=old, new=new):
                old_lines, new_lines = split_lines(old), split_lines(new)
                lcs = LineDiffEngine.build_lcs_matrix(old_lines, new_lines)[-1][-1]
                changes = self.engine.diff(old, new)
                self.assertEqual(len(lines_of(changes, UNCHANGED)), lcs)
                self.assertEqual(len(lines_of(changes, ADDED)), len(new_lines) - lcs)
                self.assertEqual(len(lines_of(changes, DELETED)), len(old_lines) - lcs)

    def test_deletion_addition_symmetry(self):
        pairs = [
            ("a\nb\nc", "a\nc"),
            ("a\nb", "a\nb\nc\nd"),
            ("1\n2\n3\n4", "1\n3\n4\n5"),
            ("a\nb\nc", "x\ny\nz"),
        ]
        for a, b in pairs:
            with self.subTest(a=a, b=b):
                forward = self.engine.diff(a, b)
                backward = self.engine.diff(b, a)
                self.assertEqual(lines_of(forward, DELETED), lines_of(backward, ADDED))
                self.assertEqual(lines_of(forward, ADDED), lines_of(backward, DELETED))

    def test_unchanged_lines_are_subsequence_of_both(self):
        changes = self.engine.diff("1\n2\n3\n4\n5\n6", "1\n2\nthree\n4\n6\n7")
        self.assertEqual(lines_of(changes, UNCHANGED), ["1", "2", "4", "6"])
        self.assertEqual(lines_of(changes, DELETED), ["3", "5"])
        self.assertEqual(lines_of(changes, ADDED), ["three", "7"])

    def test_output_sorted_by_line_number(self):
        for old, new in _PAIRS:
            with self.subTest(old=old, new=new):
                numbers = [c.line_number for c in self.engine.diff(old, new)]
                self.assertEqual(numbers, sorted(numbers))

    def test_long_input_does_not_recurse(self):
        old = "\n".join(f"line {i}" for i in range(1500))
        new = old.replace("line 700\n", "line 700 changed\n")
        changes = self.engine.diff(old, new)
        self.assertEqual(lines_of(changes, DELETED), ["line 700"])
        self.assertEqual(lines_of(changes, ADDED), ["line 700 changed"])
        self.assertEqual(apply_diff_lines(old, changes), new)

    def test_calculate_line_diff_full(self):
        result = self.engine.calculate_line_diff("f.txt", "a\nb", "a\nc")
        self.assertEqual(result.path, "f.txt")
        self.assertIsNone(result.is_contextual)
        self.assertIsNone(result.total_lines)
        self.assertEqual((result.added, result.deleted, result.unchanged), (1, 1, 1))
        self.assertTrue(result.has_changes)

    def test_calculate_line_diff_zero_and_negative_context(self):
        for context in (0, -3):
            with self.subTest(context=context):
                result = self.engine.calculate_line_diff("f", "a\nb", "a\nc", context)
                self.assertIsNone(result.is_contextual)
                self.assertEqual(len(result.changes), 3)

    def test_calculate_line_diff_contextual(self):
        old = "\n".join(str(i) for i in range(1, 21))
        new = old.replace("10", "ten")
        result = self.engine.calculate_line_diff("n.txt", old, new, 2)
        self.assertTrue(result.is_contextual)
        self.assertEqual(result.total_lines, 21)


class TestDiffLine(unittest.TestCase):
    def test_str_prefixes(self):
        self.assertEqual(str(DiffLine(ADDED, "x", 1)), "+x")
        self.assertEqual(str(DiffLine(DELETED, "x", 1)), "-x")
        self.assertEqual(str(DiffLine(UNCHANGED, "x", 1)), " x")

    def test_equality_and_marker(self):
        self.assertEqual(DiffLine(ADDED, "x", 1), DiffLine(ADDED, "x", 1))
        self.assertNotEqual(DiffLine(ADDED, "x", 1), DiffLine(DELETED, "x", 1))
        self.assertTrue(DiffLine(UNCHANGED, "...", SKIPPED_LINE_NUMBER).is_marker)
        self.assertFalse(DiffLine(UNCHANGED, "...", 1).is_marker)

    def test_to_dict(self):
        self.assertEqual(
            DiffLine(DELETED, "gone", 4).to_dict(),
            {"type": "deleted", "content": "gone", "line_number": 4},
        )


class TestDiffResult(unittest.TestCase):
    def test_to_dict_omits_unset_fields(self):
        result = DiffResult("p", [DiffLine(ADDED, "x", 1)])
        self.assertEqual(
            result.to_dict(),
            {"path": "p", "changes": [{"type": "added", "content": "x", "line_number": 1}]},
        )

    def test_to_dict_with_metadata(self):
        when = datetime(2024, 1, 2, 3, 4, 5)
        result = DiffResult(
            "p", [], is_contextual=True, total_lines=7, auth_method="pat", generated_at=when
        )
        value = result.to_dict()
        self.assertTrue(value["is_contextual"])
        self.assertEqual(value["total_lines"], 7)
        self.assertEqual(value["auth_method"], "pat")
        self.assertEqual(value["generated_at"], "2024-01-02T03:04:05")

    def test_counts_ignore_markers(self):
        result = DiffResult(
            "p",
            [
                DiffLine(UNCHANGED, "a", 1),
                DiffLine(UNCHANGED, "... 3 lines skipped ...", SKIPPED_LINE_NUMBER),
                DiffLine(ADDED, "b", 5),
            ],
        )
        self.assertEqual(result.unchanged, 1)
        self.assertEqual(result.added, 1)


class TestWholeFileDiff(unittest.TestCase):
    def test_added_file(self):
        result = whole_file_diff("new.txt", "a\nb", ADDED)
        self.assertEqual(triples(result.changes), [(ADDED, "a", 1), (ADDED, "b", 2)])

    def test_deleted_file(self):
        result = whole_file_diff("old.txt", "x\n", DELETED)
        self.assertEqual(triples(result.changes), [(DELETED, "x", 1), (DELETED, "", 2)])

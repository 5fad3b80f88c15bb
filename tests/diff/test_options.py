# Copyright Red Hat
#
# tests/diff/test_options.py - Diff options tests.
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from argparse import Namespace

from snapsync.diff.options import DiffOptions


class TestDiffOptions(unittest.TestCase):
    def test_defaults(self):
        options = DiffOptions()
        self.assertEqual(options.context_lines, 0)
        self.assertFalse(options.use_magic_file_type)
        self.assertEqual(options.file_patterns, ())
        self.assertTrue(options.apply_gitignore)

    def test_from_cmd_args(self):
        args = Namespace(
            context_lines=None,
            use_magic_file_type=True,
            file_patterns=["*.py", "*.md"],
            exclude_patterns=None,
            apply_gitignore=False,
            unrelated="ignored",
        )
        options = DiffOptions.from_cmd_args(args)
        self.assertEqual(options.context_lines, 0)
        self.assertTrue(options.use_magic_file_type)
        self.assertEqual(options.file_patterns, ("*.py", "*.md"))
        self.assertEqual(options.exclude_patterns, ())
        self.assertFalse(options.apply_gitignore)
        self.assertEqual(options.max_file_size, DiffOptions().max_file_size)

    def test_str(self):
        text = str(DiffOptions(file_patterns=("a", "b")))
        self.assertIn("file_patterns=a b", text)
        self.assertIn("context_lines=0", text)

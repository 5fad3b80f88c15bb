# Copyright Red Hat
#
# tests/diff/test_snapshot.py - Directory snapshot tests.
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
import os
import tempfile
import unittest

from snapsync import SnapsyncNotFoundError
from snapsync.diff.options import DiffOptions
from snapsync.diff.snapshot import DirectorySnapshotProvider

from ._util import write_tree


class TestDirectorySnapshotProvider(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def test_reads_text_files(self):
        write_tree(
            self.root,
            {"a.txt": "alpha\n", "src/b.py": "print('b')\n", "src/deep/c.md": "# c"},
        )
        snapshot = DirectorySnapshotProvider(self.root).get_snapshot()
        self.assertEqual(
            snapshot,
            {"a.txt": "alpha\n", "src/b.py": "print('b')\n", "src/deep/c.md": "# c"},
        )

    def test_skips_binary_files(self):
        write_tree(
            self.root,
            {"text.txt": "hello", "blob.bin": b"\x00\x01\x02", "image.png": b"PNG"},
        )
        snapshot = DirectorySnapshotProvider(self.root).get_snapshot()
        self.assertEqual(list(snapshot), ["text.txt"])

    def test_skips_git_directory(self):
        write_tree(self.root, {".git/HEAD": "ref: refs/heads/main\n", "a": "1"})
        self.assertEqual(DirectorySnapshotProvider(self.root).get_snapshot(), {"a": "1"})

    def test_include_and_exclude_patterns(self):
        write_tree(self.root, {"a.py": "a", "b.py": "b", "c.txt": "c"})
        options = DiffOptions(file_patterns=("*.py",), exclude_patterns=("b.*",))
        snapshot = DirectorySnapshotProvider(self.root, options).get_snapshot()
        self.assertEqual(snapshot, {"a.py": "a"})

    def test_max_file_size(self):
        write_tree(self.root, {"small": "x", "large": "y" * 100})
        options = DiffOptions(max_file_size=10)
        snapshot = DirectorySnapshotProvider(self.root, options).get_snapshot()
        self.assertEqual(snapshot, {"small": "x"})

    def test_empty_file_included(self):
        write_tree(self.root, {"empty": ""})
        self.assertEqual(DirectorySnapshotProvider(self.root).get_snapshot(), {"empty": ""})

    def test_missing_root(self):
        provider = DirectorySnapshotProvider(os.path.join(self.root, "missing"))
        with self.assertRaises(SnapsyncNotFoundError):
            provider.get_snapshot()

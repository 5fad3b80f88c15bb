# Copyright Red Hat
#
# tests/test_session.py - Change session tests.
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest

from snapsync import SnapsyncArgumentError
from snapsync.config import SnapsyncConfig
from snapsync.diff.difftypes import FileStatus
from snapsync.diff.snapshot import StaticSnapshotProvider
from snapsync.remote.auth import AuthMethod
from snapsync.remote.orchestrator import ComparisonOptions
from snapsync.session import CacheInvalidationSource, ChangeSession

from .remote._util import FakeClient, FakeFactory


def _session(*snapshots, **kwargs):
    return ChangeSession(StaticSnapshotProvider(snapshots), **kwargs)


class TestCacheInvalidationSource(unittest.TestCase):
    def test_register_notify_remove(self):
        source = CacheInvalidationSource()
        seen = []
        source.on_refresh_needed(seen.append)
        source.on_refresh_needed(seen.append)
        self.assertEqual(len(source), 1)
        source.notify_refresh("proj-1")
        self.assertEqual(seen, ["proj-1"])
        source.remove_refresh_callback(seen.append)
        source.remove_refresh_callback(seen.append)
        source.notify_refresh("proj-2")
        self.assertEqual(seen, ["proj-1"])
        self.assertEqual(len(source), 0)


class TestChangeSession(unittest.TestCase):
    def test_lazy_load(self):
        session = _session({"a": "1"})
        self.assertEqual(session.get_file_content("a"), "1")
        self.assertEqual(
            session.get_changed_files()["a"].status, FileStatus.UNCHANGED
        )

    def test_changes_and_diffs(self):
        session = _session({"a": "x\ny"}, {"a": "x\nz", "b": "new"})
        session.load_snapshot()
        session.load_snapshot(force_refresh=True)
        changes = session.get_changed_files()
        self.assertEqual(changes["a"].status, FileStatus.MODIFIED)
        self.assertEqual(changes["b"].status, FileStatus.ADDED)
        result = session.get_file_diff("a")
        self.assertEqual((result.added, result.deleted), (1, 1))
        self.assertIsNone(session.get_file_diff("missing"))

    def test_calculate_line_diff(self):
        session = _session({})
        result = session.calculate_line_diff("f", "a", "a\nb")
        self.assertEqual(result.added, 1)
        self.assertEqual(result.unchanged, 1)

    def test_processed_files(self):
        session = _session(
            {"project/src/a.js": "code", "project/node_modules/m.js": "dep", "blank": " "}
        )
        self.assertEqual(session.get_processed_files(), {"src/a.js": "code"})
        self.assertIn("project/node_modules/m.js", session.load_snapshot())

    def test_compare_with_remote(self):
        factory = FakeFactory({"src/a.js": "code", "src/b.js": "old"})
        session = _session(
            {"project/src/a.js": "code", "project/node_modules/m.js": "dep"},
            client_factory=factory,
        )
        changes = session.compare_with_remote(ComparisonOptions("octo", "repo", "main"))
        self.assertEqual(changes["src/a.js"].status, FileStatus.UNCHANGED)
        self.assertEqual(changes["src/b.js"].status, FileStatus.DELETED)
        self.assertNotIn("node_modules/m.js", changes)
        self.assertEqual(changes["src/a.js"].auth_method, "github_app")
        self.assertEqual(session.get_auth_status().current_auth, AuthMethod.GITHUB_APP)

    def test_comparison_options_from_config(self):
        factory = FakeFactory({"a.txt": "1"})
        config = SnapsyncConfig(auth_method=AuthMethod.GITHUB_APP, include_metadata=False)
        session = _session({"a.txt": "2"}, client_factory=factory, config=config)
        options = session.comparison_options("octo", "repo", "main")
        self.assertEqual(options.target, "octo/repo@main")
        self.assertEqual(options.auth_method, AuthMethod.GITHUB_APP)
        self.assertFalse(options.include_metadata)
        self.assertIsNone(options.client)

        changes = session.compare_with_remote(options)
        self.assertEqual(changes["a.txt"].status, FileStatus.MODIFIED)
        self.assertIsNone(changes["a.txt"].auth_method)
        self.assertEqual(factory.created, [AuthMethod.GITHUB_APP])

    def test_comparison_options_defaults(self):
        client = FakeClient(auth_method=AuthMethod.PAT)
        options = _session({"a": "1"}).comparison_options("o", "r", "b", client=client)
        self.assertEqual(options.auth_method, AuthMethod.AUTO)
        self.assertTrue(options.include_metadata)
        self.assertIs(options.client, client)

    def test_compare_all_ignored(self):
        session = _session({"node_modules/m.js": "dep"}, client_factory=FakeFactory())
        with self.assertRaises(SnapsyncArgumentError):
            session.compare_with_remote(ComparisonOptions("octo", "repo", "main"))

    def test_refresh_auth_status(self):
        session = _session({"a": "1"})
        status = session.refresh_auth_status(FakeClient(auth_method=AuthMethod.PAT))
        self.assertEqual(status.current_auth, AuthMethod.PAT)
        self.assertIs(session.get_auth_status(), status)

    def test_external_refresh_clears_state(self):
        source = CacheInvalidationSource()
        session = _session({"a": "1"}, invalidation_source=source)
        session.load_snapshot()
        session.refresh_auth_status(FakeClient())
        source.notify_refresh("project")
        self.assertIsNone(session.classifier.current)
        self.assertIsNone(session.get_auth_status())

    def test_sessions_are_independent(self):
        first = _session({"a": "1"})
        second = _session({"b": "2"})
        first.load_snapshot()
        second.load_snapshot()
        self.assertEqual(first.get_file_content("a"), "1")
        self.assertIsNone(first.get_file_content("b"))
        self.assertIsNot(first.classifier, second.classifier)

    def test_cleanup(self):
        source = CacheInvalidationSource()
        session = _session({"a": "1"}, invalidation_source=source)
        session.load_snapshot()
        self.assertEqual(len(source), 1)
        session.cleanup()
        self.assertEqual(len(source), 0)
        self.assertIsNone(session.invalidation_source)
        self.assertIsNone(session.classifier.current)
        session.cleanup()

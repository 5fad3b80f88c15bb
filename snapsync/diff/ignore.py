# Copyright Red Hat
#
# snapsync/diff/ignore.py - Snapshot sync gitignore filtering
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Gitignore-style path filtering and content normalisation for comparing
snapshots with a remote repository.
"""
from typing import Iterable, List, Optional, Pattern, Tuple
import hashlib
import logging
import re

from snapsync import SNAPSYNC_SUBSYSTEM_DIFF

from .snapshot import Snapshot

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_diff(msg, *args, **kwargs):
    """A wrapper for diff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": SNAPSYNC_SUBSYSTEM_DIFF}, **kwargs)


#: Prefix used by some snapshot sources for the project root
PROJECT_PREFIX = "project/"

#: Patterns applied when a snapshot has no .gitignore of its own
DEFAULT_IGNORE_PATTERNS: Tuple[str, ...] = (
    "node_modules/",
    "dist/",
    "build/",
    ".DS_Store",
    "coverage/",
    ".env",
    ".env.local",
    ".env.*.local",
    "*.log",
    "npm-debug.log*",
    "yarn-debug.log*",
    "yarn-error.log*",
    ".idea/",
    ".vscode/",
    "*.suo",
    "*.ntvs*",
    "*.njsproj",
    "*.sln",
    "*.sw?",
    ".next/",
    "out/",
    ".nuxt/",
    ".cache/",
    ".temp/",
    "tmp/",
)


def strip_project_prefix(path: str) -> str:
    """
    Remove a leading ``project/`` component from ``path``.

    :param path: The path to normalise.
    :type path: ``str``
    :returns: ``path`` without the project prefix.
    :rtype: ``str``
    """
    return path[len(PROJECT_PREFIX) :] if path.startswith(PROJECT_PREFIX) else path


def _translate_segment(segment: str) -> str:
    """
    Translate one path segment of a gitignore pattern into a regular
    expression fragment. Wildcards never match "/".

    :param segment: The pattern segment.
    :type segment: ``str``
    :returns: A regular expression fragment.
    :rtype: ``str``
    """
    out = []
    i = 0
    while i < len(segment):
        c = segment[i]
        if c == "\\" and i + 1 < len(segment):
            out.append(re.escape(segment[i + 1]))
            i += 2
            continue
        if c == "*":
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "[":
            end = segment.find("]", i + 2)
            if end == -1:
                out.append(re.escape(c))
            else:
                body = segment[i + 1 : end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append("[" + body.replace("\\", "\\\\") + "]")
                i = end
        else:
            out.append(re.escape(c))
        i += 1
    return "".join(out)


class IgnoreRule:
    """
    A single compiled gitignore rule.
    """

    def __init__(self, pattern: str, regex: Pattern, negate: bool, dir_only: bool):
        self.pattern = pattern
        self.regex = regex
        self.negate = negate
        self.dir_only = dir_only

    def __repr__(self):
        return f"IgnoreRule({self.pattern!r})"

    @classmethod
    def from_line(cls, line: str) -> Optional["IgnoreRule"]:
        """
        Compile one line of a gitignore file.

        :param line: The gitignore line.
        :type line: ``str``
        :returns: A compiled rule, or ``None`` for blank and comment lines.
        :rtype: ``Optional[IgnoreRule]``
        """
        pattern = line.rstrip("\r\n")
        # Unescaped trailing spaces are ignored
        while pattern.endswith(" ") and not pattern.endswith("\\ "):
            pattern = pattern[:-1]
        if not pattern or pattern.startswith("#"):
            return None

        negate = pattern.startswith("!")
        if negate:
            pattern = pattern[1:]
        elif pattern.startswith("\\!") or pattern.startswith("\\#"):
            pattern = pattern[1:]

        dir_only = pattern.endswith("/")
        body = pattern.rstrip("/")
        if not body:
            return None

        anchored = "/" in body
        body = body.lstrip("/")

        segments = body.split("/")
        regex = ""
        for idx, segment in enumerate(segments):
            last = idx == len(segments) - 1
            if segment == "**":
                regex += ".*" if last else "(?:.*/)?"
                continue
            regex += _translate_segment(segment)
            if not last:
                regex += "/"

        if not anchored:
            regex = "(?:.*/)?" + regex

        try:
            compiled = re.compile("^" + regex + "$")
        except re.error as err:
            _log_warn("Ignoring invalid gitignore pattern '%s': %s", line, err)
            return None

        return cls(line, compiled, negate, dir_only)

    def matches(self, path: str, is_dir: bool) -> bool:
        """
        Test ``path`` against this rule.

        :param path: A root-relative path without a trailing slash.
        :type path: ``str``
        :param is_dir: ``True`` if ``path`` names a directory.
        :type is_dir: ``bool``
        :rtype: ``bool``
        """
        if self.dir_only and not is_dir:
            return False
        return self.regex.match(path) is not None


class GitIgnore:
    """
    A set of gitignore rules evaluated in order, last match wins. A file
    inside an ignored directory is ignored regardless of later negations.
    """

    def __init__(self, lines: Iterable[str] = ()):
        self.rules: List[IgnoreRule] = []
        self.add(lines)

    def add(self, lines: Iterable[str]):
        """
        Add gitignore lines to this rule set.

        :param lines: Lines in gitignore syntax.
        :type lines: ``Iterable[str]``
        """
        for line in lines:
            rule = IgnoreRule.from_line(line)
            if rule is not None:
                self.rules.append(rule)

    def _decide(self, path: str, is_dir: bool) -> bool:
        ignored = False
        for rule in self.rules:
            if rule.matches(path, is_dir):
                ignored = not rule.negate
        return ignored

    def ignores(self, path: str) -> bool:
        """
        Return ``True`` if the file at ``path`` is ignored.

        :param path: A root-relative file path.
        :type path: ``str``
        :rtype: ``bool``
        """
        parts = path.strip("/").split("/")
        for depth in range(1, len(parts)):
            if self._decide("/".join(parts[:depth]), True):
                return True
        return self._decide("/".join(parts), False)


def load_gitignore(snapshot: Snapshot) -> GitIgnore:
    """
    Build the ``GitIgnore`` rule set for ``snapshot``: its own root
    ``.gitignore`` if present, otherwise ``DEFAULT_IGNORE_PATTERNS``.

    :param snapshot: The snapshot to read rules from.
    :type snapshot: ``Snapshot``
    :rtype: ``GitIgnore``
    """
    content = snapshot.get(".gitignore") or snapshot.get(PROJECT_PREFIX + ".gitignore")
    if content:
        return GitIgnore(content.split("\n"))
    return GitIgnore(DEFAULT_IGNORE_PATTERNS)


def filter_snapshot(snapshot: Snapshot) -> Snapshot:
    """
    Apply gitignore rules to ``snapshot``, returning a new snapshot. Directory
    entries and blank files are dropped, and the ``project/`` prefix is
    stripped from the remaining paths.

    :param snapshot: The snapshot to filter.
    :type snapshot: ``Snapshot``
    :returns: A new, filtered snapshot.
    :rtype: ``Snapshot``
    """
    gitignore = load_gitignore(snapshot)
    processed: Snapshot = {}
    for path, content in snapshot.items():
        if path.endswith("/") or not content.strip():
            continue
        normalized_path = strip_project_prefix(path)
        if gitignore.ignores(normalized_path):
            continue
        processed[normalized_path] = content

    _log_debug_diff(
        "Filtered snapshot: kept %d of %d paths", len(processed), len(snapshot)
    )
    return processed


def normalize_content(content: str) -> str:
    """
    Normalise content for comparison: line endings become LF, trailing
    whitespace is removed from each line and trailing newlines collapse to a
    single newline.

    :param content: The content to normalise.
    :type content: ``str``
    :returns: Normalised content.
    :rtype: ``str``
    """
    content = content.replace("\r\n", "\n").replace("\r", "\n")
    content = re.sub(r"[ \t]+$", "", content, flags=re.MULTILINE)
    return re.sub(r"\n+\Z", "\n", content)


def git_blob_hash(content: str) -> str:
    """
    Calculate the git blob SHA-1 for ``content``, as stored in a git tree:
    ``sha1("blob <size>\\0" + data)`` over the UTF-8 encoded data.

    :param content: The content to hash.
    :type content: ``str``
    :returns: Hex digest of the blob hash.
    :rtype: ``str``
    """
    data = content.encode("utf-8")
    hasher = hashlib.sha1(usedforsecurity=False)
    hasher.update(f"blob {len(data)}\0".encode("utf-8"))
    hasher.update(data)
    return hasher.hexdigest()

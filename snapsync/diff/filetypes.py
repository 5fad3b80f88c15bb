# Copyright Red Hat
#
# snapsync/diff/filetypes.py - Snapshot sync file types
#
# This file is part of the snapsync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File type detection used to keep binary content out of snapshots.
"""
from typing import Dict, Optional, Tuple
from pathlib import Path
import logging
import magic

from snapsync import SNAPSYNC_SUBSYSTEM_DIFF

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_diff(msg, *args, **kwargs):
    """A wrapper for diff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": SNAPSYNC_SUBSYSTEM_DIFF}, **kwargs)


#: Number of leading bytes inspected when guessing whether content is text
SNIFF_SIZE = 8192

# Some file-magic builds do not define magic.error.
_MAGIC_ERRORS = (OSError, ValueError) + (
    (magic.error,) if hasattr(magic, "error") else ()
)

# Extensions that are always treated as binary without reading the file.
BINARY_EXTENSION_MAP: Dict[str, str] = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".ico": "image/vnd.microsoft.icon",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".gz": "application/gzip",
    ".tgz": "application/gzip",
    ".xz": "application/x-xz",
    ".zst": "application/zstd",
    ".bz2": "application/x-bzip2",
    ".7z": "application/x-7z-compressed",
    ".tar": "application/x-tar",
    ".jar": "application/java-archive",
    ".class": "application/java-vm",
    ".pyc": "application/x-python-code",
    ".so": "application/x-sharedlib",
    ".o": "application/x-object",
    ".a": "application/x-archive",
    ".exe": "application/x-dosexec",
    ".dll": "application/x-dosexec",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".mp3": "audio/mpeg",
    ".wav": "audio/x-wav",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".sqlite": "application/vnd.sqlite3",
    ".db": "application/vnd.sqlite3",
}

# MIME types reported by libmagic that are text even without a text/ prefix.
TEXT_MIME_TYPES: Tuple[str, ...] = (
    "application/json",
    "application/xml",
    "application/javascript",
    "application/x-javascript",
    "application/x-sh",
    "application/x-shellscript",
    "application/toml",
    "application/x-yaml",
    "application/yaml",
    "inode/x-empty",
)


class FileTypeInfo:
    """
    The detected MIME type of a file and whether its content is text.
    """

    def __init__(
        self,
        mime_type: str,
        is_text: bool,
        encoding: Optional[str] = None,
    ):
        """
        :param mime_type: MIME type reported by detection.
        :param is_text: Whether the content may be loaded into a snapshot.
        :param encoding: Character encoding, when known.
        """
        self.mime_type = mime_type
        self.is_text = is_text
        self.encoding = encoding

    def __str__(self):
        text = "yes" if self.is_text else "no"
        return (
            f"MIME type: {self.mime_type}, Text: {text}, "
            f"Encoding: {self.encoding or 'unknown'}"
        )


def _is_text_mime(mime_type: str) -> bool:
    """
    Return ``True`` if ``mime_type`` describes text content.

    :param mime_type: The MIME type to check.
    :type mime_type: ``str``
    :rtype: ``bool``
    """
    mime_type = mime_type.lower()
    return mime_type.startswith("text/") or mime_type in TEXT_MIME_TYPES


def _sniff_text(data: bytes) -> bool:
    """
    Guess whether a leading chunk of file data is text: NUL bytes mark binary
    data, and the chunk must decode as UTF-8 (allowing a multi-byte sequence
    to be truncated at the sniff boundary).

    :param data: Leading bytes of the file.
    :type data: ``bytes``
    :rtype: ``bool``
    """
    if b"\x00" in data:
        return False
    try:
        data.decode("utf-8")
    except UnicodeDecodeError as err:
        # Tolerate a sequence split by the SNIFF_SIZE boundary.
        return err.start >= len(data) - 3 and len(data) == SNIFF_SIZE
    return True


class FileTypeDetector:
    """
    Detect whether files hold text, using ``magic`` from python3-file-magic
    or a content-sniffing guess.
    """

    def detect_file_type(self, file_path: Path, use_magic=False) -> FileTypeInfo:
        """
        Detect file type information, optionally using libmagic for MIME
        type detection.

        :param file_path: The path to the file to inspect.
        :type file_path: ``Path``
        :param use_magic: Use libmagic to detect the MIME type.
        :type use_magic: ``bool``
        :returns: File type information for ``file_path``.
        :rtype: ``FileTypeInfo``
        """
        if use_magic:
            return self._detect_with_magic(file_path)
        return self._guess_file_type(file_path)

    @staticmethod
    def _detect_with_magic(file_path: Path) -> FileTypeInfo:
        try:
            detected = magic.detect_from_filename(str(file_path))
        except _MAGIC_ERRORS as err:
            _log_warn("Error detecting file type for %s: %s", str(file_path), err)
            return FileTypeInfo("application/octet-stream", False)
        return FileTypeInfo(
            detected.mime_type, _is_text_mime(detected.mime_type), detected.encoding
        )

    def _guess_file_type(self, file_path: Path) -> FileTypeInfo:
        """
        Guess file type from the file extension and leading content without
        using libmagic.

        :param file_path: The path to guess file type for.
        :type file_path: ``Path``
        :returns: A best-effort ``FileTypeInfo`` for ``file_path``.
        :rtype: ``FileTypeInfo``
        """
        extension = file_path.suffix.lower()
        if extension in BINARY_EXTENSION_MAP:
            return FileTypeInfo(BINARY_EXTENSION_MAP[extension], False, "binary")

        try:
            with open(file_path, "rb") as f:
                data = f.read(SNIFF_SIZE)
        except OSError as err:
            _log_warn("Error reading %s: %s", str(file_path), err)
            return FileTypeInfo("application/octet-stream", False)

        if not data:
            return FileTypeInfo("inode/x-empty", True, "utf-8")

        if _sniff_text(data):
            _log_debug_diff("Guessed text content for %s", str(file_path))
            return FileTypeInfo("text/plain", True, "utf-8")

        return FileTypeInfo("application/octet-stream", False, "binary")

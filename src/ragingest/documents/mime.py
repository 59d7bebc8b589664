"""MIME sniffing from a filename and the first bytes of content."""

from __future__ import annotations

import mimetypes
from pathlib import Path

SNIFF_BYTES = 512

# (prefix, mime) checked in order against the start of the content
_MAGIC: list[tuple[bytes, str]] = [
    (b"%PDF-", "application/pdf"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b\x08", "application/x-gzip"),
]

_HTML_MARKERS = (b"<!doctype html", b"<html", b"<head", b"<body")

# Extensions the platform mimetypes table often lacks or maps to non-text types
_TEXT_EXTENSIONS = {
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".yaml": "application/yaml",
    ".yml": "application/yaml",
    ".go": "text/x-go",
    ".rs": "text/x-rust",
    ".ts": "text/x-typescript",
    ".cs": "text/x-csharp",
    ".sql": "text/x-sql",
    ".py": "text/x-python",
}


def _sniff_content(head: bytes) -> str | None:
    for prefix, mime in _MAGIC:
        if head.startswith(prefix):
            return mime
    stripped = head.lstrip().lower()
    if any(stripped.startswith(marker) for marker in _HTML_MARKERS):
        return "text/html; charset=utf-8"
    if stripped.startswith(b"<?xml"):
        return "text/xml; charset=utf-8"
    return None


def _is_likely_utf8(head: bytes) -> bool:
    if b"\x00" in head:
        return False
    try:
        head.decode("utf-8")
    except UnicodeDecodeError as exc:
        # A multi-byte sequence cut at the sniff boundary is still text.
        return exc.start >= len(head) - 3 and exc.reason == "unexpected end of data"
    return True


def detect_mime(name: str, head: bytes) -> str:
    """Guess a MIME type for ``name`` given its leading bytes."""
    head = head[:SNIFF_BYTES]
    sniffed = _sniff_content(head)
    if sniffed:
        return sniffed

    ext = Path(name).suffix.lower()
    if ext in _TEXT_EXTENSIONS:
        return _TEXT_EXTENSIONS[ext]
    if ext:
        by_ext, _ = mimetypes.guess_type(f"file{ext}")
        if by_ext:
            return by_ext

    if head and _is_likely_utf8(head):
        return "text/plain"
    return "application/octet-stream"

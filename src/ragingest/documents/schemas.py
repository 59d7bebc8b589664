"""Data models for raw documents and their origin."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, BinaryIO


class Scope(StrEnum):
    """Visibility tier under which chunks are stored downstream."""

    LOCAL = "local"  # current session only
    SPACE = "space"  # a shared space
    GLOBAL = "global"  # everyone


@dataclass
class Source:
    """Logical origin of an upload, threaded through chunk provenance."""

    name: str = ""
    uri: str = ""
    version: str = ""
    additional: dict[str, Any] = field(default_factory=dict)


@dataclass
class ReaderWithName:
    """A binary reader paired with an optional filename, fed to chunkers."""

    name: str = ""
    reader: BinaryIO | None = None


@dataclass
class Document:
    """A single ingested file.

    Attributes:
        name: File name as supplied by the caller.
        mime: Detected or supplied MIME type.
        size_bytes: Number of bytes read.
        source: Origin scheme, e.g. ``upload://local`` or ``fs://``.
        tags: Free-form tags, order preserved.
        meta: Document-level metadata. Only additions happen after extraction
            begins (``stored_at``).
        reader: Rewindable byte reader over the content.
    """

    name: str
    mime: str
    size_bytes: int
    reader: BinaryIO
    source: str = "upload://local"
    tags: list[str] = field(default_factory=list)
    meta: dict[str, str] = field(default_factory=dict)

    def rewind(self) -> None:
        self.reader.seek(0)

    def read_bytes(self) -> bytes:
        self.rewind()
        return self.reader.read()

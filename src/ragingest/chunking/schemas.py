"""Data models for chunks."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


def checksum(text: str) -> str:
    """SHA-256 hex digest of ``text``, used for provenance."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def chunk_id(name: str, index: int) -> str:
    """Stable ``name#index`` identifier; ``chunk-<index>`` when unnamed."""
    if not name:
        return f"chunk-{index}"
    sanitized = name.strip().replace(" ", "_").replace("/", "_")
    return f"{sanitized or 'chunk'}#{index}"


@dataclass
class Chunk:
    """Ingestion-form chunk handed to the embedder and memory writer."""

    doc_name: str
    index: int
    text: str
    token_hint: int = 0
    meta: dict[str, str] = field(default_factory=dict)


@dataclass
class DocumentChunk:
    """A chunk of text with open provenance metadata."""

    id: str
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)

    def with_provenance(
        self,
        source: str = "",
        uri: str = "",
        page: int = 0,
        version: str = "",
    ) -> DocumentChunk:
        """Return a copy carrying provenance fields.

        ``ingested_at`` and ``checksum`` are only set when missing, so
        re-applying provenance never changes them.
        """
        meta = dict(self.metadata)
        if source:
            meta["source"] = source
        if uri:
            meta["uri"] = uri
        if page > 0:
            meta["page"] = page
        if version:
            meta["version"] = version
        meta.setdefault("ingested_at", datetime.now(UTC).isoformat())
        meta.setdefault("checksum", checksum(self.content))
        return DocumentChunk(id=self.id, content=self.content, metadata=meta)

    def copy(self) -> DocumentChunk:
        return DocumentChunk(id=self.id, content=self.content, metadata=dict(self.metadata))

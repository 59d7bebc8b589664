"""Data models for the ingestion orchestrator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from ragingest.documents.schemas import Document, Scope


@dataclass
class IngestOptions:
    """Per-call ingestion options."""

    space: str = ""
    scope: Scope = Scope.SPACE
    tags: list[str] = field(default_factory=list)
    ttl: float | None = None  # seconds; falls back to the ingestor default
    meta: dict[str, str] = field(default_factory=dict)


@dataclass
class IngestResult:
    """Outcome of one successful document ingestion."""

    document: Document
    chunk_ids: list[str] = field(default_factory=list)
    chunk_count: int = 0


@dataclass
class IngestItem:
    """Per-file line of an ``IngestReport``; ``error`` is empty on success."""

    file: str
    size_bytes: int = 0
    mime: str = ""
    space: str = ""
    scope: str = ""
    tags: list[str] = field(default_factory=list)
    chunk_ids: list[str] = field(default_factory=list)
    chunk_count: int = 0
    error: str = ""

    @property
    def ok(self) -> bool:
        return not self.error


@dataclass
class IngestReport:
    """Batch ingestion summary: failures are recorded per item."""

    items: list[IngestItem] = field(default_factory=list)

    @property
    def total_chunks(self) -> int:
        return sum(item.chunk_count for item in self.items)

    @property
    def failed(self) -> int:
        return sum(1 for item in self.items if not item.ok)

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [asdict(item) for item in self.items],
            "total_chunks": self.total_chunks,
            "failed": self.failed,
        }

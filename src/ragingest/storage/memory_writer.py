"""Downstream memory writers.

The real vector database lives outside this package; ``MemoryWriter`` is the
seam. ``InMemoryWriter`` is a reference implementation for tests and local
runs.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ragingest.chunking.schemas import Chunk
from ragingest.documents.schemas import Scope
from ragingest.errors import WriteError

logger = logging.getLogger(__name__)


class MemoryWriter(ABC):
    """Interface for persisting embedded chunks."""

    @abstractmethod
    def write_chunks(
        self,
        space: str,
        scope: Scope,
        chunks: list[Chunk],
        vectors: list[list[float]],
        ttl: float | None = None,
        meta: dict[str, str] | None = None,
    ) -> list[str]:
        """Store chunks with their vectors.

        Args:
            space: Shared space or session key.
            scope: Visibility tier.
            chunks: Chunks, aligned with ``vectors``.
            vectors: One embedding per chunk.
            ttl: Optional time-to-live in seconds.
            meta: Document-level metadata.

        Returns:
            The IDs assigned to the stored records, in chunk order.

        Raises:
            WriteError: if the store rejects the write.
        """


@dataclass
class MemoryRecord:
    id: str
    space: str
    scope: Scope
    text: str
    vector: list[float]
    meta: dict[str, str] = field(default_factory=dict)
    expires_at: float | None = None


class InMemoryWriter(MemoryWriter):
    """Thread-safe dict-backed writer."""

    def __init__(self):
        self._records: dict[str, MemoryRecord] = {}
        self._lock = threading.Lock()

    def write_chunks(
        self,
        space: str,
        scope: Scope,
        chunks: list[Chunk],
        vectors: list[list[float]],
        ttl: float | None = None,
        meta: dict[str, str] | None = None,
    ) -> list[str]:
        if len(chunks) != len(vectors):
            raise WriteError(f"got {len(chunks)} chunks but {len(vectors)} vectors")
        expires_at = time.time() + ttl if ttl else None

        records = []
        for chunk, vector in zip(chunks, vectors, strict=True):
            record_meta = {**(meta or {}), **chunk.meta, "doc_name": chunk.doc_name}
            records.append(MemoryRecord(
                id=str(uuid.uuid4()),
                space=space,
                scope=Scope(scope),
                text=chunk.text,
                vector=list(vector),
                meta=record_meta,
                expires_at=expires_at,
            ))

        with self._lock:
            for record in records:
                self._records[record.id] = record
        logger.info("InMemoryWriter stored %d records in %s/%s", len(records), space, scope)
        return [r.id for r in records]

    def get(self, record_id: str) -> MemoryRecord | None:
        with self._lock:
            record = self._records.get(record_id)
        if record and record.expires_at is not None and record.expires_at <= time.time():
            return None
        return record

    def records(self, space: str | None = None) -> list[MemoryRecord]:
        with self._lock:
            records = list(self._records.values())
        if space is not None:
            records = [r for r in records if r.space == space]
        return records

    def count(self) -> int:
        with self._lock:
            return len(self._records)

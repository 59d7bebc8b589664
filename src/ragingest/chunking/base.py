"""Abstract bases for chunking strategies.

Two shapes exist: ``BaseChunker`` reads a named byte stream and produces
``DocumentChunk``s with provenance; ``BlockChunker`` splits already-extracted
text blocks into ingestion-form ``Chunk``s for the ingestor.
"""

from __future__ import annotations

import io
from abc import ABC, abstractmethod
from typing import Any

from ragingest.chunking.schemas import Chunk, DocumentChunk, chunk_id
from ragingest.chunking.tokens import estimate_tokens
from ragingest.documents.extractors import decode_text
from ragingest.documents.schemas import ReaderWithName, Source
from ragingest.errors import ExtractionError


class BaseChunker(ABC):
    """Interface for document chunking strategies."""

    @abstractmethod
    def chunk(self, reader: ReaderWithName, source: Source) -> list[DocumentChunk]:
        """Split a document into chunks.

        Args:
            reader: Named byte stream holding the document.
            source: Logical origin, copied into each chunk's provenance.

        Returns:
            Chunks in reading order.

        Raises:
            ExtractionError: on malformed input.
        """

    @classmethod
    def strategy_name(cls) -> str:
        """Return human-readable strategy name."""
        return cls.__name__


class BlockChunker(ABC):
    """Interface for chunkers that operate on extracted text blocks."""

    @abstractmethod
    def chunk(self, blocks: list[str], name: str = "") -> list[Chunk]:
        """Split ``blocks`` into chunks with indices running across blocks."""

    @classmethod
    def strategy_name(cls) -> str:
        return cls.__name__


# ---------------------------------------------------------------------------
# Helpers shared by the concrete chunkers
# ---------------------------------------------------------------------------


def read_all(reader: ReaderWithName) -> bytes:
    if reader.reader is None:
        return b""
    try:
        return reader.reader.read()
    except OSError as exc:
        raise ExtractionError(f"reading {reader.name or 'input'}: {exc}") from exc


def read_text(reader: ReaderWithName) -> str:
    return decode_text(read_all(reader))


def make_chunk(
    index: int,
    text: str,
    name: str,
    source: Source,
    metadata: dict[str, Any] | None = None,
    page: int = 0,
) -> DocumentChunk:
    """Build a provenance-stamped chunk; source extras are applied last."""
    meta: dict[str, Any] = {"chunk_index": index}
    if metadata:
        meta.update(metadata)
    chunk = DocumentChunk(id=chunk_id(name, index), content=text, metadata=meta)
    chunk = chunk.with_provenance(source.name, source.uri, page, source.version)
    chunk.metadata.update(source.additional)
    return chunk


class DocumentChunkerAdapter(BlockChunker):
    """Drive a ``BaseChunker`` from extracted text blocks.

    Each block is chunked independently; resulting indices are renumbered
    across blocks and metadata values are stringified.
    """

    def __init__(self, chunker: BaseChunker, source: Source | None = None):
        self.chunker = chunker
        self.source = source or Source()

    def chunk(self, blocks: list[str], name: str = "") -> list[Chunk]:
        out: list[Chunk] = []
        for block in blocks:
            reader = ReaderWithName(name=name, reader=io.BytesIO(block.encode("utf-8")))
            for doc_chunk in self.chunker.chunk(reader, self.source):
                index = len(out)
                meta = {k: str(v) for k, v in doc_chunk.metadata.items()}
                meta["chunk_index"] = str(index)
                out.append(Chunk(
                    doc_name=name,
                    index=index,
                    text=doc_chunk.content,
                    token_hint=sum(estimate_tokens(w) for w in doc_chunk.content.split()),
                    meta=meta,
                ))
        return out

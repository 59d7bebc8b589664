"""Ingestion orchestrator — read → detect → validate → store → extract → chunk → redact → embed → write.

Each step is sequential and fail-fast. The memory write is always the last
step, so a failure anywhere leaves the memory store untouched.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import BinaryIO, TypeVar

from ragingest.chunking.base import BlockChunker, DocumentChunkerAdapter
from ragingest.chunking.factory import get_chunker
from ragingest.chunking.fixed_chunker import FixedWindowChunker
from ragingest.chunking.schemas import Chunk
from ragingest.config import IngestionSettings, Settings
from ragingest.documents.extractors import ExtractorRegistry, default_extractors
from ragingest.documents.mime import SNIFF_BYTES, detect_mime
from ragingest.documents.schemas import Document
from ragingest.embeddings.base import EmbeddingProvider
from ragingest.errors import (
    EmbeddingError,
    ExtractionError,
    IngestError,
    ValidationError,
)
from ragingest.pipeline.schemas import IngestItem, IngestOptions, IngestReport, IngestResult
from ragingest.redaction import PIIRedactor
from ragingest.storage.content_store import ContentStore, FileSystemContentStore
from ragingest.storage.memory_writer import MemoryWriter

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _run_step(step: str, func: Callable[..., T], *args) -> T:
    """Run one ingestion step, wrapping any failure with the step name."""
    try:
        return func(*args)
    except IngestError:
        raise
    except Exception as exc:
        logger.warning("Ingestion step '%s' failed: %s", step, exc)
        raise IngestError(step, exc) from exc


class Ingestor:
    """Turns one uploaded document into stored, embedded chunks."""

    def __init__(
        self,
        embedder: EmbeddingProvider | None,
        writer: MemoryWriter | None,
        extractors: ExtractorRegistry | None = None,
        chunker: BlockChunker | None = None,
        redactor: PIIRedactor | None = None,
        store: ContentStore | None = None,
        settings: IngestionSettings | None = None,
    ):
        self.embedder = embedder
        self.writer = writer
        self.extractors = extractors if extractors is not None else default_extractors()
        self.chunker = chunker or FixedWindowChunker()
        self.redactor = redactor
        self.store = store
        self.settings = settings or IngestionSettings()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        embedder: EmbeddingProvider,
        writer: MemoryWriter,
        store: ContentStore | None = None,
    ) -> Ingestor:
        """Build an ingestor from application settings."""
        chunking = settings.chunking
        chunker: BlockChunker
        if chunking.strategy == "fixed":
            chunker = FixedWindowChunker(chunking.max_runes, chunking.overlap)
        elif chunking.strategy == "markdown":
            chunker = DocumentChunkerAdapter(
                get_chunker("markdown", max_tokens=chunking.markdown_max_tokens)
            )
        elif chunking.strategy == "text":
            chunker = DocumentChunkerAdapter(get_chunker("text", max_tokens=chunking.max_tokens))
        else:
            raise ValueError(
                f"Chunking strategy '{chunking.strategy}' cannot drive ingestion; "
                "use fixed, text or markdown"
            )

        if store is None and settings.storage.content_dir:
            store = FileSystemContentStore(settings.storage.content_dir)

        return cls(
            embedder=embedder,
            writer=writer,
            chunker=chunker,
            redactor=PIIRedactor() if settings.ingestion.redact else None,
            store=store,
            settings=settings.ingestion,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def ingest_reader(
        self,
        name: str,
        mime: str,
        reader: BinaryIO,
        options: IngestOptions | None = None,
    ) -> list[str]:
        """Ingest one document and return the IDs assigned by the memory writer.

        Args:
            name: File name, used for extension checks and chunk ids.
            mime: MIME hint; empty to sniff from name and content.
            reader: Byte stream; at most ``max_bytes + 1`` bytes are read.
            options: Target space, scope, tags, TTL and document metadata.

        Raises:
            IngestError: naming the failed step, with the cause chained.
        """
        return self._ingest(name, mime, reader, options or IngestOptions()).chunk_ids

    def ingest_bytes(
        self,
        name: str,
        data: bytes,
        mime: str = "",
        options: IngestOptions | None = None,
    ) -> list[str]:
        return self.ingest_reader(name, mime, io.BytesIO(data), options)

    def ingest_file(self, path: str | Path, options: IngestOptions | None = None) -> IngestResult:
        """Ingest a file from disk."""
        path = Path(path)
        try:
            fh = open(path, "rb")
        except OSError as exc:
            raise IngestError("read", exc) from exc
        with fh:
            return self._ingest(path.name, "", fh, options or IngestOptions())

    def ingest_many(
        self,
        paths: Iterable[str | Path],
        options: IngestOptions | None = None,
    ) -> IngestReport:
        """Ingest several files, recording failures per file instead of aborting."""
        options = options or IngestOptions()
        report = IngestReport()
        for path in paths:
            path = Path(path)
            item = IngestItem(
                file=str(path),
                space=options.space,
                scope=str(options.scope),
                tags=list(options.tags),
            )
            try:
                result = self.ingest_file(path, options)
            except IngestError as exc:
                item.error = str(exc)
                if path.is_file():
                    item.size_bytes = path.stat().st_size
                logger.warning("Failed to ingest %s: %s", path, exc)
            else:
                item.size_bytes = result.document.size_bytes
                item.mime = result.document.mime
                item.chunk_ids = result.chunk_ids
                item.chunk_count = result.chunk_count
            report.items.append(item)

        logger.info(
            "Ingested %d files: %d chunks, %d failed",
            len(report.items), report.total_chunks, report.failed,
        )
        return report

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _ingest(self, name: str, mime: str, reader: BinaryIO, options: IngestOptions) -> IngestResult:
        if self.embedder is None or self.writer is None:
            raise IngestError("validate", ValidationError("ingestor requires an embedder and a writer"))

        data = _run_step("read", self._read_capped, reader)
        mime = mime or _run_step("detect", detect_mime, name, data[:SNIFF_BYTES])
        document = Document(
            name=name,
            mime=mime,
            size_bytes=len(data),
            reader=io.BytesIO(data),
            source=self.settings.source,
            tags=list(options.tags),
            meta=dict(options.meta),
        )
        _run_step("validate", self._check_allowed, document)

        if self.store is not None:
            location = _run_step("store", self.store.put, document)
            document.meta["stored_at"] = location

        blocks = _run_step("extract", self._extract, document)
        chunks = _run_step("chunk", self._chunk, document, blocks)
        if not chunks:
            logger.warning("No chunks produced for %s, nothing to write", name)
            return IngestResult(document=document)

        if self.redactor is not None:
            _run_step("redact", self._redact, chunks)

        vectors = _run_step("embed", self._embed, chunks)

        ttl = options.ttl if options.ttl is not None else self.settings.default_ttl_seconds
        ids = _run_step(
            "write", self.writer.write_chunks,
            options.space, options.scope, chunks, vectors, ttl, document.meta,
        )

        logger.info(
            "Ingested %s (%s, %d bytes): %d chunks written",
            name, document.mime, document.size_bytes, len(ids),
        )
        return IngestResult(document=document, chunk_ids=list(ids), chunk_count=len(chunks))

    def _read_capped(self, reader: BinaryIO) -> bytes:
        # Reading one byte past the cap detects oversize input without
        # buffering the rest of the stream.
        limit = self.settings.max_bytes + 1
        buf = bytearray()
        while len(buf) < limit:
            part = reader.read(limit - len(buf))
            if not part:
                break
            buf.extend(part)
        if len(buf) > self.settings.max_bytes:
            raise ValidationError(f"file too large (limit {self.settings.max_bytes} bytes)")
        return bytes(buf)

    def _check_allowed(self, document: Document) -> None:
        allowed = self.settings.allowed_extensions
        if allowed is None or document.mime.startswith("text/"):
            return
        ext = Path(document.name).suffix.lower()
        if ext not in {e.lower() for e in allowed}:
            raise ValidationError(
                f"file type '{ext or document.name}' not allowed; "
                "add an extractor or allow-list the extension"
            )

    def _extract(self, document: Document) -> list[str]:
        extractor = self.extractors.find(document.mime)
        if extractor is None:
            raise ExtractionError(f"no extractor for MIME: {document.mime}")
        logger.debug("Extracting %s with %s", document.name, extractor.extractor_name())
        return extractor.extract(document)

    def _chunk(self, document: Document, blocks: list[str]) -> list[Chunk]:
        chunks = self.chunker.chunk(blocks, name=document.name)
        for chunk in chunks:
            chunk.doc_name = document.name
            chunk.meta["mime"] = document.mime
            chunk.meta.setdefault("source", document.source)
        return chunks

    def _redact(self, chunks: list[Chunk]) -> None:
        for chunk in chunks:
            text, changed = self.redactor.redact(chunk.text)
            if changed:
                chunk.text = text
                chunk.meta["redacted"] = "true"

    def _embed(self, chunks: list[Chunk]) -> list[list[float]]:
        vectors = self.embedder.embed_texts([c.text for c in chunks])
        if len(vectors) != len(chunks):
            raise EmbeddingError(
                f"embedding count mismatch: got {len(vectors)} for {len(chunks)} chunks"
            )
        return vectors

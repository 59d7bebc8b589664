"""Repository walker that chunks source files line by line."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from ragingest.chunking.base import BaseChunker, make_chunk
from ragingest.chunking.ignore import IgnoreMatcher
from ragingest.chunking.schemas import DocumentChunk
from ragingest.chunking.tokens import estimate_tokens
from ragingest.documents.extractors import decode_text
from ragingest.documents.schemas import ReaderWithName, Source
from ragingest.errors import ExtractionError, UnsupportedFormatError

logger = logging.getLogger(__name__)

MAX_FILE_TOKENS = 800

# Never walked, regardless of .gitignore
ALWAYS_EXCLUDED = {".git"}


class CodeChunker(BaseChunker):
    """Walk ``root`` honouring its ``.gitignore`` and emit per-file chunks.

    The reader argument of ``chunk`` is ignored; the tree under ``root`` is
    the input. Chunk ids are ``<relative path>#<n>`` with ``n`` counting
    within the file.
    """

    def __init__(
        self,
        root: str | Path | None = None,
        max_file_tokens: int = MAX_FILE_TOKENS,
        additional_meta: dict[str, Any] | None = None,
    ):
        self.root = Path(root) if root else None
        self.max_file_tokens = max_file_tokens if max_file_tokens > 0 else MAX_FILE_TOKENS
        self.additional_meta = dict(additional_meta or {})

    def chunk(self, reader: ReaderWithName | None = None, source: Source | None = None) -> list[DocumentChunk]:
        if self.root is None:
            raise UnsupportedFormatError("code chunker requires a root directory")
        if not self.root.is_dir():
            raise ExtractionError(f"not a directory: {self.root}")
        source = source or Source()

        matcher = IgnoreMatcher.from_file(self.root / ".gitignore")
        chunks: list[DocumentChunk] = []
        files = 0

        for dirpath, dirnames, filenames in os.walk(self.root, onerror=self._raise):
            rel_dir = Path(dirpath).relative_to(self.root).as_posix()
            rel_dir = "" if rel_dir == "." else rel_dir

            kept = []
            for name in sorted(dirnames):
                rel = f"{rel_dir}/{name}" if rel_dir else name
                if name in ALWAYS_EXCLUDED or matcher.match(rel, is_dir=True):
                    logger.debug("Skipping directory %s", rel)
                    continue
                kept.append(name)
            dirnames[:] = kept

            for name in sorted(filenames):
                rel = f"{rel_dir}/{name}" if rel_dir else name
                if matcher.match(rel, is_dir=False):
                    logger.debug("Skipping ignored file %s", rel)
                    continue
                content = self._read(Path(dirpath) / name)
                if content is None or not content.strip():
                    continue
                files += 1
                chunks.extend(self._chunk_file(rel, content, source))

        logger.info("CodeChunker produced %d chunks from %d files under %s", len(chunks), files, self.root)
        return chunks

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    @staticmethod
    def _raise(exc: OSError) -> None:
        raise ExtractionError(f"walking repository: {exc}") from exc

    @staticmethod
    def _read(path: Path) -> str | None:
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise ExtractionError(f"reading {path}: {exc}") from exc
        if b"\x00" in data:
            logger.debug("Skipping binary file %s", path)
            return None
        return decode_text(data)

    def _chunk_file(self, path: str, content: str, source: Source) -> list[DocumentChunk]:
        chunks: list[DocumentChunk] = []
        buffer: list[str] = []
        token_count = 0
        meta = {"path": path, **self.additional_meta}

        def emit() -> None:
            nonlocal buffer, token_count
            if buffer:
                chunks.append(make_chunk(len(chunks), "".join(buffer), path, source, meta))
            buffer = []
            token_count = 0

        for line in content.splitlines(keepends=True):
            estimated = estimate_tokens(line.rstrip("\r\n"))
            if buffer and token_count + estimated > self.max_file_tokens:
                emit()
            buffer.append(line)
            token_count += estimated

        emit()
        return chunks

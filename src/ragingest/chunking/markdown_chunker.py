"""Heading-aware Markdown chunker."""

from __future__ import annotations

import logging
import re

from ragingest.chunking.base import BaseChunker, make_chunk, read_text
from ragingest.chunking.schemas import DocumentChunk
from ragingest.chunking.tokens import estimate_tokens
from ragingest.documents.schemas import ReaderWithName, Source

logger = logging.getLogger(__name__)

MAX_TOKENS = 400

_HEADING = re.compile(r"^(#{1,6})\s+(.*)$")


class MarkdownChunker(BaseChunker):
    """Group body lines under their heading within a token budget.

    A heading closes the current chunk. The heading text itself is not part
    of the chunk content; it is recorded as ``section_heading``.
    """

    def __init__(self, max_tokens: int = MAX_TOKENS):
        self.max_tokens = max_tokens if max_tokens > 0 else MAX_TOKENS

    def chunk(self, reader: ReaderWithName, source: Source) -> list[DocumentChunk]:
        text = read_text(reader)
        chunks: list[DocumentChunk] = []
        lines: list[str] = []
        heading = ""
        token_count = 0

        def emit() -> None:
            nonlocal lines, token_count
            content = "\n".join(lines).strip()
            if content:
                meta = {"section_heading": heading} if heading else None
                chunks.append(make_chunk(len(chunks), content, reader.name, source, meta))
            lines = []
            token_count = 0

        for line in text.splitlines():
            match = _HEADING.match(line)
            if match:
                emit()
                heading = match.group(2).strip()
                continue
            if not line.strip():
                if lines:
                    lines.append("")
                continue
            estimated = estimate_tokens(line)
            if lines and token_count + estimated > self.max_tokens:
                emit()
            lines.append(line)
            token_count += estimated

        emit()
        logger.info("MarkdownChunker produced %d chunks", len(chunks))
        return chunks

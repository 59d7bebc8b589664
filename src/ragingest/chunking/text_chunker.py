"""Word-bounded chunker for plain text."""

from __future__ import annotations

import logging

from ragingest.chunking.base import BaseChunker, make_chunk, read_text
from ragingest.chunking.schemas import DocumentChunk
from ragingest.chunking.tokens import estimate_tokens
from ragingest.documents.schemas import ReaderWithName, Source

logger = logging.getLogger(__name__)

MAX_TOKENS = 512


class TextChunker(BaseChunker):
    """Accumulate whitespace-delimited words up to a token budget."""

    def __init__(self, max_tokens: int = MAX_TOKENS):
        self.max_tokens = max_tokens if max_tokens > 0 else MAX_TOKENS

    def chunk(self, reader: ReaderWithName, source: Source) -> list[DocumentChunk]:
        text = read_text(reader).strip()
        if not text:
            return []

        chunks: list[DocumentChunk] = []
        current: list[str] = []
        current_tokens = 0

        for word in text.split():
            word_tokens = estimate_tokens(word)
            if current and current_tokens + word_tokens > self.max_tokens:
                chunks.append(make_chunk(len(chunks), " ".join(current), reader.name, source))
                current = []
                current_tokens = 0
            current.append(word)
            current_tokens += word_tokens

        if current:
            chunks.append(make_chunk(len(chunks), " ".join(current), reader.name, source))

        logger.info("TextChunker produced %d chunks from %d chars", len(chunks), len(text))
        return chunks

"""Fixed-size overlapping windows measured in code points."""

from __future__ import annotations

import logging

from ragingest.chunking.base import BlockChunker
from ragingest.chunking.schemas import Chunk
from ragingest.chunking.tokens import window_token_hint
from ragingest.errors import ValidationError

logger = logging.getLogger(__name__)

MAX_RUNES = 1200
OVERLAP = 120


class FixedWindowChunker(BlockChunker):
    """Slide a ``max_runes`` window with ``overlap`` across each block."""

    def __init__(self, max_runes: int = MAX_RUNES, overlap: int = OVERLAP):
        if max_runes <= 0:
            max_runes, overlap = MAX_RUNES, OVERLAP
        if overlap < 0 or overlap >= max_runes:
            raise ValidationError(
                f"overlap must be in [0, {max_runes}), got {overlap}"
            )
        self.max_runes = max_runes
        self.overlap = overlap

    def chunk(self, blocks: list[str], name: str = "") -> list[Chunk]:
        step = self.max_runes - self.overlap
        chunks: list[Chunk] = []
        for block in blocks:
            length = len(block)
            for start in range(0, length, step):
                end = min(start + self.max_runes, length)
                text = block[start:end]
                chunks.append(Chunk(
                    doc_name=name,
                    index=len(chunks),
                    text=text,
                    token_hint=window_token_hint(text),
                ))
                if end == length:
                    break

        logger.debug("FixedWindowChunker produced %d chunks from %d blocks", len(chunks), len(blocks))
        return chunks

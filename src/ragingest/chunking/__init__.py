"""Budget-driven document chunking."""

from ragingest.chunking.base import BaseChunker, BlockChunker, DocumentChunkerAdapter
from ragingest.chunking.schemas import Chunk, DocumentChunk
from ragingest.chunking.tokens import estimate_tokens

__all__ = [
    "BaseChunker",
    "BlockChunker",
    "Chunk",
    "DocumentChunk",
    "DocumentChunkerAdapter",
    "estimate_tokens",
]

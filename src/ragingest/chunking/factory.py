"""Chunker factory — registry, lazy import, singleton cache.

Maps strategy names (and MIME types) to chunker classes.
"""

from __future__ import annotations

import importlib
import logging

from ragingest.chunking.base import BaseChunker, BlockChunker
from ragingest.documents.extractors import base_mime

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Chunker registry
#
# Each entry: (strategy, module_path, class_name)
# ---------------------------------------------------------------------------

_CHUNKER_REGISTRY: list[tuple[str, str, str]] = [
    ("fixed", "ragingest.chunking.fixed_chunker", "FixedWindowChunker"),
    ("text", "ragingest.chunking.text_chunker", "TextChunker"),
    ("markdown", "ragingest.chunking.markdown_chunker", "MarkdownChunker"),
    ("pdf", "ragingest.chunking.pdf_chunker", "PlumberPDFChunker"),
    ("pdf-fallback", "ragingest.chunking.pdf_chunker", "PDFChunker"),
    ("code", "ragingest.chunking.code_chunker", "CodeChunker"),
]

_MIME_STRATEGIES: dict[str, str] = {
    "application/pdf": "pdf",
    "text/markdown": "markdown",
    "text/x-markdown": "markdown",
}

# Singleton cache
_chunker_cache: dict[str, BaseChunker | BlockChunker] = {}


def get_chunker(strategy: str = "text", **kwargs) -> BaseChunker | BlockChunker:
    """Get a chunker by strategy name.

    Args:
        strategy: One of ``available_chunkers()``.
        **kwargs: Passed to the chunker constructor.
    """
    key = strategy.lower()
    if not kwargs and key in _chunker_cache:
        return _chunker_cache[key]

    for registered, module_path, cls_name in _CHUNKER_REGISTRY:
        if registered == key:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, cls_name)
            instance = cls(**kwargs)
            if not kwargs:
                _chunker_cache[key] = instance
            return instance

    available = [k for k, _, _ in _CHUNKER_REGISTRY]
    raise ValueError(f"Unknown chunking strategy '{strategy}'. Available: {available}")


def strategy_for_mime(mime: str) -> str:
    """Strategy name for ``mime``; plain text is the fallback."""
    strategy = _MIME_STRATEGIES.get(base_mime(mime))
    if strategy is None:
        logger.info("No specific chunker for %s, using text", mime)
        strategy = "text"
    return strategy


def chunker_for_mime(mime: str, **kwargs) -> BaseChunker | BlockChunker:
    """Pick a document chunker for ``mime``."""
    return get_chunker(strategy_for_mime(mime), **kwargs)


def available_chunkers() -> list[str]:
    """Return names of registered chunking strategies."""
    return [k for k, _, _ in _CHUNKER_REGISTRY]


def clear_cache() -> None:
    """Clear singleton cache (for testing)."""
    _chunker_cache.clear()

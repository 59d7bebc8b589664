"""Chunk middleware and PII scrubbing.

Middleware runs in the embedding pipeline's feeder, in input order, before a
chunk is admitted to the worker queue. It mutates the chunk in place.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Callable

from ragingest.cancellation import CancelScope
from ragingest.chunking.schemas import DocumentChunk

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)
PHONE_PATTERN = re.compile(r"\b\+?\d[\d -]{7,}\d")

DEFAULT_REPLACEMENT = "[redacted]"


class Middleware(ABC):
    """A step that may rewrite a chunk before it is embedded."""

    @abstractmethod
    def process(self, scope: CancelScope, chunk: DocumentChunk) -> None:
        """Rewrite ``chunk`` in place.

        Raises:
            RedactionError: if the chunk cannot be processed.
        """


class _FuncMiddleware(Middleware):
    def __init__(self, func: Callable[[CancelScope, DocumentChunk], None]):
        self.func = func

    def process(self, scope: CancelScope, chunk: DocumentChunk) -> None:
        self.func(scope, chunk)

    def __repr__(self) -> str:
        return f"middleware_func({getattr(self.func, '__name__', self.func)!r})"


def middleware_func(func: Callable[[CancelScope, DocumentChunk], None]) -> Middleware:
    """Wrap a plain ``(scope, chunk)`` callable as ``Middleware``."""
    return _FuncMiddleware(func)


class PIIRedactor(Middleware):
    """Replace email- and phone-like substrings with a placeholder.

    Redacting already-redacted text is a no-op: the placeholder matches
    neither pattern.
    """

    def __init__(
        self,
        replacement: str = DEFAULT_REPLACEMENT,
        patterns: list[re.Pattern[str]] | None = None,
    ):
        self.replacement = replacement or DEFAULT_REPLACEMENT
        self.patterns = patterns if patterns is not None else [EMAIL_PATTERN, PHONE_PATTERN]

    def redact(self, text: str) -> tuple[str, bool]:
        """Return the redacted text and whether anything was replaced."""
        total = 0
        for pattern in self.patterns:
            text, count = pattern.subn(self.replacement, text)
            total += count
        return text, total > 0

    def process(self, scope: CancelScope, chunk: DocumentChunk) -> None:
        content, changed = self.redact(chunk.content)
        if changed:
            chunk.content = content
            chunk.metadata["pii_redacted"] = True
            logger.debug("Redacted PII in chunk %s", chunk.id)

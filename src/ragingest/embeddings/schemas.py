"""Data models for embedding results."""

from __future__ import annotations

from dataclasses import dataclass

from ragingest.chunking.schemas import DocumentChunk


@dataclass
class EmbeddedChunk:
    """One pipeline result; errors are data, never raised.

    Attributes:
        chunk: The chunk after middleware.
        vector: Embedding, or ``None`` on failure.
        attempts: Embedding calls made (0 if the chunk never reached a worker).
        duration: Seconds spent from the first attempt to the outcome.
        error: Failure cause, ``None`` on success.
        index: Position of the chunk in the input sequence.
    """

    chunk: DocumentChunk
    vector: list[float] | None = None
    attempts: int = 0
    duration: float = 0.0
    error: Exception | None = None
    index: int = -1

    @property
    def ok(self) -> bool:
        return self.error is None and self.vector is not None


def sort_results(results: list[EmbeddedChunk]) -> list[EmbeddedChunk]:
    """Restore input order; pipeline results arrive in completion order."""
    return sorted(results, key=lambda r: r.index)

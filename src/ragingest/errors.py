"""Exception taxonomy shared by chunkers, the embedding pipeline and the ingestor."""

from __future__ import annotations


class RagIngestError(Exception):
    """Base class for every error raised by ragingest."""


class ValidationError(RagIngestError):
    """Input rejected before any work was done (size, type, missing capability)."""


class ExtractionError(RagIngestError):
    """Document content could not be turned into text."""


class UnsupportedFormatError(ExtractionError):
    """A chunker or extractor was handed input it does not handle."""


class RedactionError(RagIngestError):
    """A middleware step failed while rewriting a chunk."""


class EmbeddingError(RagIngestError):
    """The embedding capability failed or returned an unusable vector."""


class EmptyEmbeddingError(EmbeddingError):
    """The provider returned no error but also no vector."""


class DimensionMismatchError(EmbeddingError):
    """Vector length differs from the configured dimensionality."""

    def __init__(self, got: int, expected: int):
        super().__init__(f"embedding dimension mismatch: got {got} expected {expected}")
        self.got = got
        self.expected = expected


class WriteError(RagIngestError):
    """The downstream memory store rejected a write."""


class StoreError(RagIngestError):
    """The content store could not persist the original document."""


class CancellationError(RagIngestError):
    """The cancellation scope was cancelled or its deadline passed."""


class IngestError(RagIngestError):
    """An ingestion step failed; ``step`` names it and ``__cause__`` holds the error."""

    def __init__(self, step: str, cause: Exception):
        super().__init__(f"{step}: {cause}")
        self.step = step
        self.cause = cause

"""Abstract base class for embedding providers."""

from __future__ import annotations

from abc import ABC, abstractmethod


class EmbeddingProvider(ABC):
    """Interface for text embedding models.

    Implementations must be safe to call from several threads at once; the
    embedding pipeline calls ``embed`` concurrently from its workers.
    """

    @abstractmethod
    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of texts.

        Args:
            texts: Strings to embed.

        Returns:
            List of embedding vectors (same order as input).

        Raises:
            EmbeddingError: if the backend call fails.
        """

    def embed(self, text: str) -> list[float]:
        """Embed a single text. Defaults to a one-item batch."""
        vectors = self.embed_texts([text])
        return vectors[0] if vectors else []

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the embedding dimensionality."""

    @classmethod
    def provider_name(cls) -> str:
        """Return human-readable provider name."""
        return cls.__name__

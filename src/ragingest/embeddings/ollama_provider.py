"""Ollama embedding provider — local-first, no API keys needed.

Uses the Ollama REST API (http://localhost:11434) with models like
``nomic-embed-text``, ``mxbai-embed-large``, etc.
"""

from __future__ import annotations

import logging

import httpx

from ragingest.embeddings.base import EmbeddingProvider
from ragingest.errors import EmbeddingError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "nomic-embed-text"
DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_DIM = 768


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Embed text via a local Ollama server.

    ``httpx.Client`` is thread-safe, so one provider can serve every
    pipeline worker.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        dimension: int = DEFAULT_DIM,
        timeout: float = 60.0,
        client: httpx.Client | None = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._dimension = dimension
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts with one ``/api/embed`` call.

        Servers older than v0.5 lack batch input; those fall back to one
        ``/api/embeddings`` call per text.
        """
        if not texts:
            return []

        try:
            resp = self._client.post(
                "/api/embed",
                json={"model": self.model, "input": texts},
            )
            resp.raise_for_status()
            data = resp.json()
            if "embeddings" in data:
                return data["embeddings"]
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.debug("Batch embed unavailable (%s), falling back to sequential", exc)

        return [self.embed(text) for text in texts]

    def embed(self, text: str) -> list[float]:
        try:
            resp = self._client.post(
                "/api/embeddings",
                json={"model": self.model, "prompt": text},
            )
            resp.raise_for_status()
            return resp.json()["embedding"]
        except httpx.HTTPError as exc:
            raise EmbeddingError(f"ollama embed failed: {exc}") from exc
        except (KeyError, ValueError) as exc:
            raise EmbeddingError(f"ollama returned an unexpected payload: {exc}") from exc

    @property
    def dimension(self) -> int:
        return self._dimension

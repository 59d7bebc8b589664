"""Tests for embedding providers — mocked transports, no network calls."""

from __future__ import annotations

import hashlib
import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from ragingest.config import EmbeddingSettings
from ragingest.embeddings.base import EmbeddingProvider
from ragingest.embeddings.factory import (
    available_providers,
    clear_cache,
    get_embedding_provider,
    provider_from_settings,
)
from ragingest.embeddings.ollama_provider import OllamaEmbeddingProvider
from ragingest.errors import EmbeddingError, ValidationError

# ---------------------------------------------------------------------------
# Mock embedding provider for testing
# ---------------------------------------------------------------------------


class MockEmbeddingProvider(EmbeddingProvider):
    """A deterministic embedding provider for tests."""

    def __init__(self, dimension: int = 8):
        self._dim = dimension

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        return [self._hash_embed(t) for t in texts]

    @property
    def dimension(self) -> int:
        return self._dim

    def _hash_embed(self, text: str) -> list[float]:
        h = hashlib.sha256(text.encode()).digest()
        return [(h[i % len(h)] / 255.0) * 2 - 1 for i in range(self._dim)]


def ollama_with(handler) -> OllamaEmbeddingProvider:
    client = httpx.Client(base_url="http://ollama.test", transport=httpx.MockTransport(handler))
    return OllamaEmbeddingProvider(model="nomic-embed-text", base_url="http://ollama.test", client=client)


# ---------------------------------------------------------------------------
# Base class tests
# ---------------------------------------------------------------------------


class TestEmbeddingProviderABC:
    def test_cannot_instantiate_base(self):
        with pytest.raises(TypeError):
            EmbeddingProvider()  # type: ignore[abstract]

    def test_provider_name(self):
        assert MockEmbeddingProvider.provider_name() == "MockEmbeddingProvider"

    def test_embed_defaults_to_batch_of_one(self):
        provider = MockEmbeddingProvider()
        assert provider.embed("hello") == provider.embed_texts(["hello"])[0]

    def test_deterministic(self):
        provider = MockEmbeddingProvider()
        assert provider.embed("same text") == provider.embed("same text")
        assert provider.embed("text one") != provider.embed("text two")


# ---------------------------------------------------------------------------
# Ollama provider
# ---------------------------------------------------------------------------


class TestOllamaProvider:
    def test_embed(self):
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append({"path": request.url.path, "body": json.loads(request.content)})
            return httpx.Response(200, json={"embedding": [0.1, 0.2, 0.3]})

        assert ollama_with(handler).embed("hello") == [0.1, 0.2, 0.3]
        assert seen == [{"path": "/api/embeddings", "body": {"model": "nomic-embed-text", "prompt": "hello"}}]

    def test_batch(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/embed"
            texts = json.loads(request.content)["input"]
            return httpx.Response(200, json={"embeddings": [[float(len(t))] for t in texts]})

        assert ollama_with(handler).embed_texts(["a", "bbb"]) == [[1.0], [3.0]]

    def test_batch_falls_back_to_sequential(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/embed":
                return httpx.Response(404, json={"error": "not found"})
            prompt = json.loads(request.content)["prompt"]
            return httpx.Response(200, json={"embedding": [float(len(prompt))]})

        assert ollama_with(handler).embed_texts(["ab", "c"]) == [[2.0], [1.0]]

    def test_empty_batch(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        assert ollama_with(handler).embed_texts([]) == []

    def test_http_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        with pytest.raises(EmbeddingError, match="ollama embed failed"):
            ollama_with(handler).embed("hello")

    def test_bad_payload(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"unexpected": True})

        with pytest.raises(EmbeddingError, match="unexpected payload"):
            ollama_with(handler).embed("hello")

    def test_dimension(self):
        provider = OllamaEmbeddingProvider(dimension=1024, client=MagicMock())
        assert provider.dimension == 1024


# ---------------------------------------------------------------------------
# OpenAI provider
# ---------------------------------------------------------------------------


class TestOpenAIProvider:
    def test_embed_texts_sorted_by_index(self):
        openai = pytest.importorskip("openai")
        from ragingest.embeddings.openai_provider import OpenAIEmbeddingProvider

        with patch.object(openai, "OpenAI") as mock_client_cls:
            data = [MagicMock(index=1, embedding=[2.0]), MagicMock(index=0, embedding=[1.0])]
            mock_client_cls.return_value.embeddings.create.return_value = MagicMock(data=data)
            provider = OpenAIEmbeddingProvider(api_key="test")
            assert provider.embed_texts(["a", "b"]) == [[1.0], [2.0]]
            assert provider.dimension == 1536

    def test_api_error_wrapped(self):
        openai = pytest.importorskip("openai")
        from ragingest.embeddings.openai_provider import OpenAIEmbeddingProvider

        with patch.object(openai, "OpenAI") as mock_client_cls:
            mock_client_cls.return_value.embeddings.create.side_effect = openai.OpenAIError("quota")
            provider = OpenAIEmbeddingProvider(api_key="test")
            with pytest.raises(EmbeddingError, match="quota"):
                provider.embed("x")


# ---------------------------------------------------------------------------
# Factory tests
# ---------------------------------------------------------------------------


class TestEmbeddingFactory:
    def setup_method(self):
        clear_cache()

    def test_available_providers(self):
        assert available_providers() == ["ollama", "openai"]

    def test_unknown_provider_raises(self):
        with pytest.raises(ValidationError, match="Unknown embedding provider"):
            get_embedding_provider("nonexistent")

    def test_ollama_from_factory(self):
        provider = get_embedding_provider("ollama", model="mxbai-embed-large", dimension=1024)
        assert isinstance(provider, OllamaEmbeddingProvider)
        assert provider.model == "mxbai-embed-large"

    def test_factory_caching(self):
        with patch("ragingest.embeddings.factory.importlib") as mock_importlib:
            mock_mod = MagicMock()
            mock_mod.OllamaEmbeddingProvider = MockEmbeddingProvider
            mock_importlib.import_module.return_value = mock_mod

            p1 = get_embedding_provider("ollama")
            p2 = get_embedding_provider("ollama")
            assert p1 is p2

    def test_factory_kwargs_bypass_cache(self):
        with patch("ragingest.embeddings.factory.importlib") as mock_importlib:
            mock_mod = MagicMock()
            mock_mod.OllamaEmbeddingProvider = MockEmbeddingProvider
            mock_importlib.import_module.return_value = mock_mod

            p1 = get_embedding_provider("ollama")
            p2 = get_embedding_provider("ollama", dimension=512)
            assert p1 is not p2
            assert p2.dimension == 512

    def test_same_kwargs_reuse_instance(self):
        p1 = get_embedding_provider("ollama", model="m", dimension=4)
        p2 = get_embedding_provider("OLLAMA", dimension=4, model="m")
        assert p1 is p2

    def test_unhashable_kwargs_not_cached(self):
        with patch("ragingest.embeddings.factory.importlib") as mock_importlib:
            mock_cls = MagicMock(side_effect=lambda **kw: MagicMock())
            mock_importlib.import_module.return_value = MagicMock(OllamaEmbeddingProvider=mock_cls)
            p1 = get_embedding_provider("ollama", headers={"x-team": "search"})
            p2 = get_embedding_provider("ollama", headers={"x-team": "search"})
        assert p1 is not p2
        assert mock_cls.call_count == 2

    def test_from_settings_ollama(self):
        settings = EmbeddingSettings(provider="ollama", model="mxbai-embed-large", dimension=1024)
        provider = provider_from_settings(settings)
        assert isinstance(provider, OllamaEmbeddingProvider)
        assert provider.model == "mxbai-embed-large"
        assert provider.dimension == 1024

    def test_from_settings_maps_dimension_keyword(self):
        with patch("ragingest.embeddings.factory.importlib") as mock_importlib:
            mock_cls = MagicMock()
            mock_importlib.import_module.return_value = MagicMock(OpenAIEmbeddingProvider=mock_cls)
            provider_from_settings(EmbeddingSettings(dimension=256), provider="openai")
        mock_cls.assert_called_once_with(model="nomic-embed-text", dimensions=256)

    def test_from_settings_unknown_override(self):
        with pytest.raises(ValidationError):
            provider_from_settings(EmbeddingSettings(), provider="nope")

"""Embedding provider lookup by name, built from keyword args or settings."""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, NamedTuple

from ragingest.embeddings.base import EmbeddingProvider
from ragingest.errors import ValidationError

if TYPE_CHECKING:
    from ragingest.config import EmbeddingSettings

logger = logging.getLogger(__name__)


class _ProviderEntry(NamedTuple):
    module_path: str
    class_name: str
    # Constructor keyword that takes the vector size.
    dimension_arg: str


_PROVIDERS: dict[str, _ProviderEntry] = {
    "ollama": _ProviderEntry("ragingest.embeddings.ollama_provider", "OllamaEmbeddingProvider", "dimension"),
    "openai": _ProviderEntry("ragingest.embeddings.openai_provider", "OpenAIEmbeddingProvider", "dimensions"),
}

# Instances keyed by (provider, sorted kwargs); unhashable kwargs are never cached.
_provider_cache: dict[tuple, EmbeddingProvider] = {}


def _lookup(provider: str) -> tuple[str, _ProviderEntry]:
    key = provider.strip().lower()
    entry = _PROVIDERS.get(key)
    if entry is None:
        raise ValidationError(
            f"Unknown embedding provider '{provider}'. Available: {available_providers()}"
        )
    return key, entry


def get_embedding_provider(provider: str = "ollama", **kwargs) -> EmbeddingProvider:
    """Return a provider instance, reusing one built with the same arguments.

    Raises:
        ValidationError: if ``provider`` is not registered.
    """
    key, entry = _lookup(provider)
    cache_key: tuple | None = (key, tuple(sorted(kwargs.items())))
    try:
        cached = _provider_cache.get(cache_key)
    except TypeError:
        cache_key, cached = None, None
    if cached is not None:
        return cached

    cls = getattr(importlib.import_module(entry.module_path), entry.class_name)
    instance = cls(**kwargs)
    if cache_key is not None:
        _provider_cache[cache_key] = instance
    logger.debug("Created embedding provider %s (%s)", entry.class_name, kwargs or "defaults")
    return instance


def provider_from_settings(
    settings: EmbeddingSettings,
    provider: str | None = None,
) -> EmbeddingProvider:
    """Build the configured provider; ``provider`` overrides ``settings.provider``."""
    _, entry = _lookup(provider or settings.provider)
    kwargs = {"model": settings.model, entry.dimension_arg: settings.dimension}
    return get_embedding_provider(provider or settings.provider, **kwargs)


def available_providers() -> list[str]:
    return list(_PROVIDERS)


def clear_cache() -> None:
    _provider_cache.clear()

"""Embedding providers and the concurrent embedding pipeline."""

from ragingest.embeddings.base import EmbeddingProvider
from ragingest.embeddings.factory import (
    available_providers,
    get_embedding_provider,
    provider_from_settings,
)
from ragingest.embeddings.metrics import InMemoryMetrics, PipelineMetrics
from ragingest.embeddings.pipeline import EmbeddingPipeline, PipelineConfig, RetryPolicy
from ragingest.embeddings.schemas import EmbeddedChunk, sort_results

__all__ = [
    "EmbeddedChunk",
    "EmbeddingPipeline",
    "EmbeddingProvider",
    "InMemoryMetrics",
    "PipelineConfig",
    "PipelineMetrics",
    "RetryPolicy",
    "available_providers",
    "get_embedding_provider",
    "provider_from_settings",
    "sort_results",
]

"""Application settings loaded from YAML with a profile override."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from ragingest.embeddings.pipeline import PipelineConfig

# ---------------------------------------------------------------------------
# Settings sections
# ---------------------------------------------------------------------------


class EmbeddingSettings(BaseModel):
    provider: str = "ollama"
    model: str = "nomic-embed-text"
    dimension: int = 768


class ChunkingSettings(BaseModel):
    strategy: str = "fixed"
    max_runes: int = 1200
    overlap: int = 120
    max_tokens: int = 512
    markdown_max_tokens: int = 400
    code_max_tokens: int = 800


class RetrySettings(BaseModel):
    max_attempts: int = 3
    base_delay: float = 0.2
    jitter: float = 0.0


class PipelineSettings(BaseModel):
    workers: int = 4
    batch_size: int = 32
    expected_dims: int = 0
    normalize: bool = False
    similarity_mode: str = "cosine"
    retry: RetrySettings = Field(default_factory=RetrySettings)

    def to_config(self) -> PipelineConfig:
        from ragingest.embeddings.pipeline import PipelineConfig, RetryPolicy

        return PipelineConfig(
            workers=self.workers,
            batch_size=self.batch_size,
            expected_dims=self.expected_dims,
            normalize=self.normalize,
            similarity_mode=self.similarity_mode,
            retry=RetryPolicy(
                max_attempts=self.retry.max_attempts,
                base_delay=self.retry.base_delay,
                jitter=self.retry.jitter,
            ),
        )


DEFAULT_ALLOWED_EXTENSIONS = [
    ".txt", ".md", ".markdown", ".json", ".yaml", ".yml", ".pdf",
    ".go", ".py", ".js", ".ts", ".java", ".rs", ".cpp", ".c", ".cs", ".sql",
]


class IngestionSettings(BaseModel):
    max_bytes: int = 10 * 1024 * 1024
    allowed_extensions: list[str] | None = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_EXTENSIONS)
    )
    default_ttl_seconds: float | None = None
    source: str = "upload://local"
    redact: bool = False


class StorageSettings(BaseModel):
    content_dir: str | None = None


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


def _find_settings_file() -> Path | None:
    """Walk up from cwd looking for settings.yaml."""
    profile = os.getenv("RAGINGEST_PROFILE", "")
    names = [f"settings-{profile}.yaml", "settings.yaml"] if profile else ["settings.yaml"]

    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        for name in names:
            candidate = parent / name
            if candidate.exists():
                return candidate
    return None


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file, falling back to defaults."""
    path = Path(path) if path is not None else _find_settings_file()
    if path is None:
        return Settings()

    with open(path, encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}

    return Settings(**raw)

"""Ingestion orchestration."""

from ragingest.pipeline.ingest import Ingestor
from ragingest.pipeline.schemas import IngestItem, IngestOptions, IngestReport, IngestResult

__all__ = [
    "IngestItem",
    "IngestOptions",
    "IngestReport",
    "IngestResult",
    "Ingestor",
]

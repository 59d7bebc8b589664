"""Document model, MIME detection and text extraction."""

from ragingest.documents.extractors import (
    Extractor,
    ExtractorRegistry,
    PDFExtractor,
    TextExtractor,
    default_extractors,
)
from ragingest.documents.mime import detect_mime
from ragingest.documents.schemas import Document, ReaderWithName, Scope, Source

__all__ = [
    "Document",
    "Extractor",
    "ExtractorRegistry",
    "PDFExtractor",
    "ReaderWithName",
    "Scope",
    "Source",
    "TextExtractor",
    "default_extractors",
    "detect_mime",
]

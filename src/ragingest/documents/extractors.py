"""MIME-specific text extraction and extractor dispatch.

Extractors turn a ``Document`` into ordered UTF-8 text blocks (pages,
sections). ``ExtractorRegistry`` picks the extractor for a MIME type.
"""

from __future__ import annotations

import fnmatch
import io
import logging
from abc import ABC, abstractmethod

from ragingest.documents.schemas import Document
from ragingest.errors import ExtractionError

logger = logging.getLogger(__name__)


def base_mime(mime: str) -> str:
    """Strip parameters: ``text/plain; charset=utf-8`` -> ``text/plain``."""
    return mime.split(";", 1)[0].strip().lower()


def decode_text(data: bytes) -> str:
    """Decode bytes as UTF-8, falling back to latin-1."""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("Content is not valid UTF-8, decoding as latin-1")
        return data.decode("latin-1")


class Extractor(ABC):
    """Interface for MIME-specific text extraction."""

    @abstractmethod
    def supports(self, mime: str) -> bool:
        """Return ``True`` if this extractor handles ``mime``."""

    @abstractmethod
    def extract(self, document: Document) -> list[str]:
        """Return ordered text blocks.

        Raises:
            ExtractionError: if the content is corrupt or unreadable.
        """

    @classmethod
    def extractor_name(cls) -> str:
        return cls.__name__


class TextExtractor(Extractor):
    """Anything that looks like text: ``text/*``, JSON, XML, YAML."""

    MIME_TYPES = {
        "application/json",
        "application/xml",
        "application/yaml",
        "application/x-yaml",
    }

    def supports(self, mime: str) -> bool:
        mime = base_mime(mime)
        return mime.startswith("text/") or mime in self.MIME_TYPES

    def extract(self, document: Document) -> list[str]:
        text = decode_text(document.read_bytes())
        return [text.replace("\r\n", "\n")]


class PDFExtractor(Extractor):
    """Per-page PDF text via pdfplumber; unreadable pages are skipped."""

    def supports(self, mime: str) -> bool:
        return base_mime(mime) == "application/pdf"

    def extract(self, document: Document) -> list[str]:
        import pdfplumber

        data = document.read_bytes()
        blocks: list[str] = []
        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                for number, page in enumerate(pdf.pages, start=1):
                    try:
                        text = page.extract_text() or ""
                    except Exception as exc:
                        logger.warning("Skipping page %d of %s: %s", number, document.name, exc)
                        continue
                    text = text.strip()
                    if text:
                        # Page prefix gives retrieval some positional context.
                        blocks.append(f"Page {number}\n{text}")
        except Exception as exc:
            raise ExtractionError(f"PDF extraction error: {exc}") from exc
        return blocks


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


class ExtractorRegistry:
    """MIME -> extractor lookup.

    Exact MIME registrations win, then wildcard patterns (``text/*``) in
    registration order, then a linear scan over every extractor's
    ``supports``.
    """

    def __init__(self, extractors: list[Extractor] | None = None):
        self._exact: dict[str, Extractor] = {}
        self._patterns: list[tuple[str, Extractor]] = []
        self._extractors: list[Extractor] = []
        for extractor in extractors or []:
            self.register(extractor)

    def register(self, extractor: Extractor, *mime_patterns: str) -> None:
        if extractor not in self._extractors:
            self._extractors.append(extractor)
        for pattern in mime_patterns:
            pattern = pattern.lower()
            if any(ch in pattern for ch in "*?["):
                self._patterns.append((pattern, extractor))
            else:
                self._exact.setdefault(pattern, extractor)

    def find(self, mime: str) -> Extractor | None:
        key = base_mime(mime)
        if key in self._exact:
            return self._exact[key]
        for pattern, extractor in self._patterns:
            if fnmatch.fnmatchcase(key, pattern):
                return extractor
        for extractor in self._extractors:
            if extractor.supports(mime):
                return extractor
        return None

    def __len__(self) -> int:
        return len(self._extractors)


def default_extractors() -> ExtractorRegistry:
    """PDF first, then text, so PDFs never fall through to the text path."""
    registry = ExtractorRegistry()
    registry.register(PDFExtractor(), "application/pdf")
    registry.register(TextExtractor(), "text/*", *sorted(TextExtractor.MIME_TYPES))
    return registry

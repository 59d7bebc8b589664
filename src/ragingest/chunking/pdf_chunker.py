"""Page-level PDF chunkers.

``PlumberPDFChunker`` uses pdfplumber and is the production path.
``PDFChunker`` is a dependency-free degraded mode: it scans content streams
for ``(...) Tj`` / ``(...) TJ`` show-text operators. It knows nothing about
fonts or encodings, so treat its output as best effort.
"""

from __future__ import annotations

import io
import logging
import re
import zlib

from ragingest.chunking.base import BaseChunker, make_chunk, read_all
from ragingest.chunking.schemas import DocumentChunk
from ragingest.documents.schemas import ReaderWithName, Source
from ragingest.errors import ExtractionError

logger = logging.getLogger(__name__)

_TEXT_OBJECT = re.compile(r"\((.*?)\)\s+(?:Tj|TJ)", re.DOTALL)
_PAGE_SPLIT = re.compile(r"\n\s*endstream", re.IGNORECASE)
_STREAM_START = re.compile(r"stream\r?\n")
_WHITESPACE = re.compile(r"\s+")

_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
}


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text.strip())


def decode_pdf_string(raw: str) -> str:
    """Interpret backslash escapes of a PDF literal string.

    ``\\n``, ``\\r``, ``\\t``, ``\\b`` and ``\\f`` become control
    characters; any other escaped character is kept as-is.
    """
    out: list[str] = []
    escaped = False
    for ch in raw:
        if escaped:
            out.append(_ESCAPES.get(ch, ch))
            escaped = False
        elif ch == "\\":
            escaped = True
        else:
            out.append(ch)
    return "".join(out)


def _inflate_segment(segment: str) -> str:
    """Return the segment with a trailing Flate stream body inflated if possible."""
    starts = list(_STREAM_START.finditer(segment))
    if not starts or "FlateDecode" not in segment[: starts[-1].start()]:
        return segment
    head, body = segment[: starts[-1].end()], segment[starts[-1].end():]
    try:
        inflated = zlib.decompressobj().decompress(body.encode("latin-1"))
    except zlib.error:
        return segment
    return head + inflated.decode("latin-1")


def extract_text(raw: str) -> str:
    """Join every show-text string in ``raw`` and collapse whitespace."""
    parts = [decode_pdf_string(m.group(1)) for m in _TEXT_OBJECT.finditer(raw)]
    return normalize_whitespace(" ".join(p for p in parts if p))


class PDFChunker(BaseChunker):
    """Best-effort page chunks from raw PDF bytes."""

    def chunk(self, reader: ReaderWithName, source: Source) -> list[DocumentChunk]:
        data = read_all(reader)
        if not data:
            return []

        # latin-1 maps every byte to one code point, so nothing is lost.
        segments = _PAGE_SPLIT.split(data.decode("latin-1"))
        chunks: list[DocumentChunk] = []
        for number, segment in enumerate(segments, start=1):
            text = extract_text(_inflate_segment(segment))
            if not text:
                continue
            chunks.append(make_chunk(len(chunks), text, reader.name, source, page=number))

        if not chunks:
            raise ExtractionError("pdf chunker: unable to extract text")
        logger.info("PDFChunker produced %d chunks from %d segments", len(chunks), len(segments))
        return chunks


class PlumberPDFChunker(BaseChunker):
    """One chunk per page via pdfplumber; unparsable pages are skipped."""

    def chunk(self, reader: ReaderWithName, source: Source) -> list[DocumentChunk]:
        import pdfplumber

        data = read_all(reader)
        chunks: list[DocumentChunk] = []
        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                for number, page in enumerate(pdf.pages, start=1):
                    try:
                        text = page.extract_text() or ""
                    except Exception as exc:
                        logger.warning("Skipping page %d of %s: %s", number, reader.name, exc)
                        continue
                    text = normalize_whitespace(text)
                    if text:
                        chunks.append(
                            make_chunk(len(chunks), text, reader.name, source, page=number)
                        )
        except Exception as exc:
            raise ExtractionError(f"PDF extraction error: {exc}") from exc

        if not chunks:
            raise ExtractionError("pdf chunker: no extractable text (scanned or image-only?)")
        logger.info("PlumberPDFChunker produced %d chunks", len(chunks))
        return chunks

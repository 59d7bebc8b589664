"""Tests for MIME sniffing and text extraction."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from ragingest.documents.extractors import (
    Extractor,
    ExtractorRegistry,
    PDFExtractor,
    TextExtractor,
    base_mime,
    decode_text,
    default_extractors,
)
from ragingest.documents.mime import detect_mime
from ragingest.documents.schemas import Document
from ragingest.errors import ExtractionError


def make_doc(data: bytes, name: str = "doc.txt", mime: str = "text/plain") -> Document:
    return Document(name=name, mime=mime, size_bytes=len(data), reader=io.BytesIO(data))


class TestDetectMime:
    @pytest.mark.parametrize(
        ("name", "head", "expected"),
        [
            ("report", b"%PDF-1.7\n...", "application/pdf"),
            ("report.txt", b"%PDF-1.4\n", "application/pdf"),
            ("logo", b"\x89PNG\r\n\x1a\n\x00\x00", "image/png"),
            ("a.zip", b"PK\x03\x04rest", "application/zip"),
            ("page", b"  <!DOCTYPE html><html>", "text/html; charset=utf-8"),
            ("feed", b"<?xml version='1.0'?>", "text/xml; charset=utf-8"),
            ("README.md", b"# Title", "text/markdown"),
            ("conf.yml", b"a: 1", "application/yaml"),
            ("main.go", b"package main", "text/x-go"),
            ("notes.txt", b"hello", "text/plain"),
            ("data.json", b"{}", "application/json"),
            ("noext", b"just some words", "text/plain"),
            ("noext", b"\x00\x01\x02\x03", "application/octet-stream"),
            ("noext", b"", "application/octet-stream"),
        ],
    )
    def test_detect(self, name: str, head: bytes, expected: str):
        assert detect_mime(name, head) == expected

    def test_truncated_multibyte_is_text(self):
        head = ("a" * 10 + "ż").encode("utf-8")[:-1]
        assert detect_mime("noext", head) == "text/plain"


class TestHelpers:
    def test_base_mime(self):
        assert base_mime("Text/Plain; charset=utf-8") == "text/plain"

    def test_decode_latin1_fallback(self):
        assert decode_text(b"caf\xe9") == "café"
        assert decode_text("żółw".encode()) == "żółw"


class TestTextExtractor:
    @pytest.mark.parametrize(
        ("mime", "expected"),
        [("text/plain", True), ("text/markdown; charset=utf-8", True), ("application/json", True),
         ("application/x-yaml", True), ("application/pdf", False), ("image/png", False)],
    )
    def test_supports(self, mime: str, expected: bool):
        assert TextExtractor().supports(mime) is expected

    def test_extract_single_block(self):
        assert TextExtractor().extract(make_doc(b"a\r\nb\r\n")) == ["a\nb\n"]

    def test_extract_rewinds(self):
        doc = make_doc(b"content")
        doc.reader.read()
        assert TextExtractor().extract(doc) == ["content"]


class TestPDFExtractor:
    def test_pages_prefixed(self, sample_pdf_file: Path):
        data = sample_pdf_file.read_bytes()
        blocks = PDFExtractor().extract(make_doc(data, "design.pdf", "application/pdf"))
        assert len(blocks) == 3
        assert blocks[0].startswith("Page 1\n")
        assert blocks[2].startswith("Page 3\n")

    def test_corrupt(self):
        with pytest.raises(ExtractionError):
            PDFExtractor().extract(make_doc(b"%PDF-garbage", "x.pdf", "application/pdf"))


class TestExtractorRegistry:
    def test_defaults(self):
        registry = default_extractors()
        assert len(registry) == 2
        assert isinstance(registry.find("application/pdf"), PDFExtractor)
        assert isinstance(registry.find("text/csv"), TextExtractor)
        assert isinstance(registry.find("application/yaml"), TextExtractor)
        assert registry.find("image/png") is None

    def test_exact_beats_pattern(self):
        class CSVExtractor(Extractor):
            def supports(self, mime: str) -> bool:
                return base_mime(mime) == "text/csv"

            def extract(self, document: Document) -> list[str]:
                return document.read_bytes().decode().splitlines()

        registry = default_extractors()
        csv = CSVExtractor()
        registry.register(csv, "text/csv")
        assert registry.find("text/csv; charset=utf-8") is csv
        assert isinstance(registry.find("text/plain"), TextExtractor)

    def test_falls_back_to_supports(self):
        registry = ExtractorRegistry([TextExtractor()])
        assert isinstance(registry.find("application/xml"), TextExtractor)

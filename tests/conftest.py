"""Shared fixtures for tests — synthetic documents, no network calls."""

from __future__ import annotations

import io
import textwrap
import zlib
from pathlib import Path

import pytest

from ragingest.documents.schemas import ReaderWithName, Source

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def named_reader(text: str | bytes, name: str = "doc.txt") -> ReaderWithName:
    data = text.encode("utf-8") if isinstance(text, str) else text
    return ReaderWithName(name=name, reader=io.BytesIO(data))


def build_raw_pdf(*streams: bytes, compress: tuple[int, ...] = ()) -> bytes:
    """Assemble a minimal PDF-like byte string, one content stream per page.

    Stream positions listed in ``compress`` are FlateDecode-compressed.
    """
    parts = [b"%PDF-1.4\n"]
    for number, content in enumerate(streams):
        if number in compress:
            body = zlib.compress(content)
            header = b"<< /Filter /FlateDecode /Length %d >>" % len(body)
        else:
            body = content
            header = b"<< /Length %d >>" % len(body)
        parts.append(b"%d 0 obj\n%s\nstream\n%s\nendstream\nendobj\n" % (number + 1, header, body))
    parts.append(b"trailer\n<< /Root 1 0 R >>\n%%EOF\n")
    return b"".join(parts)


# ---------------------------------------------------------------------------
# Synthetic document content
# ---------------------------------------------------------------------------


@pytest.fixture
def source() -> Source:
    return Source(name="notes", uri="file:///tmp/notes.txt", version="v1")


@pytest.fixture
def sample_txt_content() -> str:
    return textwrap.dedent("""\
        Quarterly Engineering Update

        The ingestion service processed 1.2 million documents this quarter,
        up 18% from the previous period. Median end-to-end latency fell to
        340 milliseconds after the worker pool was resized.

        Reach the on-call engineer at oncall@example.com or +1 555 010 4477
        for urgent incidents affecting the embedding cluster.

        Next quarter we will migrate the remaining PDF workloads to the new
        page-level extractor and retire the legacy pattern-based path.
    """)


@pytest.fixture
def sample_markdown() -> str:
    return textwrap.dedent("""\
        # Overview
        The pipeline embeds chunks concurrently.

        ## Workers
        A fixed pool pulls chunks from a bounded queue.
        Failures are retried with backoff.

        ## Results
        One result is produced per input chunk.
    """)


@pytest.fixture
def sample_txt_file(tmp_path: Path, sample_txt_content: str) -> Path:
    p = tmp_path / "update.txt"
    p.write_text(sample_txt_content)
    return p


@pytest.fixture
def sample_pdf_file(tmp_path: Path) -> Path:
    """Create a three-page PDF using fpdf2."""
    from fpdf import FPDF

    pdf = FPDF()
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.set_font("Helvetica", size=12)

    pages = [
        "Ingestion Service Design. Documents are split into bounded chunks "
        "before they are embedded.",
        "Concurrency. A bounded queue feeds a fixed pool of embedding workers "
        "that retry failures with backoff.",
        "Storage. Original files are kept on disk and chunk vectors are "
        "written to the memory store last.",
    ]
    for text in pages:
        pdf.add_page()
        pdf.multi_cell(0, 10, text=text)

    p = tmp_path / "design.pdf"
    pdf.output(str(p))
    return p


@pytest.fixture
def sample_repo(tmp_path: Path) -> Path:
    """A small repository tree with a .gitignore."""
    root = tmp_path / "repo"
    (root / "src").mkdir(parents=True)
    (root / "build").mkdir()
    (root / ".git").mkdir()

    (root / ".gitignore").write_text("# generated\n*.log\n!keep.log\nbuild/\n")
    (root / "main.py").write_text("def main():\n    print('hello')\n")
    (root / "src" / "util.py").write_text("def add(a, b):\n    return a + b\n")
    (root / "debug.log").write_text("noise\n")
    (root / "keep.log").write_text("important\n")
    (root / "build" / "out.py").write_text("compiled = True\n")
    (root / ".git" / "config").write_text("[core]\n")
    (root / "empty.txt").write_text("   \n")
    (root / "image.bin").write_bytes(b"\x89PNG\x00\x00\x01")
    return root

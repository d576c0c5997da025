"""Shared fixtures for the conversion test suite.

PDFs are generated in memory with PyMuPDF: pages with a text string get a
real text layer, pages with an empty string are blank and behave like scans.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pymupdf
import pytest

from pdfconvert import OcrError, OcrProgress

# ---------------------------------------------------------------------------
# Configure verbose logging for test debugging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
    force=True,
)
log = logging.getLogger("conftest")

LONG_TEXT = "Hello World, this is a test page with enough characters."
SECOND_LONG_TEXT = "Second page body text that is clearly longer than twenty."


def make_pdf(page_texts: list[str]) -> bytes:
    """Build a PDF with one page per entry of *page_texts*."""
    doc = pymupdf.open()
    for text in page_texts:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


class FakeOcrEngine:
    """OCR stand-in that records every call.

    *responses* maps page order (call index) to text; an ``Exception``
    instance in place of text is raised instead.
    """

    def __init__(self, responses=None, default: str = "Scanned Text") -> None:
        self.responses = list(responses or [])
        self.default = default
        self.calls: list[dict] = []

    def recognize(self, image, language="eng", progress=None):
        index = len(self.calls)
        self.calls.append({"size": image.size, "language": language})
        if progress is not None:
            for fraction in (0.0, 0.5, 1.0):
                progress(OcrProgress(status="recognizing text", fraction=fraction))
        response = self.responses[index] if index < len(self.responses) else self.default
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_engine() -> FakeOcrEngine:
    return FakeOcrEngine()


@pytest.fixture
def failing_engine() -> FakeOcrEngine:
    return FakeOcrEngine(default=OcrError("engine crashed"))  # type: ignore[arg-type]


@pytest.fixture(scope="session")
def native_pdf() -> bytes:
    """Two pages, both with a real text layer."""
    return make_pdf([LONG_TEXT, SECOND_LONG_TEXT])


@pytest.fixture(scope="session")
def mixed_pdf() -> bytes:
    """Page 1 has text, page 2 is blank (needs OCR)."""
    return make_pdf([LONG_TEXT, ""])


@pytest.fixture(scope="session")
def scanned_pdf() -> bytes:
    """Three pages without a usable text layer."""
    return make_pdf(["", "p. 2", ""])


@pytest.fixture(scope="session")
def encrypted_pdf() -> bytes:
    doc = pymupdf.open()
    doc.new_page().insert_text((72, 72), LONG_TEXT)
    data = doc.tobytes(
        encryption=pymupdf.PDF_ENCRYPT_AES_256,
        owner_pw="owner-secret",
        user_pw="user-secret",
    )
    doc.close()
    return data


@pytest.fixture
def pdf_dir(tmp_path: Path, native_pdf: bytes, mixed_pdf: bytes) -> Path:
    """A folder with two convertible PDFs and one unrelated file."""
    folder = tmp_path / "inbox"
    nested = folder / "nested"
    nested.mkdir(parents=True)
    (folder / "report.pdf").write_bytes(native_pdf)
    (nested / "Scan.PDF").write_bytes(mixed_pdf)
    (folder / "notes.txt").write_text("not a pdf", encoding="utf-8")
    return folder

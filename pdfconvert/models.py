"""Shared data models for the conversion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from .utils import (
    DOCX_SUFFIX,
    OCR_LANGUAGE,
    RENDER_SCALE,
    TEXT_THRESHOLD,
    XLSX_SUFFIX,
)


class PageSource(str, Enum):
    """Where the text of a page came from."""

    NATIVE = "native"
    OCR = "ocr"
    OCR_FAILED = "ocr_failed"


class PageClass(str, Enum):
    """Outcome of classifying a page's native text layer."""

    NEEDS_OCR = "needs_ocr"
    HAS_TEXT = "has_text"


@dataclass(frozen=True)
class PageResult:
    """Resolved text for a single page (1-based ``page_number``)."""

    page_number: int
    text: str
    source: PageSource

    def __post_init__(self) -> None:
        if self.page_number < 1:
            raise ValueError(f"page_number must be >= 1, got {self.page_number}")


@dataclass(frozen=True)
class ConversionProgress:
    """A progress event delivered to the caller's sink."""

    status: str
    percent: int


@dataclass(frozen=True)
class OcrProgress:
    """A fractional progress update emitted while recognizing one image."""

    status: str
    fraction: float


@dataclass(frozen=True)
class ConversionOptions:
    """Tunable heuristics for one conversion run."""

    text_threshold: int = TEXT_THRESHOLD
    render_scale: float = RENDER_SCALE
    ocr_language: str = OCR_LANGUAGE


@dataclass(frozen=True)
class ConversionOutput:
    """Both artifacts produced for one document.

    The byte buffers are derived from ``pages`` and are handed over to the
    caller as-is.
    """

    document_bytes: bytes
    spreadsheet_bytes: bytes
    base_name: str
    pages: tuple[PageResult, ...] = ()

    @property
    def document_filename(self) -> str:
        return f"{self.base_name}{DOCX_SUFFIX}"

    @property
    def spreadsheet_filename(self) -> str:
        return f"{self.base_name}{XLSX_SUFFIX}"

    def write_to(self, directory: Path) -> tuple[Path, Path]:
        """Write both artifacts into *directory* and return their paths."""
        directory.mkdir(parents=True, exist_ok=True)
        docx_path = directory / self.document_filename
        xlsx_path = directory / self.spreadsheet_filename
        docx_path.write_bytes(self.document_bytes)
        xlsx_path.write_bytes(self.spreadsheet_bytes)
        return docx_path, xlsx_path


@dataclass
class ConversionRecord:
    """Tracks conversion results and metadata for a single PDF file."""

    filename: str
    filepath: str
    base_name: str = ""
    num_pages: int = 0
    native_pages: int = 0
    ocr_pages: int = 0
    failed_pages: int = 0
    docx_path: str = ""
    xlsx_path: str = ""
    conversion_time_s: float = 0.0
    status: str = "pending"
    error: Optional[str] = None
    progress: list[ConversionProgress] = field(default_factory=list, repr=False)

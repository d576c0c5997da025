"""Cross-cutting helpers: constants, naming, text cleanup, manifest I/O."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import ConversionRecord

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TEXT_THRESHOLD = 20
RENDER_SCALE = 2.0
OCR_LANGUAGE = "eng"
OCR_FAILED_TEXT = "[OCR failed]"

DOCX_SUFFIX = ".docx"
XLSX_SUFFIX = ".xlsx"
SHEET_NAME = "Content"
SHEET_HEADER = ("Page", "Text")
MANIFEST_FILE_NAME = "conversion_manifest.json"

# Percent milestones of one document's progress stream.
PERCENT_READING = 2
PERCENT_LOADED = 6
PERCENT_PAGES_END = 95
PERCENT_SPREADSHEET = 97
PERCENT_DONE = 100

# Characters that are not allowed in XML 1.0 documents.
_ILLEGAL_XML_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")
_PDF_SUFFIX_RE = re.compile(r"\.pdf$", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Naming helpers
# ---------------------------------------------------------------------------


def base_name_for(filename: str) -> str:
    """Strip a trailing ``.pdf`` (any case) and any directory from *filename*."""
    name = Path(filename).name
    stem = _PDF_SUFFIX_RE.sub("", name)
    return stem or "output"


def unique_base_names(paths: list[Path]) -> list[str]:
    """Return one artifact stem per path, in order, with no two alike.

    The first file keeps its stem; later files with the same stem (compared
    case-insensitively) get ``-2``, ``-3``... skipping any stem another input
    already owns.
    """
    stems = [base_name_for(path.name) for path in paths]
    reserved = {stem.casefold() for stem in stems}
    used: set[str] = set()
    names: list[str] = []
    for stem in stems:
        name = stem
        if name.casefold() in used:
            n = 2
            while f"{stem}-{n}".casefold() in reserved or f"{stem}-{n}".casefold() in used:
                n += 1
            name = f"{stem}-{n}"
        used.add(name.casefold())
        names.append(name)
    return names


def page_band(page_number: int, page_count: int) -> tuple[int, int]:
    """Return the (start, end) percent range allotted to one page."""
    span = PERCENT_PAGES_END - PERCENT_LOADED
    start = PERCENT_LOADED + (page_number - 1) * span // page_count
    end = PERCENT_LOADED + page_number * span // page_count
    return start, end


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def sanitize_text(text: str) -> str:
    """Drop characters that cannot be embedded in an XML-based document.

    Tesseract terminates its output with a form feed, and broken text layers
    occasionally carry NULs; both would make the writers reject the cell.
    """
    return _ILLEGAL_XML_CHARS_RE.sub("", text)


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def ensure_output_dir(output_dir: Path) -> Path:
    """Create and return *output_dir*."""
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


# ---------------------------------------------------------------------------
# Manifest I/O
# ---------------------------------------------------------------------------


def save_manifest(output_dir: Path, records: list[ConversionRecord]) -> Path:
    """Write conversion_manifest.json and return its path."""
    ensure_output_dir(output_dir)
    manifest_path = output_dir / MANIFEST_FILE_NAME

    entries: list[dict[str, Any]] = []
    for record in records:
        entries.append(
            {
                "filename": record.filename,
                "filepath": record.filepath,
                "status": record.status,
                "num_pages": record.num_pages,
                "native_pages": record.native_pages,
                "ocr_pages": record.ocr_pages,
                "failed_pages": record.failed_pages,
                "docx_path": record.docx_path,
                "xlsx_path": record.xlsx_path,
                "conversion_time_s": record.conversion_time_s,
                "error": record.error,
            }
        )

    manifest = sorted(
        entries,
        key=lambda item: (str(item["filename"]), str(item["filepath"])),
    )
    with open(manifest_path, "w", encoding="utf-8") as fh:
        json.dump(manifest, fh, indent=2, ensure_ascii=False, default=str)
    return manifest_path

"""PDF -> DOCX + XLSX conversion with OCR fallback for scanned pages.

Public API -- all symbols that tests and external code import live here.
Internally the code is split across focused submodules; this file
re-exports the stable public surface so ``from pdfconvert import X`` works.
"""

from .artifacts import build_document, build_spreadsheet
from .classifier import classify
from .conversion import convert, convert_file, convert_files
from .decoder import PageContent, SourceDocument, decode, get_page, render
from .errors import ConversionError, DecodeError, OcrError, PageRangeError
from .models import (
    ConversionOptions,
    ConversionOutput,
    ConversionProgress,
    ConversionRecord,
    OcrProgress,
    PageClass,
    PageResult,
    PageSource,
)
from .ocr import OcrEngine, TesseractOcrEngine, create_ocr_engine
from .pages import process_page
from .progress import ProgressReporter
from .sources import collect_inputs, discover_pdfs
from .utils import (
    OCR_FAILED_TEXT,
    OCR_LANGUAGE,
    RENDER_SCALE,
    TEXT_THRESHOLD,
    base_name_for,
    ensure_output_dir,
    sanitize_text,
    save_manifest,
    unique_base_names,
)

__all__ = [
    # Models
    "ConversionOptions",
    "ConversionOutput",
    "ConversionProgress",
    "ConversionRecord",
    "OcrProgress",
    "PageClass",
    "PageResult",
    "PageSource",
    # Errors
    "ConversionError",
    "DecodeError",
    "OcrError",
    "PageRangeError",
    # Constants
    "TEXT_THRESHOLD",
    "RENDER_SCALE",
    "OCR_LANGUAGE",
    "OCR_FAILED_TEXT",
    # Utils
    "base_name_for",
    "unique_base_names",
    "ensure_output_dir",
    "sanitize_text",
    "save_manifest",
    # Sources
    "discover_pdfs",
    "collect_inputs",
    # Decoder
    "SourceDocument",
    "PageContent",
    "decode",
    "get_page",
    "render",
    # Classification / OCR / pages
    "classify",
    "OcrEngine",
    "TesseractOcrEngine",
    "create_ocr_engine",
    "ProgressReporter",
    "process_page",
    # Artifacts
    "build_document",
    "build_spreadsheet",
    # Conversion
    "convert",
    "convert_file",
    "convert_files",
]

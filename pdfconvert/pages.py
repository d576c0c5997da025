"""Per-page processing: native text first, OCR only when needed."""

from __future__ import annotations

import logging
from typing import Optional

from .classifier import classify
from .decoder import SourceDocument, get_page, render
from .errors import OcrError
from .models import ConversionOptions, OcrProgress, PageClass, PageResult, PageSource
from .ocr import OcrEngine
from .progress import ProgressReporter
from .utils import OCR_FAILED_TEXT, page_band

log = logging.getLogger(__name__)


def process_page(
    doc: SourceDocument,
    page_number: int,
    engine: OcrEngine,
    *,
    options: Optional[ConversionOptions] = None,
    reporter: Optional[ProgressReporter] = None,
) -> PageResult:
    """Resolve the text of one page.

    Pages whose trimmed text layer is longer than ``options.text_threshold``
    are returned as-is and never rendered. Everything else is rendered at
    ``options.render_scale`` and sent through *engine* exactly once; an
    ``OcrError`` turns into an ``OCR_FAILED`` result instead of propagating.

    Raises:
        PageRangeError: If *page_number* is outside the document.
    """
    options = options or ConversionOptions()
    reporter = reporter or ProgressReporter()
    page_count = doc.page_count
    start, end = page_band(page_number, page_count)

    reporter.emit(f"Processing page {page_number} / {page_count}", start)
    content = get_page(doc, page_number)

    if classify(content.native_text, options.text_threshold) is PageClass.HAS_TEXT:
        log.debug(
            "process_page: page %s has %s chars of native text",
            page_number,
            len(content.native_text),
        )
        reporter.emit(f"Text extracted from page {page_number}", end)
        return PageResult(page_number, content.native_text, PageSource.NATIVE)

    reporter.emit(f"Page {page_number} seems scanned, running OCR...", start)
    image = render(content, options.render_scale)

    def _on_ocr_progress(update: OcrProgress) -> None:
        fraction = min(1.0, max(0.0, update.fraction))
        reporter.emit(
            f"OCR: {update.status} {fraction * 100:.0f}%",
            start + (end - start) * fraction,
        )

    try:
        text = engine.recognize(image, options.ocr_language, _on_ocr_progress)
    except OcrError as exc:
        log.warning("process_page: OCR failed on page %s: %s", page_number, exc)
        reporter.emit(f"OCR failed on page {page_number}", end)
        return PageResult(page_number, OCR_FAILED_TEXT, PageSource.OCR_FAILED)

    reporter.emit(f"OCR complete for page {page_number}", end)
    return PageResult(page_number, text.strip(), PageSource.OCR)

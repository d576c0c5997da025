"""Document pipeline: decode, resolve every page, build both artifacts."""

from __future__ import annotations

import logging
import time
import traceback
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Sequence

from .artifacts import build_document, build_spreadsheet
from .decoder import decode
from .models import (
    ConversionOptions,
    ConversionOutput,
    ConversionRecord,
    PageResult,
    PageSource,
)
from .ocr import OcrEngine, create_ocr_engine
from .pages import process_page
from .progress import ProgressReporter, ProgressSink
from .utils import (
    OCR_LANGUAGE,
    PERCENT_DONE,
    PERCENT_LOADED,
    PERCENT_PAGES_END,
    PERCENT_READING,
    PERCENT_SPREADSHEET,
    base_name_for,
    unique_base_names,
)

log = logging.getLogger(__name__)


def convert(
    data: bytes,
    progress: Optional[ProgressSink] = None,
    *,
    base_name: str = "output",
    title: Optional[str] = None,
    engine: Optional[OcrEngine] = None,
    options: Optional[ConversionOptions] = None,
) -> ConversionOutput:
    """Convert PDF *data* into a DOCX and an XLSX.

    Pages are processed one at a time in ascending order. Pages whose OCR
    fails are kept with placeholder text and do not fail the document.

    Args:
        data: Raw PDF bytes.
        progress: Optional sink receiving ``ConversionProgress`` events in
            non-decreasing percent order, ending with ``("Done", 100)``.
        base_name: Stem used for the artifact filenames.
        title: Heading of the DOCX; defaults to *base_name*.
        engine: OCR engine; created on first use when omitted.
        options: Classification / rendering heuristics.

    Raises:
        DecodeError: If *data* cannot be opened as a PDF. No artifacts are
            built and no ``Done`` event is emitted.
    """
    options = options or ConversionOptions()
    reporter = ProgressReporter(progress, label=base_name)
    t0 = time.time()

    reporter.emit("Reading PDF...", PERCENT_READING)
    with decode(data) as doc:
        page_count = doc.page_count
        reporter.emit(f"Loaded, {page_count} pages", PERCENT_LOADED)
        log.info("convert: %s decoded (%s pages)", base_name, page_count)

        engine = engine or _LazyEngine()
        pages: list[PageResult] = []
        for page_number in range(1, page_count + 1):
            pages.append(
                process_page(
                    doc,
                    page_number,
                    engine,
                    options=options,
                    reporter=reporter,
                )
            )

    reporter.emit("Generating DOCX...", PERCENT_PAGES_END)
    document_bytes = build_document(title or base_name, pages)
    reporter.emit("Generating XLSX...", PERCENT_SPREADSHEET)
    spreadsheet_bytes = build_spreadsheet(pages)

    output = ConversionOutput(
        document_bytes=document_bytes,
        spreadsheet_bytes=spreadsheet_bytes,
        base_name=base_name,
        pages=tuple(pages),
    )
    reporter.emit("Done", PERCENT_DONE)
    log.info(
        "convert: %s done in %.2fs (native=%s ocr=%s failed=%s)",
        base_name,
        time.time() - t0,
        _count(pages, PageSource.NATIVE),
        _count(pages, PageSource.OCR),
        _count(pages, PageSource.OCR_FAILED),
    )
    return output


class _LazyEngine:
    """Defers building the Tesseract adapter until a scanned page shows up."""

    def __init__(self) -> None:
        self._engine: Optional[OcrEngine] = None

    def recognize(self, image, language=OCR_LANGUAGE, progress=None):
        if self._engine is None:
            self._engine, _ = create_ocr_engine()
        return self._engine.recognize(image, language, progress)


def _count(pages: Sequence[PageResult], source: PageSource) -> int:
    return sum(1 for page in pages if page.source is source)


def convert_file(
    pdf_path: Path,
    output_dir: Path,
    engine: Optional[OcrEngine] = None,
    *,
    options: Optional[ConversionOptions] = None,
    progress: Optional[ProgressSink] = None,
    base_name: Optional[str] = None,
) -> ConversionRecord:
    """Convert one PDF on disk and write ``{base_name}.docx`` / ``.xlsx``.

    *base_name* defaults to the file stem. Never raises; conversion errors are
    captured inside the returned record.
    """
    file_size = pdf_path.stat().st_size if pdf_path.exists() else "MISSING"
    log.info("convert_file: START - %s (%s bytes)", pdf_path.name, file_size)

    base_name = base_name or base_name_for(pdf_path.name)
    record = ConversionRecord(
        filename=pdf_path.name,
        filepath=str(pdf_path),
        base_name=base_name,
    )

    def _sink(event):
        record.progress.append(event)
        if progress is not None:
            progress(event)

    t0 = time.time()
    try:
        output = convert(
            pdf_path.read_bytes(),
            _sink,
            base_name=base_name,
            title=pdf_path.name,
            engine=engine,
            options=options,
        )
        docx_path, xlsx_path = output.write_to(output_dir)

        record.num_pages = len(output.pages)
        record.native_pages = _count(output.pages, PageSource.NATIVE)
        record.ocr_pages = _count(output.pages, PageSource.OCR)
        record.failed_pages = _count(output.pages, PageSource.OCR_FAILED)
        record.docx_path = str(docx_path)
        record.xlsx_path = str(xlsx_path)
        record.status = "success"
        log.info(
            "convert_file: SUCCESS - pages=%s native=%s ocr=%s failed=%s",
            record.num_pages,
            record.native_pages,
            record.ocr_pages,
            record.failed_pages,
        )
    except Exception:
        record.status = "error"
        record.error = traceback.format_exc()
        log.error("convert_file: ERROR - %s", record.error)
    finally:
        record.conversion_time_s = round(time.time() - t0, 2)
        log.info(
            "convert_file: DONE - %s in %ss",
            pdf_path.name,
            record.conversion_time_s,
        )

    return record


def convert_files(
    pdf_files: list[Path],
    output_dir: Path,
    engine: Optional[OcrEngine] = None,
    *,
    options: Optional[ConversionOptions] = None,
    max_workers: int = 1,
    show_progress: bool = False,
) -> list[ConversionRecord]:
    """Convert each PDF once. Returns records in input order.

    Inputs sharing a stem get distinct artifact names from
    ``unique_base_names`` so no file overwrites another's output.

    Documents are independent, so with ``max_workers > 1`` they run in a
    thread pool; pages within one document stay sequential.
    """
    from tqdm import tqdm

    base_names = unique_base_names(pdf_files)
    for path, name in zip(pdf_files, base_names):
        if name != base_name_for(path.name):
            log.warning("convert_files: %s shares its stem, writing as %s", path, name)

    if max_workers <= 1 or len(pdf_files) <= 1:
        records = [
            convert_file(path, output_dir, engine, options=options, base_name=name)
            for path, name in tqdm(
                list(zip(pdf_files, base_names)),
                desc="Converting PDFs",
                disable=not show_progress,
            )
        ]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(
                    convert_file, path, output_dir, engine, options=options, base_name=name
                )
                for path, name in zip(pdf_files, base_names)
            ]
            records = [
                future.result()
                for future in tqdm(
                    futures, desc="Converting PDFs", disable=not show_progress
                )
            ]

    success = [r for r in records if r.status == "success"]
    failed = [r for r in records if r.status == "error"]
    log.info("Conversion: %s succeeded, %s failed", len(success), len(failed))
    return records

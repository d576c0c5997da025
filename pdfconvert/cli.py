"""CLI entrypoint: convert PDFs into DOCX + XLSX pairs.

Usage:
    python -m pdfconvert scan.pdf
    python -m pdfconvert ./inbox --output-dir ./converted
    python -m pdfconvert ./inbox --max-workers 4 --text-threshold 40
    python -m pdfconvert scan.pdf --ocr-language deu --tesseract-cmd /usr/bin/tesseract
"""

from __future__ import annotations

import argparse
import logging
from logging.handlers import RotatingFileHandler
import os
import sys
import time
from pathlib import Path

from .utils import OCR_LANGUAGE, RENDER_SCALE, TEXT_THRESHOLD

log = logging.getLogger(__name__)


def _recommended_max_workers() -> int:
    # OCR is CPU heavy; leave headroom for tesseract's own threads.
    cpu_count = max(1, os.cpu_count() or 1)
    return max(1, min(8, cpu_count // 2))


def _setup_logging(*, verbose: bool, detailed_logging: bool, log_file: Path | None) -> None:
    """Console logging always; a rotating file only when --log-file is given."""
    level = logging.DEBUG if verbose else logging.INFO
    fields = "%(asctime)s | %(levelname)-8s | %(name)s | "
    if detailed_logging:
        fields += "%(threadName)s | %(filename)s:%(lineno)d | "
    formatter = logging.Formatter(fields + "%(message)s", "%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=20 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Pillow logs every plugin import at DEBUG.
    logging.getLogger("PIL").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="PDF -> DOCX + XLSX converter with OCR fallback for scanned pages"
    )
    parser.add_argument(
        "inputs",
        nargs="+",
        type=Path,
        help="PDF files or directories (searched recursively)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("output"),
        help="Output directory (default: output/)",
    )
    parser.add_argument(
        "--text-threshold",
        type=int,
        default=TEXT_THRESHOLD,
        help=(
            "Pages with more trimmed native characters than this skip OCR "
            f"(default: {TEXT_THRESHOLD})"
        ),
    )
    parser.add_argument(
        "--render-scale",
        type=float,
        default=RENDER_SCALE,
        help=f"Render scale for OCR page images (default: {RENDER_SCALE})",
    )
    parser.add_argument(
        "--ocr-language",
        default=OCR_LANGUAGE,
        help=f"Tesseract language code (default: {OCR_LANGUAGE})",
    )
    parser.add_argument(
        "--tesseract-cmd",
        default=None,
        help="Path to the tesseract binary (default: looked up on PATH)",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=_recommended_max_workers(),
        help="Documents converted concurrently (pages stay sequential)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging (includes per-page progress)",
    )
    parser.add_argument(
        "--detailed-logging",
        action="store_true",
        help="Add thread and file:line to every log line",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write the log to this file (rotated at 20 MB)",
    )
    args = parser.parse_args(argv)
    if args.text_threshold < 0:
        parser.error("--text-threshold must be >= 0")
    if args.render_scale <= 0:
        parser.error("--render-scale must be > 0")
    return args


def main(argv: list[str] | None = None) -> int:
    """Convert every input PDF and return the process exit code."""
    from .conversion import convert_files
    from .models import ConversionOptions
    from .ocr import create_ocr_engine
    from .sources import collect_inputs
    from .utils import ensure_output_dir, save_manifest

    args = parse_args(argv)
    _setup_logging(
        verbose=args.verbose,
        detailed_logging=args.detailed_logging,
        log_file=args.log_file,
    )

    overall_t0 = time.perf_counter()
    options = ConversionOptions(
        text_threshold=args.text_threshold,
        render_scale=args.render_scale,
        ocr_language=args.ocr_language,
    )
    log.info(
        "Runtime tuning: max_workers=%s text_threshold=%s render_scale=%s "
        "ocr_language=%s",
        args.max_workers,
        options.text_threshold,
        options.render_scale,
        options.ocr_language,
    )

    # --- Step 1: Collect PDFs ---
    pdf_files = collect_inputs(args.inputs)
    log.info("Total PDFs discovered: %s", len(pdf_files))
    if not pdf_files:
        log.warning("No PDFs found. Exiting.")
        return 0

    output_dir = ensure_output_dir(args.output_dir)

    # --- Step 2: Convert ---
    engine, engine_name = create_ocr_engine(tesseract_cmd=args.tesseract_cmd)
    log.info("OCR engine: %s", engine_name)

    records = convert_files(
        pdf_files,
        output_dir,
        engine,
        options=options,
        max_workers=max(1, args.max_workers),
        show_progress=True,
    )

    # --- Step 3: Manifest ---
    manifest_path = save_manifest(output_dir, records)

    # --- Summary ---
    success = [r for r in records if r.status == "success"]
    failed = [r for r in records if r.status == "error"]
    log.info("=" * 60)
    log.info("CONVERSION COMPLETE")
    log.info("  PDFs discovered: %s", len(pdf_files))
    log.info("  Succeeded:       %s", len(success))
    log.info("  Failed:          %s", len(failed))
    log.info("  Native pages:    %s", sum(r.native_pages for r in success))
    log.info("  OCR pages:       %s", sum(r.ocr_pages for r in success))
    log.info("  OCR failures:    %s", sum(r.failed_pages for r in success))
    log.info("  Output dir:      %s", output_dir)
    log.info("  Manifest:        %s", manifest_path)
    log.info("  Total runtime:   %.1fs", time.perf_counter() - overall_t0)
    if failed:
        log.warning("Failed files:")
        for r in failed:
            log.warning("  - %s: %s", r.filename, (r.error or "unknown")[:200])
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

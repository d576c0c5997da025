"""PDF file discovery on the local filesystem."""

from __future__ import annotations

import logging
from pathlib import Path

log = logging.getLogger(__name__)


def _is_pdf(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() == ".pdf"


def discover_pdfs(folder: Path) -> list[Path]:
    """Recursively find all PDF files under *folder*, sorted by name."""
    if not folder.exists():
        return []
    return sorted(p for p in folder.rglob("*") if _is_pdf(p))


def collect_inputs(inputs: list[Path]) -> list[Path]:
    """Expand files and directories into a de-duplicated list of PDFs.

    Order follows *inputs*; directories contribute their PDFs sorted by name.
    Missing paths and non-PDF files are logged and skipped.
    """
    found: list[Path] = []
    seen: set[Path] = set()
    for item in inputs:
        if item.is_dir():
            candidates = discover_pdfs(item)
        elif _is_pdf(item):
            candidates = [item]
        else:
            log.warning("Skipping %s: not a PDF file or directory", item)
            continue

        for path in candidates:
            key = path.resolve()
            if key in seen:
                continue
            seen.add(key)
            found.append(path)
    return found

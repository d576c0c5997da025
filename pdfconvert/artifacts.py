"""Build the DOCX and XLSX artifacts from an ordered page sequence."""

from __future__ import annotations

import io
import logging
import re
import zipfile
from typing import Iterable

from docx import Document
from docx.shared import Pt
from openpyxl import Workbook

from .models import PageResult
from .utils import SHEET_HEADER, SHEET_NAME, sanitize_text

log = logging.getLogger(__name__)

PREFORMATTED_FONT = "Courier New"
PREFORMATTED_SIZE = Pt(10)

# Pinned so that identical page sequences produce identical bytes.
_FIXED_ZIP_TIME = (1980, 1, 1, 0, 0, 0)
_FIXED_CORE_DATE = b"1980-01-01T00:00:00Z"
_CORE_PROPS_MEMBER = "docProps/core.xml"
_CORE_DATE_RE = re.compile(
    rb"(<(?:\w+:)?(created|modified)\b[^>]*>)[^<]*(</(?:\w+:)?\2>)"
)


def _pin_package(blob: bytes) -> bytes:
    """Rewrite an OOXML zip package with fixed timestamps."""
    out = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(blob)) as src, zipfile.ZipFile(
        out, "w", zipfile.ZIP_DEFLATED
    ) as dst:
        for info in src.infolist():
            data = src.read(info.filename)
            if info.filename == _CORE_PROPS_MEMBER:
                data = _CORE_DATE_RE.sub(rb"\g<1>" + _FIXED_CORE_DATE + rb"\g<3>", data)
            pinned = zipfile.ZipInfo(info.filename, date_time=_FIXED_ZIP_TIME)
            pinned.compress_type = zipfile.ZIP_DEFLATED
            pinned.external_attr = 0o600 << 16
            dst.writestr(pinned, data)
    return out.getvalue()


def build_document(title: str, pages: Iterable[PageResult]) -> bytes:
    """Return a DOCX with a title heading and one section per page.

    Each page gets a ``Page N`` heading followed by its text in a monospace
    run; line breaks and tabs are kept.
    """
    doc = Document()
    clean_title = sanitize_text(title)
    doc.core_properties.title = clean_title
    doc.add_heading(clean_title, level=1)

    count = 0
    for page in pages:
        doc.add_heading(f"Page {page.page_number}", level=3)
        run = doc.add_paragraph().add_run(sanitize_text(page.text))
        run.font.name = PREFORMATTED_FONT
        run.font.size = PREFORMATTED_SIZE
        count += 1

    buf = io.BytesIO()
    doc.save(buf)
    log.debug("build_document: %s pages, %s bytes", count, buf.tell())
    return _pin_package(buf.getvalue())


def build_spreadsheet(pages: Iterable[PageResult]) -> bytes:
    """Return an XLSX with a single ``Content`` sheet of (page, text) rows."""
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME
    ws.append(list(SHEET_HEADER))

    count = 0
    for page in pages:
        ws.append([page.page_number, sanitize_text(page.text)])
        text_cell = ws.cell(row=ws.max_row, column=2)
        # OCR output starting with "=" must stay text, not become a formula.
        if text_cell.data_type == "f":
            text_cell.data_type = "s"
        count += 1

    buf = io.BytesIO()
    wb.save(buf)
    log.debug("build_spreadsheet: %s rows, %s bytes", count + 1, buf.tell())
    return _pin_package(buf.getvalue())

"""PDF decoding and page rendering on top of PyMuPDF."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import pymupdf
from PIL import Image

from .errors import DecodeError, PageRangeError
from .utils import RENDER_SCALE

log = logging.getLogger(__name__)


class SourceDocument:
    """Decoded PDF owned by a single conversion run.

    Use as a context manager so the underlying PyMuPDF handle is released once
    every page has been processed.
    """

    def __init__(self, handle: Any) -> None:
        self._handle = handle

    @property
    def page_count(self) -> int:
        return self._handle.page_count

    @property
    def handle(self) -> Any:
        return self._handle

    def close(self) -> None:
        if not self._handle.is_closed:
            self._handle.close()

    def __enter__(self) -> SourceDocument:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@dataclass
class PageContent:
    """Native text of one page plus lazy access to its raster image."""

    page_number: int
    native_text: str
    page: Any

    def render(self, scale: float = RENDER_SCALE) -> Image.Image:
        return render(self, scale)


def decode(data: bytes) -> SourceDocument:
    """Open *data* as a PDF.

    Raises:
        DecodeError: If the buffer is empty, corrupt, encrypted or has no pages.
    """
    if not data:
        raise DecodeError("Empty file provided")

    try:
        handle = pymupdf.open(stream=data, filetype="pdf")
    except (RuntimeError, ValueError) as exc:
        raise DecodeError(f"Corrupt or invalid PDF: {exc}") from exc

    if handle.needs_pass:
        handle.close()
        raise DecodeError("PDF is password protected")

    if handle.page_count < 1:
        handle.close()
        raise DecodeError("PDF contains no pages")

    log.debug("decode: opened PDF with %s pages", handle.page_count)
    return SourceDocument(handle)


def get_page(doc: SourceDocument, page_number: int) -> PageContent:
    """Return the native text layer of 1-based *page_number*.

    Raises:
        PageRangeError: If *page_number* is outside ``1..doc.page_count``.
    """
    if not 1 <= page_number <= doc.page_count:
        raise PageRangeError(
            f"Page {page_number} out of range (document has {doc.page_count} pages)"
        )

    page = doc.handle.load_page(page_number - 1)
    lines = (line.strip() for line in page.get_text("text").splitlines())
    native_text = "\n".join(line for line in lines if line)
    return PageContent(page_number=page_number, native_text=native_text, page=page)


def render(page: PageContent, scale: float = RENDER_SCALE) -> Image.Image:
    """Rasterize *page* at *scale* (1.0 == 72 dpi) into an RGB image."""
    matrix = pymupdf.Matrix(scale, scale)
    pix = page.page.get_pixmap(matrix=matrix, alpha=False)
    log.debug(
        "render: page %s at %.1fx -> %sx%s px",
        page.page_number,
        scale,
        pix.width,
        pix.height,
    )
    return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)

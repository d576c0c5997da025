"""Decide whether a page carries a usable text layer."""

from __future__ import annotations

from .models import PageClass
from .utils import TEXT_THRESHOLD


def classify(native_text: str, threshold: int = TEXT_THRESHOLD) -> PageClass:
    """Return ``HAS_TEXT`` when the trimmed text is longer than *threshold*.

    Shorter text layers are usually stray metadata strings on scanned pages,
    so those pages go to OCR instead.
    """
    if len(native_text.strip()) > threshold:
        return PageClass.HAS_TEXT
    return PageClass.NEEDS_OCR

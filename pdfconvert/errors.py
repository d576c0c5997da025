"""Exception types raised by the conversion pipeline."""


class ConversionError(Exception):
    """Base exception for all conversion errors."""

    pass


class DecodeError(ConversionError):
    """Raised when a PDF byte buffer cannot be opened."""

    pass


class PageRangeError(ConversionError, IndexError):
    """Raised when a page number outside ``1..page_count`` is requested."""

    pass


class OcrError(ConversionError):
    """Raised when the OCR engine fails to recognize a page image."""

    pass

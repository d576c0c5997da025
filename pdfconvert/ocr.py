"""Tesseract OCR engine adapter."""

from __future__ import annotations

import logging
import shutil
import threading
import time
from typing import Callable, Optional, Protocol

from PIL import Image

from .errors import OcrError
from .models import OcrProgress
from .utils import OCR_LANGUAGE

log = logging.getLogger(__name__)

_TESSERACT_CMD_LOCK = threading.Lock()

OcrProgressCallback = Callable[[OcrProgress], None]


class OcrEngine(Protocol):
    """Anything that can turn a page image into text."""

    def recognize(
        self,
        image: Image.Image,
        language: str = OCR_LANGUAGE,
        progress: Optional[OcrProgressCallback] = None,
    ) -> str:
        ...


class TesseractOcrEngine:
    """Runs one ``pytesseract.image_to_string`` call per page image.

    Tesseract reports no incremental progress, so the adapter emits the
    stage boundaries it can observe: ``initializing`` (0.0),
    ``recognizing text`` (0.1) and ``recognizing text`` (1.0).
    """

    def __init__(self, tesseract_cmd: Optional[str] = None, config: str = "") -> None:
        self.tesseract_cmd = tesseract_cmd
        self.config = config
        if tesseract_cmd:
            _configure_tesseract_cmd(tesseract_cmd)

    def recognize(
        self,
        image: Image.Image,
        language: str = OCR_LANGUAGE,
        progress: Optional[OcrProgressCallback] = None,
    ) -> str:
        import pytesseract

        def _emit(status: str, fraction: float) -> None:
            if progress is not None:
                progress(OcrProgress(status=status, fraction=fraction))

        _emit("initializing", 0.0)
        t0 = time.time()
        try:
            _emit("recognizing text", 0.1)
            text = pytesseract.image_to_string(image, lang=language, config=self.config)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as exc:
            raise OcrError(f"Tesseract failed: {exc}") from exc
        except (OSError, RuntimeError, ValueError) as exc:
            raise OcrError(f"OCR call failed: {exc}") from exc
        _emit("recognizing text", 1.0)

        log.debug(
            "recognize: %s chars in %.2fs (lang=%s)",
            len(text),
            time.time() - t0,
            language,
        )
        return text


def _configure_tesseract_cmd(tesseract_cmd: str) -> None:
    # pytesseract keeps the binary path in a module global shared by every thread.
    import pytesseract

    with _TESSERACT_CMD_LOCK:
        if pytesseract.pytesseract.tesseract_cmd != tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd


def create_ocr_engine(
    *,
    tesseract_cmd: Optional[str] = None,
    config: str = "",
) -> tuple[TesseractOcrEngine, str]:
    """Build the Tesseract adapter.

    Returns:
        (engine, engine_name) where ``engine_name`` is ``"tesseract"`` or
        ``"tesseract-missing"`` when no binary could be found. A missing binary
        is not fatal: every OCR call then fails and the page is marked as such.
    """
    resolved = tesseract_cmd or shutil.which("tesseract")
    if resolved is None:
        log.warning(
            "create_ocr_engine: tesseract binary not found; scanned pages will be "
            "marked as failed"
        )
        return TesseractOcrEngine(tesseract_cmd=None, config=config), "tesseract-missing"

    log.info("create_ocr_engine: using tesseract at %s", resolved)
    return TesseractOcrEngine(tesseract_cmd=resolved, config=config), "tesseract"

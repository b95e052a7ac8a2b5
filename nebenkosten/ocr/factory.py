"""OCR engine selection.

`settings.ocr_provider` picks the engine. Engine modules are imported on
demand so that PaddleOCR stays an optional install.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from nebenkosten.ocr.service import OCRResult, ProgressCallback
from nebenkosten.shared.config import Settings

logger = logging.getLogger(__name__)


class TextExtractor(Protocol):
    """What the API and CLI need from an OCR engine."""

    def extract_text(
        self, image_path: Path, progress: ProgressCallback | None = None
    ) -> OCRResult: ...

    def is_available(self) -> bool: ...


def _tesseract(settings: Settings) -> TextExtractor:
    from nebenkosten.ocr.service import OCRService

    return OCRService(settings)


def _paddleocr(settings: Settings) -> TextExtractor:
    from nebenkosten.ocr.paddle_service import PaddleOCRService

    return PaddleOCRService(settings)


OCR_ENGINES: dict[str, Callable[[Settings], TextExtractor]] = {
    "tesseract": _tesseract,
    "paddleocr": _paddleocr,
}


def create_ocr_service(settings: Settings) -> TextExtractor:
    """Build the OCR engine named by settings.ocr_provider.

    An engine that is configured but not installed is still returned; its
    extract_text reports the problem per bill, and /ready shows it.

    Raises:
        ValueError: If the engine name is unknown
    """
    name = settings.ocr_provider
    build = OCR_ENGINES.get(name)
    if build is None:
        choices = ", ".join(OCR_ENGINES)
        raise ValueError(f"Unknown OCR provider: '{name}'. Choose one of: {choices}")

    engine = build(settings)
    if not engine.is_available():
        logger.warning(f"OCR engine '{name}' is configured but not installed")
    logger.info(f"Using OCR engine: {name}")
    return engine

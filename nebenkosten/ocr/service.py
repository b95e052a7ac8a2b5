"""Tesseract adapter for scanned utility bills.

The engine runs locally through pytesseract with the German language pack
(`deu`). Scans are optionally cleaned up first (see preprocess.py). Callers
get an OCRResult back in every case; engine failures never propagate.

pytesseract: https://github.com/madmaze/pytesseract
"""

import logging
import os
from collections.abc import Callable
from pathlib import Path

import pytesseract
from PIL import Image
from pydantic import BaseModel

from nebenkosten.ocr.preprocess import preprocess_image
from nebenkosten.shared.config import Settings

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

# Fractions reported to the progress callback
PROGRESS_STARTED = 0.0
PROGRESS_IMAGE_READY = 0.2
PROGRESS_DONE = 1.0


class OCRResult(BaseModel):
    """Recognized text of one bill scan.

    Attributes:
        text: Raw recognized text, empty on failure
        success: False if the image could not be read or recognized
        error: Failure description for the user or logs
        confidence: Mean engine confidence in [0, 1], when the engine reports one
    """

    text: str
    success: bool
    error: str | None = None
    confidence: float | None = None

    @classmethod
    def failure(cls, error: str) -> "OCRResult":
        return cls(text="", success=False, error=error)


def report_progress(callback: ProgressCallback | None, fraction: float) -> None:
    """Report a progress fraction in [0, 1] if a callback was given."""
    if callback is not None:
        callback(max(0.0, min(1.0, fraction)))


class OCRService:
    """Recognizes bill text with the Tesseract binary.

    The binary location can be overridden with TESSERACT_CMD, e.g.
    /opt/homebrew/bin/tesseract on macOS.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        tesseract_cmd = os.getenv("TESSERACT_CMD")
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def is_available(self) -> bool:
        """True if the tesseract binary can be executed."""
        try:
            pytesseract.get_tesseract_version()
        except (pytesseract.TesseractNotFoundError, OSError):
            return False
        return True

    def _load(self, image_path: Path) -> Image.Image:
        image = Image.open(image_path)
        if self.settings.ocr_preprocess:
            return preprocess_image(image)
        return image

    def extract_text(
        self, image_path: Path, progress: ProgressCallback | None = None
    ) -> OCRResult:
        """Recognize the text of a bill scan.

        Args:
            image_path: Scanned bill (PNG, JPEG, TIFF, ...)
            progress: Optional callback receiving fractions in [0, 1]
        """
        if not image_path.exists():
            return OCRResult.failure(f"Image file not found: {image_path}")

        report_progress(progress, PROGRESS_STARTED)
        try:
            image = self._load(image_path)
            report_progress(progress, PROGRESS_IMAGE_READY)
            text = pytesseract.image_to_string(image, lang=self.settings.ocr_language)
        except Exception as e:
            logger.warning(f"Tesseract could not read {image_path.name}: {e}")
            return OCRResult.failure(f"OCR processing failed: {e}")

        report_progress(progress, PROGRESS_DONE)
        logger.debug(f"Recognized {len(text)} characters from {image_path.name}")
        return OCRResult(text=text, success=True)

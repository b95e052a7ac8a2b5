"""PaddleOCR adapter, an alternative to Tesseract for hard-to-read photos.

The PaddleOCR model is heavy, so it is created on the first bill rather
than at startup. Only the PaddleOCR 3.x prediction format (`rec_texts`,
`rec_scores`) is understood.

Install with the `paddle` extra: pip install "nebenkosten-checker[paddle]"
"""

import logging
import os
from pathlib import Path
from typing import Any

from nebenkosten.ocr.service import OCRResult, ProgressCallback, report_progress
from nebenkosten.shared.config import Settings

logger = logging.getLogger(__name__)

PADDLE_LANGUAGE = "german"


def _text_and_confidence(prediction: Any) -> tuple[str, float]:
    """Join recognized lines and average their scores."""
    lines = prediction.get("rec_texts", [])
    scores = prediction.get("rec_scores", [])
    confidence = sum(scores) / len(scores) if scores else 0.0
    return "\n".join(lines), confidence


class PaddleOCRService:
    """Recognizes bill text with a lazily created PaddleOCR engine."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._engine: Any | None = None
        # Skip the model hoster connectivity check on startup
        os.environ.setdefault("DISABLE_MODEL_SOURCE_CHECK", "True")

    def _load_engine(self) -> Any:
        if self._engine is None:
            try:
                from paddleocr import PaddleOCR
            except ImportError as e:
                raise ImportError(
                    'PaddleOCR is not installed; install "nebenkosten-checker[paddle]"'
                ) from e
            logger.info(f"Loading PaddleOCR model (lang={PADDLE_LANGUAGE})")
            self._engine = PaddleOCR(lang=PADDLE_LANGUAGE)
        return self._engine

    def is_available(self) -> bool:
        """True if the paddleocr package can be imported."""
        try:
            import paddleocr  # noqa: F401
        except ImportError:
            return False
        return True

    def extract_text(
        self, image_path: Path, progress: ProgressCallback | None = None
    ) -> OCRResult:
        """Recognize the text of a bill scan; see OCRService.extract_text."""
        if not image_path.exists():
            return OCRResult.failure(f"Image file not found: {image_path}")

        report_progress(progress, 0.0)
        try:
            engine = self._load_engine()
            report_progress(progress, 0.2)
            predictions = engine.ocr(str(image_path))
        except Exception as e:
            logger.error(f"PaddleOCR could not read {image_path.name}: {e}")
            return OCRResult.failure(f"OCR processing failed: {e}")
        report_progress(progress, 1.0)

        if not predictions or not predictions[0]:
            return OCRResult(text="", success=True, confidence=0.0)

        text, confidence = _text_and_confidence(predictions[0])
        return OCRResult(text=text, success=True, confidence=confidence)

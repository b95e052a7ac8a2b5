"""Tests for the PaddleOCR adapter and OCR engine selection."""

import os
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from nebenkosten.ocr.factory import OCR_ENGINES, create_ocr_service
from nebenkosten.ocr.paddle_service import PaddleOCRService
from nebenkosten.ocr.service import OCRService
from nebenkosten.shared.config import Settings


@pytest.fixture
def paddle_settings() -> Settings:
    return Settings(_env_file=None, ocr_provider="paddleocr")


def fake_engine(predictions: list) -> MagicMock:
    engine = MagicMock()
    engine.ocr.return_value = predictions
    return engine


def fake_prediction(lines: list[str], scores: list[float]) -> MagicMock:
    prediction = MagicMock()
    fields = {"rec_texts": lines, "rec_scores": scores}
    prediction.get.side_effect = lambda key, default=None: fields.get(key, default)
    return prediction


class TestPaddleOCRService:
    def test_unavailable_without_package(self, paddle_settings: Settings) -> None:
        service = PaddleOCRService(paddle_settings)

        with patch.dict(sys.modules, {"paddleocr": None}):
            assert service.is_available() is False

    def test_missing_scan_fails_without_loading_model(self, paddle_settings: Settings) -> None:
        service = PaddleOCRService(paddle_settings)

        result = service.extract_text(Path("/nonexistent/abrechnung.jpg"))

        assert result.success is False
        assert "not found" in str(result.error).lower()
        assert service._engine is None

    def test_lines_joined_and_scores_averaged(self, paddle_settings: Settings) -> None:
        service = PaddleOCRService(paddle_settings)
        prediction = fake_prediction(
            ["Betriebskostenabrechnung 2024", "Heizkosten 845,20 €"], [0.95, 0.98]
        )
        fractions: list[float] = []

        with patch.object(service, "_load_engine", return_value=fake_engine([prediction])):
            with patch("pathlib.Path.exists", return_value=True):
                result = service.extract_text(Path("scan.jpg"), progress=fractions.append)

        assert result.success is True
        assert result.text == "Betriebskostenabrechnung 2024\nHeizkosten 845,20 €"
        assert result.confidence == pytest.approx(0.965, rel=0.01)
        assert fractions == [0.0, 0.2, 1.0]

    def test_blank_page_gives_empty_text(self, paddle_settings: Settings) -> None:
        service = PaddleOCRService(paddle_settings)

        with patch.object(service, "_load_engine", return_value=fake_engine([None])):
            with patch("pathlib.Path.exists", return_value=True):
                result = service.extract_text(Path("leer.jpg"))

        assert result.success is True
        assert result.text == ""
        assert result.confidence == 0.0

    def test_missing_package_reported_as_failure(self, paddle_settings: Settings) -> None:
        service = PaddleOCRService(paddle_settings)

        with patch.object(service, "_load_engine", side_effect=ImportError("no paddleocr")):
            with patch("pathlib.Path.exists", return_value=True):
                result = service.extract_text(Path("scan.jpg"))

        assert result.success is False
        assert "no paddleocr" in str(result.error)

    def test_model_source_check_disabled(self, paddle_settings: Settings) -> None:
        PaddleOCRService(paddle_settings)
        assert os.environ.get("DISABLE_MODEL_SOURCE_CHECK") == "True"


class TestCreateOCRService:
    def test_tesseract_is_default(self) -> None:
        assert isinstance(create_ocr_service(Settings(_env_file=None)), OCRService)

    def test_paddleocr_selected_by_name(self, paddle_settings: Settings) -> None:
        with patch.object(PaddleOCRService, "is_available", return_value=True):
            service = create_ocr_service(paddle_settings)
        assert isinstance(service, PaddleOCRService)

    def test_uninstalled_engine_still_returned(self, paddle_settings: Settings) -> None:
        with patch.object(PaddleOCRService, "is_available", return_value=False):
            service = create_ocr_service(paddle_settings)
        assert isinstance(service, PaddleOCRService)

    def test_unknown_engine_rejected(self) -> None:
        settings = Settings(_env_file=None)
        object.__setattr__(settings, "ocr_provider", "easyocr")

        with pytest.raises(ValueError, match="Unknown OCR provider: 'easyocr'"):
            create_ocr_service(settings)

    def test_registered_engines(self) -> None:
        assert set(OCR_ENGINES) == {"tesseract", "paddleocr"}

"""Tests for the extraction provider registry and factory."""

import logging

import pytest
from nebenkosten.extraction.base import ExtractionProvider, ExtractionResult
from nebenkosten.extraction.factory import ProviderRegistry, create_extraction_service
from nebenkosten.extraction.heuristic_provider import HeuristicExtractionProvider
from nebenkosten.extraction.schema import ExtractedBill
from nebenkosten.shared.config import Settings


def test_heuristic_provider_registered_by_default() -> None:
    assert "heuristic" in ProviderRegistry.list_providers()


def test_provider_registry_get_heuristic() -> None:
    assert ProviderRegistry.get_provider_class("heuristic") == HeuristicExtractionProvider


def test_unknown_provider_lists_known_names() -> None:
    with pytest.raises(ValueError, match="Unknown extraction provider") as exc_info:
        ProviderRegistry.get_provider_class("nonexistent")

    assert "Available providers" in str(exc_info.value)
    assert "heuristic" in str(exc_info.value)


def test_registered_provider_can_be_selected_by_settings() -> None:
    class FixedProvider(ExtractionProvider):
        def extract_bill_fields(self, ocr_text: str) -> ExtractionResult:
            return ExtractionResult(
                bill=ExtractedBill(postal_code="10115"), success=True, provider="fixed"
            )

        def is_available(self) -> bool:
            return True

        @property
        def provider_name(self) -> str:
            return "fixed"

    ProviderRegistry.register("fixed", FixedProvider)
    try:
        assert "fixed" in ProviderRegistry.list_providers()
        assert ProviderRegistry.get_provider_class("fixed") == FixedProvider

        selected = create_extraction_service(Settings(_env_file=None, extraction_provider="fixed"))
        assert isinstance(selected, FixedProvider)
    finally:
        del ProviderRegistry._providers["fixed"]


def test_factory_builds_heuristic_provider() -> None:
    provider = create_extraction_service(Settings(_env_file=None))

    assert isinstance(provider, HeuristicExtractionProvider)
    assert provider.provider_name == "heuristic"
    assert provider.is_available() is True


def test_factory_logs_provider_name(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO):
        create_extraction_service(Settings(_env_file=None))

    assert "Created extraction provider: heuristic" in caplog.text


def test_factory_rejects_unregistered_provider() -> None:
    with pytest.raises(ValueError, match="Unknown extraction provider: 'openai'"):
        create_extraction_service(Settings(_env_file=None, extraction_provider="openai"))

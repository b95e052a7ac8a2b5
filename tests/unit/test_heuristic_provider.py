"""Unit tests for the heuristic extraction provider and its base interface."""

from unittest.mock import patch

import pytest

from nebenkosten.analysis.schema import CostCategory
from nebenkosten.extraction.base import ExtractionProvider, ExtractionResult
from nebenkosten.extraction.heuristic_provider import HeuristicExtractionProvider
from nebenkosten.shared.config import Settings


@pytest.fixture
def provider() -> HeuristicExtractionProvider:
    return HeuristicExtractionProvider(Settings(_env_file=None))


def test_extraction_provider_is_abstract() -> None:
    """Test that ExtractionProvider cannot be instantiated directly."""
    with pytest.raises(TypeError, match="Can't instantiate abstract class"):
        ExtractionProvider(Settings(_env_file=None))  # type: ignore[abstract]


def test_extraction_result_failure() -> None:
    result = ExtractionResult(bill=None, success=False, error="boom", provider="test")

    assert result.success is False
    assert result.bill is None
    assert result.error == "boom"


def test_extract_bill_fields(provider: HeuristicExtractionProvider) -> None:
    text = "PLZ: 10115\nWohnfläche 75 m²\nHeizkosten 845,20 €"

    result = provider.extract_bill_fields(text)

    assert result.success is True
    assert result.provider == "heuristic"
    assert result.bill is not None
    assert result.bill.postal_code == "10115"
    assert result.bill.floor_area_sqm == 75.0
    assert result.bill.costs == {CostCategory.HEATING: 845.2}


def test_partial_extraction_is_still_successful(provider: HeuristicExtractionProvider) -> None:
    result = provider.extract_bill_fields("Heizkosten 845,20 €")

    assert result.success is True
    assert result.bill is not None
    assert result.bill.missing_fields == ["postal_code", "floor_area_sqm", "period"]


def test_empty_text(provider: HeuristicExtractionProvider) -> None:
    result = provider.extract_bill_fields("")

    assert result.success is True
    assert result.bill is not None
    assert result.bill.postal_code is None


def test_plausible_cost_limit_from_settings() -> None:
    provider = HeuristicExtractionProvider(Settings(_env_file=None, max_plausible_cost=2000))

    result = provider.extract_bill_fields("Heizkosten 1.350,00 €")

    assert result.bill is not None
    assert result.bill.costs == {CostCategory.HEATING: 1350.0}


def test_parser_errors_become_failed_result(provider: HeuristicExtractionProvider) -> None:
    with patch.object(provider._parser, "parse", side_effect=RuntimeError("regex exploded")):
        result = provider.extract_bill_fields("anything")

    assert result.success is False
    assert result.bill is None
    assert result.error is not None
    assert "regex exploded" in result.error

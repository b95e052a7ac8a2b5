"""Unit tests for baseline comparison and band classification."""

import pytest

from nebenkosten.analysis.comparator import Comparator, percentage_deviation
from nebenkosten.analysis.schema import ComparisonBand
from nebenkosten.shared.config import Settings


@pytest.fixture
def comparator() -> Comparator:
    return Comparator(Settings(_env_file=None))


def test_percentage_deviation() -> None:
    assert percentage_deviation(3.0, 1.52) == pytest.approx(97.368, rel=1e-4)
    assert percentage_deviation(1.0, 2.0) == pytest.approx(-50.0)
    assert percentage_deviation(1.2, 1.2) == 0.0


@pytest.mark.parametrize(
    ("deviation", "expected"),
    [
        (-60.0, ComparisonBand.LOW),
        (-15.01, ComparisonBand.LOW),
        (-15.0, ComparisonBand.AVERAGE),
        (0.0, ComparisonBand.AVERAGE),
        (14.99, ComparisonBand.AVERAGE),
        (15.0, ComparisonBand.HIGH),
        (49.99, ComparisonBand.HIGH),
        (50.0, ComparisonBand.VERY_HIGH),
        (250.0, ComparisonBand.VERY_HIGH),
    ],
)
def test_band_boundaries(
    comparator: Comparator, deviation: float, expected: ComparisonBand
) -> None:
    """Lower bounds are inclusive, upper bounds exclusive."""
    assert comparator.classify(deviation) is expected


def test_bands_are_monotonic(comparator: Comparator) -> None:
    """A larger deviation never lands in a lower band."""
    order = list(ComparisonBand)
    deviations = [x / 2 for x in range(-200, 400)]
    ranks = [order.index(comparator.classify(d)) for d in deviations]

    assert ranks == sorted(ranks)


def test_custom_thresholds() -> None:
    comparator = Comparator(
        Settings(_env_file=None, band_low_below=-10, band_high_from=10, band_very_high_from=30)
    )

    assert comparator.classify(-12) is ComparisonBand.LOW
    assert comparator.classify(12) is ComparisonBand.HIGH
    assert comparator.classify(30) is ComparisonBand.VERY_HIGH


class TestCompareMessages:
    """Test German user-facing messages per band."""

    def test_low(self, comparator: Comparator) -> None:
        result = comparator.compare("heating", 1.0, 2.0)

        assert result.band is ComparisonBand.LOW
        assert result.message == "50% unter dem Durchschnitt - sehr gut!"

    def test_average_positive(self, comparator: Comparator) -> None:
        result = comparator.compare("water", 1.1, 1.0)

        assert result.band is ComparisonBand.AVERAGE
        assert result.message == "Im Durchschnittsbereich (+10%)"

    def test_average_negative(self, comparator: Comparator) -> None:
        result = comparator.compare("water", 1.48, 1.52)

        assert result.band is ComparisonBand.AVERAGE
        assert result.message == "Im Durchschnittsbereich (-3%)"

    def test_high(self, comparator: Comparator) -> None:
        result = comparator.compare("waste", 1.3, 1.0)

        assert result.band is ComparisonBand.HIGH
        assert result.message == "30% über dem Durchschnitt - prüfenswert"

    def test_very_high(self, comparator: Comparator) -> None:
        result = comparator.compare("heating", 3.0, 1.52)

        assert result.band is ComparisonBand.VERY_HIGH
        assert result.message == "97% über dem Durchschnitt - deutlich zu hoch!"

    def test_comparison_carries_inputs(self, comparator: Comparator) -> None:
        result = comparator.compare("total", 3.3, 3.72)

        assert result.category == "total"
        assert result.user_amount == 3.3
        assert result.baseline_amount == 3.72
        assert result.percentage_deviation == pytest.approx(-11.29, rel=1e-3)

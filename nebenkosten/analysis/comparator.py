"""Classification of normalized costs against regional baselines."""

from nebenkosten.analysis.schema import ComparisonBand, Comparison
from nebenkosten.shared.config import Settings


def percentage_deviation(user_amount: float, baseline_amount: float) -> float:
    """Deviation of user_amount from baseline_amount in percent (baseline > 0)."""
    return (user_amount - baseline_amount) / baseline_amount * 100


class Comparator:
    """Assigns a severity band and message to a cost comparison.

    Bands partition the real line:
    [-inf, low_below) low, [low_below, high_from) average,
    [high_from, very_high_from) high, [very_high_from, inf) very_high.
    """

    def __init__(self, settings: Settings) -> None:
        self.low_below = settings.band_low_below
        self.high_from = settings.band_high_from
        self.very_high_from = settings.band_very_high_from

    def classify(self, deviation: float) -> ComparisonBand:
        if deviation < self.low_below:
            return ComparisonBand.LOW
        if deviation < self.high_from:
            return ComparisonBand.AVERAGE
        if deviation < self.very_high_from:
            return ComparisonBand.HIGH
        return ComparisonBand.VERY_HIGH

    def compare(self, category: str, user_amount: float, baseline_amount: float) -> Comparison:
        deviation = percentage_deviation(user_amount, baseline_amount)
        band = self.classify(deviation)
        return Comparison(
            category=category,
            user_amount=user_amount,
            baseline_amount=baseline_amount,
            percentage_deviation=deviation,
            band=band,
            message=_band_message(band, deviation),
        )


def _band_message(band: ComparisonBand, deviation: float) -> str:
    if band is ComparisonBand.LOW:
        return f"{abs(deviation):.0f}% unter dem Durchschnitt - sehr gut!"
    if band is ComparisonBand.AVERAGE:
        sign = "+" if deviation > 0 else ""
        return f"Im Durchschnittsbereich ({sign}{deviation:.0f}%)"
    if band is ComparisonBand.HIGH:
        return f"{deviation:.0f}% über dem Durchschnitt - prüfenswert"
    return f"{deviation:.0f}% über dem Durchschnitt - deutlich zu hoch!"

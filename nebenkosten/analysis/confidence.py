"""Heuristic confidence score for an analysis (not a calibrated model)."""

from nebenkosten.analysis.schema import BillRecord, CostCategory, DataQuality, RegionalProfile
from nebenkosten.shared.config import Settings

# Absence or defaulting of any of these lowers the score.
CRITICAL_FIELDS = ("heating", "floor_area_sqm")


class ConfidenceScorer:
    """Scores data-quality caveats on a 0-100 scale, clamped to [floor, ceiling]."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def score(self, profile: RegionalProfile, bill: BillRecord) -> int:
        s = self.settings
        official = profile.data_quality is DataQuality.OFFICIAL_LOCAL
        confidence = 100

        if not official:
            confidence -= s.confidence_estimated_penalty
        if profile.population < s.small_town_population:
            confidence -= s.confidence_small_town_penalty
        if self._critical_data_missing(bill):
            confidence -= s.confidence_missing_data_penalty
        if official and profile.population > s.large_city_population:
            confidence += s.confidence_large_city_bonus

        return max(s.confidence_floor, min(s.confidence_ceiling, confidence))

    @staticmethod
    def _critical_data_missing(bill: BillRecord) -> bool:
        if bill.cost(CostCategory.HEATING) <= 0:
            return True
        return any(field in bill.defaulted_fields for field in CRITICAL_FIELDS)

"""Bill analysis pipeline.

Flow: BillRecord -> (RegionalProfile, EnergyPrice) -> NormalizedCosts ->
Comparisons -> SavingsEstimate -> confidence -> AnalysisResult.

All collaborators are passed in explicitly; the pipeline holds no state
between analyses.
"""

import asyncio
import logging
from datetime import date

from pydantic import ValidationError

from nebenkosten.analysis.comparator import Comparator
from nebenkosten.analysis.confidence import ConfidenceScorer
from nebenkosten.analysis.normalizer import CostNormalizer
from nebenkosten.analysis.savings import SavingsEstimator
from nebenkosten.analysis.schema import (
    COMPARABLE_CATEGORIES,
    MAX_FLOOR_AREA_SQM,
    MIN_FLOOR_AREA_SQM,
    TOTAL,
    AnalysisResult,
    BillCorrections,
    BillingPeriod,
    BillRecord,
    CostCategory,
    EnergyPrice,
    RegionalProfile,
    is_valid_postal_code,
)
from nebenkosten.energy.prices import ElectricityPriceService
from nebenkosten.extraction.schema import ExtractedBill
from nebenkosten.location.resolver import LocationResolver
from nebenkosten.shared.config import Settings
from nebenkosten.shared.exceptions import BillValidationError

logger = logging.getLogger(__name__)


def build_bill_record(
    extracted: ExtractedBill | None,
    corrections: BillCorrections | None,
    today: date,
) -> BillRecord:
    """Merge extraction output with manual corrections into a BillRecord.

    Corrections win over extracted values. A missing period defaults to the
    previous calendar year; missing comparable cost categories default to 0.
    Defaulted fields are recorded on the record.

    Raises:
        BillValidationError: If postal code, floor area or cost data is
            missing or out of range
    """
    extracted = extracted or ExtractedBill()
    corrections = corrections or BillCorrections()
    defaulted: set[str] = set()

    postal_code = corrections.postal_code or extracted.postal_code
    if not postal_code:
        raise BillValidationError(
            "Postleitzahl konnte nicht erkannt werden. Bitte geben Sie sie manuell ein.",
            field="postal_code",
        )
    if not is_valid_postal_code(postal_code):
        raise BillValidationError(
            f"Ungültige Postleitzahl: {postal_code} (5 Ziffern erwartet)", field="postal_code"
        )

    floor_area = corrections.floor_area_sqm
    if floor_area is None:
        floor_area = extracted.floor_area_sqm
    if floor_area is None:
        raise BillValidationError(
            "Wohnungsgröße (m²) konnte nicht erkannt werden. Bitte geben Sie sie manuell ein.",
            field="floor_area_sqm",
        )
    if not MIN_FLOOR_AREA_SQM <= floor_area <= MAX_FLOOR_AREA_SQM:
        raise BillValidationError(
            f"Wohnfläche muss zwischen {MIN_FLOOR_AREA_SQM:.0f} und "
            f"{MAX_FLOOR_AREA_SQM:.0f} m² liegen (angegeben: {floor_area:g} m²)",
            field="floor_area_sqm",
        )

    period = corrections.period or extracted.period
    if period is None:
        period = BillingPeriod.previous_calendar_year(today)
        defaulted.add("period")

    costs: dict[CostCategory, float] = {**extracted.costs, **corrections.costs}
    for category in COMPARABLE_CATEGORIES:
        if category not in costs:
            costs[category] = 0.0
            defaulted.add(category.value)
    if not any(costs[category] > 0 for category in COMPARABLE_CATEGORIES):
        raise BillValidationError(
            "Keine Kostenangaben gefunden. Bitte geben Sie mindestens Heiz-, Wasser-, "
            "Müll- oder Instandhaltungskosten ein.",
            field="costs",
        )

    try:
        return BillRecord(
            postal_code=postal_code,
            floor_area_sqm=floor_area,
            period=period,
            costs=costs,
            defaulted_fields=frozenset(defaulted),
        )
    except ValidationError as e:
        error = e.errors()[0]
        message = error["msg"].removeprefix("Value error, ")
        field = str(error["loc"][0]) if error["loc"] else None
        raise BillValidationError(message, field=field) from e


class BillAnalyzer:
    """Runs the analysis pipeline for one bill at a time."""

    def __init__(
        self,
        settings: Settings,
        location_resolver: LocationResolver,
        price_service: ElectricityPriceService | None = None,
        normalizer: CostNormalizer | None = None,
        comparator: Comparator | None = None,
        savings_estimator: SavingsEstimator | None = None,
        confidence_scorer: ConfidenceScorer | None = None,
    ) -> None:
        self.settings = settings
        self.location_resolver = location_resolver
        self.price_service = price_service
        self.normalizer = normalizer or CostNormalizer()
        self.comparator = comparator or Comparator(settings)
        self.savings_estimator = savings_estimator or SavingsEstimator(settings)
        self.confidence_scorer = confidence_scorer or ConfidenceScorer(settings)

    async def analyze(self, bill: BillRecord) -> AnalysisResult:
        """Resolve location and electricity price concurrently, then evaluate.

        Raises:
            LocationNotResolvableError: If the postal code cannot be resolved
        """
        energy_price: EnergyPrice | None = None
        if self.price_service is not None:
            profile, energy_price = await asyncio.gather(
                self.location_resolver.resolve(bill.postal_code),
                self.price_service.current_price(),
            )
        else:
            profile = await self.location_resolver.resolve(bill.postal_code)

        return self.evaluate(bill, profile, energy_price)

    def evaluate(
        self,
        bill: BillRecord,
        profile: RegionalProfile,
        energy_price: EnergyPrice | None = None,
    ) -> AnalysisResult:
        """Deterministic part of the analysis; no I/O."""
        normalized = self.normalizer.normalize(bill)

        comparisons = [
            self.comparator.compare(
                category.value, normalized.amount(category), profile.baseline(category)
            )
            for category in COMPARABLE_CATEGORIES
        ]
        comparisons.append(
            self.comparator.compare(TOTAL, normalized.total, profile.baseline_total)
        )

        savings = self.savings_estimator.estimate(
            normalized, profile.baseline_costs, bill.floor_area_sqm
        )
        confidence = self.confidence_scorer.score(profile, bill)

        logger.info(
            f"Analyzed bill for {bill.postal_code} ({profile.city}): "
            f"total {comparisons[-1].band.value}, savings {savings.potential_savings:.0f} EUR, "
            f"confidence {confidence}"
        )

        return AnalysisResult(
            bill=bill,
            normalized_costs=normalized,
            regional_profile=profile,
            comparisons=comparisons,
            savings=savings,
            confidence=confidence,
            energy_price=energy_price,
        )

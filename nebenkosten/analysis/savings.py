"""Annual savings projection and tenant recommendations."""

import logging

from nebenkosten.analysis.schema import CostCategory, NormalizedCosts, SavingsEstimate
from nebenkosten.shared.config import Settings

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12

RECOMMEND_TALK_TO_LANDLORD = "Sprechen Sie mit Ihrem Vermieter über die hohen Nebenkosten"
RECOMMEND_DETAILED_BREAKDOWN = (
    "Fordern Sie eine detaillierte Aufschlüsselung der Nebenkostenabrechnung an"
)
RECOMMEND_TENANT_ASSOCIATION = "Lassen Sie die Abrechnung von einem Mieterverein prüfen"

_CATEGORY_ADVICE: dict[CostCategory, str] = {
    CostCategory.HEATING: (
        "Heizkosten: Bis zu €{amount:.0f}/Jahr sparen durch bessere Dämmung "
        "oder Heizungsoptimierung"
    ),
    CostCategory.WATER: (
        "Wasserkosten: Bis zu €{amount:.0f}/Jahr sparen durch Wassersparmaßnahmen"
    ),
    CostCategory.MAINTENANCE: (
        "Instandhaltung: €{amount:.0f}/Jahr möglicherweise zu hoch - Vermieter kontaktieren"
    ),
}


class SavingsEstimator:
    """Aggregates excess spending into an annual savings estimate.

    Each category has its own trigger multiplier; categories that vary
    naturally (water, maintenance) must exceed the baseline by more before
    they count.
    """

    def __init__(self, settings: Settings) -> None:
        self.triggers: dict[CostCategory, float] = {
            CostCategory.HEATING: settings.heating_excess_multiplier,
            CostCategory.WATER: settings.water_excess_multiplier,
            CostCategory.MAINTENANCE: settings.maintenance_excess_multiplier,
        }
        self.landlord_tier = settings.savings_landlord_tier
        self.tenant_association_tier = settings.savings_tenant_association_tier

    def estimate(
        self,
        normalized: NormalizedCosts,
        baselines: dict[CostCategory, float],
        floor_area_sqm: float,
    ) -> SavingsEstimate:
        potential = 0.0
        recommendations: list[str] = []

        for category, multiplier in self.triggers.items():
            user_amount = normalized.amount(category)
            baseline = baselines[category]
            if user_amount <= baseline * multiplier:
                continue
            excess = (user_amount - baseline) * floor_area_sqm * MONTHS_PER_YEAR
            potential += excess
            recommendations.append(_CATEGORY_ADVICE[category].format(amount=excess))
            logger.debug(f"{category.value} exceeds baseline, annual excess {excess:.2f} EUR")

        if potential > self.landlord_tier:
            recommendations.append(RECOMMEND_TALK_TO_LANDLORD)
            recommendations.append(RECOMMEND_DETAILED_BREAKDOWN)
        if potential > self.tenant_association_tier:
            recommendations.append(RECOMMEND_TENANT_ASSOCIATION)

        return SavingsEstimate(potential_savings=potential, recommendations=recommendations)

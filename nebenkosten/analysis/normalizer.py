"""Cost normalization to EUR per m² per month."""

from nebenkosten.analysis.schema import (
    COMPARABLE_CATEGORIES,
    BillingPeriod,
    BillRecord,
    NormalizedCosts,
)

AVERAGE_DAYS_PER_MONTH = 30.44


def months_in_period(period: BillingPeriod) -> int:
    """Number of billing months, never less than one."""
    return max(1, round(period.days / AVERAGE_DAYS_PER_MONTH))


class CostNormalizer:
    """Converts absolute period costs into comparable per-area monthly figures.

    Expects a validated BillRecord (floor area within range, valid period).
    """

    def normalize(self, bill: BillRecord) -> NormalizedCosts:
        months = months_in_period(bill.period)
        divisor = bill.floor_area_sqm * months

        per_category = {category: amount / divisor for category, amount in bill.costs.items()}
        for category in COMPARABLE_CATEGORIES:
            per_category.setdefault(category, 0.0)

        total = sum(per_category[category] for category in COMPARABLE_CATEGORIES)
        return NormalizedCosts(months_in_period=months, per_category=per_category, total=total)

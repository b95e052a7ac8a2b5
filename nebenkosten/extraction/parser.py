"""Field parser composing matcher chains over OCR text."""

import logging

from nebenkosten.analysis.schema import BillingPeriod, CostCategory
from nebenkosten.extraction.matchers import (
    BillingPeriodMatcher,
    CostMatcher,
    FloorAreaMatcher,
    PostalCodeMatcher,
    TotalAmountMatcher,
    default_cost_matchers,
    default_floor_area_matchers,
    default_postal_code_matchers,
)
from nebenkosten.extraction.schema import ExtractedBill

logger = logging.getLogger(__name__)


class BillTextParser:
    """Recovers bill fields from noisy OCR text.

    Pure function of its input: no I/O, never raises on malformed text.

    - Postal code: candidates from all matchers in priority order, de-duplicated;
      the first one wins
    - Floor area: first in-range hit of the highest-priority matcher
    - Billing period: first valid date range
    - Costs: maximum plausible amount per category
    """

    def __init__(
        self,
        postal_code_matchers: list[PostalCodeMatcher] | None = None,
        floor_area_matchers: list[FloorAreaMatcher] | None = None,
        cost_matchers: list[CostMatcher] | None = None,
        max_plausible_cost: float = 1000.0,
    ) -> None:
        self.postal_code_matchers = postal_code_matchers or default_postal_code_matchers()
        self.floor_area_matchers = floor_area_matchers or default_floor_area_matchers()
        self.cost_matchers = cost_matchers or default_cost_matchers(max_plausible_cost)
        self.period_matcher = BillingPeriodMatcher()
        self.total_matcher = TotalAmountMatcher()

    def parse(self, text: str) -> ExtractedBill:
        if not text or not text.strip():
            return ExtractedBill()

        candidates = self.postal_code_candidates(text)
        bill = ExtractedBill(
            postal_code=candidates[0] if candidates else None,
            postal_code_candidates=candidates,
            floor_area_sqm=self.floor_area(text),
            period=self.period(text),
            costs=self.costs(text),
            total_amount=self.total_amount(text),
        )
        logger.debug(f"Parsed bill text, missing fields: {bill.missing_fields}")
        return bill

    def postal_code_candidates(self, text: str) -> list[str]:
        found: list[str] = []
        for matcher in self.postal_code_matchers:
            found.extend(matcher.find(text))
        return list(dict.fromkeys(found))

    def floor_area(self, text: str) -> float | None:
        for matcher in self.floor_area_matchers:
            sizes = matcher.find(text)
            if sizes:
                return sizes[0]
        return None

    def period(self, text: str) -> BillingPeriod | None:
        periods = self.period_matcher.find(text)
        return periods[0] if periods else None

    def costs(self, text: str) -> dict[CostCategory, float]:
        costs = {}
        for matcher in self.cost_matchers:
            amounts = matcher.find(text)
            if amounts:
                costs[matcher.category] = max(amounts)
        return costs

    def total_amount(self, text: str) -> float | None:
        totals = self.total_matcher.find(text)
        return totals[0] if totals else None

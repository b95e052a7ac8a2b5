"""Partial bill data recovered from OCR text."""

from pydantic import BaseModel, Field

from nebenkosten.analysis.schema import BillingPeriod, CostCategory


class ExtractedBill(BaseModel):
    """Bill fields recovered from OCR text.

    Every field may be absent; the caller decides whether enough was
    recovered to analyze automatically or whether to ask for corrections.
    """

    postal_code: str | None = Field(None, description="Best postal code candidate")
    postal_code_candidates: list[str] = Field(
        default_factory=list, description="Unique candidates in first-found order"
    )
    floor_area_sqm: float | None = Field(None, description="Apartment floor area in m²")
    period: BillingPeriod | None = Field(None, description="Billing period")
    costs: dict[CostCategory, float] = Field(
        default_factory=dict, description="Total EUR per category, only categories found"
    )
    total_amount: float | None = Field(None, description="Statement total, informational")

    @property
    def missing_fields(self) -> list[str]:
        missing = []
        if self.postal_code is None:
            missing.append("postal_code")
        if self.floor_area_sqm is None:
            missing.append("floor_area_sqm")
        if self.period is None:
            missing.append("period")
        if not self.costs:
            missing.append("costs")
        return missing

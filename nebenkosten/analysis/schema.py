"""Data models for utility bill analysis.

One explicit record type per pipeline stage:
BillRecord -> NormalizedCosts -> Comparison -> SavingsEstimate -> AnalysisResult.
All analysis records are frozen once constructed.
"""

import re
from datetime import date
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MIN_FLOOR_AREA_SQM = 10.0
MAX_FLOOR_AREA_SQM = 500.0

MIN_POSTAL_CODE = 1000
MAX_POSTAL_CODE = 99999

# ASCII digits only; \d and $ would also admit other scripts and a trailing newline
_POSTAL_CODE_RE = re.compile(r"[0-9]{5}")


def is_valid_postal_code(value: str) -> bool:
    """Check a German postal code (PLZ).

    Five ASCII digits whose numeric value lies in [1000, 99999],
    so "01067" is accepted and "00999" is not.
    """
    if not isinstance(value, str) or not _POSTAL_CODE_RE.fullmatch(value):
        return False
    return MIN_POSTAL_CODE <= int(value) <= MAX_POSTAL_CODE


class CostCategory(StrEnum):
    """Cost categories found on a German operating cost statement."""

    HEATING = "heating"
    WATER = "water"
    WASTE = "waste"
    MAINTENANCE = "maintenance"
    ELECTRICITY = "electricity"
    OTHER = "other"


# Categories with regional baselines; electricity and other are not comparable.
COMPARABLE_CATEGORIES: tuple[CostCategory, ...] = (
    CostCategory.HEATING,
    CostCategory.WATER,
    CostCategory.WASTE,
    CostCategory.MAINTENANCE,
)

TOTAL = "total"


class DataQuality(StrEnum):
    """Provenance of regional baseline costs."""

    OFFICIAL_LOCAL = "official-local"
    STATE_AVERAGE = "state-average"
    ESTIMATED = "estimated"


class ComparisonBand(StrEnum):
    """Severity band of a cost compared to its baseline."""

    LOW = "low"
    AVERAGE = "average"
    HIGH = "high"
    VERY_HIGH = "very_high"


class BillingPeriod(BaseModel):
    """Billing period of a statement (end strictly after start)."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def _end_after_start(self) -> "BillingPeriod":
        if self.end <= self.start:
            raise ValueError(
                "Das Enddatum des Abrechnungszeitraums muss nach dem Startdatum liegen"
            )
        return self

    @property
    def days(self) -> int:
        return (self.end - self.start).days

    @classmethod
    def previous_calendar_year(cls, today: date) -> "BillingPeriod":
        """Default period when neither the bill nor the user supplies one."""
        year = today.year - 1
        return cls(start=date(year, 1, 1), end=date(year, 12, 31))


class BillRecord(BaseModel):
    """A validated utility bill, ready for analysis.

    Costs are TOTAL amounts in EUR for the whole billing period.
    """

    model_config = ConfigDict(frozen=True)

    postal_code: str = Field(..., description="German postal code (PLZ)")
    floor_area_sqm: float = Field(..., description="Apartment floor area in m²")
    period: BillingPeriod
    costs: dict[CostCategory, float] = Field(..., description="Total EUR per category")
    defaulted_fields: frozenset[str] = Field(
        default_factory=frozenset,
        description="Fields filled with defaults instead of supplied values",
    )

    @field_validator("postal_code")
    @classmethod
    def _check_postal_code(cls, value: str) -> str:
        if not is_valid_postal_code(value):
            raise ValueError(f"Ungültige Postleitzahl: {value!r} (5 Ziffern erwartet)")
        return value

    @field_validator("floor_area_sqm")
    @classmethod
    def _check_floor_area(cls, value: float) -> float:
        if not MIN_FLOOR_AREA_SQM <= value <= MAX_FLOOR_AREA_SQM:
            raise ValueError(
                f"Wohnfläche muss zwischen {MIN_FLOOR_AREA_SQM:.0f} und "
                f"{MAX_FLOOR_AREA_SQM:.0f} m² liegen"
            )
        return value

    @field_validator("costs")
    @classmethod
    def _check_costs(cls, value: dict[CostCategory, float]) -> dict[CostCategory, float]:
        negative = [category.value for category, amount in value.items() if amount < 0]
        if negative:
            raise ValueError(f"Kosten dürfen nicht negativ sein: {', '.join(negative)}")
        if not any(value.get(category, 0.0) > 0 for category in COMPARABLE_CATEGORIES):
            raise ValueError(
                "Mindestens eine Kostenart (Heizung, Wasser, Müll, Instandhaltung) angeben"
            )
        return value

    def cost(self, category: CostCategory) -> float:
        return self.costs.get(category, 0.0)


class BillCorrections(BaseModel):
    """Manual corrections entered by the user; every field optional.

    Supplied values take precedence over extracted ones.
    """

    postal_code: str | None = None
    floor_area_sqm: float | None = None
    period: BillingPeriod | None = None
    costs: dict[CostCategory, float] = Field(default_factory=dict)


class RegionalProfile(BaseModel):
    """Baseline reference data for a location."""

    model_config = ConfigDict(frozen=True)

    postal_code: str
    city: str
    state: str
    region: str | None = None
    utility_provider: str = Field("Regionaler Versorger", description="Display only")
    population: int = Field(0, ge=0)
    baseline_costs: dict[CostCategory, float] = Field(
        ..., description="Average EUR/m²/month per comparable category"
    )
    data_quality: DataQuality
    data_source: str

    def baseline(self, category: CostCategory) -> float:
        return self.baseline_costs[category]

    @property
    def baseline_total(self) -> float:
        return sum(self.baseline_costs[category] for category in COMPARABLE_CATEGORIES)


class NormalizedCosts(BaseModel):
    """Costs in EUR per m² per month."""

    model_config = ConfigDict(frozen=True)

    months_in_period: int = Field(..., ge=1)
    per_category: dict[CostCategory, float]
    total: float = Field(..., description="Sum of the four comparable categories")

    def amount(self, category: CostCategory) -> float:
        return self.per_category.get(category, 0.0)


class Comparison(BaseModel):
    """One category (or the total) compared against its baseline."""

    model_config = ConfigDict(frozen=True)

    category: str
    user_amount: float
    baseline_amount: float
    percentage_deviation: float
    band: ComparisonBand
    message: str


class SavingsEstimate(BaseModel):
    """Projected annual savings and ordered recommendations."""

    model_config = ConfigDict(frozen=True)

    potential_savings: float = Field(..., ge=0, description="EUR per year")
    recommendations: list[str] = Field(default_factory=list)


class EnergyPrice(BaseModel):
    """Household electricity price snapshot."""

    model_config = ConfigDict(frozen=True)

    price_eur_per_kwh: float
    source: str
    confidence: int = Field(..., ge=0, le=100)
    is_fallback: bool = False
    timestamp: str


class AnalysisResult(BaseModel):
    """Aggregate output of one analysis. Not persisted."""

    model_config = ConfigDict(frozen=True)

    bill: BillRecord
    normalized_costs: NormalizedCosts
    regional_profile: RegionalProfile
    comparisons: list[Comparison]
    savings: SavingsEstimate
    confidence: int = Field(..., ge=0, le=100)
    energy_price: EnergyPrice | None = None

    def comparison(self, category: str) -> Comparison:
        for item in self.comparisons:
            if item.category == category:
                return item
        raise KeyError(category)

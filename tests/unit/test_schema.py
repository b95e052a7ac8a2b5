"""Unit tests for analysis data models."""

from datetime import date

import pytest
from pydantic import ValidationError

from nebenkosten.analysis.schema import BillingPeriod, BillRecord, CostCategory

YEAR_2024 = BillingPeriod(start=date(2024, 1, 1), end=date(2024, 12, 31))


def test_period_end_must_follow_start() -> None:
    with pytest.raises(ValidationError, match="Enddatum"):
        BillingPeriod(start=date(2024, 12, 31), end=date(2024, 12, 31))


def test_previous_calendar_year() -> None:
    period = BillingPeriod.previous_calendar_year(date(2026, 1, 15))

    assert period == BillingPeriod(start=date(2025, 1, 1), end=date(2025, 12, 31))
    assert period.days == 364


def test_bill_record_is_frozen() -> None:
    bill = BillRecord(
        postal_code="10115",
        floor_area_sqm=75.0,
        period=YEAR_2024,
        costs={CostCategory.HEATING: 900.0},
    )

    with pytest.raises(ValidationError):
        bill.floor_area_sqm = 80.0  # type: ignore[misc]


@pytest.mark.parametrize("floor_area", [9.99, 500.01])
def test_floor_area_bounds(floor_area: float) -> None:
    with pytest.raises(ValidationError, match="Wohnfläche"):
        BillRecord(
            postal_code="10115",
            floor_area_sqm=floor_area,
            period=YEAR_2024,
            costs={CostCategory.HEATING: 900.0},
        )


@pytest.mark.parametrize("floor_area", [10.0, 500.0])
def test_floor_area_bounds_are_inclusive(floor_area: float) -> None:
    bill = BillRecord(
        postal_code="10115",
        floor_area_sqm=floor_area,
        period=YEAR_2024,
        costs={CostCategory.HEATING: 900.0},
    )

    assert bill.floor_area_sqm == floor_area


def test_costs_need_a_comparable_category() -> None:
    with pytest.raises(ValidationError, match="Mindestens eine Kostenart"):
        BillRecord(
            postal_code="10115",
            floor_area_sqm=75.0,
            period=YEAR_2024,
            costs={CostCategory.ELECTRICITY: 120.0, CostCategory.HEATING: 0.0},
        )


def test_postal_code_is_validated() -> None:
    with pytest.raises(ValidationError, match="Ungültige Postleitzahl"):
        BillRecord(
            postal_code="00999",
            floor_area_sqm=75.0,
            period=YEAR_2024,
            costs={CostCategory.HEATING: 900.0},
        )


@pytest.mark.parametrize("postal_code", ["10115\n", "１０１１５"])
def test_postal_code_must_be_plain_ascii(postal_code: str) -> None:
    with pytest.raises(ValidationError, match="Ungültige Postleitzahl"):
        BillRecord(
            postal_code=postal_code,
            floor_area_sqm=75.0,
            period=YEAR_2024,
            costs={CostCategory.HEATING: 900.0},
        )

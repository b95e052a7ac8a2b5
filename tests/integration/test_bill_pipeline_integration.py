"""Integration tests for the full bill pipeline.

OCR-like text runs through extraction, record building, location
resolution, electricity price lookup and analysis. The external APIs are
replaced by one httpx.MockTransport so the tests run offline.

Use pytest -v -m integration to run only integration tests.
"""

from collections.abc import Callable
from datetime import UTC, date, datetime

import httpx
import pytest

from nebenkosten.analysis.pipeline import BillAnalyzer, build_bill_record
from nebenkosten.analysis.schema import (
    TOTAL,
    BillCorrections,
    ComparisonBand,
    CostCategory,
    DataQuality,
)
from nebenkosten.energy.prices import ElectricityPriceService
from nebenkosten.extraction.factory import create_extraction_service
from nebenkosten.location.resolver import LocationResolver, PostalCodeLookupClient
from nebenkosten.shared.config import Settings
from nebenkosten.shared.exceptions import BillValidationError

pytestmark = pytest.mark.integration

NOW = datetime(2025, 3, 10, 12, 30, tzinfo=UTC)

MUNICH_BILL = """
Hausverwaltung Huber & Partner
Leopoldstraße 20, 80802 München

Nebenkostenabrechnung für den Zeitraum 01.01.2024 bis 31.12.2024
Mietobjekt: Sendlinger Str. 7, PLZ 80331 München
Wohnfläche: 68,5 m²

Kostenart                     Ihr Anteil
Heizkosten (Fernwärme)        980,40 €
Warmwasser                    310,20 €
Kaltwasser / Abwasser         402,75 €
Müllabfuhr                    198,00 €
Hausmeister / Wartung         455,60 €
Allgemeinstrom                 61,90 €
Grundsteuer                   214,00 €
Versicherung                  1.240,00 €

Gesamtbetrag:               2.512,85 €
"""

RURAL_BILL = """
Betriebskostenabrechnung 2024
Abrechnungszeitraum 01.07.2023 - 30.06.2024
Am Dorfplatz 4
99999 Teststadt
Wohnfläche ca. 90 m²
Heizung                      1.890,00 €
Wasser                         560,00 €
Müll                           240,00 €
"""


def make_handler(requests: list[str]) -> Callable[[httpx.Request], httpx.Response]:
    now_ms = int(NOW.timestamp() * 1000)

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request.url.host)
        if request.url.host == "api.zippopotam.us":
            if request.url.path.endswith("/99999"):
                return httpx.Response(
                    200,
                    json={
                        "places": [
                            {
                                "place name": "Teststadt",
                                "state": "Thüringen",
                                "state abbreviation": "TH",
                            }
                        ]
                    },
                )
            return httpx.Response(404)
        if "awattar" in request.url.host:
            return httpx.Response(
                200,
                json={
                    "data": [
                        {
                            "start_timestamp": now_ms - 1_800_000,
                            "end_timestamp": now_ms + 1_800_000,
                            "marketprice": 96.0,
                        }
                    ]
                },
            )
        return httpx.Response(503)

    return handler


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def requests() -> list[str]:
    return []


@pytest.fixture
def analyzer(settings: Settings, requests: list[str]) -> BillAnalyzer:
    client = httpx.AsyncClient(transport=httpx.MockTransport(make_handler(requests)))
    return BillAnalyzer(
        settings,
        location_resolver=LocationResolver(PostalCodeLookupClient(settings, client)),
        price_service=ElectricityPriceService.create(settings, client, clock=lambda: NOW),
    )


@pytest.mark.asyncio
async def test_munich_bill_end_to_end(
    settings: Settings, analyzer: BillAnalyzer, requests: list[str]
) -> None:
    extraction = create_extraction_service(settings).extract_bill_fields(MUNICH_BILL)
    assert extraction.success is True
    assert extraction.bill is not None

    bill = build_bill_record(extraction.bill, None, today=date(2025, 5, 1))
    result = await analyzer.analyze(bill)

    assert bill.postal_code == "80331"
    assert bill.floor_area_sqm == 68.5
    assert bill.cost(CostCategory.HEATING) == 980.40
    # Insurance above the plausible amount limit is ignored
    assert bill.cost(CostCategory.OTHER) == 214.00
    assert bill.defaulted_fields == frozenset()

    assert result.regional_profile.city == "München"
    assert result.regional_profile.data_quality is DataQuality.OFFICIAL_LOCAL
    assert result.comparison(CostCategory.HEATING).band is ComparisonBand.LOW
    assert result.comparison(TOTAL).band is ComparisonBand.LOW
    assert result.savings.potential_savings == 0.0
    assert result.confidence == 100
    assert "api.zippopotam.us" not in requests

    assert result.energy_price is not None
    assert result.energy_price.source == "awattar"
    assert result.energy_price.price_eur_per_kwh == pytest.approx(0.376)


@pytest.mark.asyncio
async def test_rural_bill_with_correction(settings: Settings, analyzer: BillAnalyzer) -> None:
    """Heating above the plausible limit is supplied as a manual correction."""
    extraction = create_extraction_service(settings).extract_bill_fields(RURAL_BILL)
    assert extraction.bill is not None
    assert CostCategory.HEATING not in extraction.bill.costs

    corrections = BillCorrections(costs={CostCategory.HEATING: 1890.0})
    bill = build_bill_record(extraction.bill, corrections, today=date(2025, 5, 1))
    result = await analyzer.analyze(bill)

    assert bill.postal_code == "99999"
    assert bill.floor_area_sqm == 90.0
    assert result.normalized_costs.months_in_period == 12
    assert result.regional_profile.state == "Thüringen"
    assert result.regional_profile.data_quality is DataQuality.STATE_AVERAGE
    assert result.comparison(CostCategory.HEATING).band is ComparisonBand.HIGH
    assert result.savings.potential_savings > 0
    assert result.confidence == 60


def test_unreadable_scan_requires_manual_input(settings: Settings) -> None:
    extraction = create_extraction_service(settings).extract_bill_fields("@@ ~~ ###")

    with pytest.raises(BillValidationError) as exc_info:
        build_bill_record(extraction.bill, None, today=date(2025, 5, 1))

    assert exc_info.value.field == "postal_code"

"""Reachability report for the external data sources.

Each source is asked once, all of them concurrently. The report says which
sources currently answer and which electricity price the analysis would use
right now, so operators can tell degraded results (state averages, the
fallback price) from a broken deployment.
"""

import asyncio
import logging

from pydantic import BaseModel

from nebenkosten.analysis.schema import EnergyPrice
from nebenkosten.energy.prices import ElectricityPriceService, MarketPrice
from nebenkosten.location.resolver import PostalCodeLookupClient
from nebenkosten.shared.results import LookupResult

logger = logging.getLogger(__name__)

# Any postal code the lookup service is known to have
CHECK_POSTAL_CODE = "10115"
COMBINED_PRICE_SOURCE = "combined-price"


class SourceStatus(BaseModel):
    """Availability of one upstream source."""

    name: str
    available: bool
    error: str | None = None


class UpstreamStatus(BaseModel):
    all_available: bool
    sources: list[SourceStatus]
    electricity_price: EnergyPrice | None = None


def _status(result: LookupResult) -> SourceStatus:
    return SourceStatus(name=result.source, available=result.success, error=result.error)


async def check_upstreams(
    lookup_client: PostalCodeLookupClient,
    price_service: ElectricityPriceService | None,
) -> UpstreamStatus:
    """Query the postal code API and every price source concurrently."""
    price_results: list[LookupResult[MarketPrice]] = []
    if price_service is None:
        location = await lookup_client.lookup(CHECK_POSTAL_CODE)
    else:
        location, price_results = await asyncio.gather(
            lookup_client.lookup(CHECK_POSTAL_CODE), price_service.fetch_all()
        )

    sources = [_status(location)] + [_status(result) for result in price_results]

    price = None
    if price_service is not None:
        price = price_service.combine(price_results)
        sources.append(
            SourceStatus(
                name=COMBINED_PRICE_SOURCE,
                available=not price.is_fallback,
                error="all price sources failed, fallback price in use"
                if price.is_fallback
                else None,
            )
        )

    unavailable = [source.name for source in sources if not source.available]
    if unavailable:
        logger.warning(f"Upstream sources unavailable: {', '.join(unavailable)}")

    return UpstreamStatus(
        all_available=not unavailable, sources=sources, electricity_price=price
    )

"""Household electricity price lookup from public German market data.

Two independent sources are queried concurrently:
- aWATTar market data: https://www.awattar.de/services/api
- Energy-Charts (Fraunhofer ISE): https://api.energy-charts.info/

Both report wholesale prices in EUR/MWh. A household price is derived by
adding a fixed markup for taxes, grid fees and supplier margin. When both
sources fail, the configured fallback price is used. This service never raises.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
from prometheus_client import Counter
from pydantic import BaseModel

from nebenkosten.analysis.schema import EnergyPrice
from nebenkosten.shared.config import Settings
from nebenkosten.shared.results import LookupResult

logger = logging.getLogger(__name__)

price_lookups_total = Counter(
    "electricity_price_lookups_total",
    "Electricity price lookups by source and status",
    ["source", "status"],  # status: success, failed
    namespace="nebenkosten",
)

MULTI_SOURCE_CONFIDENCE = 98
FALLBACK_CONFIDENCE = 50

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class MarketPrice(BaseModel):
    """Wholesale price observation."""

    eur_per_mwh: float
    timestamp: datetime


class PriceSource(ABC):
    """Base class for wholesale price sources."""

    name: str = "unknown"
    confidence: int = 0

    def __init__(self, settings: Settings, client: httpx.AsyncClient, clock: Clock) -> None:
        self.settings = settings
        self._client = client
        self._clock = clock

    async def fetch(self) -> LookupResult[MarketPrice]:
        try:
            price = await self._fetch()
        except httpx.HTTPError as e:
            logger.warning(f"{self.name} price API error: {e}")
            price_lookups_total.labels(source=self.name, status="failed").inc()
            return LookupResult[MarketPrice].failed(f"request failed: {e}", self.name)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning(f"{self.name} price API returned unusable data: {e}")
            price_lookups_total.labels(source=self.name, status="failed").inc()
            return LookupResult[MarketPrice].failed(f"unusable response: {e}", self.name)

        price_lookups_total.labels(source=self.name, status="success").inc()
        return LookupResult[MarketPrice].ok(price, self.name)

    @abstractmethod
    async def _fetch(self) -> MarketPrice:
        """Request and parse the current wholesale price; may raise."""

    async def _get_json(self, url: str, params: dict[str, Any]) -> Any:
        response = await self._client.get(
            url, params=params, timeout=self.settings.http_timeout_seconds
        )
        response.raise_for_status()
        return response.json()


class AwattarPriceSource(PriceSource):
    """aWATTar hourly market prices.

    Response: {"data": [{"start_timestamp": ms, "end_timestamp": ms,
                         "marketprice": EUR/MWh, "unit": "Eur/MWh"}]}
    """

    name = "awattar"
    confidence = 95

    async def _fetch(self) -> MarketPrice:
        now = self._clock()
        now_ms = int(now.timestamp() * 1000)
        window_ms = int(timedelta(hours=24).total_seconds() * 1000)
        payload = await self._get_json(
            self.settings.awattar_api_url,
            {"start": now_ms - window_ms, "end": now_ms + window_ms},
        )

        entries = payload["data"]
        if not entries:
            raise ValueError("no market data in window")
        current = next(
            (e for e in entries if e["start_timestamp"] <= now_ms < e["end_timestamp"]),
            entries[-1],
        )
        return MarketPrice(
            eur_per_mwh=float(current["marketprice"]),
            timestamp=datetime.fromtimestamp(current["start_timestamp"] / 1000, UTC),
        )


class EnergyChartsPriceSource(PriceSource):
    """Energy-Charts day-ahead prices for a bidding zone.

    Response: {"unix_seconds": [...], "price": [...], "unit": "EUR / MWh"}
    """

    name = "energy-charts"
    confidence = 85

    async def _fetch(self) -> MarketPrice:
        today = self._clock().date().isoformat()
        payload = await self._get_json(
            self.settings.energy_charts_api_url,
            {
                "bzn": self.settings.energy_charts_bidding_zone,
                "start": f"{today}T00:00",
                "end": f"{today}T23:59",
            },
        )

        observations = [
            (ts, price)
            for ts, price in zip(payload["unix_seconds"], payload["price"], strict=False)
            if price is not None
        ]
        if not observations:
            raise ValueError("no prices for today")
        ts, price = observations[-1]
        return MarketPrice(eur_per_mwh=float(price), timestamp=datetime.fromtimestamp(ts, UTC))


class ElectricityPriceService:
    """Combines price sources into one household price.

    - All sources succeed: average price, highest confidence
    - One source succeeds: that source's price and confidence
    - None succeed: configured fallback price
    """

    def __init__(
        self,
        settings: Settings,
        sources: list[PriceSource],
        clock: Clock = _utc_now,
    ) -> None:
        self.settings = settings
        self.sources = sources
        self._clock = clock

    @classmethod
    def create(
        cls, settings: Settings, client: httpx.AsyncClient, clock: Clock = _utc_now
    ) -> "ElectricityPriceService":
        """Build the service with the default aWATTar and Energy-Charts sources."""
        return cls(
            settings,
            [
                AwattarPriceSource(settings, client, clock),
                EnergyChartsPriceSource(settings, client, clock),
            ],
            clock,
        )

    def household_price(self, market: MarketPrice) -> float:
        return round(market.eur_per_mwh / 1000 + self.settings.household_price_markup, 3)

    def fallback_price(self) -> EnergyPrice:
        return EnergyPrice(
            price_eur_per_kwh=self.settings.fallback_electricity_price,
            source="Deutscher Durchschnitt (Fallback)",
            confidence=FALLBACK_CONFIDENCE,
            is_fallback=True,
            timestamp=self._clock().isoformat(),
        )

    async def fetch_all(self) -> list[LookupResult[MarketPrice]]:
        """Query every source concurrently; results are in source order."""
        return list(await asyncio.gather(*(source.fetch() for source in self.sources)))

    async def current_price(self) -> EnergyPrice:
        return self.combine(await self.fetch_all())

    def combine(self, results: list[LookupResult[MarketPrice]]) -> EnergyPrice:
        """Average, single-source or fallback price from per-source results."""
        succeeded = [
            (source, result.value)
            for source, result in zip(self.sources, results, strict=True)
            if result.success and result.value is not None
        ]

        if not succeeded:
            logger.warning("All electricity price sources failed, using fallback price")
            return self.fallback_price()

        if len(succeeded) == 1:
            source, market = succeeded[0]
            return EnergyPrice(
                price_eur_per_kwh=self.household_price(market),
                source=source.name,
                confidence=source.confidence,
                timestamp=market.timestamp.isoformat(),
            )

        prices = [self.household_price(market) for _, market in succeeded]
        return EnergyPrice(
            price_eur_per_kwh=round(sum(prices) / len(prices), 3),
            source=" + ".join(source.name for source, _ in succeeded),
            confidence=MULTI_SOURCE_CONFIDENCE,
            timestamp=self._clock().isoformat(),
        )

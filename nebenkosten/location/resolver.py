"""Postal code to RegionalProfile resolution.

Lookup order:
1. Bundled table of known postal codes (official local baselines)
2. Postal code API (Zippopotam.us) + state-level baseline table

A failed API call is final: there is no further fallback and no retry.
"""

import logging

import httpx
from prometheus_client import Counter
from pydantic import BaseModel

from nebenkosten.analysis.schema import DataQuality, RegionalProfile
from nebenkosten.location.regions import (
    KNOWN_REGIONS,
    NATIONAL_BASELINES,
    STATE_BASELINES,
    provider_for,
)
from nebenkosten.shared.config import Settings
from nebenkosten.shared.exceptions import LocationNotResolvableError
from nebenkosten.shared.results import LookupResult

logger = logging.getLogger(__name__)

location_lookups_total = Counter(
    "location_lookups_total",
    "Postal code resolutions by outcome",
    ["source"],  # bundled, api, failed
    namespace="nebenkosten",
)


class Place(BaseModel):
    """Place returned by the postal code API."""

    city: str
    state: str
    state_abbreviation: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class PostalCodeLookupClient:
    """Client for the Zippopotam.us postal code API.

    Response format of GET /de/<plz>:
    {"places": [{"place name": ..., "state": ..., "state abbreviation": ...,
                 "latitude": "52.5323", "longitude": "13.3846"}]}
    """

    source = "zippopotam"

    def __init__(self, settings: Settings, client: httpx.AsyncClient) -> None:
        self._base_url = settings.location_api_base_url.rstrip("/")
        self._timeout = settings.http_timeout_seconds
        self._client = client

    async def lookup(self, postal_code: str) -> LookupResult[Place]:
        try:
            response = await self._client.get(
                f"{self._base_url}/{postal_code}", timeout=self._timeout
            )
            if response.status_code == 404:
                return LookupResult[Place].failed("postal code not found", self.source)
            response.raise_for_status()

            place = response.json()["places"][0]
            return LookupResult[Place].ok(
                Place(
                    city=place["place name"],
                    state=place["state"],
                    state_abbreviation=place.get("state abbreviation"),
                    latitude=place.get("latitude"),
                    longitude=place.get("longitude"),
                ),
                self.source,
            )
        except httpx.HTTPError as e:
            logger.warning(f"Postal code lookup for {postal_code} failed: {e}")
            return LookupResult[Place].failed(f"lookup service unavailable: {e}", self.source)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning(f"Unexpected postal code API response for {postal_code}: {e}")
            return LookupResult[Place].failed("malformed lookup response", self.source)


def profile_from_place(postal_code: str, place: Place) -> RegionalProfile:
    """Synthesize a profile from state-level baselines."""
    baselines = STATE_BASELINES.get(place.state)
    if baselines is None:
        logger.warning(f"No state baseline for '{place.state}', using national average")
        baselines = NATIONAL_BASELINES
        quality = DataQuality.ESTIMATED
        source = "Bundesdurchschnitt (geschätzt)"
    else:
        quality = DataQuality.STATE_AVERAGE
        source = f"Landesdurchschnitt {place.state}"

    region = place.city
    if place.state_abbreviation:
        region = f"{place.city}-{place.state_abbreviation}"

    return RegionalProfile(
        postal_code=postal_code,
        city=place.city,
        state=place.state,
        region=region,
        utility_provider=provider_for(place.state, place.city),
        population=0,
        baseline_costs=baselines,
        data_quality=quality,
        data_source=source,
    )


class LocationResolver:
    """Translates a postal code into a RegionalProfile."""

    def __init__(self, lookup_client: PostalCodeLookupClient) -> None:
        self._lookup_client = lookup_client

    @property
    def lookup_client(self) -> PostalCodeLookupClient:
        return self._lookup_client

    async def resolve(self, postal_code: str) -> RegionalProfile:
        """Resolve a postal code.

        Args:
            postal_code: Validated German postal code

        Returns:
            Bundled profile, or one synthesized from the state table

        Raises:
            LocationNotResolvableError: If the code is unknown or the API is unreachable
        """
        known = KNOWN_REGIONS.get(postal_code)
        if known is not None:
            location_lookups_total.labels(source="bundled").inc()
            return known

        result = await self._lookup_client.lookup(postal_code)
        if not result.success or result.value is None:
            location_lookups_total.labels(source="failed").inc()
            raise LocationNotResolvableError(postal_code, result.error)

        location_lookups_total.labels(source="api").inc()
        logger.info(f"Resolved {postal_code} via {result.source}: {result.value.city}")
        return profile_from_place(postal_code, result.value)

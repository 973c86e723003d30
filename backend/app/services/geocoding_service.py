"""
PlaceShare Backend - Geocoding Service (Coordinate Resolver)
==============================================================

What:  Turns a free-text address into {lat, lng} using the Google Geocoding API.
How:   One async GET with `address` and `key` query parameters; reads
       `results[0].geometry.location` from the JSON body.
Who:   Called by the place routes before a place is created.

Failure policy:
    - Empty body or status "ZERO_RESULTS" → LocationNotFoundError (422)
    - Any other non-OK status, or OK without results → GeocodingError (500)
    - Network errors and non-2xx responses propagate unchanged.
      Calls are not retried here; timeouts belong to the HTTP client.
"""

import logging
from typing import Optional

import httpx

from app.config import settings
from app.exceptions import GeocodingError, LocationNotFoundError
from app.schemas.place import Location

logger = logging.getLogger(__name__)

ZERO_RESULTS = "ZERO_RESULTS"
OK = "OK"


class GeocodingService:
    """
    Thin async client for the geocoding provider.

    `transport` is passed through to httpx.AsyncClient; tests hand in an
    httpx.MockTransport to serve fixture responses.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.google_api_key
        self.base_url = base_url or settings.geocoding_url
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def resolve(self, address: str) -> Location:
        """
        Resolve an address to the coordinates of the provider's first candidate.

        Raises:
            LocationNotFoundError: provider returned nothing for the address
            GeocodingError: provider answered with another non-OK status
            httpx.HTTPError: transport failure or non-2xx response
        """
        async with httpx.AsyncClient(transport=self.transport) as client:
            response = await client.get(
                self.base_url,
                params={"address": address, "key": self.api_key},
            )
            response.raise_for_status()

        data = response.json() if response.content else None
        if not data or data.get("status") == ZERO_RESULTS:
            logger.info("No geocoding result for address (status=%s)",
                        data.get("status") if data else "empty")
            raise LocationNotFoundError(address=address)

        status = data.get("status")
        results = data.get("results") or []
        if status != OK or not results:
            logger.error("Geocoding provider returned status=%s with %d results", status, len(results))
            raise GeocodingError(provider_status=status)

        location = results[0]["geometry"]["location"]
        logger.debug("Geocoded address to lat=%s lng=%s", location["lat"], location["lng"])
        return Location(lat=location["lat"], lng=location["lng"])


geocoding_service = GeocodingService()

"""
Server-side geocoding through the Google Geocoding REST API.

``geocode_address`` never raises: it retries once on a failed lookup and
returns None when the address cannot be resolved.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from revvdoc.config import settings
from revvdoc.errors import UpstreamFailure
from revvdoc.utils.retry import with_retry

logger = logging.getLogger(__name__)

GEOCODE_ATTEMPTS = 2  # first try plus one retry


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float


class GeocodeLookupError(UpstreamFailure):
    """The geocoding API did not return a usable result."""


def build_address_string(address: Dict[str, Any]) -> str:
    """Build the one-line address used for geocoding requests."""
    return f"{address.get('street', '')}, {address.get('city', '')}, {address.get('state', '')} {address.get('zip', '')}"


def has_coordinates(address: Optional[Dict[str, Any]]) -> bool:
    """True when the address carries non-zero lat and lng."""
    return bool(address and address.get("lat") and address.get("lng"))


async def _lookup(client: httpx.AsyncClient, full_address: str) -> GeoPoint:
    response = await client.get(
        settings.GEOCODE_API_URL,
        params={"address": full_address, "key": settings.GOOGLE_MAPS_API_KEY},
    )
    data = response.json()
    status = data.get("status")
    results = data.get("results") or []

    if status == "OK" and results:
        location = results[0]["geometry"]["location"]
        return GeoPoint(lat=float(location["lat"]), lng=float(location["lng"]))

    raise GeocodeLookupError(f'status "{status}" for "{full_address}"')


async def geocode_address(
    full_address: str, client: Optional[httpx.AsyncClient] = None
) -> Optional[GeoPoint]:
    """
    Resolve a human-readable address to coordinates.

    Args:
        full_address: One-line address, see ``build_address_string``
        client: Optional HTTP client (a new one is created otherwise)

    Returns:
        GeoPoint, or None if geocoding ultimately fails
    """
    if not settings.GOOGLE_MAPS_API_KEY:
        logger.error("GOOGLE_MAPS_API_KEY is not configured")
        return None

    async def attempt(http: httpx.AsyncClient) -> GeoPoint:
        return await with_retry(
            lambda: _lookup(http, full_address),
            max_retries=GEOCODE_ATTEMPTS,
            initial_delay=settings.GEOCODE_RETRY_DELAY,
            operation_name="Geocode",
            retry_on=(httpx.HTTPError, ValueError, KeyError, GeocodeLookupError),
        )

    try:
        if client is not None:
            return await attempt(client)
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT) as http:
            return await attempt(http)
    except Exception as e:
        logger.warning(f"Geocoding gave up for '{full_address}': {e}")
        return None

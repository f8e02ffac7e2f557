"""Vehicle intelligence from the NHTSA public APIs.

VIN decodes and make/model/year recall lists are cached in Redis for
``settings.NHTSA_CACHE_TTL`` seconds. A Redis outage degrades to a cache miss.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from revvdoc.config import settings
from revvdoc.errors import InvalidRequestError, NotFoundError, UpstreamFailure
from revvdoc.models.vehicle import VIN_PATTERN
from revvdoc.services.redis_client import (
    RECALLS_PREFIX,
    VIN_PREFIX,
    cache_json,
    get_cached_json,
)

logger = logging.getLogger(__name__)

NHTSA_DATE_PATTERN = re.compile(r"/Date\((-?\d+)\)/")


def normalize_vin(vin: str) -> str:
    """Uppercase and strip whitespace; raise if the result is not a valid VIN."""
    normalized = re.sub(r"\s", "", vin or "").upper()
    if not VIN_PATTERN.match(normalized):
        raise InvalidRequestError("Invalid VIN. Must be 17 characters (no I, O, or Q).")
    return normalized


def recalls_cache_key(make: str, model: str, year: int) -> str:
    def _norm(s: str) -> str:
        return re.sub(r"\s+", "_", s.strip().lower())

    return f"{RECALLS_PREFIX}{year}_{_norm(make)}_{_norm(model)}"


def parse_nhtsa_date(raw: Optional[str]) -> Optional[datetime]:
    """
    Parse the date formats the recalls API emits.

    Handles ``/Date(1589860800000)/`` epoch-millisecond strings and
    ``dd/mm/yyyy``. Returns None for anything else.
    """
    if not raw:
        return None

    match = NHTSA_DATE_PATTERN.search(raw)
    if match:
        return datetime.fromtimestamp(int(match.group(1)) / 1000, tz=timezone.utc)

    try:
        return datetime.strptime(raw.strip(), "%d/%m/%Y").replace(tzinfo=timezone.utc)
    except ValueError:
        return None


async def _get_json(client: Optional[httpx.AsyncClient], url: str, params: Optional[Dict] = None) -> Any:
    if client is None:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT) as owned:
            return await _get_json(owned, url, params)

    try:
        response = await client.get(url, params=params, headers={"Accept": "application/json"})
        response.raise_for_status()
        return response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"NHTSA request to {url} failed: {e}")
        raise UpstreamFailure("Vehicle data service unavailable. Please try again.") from e


async def decode_vin(vin: str, client: Optional[httpx.AsyncClient] = None) -> Dict[str, Any]:
    """
    Decode a VIN using the NHTSA vPIC API with caching.

    Args:
        vin: 17-character VIN (case and whitespace are normalised)
        client: Optional HTTP client, mainly for tests

    Returns:
        {"vin", "make", "model", "year", "vehicleType", "fields"} where
        ``fields`` holds every non-empty variable NHTSA returned

    Raises:
        InvalidRequestError: Malformed VIN
        NotFoundError: NHTSA could not identify make, model and year
        UpstreamFailure: NHTSA unreachable or returned an error status
    """
    vin_upper = normalize_vin(vin)
    cache_key = f"{VIN_PREFIX}{vin_upper}"

    cached = await get_cached_json(cache_key)
    if cached:
        return cached

    logger.info(f"VIN cache miss: {vin_upper}, calling NHTSA API")
    data = await _get_json(client, f"{settings.NHTSA_API_URL}/vehicles/DecodeVin/{vin_upper}", {"format": "json"})

    fields: Dict[str, str] = {}
    for item in data.get("Results", []):
        variable = item.get("Variable")
        value = item.get("Value")
        if variable and value and str(value).strip():
            fields[variable] = str(value).strip()

    make = fields.get("Make")
    model = fields.get("Model")
    try:
        year = int(fields.get("Model Year", ""))
    except ValueError:
        year = None

    if not make or not model or not year:
        logger.warning(f"NHTSA could not decode VIN {vin_upper}")
        raise NotFoundError("VIN not recognized. Please check the number and try again.")

    result = {
        "vin": vin_upper,
        "make": make,
        "model": model,
        "year": year,
        "vehicleType": fields.get("Vehicle Type"),
        "fields": fields,
    }

    await cache_json(cache_key, result, settings.NHTSA_CACHE_TTL)
    logger.info(f"VIN decoded: {vin_upper} -> {year} {make} {model}")
    return result


async def fetch_recalls(
    make: str, model: str, year: int, client: Optional[httpx.AsyncClient] = None
) -> Dict[str, Any]:
    """
    Active safety recalls for a make/model/year.

    Returns:
        {"source": "cache" | "nhtsa", "recalls": [...], "count": int}
    """
    make = (make or "").strip()
    model = (model or "").strip()
    if not make or not model or year < 1900 or year > datetime.now(timezone.utc).year + 1:
        raise InvalidRequestError("Missing or invalid query params: make, model, year required")

    cache_key = recalls_cache_key(make, model, year)
    cached = await get_cached_json(cache_key)
    if cached is not None:
        return {"source": "cache", "recalls": cached, "count": len(cached)}

    data = await _get_json(
        client,
        settings.NHTSA_RECALLS_API_URL,
        {"make": make, "model": model, "modelYear": year},
    )

    recalls: List[Dict[str, Any]] = []
    for item in data.get("results") or []:
        report_date = parse_nhtsa_date(item.get("ReportReceivedDate"))
        recalls.append(
            {
                "nhtsaId": item.get("NHTSACampaignNumber") or "",
                "component": item.get("Component") or "",
                "summary": item.get("Summary") or "",
                "consequence": item.get("Consequence"),
                "remedy": item.get("Remedy"),
                "reportDate": report_date.isoformat() if report_date else None,
            }
        )

    await cache_json(cache_key, recalls, settings.NHTSA_CACHE_TTL)
    logger.info(f"Fetched {len(recalls)} recalls for {year} {make} {model}")
    return {"source": "nhtsa", "recalls": recalls, "count": len(recalls)}

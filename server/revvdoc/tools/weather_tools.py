"""Current weather and driving-risk flags from Open-Meteo (no API key)."""

import logging
from typing import Any, Dict, Optional

import httpx
from revvdoc.config import settings
from revvdoc.errors import InvalidRequestError, UpstreamFailure
from revvdoc.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

# WMO weather interpretation codes
WMO_CONDITIONS = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Icy fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Heavy freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snowfall",
    73: "Moderate snowfall",
    75: "Heavy snowfall",
    77: "Snow grains",
    80: "Slight showers",
    81: "Moderate showers",
    82: "Violent showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with hail",
    99: "Heavy thunderstorm with hail",
}

COLD_RISK_F = 32
HEAT_RISK_F = 90


def wmo_condition(code: int) -> str:
    return WMO_CONDITIONS.get(code, f"Weather code {code}")


def risk_flags(temp_f: float, precip_mm: float, snowfall_cm: float) -> Dict[str, bool]:
    return {
        "coldRisk": temp_f <= COLD_RISK_F,
        "heatRisk": temp_f >= HEAT_RISK_F,
        "rainRisk": precip_mm > 0,
        "snowRisk": snowfall_cm > 0,
    }


async def fetch_weather(lat: float, lng: float, client: Optional[httpx.AsyncClient] = None) -> Dict[str, Any]:
    """
    Fetch current conditions for a coordinate. Never cached.

    Raises:
        InvalidRequestError: Coordinates out of range
        UpstreamFailure: Open-Meteo unreachable or malformed response
    """
    if not -90 <= lat <= 90 or not -180 <= lng <= 180:
        raise InvalidRequestError("Invalid coordinates")

    if client is None:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT) as owned:
            return await fetch_weather(lat, lng, owned)

    params = {
        "latitude": lat,
        "longitude": lng,
        "current": "temperature_2m,precipitation,snowfall,weather_code",
        "temperature_unit": "fahrenheit",
        "timezone": "auto",
    }

    try:
        response = await client.get(settings.OPEN_METEO_API_URL, params=params)
        response.raise_for_status()
        current = response.json()["current"]
        temp = float(current["temperature_2m"])
        precip = float(current.get("precipitation") or 0)
        snowfall = float(current.get("snowfall") or 0)
        code = int(current.get("weather_code") or 0)
    except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
        logger.error(f"Weather fetch failed for ({lat}, {lng}): {e}")
        raise UpstreamFailure("Weather service unavailable") from e

    return {
        "temp": temp,
        "precip": precip,
        "snowfall": snowfall,
        "condition": wmo_condition(code),
        "riskFlags": risk_flags(temp, precip, snowfall),
        "fetchedAt": utcnow().isoformat(),
    }

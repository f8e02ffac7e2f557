"""Server-side geocoding tests."""

import httpx
import pytest
from revvdoc.config import settings
from revvdoc.services.geocoding import GeoPoint, build_address_string, geocode_address, has_coordinates

OK_RESPONSE = {
    "status": "OK",
    "results": [{"geometry": {"location": {"lat": 30.2672, "lng": -97.7431}}}],
}


@pytest.fixture(autouse=True)
def geocode_settings(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "test-key")
    monkeypatch.setattr(settings, "GEOCODE_RETRY_DELAY", 0)


def test_build_address_string():
    address = {"street": "1 Main St", "city": "Austin", "state": "TX", "zip": "78701"}
    assert build_address_string(address) == "1 Main St, Austin, TX 78701"


def test_has_coordinates():
    assert has_coordinates({"lat": 30.1, "lng": -97.2})
    assert not has_coordinates({"lat": 0, "lng": 0})
    assert not has_coordinates({"street": "1 Main St"})
    assert not has_coordinates(None)


@pytest.mark.asyncio
async def test_geocode_success():
    seen = []

    def handler(request: httpx.Request):
        seen.append(request.url.params["address"])
        return httpx.Response(200, json=OK_RESPONSE)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        point = await geocode_address("1 Main St, Austin, TX 78701", client=client)

    assert point == GeoPoint(lat=30.2672, lng=-97.7431)
    assert seen == ["1 Main St, Austin, TX 78701"]


@pytest.mark.asyncio
async def test_geocode_retries_once_then_succeeds():
    responses = iter([httpx.Response(200, json={"status": "OVER_QUERY_LIMIT"}), httpx.Response(200, json=OK_RESPONSE)])

    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: next(responses))) as client:
        point = await geocode_address("1 Main St", client=client)

    assert point.lat == 30.2672


@pytest.mark.asyncio
async def test_geocode_gives_up_after_two_attempts():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        point = await geocode_address("Nowhere", client=client)

    assert point is None
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_geocode_without_api_key(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "")

    assert await geocode_address("1 Main St") is None

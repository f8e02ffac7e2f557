"""VIN decode, recalls, weather and history tests."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from httpx import AsyncClient
from revvdoc.errors import InvalidRequestError, NotFoundError, UpstreamFailure
from revvdoc.tools import vin_tools, weather_tools

from conftest import CUSTOMER_ID, OTHER_CUSTOMER_ID, TEST_VIN, auth_headers

DECODE_RESPONSE = {
    "Results": [
        {"Variable": "Make", "Value": "HONDA"},
        {"Variable": "Model", "Value": "Accord"},
        {"Variable": "Model Year", "Value": "2003"},
        {"Variable": "Vehicle Type", "Value": "PASSENGER CAR"},
        {"Variable": "Trim", "Value": ""},
        {"Variable": "Error Code", "Value": "0"},
    ]
}

RECALLS_RESPONSE = {
    "Count": 2,
    "results": [
        {
            "NHTSACampaignNumber": "20V123000",
            "Component": "AIR BAGS",
            "Summary": "Inflator may rupture.",
            "Consequence": "Risk of injury.",
            "Remedy": "Dealers will replace the inflator.",
            "ReportReceivedDate": "/Date(1589860800000)/",
        },
        {
            "NHTSACampaignNumber": "21V456000",
            "Component": "FUEL SYSTEM",
            "Summary": "Fuel pump may fail.",
            "ReportReceivedDate": "15/03/2021",
        },
    ],
}


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def no_cache():
    """Redis unavailable: every lookup misses, every write is dropped."""
    with patch.object(vin_tools, "get_cached_json", AsyncMock(return_value=None)) as get_cached, patch.object(
        vin_tools, "cache_json", AsyncMock(return_value=False)
    ) as cache:
        yield get_cached, cache


class TestDecodeVin:
    @pytest.mark.asyncio
    async def test_decode(self, no_cache):
        _, cache = no_cache
        requests = []

        def handler(request: httpx.Request):
            requests.append(request)
            return httpx.Response(200, json=DECODE_RESPONSE)

        async with mock_client(handler) as client:
            result = await vin_tools.decode_vin(f" {TEST_VIN.lower()} ", client=client)

        assert result["vin"] == TEST_VIN
        assert result["make"] == "HONDA"
        assert result["model"] == "Accord"
        assert result["year"] == 2003
        assert result["vehicleType"] == "PASSENGER CAR"
        assert "Trim" not in result["fields"]
        assert TEST_VIN in requests[0].url.path
        cache.assert_awaited_once()
        assert cache.await_args.args[0] == f"vin:{TEST_VIN}"

    @pytest.mark.asyncio
    async def test_cache_hit_skips_nhtsa(self):
        cached = {"vin": TEST_VIN, "make": "HONDA", "model": "Accord", "year": 2003}

        def handler(request):
            raise AssertionError("NHTSA should not be called")

        with patch.object(vin_tools, "get_cached_json", AsyncMock(return_value=cached)):
            async with mock_client(handler) as client:
                assert await vin_tools.decode_vin(TEST_VIN, client=client) == cached

    @pytest.mark.asyncio
    @pytest.mark.parametrize("vin", ["", "SHORT", "1HGCM82633A00435O", "1HGCM82633A0043521"])
    async def test_invalid_vin(self, vin):
        with pytest.raises(InvalidRequestError):
            await vin_tools.decode_vin(vin)

    @pytest.mark.asyncio
    async def test_unrecognized_vin(self, no_cache):
        async with mock_client(lambda r: httpx.Response(200, json={"Results": []})) as client:
            with pytest.raises(NotFoundError):
                await vin_tools.decode_vin(TEST_VIN, client=client)

    @pytest.mark.asyncio
    async def test_nhtsa_error_status(self, no_cache):
        async with mock_client(lambda r: httpx.Response(503)) as client:
            with pytest.raises(UpstreamFailure):
                await vin_tools.decode_vin(TEST_VIN, client=client)


class TestRecalls:
    @pytest.mark.asyncio
    async def test_fetch_recalls(self, no_cache):
        _, cache = no_cache

        def handler(request: httpx.Request):
            assert request.url.params["make"] == "Honda"
            assert request.url.params["modelYear"] == "2018"
            return httpx.Response(200, json=RECALLS_RESPONSE)

        async with mock_client(handler) as client:
            result = await vin_tools.fetch_recalls("Honda", "Accord", 2018, client=client)

        assert result["source"] == "nhtsa"
        assert result["count"] == 2
        first, second = result["recalls"]
        assert first["nhtsaId"] == "20V123000"
        assert first["reportDate"] == "2020-05-19T04:00:00+00:00"
        assert second["consequence"] is None
        assert second["reportDate"] == "2021-03-15T00:00:00+00:00"
        assert cache.await_args.args[0] == "recalls:2018_honda_accord"

    @pytest.mark.asyncio
    async def test_cached_recalls(self):
        with patch.object(vin_tools, "get_cached_json", AsyncMock(return_value=[{"nhtsaId": "X"}])):
            result = await vin_tools.fetch_recalls("Honda", "Accord", 2018)

        assert result == {"source": "cache", "recalls": [{"nhtsaId": "X"}], "count": 1}

    @pytest.mark.asyncio
    async def test_invalid_year(self):
        with pytest.raises(InvalidRequestError):
            await vin_tools.fetch_recalls("Honda", "Accord", 1800)

    def test_parse_nhtsa_date(self):
        assert vin_tools.parse_nhtsa_date("/Date(0)/") == datetime(1970, 1, 1, tzinfo=timezone.utc)
        assert vin_tools.parse_nhtsa_date("01/02/2020") == datetime(2020, 2, 1, tzinfo=timezone.utc)
        assert vin_tools.parse_nhtsa_date("garbage") is None
        assert vin_tools.parse_nhtsa_date(None) is None


class TestWeather:
    @pytest.mark.asyncio
    async def test_cold_snowy_day(self):
        payload = {"current": {"temperature_2m": 28.4, "precipitation": 0, "snowfall": 1.2, "weather_code": 73}}

        async with mock_client(lambda r: httpx.Response(200, json=payload)) as client:
            result = await weather_tools.fetch_weather(44.98, -93.27, client=client)

        assert result["condition"] == "Moderate snowfall"
        assert result["riskFlags"] == {"coldRisk": True, "heatRisk": False, "rainRisk": False, "snowRisk": True}

    @pytest.mark.asyncio
    async def test_unknown_weather_code(self):
        payload = {"current": {"temperature_2m": 95, "precipitation": 2.5, "snowfall": 0, "weather_code": 42}}

        async with mock_client(lambda r: httpx.Response(200, json=payload)) as client:
            result = await weather_tools.fetch_weather(30.27, -97.74, client=client)

        assert result["condition"] == "Weather code 42"
        assert result["riskFlags"]["heatRisk"] is True
        assert result["riskFlags"]["rainRisk"] is True

    @pytest.mark.asyncio
    async def test_upstream_failure(self):
        async with mock_client(lambda r: httpx.Response(500)) as client:
            with pytest.raises(UpstreamFailure):
                await weather_tools.fetch_weather(30.27, -97.74, client=client)


class TestVehicleRoutes:
    @pytest.mark.asyncio
    async def test_decode_vin_rejects_bad_vin(self, client: AsyncClient):
        response = await client.get("/api/v1/vehicles/decode-vin", params={"vin": "BAD"})

        assert response.status_code == 400
        assert "17 characters" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_recalls_require_auth(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/vehicles/recalls", params={"make": "Honda", "model": "Accord", "year": 2018}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_weather_coordinates_validated(self, client: AsyncClient, users):
        response = await client.get(
            "/api/v1/weather", params={"lat": 120, "lng": 0}, headers=auth_headers(CUSTOMER_ID)
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_history_is_owner_only(self, client: AsyncClient, vehicle):
        owner = await client.get(f"/api/v1/vehicles/{vehicle.id}/history", headers=auth_headers(CUSTOMER_ID))
        assert owner.status_code == 200
        assert owner.json() == {"history": [], "count": 0}

        stranger = await client.get(
            f"/api/v1/vehicles/{vehicle.id}/history", headers=auth_headers(OTHER_CUSTOMER_ID)
        )
        assert stranger.status_code == 403

"""Job workflow tests."""

import pytest
from httpx import AsyncClient

from conftest import CUSTOMER_ID, OTHER_CUSTOMER_ID, OTHER_TECH_ID, TECH_ID, auth_headers


async def accept_booking(client: AsyncClient, booking_id: str, technician_id: str = TECH_ID) -> str:
    response = await client.patch(
        "/api/v1/bookings/status",
        headers=auth_headers(technician_id),
        json={"bookingId": booking_id, "userId": technician_id, "status": "accepted"},
    )
    assert response.status_code == 200
    return response.json()["jobId"]


class TestJobReads:
    @pytest.mark.asyncio
    async def test_parties_can_read_job(self, client: AsyncClient, pending_booking):
        job_id = await accept_booking(client, pending_booking.id)

        for caller in (CUSTOMER_ID, TECH_ID):
            response = await client.get(f"/api/v1/jobs/{job_id}", headers=auth_headers(caller))
            assert response.status_code == 200
            assert response.json()["bookingId"] == pending_booking.id

        stranger = await client.get(f"/api/v1/jobs/{job_id}", headers=auth_headers(OTHER_CUSTOMER_ID))
        assert stranger.status_code == 403

    @pytest.mark.asyncio
    async def test_job_by_booking(self, client: AsyncClient, pending_booking):
        job_id = await accept_booking(client, pending_booking.id)

        response = await client.get(
            f"/api/v1/bookings/{pending_booking.id}/job", headers=auth_headers(CUSTOMER_ID)
        )

        assert response.status_code == 200
        assert response.json()["jobId"] == job_id

    @pytest.mark.asyncio
    async def test_active_job(self, client: AsyncClient, pending_booking):
        none_yet = await client.get("/api/v1/jobs/active", headers=auth_headers(TECH_ID))
        assert none_yet.json() == {"job": None}

        job_id = await accept_booking(client, pending_booking.id)

        response = await client.get("/api/v1/jobs/active", headers=auth_headers(TECH_ID))
        assert response.json()["job"]["jobId"] == job_id


class TestJobStages:
    @pytest.mark.asyncio
    async def test_advance_stages(self, client: AsyncClient, pending_booking):
        job_id = await accept_booking(client, pending_booking.id)

        for stage in ("dispatched", "en_route", "arrived", "in_progress"):
            response = await client.post(
                f"/api/v1/jobs/{job_id}/stage", headers=auth_headers(TECH_ID), json={"stage": stage}
            )
            assert response.status_code == 200

        job = response.json()
        assert job["currentStage"] == "in_progress"
        assert [s["stage"] for s in job["stages"]] == ["dispatched", "en_route", "arrived", "in_progress"]
        assert job["startedAt"] is not None
        assert job["completedAt"] is None

        done = await client.post(
            f"/api/v1/jobs/{job_id}/stage",
            headers=auth_headers(TECH_ID),
            json={"stage": "complete", "note": "Customer signed off"},
        )
        assert done.json()["completedAt"] is not None
        assert done.json()["stages"][-1]["note"] == "Customer signed off"

        inactive = await client.get("/api/v1/jobs/active", headers=auth_headers(TECH_ID))
        assert inactive.json() == {"job": None}

    @pytest.mark.asyncio
    async def test_stage_cannot_go_backwards(self, client: AsyncClient, pending_booking):
        job_id = await accept_booking(client, pending_booking.id)
        await client.post(f"/api/v1/jobs/{job_id}/stage", headers=auth_headers(TECH_ID), json={"stage": "arrived"})

        response = await client.post(
            f"/api/v1/jobs/{job_id}/stage", headers=auth_headers(TECH_ID), json={"stage": "en_route"}
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_only_job_technician_advances(self, client: AsyncClient, pending_booking):
        job_id = await accept_booking(client, pending_booking.id)

        for caller in (CUSTOMER_ID, OTHER_TECH_ID):
            response = await client.post(
                f"/api/v1/jobs/{job_id}/stage", headers=auth_headers(caller), json={"stage": "en_route"}
            )
            assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_stage_rejected(self, client: AsyncClient, pending_booking):
        job_id = await accept_booking(client, pending_booking.id)

        response = await client.post(
            f"/api/v1/jobs/{job_id}/stage", headers=auth_headers(TECH_ID), json={"stage": "teleported"}
        )

        assert response.status_code == 400


class TestTechLocation:
    @pytest.mark.asyncio
    async def test_update_location(self, client: AsyncClient, pending_booking):
        job_id = await accept_booking(client, pending_booking.id)

        response = await client.put(
            f"/api/v1/jobs/{job_id}/location", headers=auth_headers(TECH_ID), json={"lat": 30.27, "lng": -97.74}
        )

        assert response.status_code == 200
        location = response.json()["techLocation"]
        assert location["lat"] == 30.27
        assert location["lng"] == -97.74
        assert location["updatedAt"]

    @pytest.mark.asyncio
    async def test_location_out_of_range(self, client: AsyncClient, pending_booking):
        job_id = await accept_booking(client, pending_booking.id)

        response = await client.put(
            f"/api/v1/jobs/{job_id}/location", headers=auth_headers(TECH_ID), json={"lat": 95, "lng": 0}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_customer_cannot_move_technician(self, client: AsyncClient, pending_booking):
        job_id = await accept_booking(client, pending_booking.id)

        response = await client.put(
            f"/api/v1/jobs/{job_id}/location", headers=auth_headers(CUSTOMER_ID), json={"lat": 30, "lng": -97}
        )

        assert response.status_code == 403

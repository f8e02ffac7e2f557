"""Notification endpoint tests."""

import pytest
import pytest_asyncio
from httpx import AsyncClient
from revvdoc.models.notification import NotificationType
from revvdoc.services.notifications import build_notification

from conftest import CUSTOMER_ID, OTHER_CUSTOMER_ID, auth_headers


@pytest_asyncio.fixture
async def notifications(db_session, users):
    items = [
        build_notification(CUSTOMER_ID, NotificationType.SYSTEM, f"Notice {i}", "Body")
        for i in range(3)
    ]
    items.append(build_notification(OTHER_CUSTOMER_ID, NotificationType.SYSTEM, "Not yours", "Body"))
    db_session.add_all(items)
    await db_session.commit()
    return items


class TestNotifications:
    @pytest.mark.asyncio
    async def test_list_own(self, client: AsyncClient, notifications):
        response = await client.get("/api/v1/notifications", headers=auth_headers(CUSTOMER_ID))

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 3
        assert all(n["userId"] == CUSTOMER_ID for n in data["notifications"])

    @pytest.mark.asyncio
    async def test_mark_one_read(self, client: AsyncClient, notifications):
        target = notifications[0]

        response = await client.post(
            f"/api/v1/notifications/{target.id}/read", headers=auth_headers(CUSTOMER_ID)
        )
        assert response.status_code == 200
        assert response.json()["read"] is True

        unread = await client.get("/api/v1/notifications?unreadOnly=true", headers=auth_headers(CUSTOMER_ID))
        assert unread.json()["count"] == 2

    @pytest.mark.asyncio
    async def test_cannot_mark_others(self, client: AsyncClient, notifications):
        response = await client.post(
            f"/api/v1/notifications/{notifications[-1].id}/read", headers=auth_headers(CUSTOMER_ID)
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_mark_all_read(self, client: AsyncClient, notifications):
        response = await client.post("/api/v1/notifications/read-all", headers=auth_headers(CUSTOMER_ID))

        assert response.json() == {"updated": 3}
        unread = await client.get("/api/v1/notifications?unreadOnly=true", headers=auth_headers(CUSTOMER_ID))
        assert unread.json()["count"] == 0

        other = await client.get("/api/v1/notifications?unreadOnly=true", headers=auth_headers(OTHER_CUSTOMER_ID))
        assert other.json()["count"] == 1

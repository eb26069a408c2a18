"""
Tests for expired invitation cleanup.
"""
import pytest
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient

from app.tasks.cleanup import cleanup_expired_invitations
from tests.utils.mocks import create_db_mock

TASK = 'app.tasks.cleanup'


class TestCleanupExpiredInvitations:

    @pytest.mark.asyncio
    async def test_deletes_only_after_grace_period(self):
        patcher, conn = create_db_mock(TASK)
        conn.set_execute_return("DELETE FROM campaign_invitations", "DELETE 4")

        with patcher:
            deleted = await cleanup_expired_invitations()

        assert deleted == 4
        cutoff = conn.calls("execute", "DELETE FROM campaign_invitations")[0][0]
        expected = datetime.now(timezone.utc) - timedelta(days=7)
        assert abs((cutoff - expected).total_seconds()) < 60

    @pytest.mark.asyncio
    async def test_admin_endpoint(self, client: AsyncClient):
        patcher, conn = create_db_mock(TASK)
        conn.set_execute_return("DELETE FROM campaign_invitations", "DELETE 2")

        with patcher:
            response = await client.post(
                "/admin/cleanup-invitations",
                headers={"Authorization": "Bearer test-admin-key"}
            )

        assert response.status_code == 200
        assert response.json() == {"deleted": 2}

    @pytest.mark.asyncio
    async def test_admin_endpoint_rejects_wrong_key(self, client: AsyncClient):
        patcher, conn = create_db_mock(TASK)

        with patcher:
            response = await client.post(
                "/admin/cleanup-invitations",
                headers={"Authorization": "Bearer wrong"}
            )

        assert response.status_code == 401
        assert conn.get_call_history() == []

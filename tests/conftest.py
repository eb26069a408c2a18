"""
Global pytest configuration and shared fixtures.
"""
import os

# Settings are read at import time; configure them before the app is imported
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-for-the-campaign-api-test-suite-0123456789")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("FRONTEND_URL", "https://campaigns.test")
os.environ.setdefault("DISCORD_ERROR_WEBHOOK_URL", "")
os.environ.setdefault("DEBUG", "false")

import pytest
from typing import AsyncGenerator
from unittest.mock import AsyncMock, patch
from httpx import AsyncClient, ASGITransport

from app.main import app
from tests.utils.factories import new_id
from tests.utils.mocks import bearer_headers


# ============================================================================
# Async HTTP client
# ============================================================================

@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the ASGI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ============================================================================
# Test accounts
# ============================================================================

@pytest.fixture
def owner_user():
    return {"id": new_id(), "email": "gm@example.com", "name": "Game Master"}


@pytest.fixture
def other_user():
    return {"id": new_id(), "email": "player@example.com", "name": "Player One"}


@pytest.fixture
def owner_headers(owner_user):
    """Authorization headers for the campaign owner."""
    return bearer_headers(owner_user)


@pytest.fixture
def other_headers(other_user):
    """Authorization headers for a second account."""
    return bearer_headers(other_user)


@pytest.fixture
def campaign_id():
    return new_id()


# ============================================================================
# External service mocks
# ============================================================================

@pytest.fixture
def mock_invitation_email():
    """Captures invitation emails instead of calling SES."""
    with patch(
        'app.services.invitations_service.send_invitation_email',
        new_callable=AsyncMock
    ) as mock:
        mock.return_value = True
        yield mock

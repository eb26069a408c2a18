from fastapi import Request
from app.core.middleware import get_session_context
from app.core.exceptions import AuthenticationError
from app.config import settings
from typing import Optional
import hmac
import logging

logger = logging.getLogger(__name__)


class AuthenticatedUser:
    """
    Dependency class for an authenticated account.
    The email is the identity provider's verified address, never user input.
    """
    def __init__(self, request: Request):
        self.session = get_session_context(request)

        if not self.session.is_valid or not self.session.user_id:
            raise AuthenticationError("Authentication required")

    @property
    def user_id(self) -> str:
        return str(self.session.user_id)

    @property
    def email(self) -> Optional[str]:
        return self.session.email

    @property
    def name(self) -> Optional[str]:
        return self.session.name

    @property
    def user_metadata(self) -> dict:
        return self.session.user_metadata


def get_authenticated_user(request: Request) -> AuthenticatedUser:
    """Dependency to get the authenticated account"""
    return AuthenticatedUser(request)


def require_admin_key(request: Request) -> None:
    """
    Dependency guarding maintenance endpoints.
    When ADMIN_API_KEY is configured the request must carry it as a bearer token.
    """
    expected = settings.admin_api_key
    if not expected:
        return

    auth_header = request.headers.get("authorization", "")
    if not hmac.compare_digest(auth_header, f"Bearer {expected}"):
        logger.warning("Rejected maintenance request with invalid admin key")
        raise AuthenticationError("Unauthorized")

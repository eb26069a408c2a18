import jwt
import logging
from datetime import datetime, timedelta, timezone
from fastapi import Request
from app.config import settings
from typing import Optional

logger = logging.getLogger(__name__)


def get_access_token(request: Request) -> Optional[str]:
    """Extract the identity provider access token from the Authorization header or session cookie"""
    auth_header = request.headers.get("authorization", "")
    if auth_header.lower().startswith("bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        if token:
            return token

    return request.cookies.get("session-token")


def create_access_token(
    user_id: str,
    email: str,
    user_metadata: Optional[dict] = None,
    expires_in: timedelta = timedelta(hours=1)
) -> str:
    """Create an access token shaped like the identity provider's (used by tests and local tooling)"""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "user_metadata": user_metadata or {},
        "iat": now,
        "exp": now + expires_in
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def verify_access_token(token: str) -> Optional[dict]:
    """Verify an access token and return the identity it carries"""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            audience=settings.jwt_audience
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Access token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.debug(f"Invalid access token: {e}")
        return None

    if not payload.get("sub"):
        return None

    return {
        "user_id": payload["sub"],
        "email": payload.get("email"),
        "user_metadata": payload.get("user_metadata") or {},
        "expires_at": datetime.fromtimestamp(payload["exp"], tz=timezone.utc) if payload.get("exp") else None
    }


def get_session_from_request(request: Request) -> Optional[dict]:
    """
    Resolve the authenticated identity for a request.
    Returns None when no valid token is present.
    """
    token = get_access_token(request)
    if not token:
        return None
    return verify_access_token(token)


def get_client_ip(request: Request) -> Optional[str]:
    """Get client IP address from request headers"""
    forwarded_for = request.headers.get('x-forwarded-for')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()
    return request.client.host if request.client else None

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
import logging
from typing import Dict, Any
from app.core.logging import log_request_context
from app.core.security import get_client_ip

logger = logging.getLogger(__name__)

class APIError(Exception):
    """Base API exception"""

    def __init__(self, message: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class AuthenticationError(APIError):
    """Authentication related errors"""

    def __init__(self, message: str = "Authentication required", details: Dict[str, Any] = None):
        super().__init__(message, 401, details)

class AuthorizationError(APIError):
    """Authorization related errors"""

    def __init__(self, message: str = "Access denied", details: Dict[str, Any] = None):
        super().__init__(message, 403, details)

class NotFoundError(APIError):
    """Entity does not exist (or is not visible to the caller)"""

    def __init__(self, message: str = "Not found", details: Dict[str, Any] = None):
        super().__init__(message, 404, details)

class ValidationError(APIError):
    """Validation related errors"""

    def __init__(self, message: str = "Validation failed", details: Dict[str, Any] = None):
        super().__init__(message, 400, details)

class ConflictError(APIError):
    """State conflicts: already a member, already reviewed, owner immutable"""

    def __init__(self, message: str = "Conflict", details: Dict[str, Any] = None):
        super().__init__(message, 400, details)

class GoneError(APIError):
    """Expired invitations, revoked or exhausted invite links"""

    def __init__(self, message: str = "Gone", details: Dict[str, Any] = None):
        super().__init__(message, 410, details)

class DatabaseError(APIError):
    """Database operation errors"""

    def __init__(self, message: str = "Database operation failed", details: Dict[str, Any] = None):
        super().__init__(message, 500, details)

def _request_context(request: Request) -> Dict[str, Any]:
    session = getattr(request.state, 'session_context', None)
    user_id = getattr(session, 'user_id', None) if session else None
    campaign_id = request.path_params.get('campaign_id') if request.path_params else None
    return log_request_context(user_id=user_id, campaign_id=campaign_id)

async def api_exception_handler(request: Request, exc: APIError):
    """Handle custom API exceptions with logging"""

    context = _request_context(request)
    context.update({
        "error_type": exc.__class__.__name__,
        "status_code": exc.status_code,
        "path": str(request.url.path),
        "method": request.method
    })

    if exc.status_code >= 500:
        logger.error(f"API Error: {exc.message}", extra={"context": context})
    else:
        logger.warning(f"API Error: {exc.message}", extra={"context": context})

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "message": exc.message,
            "details": exc.details,
            "timestamp": context["timestamp"]
        }
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Render request body validation failures as 400 in the API error envelope"""

    context = _request_context(request)
    logger.warning(f"Validation error on {request.method} {request.url.path}")

    return JSONResponse(
        status_code=400,
        content={
            "error": True,
            "message": "Validation failed",
            "details": {"errors": jsonable_encoder([
                {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
                for err in exc.errors()
            ])},
            "timestamp": context["timestamp"]
        }
    )

async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions"""

    context = _request_context(request)
    context.update({
        "error_type": exc.__class__.__name__,
        "path": str(request.url.path),
        "method": request.method
    })

    logger.error(f"Unexpected error: {str(exc)}", extra={"context": context}, exc_info=True)

    from app.services.discord_error_notifier import error_notifier
    if error_notifier:
        await error_notifier.send_error(
            exc,
            context={"path": context["path"], "method": context["method"]},
            request_info={
                "method": request.method,
                "url": str(request.url),
                "client_host": get_client_ip(request)
            }
        )

    return JSONResponse(
        status_code=500,
        content={
            "error": True,
            "message": "Internal server error",
            "timestamp": context["timestamp"]
        }
    )

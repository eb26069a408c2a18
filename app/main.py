import asyncio
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from app.config import settings
from app.core.logging import setup_logging
from app.core.exceptions import (
    api_exception_handler, validation_exception_handler, general_exception_handler, APIError
)
from app.core.middleware import session_validation_middleware, request_logging_middleware
from app.database import DatabasePool

# Initialize logging
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown"""
    from app.tasks.cleanup import run_cleanup_loop

    await DatabasePool.create_pool()
    cleanup_task = asyncio.create_task(run_cleanup_loop())

    yield

    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass
    await DatabasePool.close_pool()


app = FastAPI(
    title="Campaign Membership API",
    description="Campaign members, invitations, invite links and join requests",
    version="1.0.0",
    debug=settings.debug,
    docs_url=None if settings.is_production else "/docs",
    lifespan=lifespan
)


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "bearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
        "cookieAuth": {"type": "apiKey", "in": "cookie", "name": "session-token"}
    }

    # Public endpoints (no auth required)
    public_endpoints = ["/", "/health"]
    public_prefixes = ["/invite-links/{token}"]

    for path in openapi_schema["paths"]:
        if path in public_endpoints or any(path.startswith(prefix) for prefix in public_prefixes):
            continue

        for method in openapi_schema["paths"][path]:
            if method in ["get", "post", "put", "delete", "patch"]:
                openapi_schema["paths"][path][method]["security"] = [{"bearerAuth": []}, {"cookieAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi

# Exception handlers
app.add_exception_handler(APIError, api_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Custom middleware (order matters - first added runs last)
# Execution order: session_validation → logging
app.middleware("http")(request_logging_middleware)    # runs last
app.middleware("http")(session_validation_middleware)  # runs first

# Import and include routers
from app.routers import (
    campaigns, members, invitations, invite_links, join_requests, profiles, admin
)

app.include_router(campaigns.router, prefix="/campaigns", tags=["campaigns"])
app.include_router(members.router, prefix="/campaigns", tags=["members"])
app.include_router(join_requests.router, prefix="/campaigns", tags=["join-requests"])
app.include_router(invitations.router)
app.include_router(invite_links.router)
app.include_router(profiles.router, prefix="/profiles", tags=["profiles"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])


@app.get("/")
async def root():
    return {
        "service": "Campaign Membership API",
        "version": "1.0.0",
        "environment": settings.environment
    }


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "database": settings.db_name
    }


# Auto-start server if run directly
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

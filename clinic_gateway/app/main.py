"""
Practice Gateway - FastAPI Application

This is the main entry point for the multi-tenant practice management API.

Security Hardening:
- JWT-based authentication required for all tenant-scoped endpoints
- Tenant context taken from the token only; every query is tenant-filtered
- Rate limiting to prevent abuse (can be disabled in test mode)
- Custom exception handling so client data never leaks into error bodies
- Database security validation on startup
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from clinic_gateway.app.db.migrate import check_db_security, ensure_schema
from clinic_gateway.app.errors import ServiceError, UnknownError
from clinic_gateway.app.routes import (
    auth,
    clients,
    files,
    health,
    roles,
    sessions,
    settings,
    telehealth,
    tenants,
    users,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# Initialize rate limiter with test mode bypass
def get_limiter():
    """
    Create rate limiter that can be disabled in test mode.

    Set ENV=TEST or DISABLE_RATE_LIMITS=1 to disable rate limiting.
    """
    disable_limits = (
        os.environ.get("ENV") == "TEST" or os.environ.get("DISABLE_RATE_LIMITS") == "1"
    )

    if disable_limits:
        return Limiter(key_func=get_remote_address, default_limits=["1000000/minute"])
    else:
        return Limiter(key_func=get_remote_address)


limiter = get_limiter()


def sanitize_error_detail(detail: any) -> dict:
    """
    Sanitize error details before returning them to the client.

    Dict details are produced by our own code and already follow the
    {"error", "message"} shape; anything else is replaced by a generic body.
    """
    if isinstance(detail, dict):
        return detail

    return {
        "error": "internal_error",
        "message": "An error occurred processing your request",
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    On startup:
    - Migrate the database schema to head
    - Apply database hardening (WAL mode, permissions) and report on it
    """
    ensure_schema()

    security_status = check_db_security()
    if not security_status.get("wal_enabled"):
        logger.warning("Database WAL mode not enabled")
    if not security_status.get("permissions_secure"):
        logger.warning("Database file permissions may not be secure")

    yield


app = FastAPI(
    title="Practice Gateway",
    description="Multi-tenant practice management API: clients, sessions, notes, documents, roles and telehealth",
    version="0.1.0",
    lifespan=lifespan,
    debug=False,
)

# Register rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Map typed service errors to their status and {"error", "message"} body."""
    if isinstance(exc, UnknownError):
        logger.error("Service failure on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_detail())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions without leaking request data."""
    return JSONResponse(
        status_code=exc.status_code,
        content=sanitize_error_detail(exc.detail),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle validation errors without echoing the request body.

    Pydantic validation errors can include submitted values (client names,
    note text), so only field paths and error types are returned.
    """
    errors = []
    for error in exc.errors():
        field_path = " -> ".join(str(loc) for loc in error["loc"])
        errors.append({"field": field_path, "type": error["type"], "message": error["msg"]})

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "details": errors,
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Catch-all: log the exception type server-side, return a generic body."""
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, type(exc).__name__)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_error", "message": "An unexpected error occurred"},
    )


# Register routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(tenants.router)
app.include_router(roles.router)
app.include_router(clients.router)
app.include_router(sessions.router)
app.include_router(files.router)
app.include_router(settings.router)
app.include_router(telehealth.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {"service": "Practice Gateway", "version": "0.1.0", "status": "operational"}

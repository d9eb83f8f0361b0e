"""
Health check and public information endpoints.
"""

from fastapi import APIRouter

from clinic_gateway.app.db.migrate import check_db_security

router = APIRouter(tags=["health"])

SERVICE_NAME = "practice-gateway"
SERVICE_VERSION = "0.1.0"


@router.get("/healthz")
async def health_check():
    """Basic health check endpoint."""
    return {"ok": True}


@router.get("/health")
async def health_status():
    """Health status including database checks."""
    db = check_db_security()
    return {
        "status": "healthy" if db["db_exists"] else "degraded",
        "service": SERVICE_NAME,
        "database": db,
    }


@router.get("/public/info")
async def public_info():
    """Unauthenticated service description."""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "auth": "bearer",
        "auth_routes": ["/auth/register", "/auth/login", "/auth/verify-email"],
    }

"""
Health Routes

/api/health reports service status and, when the caller sent a valid
token, who they are. /api/health/simple is for load balancers.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
from datetime import datetime, timezone
from typing import Optional
import logging
import time

from config import get_settings
from database.mongodb import get_database
from models.user import Principal
from services.auth_deps import optional_auth, get_credential_source
from services.cookie_utils import has_auth_cookies, get_refresh_token_from_cookies
from services.errors import NotFound

router = APIRouter(prefix="/api", tags=["health"])
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
async def get_system_health(
    request: Request,
    current_user: Optional[Principal] = Depends(optional_auth)
):
    started = time.monotonic()
    settings = get_settings()

    health_data = {
        "status": "healthy",
        "timestamp": _timestamp(),
        "uptime": time.monotonic() - STARTED_AT,
        "version": settings.app_version,
        "environment": settings.environment,
        "services": {
            "api": {
                "status": "online",
                "responseTime": round((time.monotonic() - started) * 1000, 3)
            },
            "authentication": {
                "status": "online",
                "cookieSupport": True,
                "headerFallback": True,
                "features": {
                    "httpOnlyCookies": True,
                    "duoVerification": True,
                    "refreshTokens": True
                }
            },
            "database": {
                "status": "unknown",
                "type": "mongodb"
            }
        },
        "request": {
            "hasAuthCookies": has_auth_cookies(request.cookies),
            "isAuthenticated": current_user is not None,
            "tokenSource": get_credential_source(request).value if current_user else None,
            "user": {"username": current_user.username, "id": current_user.id} if current_user else None
        }
    }

    logger.info("System health check completed successfully")
    return {
        "success": True,
        "message": "System health check completed",
        "data": health_data
    }


@router.get("/health/simple")
async def get_simple_health():
    return {"status": "ok", "timestamp": _timestamp()}


@router.get("/health/database")
async def get_database_health(db: AsyncIOMotorDatabase = Depends(get_database)):
    try:
        await db.command("ping")
    except PyMongoError as e:
        logger.error(f"Database health check failed: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "status": "unhealthy",
                "message": "Database connection failed",
                "error": "DATABASE_CONNECTION_ERROR",
                "timestamp": _timestamp()
            }
        )

    return {
        "success": True,
        "status": "healthy",
        "message": "Database connection is healthy",
        "database": {"type": "mongodb", "status": "connected"},
        "timestamp": _timestamp()
    }


@router.get("/debug/cookies")
async def debug_cookies(request: Request):
    """Show which cookies and auth headers reached the API. Disabled in production."""
    if get_settings().is_production:
        raise NotFound("Route not found")

    return {
        "cookies": sorted(request.cookies.keys()),
        "hasAuthCookies": has_auth_cookies(request.cookies),
        "hasRefreshToken": get_refresh_token_from_cookies(request.cookies) is not None,
        "headers": {
            "authorization": "present" if request.headers.get("authorization") else None,
            "origin": request.headers.get("origin"),
            "userAgent": request.headers.get("user-agent")
        },
        "timestamp": _timestamp()
    }

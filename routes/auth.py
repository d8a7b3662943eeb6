from fastapi import APIRouter, Depends, Request, Response
from models.user import CredentialSource, Principal, SetCookiesRequest
from services.auth_deps import (
    get_current_user,
    require_cookie_auth,
    optional_auth,
    get_credential_source,
)
from services.cookie_utils import (
    set_access_token_cookie,
    set_refresh_token_cookie,
    clear_auth_cookies,
    has_auth_cookies,
)
from services.errors import AuthError
from typing import Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["authentication"])

def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()

@router.post("/cookies")
async def set_auth_cookies(body: SetCookiesRequest, response: Response):
    """Store tokens issued by the identity service as HttpOnly cookies"""
    set_access_token_cookie(response, body.access_token)
    if body.refresh_token:
        set_refresh_token_cookie(response, body.refresh_token)

    logger.info("Authentication cookies set successfully")

    return {
        "success": True,
        "message": "Authentication cookies set successfully",
        "cookiesSet": {
            "accessToken": True,
            "refreshToken": body.refresh_token is not None
        }
    }

@router.get("/verify")
@router.get("/status")
async def verify_auth_status(
    request: Request,
    current_user: Principal = Depends(get_current_user)
):
    """Confirm the session is carried by an auth cookie"""
    token_source = get_credential_source(request)
    if token_source != CredentialSource.COOKIE:
        raise AuthError(
            "No authentication cookies found",
            error_code="NO_AUTH_COOKIES",
            extra={"success": False, "authenticated": False}
        )

    logger.info(f"Auth status verified for user: {current_user.username}")
    return {
        "success": True,
        "message": "Authentication verified successfully",
        "authenticated": True,
        "user": current_user.public(),
        "tokenSource": token_source.value
    }

@router.get("/profile")
async def get_user_profile(
    request: Request,
    current_user: Principal = Depends(get_current_user)
):
    logger.info(f"Profile requested for user: {current_user.username}")
    return {
        "success": True,
        "message": "User profile retrieved successfully",
        "user": current_user.public(),
        "tokenSource": get_credential_source(request).value
    }

@router.post("/logout")
async def logout(
    response: Response,
    current_user: Principal = Depends(require_cookie_auth)
):
    """Clear the auth cookies. Only reachable with a cookie session."""
    clear_auth_cookies(response)
    logger.info(f"User {current_user.username} logged out successfully")
    return {
        "success": True,
        "message": "Logged out successfully",
        "authenticated": False
    }

@router.get("/health")
async def auth_health(
    request: Request,
    current_user: Optional[Principal] = Depends(optional_auth)
):
    token_source = get_credential_source(request)
    return {
        "success": True,
        "message": "Auth system health check",
        "status": "healthy",
        "features": {
            "httpOnlyCookies": True,
            "fallbackHeaderAuth": True,
            "duoSupport": True
        },
        "currentRequest": {
            "hasAuthCookies": has_auth_cookies(request.cookies),
            "isAuthenticated": current_user is not None,
            "tokenSource": token_source.value if current_user else None,
            "user": current_user.username if current_user else None
        },
        "timestamp": _timestamp()
    }

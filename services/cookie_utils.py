"""
HttpOnly cookie helpers for the authentication tokens.

Inbound, an access token is accepted from several cookie slots so that
tokens set by the separate identity service (auth_token) work alongside
the ones this API sets itself (access_token).
"""

import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from fastapi import Response

from config import get_settings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"

# Probed in order, first non-empty value wins
ACCESS_TOKEN_COOKIE_NAMES: Tuple[str, ...] = (
    "auth_token",         # identity service
    ACCESS_TOKEN_COOKIE,  # this API
    "token",              # generic fallback
)


def cookie_options() -> Dict[str, Any]:
    """Attributes shared by every auth cookie we set or clear"""
    settings = get_settings()
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "strict" if settings.is_production else "lax",
        "path": "/",
    }


def set_access_token_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        token,
        max_age=settings.access_token_max_age_seconds,
        **cookie_options()
    )
    logger.info("Access token cookie set")


def set_refresh_token_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        token,
        max_age=settings.refresh_token_max_age_seconds,
        **cookie_options()
    )
    logger.info("Refresh token cookie set")


def clear_auth_cookies(response: Response) -> None:
    options = cookie_options()
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(name, **options)
    logger.info("Authentication cookies cleared")


def get_access_token_from_cookies(cookies: Mapping[str, str]) -> Optional[Tuple[str, str]]:
    """Return (cookie_name, token) for the first populated slot, or None"""
    for name in ACCESS_TOKEN_COOKIE_NAMES:
        token = cookies.get(name)
        if token:
            logger.debug(f"Access token found in '{name}' cookie (length {len(token)})")
            return name, token

    logger.debug(f"No access token cookie; expected one of {', '.join(ACCESS_TOKEN_COOKIE_NAMES)}")
    return None


def get_refresh_token_from_cookies(cookies: Mapping[str, str]) -> Optional[str]:
    return cookies.get(REFRESH_TOKEN_COOKIE) or None


def has_auth_cookies(cookies: Mapping[str, str]) -> bool:
    return any(cookies.get(name) for name in ACCESS_TOKEN_COOKIE_NAMES)

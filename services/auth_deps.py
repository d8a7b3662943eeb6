"""
Auth dependencies for the aircraft oil API
Contains the request gates shared by every router to avoid circular imports

Gates:
- get_current_user: mandatory auth, cookie or Authorization header
- require_cookie_auth: mandatory auth, HttpOnly cookie only
- optional_auth: annotates the request when a valid token is present, never blocks
- require_duo_verification: runs after a mandatory gate, enforces 2FA
"""

import logging
from typing import Mapping, Optional

from fastapi import Request
from fastapi.security.utils import get_authorization_scheme_param

from models.user import CredentialSource, ExtractedCredential, Principal
from services.auth_service import verify_access_token
from services.cookie_utils import get_access_token_from_cookies
from services.errors import AuthError, MissingCredential, NotAuthenticated, TwoFactorRequired

logger = logging.getLogger(__name__)


def _token_preview(token: str) -> str:
    return token[:20] + "..."


def extract_credentials(
    cookies: Optional[Mapping[str, str]],
    headers: Optional[Mapping[str, str]],
    allow_header: bool = True,
) -> ExtractedCredential:
    """
    Find the bearer credential of a request.

    Cookies are probed first in their priority order; the Authorization
    header is only examined when no cookie matched. Absence is returned as
    source NONE, never raised.
    """
    found = get_access_token_from_cookies(cookies or {})
    if found is not None:
        cookie_name, token = found
        logger.debug(f"Token extracted from '{cookie_name}' cookie: {_token_preview(token)}")
        return ExtractedCredential(token=token, source=CredentialSource.COOKIE, cookie_name=cookie_name)

    if allow_header and headers is not None:
        auth_header = headers.get("authorization") or headers.get("Authorization") or ""
        scheme, param = get_authorization_scheme_param(auth_header.strip())
        token = param.strip()
        if scheme.lower() == "bearer" and token:
            logger.debug(f"Token extracted from Authorization header: {_token_preview(token)}")
            return ExtractedCredential(token=token, source=CredentialSource.HEADER)

    logger.debug("No token found in cookies or Authorization header")
    return ExtractedCredential()


def _attach(request: Request, principal: Optional[Principal], source: CredentialSource) -> None:
    request.state.principal = principal
    request.state.credential_source = source


def authenticate(request: Request, cookie_only: bool = False) -> Principal:
    """Extract and verify the request's credential, attaching the Principal on success"""
    credential = extract_credentials(request.cookies, request.headers, allow_header=not cookie_only)

    if not credential.found:
        if cookie_only:
            raise MissingCredential(
                "Access denied. HttpOnly cookie authentication required.",
                error_code="COOKIE_AUTH_REQUIRED",
                extra={"hint": "This endpoint requires authentication via HttpOnly cookies only"},
            )
        raise MissingCredential(
            extra={"hint": "Token should be provided via HttpOnly cookies or Authorization header"}
        )

    try:
        principal = verify_access_token(credential.token)
    except AuthError as e:
        logger.warning(f"Token verification failed ({credential.source.value}): {e.error_code}")
        raise

    _attach(request, principal, credential.source)
    logger.info(f"User {principal.username} authenticated via {credential.source.value}")
    return principal


async def get_current_user(request: Request) -> Principal:
    """Mandatory authentication from a cookie or the Authorization header"""
    return authenticate(request)


async def require_cookie_auth(request: Request) -> Principal:
    """Mandatory authentication from an HttpOnly cookie; header tokens are ignored"""
    return authenticate(request, cookie_only=True)


async def optional_auth(request: Request) -> Optional[Principal]:
    """
    Verify a credential if one is present. Missing or bad tokens leave the
    request anonymous (None) instead of failing it.
    """
    credential = extract_credentials(request.cookies, request.headers)
    if not credential.found:
        _attach(request, None, CredentialSource.NONE)
        return None

    try:
        principal = verify_access_token(credential.token)
    except AuthError as e:
        logger.warning(f"Optional auth token verification failed: {e.error_code}")
        _attach(request, None, CredentialSource.NONE)
        return None

    _attach(request, principal, credential.source)
    logger.debug(f"Optional auth successful for user {principal.username} via {credential.source.value}")
    return principal


def check_two_factor(principal: Optional[Principal]) -> Principal:
    if principal is None:
        raise NotAuthenticated()
    if principal.requires_2fa and not principal.two_factor_verified:
        raise TwoFactorRequired()
    return principal


async def require_duo_verification(request: Request) -> Principal:
    """
    Second-factor gate. Must be declared after a mandatory auth gate so a
    Principal is already attached to the request.
    """
    return check_two_factor(getattr(request.state, "principal", None))


def get_credential_source(request: Request) -> CredentialSource:
    return getattr(request.state, "credential_source", CredentialSource.NONE)

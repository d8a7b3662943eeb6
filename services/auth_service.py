"""
Token verification for the identity service's access tokens.

Tokens are HS256 JWTs signed with the shared secret. Consumed claims:
sub, username, email, requiredDuo, duoVerified, exp (Unix seconds).
Purely local: signature check plus a clock comparison, no network calls.
"""

import time
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from pydantic import ValidationError

from config import get_settings
from models.user import Principal
from services.errors import InvalidToken, TokenExpired

logger = logging.getLogger(__name__)


def create_access_token(
    data: Dict[str, Any],
    *,
    secret: Optional[str] = None,
    algorithm: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Sign a token with the configured secret. Used by tooling and tests."""
    settings = get_settings()
    to_encode = dict(data)
    if "exp" not in to_encode:
        lifetime = expires_delta or timedelta(seconds=settings.access_token_max_age_seconds)
        to_encode["exp"] = int((datetime.now(timezone.utc) + lifetime).timestamp())
    return jwt.encode(
        to_encode,
        secret or settings.jwt_secret_key,
        algorithm=algorithm or settings.jwt_algorithm,
    )


def decode_access_token(token: str, secret: str, algorithm: str = "HS256") -> Dict[str, Any]:
    """
    Verify signature and expiry and return the claims.

    Raises TokenExpired when the token is past its exp claim and
    InvalidToken for any other signature or structure problem.
    """
    try:
        claims = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError:
        raise TokenExpired()
    except jwt.InvalidTokenError as e:
        logger.debug(f"Token rejected: {e}")
        raise InvalidToken()

    # Second expiry check against the local clock, whole seconds
    exp = claims.get("exp")
    if exp is not None and int(exp) < int(time.time()):
        raise TokenExpired()

    return claims


def principal_from_claims(claims: Dict[str, Any]) -> Principal:
    subject = claims.get("sub")
    if subject is None or subject == "":
        raise InvalidToken("Access denied. Token has no subject.")

    try:
        return Principal(
            id=str(subject),
            username=claims.get("username"),
            email=claims.get("email"),
            # Both flags fail closed: any truthy requiredDuo demands 2FA, only a
            # literal true counts as verified
            requires_2fa=bool(claims.get("requiredDuo", False)),
            two_factor_verified=claims.get("duoVerified", False) is True,
        )
    except ValidationError as e:
        logger.debug(f"Token claims rejected: {e.error_count()} invalid field(s)")
        raise InvalidToken("Access denied. Token claims are malformed.")


def verify_access_token(
    token: str,
    secret: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> Principal:
    """Decode a bearer credential into a Principal or raise an AuthError"""
    settings = get_settings()
    claims = decode_access_token(
        token,
        secret or settings.jwt_secret_key,
        algorithm or settings.jwt_algorithm,
    )
    return principal_from_claims(claims)

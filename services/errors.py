"""
Application error taxonomy.

Every error carries an HTTP status and a stable machine-readable code.
The handlers in routes/error_handlers.py render them as
{"message": ..., "error": <code>} plus any extra fields.
"""

from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for errors mapped to HTTP responses"""

    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        if error_code is not None:
            self.error_code = error_code
        self.extra = extra or {}

    def to_body(self) -> Dict[str, Any]:
        return {"message": self.message, "error": self.error_code, **self.extra}


# ============================================================
# AUTH
# ============================================================

class AuthError(AppError):
    """Authentication or authorization failure. Never retried."""
    status_code = 401
    error_code = "AUTH_ERROR"


class MissingCredential(AuthError):
    error_code = "MISSING_TOKEN"
    default_message = "Access denied. No token provided."


class InvalidToken(AuthError):
    error_code = "INVALID_TOKEN"
    default_message = "Access denied. Invalid token."


class TokenExpired(AuthError):
    error_code = "TOKEN_EXPIRED"
    default_message = "Access denied. Token expired."


class NotAuthenticated(AuthError):
    error_code = "NOT_AUTHENTICATED"
    default_message = "Authentication required."


class TwoFactorRequired(AuthError):
    status_code = 403
    error_code = "DUO_VERIFICATION_REQUIRED"
    default_message = "Duo verification required."


# ============================================================
# RESOURCES
# ============================================================

class NotFound(AppError):
    status_code = 404
    error_code = "NOT_FOUND"
    default_message = "Resource not found"


class DuplicateKey(AppError):
    status_code = 400
    error_code = "DUPLICATE_KEY"
    default_message = "Resource already exists"


class ValidationError(AppError):
    status_code = 400
    error_code = "VALIDATION_ERROR"
    default_message = "Invalid data"


class AggregationFailure(AppError):
    """Derived engine metrics could not be refreshed. The triggering write stays committed."""
    status_code = 500
    error_code = "AGGREGATION_FAILED"
    default_message = "Oil consumption rate could not be recalculated"

    def __init__(self, engine_id: str, message: Optional[str] = None) -> None:
        super().__init__(message, extra={"engine_id": engine_id})
        self.engine_id = engine_id

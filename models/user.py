from pydantic import BaseModel, Field, field_validator
from typing import Optional
from enum import Enum
import re

# header.payload.signature, each part base64url
JWT_FORMAT = re.compile(r"^[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*$")


class CredentialSource(str, Enum):
    """Where the bearer credential of a request came from"""
    COOKIE = "cookie"
    HEADER = "header"
    NONE = "none"


class ExtractedCredential(BaseModel):
    token: Optional[str] = None
    source: CredentialSource = CredentialSource.NONE
    cookie_name: Optional[str] = None  # Which cookie slot matched, if any

    @property
    def found(self) -> bool:
        return self.token is not None


class Principal(BaseModel):
    """
    Authenticated identity built from verified token claims.
    Lives for one request only.
    """
    id: str
    username: Optional[str] = None
    email: Optional[str] = None
    requires_2fa: bool = Field(False, serialization_alias="requiredDuo")
    two_factor_verified: bool = Field(False, serialization_alias="duoVerified")

    class Config:
        frozen = True

    def public(self) -> dict:
        """Client-facing shape: {id, username, email, requiredDuo, duoVerified}"""
        return self.model_dump(by_alias=True)


class SetCookiesRequest(BaseModel):
    access_token: str = Field(..., alias="accessToken", min_length=1)
    refresh_token: Optional[str] = Field(None, alias="refreshToken")

    class Config:
        populate_by_name = True

    @field_validator("access_token")
    @classmethod
    def access_token_is_jwt(cls, value: str) -> str:
        if not JWT_FORMAT.match(value):
            raise ValueError("Access token must be a valid JWT")
        return value

    @field_validator("refresh_token")
    @classmethod
    def refresh_token_is_jwt(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not JWT_FORMAT.match(value):
            raise ValueError("Refresh token must be a valid JWT if provided")
        return value

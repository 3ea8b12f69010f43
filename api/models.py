"""
API request and response models for authkeeper REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are kept
separate from the dataclasses in auth/models.py, which own the internal
domain representation. Route handlers map between the two.

Every response carries a top-level `success` flag and failures carry a `msg`,
which is the shape existing browser clients already read.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import PublicUser

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /users/register.

    Every field is optional at the schema level. Required-ness and blank
    checks belong to RegistrationService so that the same rules apply however
    the service is called, and so the 422 carries the offending field name.
    max_length stops absurd payloads before they reach bcrypt.
    """

    username: Optional[str] = Field(default=None, max_length=255)
    firstname: Optional[str] = Field(default=None, max_length=255)
    lastname: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=320)
    password: Optional[str] = Field(default=None, max_length=255)


class AuthenticateRequest(BaseModel):
    """Request body for POST /users/authenticate."""

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserView(BaseModel):
    """Sanitized user as returned to clients. There is no password field to leak."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    email: str

    @classmethod
    def from_public(cls, user: PublicUser) -> "UserView":
        return cls(
            id=user.id,
            username=user.username,
            firstname=user.firstname,
            lastname=user.lastname,
            email=user.email,
        )


class RegisterResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    msg: str = "User registered!"


class AuthenticateResponse(BaseModel):
    """Response for POST /users/authenticate.

    token is pre-formatted as "JWT <jwt>" so clients can copy it straight
    into the Authorization header.
    """

    model_config = ConfigDict(frozen=True)

    success: bool = True
    token: str
    expires_in: int
    user: UserView


class ValidateResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    msg: str = "Token is valid."
    user_id: int


class ProfileResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    user: UserView


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    msg: str
    error: ErrorDetail

    @classmethod
    def build(cls, code: str, message: str, detail: Any = None) -> "ErrorResponse":
        return cls(msg=message, error=ErrorDetail(code=code, message=message, detail=detail))


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)

"""Pydantic schemas for request/response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field  # type: ignore[import-untyped]
from pydantic.alias_generators import to_camel

from fastapi_credential_auth.security import TokenPair


class CamelModel(BaseModel):
    """Base model using camelCase names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Requests
# ============================================================================


class ClientCredentials(CamelModel):
    """Shared client id/secret pair sent by trusted callers."""

    client_id: str | None = Field(default=None, description="Shared client id")
    secret_key: str | None = Field(default=None, description="Shared client secret")


class GenerateCodeRequest(ClientCredentials):
    """Request schema for one-time code generation."""

    user_id: str = Field(..., min_length=1, description="User to issue the code for")
    ttl_seconds: float | None = Field(
        default=None,
        allow_inf_nan=False,
        description="Code lifetime in seconds (floored, minimum 30, default 300)",
    )


class ValidateCodeRequest(ClientCredentials):
    """Request schema for one-time code validation."""

    user_id: str = Field(..., min_length=1, description="User the code was issued to")
    code: str = Field(..., min_length=1, description="One-time code to verify")


class PasswordResetRequest(CamelModel):
    """Request schema for resetting a password with a one-time code."""

    username: str = Field(..., description="Email address or username")
    code: str = Field(..., description="One-time code issued to the user")
    password: str = Field(..., description="New password")
    confirm_password: str = Field(..., description="Repeat of the new password")


class PasswordChangeRequest(ClientCredentials):
    """Request schema for changing a password with the current one."""

    username: str = Field(..., description="Email address or username")
    current_password: str = Field(..., description="Current password")
    new_password: str = Field(..., description="New password")
    confirm_password: str | None = Field(
        default=None, description="Optional repeat of the new password"
    )


class LoginRequest(CamelModel):
    """Request schema for email/password login."""

    email: str = Field(..., min_length=1, description="Email or username of the user")
    password: str = Field(..., min_length=1, description="Password")


class RefreshTokenRequest(CamelModel):
    refresh_token: str | None = None


class ValidateTokenRequest(CamelModel):
    token: str | None = None


# ============================================================================
# Responses
# ============================================================================


class MessageResponse(CamelModel):
    """Generic success envelope."""

    success: bool = Field(default=True)
    message: str = Field(..., description="Response message")


class GeneratedCode(CamelModel):
    user_id: str
    expires_at: datetime
    code: str
    ttl_seconds: int


class GenerateCodeResponse(MessageResponse):
    data: GeneratedCode


class UserSummary(CamelModel):
    id: str
    email: str | None = None
    name: str | None = None
    role: str | None = None


class LoginResponse(MessageResponse):
    user: UserSummary
    tokens: TokenPair


class RefreshTokenResponse(MessageResponse):
    access_token: str
    expires_in: int


class TokenPayload(CamelModel):
    user_id: str
    email: str | None = None
    name: str | None = None
    role: str | None = None
    iat: int
    exp: int


class ValidateTokenResponse(CamelModel):
    success: bool = True
    valid: bool = True
    payload: TokenPayload

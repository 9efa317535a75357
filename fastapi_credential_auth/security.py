"""JWT token management, token extraction and the shared client credential gate."""

import hmac
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any
from urllib.parse import unquote

from jose import ExpiredSignatureError, JWTError, jwt  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field  # type: ignore[import-untyped]

from fastapi_credential_auth.config import AuthConfig
from fastapi_credential_auth.errors import (
    InvalidTokenError,
    TokenExpiredError,
    UnauthorizedError,
)

REFRESH_TOKEN_TYPE = "refresh"


class TokenClaims(BaseModel):
    """Identity claims carried by access and refresh tokens."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    email: str | None = None
    name: str | None = None
    role: str | None = None


class TokenPair(BaseModel):
    """Access and refresh token issued together."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., alias="accessToken")
    refresh_token: str = Field(..., alias="refreshToken")
    expires_in: int = Field(..., alias="expiresIn")


def _encode(
    claims: TokenClaims,
    extra: dict[str, Any],
    secret_key: str,
    algorithm: str,
    lifetime: timedelta,
) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": claims.user_id,
        "jti": str(uuid.uuid4()),
        "iat": now,
        "exp": now + lifetime,
        **claims.model_dump(by_alias=True, exclude_none=True),
        **extra,
    }
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def create_access_token(
    claims: TokenClaims,
    secret_key: str,
    algorithm: str,
    lifetime: timedelta,
) -> str:
    """
    Create a JWT access token.

    Access tokens carry no ``type`` claim; only refresh tokens are marked.

    Args:
        claims: Identity claims to embed
        secret_key: Secret key for signing token
        algorithm: JWT algorithm (e.g., 'HS256')
        lifetime: Token lifetime

    Returns:
        Encoded JWT token string

    Example:
        >>> token = create_access_token(
        ...     TokenClaims(userId="u1", email="alice@example.com"),
        ...     secret_key='secret',
        ...     algorithm='HS256',
        ...     lifetime=timedelta(hours=1)
        ... )
    """
    return _encode(claims, {}, secret_key, algorithm, lifetime)


def create_refresh_token(
    claims: TokenClaims,
    secret_key: str,
    algorithm: str,
    lifetime: timedelta,
) -> str:
    """
    Create a JWT refresh token carrying ``type: "refresh"``.

    Args:
        claims: Identity claims to embed
        secret_key: Secret key for signing token
        algorithm: JWT algorithm (e.g., 'HS256')
        lifetime: Token lifetime

    Returns:
        Encoded JWT token string
    """
    return _encode(
        claims, {"type": REFRESH_TOKEN_TYPE}, secret_key, algorithm, lifetime
    )


def create_token_pair(claims: TokenClaims, config: AuthConfig) -> TokenPair:
    """Create an access/refresh token pair using the configured lifetimes."""
    return TokenPair(
        access_token=create_access_token(
            claims, config.jwt_secret, config.algorithm, config.access_token_lifetime
        ),
        refresh_token=create_refresh_token(
            claims, config.jwt_secret, config.algorithm, config.refresh_token_lifetime
        ),
        expires_in=config.access_token_ttl_seconds,
    )


def decode_token(token: str, secret_key: str, algorithm: str) -> dict[str, Any]:
    """
    Decode and verify a JWT token.

    Args:
        token: JWT token string
        secret_key: Secret key for verification
        algorithm: Expected JWT algorithm

    Returns:
        Decoded token claims as dictionary

    Raises:
        TokenExpiredError: if the token has expired (client should refresh)
        InvalidTokenError: for any other signature or structure problem
            (client should re-authenticate)
    """
    try:
        return jwt.decode(
            token,
            secret_key,
            algorithms=[algorithm],
            options={
                "verify_signature": True,
                "verify_exp": True,
                "require_exp": True,
                "require_iat": True,
            },
        )
    except ExpiredSignatureError as e:
        raise TokenExpiredError() from e
    except JWTError as e:
        raise InvalidTokenError() from e


def verify_access_token(token: str, config: AuthConfig) -> dict[str, Any]:
    """
    Decode a token and require that it is an access token.

    Raises:
        InvalidTokenError: if the token is a refresh token or malformed
        TokenExpiredError: if the token has expired
    """
    claims = decode_token(token, config.jwt_secret, config.algorithm)
    if claims.get("type", "access") != "access":
        raise InvalidTokenError("Invalid token type")
    if not claims.get("userId"):
        raise InvalidTokenError("Invalid token claims")
    return claims


def verify_refresh_token(token: str, config: AuthConfig) -> dict[str, Any]:
    """
    Decode a token and require that it is a refresh token.

    Raises:
        InvalidTokenError: if the token lacks the refresh marker or is malformed
        TokenExpiredError: if the token has expired
    """
    claims = decode_token(token, config.jwt_secret, config.algorithm)
    if claims.get("type") != REFRESH_TOKEN_TYPE:
        raise InvalidTokenError("Invalid token type")
    if not claims.get("userId"):
        raise InvalidTokenError("Invalid token claims")
    return claims


def refresh_access_token(refresh_token: str, config: AuthConfig) -> str:
    """Issue a new access token from a valid refresh token."""
    claims = verify_refresh_token(refresh_token, config)
    identity = TokenClaims.model_validate(claims)
    return create_access_token(
        identity, config.jwt_secret, config.algorithm, config.access_token_lifetime
    )


def extract_token_from_header(header: str | None) -> str | None:
    """
    Extract a token from an Authorization header value.

    Both ``"Bearer <token>"`` and a bare ``"<token>"`` are accepted.
    """
    if not header or not header.strip():
        return None

    parts = header.strip().split(" ")
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1] or None
    return header.strip()


def extract_token_from_cookies(cookie_header: str | None, cookie_name: str) -> str | None:
    """
    Extract a named value from a raw ``Cookie`` header.

    Values are percent-decoded. Returns None if the cookie is absent or empty.
    """
    if not cookie_header:
        return None

    cookies: dict[str, str] = {}
    for cookie in cookie_header.split(";"):
        name, _, value = cookie.strip().partition("=")
        if name:
            cookies[name] = unquote(value)

    return cookies.get(cookie_name) or None


def verify_client_credentials(
    config: AuthConfig, client_id: str | None, client_secret: str | None
) -> None:
    """
    Check a caller's shared client id and secret against configuration.

    Raises:
        ConfigurationError: if the server has no client credentials configured
        UnauthorizedError: if the caller's credentials do not match
    """
    expected_id, expected_secret = config.require_client_credentials()

    id_ok = hmac.compare_digest((client_id or "").encode(), expected_id.encode())
    secret_ok = hmac.compare_digest(
        (client_secret or "").encode(), expected_secret.encode()
    )
    if not (id_ok and secret_ok):
        raise UnauthorizedError()

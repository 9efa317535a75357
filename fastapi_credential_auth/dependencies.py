"""FastAPI dependencies for token-authenticated routes."""

from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Depends, Request  # type: ignore[import-untyped]

from fastapi_credential_auth.config import AuthConfig
from fastapi_credential_auth.db.models import UserRecord
from fastapi_credential_auth.db.protocols import UserStore
from fastapi_credential_auth.errors import NotFoundError, UnauthorizedError
from fastapi_credential_auth.security import (
    extract_token_from_cookies,
    extract_token_from_header,
    verify_access_token,
)


def get_request_token(request: Request, cookie_name: str) -> str | None:
    """Find a token in the Authorization header, falling back to a cookie."""
    token = extract_token_from_header(request.headers.get("authorization"))
    if token is None:
        token = extract_token_from_cookies(request.headers.get("cookie"), cookie_name)
    return token


def get_token_claims_dependency(
    config: AuthConfig,
) -> Callable[[Request], Awaitable[dict[str, Any]]]:
    """
    Create a dependency returning the verified claims of the caller's access token.

    The token is read from ``Authorization`` (``Bearer <token>`` or a bare
    token) or from the access token cookie.

    Args:
        config: Authentication configuration

    Returns:
        FastAPI dependency function

    Example:
        ```python
        token_claims = Depends(get_token_claims_dependency(config))

        @app.get("/whoami")
        async def whoami(claims: dict = token_claims):
            return {"user_id": claims["userId"], "role": claims.get("role")}
        ```
    """

    async def get_token_claims(request: Request) -> dict[str, Any]:
        token = get_request_token(request, config.access_token_cookie)
        if token is None:
            raise UnauthorizedError("Authentication token is required")
        return verify_access_token(token, config)

    return get_token_claims


def get_current_user_dependency(
    get_user_store: Callable[..., Any],
    config: AuthConfig,
) -> Callable[..., Awaitable[UserRecord]]:
    """
    Create a dependency for getting the current authenticated user.

    Args:
        get_user_store: Dependency returning a UserStore
        config: Authentication configuration

    Returns:
        FastAPI dependency function

    Example:
        ```python
        current_user = Depends(get_current_user_dependency(get_user_store, config))

        @app.get("/protected")
        async def protected_route(user: UserRecord = current_user):
            return {"user_id": user.id}
        ```
    """
    get_token_claims = get_token_claims_dependency(config)

    async def get_current_user(
        claims: dict[str, Any] = Depends(get_token_claims),
        users: UserStore = Depends(get_user_store),
    ) -> UserRecord:
        """
        Resolve the user named by the access token.

        Raises:
            UnauthorizedError: if no token was supplied
            InvalidTokenError: if the token is malformed or not an access token
            TokenExpiredError: if the token has expired
            NotFoundError: if the user no longer exists
        """
        user = await users.get_by_id(str(claims["userId"]))
        if user is None:
            raise NotFoundError("User not found")
        return user

    return get_current_user

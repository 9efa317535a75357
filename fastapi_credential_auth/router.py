"""API router for credential-reset and token endpoints."""

from collections.abc import Callable
from typing import Any

from fastapi import (  # type: ignore[import-untyped]
    APIRouter,
    Depends,
    Request,
    Response,
    status,
)

from fastapi_credential_auth.config import AuthConfig
from fastapi_credential_auth.credentials import CredentialService
from fastapi_credential_auth.db.protocols import OTPStore, UserStore
from fastapi_credential_auth.dependencies import get_request_token
from fastapi_credential_auth.errors import ValidationError
from fastapi_credential_auth.locks import KeyedLock
from fastapi_credential_auth.otp import OTPService
from fastapi_credential_auth.schemas import (
    GenerateCodeRequest,
    GenerateCodeResponse,
    GeneratedCode,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PasswordChangeRequest,
    PasswordResetRequest,
    RefreshTokenRequest,
    RefreshTokenResponse,
    TokenPayload,
    UserSummary,
    ValidateCodeRequest,
    ValidateTokenRequest,
    ValidateTokenResponse,
)
from fastapi_credential_auth.security import (
    refresh_access_token,
    verify_access_token,
    verify_client_credentials,
)

MISSING_TOKEN = "Authentication token is required"


def _otp_service_dependency(
    get_otp_store: Callable[..., Any], config: AuthConfig, locks: KeyedLock
) -> Callable[..., OTPService]:
    def get_otp_service(
        store: OTPStore = Depends(get_otp_store),
    ) -> OTPService:
        return OTPService(config, store, locks)

    return get_otp_service


def _client_config_dependency(config: AuthConfig) -> Callable[[], None]:
    # Dependencies run before body fields are validated
    def require_client_config() -> None:
        config.require_client_credentials()

    return require_client_config


def get_two_factor_router(
    get_otp_store: Callable[..., Any],
    config: AuthConfig,
    locks: KeyedLock | None = None,
) -> APIRouter:
    """
    Create an APIRouter with the one-time code endpoints.

    Both endpoints are gated by the shared client id/secret pair.

    Args:
        get_otp_store: Dependency returning an OTPStore
        config: Authentication configuration
        locks: Per-user lock; pass the same instance to :func:`get_auth_router`

    Returns:
        Configured APIRouter instance

    Example:
        ```python
        locks = KeyedLock()
        app.include_router(
            get_two_factor_router(get_otp_store, config, locks),
            prefix="/2fa",
            tags=["2fa"],
        )
        ```
    """
    router = APIRouter()
    get_otp_service = _otp_service_dependency(
        get_otp_store, config, locks or KeyedLock()
    )
    client_config = [Depends(_client_config_dependency(config))]

    @router.post(
        "/generate",
        response_model=GenerateCodeResponse,
        status_code=status.HTTP_200_OK,
        dependencies=client_config,
        summary="Generate one-time code",
        description="Issue a six digit code for a user. Delivery is up to the caller.",
    )
    async def generate_code(
        request: GenerateCodeRequest,
        otp: OTPService = Depends(get_otp_service),
    ) -> GenerateCodeResponse:
        """
        Issue a one-time code for a user.

        Raises:
            ConfigurationError: 500 if client credentials are not configured
            UnauthorizedError: 401 if the caller's credentials do not match
            RateLimitedError: 429 if a code was issued too recently
        """
        verify_client_credentials(config, request.client_id, request.secret_key)
        issued = await otp.issue(request.user_id, request.ttl_seconds)

        return GenerateCodeResponse(
            message="2FA code generated",
            data=GeneratedCode(
                user_id=issued.user_id,
                expires_at=issued.expires_at,
                code=issued.code,
                ttl_seconds=issued.ttl_seconds,
            ),
        )

    @router.post(
        "/validate",
        response_model=MessageResponse,
        status_code=status.HTTP_200_OK,
        dependencies=client_config,
        summary="Validate one-time code",
        description="Verify and consume a user's one-time code",
    )
    async def validate_code(
        request: ValidateCodeRequest,
        otp: OTPService = Depends(get_otp_service),
    ) -> MessageResponse:
        """
        Verify a one-time code.

        Raises:
            UnauthorizedError: 401 if the caller's credentials do not match
            NotFoundError: 404 if the user has no code on record
            ExpiredError: 410 if the code expired or was already used
            InvalidCredentialError: 400 if the code does not match
        """
        verify_client_credentials(config, request.client_id, request.secret_key)
        await otp.verify(request.user_id, request.code)
        return MessageResponse(message="2FA code verified")

    return router


def get_auth_router(
    get_otp_store: Callable[..., Any],
    get_user_store: Callable[..., Any],
    config: AuthConfig,
    locks: KeyedLock | None = None,
) -> APIRouter:
    """
    Create an APIRouter with login, password and token endpoints.

    Errors are raised as :class:`~fastapi_credential_auth.errors.AuthError`;
    call :func:`~fastapi_credential_auth.handlers.register_exception_handlers`
    on the application to render them as ``{"success": false, ...}``.

    Args:
        get_otp_store: Dependency returning an OTPStore
        get_user_store: Dependency returning a UserStore
        config: Authentication configuration
        locks: Per-user lock shared with :func:`get_two_factor_router`;
            created if omitted

    Returns:
        Configured APIRouter instance

    Example:
        ```python
        from fastapi import FastAPI

        app = FastAPI()
        register_exception_handlers(app)

        locks = KeyedLock()
        auth_router = get_auth_router(get_otp_store, get_user_store, config, locks)
        app.include_router(auth_router, prefix="/auth", tags=["auth"])
        ```
    """
    router = APIRouter()
    client_config = [Depends(_client_config_dependency(config))]
    get_otp_service = _otp_service_dependency(
        get_otp_store, config, locks or KeyedLock()
    )

    def get_credential_service(
        users: UserStore = Depends(get_user_store),
        otp: OTPService = Depends(get_otp_service),
    ) -> CredentialService:
        return CredentialService(config, users, otp)

    def set_cookie(response: Response, key: str, value: str, max_age: int) -> None:
        response.set_cookie(
            key=key,
            value=value,
            max_age=max_age,
            path="/",
            httponly=True,
            secure=config.cookie_secure,
            samesite="lax",
        )

    def clear_cookie(response: Response, key: str) -> None:
        response.delete_cookie(
            key=key,
            path="/",
            httponly=True,
            secure=config.cookie_secure,
            samesite="lax",
        )

    @router.post(
        "/password/reset",
        response_model=MessageResponse,
        status_code=status.HTTP_200_OK,
        summary="Reset password",
        description="Set a new password using a one-time code",
    )
    async def reset_password(
        request: PasswordResetRequest,
        credentials: CredentialService = Depends(get_credential_service),
    ) -> MessageResponse:
        await credentials.reset_password(
            request.username,
            request.code,
            request.password,
            request.confirm_password,
        )
        return MessageResponse(message="Password reset successfully")

    @router.post(
        "/password/change",
        response_model=MessageResponse,
        status_code=status.HTTP_200_OK,
        dependencies=client_config,
        summary="Change password",
        description="Set a new password after checking the current one",
    )
    async def change_password(
        request: PasswordChangeRequest,
        response: Response,
        credentials: CredentialService = Depends(get_credential_service),
    ) -> MessageResponse:
        """
        Change a password and clear auth cookies so the client logs in again.

        Raises:
            UnauthorizedError: 401 for bad client credentials or a wrong current password
            ValidationError: 400 for a password policy violation
        """
        verify_client_credentials(config, request.client_id, request.secret_key)
        await credentials.change_password(
            request.username,
            request.current_password,
            request.new_password,
            request.confirm_password,
        )

        clear_cookie(response, config.access_token_cookie)
        clear_cookie(response, config.refresh_token_cookie)
        return MessageResponse(
            message="Password changed successfully. Please log in again."
        )

    @router.post(
        "/login",
        response_model=LoginResponse,
        status_code=status.HTTP_200_OK,
        summary="Log in",
        description="Check email and password, return tokens and set token cookies",
    )
    async def login(
        request: LoginRequest,
        response: Response,
        credentials: CredentialService = Depends(get_credential_service),
    ) -> LoginResponse:
        user, tokens = await credentials.authenticate(request.email, request.password)

        set_cookie(
            response,
            config.access_token_cookie,
            tokens.access_token,
            tokens.expires_in,
        )
        set_cookie(
            response,
            config.refresh_token_cookie,
            tokens.refresh_token,
            config.refresh_token_ttl_seconds,
        )

        return LoginResponse(
            message="Login successful",
            user=UserSummary(id=user.id, email=user.email, name=user.name, role=user.role),
            tokens=tokens,
        )

    @router.post(
        "/token/refresh",
        response_model=RefreshTokenResponse,
        status_code=status.HTTP_200_OK,
        summary="Refresh access token",
        description="Exchange a refresh token from body, header or cookie for a new "
        "access token",
    )
    async def refresh_token(
        request: Request,
        response: Response,
        body: RefreshTokenRequest | None = None,
    ) -> RefreshTokenResponse:
        """
        Issue a new access token.

        Raises:
            ValidationError: 400 if no refresh token was supplied
            InvalidTokenError: 401 if the token is not a refresh token
            TokenExpiredError: 401 if the refresh token has expired
        """
        token = (body.refresh_token if body else None) or get_request_token(
            request, config.refresh_token_cookie
        )
        if not token:
            raise ValidationError(MISSING_TOKEN)

        access_token = refresh_access_token(token, config)
        set_cookie(
            response,
            config.access_token_cookie,
            access_token,
            config.access_token_ttl_seconds,
        )

        return RefreshTokenResponse(
            message="Token refreshed successfully",
            access_token=access_token,
            expires_in=config.access_token_ttl_seconds,
        )

    def validated(token: str | None) -> ValidateTokenResponse:
        if not token:
            raise ValidationError(MISSING_TOKEN)
        claims = verify_access_token(token, config)
        return ValidateTokenResponse(payload=TokenPayload.model_validate(claims))

    @router.post(
        "/token/validate",
        response_model=ValidateTokenResponse,
        status_code=status.HTTP_200_OK,
        summary="Validate access token",
        description="Validate an access token from body, header or cookie",
    )
    async def validate_token(
        request: Request,
        body: ValidateTokenRequest | None = None,
    ) -> ValidateTokenResponse:
        token = (body.token if body else None) or get_request_token(
            request, config.access_token_cookie
        )
        return validated(token)

    @router.get(
        "/token/validate",
        response_model=ValidateTokenResponse,
        status_code=status.HTTP_200_OK,
        summary="Validate access token",
        description="Validate the access token from header or cookie",
    )
    async def validate_request_token(request: Request) -> ValidateTokenResponse:
        return validated(get_request_token(request, config.access_token_cookie))

    return router


__all__ = ["get_auth_router", "get_two_factor_router"]

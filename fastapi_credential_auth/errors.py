"""Error taxonomy for credential and token operations."""

from typing import Any

from fastapi import HTTPException, status  # type: ignore[import-untyped]


class ErrorCode:
    """Machine-readable error codes returned in the ``error.code`` field."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    STORAGE_ERROR = "STORAGE_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    NOT_FOUND = "NOT_FOUND"
    OTP_EXPIRED = "OTP_EXPIRED"
    RATE_LIMITED = "RATE_LIMITED"
    INVALID_CREDENTIAL = "INVALID_CREDENTIAL"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class AuthError(HTTPException):
    """
    Base class for all errors raised by this package.

    Carries a human-readable message, a machine-readable error code and
    optional extra fields that are merged into the top level of the JSON
    error envelope.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: str,
        headers: dict[str, str] | None = None,
        **extra: Any,  # noqa: ANN401
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message = message
        self.error_code = error_code
        self.extra = extra


class ConfigurationError(AuthError):
    def __init__(self, message: str = "Server configuration error") -> None:
        super().__init__(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            message,
            ErrorCode.CONFIGURATION_ERROR,
        )


class StorageError(AuthError):
    def __init__(self, operation: str) -> None:
        super().__init__(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"Storage failure during {operation}",
            ErrorCode.STORAGE_ERROR,
        )


class ValidationError(AuthError):
    def __init__(self, message: str) -> None:
        super().__init__(
            status.HTTP_400_BAD_REQUEST, message, ErrorCode.VALIDATION_ERROR
        )


class UnauthorizedError(AuthError):
    def __init__(self, message: str = "Unauthorized request") -> None:
        super().__init__(
            status.HTTP_401_UNAUTHORIZED, message, ErrorCode.UNAUTHORIZED
        )


class InvalidTokenError(AuthError):
    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(
            status.HTTP_401_UNAUTHORIZED, message, ErrorCode.INVALID_TOKEN
        )


class TokenExpiredError(AuthError):
    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(
            status.HTTP_401_UNAUTHORIZED, message, ErrorCode.TOKEN_EXPIRED
        )


class NotFoundError(AuthError):
    def __init__(self, message: str) -> None:
        super().__init__(status.HTTP_404_NOT_FOUND, message, ErrorCode.NOT_FOUND)


class ExpiredError(AuthError):
    def __init__(self, message: str = "2FA code has expired") -> None:
        super().__init__(status.HTTP_410_GONE, message, ErrorCode.OTP_EXPIRED)


class RateLimitedError(AuthError):
    """Raised when a new code is requested before the regeneration interval."""

    def __init__(self, retry_after_ms: int) -> None:
        # Retry-After is whole seconds, rounded up
        retry_after_seconds = max(1, -(-retry_after_ms // 1000))
        super().__init__(
            status.HTTP_429_TOO_MANY_REQUESTS,
            "2FA code recently generated; please wait before requesting another.",
            ErrorCode.RATE_LIMITED,
            headers={"Retry-After": str(retry_after_seconds)},
            retryAfterMs=retry_after_ms,
        )
        self.retry_after_ms = retry_after_ms


class InvalidCredentialError(AuthError):
    def __init__(self, message: str = "Invalid 2FA code") -> None:
        super().__init__(
            status.HTTP_400_BAD_REQUEST, message, ErrorCode.INVALID_CREDENTIAL
        )

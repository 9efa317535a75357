"""FastAPI Credential Auth - JWT tokens, Argon2 passwords and one-time-code password resets."""

from fastapi_credential_auth.config import AuthConfig, AuthSettings
from fastapi_credential_auth.credentials import CredentialService
from fastapi_credential_auth.db import (
    BaseCredentialUserTable,
    BaseOTPEntryTable,
    JSONOTPStore,
    JSONUserStore,
    OtpEntry,
    OTPStore,
    SQLAlchemyOTPStore,
    SQLAlchemyUserStore,
    UserRecord,
    UserStore,
)
from fastapi_credential_auth.dependencies import (
    get_current_user_dependency,
    get_token_claims_dependency,
)
from fastapi_credential_auth.errors import AuthError, ErrorCode
from fastapi_credential_auth.handlers import register_exception_handlers
from fastapi_credential_auth.locks import KeyedLock
from fastapi_credential_auth.otp import IssuedCode, OTPService
from fastapi_credential_auth.router import get_auth_router, get_two_factor_router
from fastapi_credential_auth.security import TokenClaims, TokenPair
from fastapi_credential_auth.types import HashType, OtpStatus

__version__ = "0.1.0"

__all__ = [
    "AuthConfig",
    "AuthError",
    "AuthSettings",
    "BaseCredentialUserTable",
    "BaseOTPEntryTable",
    "CredentialService",
    "ErrorCode",
    "HashType",
    "IssuedCode",
    "JSONOTPStore",
    "JSONUserStore",
    "KeyedLock",
    "OTPService",
    "OTPStore",
    "OtpEntry",
    "OtpStatus",
    "SQLAlchemyOTPStore",
    "SQLAlchemyUserStore",
    "TokenClaims",
    "TokenPair",
    "UserRecord",
    "UserStore",
    "get_auth_router",
    "get_current_user_dependency",
    "get_token_claims_dependency",
    "get_two_factor_router",
    "register_exception_handlers",
]

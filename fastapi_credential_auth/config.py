"""Configuration for credential and token operations."""

import logging
from datetime import timedelta
from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict

from fastapi_credential_auth.errors import ConfigurationError

logger = logging.getLogger(__name__)


class AuthSettings(BaseSettings):
    """Environment variables consumed by :meth:`AuthConfig.from_env`."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    client_id: str | None = None
    secret_key: str | None = None
    pepper: str | None = None
    jwt_secret: str | None = None
    jwt_access_token_expiry: int = 3600
    jwt_refresh_token_expiry: int = 604800


class AuthConfig:
    """
    Configuration for the credential-reset and token endpoints.

    Configuration can be set via class attributes on a subclass or via
    keyword overrides passed to the constructor. Use :meth:`from_env` to
    build a configuration from environment variables.

    Only the JWT secret is validated at construction time. The shared client
    credentials and the pepper are checked when an operation needs them, so
    a missing value fails that request with a 500 instead of taking the whole
    process down.

    Example:
        ```python
        class MyAuthConfig(AuthConfig):
            jwt_secret = "your-secret-key-here-at-least-32-chars"
            client_id = "frontend"
            client_secret = "shared-secret"
            pepper = "server-side-pepper"
            access_token_lifetime = timedelta(minutes=30)
        ```
    """

    # Required configuration
    jwt_secret: str

    # Shared client credential gate (CLIENT_ID / SECRET_KEY)
    client_id: str | None = None
    client_secret: str | None = None

    # Server-side secret appended to passwords before hashing
    pepper: str | None = None

    # Token lifetimes
    access_token_lifetime: timedelta = timedelta(hours=1)
    refresh_token_lifetime: timedelta = timedelta(days=7)
    algorithm: str = "HS256"

    # One-time code configuration
    otp_default_ttl: timedelta = timedelta(minutes=5)
    otp_min_ttl: timedelta = timedelta(seconds=30)
    otp_regeneration_interval: timedelta = timedelta(seconds=30)

    password_min_length: int = 8

    # Cookies
    access_token_cookie: str = "auth_token"
    refresh_token_cookie: str = "refresh_token"
    cookie_secure: bool = True
    """Whether to set the 'Secure' flag on cookies (require https)."""

    developer_mode: bool = False

    def __init__(self, **overrides: Any) -> None:  # noqa: ANN401
        """Apply overrides and validate configuration."""
        options = {
            name
            for klass in type(self).__mro__
            for name in getattr(klass, "__annotations__", {})
        }
        for name, value in overrides.items():
            if name not in options:
                raise TypeError(f"Unknown configuration option: {name}")
            setattr(self, name, value)
        self.validate_secret()

    @classmethod
    def from_env(cls, settings: AuthSettings | None = None) -> "AuthConfig":
        """
        Build a configuration from environment variables.

        Args:
            settings: Pre-loaded settings, read from the environment if omitted

        Returns:
            Validated configuration
        """
        settings = settings or AuthSettings()
        overrides: dict[str, Any] = {
            "client_id": settings.client_id,
            "client_secret": settings.secret_key,
            "pepper": settings.pepper,
            "access_token_lifetime": timedelta(
                seconds=settings.jwt_access_token_expiry
            ),
            "refresh_token_lifetime": timedelta(
                seconds=settings.jwt_refresh_token_expiry
            ),
        }
        if settings.jwt_secret:
            overrides["jwt_secret"] = settings.jwt_secret
        return cls(**overrides)

    def validate_secret(self) -> None:
        """
        Validate that the JWT signing secret is secure.

        In production mode, requires secret to be at least 32 characters.
        In developer mode, any non-empty secret is allowed.

        Raises:
            ConfigurationError: if the secret is missing or too short
        """
        if not getattr(self, "jwt_secret", None):
            raise ConfigurationError(
                "jwt_secret must be set. Generate with: openssl rand -hex 32"
            )

        if self.developer_mode:
            return

        if len(self.jwt_secret) < 32:
            raise ConfigurationError(
                "jwt_secret must be at least 32 characters long. "
                "Generate with: openssl rand -hex 32"
            )

    def require_client_credentials(self) -> tuple[str, str]:
        """
        Return the configured client id and secret.

        Raises:
            ConfigurationError: if either value is missing
        """
        if not self.client_id or not self.client_secret:
            logger.error("CLIENT_ID or SECRET_KEY are missing from configuration")
            raise ConfigurationError()
        return self.client_id, self.client_secret

    def require_pepper(self) -> str:
        """
        Return the configured pepper.

        Raises:
            ConfigurationError: if no pepper is configured
        """
        if not self.pepper:
            logger.error("PEPPER is missing from configuration")
            raise ConfigurationError(
                "PEPPER is required for password hashing and verification"
            )
        return self.pepper

    @property
    def access_token_ttl_seconds(self) -> int:
        return int(self.access_token_lifetime.total_seconds())

    @property
    def refresh_token_ttl_seconds(self) -> int:
        return int(self.refresh_token_lifetime.total_seconds())

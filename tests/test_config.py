"""Tests for authentication configuration."""

from datetime import timedelta

import pytest

from fastapi_credential_auth.config import AuthConfig, AuthSettings
from fastapi_credential_auth.errors import ConfigurationError

# ============================================================================
# Test Configuration Classes
# ============================================================================


class MinimalConfig(AuthConfig):
    """Minimal configuration with all required fields."""

    jwt_secret = "test-secret-key-minimum-32-chars-long"


class ProductionConfig(AuthConfig):
    """Production-like configuration."""

    jwt_secret = "production-secret-key-very-long-and-secure-string-here"
    client_id = "frontend"
    client_secret = "shared-secret"
    pepper = "server-pepper"
    access_token_lifetime = timedelta(hours=2)
    refresh_token_lifetime = timedelta(days=30)
    otp_default_ttl = timedelta(minutes=10)


# ============================================================================
# Configuration Validation Tests
# ============================================================================


class TestConfigValidation:
    """Test suite for configuration validation."""

    def test_minimal_config(self) -> None:
        """Should apply defaults around the required secret."""
        config = MinimalConfig()

        assert config.algorithm == "HS256"
        assert config.access_token_lifetime == timedelta(hours=1)
        assert config.refresh_token_lifetime == timedelta(days=7)
        assert config.otp_default_ttl == timedelta(seconds=300)
        assert config.otp_min_ttl == timedelta(seconds=30)
        assert config.otp_regeneration_interval == timedelta(seconds=30)
        assert config.password_min_length == 8
        assert config.access_token_cookie == "auth_token"
        assert config.refresh_token_cookie == "refresh_token"
        assert config.cookie_secure is True

    def test_production_config(self) -> None:
        """Should keep subclass overrides."""
        config = ProductionConfig()

        assert config.access_token_ttl_seconds == 7200
        assert config.refresh_token_ttl_seconds == 30 * 24 * 3600
        assert config.require_client_credentials() == ("frontend", "shared-secret")
        assert config.require_pepper() == "server-pepper"

    def test_missing_secret(self) -> None:
        """Should refuse to start without a JWT secret."""
        with pytest.raises(ConfigurationError) as exc_info:
            AuthConfig()
        assert "jwt_secret must be set" in exc_info.value.message

    def test_short_secret(self) -> None:
        """Should refuse a short secret outside developer mode."""
        with pytest.raises(ConfigurationError) as exc_info:
            AuthConfig(jwt_secret="too-short")
        assert "at least 32 characters" in exc_info.value.message

    def test_short_secret_developer_mode(self) -> None:
        """Should accept a short secret in developer mode."""
        config = AuthConfig(jwt_secret="dev", developer_mode=True)
        assert config.jwt_secret == "dev"

    def test_keyword_overrides(self) -> None:
        """Should apply keyword overrides over class attributes."""
        config = MinimalConfig(password_min_length=12, cookie_secure=False)

        assert config.password_min_length == 12
        assert config.cookie_secure is False
        assert MinimalConfig().password_min_length == 8

    def test_unknown_override(self) -> None:
        """Should reject options that do not exist."""
        with pytest.raises(TypeError):
            MinimalConfig(otp_length=8)


class TestRequiredSecrets:
    """Test suite for secrets checked at request time."""

    def test_missing_client_credentials(self) -> None:
        """Should raise a 500 configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            MinimalConfig().require_client_credentials()
        assert exc_info.value.status_code == 500

    def test_partial_client_credentials(self) -> None:
        """Should require both the id and the secret."""
        with pytest.raises(ConfigurationError):
            MinimalConfig(client_id="frontend").require_client_credentials()

    def test_missing_pepper(self) -> None:
        """Should name the pepper in the error."""
        with pytest.raises(ConfigurationError) as exc_info:
            MinimalConfig().require_pepper()
        assert "PEPPER" in exc_info.value.message


# ============================================================================
# Environment Tests
# ============================================================================


class TestFromEnv:
    """Test suite for environment-based configuration."""

    def test_from_settings(self) -> None:
        """Should map settings onto configuration attributes."""
        settings = AuthSettings(
            client_id="frontend",
            secret_key="shared-secret",
            pepper="server-pepper",
            jwt_secret="x" * 32,
            jwt_access_token_expiry=900,
            jwt_refresh_token_expiry=86400,
        )

        config = AuthConfig.from_env(settings)

        assert config.client_id == "frontend"
        assert config.client_secret == "shared-secret"
        assert config.pepper == "server-pepper"
        assert config.access_token_lifetime == timedelta(minutes=15)
        assert config.refresh_token_lifetime == timedelta(days=1)

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Should read the process environment."""
        monkeypatch.setenv("CLIENT_ID", "env-client")
        monkeypatch.setenv("SECRET_KEY", "env-secret")
        monkeypatch.setenv("PEPPER", "env-pepper")
        monkeypatch.setenv("JWT_SECRET", "y" * 40)
        monkeypatch.setenv("JWT_ACCESS_TOKEN_EXPIRY", "120")

        config = AuthConfig.from_env()

        assert config.require_client_credentials() == ("env-client", "env-secret")
        assert config.pepper == "env-pepper"
        assert config.access_token_ttl_seconds == 120
        assert config.refresh_token_ttl_seconds == 604800

    def test_from_environment_without_secret(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Should fail when JWT_SECRET is absent."""
        monkeypatch.delenv("JWT_SECRET", raising=False)

        with pytest.raises(ConfigurationError):
            AuthConfig.from_env(AuthSettings(_env_file=None))

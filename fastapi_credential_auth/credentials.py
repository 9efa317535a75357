"""Login, password reset and password change flows."""

import logging

from fastapi_credential_auth.config import AuthConfig
from fastapi_credential_auth.db.models import UserRecord
from fastapi_credential_auth.db.protocols import UserStore
from fastapi_credential_auth.errors import (
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from fastapi_credential_auth.otp import OTPService
from fastapi_credential_auth.passwords import (
    detect_hash_type,
    hash_password,
    verify_password,
)
from fastapi_credential_auth.security import TokenClaims, TokenPair, create_token_pair
from fastapi_credential_auth.types import HashType

logger = logging.getLogger(__name__)

INVALID_LOGIN = "Invalid email or password"


class CredentialService:
    """
    Compose password hashing, tokens and one-time codes against a user store.

    New passwords are always stored with Argon2. Nothing is written until the
    corresponding check (one-time code or current password) has passed.
    """

    def __init__(
        self, config: AuthConfig, users: UserStore, otp: OTPService
    ) -> None:
        self.config = config
        self.users = users
        self.otp = otp

    def _check_new_password(self, password: str, confirm_password: str | None) -> None:
        if confirm_password is not None and password != confirm_password:
            raise ValidationError("Passwords do not match")
        if len(password) < self.config.password_min_length:
            raise ValidationError(
                f"Password must be at least {self.config.password_min_length} "
                "characters long"
            )

    async def _password_matches(self, user: UserRecord, password: str) -> bool:
        if not user.password:
            logger.warning("User %s has no password set", user.id)
            return False
        hash_type = user.hash_type or detect_hash_type(user.password)
        return await verify_password(
            password, user.password, hash_type, self.config.pepper
        )

    async def _store_new_password(
        self, user: UserRecord, password: str, pepper: str
    ) -> None:
        stored = await hash_password(password, HashType.ARGON2, pepper)
        await self.users.update_password(user.id, stored, HashType.ARGON2)

    async def authenticate(self, email: str, password: str) -> tuple[UserRecord, TokenPair]:
        """
        Check an email and password and issue a token pair.

        Raises:
            UnauthorizedError: for an unknown user or a wrong password
        """
        user = await self.users.get_by_username(email)
        if user is None or not await self._password_matches(user, password):
            logger.info("Failed login attempt")
            raise UnauthorizedError(INVALID_LOGIN)

        tokens = create_token_pair(
            TokenClaims(
                user_id=user.id, email=user.email, name=user.name, role=user.role
            ),
            self.config,
        )
        logger.info("User %s logged in", user.id)
        return user, tokens

    async def reset_password(
        self,
        username: str,
        code: str,
        password: str,
        confirm_password: str,
    ) -> None:
        """
        Reset a password using a one-time code as the only factor.

        Args:
            username: Email or username, matched case-insensitively
            code: One-time code previously issued to the user
            password: New password
            confirm_password: Must equal ``password``

        Raises:
            ValidationError: for missing fields or a policy violation
            ConfigurationError: if no pepper is configured; the code is left unused
            NotFoundError: if the user or their code entry does not exist
            ExpiredError: if the code has expired or was already used
            InvalidCredentialError: if the code does not match
        """
        username = username.strip()
        code = code.strip()
        if not username:
            raise ValidationError("Username is required")
        if not code:
            raise ValidationError("2FA code is required")
        if not password or not confirm_password:
            raise ValidationError("Password and confirmation are required")
        self._check_new_password(password, confirm_password)
        # Checked before the code is consumed
        pepper = self.config.require_pepper()

        user = await self.users.get_by_username(username)
        if user is None:
            raise NotFoundError("Unable to locate user with provided username")

        await self.otp.verify(user.id, code)
        await self._store_new_password(user, password, pepper)
        logger.info("Password reset for user %s", user.id)

    async def change_password(
        self,
        username: str,
        current_password: str,
        new_password: str,
        confirm_password: str | None = None,
    ) -> None:
        """
        Change a password after checking the current one.

        Existing tokens are not revoked; clients are expected to discard them
        and log in again.

        Raises:
            ValidationError: for missing fields or a policy violation
            NotFoundError: if the user does not exist
            UnauthorizedError: if the current password is wrong
        """
        username = username.strip()
        if not username:
            raise ValidationError("Username is required")
        if not current_password or not new_password:
            raise ValidationError("Current password and new password are required")
        self._check_new_password(new_password, confirm_password)
        pepper = self.config.require_pepper()

        user = await self.users.get_by_username(username)
        if user is None:
            raise NotFoundError("User not found")

        if not await self._password_matches(user, current_password):
            logger.info("Rejected password change for user %s", user.id)
            raise UnauthorizedError("Current password is incorrect")

        await self._store_new_password(user, new_password, pepper)
        logger.info("Password changed for user %s", user.id)

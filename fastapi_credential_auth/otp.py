"""One-time code issuance and verification."""

import hashlib
import hmac
import logging
import math
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field  # type: ignore[import-untyped]

from fastapi_credential_auth.config import AuthConfig
from fastapi_credential_auth.db.models import OtpEntry
from fastapi_credential_auth.db.protocols import OTPStore
from fastapi_credential_auth.errors import (
    ExpiredError,
    InvalidCredentialError,
    NotFoundError,
    RateLimitedError,
    ValidationError,
)
from fastapi_credential_auth.locks import KeyedLock
from fastapi_credential_auth.types import OtpStatus

logger = logging.getLogger(__name__)

CODE_SPACE = 1_000_000


def generate_code() -> str:
    """
    Generate a six digit one-time code.

    Drawn uniformly from [0, 1_000_000) with a CSPRNG and zero padded.

    Example:
        >>> generate_code()
        '048213'
    """
    return f"{secrets.randbelow(CODE_SPACE):06d}"


def hash_code(code: str) -> str:
    """Return the hex SHA-256 digest stored in place of a code."""
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def codes_match(stored_hash: str, candidate_hash: str) -> bool:
    """
    Compare two hex digests in constant time.

    Digests of different byte length, or that are not valid hex, never match.
    """
    try:
        stored = bytes.fromhex(stored_hash)
        candidate = bytes.fromhex(candidate_hash)
    except ValueError:
        return False

    if len(stored) != len(candidate):
        return False

    return hmac.compare_digest(stored, candidate)


def resolve_ttl(ttl_seconds: float | None, config: AuthConfig) -> int:
    """Floor a requested TTL to whole seconds, applying the default and minimum."""
    if ttl_seconds is None:
        requested = config.otp_default_ttl.total_seconds()
    else:
        requested = ttl_seconds
    minimum = config.otp_min_ttl.total_seconds()
    return int(max(minimum, math.floor(requested)))


class IssuedCode(BaseModel):
    """Result of issuing a code. Carries the plaintext code for delivery."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    expires_at: datetime = Field(..., alias="expiresAt")
    code: str = Field(..., repr=False)
    ttl_seconds: int = Field(..., alias="ttlSeconds")


def utcnow() -> datetime:
    return datetime.now(UTC)


class OTPService:
    """
    Issue and verify one-time codes for a user.

    Calls for the same user id are serialised through ``locks``; pass one
    shared :class:`KeyedLock` to every service instance in the process. The
    store's conditional status update guards against other processes.

    Example:
        ```python
        service = OTPService(config, otp_store, locks)
        issued = await service.issue("u1")
        await deliver_somehow(issued.code)

        await service.verify("u1", submitted_code)
        ```
    """

    def __init__(
        self,
        config: AuthConfig,
        store: OTPStore,
        locks: KeyedLock | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.config = config
        self.store = store
        self.locks = locks or KeyedLock()
        self.clock = clock

    async def issue(self, user_id: str, ttl_seconds: float | None = None) -> IssuedCode:
        """
        Issue a new code for ``user_id``, replacing any previous entry.

        Args:
            user_id: User the code is for
            ttl_seconds: Requested lifetime; floored, default 300, minimum 30

        Returns:
            The plaintext code with its expiry and effective TTL

        Raises:
            ValidationError: if ``user_id`` is empty
            RateLimitedError: if the user's active code is younger than the
                regeneration interval
        """
        if not user_id:
            raise ValidationError("userId is required")

        ttl = resolve_ttl(ttl_seconds, self.config)

        async with self.locks.hold(user_id):
            now = self.clock()
            await self.store.expire_stale(now)

            existing = await self.store.get_entry(user_id)
            if (
                existing is not None
                and existing.state(now) is OtpStatus.ACTIVE
                and existing.generated_at is not None
            ):
                interval = self.config.otp_regeneration_interval
                elapsed = now - existing.generated_at
                if elapsed < interval:
                    remaining = min(interval - elapsed, interval)
                    retry_after_ms = max(1, math.ceil(remaining / timedelta(milliseconds=1)))
                    logger.info(
                        "Rejected code regeneration for user %s, retry in %sms",
                        user_id,
                        retry_after_ms,
                    )
                    raise RateLimitedError(retry_after_ms)

            code = generate_code()
            entry = OtpEntry(
                user_id=user_id,
                code_hash=hash_code(code),
                expires_at=now + timedelta(seconds=ttl),
                generated_at=now,
                status=OtpStatus.ACTIVE,
            )
            await self.store.put_entry(entry)

        logger.info("Issued one-time code for user %s (ttl=%ss)", user_id, ttl)
        return IssuedCode(
            user_id=user_id,
            expires_at=entry.expires_at,
            code=code,
            ttl_seconds=ttl,
        )

    async def verify(self, user_id: str, code: str) -> None:
        """
        Verify and consume the code issued to ``user_id``.

        A wrong code leaves the entry usable for another attempt. A correct
        code consumes it permanently.

        Raises:
            ValidationError: if ``user_id`` or ``code`` is empty
            NotFoundError: if no entry exists for the user
            ExpiredError: if the entry has expired or was already used
            InvalidCredentialError: if the code does not match
        """
        if not user_id:
            raise ValidationError("userId is required")
        if not code:
            raise ValidationError("2FA code is required")

        async with self.locks.hold(user_id):
            now = self.clock()
            await self.store.expire_stale(now)

            entry = await self.store.get_entry(user_id)
            if entry is None:
                logger.info("No one-time code on record for user %s", user_id)
                raise NotFoundError("No active 2FA code found for user")

            # Checked again here in case the sweep above missed it
            state = entry.state(now)
            if state is not OtpStatus.ACTIVE:
                if entry.status is OtpStatus.ACTIVE:
                    await self.store.set_status(user_id, OtpStatus.EXPIRED)
                logger.info("Rejected %s one-time code for user %s", state, user_id)
                raise ExpiredError()

            if not codes_match(entry.code_hash, hash_code(code)):
                logger.info("Invalid one-time code submitted for user %s", user_id)
                raise InvalidCredentialError()

            if not await self.store.set_status(user_id, OtpStatus.CONSUMED):
                logger.warning("One-time code for user %s consumed concurrently", user_id)
                raise ExpiredError()

        logger.info("Verified one-time code for user %s", user_id)

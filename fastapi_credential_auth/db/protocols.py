"""Storage ports for one-time codes and user credentials."""

from datetime import datetime
from typing import Protocol, runtime_checkable

from fastapi_credential_auth.db.models import OtpEntry, UserRecord
from fastapi_credential_auth.types import HashType, OtpStatus


@runtime_checkable
class OTPStore(Protocol):
    """
    Protocol for one-time code storage.

    Implementations keep exactly one entry per user id.
    """

    async def get_entry(self, user_id: str) -> OtpEntry | None:
        """Return the entry for ``user_id``, if any."""
        ...

    async def put_entry(self, entry: OtpEntry) -> None:
        """Store ``entry``, replacing any existing entry for the same user."""
        ...

    async def set_status(
        self,
        user_id: str,
        status: OtpStatus,
        expected: OtpStatus = OtpStatus.ACTIVE,
    ) -> bool:
        """
        Move an entry to ``status`` if its stored status is ``expected``.

        Returns:
            True if the transition was applied, False otherwise
        """
        ...

    async def expire_stale(self, now: datetime) -> int:
        """
        Mark active entries whose expiry is at or before ``now`` as expired.

        Returns:
            Number of entries changed
        """
        ...


@runtime_checkable
class UserStore(Protocol):
    """Protocol for the user records consulted by credential flows."""

    async def get_by_id(self, user_id: str) -> UserRecord | None:
        """Return the user with ``user_id``, if any."""
        ...

    async def get_by_username(self, username: str) -> UserRecord | None:
        """Return the user whose email or username matches, ignoring case."""
        ...

    async def update_password(
        self, user_id: str, password: str, hash_type: HashType
    ) -> None:
        """Store a new password value and hash type, stamping the update time."""
        ...

"""Type definitions for fastapi-credential-auth."""

from enum import StrEnum


class HashType(StrEnum):
    """Algorithm that produced a stored password value."""

    # Clear text. Insecure, for development and test fixtures only.
    NONE = "none"
    ARGON2 = "argon2"


class OtpStatus(StrEnum):
    """
    Lifecycle state of a one-time code entry.

    Transitions:
        active -> consumed   (successful verification)
        active -> expired    (expiry detected at read time)

    Both consumed and expired are terminal. A new issuance for the same user
    replaces the entry rather than reviving it.
    """

    ACTIVE = "active"
    CONSUMED = "consumed"
    EXPIRED = "expired"

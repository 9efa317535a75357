"""Password hashing and verification with Argon2id and a server-side pepper."""

import asyncio
import hmac
import logging

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError

from fastapi_credential_auth.errors import ConfigurationError
from fastapi_credential_auth.types import HashType

logger = logging.getLogger(__name__)

ARGON2_PREFIXES = ("$argon2id$", "$argon2i$", "$argon2d$")

# 32 MiB memory, 3 passes, 4 lanes, 256-bit output
password_hasher = PasswordHasher(
    time_cost=3,
    memory_cost=2**15,
    parallelism=4,
    hash_len=32,
    salt_len=16,
    type=Type.ID,
)


def _peppered(password: str, pepper: str | None) -> str:
    if not pepper:
        raise ConfigurationError(
            "PEPPER is required for password hashing and verification"
        )
    return f"{password}{pepper}"


async def hash_password(
    password: str, hash_type: HashType, pepper: str | None
) -> str:
    """
    Hash a password for storage.

    ``HashType.NONE`` returns the password unchanged. That mode is insecure and
    only meant for development fixtures. ``HashType.ARGON2`` appends the pepper
    and computes an Argon2id hash; the salt and parameters are embedded in the
    returned string.

    Args:
        password: Plaintext password
        hash_type: Hashing mode to use
        pepper: Server-side secret appended before hashing

    Returns:
        Stored password value

    Raises:
        ConfigurationError: if hashing with Argon2 and no pepper is configured

    Example:
        >>> stored = await hash_password("hunter22", HashType.ARGON2, "pepper")
        >>> stored.startswith("$argon2id$")
        True
    """
    match hash_type:
        case HashType.NONE:
            return password
        case HashType.ARGON2:
            secret = _peppered(password, pepper)
            return await asyncio.to_thread(password_hasher.hash, secret)
        case _:
            raise ValueError(f"Unsupported hash type: {hash_type}")


async def verify_password(
    password: str, stored: str, hash_type: HashType, pepper: str | None
) -> bool:
    """
    Check a candidate password against a stored value.

    A structurally invalid stored hash is reported as a mismatch rather than
    an error.

    Args:
        password: Candidate plaintext password
        stored: Stored password value
        hash_type: Mode that produced ``stored``
        pepper: Server-side secret appended before hashing

    Returns:
        True if the password matches, False otherwise

    Raises:
        ConfigurationError: if verifying an Argon2 hash and no pepper is configured
    """
    match hash_type:
        case HashType.NONE:
            return hmac.compare_digest(password.encode(), stored.encode())
        case HashType.ARGON2:
            secret = _peppered(password, pepper)
            try:
                return await asyncio.to_thread(password_hasher.verify, stored, secret)
            except (VerificationError, InvalidHashError) as e:
                logger.debug("Password verification failed: %s", type(e).__name__)
                return False
        case _:
            raise ValueError(f"Unsupported hash type: {hash_type}")


def detect_hash_type(stored: str) -> HashType:
    """
    Infer the hashing mode from a stored password value.

    Argon2 hashes are recognised by their ``$argon2id$``, ``$argon2i$`` or
    ``$argon2d$`` prefix; anything else is treated as clear text.
    """
    if stored.startswith(ARGON2_PREFIXES):
        return HashType.ARGON2
    return HashType.NONE

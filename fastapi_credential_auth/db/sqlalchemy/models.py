"""SQLAlchemy table mixins for one-time codes and user credentials."""

from datetime import UTC, datetime

from sqlalchemy import DateTime, String, TypeDecorator
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import Mapped, mapped_column  # type: ignore[import-untyped]

from fastapi_credential_auth.types import OtpStatus


class UTCDateTime(TypeDecorator):
    """
    Expiry and update timestamps, written as naive UTC and read back aware.

    SQLite drops the offset, so a stored `expiresAt` would otherwise fail to
    compare with the service clock. Naive input is already UTC.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(
        self, value: datetime | None, _dialect: Dialect
    ) -> datetime | None:
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(UTC).replace(tzinfo=None)
        return value

    def process_result_value(
        self, value: datetime | None, _dialect: Dialect
    ) -> datetime | None:
        if value is None:
            return None
        return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


class BaseOTPEntryTable:
    """
    Mixin for the one-time code table.

    The user id is the primary key, which enforces one entry per user.

    Example:
        ```python
        from sqlalchemy.orm import DeclarativeBase

        class Base(DeclarativeBase):
            pass

        class OtpEntryRow(BaseOTPEntryTable, Base):
            pass
        ```
    """

    __tablename__ = "otp_entries"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)

    # Hex SHA-256 of the code, never the code itself
    code_hash: Mapped[str] = mapped_column(String(128), nullable=False)

    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    generated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=OtpStatus.ACTIVE.value, index=True
    )


class BaseCredentialUserTable:
    """
    Mixin adding credential fields to a user model.

    The primary key ``id`` is left to the concrete model and is compared as a
    string.

    Example:
        ```python
        class User(BaseCredentialUserTable, Base):
            __tablename__ = "users"

            id: Mapped[str] = mapped_column(String(36), primary_key=True)
            department: Mapped[str | None] = mapped_column(String(100))
        ```
    """

    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    username: Mapped[str | None] = mapped_column(String(150), nullable=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Argon2 hash, or clear text when hash_type is "none"
    password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    hash_type: Mapped[str | None] = mapped_column(String(16), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

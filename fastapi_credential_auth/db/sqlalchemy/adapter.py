import typing
from datetime import UTC, datetime

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fastapi_credential_auth.db.models import OtpEntry, UserRecord
from fastapi_credential_auth.types import HashType, OtpStatus


class SQLAlchemyOTPStore:
    """
    SQLAlchemy implementation of the OTPStore protocol.

    Status transitions are single conditional UPDATE statements, so two
    processes racing to consume the same code cannot both succeed.

    Example:
        ```python
        async def get_otp_store(
            session: AsyncSession = Depends(get_async_session)
        ) -> SQLAlchemyOTPStore:
            return SQLAlchemyOTPStore(session, OtpEntryRow)
        ```
    """

    def __init__(
        self, session: AsyncSession, otp_model: type[typing.Any]
    ) -> None:
        """
        Initialize the store.

        Args:
            session: SQLAlchemy async session
            otp_model: Model class inheriting from BaseOTPEntryTable
        """
        self.session = session
        self.otp_model = otp_model

    def _to_entry(self, row: typing.Any) -> OtpEntry:  # noqa: ANN401
        return OtpEntry(
            user_id=row.user_id,
            code_hash=row.code_hash,
            expires_at=row.expires_at,
            generated_at=row.generated_at,
            status=row.status,
        )

    async def get_entry(self, user_id: str) -> OtpEntry | None:
        row = await self.session.get(self.otp_model, user_id, populate_existing=True)
        return self._to_entry(row) if row is not None else None

    async def put_entry(self, entry: OtpEntry) -> None:
        # Refresh first so the ORM diffs against what is really stored
        row = await self.session.get(
            self.otp_model, entry.user_id, populate_existing=True
        )
        if row is None:
            row = self.otp_model(user_id=entry.user_id)
            self.session.add(row)
        row.code_hash = entry.code_hash
        row.expires_at = entry.expires_at
        row.generated_at = entry.generated_at
        row.status = entry.status.value
        await self.session.commit()

    async def set_status(
        self,
        user_id: str,
        status: OtpStatus,
        expected: OtpStatus = OtpStatus.ACTIVE,
    ) -> bool:
        statement = (
            update(self.otp_model)
            .where(
                self.otp_model.user_id == user_id,
                self.otp_model.status == expected.value,
            )
            .values(status=status.value)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        await self.session.commit()
        return result.rowcount == 1

    async def expire_stale(self, now: datetime) -> int:
        statement = (
            update(self.otp_model)
            .where(
                self.otp_model.status == OtpStatus.ACTIVE.value,
                self.otp_model.expires_at <= now,
            )
            .values(status=OtpStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        await self.session.commit()
        return result.rowcount


class SQLAlchemyUserStore:
    """
    SQLAlchemy implementation of the UserStore protocol.

    Example:
        ```python
        async def get_user_store(
            session: AsyncSession = Depends(get_async_session)
        ) -> SQLAlchemyUserStore:
            return SQLAlchemyUserStore(session, User)
        ```
    """

    def __init__(
        self, session: AsyncSession, user_model: type[typing.Any]
    ) -> None:
        """
        Initialize the store.

        Args:
            session: SQLAlchemy async session
            user_model: User model class inheriting from BaseCredentialUserTable
        """
        self.session = session
        self.user_model = user_model

    def _to_record(self, row: typing.Any) -> UserRecord:  # noqa: ANN401
        return UserRecord(
            id=str(row.id),
            email=row.email,
            username=row.username,
            name=row.name,
            role=row.role,
            password=row.password,
            hash_type=row.hash_type,
            updated_at=row.updated_at,
        )

    async def get_by_id(self, user_id: str) -> UserRecord | None:
        statement = (
            select(self.user_model)
            .where(self.user_model.id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(statement)
        row = result.scalar_one_or_none()
        return self._to_record(row) if row is not None else None

    async def get_by_username(self, username: str) -> UserRecord | None:
        wanted = username.strip().lower()
        statement = (
            select(self.user_model)
            .where(
                or_(
                    func.lower(self.user_model.email) == wanted,
                    func.lower(self.user_model.username) == wanted,
                )
            )
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(statement)
        row = result.scalars().first()
        return self._to_record(row) if row is not None else None

    async def update_password(
        self, user_id: str, password: str, hash_type: HashType
    ) -> None:
        statement = (
            update(self.user_model)
            .where(self.user_model.id == user_id)
            .values(
                password=password,
                hash_type=hash_type.value,
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(statement)
        await self.session.commit()

"""Test configuration and fixtures."""

import json
from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import String
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from fastapi_credential_auth.config import AuthConfig
from fastapi_credential_auth.db.jsonfile.adapter import JSONOTPStore, JSONUserStore
from fastapi_credential_auth.db.sqlalchemy.adapter import (
    SQLAlchemyOTPStore,
    SQLAlchemyUserStore,
)
from fastapi_credential_auth.db.sqlalchemy.models import (
    BaseCredentialUserTable,
    BaseOTPEntryTable,
)
from fastapi_credential_auth.locks import KeyedLock
from fastapi_credential_auth.otp import OTPService
from fastapi_credential_auth.passwords import password_hasher

TEST_PEPPER = "test-pepper"
ALICE_PASSWORD = "old-password-1"
BOB_PASSWORD = "bob-plaintext"

# ============================================================================
# Database Models for Testing
# ============================================================================


class Base(DeclarativeBase):
    """Base class for test database models."""


class User(BaseCredentialUserTable, Base):
    """Test user model."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)


class OtpEntryRow(BaseOTPEntryTable, Base):
    """Test one-time code model."""


# ============================================================================
# Test Configuration
# ============================================================================


class MockAuthConfig(AuthConfig):
    """Authentication configuration for testing."""

    jwt_secret = "test-secret-key-minimum-32-chars-long"
    client_id = "test-client"
    client_secret = "test-client-secret"
    pepper = TEST_PEPPER
    cookie_secure = False


class MutableClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def argon2_hash(password: str) -> str:
    return password_hasher.hash(password + TEST_PEPPER)


def user_documents() -> dict[str, Any]:
    return {
        "users": [
            {
                "id": "u1",
                "email": "Alice@Example.com",
                "username": "alice",
                "name": "Alice",
                "role": "admin",
                "password": argon2_hash(ALICE_PASSWORD),
                "hashType": "argon2",
                "department": "procurement",
            },
            {
                "id": 2,
                "email": "bob@example.com",
                "username": "bob",
                "name": "Bob",
                "password": BOB_PASSWORD,
            },
        ],
        "vendors": [{"id": "v1", "name": "Acme"}],
    }


# ============================================================================
# Basic Fixtures
# ============================================================================


@pytest.fixture
def test_config() -> MockAuthConfig:
    """Provide a test configuration."""
    return MockAuthConfig()


@pytest.fixture
def clock() -> MutableClock:
    """Provide a controllable clock."""
    return MutableClock(datetime(2025, 1, 1, 12, 0, tzinfo=UTC))


# ============================================================================
# JSON File Fixtures
# ============================================================================


@pytest.fixture
def otp_path(tmp_path: Path) -> Path:
    """Path of the one-time code file."""
    return tmp_path / "2fa.json"


@pytest.fixture
def users_path(tmp_path: Path) -> Path:
    """Path of a user document seeded with two users."""
    path = tmp_path / "all-data.json"
    path.write_text(json.dumps(user_documents()), encoding="utf-8")
    return path


@pytest.fixture
def otp_store(otp_path: Path) -> JSONOTPStore:
    """Provide a JSON one-time code store."""
    return JSONOTPStore(otp_path)


@pytest.fixture
def user_store(users_path: Path) -> JSONUserStore:
    """Provide a JSON user store."""
    return JSONUserStore(users_path)


@pytest.fixture
def otp_service(
    test_config: MockAuthConfig, otp_store: JSONOTPStore, clock: MutableClock
) -> OTPService:
    """Provide a one-time code service on the JSON store and a fixed clock."""
    return OTPService(test_config, otp_store, KeyedLock(), clock)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def async_engine():  # type: ignore[no-untyped-def]
    """Create an async SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def async_session(async_engine) -> AsyncIterator[AsyncSession]:  # type: ignore[no-untyped-def]
    """Create an async database session."""
    async_session_maker = async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session_maker() as session:
        yield session


@pytest.fixture
async def sql_otp_store(async_session: AsyncSession) -> SQLAlchemyOTPStore:
    """Create a SQLAlchemy one-time code store."""
    return SQLAlchemyOTPStore(async_session, OtpEntryRow)


@pytest.fixture
async def sql_user_store(async_session: AsyncSession) -> SQLAlchemyUserStore:
    """Create a SQLAlchemy user store."""
    return SQLAlchemyUserStore(async_session, User)


@pytest.fixture
async def sql_user(async_session: AsyncSession) -> User:
    """Create a test user with an Argon2 password."""
    user = User(
        id="1",
        email="Test@Example.com",
        username="testuser",
        name="Test User",
        password=argon2_hash(ALICE_PASSWORD),
        hash_type="argon2",
    )
    async_session.add(user)
    await async_session.commit()
    return user

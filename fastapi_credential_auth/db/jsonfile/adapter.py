"""JSON file adapters for one-time codes and user records."""

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from fastapi_credential_auth.db.models import OtpEntry, UserRecord
from fastapi_credential_auth.errors import StorageError
from fastapi_credential_auth.types import HashType, OtpStatus

logger = logging.getLogger(__name__)


class JSONFile:
    """
    A JSON document on disk with serialised read-modify-write access.

    File I/O runs in a worker thread. Writes go to a temporary file in the
    same directory which then replaces the existing file, so readers never see a
    partially written document.

    One instance should be shared by every caller touching the same path;
    the lock only serialises callers of this instance.
    """

    def __init__(self, path: str | os.PathLike[str], default: Callable[[], Any]) -> None:
        self.path = Path(path)
        self.default = default
        self._lock = asyncio.Lock()

    def _read(self) -> Any:  # noqa: ANN401
        if not self.path.exists():
            return self.default()
        try:
            with self.path.open(encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Failed to read %s: %s", self.path, type(e).__name__)
            raise StorageError(f"read of {self.path.name}") from e

    def _write(self, data: Any) -> None:  # noqa: ANN401
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            logger.error("Failed to write %s: %s", self.path, type(e).__name__)
            raise StorageError(f"write of {self.path.name}") from e

    async def read(self) -> Any:  # noqa: ANN401
        async with self._lock:
            return await asyncio.to_thread(self._read)

    async def write(self, data: Any) -> None:  # noqa: ANN401
        async with self._lock:
            await asyncio.to_thread(self._write, data)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Any]:
        """
        Load the document, yield it for in-place mutation, then write it back.

        Nothing is written if the block raises.
        """
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            yield data
            await asyncio.to_thread(self._write, data)


class JSONOTPStore:
    """
    One-time code storage in a JSON file holding an array of entries.

    Example:
        ```python
        otp_store = JSONOTPStore("data/2fa.json")

        def get_otp_store() -> JSONOTPStore:
            return otp_store
        ```
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.file = JSONFile(path, default=list)

    @staticmethod
    def _serialize(entry: OtpEntry) -> dict[str, Any]:
        return entry.model_dump(mode="json", by_alias=True)

    @staticmethod
    def _deserialize(doc: dict[str, Any]) -> OtpEntry | None:
        try:
            return OtpEntry.model_validate(doc)
        except PydanticValidationError:
            logger.warning("Skipping malformed one-time code entry")
            return None

    async def get_entry(self, user_id: str) -> OtpEntry | None:
        for doc in await self.file.read():
            if doc.get("userId") == user_id:
                return self._deserialize(doc)
        return None

    async def put_entry(self, entry: OtpEntry) -> None:
        async with self.file.transaction() as docs:
            docs[:] = [doc for doc in docs if doc.get("userId") != entry.user_id]
            docs.append(self._serialize(entry))

    async def set_status(
        self,
        user_id: str,
        status: OtpStatus,
        expected: OtpStatus = OtpStatus.ACTIVE,
    ) -> bool:
        async with self.file.transaction() as docs:
            for index, doc in enumerate(docs):
                if doc.get("userId") != user_id:
                    continue
                entry = self._deserialize(doc)
                if entry is None or entry.status is not expected:
                    return False
                docs[index] = self._serialize(entry.model_copy(update={"status": status}))
                return True
        return False

    async def expire_stale(self, now: datetime) -> int:
        changed = 0
        async with self.file.transaction() as docs:
            for index, doc in enumerate(docs):
                entry = self._deserialize(doc)
                if entry is None or entry.status is not OtpStatus.ACTIVE:
                    continue
                if entry.expires_at <= now:
                    docs[index] = self._serialize(
                        entry.model_copy(update={"status": OtpStatus.EXPIRED})
                    )
                    changed += 1
        return changed


class JSONUserStore:
    """
    User lookups against a collection in a schema-keyed JSON document.

    The document maps collection names to arrays of records, for example
    ``{"users": [...], "vendors": [...]}``. Other collections and unknown
    user fields are preserved on write.
    """

    def __init__(
        self, path: str | os.PathLike[str], collection: str = "users"
    ) -> None:
        self.file = JSONFile(path, default=dict)
        self.collection = collection

    async def _records(self) -> list[dict[str, Any]]:
        data = await self.file.read()
        return list(data.get(self.collection) or [])

    async def get_by_id(self, user_id: str) -> UserRecord | None:
        for record in await self._records():
            if str(record.get("id")) == user_id:
                return UserRecord.model_validate(record)
        return None

    async def get_by_username(self, username: str) -> UserRecord | None:
        wanted = username.strip().lower()
        for record in await self._records():
            email = record.get("email")
            name = record.get("username")
            if (isinstance(email, str) and email.lower() == wanted) or (
                isinstance(name, str) and name.lower() == wanted
            ):
                return UserRecord.model_validate(record)
        return None

    async def update_password(
        self, user_id: str, password: str, hash_type: HashType
    ) -> None:
        async with self.file.transaction() as data:
            for record in data.get(self.collection) or []:
                if str(record.get("id")) == user_id:
                    record["password"] = password
                    record["hashType"] = hash_type.value
                    record["updatedAt"] = datetime.now(UTC).isoformat()
                    return
            raise StorageError(f"update of user {user_id}")

"""Per-key asyncio locking."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class KeyedLock:
    """
    A family of asyncio locks addressed by key.

    Holders of the same key run one at a time; different keys never block
    each other. A key's lock is discarded once nobody holds or awaits it.

    Example:
        ```python
        locks = KeyedLock()

        async with locks.hold(user_id):
            entry = await store.get_entry(user_id)
            ...
        ```
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)

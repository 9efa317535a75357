"""Tests for per-key locking."""

import asyncio

import pytest

from fastapi_credential_auth.locks import KeyedLock


class TestKeyedLock:
    """Test suite for KeyedLock."""

    @pytest.mark.asyncio
    async def test_same_key_serialised(self) -> None:
        """Holders of one key should never overlap."""
        locks = KeyedLock()
        events: list[str] = []

        async def worker(name: str) -> None:
            async with locks.hold("u1"):
                events.append(f"{name}:start")
                await asyncio.sleep(0.01)
                events.append(f"{name}:end")

        await asyncio.gather(worker("a"), worker("b"))

        assert events in (
            ["a:start", "a:end", "b:start", "b:end"],
            ["b:start", "b:end", "a:start", "a:end"],
        )

    @pytest.mark.asyncio
    async def test_different_keys_independent(self) -> None:
        """Holding one key should not block another."""
        locks = KeyedLock()
        entered = asyncio.Event()

        async with locks.hold("u1"):

            async def other() -> None:
                async with locks.hold("u2"):
                    entered.set()

            await asyncio.wait_for(other(), timeout=1)

        assert entered.is_set()

    @pytest.mark.asyncio
    async def test_locks_released(self) -> None:
        """Should drop a key's lock once nobody holds it."""
        locks = KeyedLock()

        async with locks.hold("u1"):
            assert len(locks) == 1

        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_released_after_error(self) -> None:
        """Should release the lock when the block raises."""
        locks = KeyedLock()

        with pytest.raises(RuntimeError):
            async with locks.hold("u1"):
                raise RuntimeError("boom")

        assert len(locks) == 0
        async with locks.hold("u1"):
            pass

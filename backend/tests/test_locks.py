"""Tests for KeyedLock."""
import asyncio

import pytest

from chatmedia.media.locks import KeyedLock


@pytest.mark.asyncio
async def test_same_key_is_serialized():
    locks = KeyedLock()
    events = []

    async def worker(name: str):
        async with locks.hold("user-1"):
            events.append(f"{name}-in")
            await asyncio.sleep(0.01)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert events in (
        ["a-in", "a-out", "b-in", "b-out"],
        ["b-in", "b-out", "a-in", "a-out"],
    )


@pytest.mark.asyncio
async def test_different_keys_do_not_block():
    locks = KeyedLock()
    entered = asyncio.Event()

    async def holder():
        async with locks.hold("user-1"):
            await asyncio.wait_for(entered.wait(), timeout=1)

    async def other():
        async with locks.hold("user-2"):
            entered.set()

    await asyncio.gather(holder(), other())


@pytest.mark.asyncio
async def test_entries_are_dropped_when_released():
    locks = KeyedLock()
    async with locks.hold("user-1"):
        assert locks.locked("user-1")
        assert len(locks) == 1
    assert not locks.locked("user-1")
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_entry_released_on_exception():
    locks = KeyedLock()
    with pytest.raises(RuntimeError):
        async with locks.hold("user-1"):
            raise RuntimeError("boom")
    assert len(locks) == 0

"""
Tests for UserLocks.
"""

import asyncio

import pytest

from flickpick.utils.user_locks import UserLocks


class TestUserLocks:

    @pytest.mark.asyncio
    async def test_same_key_is_serialized(self):
        locks = UserLocks()
        order = []

        async def worker(name):
            async with locks.hold("u1"):
                order.append(f"{name}-start")
                await asyncio.sleep(0)
                order.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))

        assert order == ["a-start", "a-end", "b-start", "b-end"]

    @pytest.mark.asyncio
    async def test_different_keys_do_not_block(self):
        locks = UserLocks()
        release = asyncio.Event()

        async def hold_first():
            async with locks.hold("u1"):
                await release.wait()

        holder = asyncio.ensure_future(hold_first())
        await asyncio.sleep(0)

        async with locks.hold("u2"):
            assert locks.is_held("u1")

        release.set()
        await holder

    @pytest.mark.asyncio
    async def test_lock_dropped_when_idle(self):
        locks = UserLocks()

        async with locks.hold("u1"):
            assert len(locks) == 1

        assert len(locks) == 0
        assert not locks.is_held("u1")

    @pytest.mark.asyncio
    async def test_lock_kept_while_waiters_remain(self):
        locks = UserLocks()
        entered = []

        async def waiter():
            async with locks.hold("u1"):
                entered.append(True)

        async with locks.hold("u1"):
            pending = asyncio.ensure_future(waiter())
            await asyncio.sleep(0)
            assert entered == []

        assert locks.is_held("u1")
        await pending
        assert entered == [True]
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_lock_released_on_error(self):
        locks = UserLocks()

        with pytest.raises(RuntimeError):
            async with locks.hold("u1"):
                raise RuntimeError("boom")

        assert len(locks) == 0

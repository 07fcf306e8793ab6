"""Unit tests for AccountLockManager."""

import asyncio

import pytest

from src.cl_common.errors import AccountNotFoundError, LedgerBusyError
from src.cl_common.locks import AccountLockManager


class TestHold:
    async def test_locks_held_inside_block_only(self) -> None:
        locks = AccountLockManager()
        async with locks.hold([3, 1]):
            assert locks.is_locked(1)
            assert locks.is_locked(3)
            assert not locks.is_locked(2)
        assert not locks.is_locked(1)
        assert not locks.is_locked(3)

    async def test_duplicate_ids_acquired_once(self) -> None:
        locks = AccountLockManager()
        async with locks.hold([4, 4]):
            assert locks.is_locked(4)
        assert not locks.is_locked(4)

    async def test_released_on_error(self) -> None:
        locks = AccountLockManager()
        with pytest.raises(RuntimeError):
            async with locks.hold([1]):
                raise RuntimeError("boom")
        assert not locks.is_locked(1)

    async def test_second_holder_waits_for_first(self) -> None:
        locks = AccountLockManager(timeout_seconds=1.0)
        order: list[str] = []

        async def first() -> None:
            async with locks.hold([1]):
                order.append("first-in")
                await asyncio.sleep(0.05)
                order.append("first-out")

        async def second() -> None:
            await asyncio.sleep(0.01)
            async with locks.hold([1]):
                order.append("second-in")

        await asyncio.gather(first(), second())
        assert order == ["first-in", "first-out", "second-in"]


class TestBusy:
    async def test_timeout_raises_ledger_busy(self) -> None:
        locks = AccountLockManager(timeout_seconds=0.01, retries=2)
        async with locks.hold([7]):
            with pytest.raises(LedgerBusyError) as exc_info:
                async with locks.hold([7]):
                    pass
        assert exc_info.value.account_id == 7
        assert not locks.is_locked(7)

    async def test_partial_acquisition_is_released(self) -> None:
        locks = AccountLockManager(timeout_seconds=0.01, retries=1)
        async with locks.hold([2]):
            with pytest.raises(LedgerBusyError):
                async with locks.hold([1, 2]):
                    pass
            assert not locks.is_locked(1)


class TestEviction:
    async def test_lock_dropped_after_release(self) -> None:
        locks = AccountLockManager()
        async with locks.hold([1, 2]):
            assert locks.tracked_count() == 2
        assert locks.tracked_count() == 0

    async def test_lock_kept_while_waiter_pending(self) -> None:
        locks = AccountLockManager(timeout_seconds=1.0)
        entered = asyncio.Event()

        async def waiter() -> None:
            async with locks.hold([1]):
                entered.set()

        async with locks.hold([1]):
            task = asyncio.create_task(waiter())
            await asyncio.sleep(0.01)
            assert locks.tracked_count() == 1
        await task
        assert entered.is_set()
        assert locks.tracked_count() == 0

    async def test_busy_failure_leaves_no_lock_behind(self) -> None:
        locks = AccountLockManager(timeout_seconds=0.01, retries=1)
        async with locks.hold([3]):
            with pytest.raises(LedgerBusyError):
                async with locks.hold([2, 3]):
                    pass
            assert locks.tracked_count() == 1
        assert locks.tracked_count() == 0

    async def test_unknown_account_does_not_leak_lock(self, ledger) -> None:
        with pytest.raises(AccountNotFoundError):
            await ledger.engine.debit(404, 1, "usage", "gen")
        assert ledger.engine.locks.tracked_count() == 0

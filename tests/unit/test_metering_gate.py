"""Unit tests for MeteringGate: charge-after-success semantics."""

import asyncio

import pytest

from src.cl_common.enums import LedgerEntryKind
from src.cl_common.errors import (
    InsufficientCreditsError,
    InvalidAmountError,
    InvalidOperationError,
)


class TestMeter:
    async def test_success_debits_once_after_operation(self, ledger) -> None:
        calls = []

        async def generate() -> str:
            calls.append(await ledger.store.get_balance(2))
            return "draft"

        outcome = await ledger.gate.meter(2, 3, "usage", "generation: proposal 7", generate)

        assert outcome.result == "draft"
        assert outcome.balance == 9
        assert outcome.entry.amount == -3
        assert outcome.entry.kind == LedgerEntryKind.USAGE.value
        # operation saw the balance before the charge
        assert calls == [12]
        assert len(await ledger.store.list_entries(2)) == 1

    async def test_insufficient_credits_never_runs_operation(self, ledger) -> None:
        await ledger.engine.debit(2, 12, "usage", "drain")
        invoked = False

        async def generate() -> str:
            nonlocal invoked
            invoked = True
            return "draft"

        with pytest.raises(InsufficientCreditsError) as exc_info:
            await ledger.gate.meter(2, 1, "usage", "gen", generate)

        assert exc_info.value.http_status == 402
        assert exc_info.value.available == 0
        assert invoked is False
        assert len(await ledger.store.list_entries(2)) == 1

    async def test_failed_operation_is_not_charged(self, ledger) -> None:
        async def generate() -> str:
            raise RuntimeError("model unavailable")

        with pytest.raises(RuntimeError, match="model unavailable"):
            await ledger.gate.meter(2, 1, "usage", "gen", generate)

        assert await ledger.store.get_balance(2) == 12
        assert await ledger.store.list_entries(2) == []

    async def test_cancelled_operation_is_not_charged(self, ledger) -> None:
        started = asyncio.Event()

        async def generate() -> str:
            started.set()
            await asyncio.sleep(10)
            return "never"

        task = asyncio.create_task(ledger.gate.meter(2, 1, "usage", "gen", generate))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert await ledger.store.get_balance(2) == 12
        assert await ledger.store.list_entries(2) == []

    async def test_operation_runs_without_account_lock(self, ledger) -> None:
        held = []

        async def generate() -> str:
            held.append(ledger.engine.locks.is_locked(2))
            # another ledger operation on the same account can proceed meanwhile
            await ledger.engine.credit(2, 5, "purchase", "top-up")
            return "draft"

        outcome = await ledger.gate.meter(2, 1, "usage", "gen", generate)

        assert held == [False]
        assert outcome.balance == 16

    async def test_concurrent_drain_during_operation_raises_402(self, ledger) -> None:
        async def generate() -> str:
            await ledger.engine.debit(2, 12, "usage", "concurrent job")
            return "draft"

        with pytest.raises(InsufficientCreditsError):
            await ledger.gate.meter(2, 1, "usage", "gen", generate)

        assert await ledger.store.get_balance(2) == 0
        assert len(await ledger.store.list_entries(2)) == 1

    async def test_unknown_kind_rejected_before_operation(self, ledger) -> None:
        invoked = False

        async def generate() -> str:
            nonlocal invoked
            invoked = True
            return "draft"

        with pytest.raises(InvalidOperationError):
            await ledger.gate.meter(2, 1, "bogus", "gen", generate)

        assert invoked is False
        assert await ledger.store.get_balance(2) == 12
        assert await ledger.store.list_entries(2) == []

    @pytest.mark.parametrize("cost", [0, -1])
    async def test_non_positive_cost_rejected(self, ledger, cost: int) -> None:
        async def generate() -> str:
            return "draft"

        with pytest.raises(InvalidAmountError):
            await ledger.gate.meter(2, cost, "usage", "gen", generate)


class TestChargeGeneration:
    async def test_balance_one_allows_exactly_one_generation(self, ledger) -> None:
        await ledger.engine.debit(2, 11, "usage", "drain")

        async def generate() -> str:
            return "proposal body"

        first = await ledger.gate.charge_generation(2, 42, generate)
        assert first.balance == 0
        assert first.entry.description == "generation: proposal 42"

        with pytest.raises(InsufficientCreditsError):
            await ledger.gate.charge_generation(2, 43, generate)
        assert await ledger.store.get_balance(2) == 0

    async def test_check_reports_balance(self, ledger) -> None:
        assert await ledger.gate.check(3, 10) == 50
        with pytest.raises(InsufficientCreditsError):
            await ledger.gate.check(3, 51)

"""MeteringGate: charge for a unit of work only after it succeeds.

Only the sufficiency pre-check and the final debit are serialized on the
account lock; the operation itself runs unlocked so slow generation work
never blocks other ledger activity on the same account.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from src.cl_common.enums import LedgerEntryKind
from src.cl_common.errors import InsufficientBalanceError, InsufficientCreditsError
from src.cl_ledger.application.transfer_engine import (
    TransferEngine,
    validate_kind,
    validate_positive_amount,
)
from src.cl_ledger.domain.models import MeterResult
from src.cl_ledger.domain.repository import LedgerStoreProtocol

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MeteringGate:
    def __init__(
        self,
        engine: TransferEngine,
        store: LedgerStoreProtocol,
        generation_cost: int = 1,
    ) -> None:
        self._engine = engine
        self._store = store
        self._generation_cost = generation_cost

    async def check(self, account_id: int, cost: int) -> int:
        """Admission check under the account lock; returns the balance seen."""
        async with self._engine.locks.hold([account_id]):
            balance = await self._store.get_balance(account_id)
        if balance < cost:
            raise InsufficientCreditsError(account_id, cost, balance)
        return balance

    async def meter(
        self,
        account_id: int,
        cost: int,
        kind: str,
        description: str,
        operation: Callable[[], Awaitable[T]],
    ) -> MeterResult[T]:
        validate_positive_amount(cost)
        kind = validate_kind(kind)
        await self.check(account_id, cost)

        # Failure or cancellation propagates as-is: nothing has been debited
        result = await operation()

        try:
            account, entry = await self._engine.debit(account_id, cost, kind, description)
        except InsufficientBalanceError as exc:
            # A concurrent debit drained the account while the operation ran
            logger.warning(
                "Metered operation on account %s completed but balance %d no longer covers %d",
                account_id,
                exc.available,
                cost,
            )
            raise InsufficientCreditsError(account_id, cost, exc.available) from exc
        return MeterResult(result=result, balance=account.balance, entry=entry)

    async def charge_generation(
        self,
        account_id: int,
        proposal_id: int | str,
        generate: Callable[[], Awaitable[T]],
    ) -> MeterResult[T]:
        return await self.meter(
            account_id,
            self._generation_cost,
            LedgerEntryKind.USAGE.value,
            f"generation: proposal {proposal_id}",
            generate,
        )

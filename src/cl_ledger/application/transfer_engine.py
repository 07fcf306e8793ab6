"""TransferEngine: validated, atomic credit/debit/transfer over the ledger store.

Every operation follows the same shape:
  1. validate arguments (nothing touched yet)
  2. take the per-account lock(s), ascending account id
  3. commit all balance writes + entry appends as one store unit
  4. evaluate low-balance alerts for each touched account, still locked
  5. release the locks, then hand the resulting notifications to the sink
"""

import logging

from src.cl_alerts.application.alert_engine import ThresholdAlertEngine
from src.cl_common.enums import LedgerEntryKind
from src.cl_common.errors import InvalidAmountError, InvalidOperationError
from src.cl_common.locks import AccountLockManager
from src.cl_ledger.domain.models import (
    Account,
    BalanceMutation,
    CommitResult,
    LedgerEntry,
    TransferResult,
)
from src.cl_ledger.domain.repository import LedgerStoreProtocol
from src.cl_notification.domain.models import PendingNotification
from src.cl_notification.domain.repository import NotificationSinkProtocol

logger = logging.getLogger(__name__)


def validate_kind(kind: str) -> str:
    try:
        return LedgerEntryKind(kind).value
    except ValueError:
        raise InvalidOperationError(f"unknown ledger entry kind {kind!r}") from None


def validate_positive_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(amount, "amount must be an integer")  # type: ignore[arg-type]
    if amount <= 0:
        raise InvalidAmountError(amount)


class TransferEngine:
    def __init__(
        self,
        store: LedgerStoreProtocol,
        locks: AccountLockManager,
        alerts: ThresholdAlertEngine,
        sink: NotificationSinkProtocol | None = None,
    ) -> None:
        self._store = store
        self._locks = locks
        self._alerts = alerts
        self._sink = sink

    @property
    def locks(self) -> AccountLockManager:
        return self._locks

    async def credit(
        self, account_id: int, amount: int, kind: str, description: str
    ) -> tuple[Account, LedgerEntry]:
        validate_positive_amount(amount)
        kind = validate_kind(kind)
        result = await self._commit(
            [account_id], [BalanceMutation(account_id, amount, kind, description)]
        )
        return result.accounts[account_id], result.entries[0]

    async def debit(
        self, account_id: int, amount: int, kind: str, description: str
    ) -> tuple[Account, LedgerEntry]:
        """Raises InsufficientBalanceError when the balance at commit time cannot cover it."""
        validate_positive_amount(amount)
        kind = validate_kind(kind)
        result = await self._commit(
            [account_id], [BalanceMutation(account_id, -amount, kind, description)]
        )
        return result.accounts[account_id], result.entries[0]

    async def transfer(
        self,
        source_id: int,
        dest_id: int,
        amount: int,
        kind: str,
        description: str,
    ) -> TransferResult:
        """Signed reallocation between two accounts.

        amount > 0 moves credits source -> dest. amount < 0 is a reversal: the
        destination gives |amount| back to the source. The side losing credits
        is always the first mutation of the unit, and a shortfall there fails
        the whole unit before the other side is touched.
        """
        if source_id == dest_id:
            raise InvalidOperationError("source and destination accounts must differ")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount == 0:
            raise InvalidAmountError(amount, "transfer amount must be a non-zero integer")  # type: ignore[arg-type]
        kind = validate_kind(kind)

        if amount > 0:
            mutations = [
                BalanceMutation(source_id, -amount, kind, f"{description} (to account {dest_id})"),
                BalanceMutation(dest_id, amount, kind, f"{description} (from account {source_id})"),
            ]
        else:
            refund_kind = (
                LedgerEntryKind.ALLOCATION_REFUND.value
                if kind == LedgerEntryKind.ALLOCATION.value
                else kind
            )
            magnitude = -amount
            mutations = [
                BalanceMutation(
                    dest_id,
                    -magnitude,
                    refund_kind,
                    f"{description} (returned to account {source_id})",
                ),
                BalanceMutation(
                    source_id,
                    magnitude,
                    refund_kind,
                    f"{description} (returned from account {dest_id})",
                ),
            ]

        result = await self._commit([source_id, dest_id], mutations)
        return TransferResult(
            source_account_id=source_id,
            source_balance=result.accounts[source_id].balance,
            dest_account_id=dest_id,
            dest_balance=result.accounts[dest_id].balance,
            amount=amount,
            entries=result.entries,
        )

    async def _commit(
        self, account_ids: list[int], mutations: list[BalanceMutation]
    ) -> CommitResult:
        pending: list[PendingNotification] = []
        async with self._locks.hold(account_ids):
            result = await self._store.commit(mutations)
            for account_id in sorted(result.accounts):
                account = result.accounts[account_id]
                try:
                    pending.extend(
                        await self._alerts.on_balance_changed(
                            account_id, account.balance, account.display_name
                        )
                    )
                except Exception:
                    # The mutation is already committed; alerting is best-effort
                    logger.exception("Alert evaluation failed for account %s", account_id)
        logger.debug(
            "Committed %d ledger entries for accounts %s",
            len(result.entries),
            sorted(result.accounts),
        )
        if pending and self._sink is not None:
            try:
                await self._sink.dispatch(pending)
            except Exception:
                logger.exception("Notification dispatch failed after ledger commit")
        return result

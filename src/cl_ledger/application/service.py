"""CreditLedgerService: thin composition layer for the HTTP handlers.

Combines the transfer engine, the store's read-only scans and the payment
registry with schema transformations. Read paths never take account locks:
they see a consistent snapshot, not necessarily one linearized with writes
still in flight.
"""

import logging
from datetime import datetime

from src.cl_common.datetime_utils import ensure_utc, utc_now
from src.cl_common.enums import LedgerEntryKind, NotificationCategory
from src.cl_common.errors import AccountNotFoundError, DuplicatePaymentError
from src.cl_ledger.application.schemas import (
    AllocateResponse,
    BalanceResponse,
    LedgerEntryItem,
    LedgerResponse,
    PurchaseResponse,
    UsageSummaryResponse,
    cursor_decode,
    cursor_encode,
)
from src.cl_ledger.application.transfer_engine import TransferEngine
from src.cl_ledger.domain.models import Account, UsageSummary
from src.cl_ledger.domain.repository import LedgerStoreProtocol
from src.cl_ledger.infrastructure.payment_registry import PaymentRegistryProtocol
from src.cl_notification.domain.models import PendingNotification
from src.cl_notification.domain.repository import NotificationSinkProtocol

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("cl.audit")


class CreditLedgerService:
    def __init__(
        self,
        store: LedgerStoreProtocol,
        engine: TransferEngine,
        payments: PaymentRegistryProtocol,
        sink: NotificationSinkProtocol | None = None,
    ) -> None:
        self._store = store
        self._engine = engine
        self._payments = payments
        self._sink = sink

    async def _require_account(self, account_id: int) -> Account:
        account = await self._store.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    async def get_balance(self, account_id: int) -> BalanceResponse:
        balance = await self._store.get_balance(account_id)
        return BalanceResponse(account_id=account_id, balance=balance)

    async def list_ledger(
        self,
        account_id: int,
        cursor: str | None,
        limit: int,
        kind: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> LedgerResponse:
        await self._require_account(account_id)
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._store.list_entries(
            account_id,
            kind=kind,
            since=ensure_utc(since),
            until=ensure_utc(until),
            cursor_id=cursor_id,
            limit=limit + 1,
        )
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(
            items=[LedgerEntryItem.from_entry(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def summarize_usage(
        self,
        account_id: int,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> UsageSummary:
        entries = await self._store.list_entries(
            account_id, since=ensure_utc(since), until=ensure_utc(until)
        )
        summary = UsageSummary(account_id, used=0, purchased=0, allocated_in=0, allocated_out=0)
        for e in entries:
            if e.kind == LedgerEntryKind.USAGE.value:
                summary.used -= e.amount
            elif e.kind == LedgerEntryKind.PURCHASE.value:
                summary.purchased += e.amount
            elif e.amount > 0:
                summary.allocated_in += e.amount
            else:
                summary.allocated_out -= e.amount
        return summary

    async def usage_summary(
        self,
        account_id: int,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> UsageSummaryResponse:
        account = await self._require_account(account_id)
        summary = await self.summarize_usage(account_id, since, until)
        return UsageSummaryResponse(
            account_id=account_id,
            balance=account.balance,
            used=summary.used,
            purchased=summary.purchased,
            allocated_in=summary.allocated_in,
            allocated_out=summary.allocated_out,
            since=since,
            until=until,
        )

    async def purchase(
        self,
        account_id: int,
        payment_reference: str,
        amount: int,
        plan: str | None = None,
    ) -> PurchaseResponse:
        """Credit a confirmed payment exactly once per provider reference."""
        if not await self._payments.claim(payment_reference):
            raise DuplicatePaymentError(payment_reference)
        description = f"payment {payment_reference}" + (f" ({plan} plan)" if plan else "")
        claimed_at = utc_now()
        credited = False
        try:
            account, entry = await self._engine.credit(
                account_id, amount, LedgerEntryKind.PURCHASE.value, description
            )
            credited = True
        finally:
            # Covers cancellation too; the claim is kept once the entry has landed
            if not credited and not await self._purchase_recorded(
                account_id, description, claimed_at
            ):
                await self._payments.release(payment_reference)
                logger.info("Released payment claim %s after failed credit", payment_reference)
        logger.info(
            "Purchase credited: account=%s amount=%d ref=%s", account_id, amount, payment_reference
        )
        await self._notify(
            PendingNotification(
                user_id=account_id,
                title="Credits added",
                body=f"{amount} credits were added to your account. New balance: {account.balance}.",
                category=NotificationCategory.CREDIT_PURCHASE.value,
                link="/billing",
            )
        )
        return PurchaseResponse(balance=account.balance, purchased=amount, ledger_entry_id=entry.id)

    async def allocate(
        self,
        admin_id: int,
        target_id: int,
        amount: int,
        description: str = "Admin allocation",
    ) -> AllocateResponse:
        admin = await self._require_account(admin_id)
        target = await self._require_account(target_id)
        result = await self._engine.transfer(
            admin_id, target_id, amount, LedgerEntryKind.ALLOCATION.value, description
        )
        audit_logger.info(
            "%s | allocation | admin=%s (%s) target=%s (%s) amount=%+d "
            "admin_balance=%d target_balance=%d",
            utc_now().isoformat(),
            admin_id,
            admin.display_name,
            target_id,
            target.display_name,
            amount,
            result.source_balance,
            result.dest_balance,
        )
        verb = "allocated to" if amount > 0 else "withdrawn from"
        await self._notify(
            PendingNotification(
                user_id=target_id,
                title="Credit balance updated",
                body=(
                    f"{abs(amount)} credits were {verb} your account by "
                    f"{admin.display_name or 'an administrator'}. "
                    f"New balance: {result.dest_balance}."
                ),
                category=NotificationCategory.CREDIT_ALLOCATION.value,
                link="/billing",
            )
        )
        return AllocateResponse.from_transfer(result)

    async def _purchase_recorded(
        self, account_id: int, description: str, since: datetime
    ) -> bool:
        entries = await self._store.list_entries(
            account_id, kind=LedgerEntryKind.PURCHASE.value, since=since
        )
        return any(e.description == description for e in entries)

    async def _notify(self, pending: PendingNotification) -> None:
        if self._sink is None:
            return
        try:
            await self._sink.dispatch([pending])
        except Exception:
            logger.exception("Failed to notify user %s", pending.user_id)

"""ThresholdAlertEngine: decides low-balance notifications per account.

`on_balance_changed` must be called inside the same per-account critical
section as the balance mutation that triggered it: the read-compare-write of
the alert state is part of that section. The state write is a compare-and-set
against the value read here, which keeps a band transition single-shot across
processes that do not share the in-process locks. It only returns the
notifications to send; the caller dispatches them once the locks are released.
"""

import logging
from collections.abc import Sequence

from src.cl_alerts.domain.thresholds import AlertDecision, decide, validate_thresholds
from src.cl_common.enums import NotificationCategory
from src.cl_ledger.domain.models import AlertState
from src.cl_ledger.domain.repository import LedgerStoreProtocol
from src.cl_notification.domain.models import PendingNotification

logger = logging.getLogger(__name__)

_HOLDER_LINK = "/billing"
_ADMIN_LINK = "/admin/credits"


class ThresholdAlertEngine:
    def __init__(self, store: LedgerStoreProtocol, thresholds: Sequence[int]) -> None:
        self._store = store
        self._thresholds = validate_thresholds(thresholds)

    @property
    def thresholds(self) -> tuple[int, ...]:
        return self._thresholds

    async def on_balance_changed(
        self, account_id: int, new_balance: int, display_name: str = ""
    ) -> list[PendingNotification]:
        if new_balance < 0:
            logger.warning(
                "Negative balance %d observed on account %s; alert skipped",
                new_balance,
                account_id,
            )
            return []

        state = await self._store.get_alert_state(account_id)
        transition = decide(new_balance, state.last_alerted_threshold, self._thresholds)

        if transition.decision is AlertDecision.RESET:
            if await self._store.compare_and_set_alert_state(
                AlertState(account_id, None), state.last_alerted_threshold
            ):
                logger.info(
                    "Alert state cleared for account %s (balance %d)", account_id, new_balance
                )
            return []
        if transition.decision is AlertDecision.NONE:
            return []

        if not await self._store.compare_and_set_alert_state(
            AlertState(account_id, transition.next_state), state.last_alerted_threshold
        ):
            logger.info(
                "Alert state for account %s changed concurrently; threshold %s not re-sent",
                account_id,
                transition.target,
            )
            return []
        admins = await self._store.list_administrators()
        pending = self._build_messages(
            account_id, new_balance, display_name or f"Account {account_id}", admins
        )
        logger.info(
            "Low-balance alert for account %s: balance %d, threshold %s, %d recipients",
            account_id,
            new_balance,
            transition.target,
            len(pending),
        )
        return pending

    def _build_messages(
        self, account_id: int, balance: int, display_name: str, admins: list[int]
    ) -> list[PendingNotification]:
        category = NotificationCategory.CREDIT_ALERT.value
        messages = [
            PendingNotification(
                user_id=account_id,
                title="Low credit balance",
                body=(
                    f"Your credit balance is down to {balance} "
                    f"credit{'' if balance == 1 else 's'}. Contact your administrator "
                    "or purchase more credits to keep generating content."
                ),
                category=category,
                link=_HOLDER_LINK,
            )
        ]
        for admin_id in admins:
            if admin_id == account_id:
                continue
            messages.append(
                PendingNotification(
                    user_id=admin_id,
                    title=f"Low credit balance: {display_name}",
                    body=f"{display_name} has {balance} credits remaining.",
                    category=category,
                    link=_ADMIN_LINK,
                )
            )
        return messages

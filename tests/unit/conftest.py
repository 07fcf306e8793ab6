"""Unit fixtures: a fully wired ledger on the in-memory stores."""

from dataclasses import dataclass

import pytest

from src.cl_alerts.application.alert_engine import ThresholdAlertEngine
from src.cl_common.enums import AccountRole
from src.cl_common.locks import AccountLockManager
from src.cl_ledger.application.metering import MeteringGate
from src.cl_ledger.application.service import CreditLedgerService
from src.cl_ledger.application.transfer_engine import TransferEngine
from src.cl_ledger.infrastructure.memory_store import MemoryLedgerStore
from src.cl_ledger.infrastructure.payment_registry import MemoryPaymentRegistry
from src.cl_notification.application.service import NotificationService
from src.cl_notification.infrastructure.memory_store import MemoryNotificationRepository

ADMIN_ID = 1
USER_ID = 2
OTHER_USER_ID = 3


@dataclass
class Ledger:
    store: MemoryLedgerStore
    inbox: MemoryNotificationRepository
    notifications: NotificationService
    alerts: ThresholdAlertEngine
    engine: TransferEngine
    gate: MeteringGate
    service: CreditLedgerService
    payments: MemoryPaymentRegistry


def build_ledger(thresholds: list[int] | None = None) -> Ledger:
    store = MemoryLedgerStore()
    inbox = MemoryNotificationRepository()
    notifications = NotificationService(inbox)
    alerts = ThresholdAlertEngine(store, thresholds or [1, 5, 10])
    engine = TransferEngine(store, AccountLockManager(timeout_seconds=0.5), alerts, notifications)
    payments = MemoryPaymentRegistry()
    return Ledger(
        store=store,
        inbox=inbox,
        notifications=notifications,
        alerts=alerts,
        engine=engine,
        gate=MeteringGate(engine, store, generation_cost=1),
        service=CreditLedgerService(store, engine, payments, notifications),
        payments=payments,
    )


@pytest.fixture
async def ledger() -> Ledger:
    """Admin (1) with 1000 credits, user (2) with 12, user (3) with 50."""
    lg = build_ledger()
    await lg.store.create_account(ADMIN_ID, AccountRole.ADMIN.value, "Admin User", 1000)
    await lg.store.create_account(USER_ID, AccountRole.CUSTOMER.value, "John Smith", 12)
    await lg.store.create_account(OTHER_USER_ID, AccountRole.COLLABORATOR.value, "Sarah Johnson", 50)
    return lg


@pytest.fixture
def make_ledger():
    """Factory for a bare ledger (no accounts) with custom thresholds."""
    return build_ledger

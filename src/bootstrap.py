"""Service wiring: one object graph per process.

The backend is chosen by settings.LEDGER_BACKEND:
  - "postgres": PostgreSQL stores + Redis payment registry (production)
  - "memory":   in-process stores (local dev, tests)
"""

import logging
from dataclasses import dataclass

from fastapi import Request

from config.settings import Settings, settings
from src.cl_alerts.application.alert_engine import ThresholdAlertEngine
from src.cl_common.enums import AccountRole
from src.cl_common.locks import AccountLockManager
from src.cl_ledger.application.metering import MeteringGate
from src.cl_ledger.application.service import CreditLedgerService
from src.cl_ledger.application.transfer_engine import TransferEngine
from src.cl_ledger.domain.repository import LedgerStoreProtocol
from src.cl_ledger.infrastructure.memory_store import MemoryLedgerStore
from src.cl_ledger.infrastructure.payment_registry import (
    MemoryPaymentRegistry,
    PaymentRegistryProtocol,
    RedisPaymentRegistry,
)
from src.cl_notification.application.service import NotificationService
from src.cl_notification.domain.repository import NotificationRepositoryProtocol
from src.cl_notification.infrastructure.memory_store import MemoryNotificationRepository

logger = logging.getLogger(__name__)

# Demo identities, matching the seed users of the surrounding application
_DEMO_ACCOUNTS: list[tuple[int, AccountRole, str, int]] = [
    (1, AccountRole.ADMIN, "Admin User", 10000),
    (2, AccountRole.CUSTOMER, "John Smith", 247),
    (3, AccountRole.COLLABORATOR, "Sarah Johnson", 89),
]


@dataclass
class Services:
    store: LedgerStoreProtocol
    notifications: NotificationService
    alerts: ThresholdAlertEngine
    engine: TransferEngine
    gate: MeteringGate
    ledger: CreditLedgerService


def build_services(cfg: Settings = settings) -> Services:
    store: LedgerStoreProtocol
    inbox: NotificationRepositoryProtocol
    payments: PaymentRegistryProtocol
    if cfg.LEDGER_BACKEND == "memory":
        store = MemoryLedgerStore()
        inbox = MemoryNotificationRepository()
        payments = MemoryPaymentRegistry()
    else:
        from src.cl_common.database import async_session_factory
        from src.cl_ledger.infrastructure.persistence import PostgresLedgerStore
        from src.cl_notification.infrastructure.persistence import (
            PostgresNotificationRepository,
        )

        store = PostgresLedgerStore(async_session_factory)
        inbox = PostgresNotificationRepository(async_session_factory)
        payments = RedisPaymentRegistry(cfg.PAYMENT_REFERENCE_TTL_SECONDS)

    notifications = NotificationService(inbox)
    alerts = ThresholdAlertEngine(store, cfg.CREDIT_ALERT_THRESHOLDS)
    locks = AccountLockManager(cfg.LOCK_TIMEOUT_SECONDS, cfg.LOCK_RETRIES)
    engine = TransferEngine(store, locks, alerts, sink=notifications)
    gate = MeteringGate(engine, store, generation_cost=cfg.GENERATION_COST)
    ledger = CreditLedgerService(store, engine, payments, sink=notifications)
    logger.info("Credit ledger wired with %s backend", cfg.LEDGER_BACKEND)
    return Services(
        store=store,
        notifications=notifications,
        alerts=alerts,
        engine=engine,
        gate=gate,
        ledger=ledger,
    )


async def seed_demo_accounts(store: LedgerStoreProtocol) -> int:
    created = 0
    for account_id, role, name, balance in _DEMO_ACCOUNTS:
        if await store.get_account(account_id) is None:
            await store.create_account(account_id, role.value, name, balance)
            created += 1
    return created


def get_services(request: Request) -> Services:
    """FastAPI dependency: the process-wide service graph."""
    services: Services = request.app.state.services
    return services

"""Global enums: must match DB CHECK constraints exactly (see alembic/versions)."""

from enum import Enum


class AccountRole(str, Enum):
    """Only used to route notifications, never for ledger rules."""
    ADMIN = "admin"
    CUSTOMER = "customer"
    COLLABORATOR = "collaborator"


class LedgerEntryKind(str, Enum):
    PURCHASE = "purchase"
    USAGE = "usage"
    ALLOCATION = "allocation"
    ALLOCATION_REFUND = "allocation_refund"


class NotificationCategory(str, Enum):
    CREDIT_ALERT = "credit_alert"
    CREDIT_PURCHASE = "credit_purchase"
    CREDIT_ALLOCATION = "credit_allocation"

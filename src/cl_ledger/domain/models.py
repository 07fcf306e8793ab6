"""Domain models for cl_ledger: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass
class Account:
    id: int
    balance: int                 # credits, >= 0 between operations
    role: str                    # AccountRole value, notification routing only
    display_name: str = ""
    initial_balance: int = 0     # seed value, audit baseline
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class LedgerEntry:
    id: int                      # monotonic
    account_id: int
    amount: int                  # credits, positive=credit negative=debit
    kind: str                    # LedgerEntryKind value
    balance_after: int           # balance snapshot after this entry
    description: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class BalanceMutation:
    """One signed balance change; a commit unit is a list of these."""
    account_id: int
    amount: int
    kind: str
    description: str


@dataclass
class AlertState:
    account_id: int
    last_alerted_threshold: int | None = None


@dataclass
class CommitResult:
    """Entries written by one commit plus the post-commit accounts they touched."""
    entries: list[LedgerEntry]
    accounts: dict[int, Account] = field(default_factory=dict)


@dataclass
class TransferResult:
    source_account_id: int
    source_balance: int
    dest_account_id: int
    dest_balance: int
    amount: int
    entries: list[LedgerEntry]


@dataclass
class MeterResult(Generic[T]):
    result: T
    balance: int
    entry: LedgerEntry


@dataclass
class UsageSummary:
    account_id: int
    used: int
    purchased: int
    allocated_in: int
    allocated_out: int

"""Pydantic schemas and cursor utilities for cl_ledger API."""

import base64
import json
from datetime import datetime

from pydantic import BaseModel, Field

from src.cl_ledger.domain.models import LedgerEntry, TransferResult

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except Exception:
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PurchaseRequest(BaseModel):
    payment_reference: str = Field(
        ..., min_length=1, max_length=128, description="Payment-provider confirmation id"
    )
    amount: int = Field(..., gt=0, description="Credits to add")
    plan: str | None = Field(None, max_length=64)


class AllocateRequest(BaseModel):
    target_account_id: int
    amount: int = Field(..., description="Positive grants credits, negative takes them back")
    description: str = Field("Admin allocation", max_length=400)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    account_id: int
    balance: int


class LedgerEntryItem(BaseModel):
    id: int
    kind: str
    amount: int
    balance_after: int
    description: str | None
    created_at: str  # ISO8601 string

    @classmethod
    def from_entry(cls, entry: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=entry.id,
            kind=entry.kind,
            amount=entry.amount,
            balance_after=entry.balance_after,
            description=entry.description,
            created_at=entry.created_at.isoformat() if entry.created_at else "",
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool


class UsageSummaryResponse(BaseModel):
    account_id: int
    balance: int
    used: int
    purchased: int
    allocated_in: int
    allocated_out: int
    since: datetime | None
    until: datetime | None


class PurchaseResponse(BaseModel):
    balance: int
    purchased: int
    ledger_entry_id: int


class AllocateResponse(BaseModel):
    admin_account_id: int
    admin_balance: int
    target_account_id: int
    target_balance: int
    amount: int
    ledger_entry_ids: list[int]

    @classmethod
    def from_transfer(cls, result: TransferResult) -> "AllocateResponse":
        return cls(
            admin_account_id=result.source_account_id,
            admin_balance=result.source_balance,
            target_account_id=result.dest_account_id,
            target_balance=result.dest_balance,
            amount=result.amount,
            ledger_entry_ids=[e.id for e in result.entries],
        )

"""Ledger store Protocol: dependency inversion for testability.

Unit tests inject the in-memory store or a mock conforming to this Protocol.
The infrastructure layer provides the memory and PostgreSQL implementations.

The store holds no business rules beyond the one invariant it can check
cheaply at commit time (no balance may end up negative); composing calls into
operations is the transfer engine's job.
"""

from datetime import datetime
from typing import Protocol

from src.cl_ledger.domain.models import (
    Account,
    AlertState,
    BalanceMutation,
    CommitResult,
    LedgerEntry,
)


class LedgerStoreProtocol(Protocol):
    async def get_account(self, account_id: int) -> Account | None: ...

    async def get_balance(self, account_id: int) -> int: ...

    async def set_balance(self, account_id: int, new_balance: int) -> None: ...

    async def append_entry(self, entry: BalanceMutation, balance_after: int) -> int: ...

    async def commit(self, mutations: list[BalanceMutation]) -> CommitResult: ...

    async def create_account(
        self,
        account_id: int,
        role: str,
        display_name: str = "",
        initial_balance: int = 0,
    ) -> Account: ...

    async def list_administrators(self) -> list[int]: ...

    async def list_entries(
        self,
        account_id: int,
        kind: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        cursor_id: int | None = None,
        limit: int | None = None,
    ) -> list[LedgerEntry]: ...

    async def get_alert_state(self, account_id: int) -> AlertState: ...

    async def set_alert_state(self, state: AlertState) -> None: ...

    async def compare_and_set_alert_state(
        self, state: AlertState, expected: int | None
    ) -> bool: ...

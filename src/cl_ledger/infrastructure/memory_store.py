"""MemoryLedgerStore: in-process implementation of LedgerStoreProtocol.

Each method runs without awaiting anything between its read and its write,
so under a single event loop every call is atomic. `commit` validates the
whole unit before touching any state: either every balance write and entry
append lands, or none does.
"""

import itertools
from dataclasses import replace
from datetime import datetime

from src.cl_common.datetime_utils import utc_now
from src.cl_common.enums import AccountRole
from src.cl_common.errors import (
    AccountNotFoundError,
    InsufficientBalanceError,
    InvalidOperationError,
)
from src.cl_ledger.domain.models import (
    Account,
    AlertState,
    BalanceMutation,
    CommitResult,
    LedgerEntry,
)


class MemoryLedgerStore:
    def __init__(self) -> None:
        self._accounts: dict[int, Account] = {}
        self._entries: list[LedgerEntry] = []
        self._alert_states: dict[int, int | None] = {}
        self._entry_ids = itertools.count(1)

    def _require(self, account_id: int) -> Account:
        account = self._accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    async def create_account(
        self,
        account_id: int,
        role: str,
        display_name: str = "",
        initial_balance: int = 0,
    ) -> Account:
        if account_id in self._accounts:
            raise InvalidOperationError(f"account {account_id} already exists")
        if initial_balance < 0:
            raise InvalidOperationError("initial balance cannot be negative")
        now = utc_now()
        account = Account(
            id=account_id,
            balance=initial_balance,
            role=role,
            display_name=display_name,
            initial_balance=initial_balance,
            created_at=now,
            updated_at=now,
        )
        self._accounts[account_id] = account
        return replace(account)

    async def get_account(self, account_id: int) -> Account | None:
        account = self._accounts.get(account_id)
        return replace(account) if account else None

    async def get_balance(self, account_id: int) -> int:
        return self._require(account_id).balance

    async def set_balance(self, account_id: int, new_balance: int) -> None:
        account = self._require(account_id)
        account.balance = new_balance
        account.updated_at = utc_now()

    async def append_entry(self, entry: BalanceMutation, balance_after: int) -> int:
        self._require(entry.account_id)
        return self._append(entry, balance_after, utc_now()).id

    def _append(
        self, mutation: BalanceMutation, balance_after: int, created_at: datetime
    ) -> LedgerEntry:
        entry = LedgerEntry(
            id=next(self._entry_ids),
            account_id=mutation.account_id,
            amount=mutation.amount,
            kind=mutation.kind,
            balance_after=balance_after,
            description=mutation.description,
            created_at=created_at,
        )
        self._entries.append(entry)
        return entry

    async def commit(self, mutations: list[BalanceMutation]) -> CommitResult:
        # Validate the whole unit first
        projected: dict[int, int] = {}
        for m in mutations:
            current = projected.get(m.account_id, self._require(m.account_id).balance)
            after = current + m.amount
            if after < 0:
                raise InsufficientBalanceError(m.account_id, -m.amount, current)
            projected[m.account_id] = after

        # Apply: one logical timestamp for the whole unit
        now = utc_now()
        entries: list[LedgerEntry] = []
        for m in mutations:
            account = self._accounts[m.account_id]
            account.balance += m.amount
            account.updated_at = now
            entries.append(self._append(m, account.balance, now))
        touched = {aid: replace(self._accounts[aid]) for aid in projected}
        return CommitResult(entries=entries, accounts=touched)

    async def list_administrators(self) -> list[int]:
        return sorted(
            a.id for a in self._accounts.values() if a.role == AccountRole.ADMIN.value
        )

    async def list_entries(
        self,
        account_id: int,
        kind: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        cursor_id: int | None = None,
        limit: int | None = None,
    ) -> list[LedgerEntry]:
        snapshot = list(self._entries)
        matched = [
            e
            for e in reversed(snapshot)
            if e.account_id == account_id
            and (kind is None or e.kind == kind)
            and (since is None or (e.created_at is not None and e.created_at >= since))
            and (until is None or (e.created_at is not None and e.created_at < until))
            and (cursor_id is None or e.id < cursor_id)
        ]
        return matched[:limit] if limit is not None else matched

    async def get_alert_state(self, account_id: int) -> AlertState:
        return AlertState(account_id, self._alert_states.get(account_id))

    async def set_alert_state(self, state: AlertState) -> None:
        if state.last_alerted_threshold is None:
            self._alert_states.pop(state.account_id, None)
        else:
            self._alert_states[state.account_id] = state.last_alerted_threshold

    async def compare_and_set_alert_state(self, state: AlertState, expected: int | None) -> bool:
        if self._alert_states.get(state.account_id) != expected:
            return False
        await self.set_alert_state(state)
        return True

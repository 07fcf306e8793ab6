"""PostgresLedgerStore: PostgreSQL implementation of LedgerStoreProtocol.

All balance-mutating statements use atomic UPDATE ... RETURNING with the
non-negative guard in the WHERE clause. A result of 0 rows means either the
account is missing or the guard rejected the write; the store re-reads to
tell the two apart.

Transaction ownership: every public method opens its own session. `commit`
runs the whole unit inside `async with session.begin()`, so an exception at
any mutation rolls back every balance write and entry append of the unit.

Alert state is written with a compare-and-set against the value the caller
read, so two workers racing on the same band transition cannot both win it.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.cl_common.datetime_utils import utc_now
from src.cl_common.enums import AccountRole
from src.cl_common.errors import (
    AccountNotFoundError,
    InsufficientBalanceError,
    InternalError,
)
from src.cl_ledger.domain.models import (
    Account,
    AlertState,
    BalanceMutation,
    CommitResult,
    LedgerEntry,
)

_ACCOUNT_COLUMNS = "id, role, display_name, balance, initial_balance, created_at, updated_at"

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM credit_accounts
    WHERE id = :account_id
""")

_CREATE_ACCOUNT_SQL = text(f"""
    INSERT INTO credit_accounts (id, role, display_name, balance, initial_balance)
    VALUES (:account_id, :role, :display_name, :balance, :balance)
    RETURNING {_ACCOUNT_COLUMNS}
""")

_SET_BALANCE_SQL = text("""
    UPDATE credit_accounts
    SET balance = :balance,
        updated_at = NOW()
    WHERE id = :account_id
""")

_APPLY_MUTATION_SQL = text(f"""
    UPDATE credit_accounts
    SET balance = balance + :amount,
        updated_at = :now
    WHERE id = :account_id AND balance + :amount >= 0
    RETURNING {_ACCOUNT_COLUMNS}
""")

_INSERT_ENTRY_SQL = text("""
    INSERT INTO credit_ledger_entries
        (account_id, amount, kind, balance_after, description, created_at)
    VALUES
        (:account_id, :amount, :kind, :balance_after, :description, :created_at)
    RETURNING id, account_id, amount, kind, balance_after, description, created_at
""")

_LIST_ADMINS_SQL = text("""
    SELECT id FROM credit_accounts WHERE role = :role ORDER BY id
""")

_LIST_ENTRIES_SQL = text("""
    SELECT id, account_id, amount, kind, balance_after, description, created_at
    FROM credit_ledger_entries
    WHERE account_id = :account_id
      AND (CAST(:kind AS VARCHAR) IS NULL OR kind = :kind)
      AND (CAST(:since AS TIMESTAMPTZ) IS NULL OR created_at >= :since)
      AND (CAST(:until AS TIMESTAMPTZ) IS NULL OR created_at < :until)
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
    ORDER BY id DESC
    LIMIT :limit
""")

_GET_ALERT_STATE_SQL = text("""
    SELECT last_alerted_threshold
    FROM credit_alert_states
    WHERE account_id = :account_id
""")

_UPSERT_ALERT_STATE_SQL = text("""
    INSERT INTO credit_alert_states (account_id, last_alerted_threshold)
    VALUES (:account_id, :threshold)
    ON CONFLICT (account_id) DO UPDATE
        SET last_alerted_threshold = EXCLUDED.last_alerted_threshold,
            updated_at = NOW()
""")

# Writes only when the stored value still equals :expected (NULL-safe); rows
# are never deleted, so a missing row means "unalerted".
_CAS_ALERT_STATE_SQL = text("""
    INSERT INTO credit_alert_states (account_id, last_alerted_threshold)
    VALUES (:account_id, :threshold)
    ON CONFLICT (account_id) DO UPDATE
        SET last_alerted_threshold = EXCLUDED.last_alerted_threshold,
            updated_at = NOW()
        WHERE credit_alert_states.last_alerted_threshold
            IS NOT DISTINCT FROM CAST(:expected AS INTEGER)
    RETURNING account_id
""")


def _row_to_account(row: object) -> Account:
    return Account(
        id=row.id,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        role=row.role,  # type: ignore[attr-defined]
        display_name=row.display_name,  # type: ignore[attr-defined]
        initial_balance=row.initial_balance,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_entry(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        account_id=row.account_id,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        kind=row.kind,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class PostgresLedgerStore:
    """Concrete store: every mutation atomic at the SQL level."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def _fetch_account(self, db: AsyncSession, account_id: int) -> Account | None:
        row = (await db.execute(_GET_ACCOUNT_SQL, {"account_id": account_id})).fetchone()
        return _row_to_account(row) if row else None

    async def get_account(self, account_id: int) -> Account | None:
        async with self._session_factory() as db:
            return await self._fetch_account(db, account_id)

    async def get_balance(self, account_id: int) -> int:
        account = await self.get_account(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account.balance

    async def set_balance(self, account_id: int, new_balance: int) -> None:
        async with self._session_factory() as db, db.begin():
            result = await db.execute(
                _SET_BALANCE_SQL, {"account_id": account_id, "balance": new_balance}
            )
            if result.rowcount == 0:  # type: ignore[attr-defined]
                raise AccountNotFoundError(account_id)

    async def append_entry(self, entry: BalanceMutation, balance_after: int) -> int:
        async with self._session_factory() as db, db.begin():
            row = (
                await db.execute(
                    _INSERT_ENTRY_SQL,
                    {
                        "account_id": entry.account_id,
                        "amount": entry.amount,
                        "kind": entry.kind,
                        "balance_after": balance_after,
                        "description": entry.description,
                        "created_at": utc_now(),
                    },
                )
            ).fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows")
        return int(row.id)

    async def commit(self, mutations: list[BalanceMutation]) -> CommitResult:
        now = utc_now()
        entries: list[LedgerEntry] = []
        touched: dict[int, Account] = {}
        async with self._session_factory() as db, db.begin():
            for m in mutations:
                row = (
                    await db.execute(
                        _APPLY_MUTATION_SQL,
                        {"account_id": m.account_id, "amount": m.amount, "now": now},
                    )
                ).fetchone()
                if row is None:
                    current = await self._fetch_account(db, m.account_id)
                    if current is None:
                        raise AccountNotFoundError(m.account_id)
                    raise InsufficientBalanceError(m.account_id, -m.amount, current.balance)
                account = _row_to_account(row)
                touched[account.id] = account
                entry_row = (
                    await db.execute(
                        _INSERT_ENTRY_SQL,
                        {
                            "account_id": m.account_id,
                            "amount": m.amount,
                            "kind": m.kind,
                            "balance_after": account.balance,
                            "description": m.description,
                            "created_at": now,
                        },
                    )
                ).fetchone()
                if entry_row is None:
                    raise InternalError("Ledger insert returned no rows")
                entries.append(_row_to_entry(entry_row))
        return CommitResult(entries=entries, accounts=touched)

    async def create_account(
        self,
        account_id: int,
        role: str,
        display_name: str = "",
        initial_balance: int = 0,
    ) -> Account:
        async with self._session_factory() as db, db.begin():
            row = (
                await db.execute(
                    _CREATE_ACCOUNT_SQL,
                    {
                        "account_id": account_id,
                        "role": str(getattr(role, "value", role)),
                        "display_name": display_name,
                        "balance": initial_balance,
                    },
                )
            ).fetchone()
        if row is None:
            raise InternalError("Account insert returned no rows")
        return _row_to_account(row)

    async def list_administrators(self) -> list[int]:
        async with self._session_factory() as db:
            rows = (
                await db.execute(_LIST_ADMINS_SQL, {"role": AccountRole.ADMIN.value})
            ).fetchall()
        return [int(r.id) for r in rows]

    async def list_entries(
        self,
        account_id: int,
        kind: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        cursor_id: int | None = None,
        limit: int | None = None,
    ) -> list[LedgerEntry]:
        async with self._session_factory() as db:
            rows = (
                await db.execute(
                    _LIST_ENTRIES_SQL,
                    {
                        "account_id": account_id,
                        "kind": kind,
                        "since": since,
                        "until": until,
                        "cursor_id": cursor_id,
                        "limit": limit,
                    },
                )
            ).fetchall()
        return [_row_to_entry(r) for r in rows]

    async def get_alert_state(self, account_id: int) -> AlertState:
        async with self._session_factory() as db:
            row = (
                await db.execute(_GET_ALERT_STATE_SQL, {"account_id": account_id})
            ).fetchone()
        return AlertState(account_id, row.last_alerted_threshold if row else None)

    async def set_alert_state(self, state: AlertState) -> None:
        async with self._session_factory() as db, db.begin():
            await db.execute(
                _UPSERT_ALERT_STATE_SQL,
                {"account_id": state.account_id, "threshold": state.last_alerted_threshold},
            )

    async def compare_and_set_alert_state(self, state: AlertState, expected: int | None) -> bool:
        async with self._session_factory() as db, db.begin():
            row = (
                await db.execute(
                    _CAS_ALERT_STATE_SQL,
                    {
                        "account_id": state.account_id,
                        "threshold": state.last_alerted_threshold,
                        "expected": expected,
                    },
                )
            ).fetchone()
        return row is not None

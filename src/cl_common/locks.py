"""Per-account mutual exclusion for read-then-mutate ledger operations.

One asyncio.Lock per account id, created on first use and dropped again once
no task holds or waits on it. Multi-account sections always acquire in
ascending id order so two transfers touching the same pair of accounts cannot
deadlock.

The locks serialize one process only. Running several workers against the
postgres backend relies on the store's own guards (the conditional balance
UPDATE and the compare-and-set on alert state).
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager

from src.cl_common.errors import LedgerBusyError

logger = logging.getLogger(__name__)


class AccountLockManager:
    def __init__(self, timeout_seconds: float = 2.0, retries: int = 3) -> None:
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: dict[int, int] = defaultdict(int)  # holders + waiters per account
        self._timeout = timeout_seconds
        self._retries = max(retries, 1)

    def tracked_count(self) -> int:
        """Number of accounts that currently have a lock object."""
        return len(self._locks)

    def is_locked(self, account_id: int) -> bool:
        return account_id in self._locks and self._locks[account_id].locked()

    def _checkout(self, account_id: int) -> None:
        if account_id not in self._locks:
            self._locks[account_id] = asyncio.Lock()
        self._users[account_id] += 1

    def _checkin(self, account_id: int) -> None:
        self._users[account_id] -= 1
        if self._users[account_id] == 0:
            del self._users[account_id]
            del self._locks[account_id]

    async def _acquire(self, account_id: int) -> asyncio.Lock:
        lock = self._locks[account_id]
        for attempt in range(1, self._retries + 1):
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self._timeout)
                return lock
            except TimeoutError:
                logger.warning(
                    "Lock wait timed out for account %s (attempt %d/%d)",
                    account_id,
                    attempt,
                    self._retries,
                )
        raise LedgerBusyError(account_id)

    @asynccontextmanager
    async def hold(self, account_ids: Iterable[int]) -> AsyncIterator[None]:
        """Hold the locks of every given account for the duration of the block."""
        ordered = sorted(set(account_ids))
        for account_id in ordered:
            self._checkout(account_id)
        acquired: list[asyncio.Lock] = []
        try:
            for account_id in ordered:
                acquired.append(await self._acquire(account_id))
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for account_id in ordered:
                self._checkin(account_id)

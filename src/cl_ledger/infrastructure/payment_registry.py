"""Processed-payment registry: makes purchase crediting idempotent.

The ledger does not deduplicate by external reference; the purchase path
claims the provider reference here before crediting and releases the claim
if the credit fails, so a retried confirmation can still go through.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

import redis.asyncio as aioredis

from src.cl_common.redis_client import get_redis

_KEY_PREFIX = "credits:payment:"


class PaymentRegistryProtocol(Protocol):
    async def claim(self, payment_reference: str) -> bool: ...

    async def release(self, payment_reference: str) -> None: ...


class RedisPaymentRegistry:
    """SET NX with a TTL: the first claimant wins, later ones see False."""

    def __init__(
        self,
        ttl_seconds: int,
        get_client: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
    ) -> None:
        self._get_client = get_client
        self._ttl = ttl_seconds

    async def claim(self, payment_reference: str) -> bool:
        client = await self._get_client()
        ok = await client.set(f"{_KEY_PREFIX}{payment_reference}", "1", nx=True, ex=self._ttl)
        return bool(ok)

    async def release(self, payment_reference: str) -> None:
        client = await self._get_client()
        await client.delete(f"{_KEY_PREFIX}{payment_reference}")


class MemoryPaymentRegistry:
    def __init__(self) -> None:
        self._seen: set[str] = set()

    async def claim(self, payment_reference: str) -> bool:
        if payment_reference in self._seen:
            return False
        self._seen.add(payment_reference)
        return True

    async def release(self, payment_reference: str) -> None:
        self._seen.discard(payment_reference)

"""Redis connection for the processed-payment registry.

Redis only remembers which payment references have already been credited
(`credits:payment:<ref>` keys with a TTL). Balances and alert state never live
here; they go through the ledger store.
"""

import redis.asyncio as aioredis

from config.settings import settings

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Return the shared client, creating its pool on first use."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _client


async def check_redis() -> None:
    """Startup check: raises when Redis does not answer PING."""
    client = await get_redis()
    await client.ping()


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None

"""Redis client for the postgres sync backend.

Documents themselves live in PostgreSQL; Redis only carries
"document changed" notices on sync:{doc_id} channels. Listeners hold a
pub/sub connection open for the app lifetime, so the pool pings idle
connections instead of letting them time out silently.
"""

import redis.asyncio as aioredis

from config.settings import settings

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Shared client; created on first use."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            health_check_interval=30,
        )
    return _client


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None

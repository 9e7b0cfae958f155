"""Key-value store used for sessions and rate limiting.

Services depend on the small :class:`KeyValueStore` protocol rather than a
Redis client, so tests can inject an in-memory implementation.  Every
operation maps onto a single atomic Redis command (or one MULTI/EXEC block).
"""

from typing import Protocol

from redis.asyncio import Redis


class KeyValueStore(Protocol):
    """Protocol for the per-key expiring store backing sessions and rate limits."""

    async def get(self, key: str) -> str | None:
        """Return the value stored at ``key`` or None when absent/expired."""
        ...

    async def set(self, key: str, value: str, *, ttl_seconds: int) -> None:
        """Store ``value`` at ``key``, expiring after ``ttl_seconds``."""
        ...

    async def delete(self, key: str) -> None:
        """Remove ``key``. Deleting an absent key is not an error."""
        ...

    async def incr(self, key: str, *, ttl_seconds: int) -> int:
        """Atomically increment the counter at ``key`` and refresh its expiry.

        Returns:
            The counter value after the increment.
        """
        ...


class RedisKeyValueStore:
    """KeyValueStore backed by ``redis.asyncio``."""

    def __init__(self, client: Redis) -> None:
        self._client = client

    async def get(self, key: str) -> str | None:
        return await self._client.get(key)

    async def set(self, key: str, value: str, *, ttl_seconds: int) -> None:
        await self._client.set(key, value, ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def incr(self, key: str, *, ttl_seconds: int) -> int:
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.incr(key)
            pipe.expire(key, ttl_seconds)
            count, _ = await pipe.execute()
        return int(count)

    async def close(self) -> None:
        """Release the underlying connection pool."""
        await self._client.aclose()


def create_redis_client(
    url: str,
    token: str,
    *,
    connect_timeout_seconds: float = 5.0,
    socket_timeout_seconds: float = 5.0,
) -> Redis:
    """Construct a configured async Redis client instance.

    Args:
        url: Redis connection URL (``redis://`` or ``rediss://``).
        token: Access token, sent as the connection password.
        connect_timeout_seconds: Socket connect timeout.
        socket_timeout_seconds: Per-command socket timeout.

    Returns:
        A Redis client that decodes responses to ``str``.
    """
    return Redis.from_url(
        url,
        password=token or None,
        socket_connect_timeout=connect_timeout_seconds,
        socket_timeout=socket_timeout_seconds,
        decode_responses=True,
        encoding="utf-8",
    )

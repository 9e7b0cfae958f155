"""Unit tests for the Redis-backed key-value store."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from address_verifier.core.kv_store import RedisKeyValueStore, create_redis_client


@pytest.fixture
def redis_client() -> MagicMock:
    client = MagicMock()
    client.get = AsyncMock(return_value="value")
    client.set = AsyncMock()
    client.delete = AsyncMock()
    client.aclose = AsyncMock()

    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[3, True])
    client.pipeline.return_value.__aenter__ = AsyncMock(return_value=pipe)
    client.pipeline.return_value.__aexit__ = AsyncMock(return_value=False)
    client.pipe = pipe
    return client


class TestRedisKeyValueStore:
    """Tests for RedisKeyValueStore."""

    @pytest.mark.asyncio
    async def test_get(self, redis_client: MagicMock) -> None:
        assert await RedisKeyValueStore(redis_client).get("session:abc") == "value"
        redis_client.get.assert_awaited_once_with("session:abc")

    @pytest.mark.asyncio
    async def test_set_with_ttl(self, redis_client: MagicMock) -> None:
        await RedisKeyValueStore(redis_client).set("session:abc", "{}", ttl_seconds=60)
        redis_client.set.assert_awaited_once_with("session:abc", "{}", ex=60)

    @pytest.mark.asyncio
    async def test_delete(self, redis_client: MagicMock) -> None:
        await RedisKeyValueStore(redis_client).delete("session:abc")
        redis_client.delete.assert_awaited_once_with("session:abc")

    @pytest.mark.asyncio
    async def test_incr_runs_in_transaction(self, redis_client: MagicMock) -> None:
        count = await RedisKeyValueStore(redis_client).incr("ratelimit:1:ip", ttl_seconds=120)

        assert count == 3
        redis_client.pipeline.assert_called_once_with(transaction=True)
        redis_client.pipe.incr.assert_called_once_with("ratelimit:1:ip")
        redis_client.pipe.expire.assert_called_once_with("ratelimit:1:ip", 120)

    @pytest.mark.asyncio
    async def test_close(self, redis_client: MagicMock) -> None:
        await RedisKeyValueStore(redis_client).close()
        redis_client.aclose.assert_awaited_once()


class TestCreateRedisClient:
    """Tests for create_redis_client."""

    def test_token_used_as_password(self) -> None:
        with patch("address_verifier.core.kv_store.Redis.from_url") as from_url:
            create_redis_client("rediss://cache.example.com:6379", "secret")

        _, kwargs = from_url.call_args
        assert from_url.call_args.args[0] == "rediss://cache.example.com:6379"
        assert kwargs["password"] == "secret"
        assert kwargs["decode_responses"] is True

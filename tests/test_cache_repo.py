"""Cache store adapters: in-memory behaviour and the Redis command mapping."""

import datetime
from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError

from shortlink.cache_repo import InMemoryURLCacheRepo, RedisURLCacheRepo
from shortlink.errors import NotFoundError, StoreError

HOUR = datetime.timedelta(hours=1)


@pytest.fixture
def mock_redis() -> AsyncMock:
    client = AsyncMock(spec=redis.Redis)
    client.incr = AsyncMock(return_value=1)
    client.set = AsyncMock(return_value=True)
    client.get = AsyncMock(return_value=None)
    client.delete = AsyncMock(return_value=1)
    client.ping = AsyncMock(return_value=True)
    return client


# ============================================================================
# IN-MEMORY
# ============================================================================


@pytest.mark.asyncio
async def test_memory_ids_are_sequential(cache_repo) -> None:
    ids = [await cache_repo.create(f"https://example.com/{n}", HOUR) for n in range(5)]
    assert ids == [1, 2, 3, 4, 5]


@pytest.mark.asyncio
async def test_memory_get_before_and_after_expiry(cache_repo, clock) -> None:
    url_id = await cache_repo.create("https://example.com", HOUR)
    clock.advance(minutes=59)
    assert await cache_repo.get(url_id) == "https://example.com"

    clock.advance(minutes=1)
    with pytest.raises(NotFoundError):
        await cache_repo.get(url_id)


@pytest.mark.asyncio
async def test_memory_missing_id(cache_repo) -> None:
    with pytest.raises(NotFoundError):
        await cache_repo.get(12345)


@pytest.mark.asyncio
async def test_memory_set_reseeds_and_delete_removes(cache_repo, clock) -> None:
    url_id = await cache_repo.create("https://example.com", HOUR)
    clock.advance(hours=2)
    await cache_repo.set(url_id, "https://example.com", HOUR)
    assert await cache_repo.get(url_id) == "https://example.com"

    await cache_repo.delete(url_id)
    with pytest.raises(NotFoundError):
        await cache_repo.get(url_id)
    await cache_repo.delete(url_id)


@pytest.mark.asyncio
async def test_memory_ids_not_reused_after_delete() -> None:
    repo = InMemoryURLCacheRepo()
    first = await repo.create("https://a.example", HOUR)
    await repo.delete(first)
    second = await repo.create("https://b.example", HOUR)
    assert second > first


# ============================================================================
# REDIS
# ============================================================================


@pytest.mark.asyncio
async def test_redis_create_uses_counter_and_ttl(mock_redis) -> None:
    mock_redis.incr.return_value = 5
    repo = RedisURLCacheRepo(mock_redis)

    url_id = await repo.create("https://example.com", HOUR)

    assert url_id == 5
    mock_redis.incr.assert_awaited_once_with("url_id_sequence")
    mock_redis.set.assert_awaited_once_with("url:5", "https://example.com", ex=HOUR)


@pytest.mark.asyncio
async def test_redis_custom_keys(mock_redis) -> None:
    repo = RedisURLCacheRepo(mock_redis, sequence_key="seq", key_prefix="link:")
    await repo.create("https://example.com", HOUR)
    mock_redis.incr.assert_awaited_once_with("seq")
    mock_redis.set.assert_awaited_once_with("link:1", "https://example.com", ex=HOUR)


@pytest.mark.asyncio
async def test_redis_set_failure_abandons_id(mock_redis) -> None:
    mock_redis.incr.side_effect = [7, 8]
    mock_redis.set.side_effect = [RedisConnectionError("reset"), True]
    repo = RedisURLCacheRepo(mock_redis)

    with pytest.raises(StoreError):
        await repo.create("https://example.com", HOUR)
    assert await repo.create("https://example.com", HOUR) == 8


@pytest.mark.asyncio
async def test_redis_incr_failure(mock_redis) -> None:
    mock_redis.incr.side_effect = RedisConnectionError("refused")
    repo = RedisURLCacheRepo(mock_redis)

    with pytest.raises(StoreError, match="failed to generate ID"):
        await repo.create("https://example.com", HOUR)
    mock_redis.set.assert_not_awaited()


@pytest.mark.asyncio
async def test_redis_get(mock_redis) -> None:
    mock_redis.get.return_value = "https://example.com"
    repo = RedisURLCacheRepo(mock_redis)

    assert await repo.get(3) == "https://example.com"
    mock_redis.get.assert_awaited_once_with("url:3")


@pytest.mark.asyncio
async def test_redis_get_miss_is_not_found(mock_redis) -> None:
    repo = RedisURLCacheRepo(mock_redis)
    with pytest.raises(NotFoundError):
        await repo.get(3)


@pytest.mark.asyncio
async def test_redis_get_error_is_store_error(mock_redis) -> None:
    mock_redis.get.side_effect = RedisConnectionError("timeout")
    repo = RedisURLCacheRepo(mock_redis)
    with pytest.raises(StoreError):
        await repo.get(3)


@pytest.mark.asyncio
async def test_redis_set_and_delete(mock_redis) -> None:
    repo = RedisURLCacheRepo(mock_redis)
    await repo.set(9, "https://example.com", HOUR)
    await repo.delete(9)
    mock_redis.set.assert_awaited_once_with("url:9", "https://example.com", ex=HOUR)
    mock_redis.delete.assert_awaited_once_with("url:9")


@pytest.mark.asyncio
async def test_redis_ping(mock_redis) -> None:
    repo = RedisURLCacheRepo(mock_redis)
    await repo.ping()
    mock_redis.ping.assert_awaited_once()


@pytest.mark.asyncio
async def test_redis_ping_failure_is_store_error(mock_redis) -> None:
    mock_redis.ping.side_effect = RedisConnectionError("connection refused")
    repo = RedisURLCacheRepo(mock_redis)
    with pytest.raises(StoreError):
        await repo.ping()

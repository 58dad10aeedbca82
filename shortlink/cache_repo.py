"""Cache store adapters: id allocation and TTL-bound id -> URL mappings.

Key Layout
==========
::
    url_id_sequence      INCR counter, one tick per created link
    url:<decimal id>     long URL, expires with the link's TTL

Key Behaviours
===============
- Ids come from an atomic counter, so concurrent creators never share one.
- A failed SET after a successful INCR leaves a gap; the id is never reused.
- A missing key is reported as ``NotFoundError`` whether it expired or never
  existed.
"""

import datetime
import itertools
import logging
import time
from collections.abc import Callable

import redis.asyncio as redis
from redis.exceptions import RedisError

from shortlink.errors import NotFoundError, StoreError

__all__ = ["RedisURLCacheRepo", "InMemoryURLCacheRepo"]

logger = logging.getLogger(__name__)

DEFAULT_SEQUENCE_KEY = "url_id_sequence"
DEFAULT_KEY_PREFIX = "url:"


class RedisURLCacheRepo:
    """Cache store backed by Redis INCR + SET EX."""

    def __init__(
        self,
        client: redis.Redis,
        sequence_key: str = DEFAULT_SEQUENCE_KEY,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ) -> None:
        self._client = client
        self._sequence_key = sequence_key
        self._key_prefix = key_prefix

    def _key(self, url_id: int) -> str:
        return f"{self._key_prefix}{url_id}"

    async def create(self, long_url: str, ttl: datetime.timedelta) -> int:
        try:
            url_id = int(await self._client.incr(self._sequence_key))
        except RedisError as exc:
            raise StoreError(f"failed to generate ID: {exc}") from exc

        try:
            await self._client.set(self._key(url_id), long_url, ex=ttl)
        except RedisError as exc:
            logger.warning(f"Cache write failed after allocating id {url_id}; id abandoned")
            raise StoreError(f"failed to set URL in cache: {exc}") from exc
        return url_id

    async def get(self, url_id: int) -> str:
        try:
            long_url = await self._client.get(self._key(url_id))
        except RedisError as exc:
            raise StoreError(f"failed to get URL from cache: {exc}") from exc
        if long_url is None:
            raise NotFoundError()
        return long_url

    async def set(self, url_id: int, long_url: str, ttl: datetime.timedelta) -> None:
        try:
            await self._client.set(self._key(url_id), long_url, ex=ttl)
        except RedisError as exc:
            raise StoreError(f"failed to set URL in cache: {exc}") from exc

    async def delete(self, url_id: int) -> None:
        try:
            await self._client.delete(self._key(url_id))
        except RedisError as exc:
            raise StoreError(f"failed to delete URL from cache: {exc}") from exc

    async def ping(self) -> None:
        try:
            await self._client.ping()
        except RedisError as exc:
            raise StoreError(f"redis ping failed: {exc}") from exc


class InMemoryURLCacheRepo:
    """Process-local cache store for tests and single-process runs.

    Each method body runs without awaiting, so on one event loop the counter
    and the dict behave atomically just as INCR and SET do in Redis.
    ``clock`` returns seconds and can be swapped to move time forward.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._sequence = itertools.count(1)
        self._entries: dict[int, tuple[str, float]] = {}

    async def create(self, long_url: str, ttl: datetime.timedelta) -> int:
        url_id = next(self._sequence)
        self._store(url_id, long_url, ttl)
        return url_id

    async def get(self, url_id: int) -> str:
        entry = self._entries.get(url_id)
        if entry is None:
            raise NotFoundError()
        long_url, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[url_id]
            raise NotFoundError()
        return long_url

    async def set(self, url_id: int, long_url: str, ttl: datetime.timedelta) -> None:
        self._store(url_id, long_url, ttl)

    async def delete(self, url_id: int) -> None:
        self._entries.pop(url_id, None)

    def _store(self, url_id: int, long_url: str, ttl: datetime.timedelta) -> None:
        self._entries[url_id] = (long_url, self._clock() + ttl.total_seconds())

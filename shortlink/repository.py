"""Store contracts the link services depend on.

Two capabilities sit behind these protocols:

- ``URLCacheRepo``: ephemeral id -> long URL mapping with per-key TTL, plus
  an atomic, globally ordered id counter.
- ``URLAnalyticRepo``: durable per-id click statistics that outlive the cache.

Adapters live in ``shortlink.cache_repo`` and ``shortlink.analytic_repo``.
Every adapter raises ``NotFoundError`` for a missing key/row and wraps any
backend failure in ``StoreError``. Timeouts are the adapter's business.
"""

import datetime
from typing import Protocol

from shortlink.schemas import URLAnalytic

__all__ = ["URLCacheRepo", "URLAnalyticRepo"]


class URLCacheRepo(Protocol):
    async def create(self, long_url: str, ttl: datetime.timedelta) -> int:
        """Allocate a fresh id and store the mapping with ``ttl``.

        If storing fails after the id was allocated, the id is lost for good.
        """
        ...

    async def get(self, url_id: int) -> str:
        """Return the long URL; ``NotFoundError`` if never stored or expired."""
        ...

    async def set(self, url_id: int, long_url: str, ttl: datetime.timedelta) -> None: ...

    async def delete(self, url_id: int) -> None: ...


class URLAnalyticRepo(Protocol):
    async def create(self, analytic: URLAnalytic) -> int:
        """Persist a new record and return its durable row id."""
        ...

    async def get_by_url_id(self, url_id: int) -> URLAnalytic: ...

    async def update_stat(self, url_id: int, observed_at: datetime.datetime) -> None:
        """Atomically add one click and record ``observed_at`` as last access."""
        ...

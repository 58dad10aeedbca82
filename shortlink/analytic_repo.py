"""Durable analytic store adapters.

Flow Diagram: update_stat()
============================
::
    ┌──────────────────┐
    │ background task  │
    │ (one per click)  │
    └────────┬─────────┘
             ▼
    ┌──────────────────────────────────────────────┐
    │ UPDATE url_analytics                         │
    │ SET click_count = click_count + 1,           │
    │     last_accessed_at = max(existing, :now)   │
    │ WHERE url_id = :url_id                       │
    └────────┬─────────────────────────────────────┘
             ▼
    ┌──────────────────┐
    │ 0 rows? NotFound │
    └──────────────────┘

Key Behaviours
===============
- The increment happens inside the database, never read-modify-write here,
  so concurrent redirects of one code cannot lose clicks.
- last_accessed_at only moves forward even if updates land out of order.
- Rows are never deleted by this module.
"""

import datetime
import itertools

from sqlalchemy import case, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shortlink.errors import NotFoundError, StoreError
from shortlink.models import URLAnalyticRow
from shortlink.schemas import URLAnalytic

__all__ = ["SQLURLAnalyticRepo", "InMemoryURLAnalyticRepo"]


class SQLURLAnalyticRepo:
    """Analytic store on any async SQLAlchemy engine (PostgreSQL in production)."""

    def __init__(self, sessions: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = sessions

    async def create(self, analytic: URLAnalytic) -> int:
        row = URLAnalyticRow(
            url_id=analytic.url_id,
            long_url=analytic.long_url,
            created_at=analytic.created_at,
            expires_at=analytic.expires_at,
            click_count=analytic.click_count,
            last_accessed_at=analytic.last_accessed_at,
        )
        try:
            async with self._sessions() as session:
                session.add(row)
                await session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to create analytic record: {exc}") from exc
        return row.id

    async def get_by_url_id(self, url_id: int) -> URLAnalytic:
        try:
            async with self._sessions() as session:
                result = await session.execute(select(URLAnalyticRow).where(URLAnalyticRow.url_id == url_id))
                row = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to load analytic record: {exc}") from exc
        if row is None:
            raise NotFoundError()
        return URLAnalytic.model_validate(row)

    async def update_stat(self, url_id: int, observed_at: datetime.datetime) -> None:
        last_accessed = URLAnalyticRow.last_accessed_at
        stmt = (
            update(URLAnalyticRow)
            .where(URLAnalyticRow.url_id == url_id)
            .values(
                click_count=URLAnalyticRow.click_count + 1,
                last_accessed_at=case(
                    (last_accessed.is_(None), observed_at),
                    (last_accessed < observed_at, observed_at),
                    else_=last_accessed,
                ),
            )
        )
        try:
            async with self._sessions() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to update analytic record: {exc}") from exc
        if result.rowcount == 0:
            raise NotFoundError(f"no analytic record for url_id {url_id}")


class InMemoryURLAnalyticRepo:
    """Process-local analytic store.

    Records are copied on the way in and out so callers never hold a live
    reference. Increments happen in a single step on the event loop.
    """

    def __init__(self) -> None:
        self._sequence = itertools.count(1)
        self._records: dict[int, URLAnalytic] = {}

    async def create(self, analytic: URLAnalytic) -> int:
        if analytic.url_id in self._records:
            raise StoreError(f"analytic record for url_id {analytic.url_id} already exists")
        row_id = next(self._sequence)
        self._records[analytic.url_id] = analytic.model_copy(update={"id": row_id})
        return row_id

    async def get_by_url_id(self, url_id: int) -> URLAnalytic:
        record = self._records.get(url_id)
        if record is None:
            raise NotFoundError()
        return record.model_copy()

    async def update_stat(self, url_id: int, observed_at: datetime.datetime) -> None:
        record = self._records.get(url_id)
        if record is None:
            raise NotFoundError(f"no analytic record for url_id {url_id}")
        last_accessed_at = record.last_accessed_at
        if last_accessed_at is None or last_accessed_at < observed_at:
            last_accessed_at = observed_at
        self._records[url_id] = record.model_copy(
            update={"click_count": record.click_count + 1, "last_accessed_at": last_accessed_at}
        )

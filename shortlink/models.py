"""SQLAlchemy ORM models for the durable analytic store.

Data Model Layout
=================
::
    url_analytics table
    ├─ id (BIGSERIAL PRIMARY KEY)
    ├─ url_id (BIGINT UNIQUE NOT NULL)      link identifier from the cache store
    ├─ long_url (TEXT NOT NULL)
    ├─ created_at (TIMESTAMPTZ NOT NULL)
    ├─ expires_at (TIMESTAMPTZ NOT NULL)    cache expiry, informational only
    ├─ click_count (BIGINT DEFAULT 0)
    └─ last_accessed_at (TIMESTAMPTZ NULL)

Key Behaviours
===============
- Rows are never deleted here; they outlive the cache entry's TTL.
- click_count is only ever changed by an in-database increment.
"""

import datetime

from sqlalchemy import BigInteger, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from shortlink.database import Base

__all__ = ["URLAnalyticRow"]


class URLAnalyticRow(Base):
    __tablename__ = "url_analytics"

    # SQLite only autoincrements an INTEGER PRIMARY KEY.
    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    url_id: Mapped[int] = mapped_column(BigInteger, unique=True, index=True, nullable=False)
    long_url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    click_count: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    last_accessed_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<URLAnalyticRow(url_id={self.url_id}, click_count={self.click_count})>"

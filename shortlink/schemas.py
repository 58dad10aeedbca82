"""Pydantic schemas for the short link service.

Schema Hierarchy
=================
::
    URLAnalytic (domain record, shared by services and store adapters)
    ├─ id: int | None          durable row id
    ├─ url_id: int             link identifier
    ├─ long_url: str
    ├─ created_at: datetime
    ├─ expires_at: datetime
    ├─ click_count: int >= 0
    └─ last_accessed_at: datetime | None

    CreateLinkRequest (Input)   long_url, ttl_seconds?
    CreateLinkResponse (Output) short_code
    AnalyzeResponse (Output)    long_url, created_at, expires_at,
                                click_count, last_accessed_at
    ErrorResponse (Output)      error
    HealthResponse (Output)     status

Key Behaviours
===============
- Request schemas only check types. URL, length and TTL rules live in the
  link creator so the same errors surface from every entry point.
- Datetimes are timezone-aware and serialize as RFC 3339 strings.
"""

import datetime

from pydantic import BaseModel, Field

from shortlink.enums import HealthStatus

__all__ = [
    "URLAnalytic",
    "CreateLinkRequest",
    "CreateLinkResponse",
    "AnalyzeResponse",
    "ErrorResponse",
    "HealthResponse",
]


class URLAnalytic(BaseModel):
    """Persisted click statistics for one link identifier."""

    id: int | None = None
    url_id: int
    long_url: str
    created_at: datetime.datetime
    expires_at: datetime.datetime
    click_count: int = Field(0, ge=0)
    last_accessed_at: datetime.datetime | None = None

    model_config = {"from_attributes": True}


class CreateLinkRequest(BaseModel):
    long_url: str = ""
    ttl_seconds: int | None = None


class CreateLinkResponse(BaseModel):
    short_code: str


class AnalyzeResponse(BaseModel):
    long_url: str
    created_at: datetime.datetime
    expires_at: datetime.datetime
    click_count: int
    last_accessed_at: datetime.datetime | None = None

    @classmethod
    def from_analytic(cls, analytic: URLAnalytic) -> "AnalyzeResponse":
        return cls(
            long_url=analytic.long_url,
            created_at=analytic.created_at,
            expires_at=analytic.expires_at,
            click_count=analytic.click_count,
            last_accessed_at=analytic.last_accessed_at,
        )


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: HealthStatus

"""Link lifecycle services: create, redirect, analyze.

Flow Diagram: Link Creation
============================
::
    ┌─────────────┐
    │ POST /s     │
    └──────┬──────┘
           ▼
    ┌─────────────┐   too long / bad scheme / bad TTL
    │ Validate    │──────────────────────────────────▶ ValidationError
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Cache store │  INCR id, SET url:<id> EX ttl
    │ create()    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Analytic    │  click_count = 0
    │ create()    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ encode(id)  │
    └─────────────┘

Flow Diagram: Redirect
=======================
::
    ┌─────────────┐
    │ GET /s/:code│
    └──────┬──────┘
           ▼
    ┌─────────────┐   bad code
    │ decode()    │─────────────▶ NotFoundError (no store call)
    └──────┬──────┘
           ▼
    ┌─────────────┐   miss / expired
    │ cache get() │─────────────▶ NotFoundError
    └──────┬──────┘
           ├──────────────────────────────┐
           ▼                              ▼
    ┌─────────────┐              ┌─────────────────┐
    │ return URL  │              │ background task │
    │ (302)       │              │ update_stat()   │
    └─────────────┘              │ errors: logged  │
                                 └─────────────────┘

Key Behaviours
===============
- Validation errors are raised before any store is touched.
- A durable write failure after a successful cache write is not rolled back:
  the link redirects but has no analytic record until it expires.
- Redirect never waits for the analytics update. The update task is detached
  from the request, is not retried and has no concurrency bound.
- Analyze works after the cache entry has expired.
"""

import asyncio
import datetime
import logging
import time
from collections.abc import Callable
from urllib.parse import urlsplit

from shortlink.config import Settings
from shortlink.encoder import decode, encode
from shortlink.enums import RequestStatus
from shortlink.errors import (
    InvalidCodeError,
    InvalidTTLError,
    InvalidURLError,
    NotFoundError,
    URLTooLongError,
    ValidationError,
)
from shortlink.metrics import LinkMetrics
from shortlink.repository import URLAnalyticRepo, URLCacheRepo
from shortlink.schemas import URLAnalytic

__all__ = [
    "LinkCreatorService",
    "LinkRedirectorService",
    "LinkAnalyzerService",
    "DEFAULT_TTL",
    "MIN_TTL",
    "MAX_TTL",
    "MAX_URL_LENGTH",
]

logger = logging.getLogger(__name__)

DEFAULT_TTL = datetime.timedelta(hours=24)
MIN_TTL = datetime.timedelta(hours=1)
MAX_TTL = datetime.timedelta(days=7)
MAX_URL_LENGTH = 2048

ALLOWED_SCHEMES = ("http", "https")


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class LinkCreatorService:
    """Validates a long URL and turns it into a short code.

    Example:
        >>> creator = LinkCreatorService(cache_repo, analytic_repo, LinkMetrics())
        >>> code = await creator.create("https://example.com")
    """

    def __init__(
        self,
        cache_repo: URLCacheRepo,
        analytic_repo: URLAnalyticRepo,
        metrics: LinkMetrics,
        *,
        default_ttl: datetime.timedelta = DEFAULT_TTL,
        min_ttl: datetime.timedelta = MIN_TTL,
        max_ttl: datetime.timedelta = MAX_TTL,
        max_url_length: int = MAX_URL_LENGTH,
        clock: Callable[[], datetime.datetime] = utcnow,
    ) -> None:
        self._cache_repo = cache_repo
        self._analytic_repo = analytic_repo
        self._metrics = metrics
        self._default_ttl = default_ttl
        self._min_ttl = min_ttl
        self._max_ttl = max_ttl
        self._max_url_length = max_url_length
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        cache_repo: URLCacheRepo,
        analytic_repo: URLAnalyticRepo,
        metrics: LinkMetrics,
    ) -> "LinkCreatorService":
        return cls(
            cache_repo,
            analytic_repo,
            metrics,
            default_ttl=datetime.timedelta(seconds=settings.DEFAULT_TTL_SECONDS),
            min_ttl=datetime.timedelta(seconds=settings.MIN_TTL_SECONDS),
            max_ttl=datetime.timedelta(seconds=settings.MAX_TTL_SECONDS),
            max_url_length=settings.MAX_URL_LENGTH,
        )

    async def create(self, long_url: str, ttl_seconds: int | None = None) -> str:
        """Create a short link and return its code.

        Args:
            long_url: Absolute http(s) URL, at most ``max_url_length`` chars.
            ttl_seconds: Cache lifetime; defaults to 24 hours.

        Raises:
            URLTooLongError, InvalidURLError, InvalidTTLError: bad input,
                raised before any store call.
            StoreError: either store failed; nothing is returned.
        """
        start_time = time.perf_counter()
        try:
            self._validate_url(long_url)
            ttl = self._resolve_ttl(ttl_seconds)

            now = self._clock()
            url_id = await self._cache_repo.create(long_url, ttl)
            await self._analytic_repo.create(
                URLAnalytic(
                    url_id=url_id,
                    long_url=long_url,
                    created_at=now,
                    expires_at=now + ttl,
                    click_count=0,
                )
            )
            short_code = encode(url_id)
        except ValidationError as exc:
            self._metrics.links_created.labels(status=RequestStatus.VALIDATION_ERROR).inc()
            logger.warning(f"Link creation rejected: {exc}", extra={"operation": "create_link", "error": str(exc)})
            raise
        except Exception as exc:
            self._metrics.links_created.labels(status=RequestStatus.ERROR).inc()
            logger.error(f"Link creation failed: {exc}", extra={"operation": "create_link", "error": str(exc)})
            raise
        finally:
            self._metrics.creation_duration.observe(time.perf_counter() - start_time)

        self._metrics.links_created.labels(status=RequestStatus.SUCCESS).inc()
        logger.info(
            f"Link created: {short_code}",
            extra={"operation": "create_link", "short_code": short_code, "url_id": url_id},
        )
        return short_code

    def _validate_url(self, long_url: str) -> None:
        if len(long_url) > self._max_url_length:
            raise URLTooLongError(f"URL too long: maximum length is {self._max_url_length} characters")
        try:
            parts = urlsplit(long_url)
        except ValueError as exc:
            raise InvalidURLError() from exc
        if parts.scheme not in ALLOWED_SCHEMES or not parts.hostname:
            raise InvalidURLError()

    def _resolve_ttl(self, ttl_seconds: int | None) -> datetime.timedelta:
        if ttl_seconds is None:
            return self._default_ttl
        # Compare as seconds first; huge values would overflow timedelta.
        if not self._min_ttl.total_seconds() <= ttl_seconds <= self._max_ttl.total_seconds():
            raise InvalidTTLError()
        return datetime.timedelta(seconds=ttl_seconds)


class LinkRedirectorService:
    """Resolves short codes and records clicks in the background."""

    def __init__(
        self,
        cache_repo: URLCacheRepo,
        analytic_repo: URLAnalyticRepo,
        metrics: LinkMetrics,
        *,
        clock: Callable[[], datetime.datetime] = utcnow,
    ) -> None:
        self._cache_repo = cache_repo
        self._analytic_repo = analytic_repo
        self._metrics = metrics
        self._clock = clock
        # Strong references so pending tasks are not garbage collected.
        self._background_tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_updates(self) -> int:
        return len(self._background_tasks)

    async def redirect(self, short_code: str) -> str:
        """Return the long URL for ``short_code``.

        The click is recorded by a detached task; this call returns before
        that task runs and never reports its outcome.

        Raises:
            NotFoundError: bad code, unknown id, or expired link.
            StoreError: the cache store failed.
        """
        start_time = time.perf_counter()
        try:
            try:
                url_id = decode(short_code)
            except InvalidCodeError:
                raise NotFoundError() from None
            long_url = await self._cache_repo.get(url_id)
        except NotFoundError:
            self._metrics.redirects.labels(status=RequestStatus.NOT_FOUND).inc()
            logger.info(f"Redirect miss for {short_code!r}", extra={"operation": "redirect", "short_code": short_code})
            raise
        except Exception as exc:
            self._metrics.redirects.labels(status=RequestStatus.ERROR).inc()
            logger.error(
                f"Redirect lookup failed for {short_code!r}: {exc}",
                extra={"operation": "redirect", "short_code": short_code, "error": str(exc)},
            )
            raise
        finally:
            self._metrics.redirect_duration.observe(time.perf_counter() - start_time)

        self._spawn_stat_update(url_id, self._clock())
        self._metrics.redirects.labels(status=RequestStatus.SUCCESS).inc()
        return long_url

    async def drain(self) -> None:
        """Wait until every in-flight analytics update has finished."""
        while self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)

    def _spawn_stat_update(self, url_id: int, observed_at: datetime.datetime) -> None:
        # create_task detaches the update from the caller: cancelling the
        # request task leaves this one running.
        task = asyncio.create_task(self._update_stat(url_id, observed_at), name=f"update-stat-{url_id}")
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _update_stat(self, url_id: int, observed_at: datetime.datetime) -> None:
        self._metrics.analytics_in_flight.inc()
        try:
            await self._analytic_repo.update_stat(url_id, observed_at)
        except Exception as exc:
            self._metrics.analytics_updates.labels(status=RequestStatus.ERROR).inc()
            logger.error(
                f"Click update failed for url_id {url_id}: {exc}",
                exc_info=True,
                extra={"operation": "update_stat", "url_id": url_id, "error": str(exc)},
            )
        else:
            self._metrics.analytics_updates.labels(status=RequestStatus.SUCCESS).inc()
        finally:
            self._metrics.analytics_in_flight.dec()


class LinkAnalyzerService:
    """Reads the durable click statistics behind a short code."""

    def __init__(self, analytic_repo: URLAnalyticRepo, metrics: LinkMetrics) -> None:
        self._analytic_repo = analytic_repo
        self._metrics = metrics

    async def analyze(self, short_code: str) -> URLAnalytic:
        """Return the analytic record, even if the link itself has expired.

        Raises:
            NotFoundError: bad code or no record for the id.
            StoreError: the analytic store failed.
        """
        try:
            try:
                url_id = decode(short_code)
            except InvalidCodeError:
                raise NotFoundError() from None
            analytic = await self._analytic_repo.get_by_url_id(url_id)
        except NotFoundError:
            self._metrics.stats_requests.labels(status=RequestStatus.NOT_FOUND).inc()
            logger.warning(f"Stats not found for {short_code!r}", extra={"operation": "analyze", "short_code": short_code})
            raise
        except Exception as exc:
            self._metrics.stats_requests.labels(status=RequestStatus.ERROR).inc()
            logger.error(
                f"Stats lookup failed for {short_code!r}: {exc}",
                extra={"operation": "analyze", "short_code": short_code, "error": str(exc)},
            )
            raise

        self._metrics.stats_requests.labels(status=RequestStatus.SUCCESS).inc()
        return analytic

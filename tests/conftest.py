"""Shared pytest fixtures: in-memory stores, services and an ASGI client."""

import asyncio
import datetime
from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from shortlink.analytic_repo import InMemoryURLAnalyticRepo
from shortlink.cache_repo import InMemoryURLCacheRepo
from shortlink.config import Settings
from shortlink.dependencies import ServiceContainer
from shortlink.enums import StoreBackend
from shortlink.main import create_app
from shortlink.metrics import LinkMetrics
from shortlink.service import LinkAnalyzerService, LinkCreatorService, LinkRedirectorService


class FakeClock:
    """Wall clock and monotonic clock that only move when told to."""

    def __init__(self) -> None:
        self.current = datetime.datetime(2025, 1, 1, tzinfo=datetime.timezone.utc)

    def now(self) -> datetime.datetime:
        return self.current

    def monotonic(self) -> float:
        return self.current.timestamp()

    def advance(self, **kwargs: float) -> None:
        self.current += datetime.timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, STORE_BACKEND=StoreBackend.MEMORY)


@pytest.fixture
def metrics() -> LinkMetrics:
    return LinkMetrics()


@pytest.fixture
def cache_repo(clock: FakeClock) -> InMemoryURLCacheRepo:
    return InMemoryURLCacheRepo(clock=clock.monotonic)


@pytest.fixture
def analytic_repo() -> InMemoryURLAnalyticRepo:
    return InMemoryURLAnalyticRepo()


@pytest.fixture
def creator(cache_repo, analytic_repo, metrics, clock) -> LinkCreatorService:
    return LinkCreatorService(cache_repo, analytic_repo, metrics, clock=clock.now)


@pytest_asyncio.fixture
async def redirector(cache_repo, analytic_repo, metrics, clock) -> AsyncGenerator[LinkRedirectorService, None]:
    service = LinkRedirectorService(cache_repo, analytic_repo, metrics, clock=clock.now)
    yield service
    await service.drain()


@pytest.fixture
def analyzer(analytic_repo, metrics) -> LinkAnalyzerService:
    return LinkAnalyzerService(analytic_repo, metrics)


@pytest.fixture
def container(settings, cache_repo, analytic_repo, metrics) -> ServiceContainer:
    return ServiceContainer.build(settings, cache_repo=cache_repo, analytic_repo=analytic_repo, metrics=metrics)


@pytest_asyncio.fixture
async def client(settings, container) -> AsyncGenerator[AsyncClient, None]:
    app = create_app(settings, container)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await container.redirector.drain()


@pytest.fixture
def eventually() -> Callable[[Callable[[], Awaitable[bool]]], Awaitable[None]]:
    """Poll an async predicate until it holds, failing after a bounded wait."""

    async def _wait(predicate: Callable[[], Awaitable[bool]], timeout: float = 2.0, interval: float = 0.01) -> None:
        deadline = asyncio.get_running_loop().time() + timeout
        while not await predicate():
            if asyncio.get_running_loop().time() > deadline:
                pytest.fail("condition not met before timeout")
            await asyncio.sleep(interval)

    return _wait

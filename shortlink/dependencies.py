"""Service container and FastAPI dependency functions.

The container is the single place that decides which store adapters back the
services. It is built once per application and stored on ``app.state``;
request handlers pull services from it through the ``get_*`` dependencies.

How to Use
===========
**Production (Redis + PostgreSQL)**::
    container = ServiceContainer.build(get_settings())

**Tests / single process**::
    container = ServiceContainer.build(
        settings,
        cache_repo=InMemoryURLCacheRepo(),
        analytic_repo=InMemoryURLAnalyticRepo(),
    )

**In an endpoint**::
    async def handler(creator: LinkCreatorService = Depends(get_link_creator)): ...
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from fastapi import Depends, Request

from shortlink.analytic_repo import InMemoryURLAnalyticRepo, SQLURLAnalyticRepo
from shortlink.cache_repo import InMemoryURLCacheRepo, RedisURLCacheRepo
from shortlink.config import Settings
from shortlink.database import build_engine, build_sessionmaker, close_db, init_db, ping_db
from shortlink.enums import StoreBackend
from shortlink.metrics import LinkMetrics
from shortlink.redis import build_redis, close_redis
from shortlink.repository import URLAnalyticRepo, URLCacheRepo
from shortlink.service import LinkAnalyzerService, LinkCreatorService, LinkRedirectorService

__all__ = [
    "HealthCheck",
    "ServiceContainer",
    "get_container",
    "get_link_creator",
    "get_link_redirector",
    "get_link_analyzer",
]

logger = logging.getLogger(__name__)

HealthCheck = Callable[[], Awaitable[None]]
Hook = Callable[[], Awaitable[None]]


@dataclass
class ServiceContainer:
    """Wires store adapters, services, health checks and lifecycle hooks."""

    settings: Settings
    metrics: LinkMetrics
    cache_repo: URLCacheRepo
    analytic_repo: URLAnalyticRepo
    creator: LinkCreatorService
    redirector: LinkRedirectorService
    analyzer: LinkAnalyzerService
    health_checks: list[HealthCheck] = field(default_factory=list)
    startup_hooks: list[Hook] = field(default_factory=list)
    shutdown_hooks: list[Hook] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        settings: Settings,
        *,
        cache_repo: URLCacheRepo | None = None,
        analytic_repo: URLAnalyticRepo | None = None,
        metrics: LinkMetrics | None = None,
    ) -> "ServiceContainer":
        metrics = metrics or LinkMetrics()
        health_checks: list[HealthCheck] = []
        startup_hooks: list[Hook] = []
        shutdown_hooks: list[Hook] = []

        use_memory = settings.STORE_BACKEND == StoreBackend.MEMORY

        if cache_repo is None:
            if use_memory:
                cache_repo = InMemoryURLCacheRepo()
            else:
                client = build_redis(settings)
                cache_repo = RedisURLCacheRepo(
                    client,
                    sequence_key=settings.URL_ID_SEQUENCE_KEY,
                    key_prefix=settings.URL_KEY_PREFIX,
                )
                health_checks.append(cache_repo.ping)
                shutdown_hooks.append(lambda: close_redis(client))

        if analytic_repo is None:
            if use_memory:
                analytic_repo = InMemoryURLAnalyticRepo()
            else:
                engine = build_engine(settings)
                analytic_repo = SQLURLAnalyticRepo(build_sessionmaker(engine))
                health_checks.append(lambda: ping_db(engine))
                startup_hooks.append(lambda: init_db(engine))
                shutdown_hooks.append(lambda: close_db(engine))

        redirector = LinkRedirectorService(cache_repo, analytic_repo, metrics)
        # Let in-flight click updates land before clients are closed.
        shutdown_hooks.insert(0, redirector.drain)

        return cls(
            settings=settings,
            metrics=metrics,
            cache_repo=cache_repo,
            analytic_repo=analytic_repo,
            creator=LinkCreatorService.from_settings(settings, cache_repo, analytic_repo, metrics),
            redirector=redirector,
            analyzer=LinkAnalyzerService(analytic_repo, metrics),
            health_checks=health_checks,
            startup_hooks=startup_hooks,
            shutdown_hooks=shutdown_hooks,
        )

    async def startup(self) -> None:
        for hook in self.startup_hooks:
            await hook()
        logger.info(f"{self.settings.APP_NAME} started with {self.settings.STORE_BACKEND} stores")

    async def shutdown(self) -> None:
        for hook in self.shutdown_hooks:
            try:
                await hook()
            except Exception as exc:
                logger.error(f"Shutdown hook failed: {exc}")


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_link_creator(container: ServiceContainer = Depends(get_container)) -> LinkCreatorService:
    return container.creator


def get_link_redirector(container: ServiceContainer = Depends(get_container)) -> LinkRedirectorService:
    return container.redirector


def get_link_analyzer(container: ServiceContainer = Depends(get_container)) -> LinkAnalyzerService:
    return container.analyzer

"""FastAPI application factory for the short link service.

Application Lifecycle Diagram
=============================
::
    ┌──────────────────┐
    │ create_app()     │  build ServiceContainer, middleware, routes
    └────────┬─────────┘
             ▼
    ┌──────────────────┐
    │ lifespan startup │  create url_analytics table (SQL backend)
    └────────┬─────────┘
             ▼
    ┌──────────────────┐
    │ serve requests   │
    └────────┬─────────┘
             ▼
    ┌──────────────────┐
    │ lifespan shutdown│  drain click updates, close Redis and engine
    └──────────────────┘

How to Use
===========
**Run with uvicorn**::
    uvicorn shortlink.main:create_app --factory --host 0.0.0.0 --port 8080

**Or directly**::
    python -m shortlink.main

**Make API calls**::
    curl -X POST http://localhost:8080/s \
         -H "Content-Type: application/json" \
         -d '{"long_url": "https://example.com", "ttl_seconds": 3600}'
    curl -i http://localhost:8080/s/h
    curl http://localhost:8080/stats/h

Key Behaviours
===============
- Every response carries ``X-Processing-Time-Micros``.
- HTTP metrics and the service's own counters share one registry, exposed at
  ``/metrics``.
- Malformed request bodies answer 400 with ``{"error": ...}``.
"""

__all__ = ["create_app"]

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_fastapi_instrumentator import Instrumentator

from shortlink.config import Settings, get_settings
from shortlink.dependencies import ServiceContainer
from shortlink.errors import NotFoundError, ShortlinkError
from shortlink.logging_config import setup_logging
from shortlink.routes import router
from shortlink.schemas import ErrorResponse

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, container: ServiceContainer | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)
    container = container or ServiceContainer.build(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        await container.startup()
        yield
        await container.shutdown()

    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="Short links with redirect and click analytics",
        lifespan=lifespan,
    )
    app.state.container = container

    @app.middleware("http")
    async def processing_time(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        micros = int((time.perf_counter() - start) * 1_000_000)
        response.headers["X-Processing-Time-Micros"] = str(micros)
        return response

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content=ErrorResponse(error="invalid request body").model_dump())

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError) -> Response:
        return Response(status_code=404)

    @app.exception_handler(ShortlinkError)
    async def internal_error(request: Request, exc: ShortlinkError) -> JSONResponse:
        logger.error(f"Request failed: {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content=ErrorResponse(error="internal server error").model_dump())

    Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=False,
        should_respect_env_var=False,
        excluded_handlers=["/metrics"],
        registry=container.metrics.registry,
    ).instrument(app).expose(app, include_in_schema=False)

    app.include_router(router)
    return app


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run("shortlink.main:create_app", factory=True, host=_settings.HOST, port=_settings.PORT)

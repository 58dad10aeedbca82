"""FastAPI route definitions for the short link API.

API Endpoint Overview
=====================
::
    POST /s
        ├─ CreateLinkRequest (request body)
        └─ CreateLinkResponse (200) or ErrorResponse (400) / 500

    GET  /s/:short_code
        └─ 302 Location: <long_url>, 404 or 500

    GET  /stats/:short_code
        └─ AnalyzeResponse (200), 404 or 500

    GET  /healthz
        └─ HealthResponse (200) or 503

Key Behaviours
===============
- ``NotFoundError`` becomes an empty 404 and other service errors a generic
  500 body; both handlers are registered in ``shortlink.main``.
- Redirects answer 302 without waiting for the click to be recorded.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, RedirectResponse

from shortlink.dependencies import (
    ServiceContainer,
    get_container,
    get_link_analyzer,
    get_link_creator,
    get_link_redirector,
)
from shortlink.enums import HealthStatus
from shortlink.errors import ValidationError
from shortlink.schemas import AnalyzeResponse, CreateLinkRequest, CreateLinkResponse, ErrorResponse, HealthResponse
from shortlink.service import LinkAnalyzerService, LinkCreatorService, LinkRedirectorService

__all__ = ["router"]

logger = logging.getLogger(__name__)

router = APIRouter()


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


@router.post(
    "/s",
    response_model=CreateLinkResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["links"],
)
async def create_link(
    payload: CreateLinkRequest,
    creator: LinkCreatorService = Depends(get_link_creator),
):
    if not payload.long_url:
        return error_response(400, "long_url is required")

    try:
        short_code = await creator.create(payload.long_url, payload.ttl_seconds)
    except ValidationError as exc:
        return error_response(400, str(exc))

    return CreateLinkResponse(short_code=short_code)


@router.get("/s/{short_code}", status_code=302, tags=["redirect"])
async def redirect_link(
    short_code: str,
    redirector: LinkRedirectorService = Depends(get_link_redirector),
) -> RedirectResponse:
    long_url = await redirector.redirect(short_code)
    return RedirectResponse(url=long_url, status_code=302)


@router.get("/stats/{short_code}", response_model=AnalyzeResponse, tags=["stats"])
async def link_stats(
    short_code: str,
    analyzer: LinkAnalyzerService = Depends(get_link_analyzer),
) -> AnalyzeResponse:
    analytic = await analyzer.analyze(short_code)
    return AnalyzeResponse.from_analytic(analytic)


@router.get("/healthz", response_model=HealthResponse, tags=["health"])
async def healthz(container: ServiceContainer = Depends(get_container)):
    for check in container.health_checks:
        try:
            await check()
        except Exception as exc:
            logger.error(f"Health check failed: {exc}")
            return JSONResponse(
                status_code=503,
                content=HealthResponse(status=HealthStatus.UNHEALTHY).model_dump(mode="json"),
            )
    return HealthResponse(status=HealthStatus.HEALTHY)

"""FastAPI route definitions for the URL shortener REST API.

API Endpoint Overview
=====================
::
    GET  /health
        └─ HealthResponse (200)

    POST /shorturls
        ├─ ShortURLCreate (request body)
        └─ ShortURLCreated (201) or 400/409/500

    GET  /shorturls/{code}
        └─ LinkStats (200) or 400/404

    GET  /{code}
        └─ 302 Redirect or 404/410

Request Flow Diagram — Redirect
===============================
::
    ┌─────────────┐
    │  GET /:code │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ resolver.   │──▶ 404 / 410
    │ resolve()   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ recorder.   │  (enqueue only, never awaited)
    │ record()    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ 302 to      │
    │ original URL│
    └─────────────┘

Key Behaviours
===============
- Core components are injected from the ``ServiceManager``.
- ``ShortenerError`` subclasses become ``{"error": ...}`` responses with
  their own status through the handler registered in ``shorturls.main``.
- Stats lookups are pure reads and never touch click counts.
"""

import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse

from shorturls.allocator import ShortcodeAllocator
from shorturls.clicks import ClickRecorder
from shorturls.dependencies import (
    RequestContext,
    get_allocator,
    get_recorder,
    get_request_context,
    get_resolver,
    get_stats_aggregator,
)
from shorturls.enums import RequestStatus
from shorturls.errors import ShortenerError
from shorturls.metrics import REDIRECTS_TOTAL
from shorturls.resolver import RedirectResolver
from shorturls.schemas import (
    ErrorResponse,
    HealthResponse,
    LinkStats,
    ShortURLCreate,
    ShortURLCreated,
    format_timestamp,
)
from shorturls.stats import StatsAggregator

__all__ = ["router"]

router = APIRouter()


def _errors(*status_codes: int) -> dict[int, dict]:
    return {code: {"model": ErrorResponse} for code in status_codes}


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check() -> HealthResponse:
    return HealthResponse(ok=True, time=format_timestamp(datetime.datetime.now(datetime.timezone.utc)))


@router.post(
    "/shorturls",
    response_model=ShortURLCreated,
    status_code=201,
    responses=_errors(400, 409, 500),
    tags=["links"],
)
async def create_short_url(
    payload: ShortURLCreate,
    ctx: RequestContext = Depends(get_request_context),
    allocator: ShortcodeAllocator = Depends(get_allocator),
) -> ShortURLCreated:
    ctx.logger.debug(f"Shortening requested for {payload.url!r}")
    link = await allocator.allocate(payload.url, payload.shortcode, payload.validity)
    return ShortURLCreated(
        shortLink=f"{ctx.settings.BASE_URL}/{link.shortcode}",
        expiry=format_timestamp(link.expires_at),
    )


@router.get("/shorturls/{code}", response_model=LinkStats, responses=_errors(400, 404), tags=["links"])
async def get_stats(
    code: str,
    stats: StatsAggregator = Depends(get_stats_aggregator),
) -> LinkStats:
    return await stats.get_stats(code)


@router.get("/{code}", responses=_errors(404, 410), tags=["redirect"])
async def redirect_to_url(
    code: str,
    ctx: RequestContext = Depends(get_request_context),
    resolver: RedirectResolver = Depends(get_resolver),
    recorder: ClickRecorder = Depends(get_recorder),
) -> RedirectResponse:
    try:
        destination = await resolver.resolve(code)
    except ShortenerError as exc:
        REDIRECTS_TOTAL.labels(status=RequestStatus.from_status_code(exc.status_code)).inc()
        raise

    recorder.record(code, ctx.metadata)
    REDIRECTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
    ctx.logger.debug(f"Redirect {code} -> {destination} in {ctx.get_duration():.1f}ms")
    return RedirectResponse(url=destination, status_code=302)

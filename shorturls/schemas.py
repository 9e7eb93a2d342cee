"""Pydantic schemas for request/response shapes of the URL shortener.

This module defines the API input and output models plus the Redis cache
payload for links.

Schema Hierarchy
=================
::
    ShortURLCreate (Input)
    ├─ url: Any          (validated by the allocator → InvalidUrl)
    ├─ validity: Any     (minutes, validated → InvalidValidity)
    └─ shortcode: Any    (optional custom code → InvalidShortcode)

    ShortURLCreated (Output, 201)
    ├─ shortLink: str
    └─ expiry: str (ISO-8601 UTC)

    LinkStats (Output, 200)
    ├─ shortcode, url, createdAt, expiry
    ├─ totalClicks: int
    └─ clicks: list[ClickOut]

    HealthResponse (Output)
    ├─ ok: bool
    └─ time: str

Key Behaviours
===============
- Input fields are deliberately loose: invalid values are reported as
  ``400`` with the service's own error messages instead of FastAPI's
  generic ``422`` validation payload.
- Timestamps are serialised as ISO-8601 UTC with millisecond precision
  and a ``Z`` suffix.
- ``ClickOut`` keeps the snake_case ``user_agent`` key of the click log.

Classes:
    ShortURLCreate:  Input schema for link creation.
    ShortURLCreated:  Output schema for created links.
    ClickOut:  One click as exposed by the stats endpoint.
    LinkStats:  Output schema for link statistics.
    HealthResponse:  Output schema for the health check.
    CachedLinkPayload:  Redis cache payload for a link.
    ErrorResponse:  Body of every error response.
"""

import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

__all__ = [
    "ShortURLCreate",
    "ShortURLCreated",
    "ClickOut",
    "LinkStats",
    "HealthResponse",
    "CachedLinkPayload",
    "ErrorResponse",
    "format_timestamp",
]


def format_timestamp(value: datetime.datetime) -> str:
    """Render an aware datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    utc = value.astimezone(datetime.timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


class ShortURLCreate(BaseModel):
    url: Any = None
    validity: Any = None
    shortcode: Any = None


class ShortURLCreated(BaseModel):
    shortLink: str
    expiry: str


class ClickOut(BaseModel):
    timestamp: str
    referrer: str
    ip: str
    user_agent: str
    country: str

    @classmethod
    def from_click(cls, click) -> "ClickOut":
        return cls(
            timestamp=format_timestamp(click.timestamp),
            referrer=click.referrer or "",
            ip=click.ip or "",
            user_agent=click.user_agent or "",
            country=click.country or "",
        )


class LinkStats(BaseModel):
    shortcode: str
    url: str
    createdAt: str
    expiry: str
    totalClicks: int
    clicks: list[ClickOut]


class HealthResponse(BaseModel):
    ok: bool
    time: str


class ErrorResponse(BaseModel):
    error: str


class CachedLinkPayload(BaseModel):
    """Redis cache payload for a link on the redirect path."""

    shortcode: str
    original_url: str
    created_at: datetime.datetime
    expires_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)

"""Redis read-through cache for links on the redirect path.

The cache is optional: when ``REDIS_URL`` is unset the resolver goes
straight to the link store. It is never consulted for creation (uniqueness
belongs to the store) or for stats (counts belong to the store).

Flow Diagram — Cached Lookup
============================
::
    ┌─────────────┐
    │ resolve()   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ GET link:*  │
    └──────┬──────┘
    HIT?   │
    ┌──────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Store   │  │ Return  │
│ lookup  │  │ cached  │
└────┬────┘  │ Link    │
     ▼       └─────────┘
┌─────────┐
│ SETEX   │
│ ttl ≤   │
│ expiry  │
└─────────┘

Key Behaviours
===============
- Entry TTL never outlives the link's ``expires_at``.
- Redis errors are logged to the error channel and treated as a miss;
  they never fail a redirect.

Classes:
    LinkCache:  Thin wrapper over ``redis.asyncio.Redis``.

Functions:
    create_redis_client():  Builds the client from a URL.
"""

import datetime
import logging
import math
from collections.abc import Callable

import redis.asyncio as redis

from shorturls.enums import CacheStatus
from shorturls.metrics import LINK_CACHE_LOOKUPS_TOTAL
from shorturls.models import Link
from shorturls.schemas import CachedLinkPayload

__all__ = ["LinkCache", "create_redis_client"]


def create_redis_client(redis_url: str) -> redis.Redis:
    return redis.from_url(redis_url, encoding="utf-8", decode_responses=True)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class LinkCache:
    def __init__(
        self,
        client: redis.Redis,
        errors: logging.Logger,
        ttl_seconds: int = 3600,
        clock: Callable[[], datetime.datetime] = _utcnow,
    ):
        self._client = client
        self._errors = errors
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    @staticmethod
    def key(shortcode: str) -> str:
        return f"link:{shortcode}"

    async def get(self, shortcode: str) -> Link | None:
        try:
            cached = await self._client.get(self.key(shortcode))
        except redis.RedisError as exc:
            self._errors.error(f"Link cache read error for {shortcode}: {exc}")
            return None

        if not cached:
            LINK_CACHE_LOOKUPS_TOTAL.labels(cache_hit=CacheStatus.MISS).inc()
            return None

        try:
            payload = CachedLinkPayload.model_validate_json(cached)
        except ValueError as exc:
            self._errors.error(f"Link cache deserialization error for {shortcode}: {exc}")
            return None

        LINK_CACHE_LOOKUPS_TOTAL.labels(cache_hit=CacheStatus.HIT).inc()
        return Link(
            shortcode=payload.shortcode,
            original_url=payload.original_url,
            created_at=payload.created_at,
            expires_at=payload.expires_at,
        )

    async def set(self, link: Link) -> None:
        remaining = (link.expires_at - self._clock()).total_seconds()
        ttl = min(self._ttl_seconds, math.ceil(remaining))
        if ttl <= 0:
            return

        payload = CachedLinkPayload.model_validate(link)
        try:
            await self._client.setex(self.key(link.shortcode), ttl, payload.model_dump_json())
        except redis.RedisError as exc:
            self._errors.error(f"Link cache write error for {link.shortcode}: {exc}")

    async def close(self) -> None:
        await self._client.aclose()

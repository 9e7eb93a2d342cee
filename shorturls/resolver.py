"""Redirect Resolver — turns a shortcode into its destination URL.

Flow Diagram — resolve()
========================
::
    ┌─────────────┐
    │  GET /:code │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ format ok?  │──NO──▶ LinkNotFound
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ cache / store│──NONE──▶ LinkNotFound
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ now >       │──YES──▶ LinkExpired
    │ expires_at? │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ original_url│
    └─────────────┘

Key Behaviours
===============
- A malformed code is indistinguishable from an unknown one.
- A link is still valid at exactly ``expires_at`` and expired strictly after.
- Pure read: recording the click is the caller's job.
"""

import datetime
from collections.abc import Callable

from shorturls.cache import LinkCache
from shorturls.errors import LinkExpired, LinkNotFound
from shorturls.models import Link
from shorturls.store import LinkStore
from shorturls.validation import is_valid_shortcode

__all__ = ["RedirectResolver"]


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class RedirectResolver:
    def __init__(
        self,
        store: LinkStore,
        cache: LinkCache | None = None,
        clock: Callable[[], datetime.datetime] = _utcnow,
    ):
        self._store = store
        self._cache = cache
        self._clock = clock

    async def resolve(self, code: str) -> str:
        if not is_valid_shortcode(code):
            raise LinkNotFound()

        link = await self._lookup(code)
        if link is None:
            raise LinkNotFound()

        if link.is_expired(self._clock()):
            raise LinkExpired()
        return link.original_url

    async def _lookup(self, code: str) -> Link | None:
        if self._cache is not None:
            cached = await self._cache.get(code)
            if cached is not None:
                return cached

        link = await self._store.get_link(code)
        if link is not None and self._cache is not None:
            await self._cache.set(link)
        return link

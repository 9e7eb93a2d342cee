"""Unit tests for redirect resolution and expiry."""

import datetime
from unittest.mock import AsyncMock

import pytest

from shorturls.cache import LinkCache
from shorturls.errors import LinkExpired, LinkNotFound
from shorturls.models import Link
from shorturls.resolver import RedirectResolver
from shorturls.store import LinkStore

CREATED = datetime.datetime(2026, 10, 18, 12, 0, 0, tzinfo=datetime.timezone.utc)


@pytest.fixture
def link() -> Link:
    return Link(
        shortcode="abcd1234",
        original_url="https://example.com",
        created_at=CREATED,
        expires_at=CREATED + datetime.timedelta(minutes=1),
    )


@pytest.fixture
def mock_store(link: Link) -> AsyncMock:
    store = AsyncMock(spec=LinkStore)
    store.get_link.return_value = link
    return store


def _at(seconds: float):
    return lambda: CREATED + datetime.timedelta(seconds=seconds)


@pytest.mark.asyncio
@pytest.mark.parametrize("seconds", [0, 59, 60])
async def test_resolves_until_expiry(mock_store, seconds) -> None:
    resolver = RedirectResolver(mock_store, clock=_at(seconds))
    assert await resolver.resolve("abcd1234") == "https://example.com"


@pytest.mark.asyncio
@pytest.mark.parametrize("seconds", [60.001, 61, 3600])
async def test_expired_strictly_after(mock_store, seconds) -> None:
    resolver = RedirectResolver(mock_store, clock=_at(seconds))
    with pytest.raises(LinkExpired):
        await resolver.resolve("abcd1234")


@pytest.mark.asyncio
async def test_unknown_code(mock_store) -> None:
    mock_store.get_link.return_value = None
    with pytest.raises(LinkNotFound):
        await RedirectResolver(mock_store).resolve("missing1")


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["abc", "a" * 21, "abc-def", ""])
async def test_bad_format_is_not_found_without_lookup(mock_store, code) -> None:
    with pytest.raises(LinkNotFound):
        await RedirectResolver(mock_store).resolve(code)
    mock_store.get_link.assert_not_awaited()


@pytest.mark.asyncio
async def test_cache_hit_skips_store(mock_store, link) -> None:
    cache = AsyncMock(spec=LinkCache)
    cache.get.return_value = link

    resolver = RedirectResolver(mock_store, cache=cache, clock=_at(1))
    assert await resolver.resolve("abcd1234") == "https://example.com"
    mock_store.get_link.assert_not_awaited()
    cache.set.assert_not_awaited()


@pytest.mark.asyncio
async def test_cache_miss_populates_cache(mock_store, link) -> None:
    cache = AsyncMock(spec=LinkCache)
    cache.get.return_value = None

    resolver = RedirectResolver(mock_store, cache=cache, clock=_at(1))
    assert await resolver.resolve("abcd1234") == "https://example.com"
    mock_store.get_link.assert_awaited_once_with("abcd1234")
    cache.set.assert_awaited_once_with(link)


@pytest.mark.asyncio
async def test_cached_link_still_expires(mock_store, link) -> None:
    cache = AsyncMock(spec=LinkCache)
    cache.get.return_value = link

    with pytest.raises(LinkExpired):
        await RedirectResolver(mock_store, cache=cache, clock=_at(120)).resolve("abcd1234")

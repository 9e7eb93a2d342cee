"""Link store tests against a throwaway SQLite database."""

import asyncio
import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from shorturls.errors import UniquenessViolation
from shorturls.models import Click
from shorturls.store import LinkStore

UTC = datetime.timezone.utc


def _click(shortcode: str, when: datetime.datetime, ip: str = "198.51.100.1") -> Click:
    return Click(shortcode=shortcode, timestamp=when, referrer="", ip=ip, user_agent="", country="Unknown")


@pytest.mark.asyncio
async def test_insert_and_get_link(store: LinkStore, make_link) -> None:
    await store.insert_link(make_link("abcd1234", url="https://example.com/x"))

    link = await store.get_link("abcd1234")
    assert link is not None
    assert link.original_url == "https://example.com/x"
    assert link.created_at.tzinfo is not None
    assert link.expires_at - link.created_at == datetime.timedelta(minutes=30)
    assert await store.shortcode_exists("abcd1234")


@pytest.mark.asyncio
async def test_get_missing_link(store: LinkStore) -> None:
    assert await store.get_link("missing1") is None
    assert not await store.shortcode_exists("missing1")


@pytest.mark.asyncio
async def test_timestamps_normalised_to_utc(store: LinkStore, make_link) -> None:
    offset = datetime.timezone(datetime.timedelta(hours=5, minutes=30))
    created = datetime.datetime(2026, 3, 1, 10, 0, tzinfo=offset)
    await store.insert_link(make_link("tzcheck1", created_at=created, minutes=1))

    link = await store.get_link("tzcheck1")
    assert link.created_at == created
    assert link.created_at.utcoffset() == datetime.timedelta(0)
    assert link.expires_at == datetime.datetime(2026, 3, 1, 4, 31, tzinfo=UTC)


@pytest.mark.asyncio
async def test_shortcode_lookup_is_case_sensitive(store: LinkStore, make_link) -> None:
    await store.insert_link(make_link("CaseCode"))
    assert await store.get_link("casecode") is None


@pytest.mark.asyncio
async def test_duplicate_insert_raises_uniqueness_violation(store: LinkStore, make_link) -> None:
    await store.insert_link(make_link("dupe1234"))
    with pytest.raises(UniquenessViolation) as exc_info:
        await store.insert_link(make_link("dupe1234", url="https://other.example.com"))
    assert exc_info.value.shortcode == "dupe1234"

    link = await store.get_link("dupe1234")
    assert link.original_url == "https://example.com"


@pytest.mark.asyncio
async def test_concurrent_inserts_exactly_one_wins(store: LinkStore, make_link) -> None:
    results = await asyncio.gather(
        store.insert_link(make_link("race1234", url="https://a.example.com")),
        store.insert_link(make_link("race1234", url="https://b.example.com")),
        return_exceptions=True,
    )
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(failures) == 1
    assert isinstance(failures[0], UniquenessViolation)


@pytest.mark.asyncio
async def test_click_count_and_recent_order(store: LinkStore, make_link) -> None:
    await store.insert_link(make_link("clicky12"))
    await store.insert_link(make_link("other123"))
    start = datetime.datetime(2026, 1, 1, tzinfo=UTC)
    for i in range(5):
        await store.insert_click(_click("clicky12", start + datetime.timedelta(minutes=i), ip=f"10.0.0.{i}"))
    await store.insert_click(_click("other123", start))

    assert await store.get_click_count("clicky12") == 5
    assert await store.get_click_count("other123") == 1
    assert await store.get_click_count("nothing1") == 0

    recent = await store.get_recent_clicks("clicky12", limit=3)
    assert [c.ip for c in recent] == ["10.0.0.4", "10.0.0.3", "10.0.0.2"]
    assert recent[0].timestamp == start + datetime.timedelta(minutes=4)


@pytest.mark.asyncio
async def test_click_for_unknown_link_is_rejected(store: LinkStore) -> None:
    with pytest.raises(IntegrityError):
        await store.insert_click(_click("ghost123", datetime.datetime.now(UTC)))


@pytest.mark.asyncio
async def test_delete_link_cascades_to_clicks(store: LinkStore, make_link) -> None:
    await store.insert_link(make_link("gone1234"))
    for _ in range(3):
        await store.insert_click(_click("gone1234", datetime.datetime.now(UTC)))

    assert await store.delete_link("gone1234") is True
    assert await store.get_link("gone1234") is None
    assert await store.get_click_count("gone1234") == 0
    assert await store.delete_link("gone1234") is False

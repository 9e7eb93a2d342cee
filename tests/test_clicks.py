"""Tests for click metadata extraction and the background click recorder."""

import asyncio
import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from shorturls.clicks import (
    ClickRecorder,
    RequestMetadata,
    country_from_headers,
    extract_click_metadata,
)
from shorturls.models import Click
from shorturls.store import LinkStore

NOW = datetime.datetime(2026, 10, 18, 12, 0, 0, tzinfo=datetime.timezone.utc)


# ============================================================================
# METADATA EXTRACTION
# ============================================================================


def test_ip_prefers_first_forwarded_entry() -> None:
    meta = RequestMetadata(headers={"X-Forwarded-For": " 203.0.113.9 , 10.0.0.2"}, client_host="127.0.0.1")
    assert extract_click_metadata(meta).ip == "203.0.113.9"


def test_ip_falls_back_to_peer_then_unknown() -> None:
    assert extract_click_metadata(RequestMetadata(client_host="192.0.2.4")).ip == "192.0.2.4"
    assert extract_click_metadata(RequestMetadata(headers={"x-forwarded-for": ""})).ip == "Unknown"


def test_referrer_and_user_agent() -> None:
    meta = RequestMetadata(headers={"Referrer": "https://ref.example.com", "User-Agent": "curl/8.0"})
    details = extract_click_metadata(meta)
    assert details.referrer == "https://ref.example.com"
    assert details.user_agent == "curl/8.0"


def test_referer_spelling_wins() -> None:
    meta = RequestMetadata(headers={"Referer": "https://a.example.com", "Referrer": "https://b.example.com"})
    assert extract_click_metadata(meta).referrer == "https://a.example.com"


def test_missing_headers_are_empty() -> None:
    details = extract_click_metadata(RequestMetadata())
    assert details.referrer == ""
    assert details.user_agent == ""
    assert details.country == "Unknown"


@pytest.mark.parametrize(
    ("headers", "expected"),
    [
        ({"CF-IPCountry": "DE", "Accept-Language": "en-US"}, "DE"),
        ({"X-Country": "FR"}, "FR"),
        ({"Accept-Language": "pt-br,pt;q=0.9"}, "BR"),
        ({"Accept-Language": "en;q=0.8, fr-CA"}, "CA"),
        ({"Accept-Language": "en"}, "Unknown"),
        ({}, "Unknown"),
    ],
)
def test_country_fallback_order(headers, expected: str) -> None:
    assert country_from_headers(RequestMetadata(headers=headers)) == expected


def test_country_resolver_is_pluggable() -> None:
    details = extract_click_metadata(RequestMetadata(client_host="192.0.2.1"), country_resolver=lambda meta: "NZ")
    assert details.country == "NZ"


# ============================================================================
# RECORDER
# ============================================================================


@pytest.fixture
def mock_store() -> AsyncMock:
    return AsyncMock(spec=LinkStore)


@pytest.fixture
def errors() -> MagicMock:
    return MagicMock()


@pytest.mark.asyncio
async def test_record_writes_click_in_background(mock_store, errors) -> None:
    recorder = ClickRecorder(mock_store, errors, clock=lambda: NOW)
    recorder.start()
    try:
        recorder.record("abcd1234", RequestMetadata(headers={"User-Agent": "ua"}, client_host="192.0.2.5"))
        mock_store.insert_click.assert_not_awaited()

        await recorder.drain()
        click: Click = mock_store.insert_click.await_args.args[0]
        assert click.shortcode == "abcd1234"
        assert click.timestamp == NOW
        assert click.ip == "192.0.2.5"
        assert click.user_agent == "ua"
    finally:
        await recorder.stop()


@pytest.mark.asyncio
async def test_write_failure_is_logged_and_not_retried(mock_store, errors) -> None:
    mock_store.insert_click.side_effect = RuntimeError("boom")
    recorder = ClickRecorder(mock_store, errors)
    recorder.start()
    try:
        recorder.record("abcd1234", RequestMetadata())
        recorder.record("abcd1234", RequestMetadata())
        await recorder.drain()
    finally:
        await recorder.stop()

    assert mock_store.insert_click.await_count == 2
    assert errors.error.call_count == 2
    assert not recorder.running


@pytest.mark.asyncio
async def test_full_queue_drops_click(mock_store, errors) -> None:
    recorder = ClickRecorder(mock_store, errors, queue_size=1)
    recorder.record("abcd1234", RequestMetadata())
    recorder.record("abcd1234", RequestMetadata())

    assert recorder.pending == 1
    errors.error.assert_called_once()


@pytest.mark.asyncio
async def test_stop_drains_pending_clicks(mock_store, errors) -> None:
    gate = asyncio.Event()

    async def slow_insert(click):
        await gate.wait()
        return click

    mock_store.insert_click.side_effect = slow_insert
    recorder = ClickRecorder(mock_store, errors)
    recorder.start()
    for _ in range(3):
        recorder.record("abcd1234", RequestMetadata())

    stopping = asyncio.create_task(recorder.stop())
    await asyncio.sleep(0)
    gate.set()
    await stopping

    assert mock_store.insert_click.await_count == 3
    errors.error.assert_not_called()


@pytest.mark.asyncio
async def test_metadata_failure_is_logged_not_raised(mock_store, errors) -> None:
    def geo_lookup(metadata: RequestMetadata) -> str:
        raise RuntimeError("geo service down")

    recorder = ClickRecorder(mock_store, errors, country_resolver=geo_lookup)
    recorder.record("abcd1234", RequestMetadata(client_host="192.0.2.1"))

    assert recorder.pending == 0
    errors.error.assert_called_once()
    assert "abcd1234" in errors.error.call_args.args[0]

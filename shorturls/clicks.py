"""Click Recorder — best-effort, non-blocking capture of redirect metadata.

A redirect handler calls ``ClickRecorder.record()`` after a successful
resolution. ``record`` is a plain (non-async) method: it only builds the
event and drops it on a bounded in-process queue, so it cannot delay or
fail the redirect. A background worker owned by the recorder drains the
queue into the link store.

Flow Diagram — Click Pipeline
=============================
::
    ┌─────────────┐        ┌─────────────┐
    │ redirect    │        │ 302 sent to │
    │ handler     │───────▶│ client      │
    └──────┬──────┘        └─────────────┘
           │ record() (put_nowait)
           ▼
    ┌─────────────┐  FULL  ┌─────────────┐
    │ asyncio     │───────▶│ drop + log  │
    │ Queue       │        │ errors      │
    └──────┬──────┘        └─────────────┘
           ▼
    ┌─────────────┐  FAIL  ┌─────────────┐
    │ worker:     │───────▶│ log errors, │
    │ insert_click│        │ no retry    │
    └─────────────┘        └─────────────┘

Header Fallback Order
=====================
- ip: first ``X-Forwarded-For`` entry → peer address → ``"Unknown"``
- referrer: ``Referer`` → ``Referrer`` → ``""``
- user agent: ``User-Agent`` → ``""``
- country (``country_from_headers``): ``CF-IPCountry`` → ``X-Country`` →
  region of the first ``xx-YY`` tag in ``Accept-Language`` → ``"Unknown"``

Key Behaviours
===============
- No ordering exists between the redirect response and the click write.
- The worker is not tied to any request, so a client disconnect does not
  cancel an accepted click.
- ``stop()`` drains pending events before shutting the worker down.
- Geo derivation is a pluggable ``country_resolver`` callable.
"""

import asyncio
import datetime
import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from starlette.requests import Request

from shorturls.metrics import CLICK_WRITES_FAILED_TOTAL, CLICKS_DROPPED_TOTAL, CLICKS_RECORDED_TOTAL
from shorturls.models import Click
from shorturls.store import LinkStore

__all__ = [
    "RequestMetadata",
    "ClickMetadata",
    "ClickRecorder",
    "client_ip",
    "country_from_headers",
    "extract_click_metadata",
]

UNKNOWN = "Unknown"

_LANGUAGE_REGION = re.compile(r"[A-Za-z]{2}-([A-Za-z]{2})")


@dataclass(frozen=True)
class RequestMetadata:
    """The parts of an inbound redirect request that clicks are derived from."""

    headers: Mapping[str, str] = field(default_factory=dict)
    client_host: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", {k.lower(): v for k, v in self.headers.items()})

    @classmethod
    def from_request(cls, request: Request) -> "RequestMetadata":
        return cls(
            headers=dict(request.headers),
            client_host=request.client.host if request.client else None,
        )

    def header(self, name: str) -> str:
        return (self.headers.get(name.lower()) or "").strip()


@dataclass(frozen=True)
class ClickMetadata:
    ip: str
    referrer: str
    user_agent: str
    country: str


def country_from_headers(metadata: RequestMetadata) -> str:
    country = metadata.header("cf-ipcountry") or metadata.header("x-country")
    if country:
        return country

    match = _LANGUAGE_REGION.search(metadata.header("accept-language"))
    return match.group(1).upper() if match else UNKNOWN


def client_ip(metadata: RequestMetadata) -> str:
    forwarded = metadata.header("x-forwarded-for").split(",")[0].strip()
    return forwarded or metadata.client_host or UNKNOWN


def extract_click_metadata(
    metadata: RequestMetadata,
    country_resolver: Callable[[RequestMetadata], str] = country_from_headers,
) -> ClickMetadata:
    return ClickMetadata(
        ip=client_ip(metadata),
        referrer=metadata.header("referer") or metadata.header("referrer"),
        user_agent=metadata.header("user-agent"),
        country=country_resolver(metadata) or UNKNOWN,
    )


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class ClickRecorder:
    """Owns the click queue and the worker that writes it to the store."""

    def __init__(
        self,
        store: LinkStore,
        errors: logging.Logger,
        queue_size: int = 1000,
        country_resolver: Callable[[RequestMetadata], str] = country_from_headers,
        clock: Callable[[], datetime.datetime] = _utcnow,
        drain_timeout: float = 5.0,
    ):
        self._store = store
        self._errors = errors
        self._queue: asyncio.Queue[Click] = asyncio.Queue(maxsize=queue_size)
        self._country_resolver = country_resolver
        self._clock = clock
        self._drain_timeout = drain_timeout
        self._worker: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if not self.running:
            self._worker = asyncio.create_task(self._run(), name="click-recorder")

    async def stop(self) -> None:
        if self._worker is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=self._drain_timeout)
        except asyncio.TimeoutError:
            self._errors.error(f"Click recorder stopped with {self.pending} unwritten clicks")
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def drain(self) -> None:
        """Wait until every queued click has been attempted."""
        await self._queue.join()

    def record(self, code: str, metadata: RequestMetadata) -> None:
        try:
            details = extract_click_metadata(metadata, self._country_resolver)
            click = Click(
                shortcode=code,
                timestamp=self._clock(),
                referrer=details.referrer,
                ip=details.ip,
                user_agent=details.user_agent,
                country=details.country,
            )
        except Exception as exc:
            CLICK_WRITES_FAILED_TOTAL.inc()
            self._errors.error(f"Click metadata error for {code}: {exc!r}")
            return

        try:
            self._queue.put_nowait(click)
        except asyncio.QueueFull:
            CLICKS_DROPPED_TOTAL.inc()
            self._errors.error(f"Click queue full, dropped click for {code}")

    async def _run(self) -> None:
        while True:
            click = await self._queue.get()
            try:
                await self._write(click)
            finally:
                self._queue.task_done()

    async def _write(self, click: Click) -> None:
        try:
            await self._store.insert_click(click)
        except Exception as exc:
            CLICK_WRITES_FAILED_TOTAL.inc()
            self._errors.error(f"Click insert error for {click.shortcode}: {exc!r}")
            return
        CLICKS_RECORDED_TOTAL.inc()

"""Shortcode Allocator — decides and reserves the shortcode for a new link.

Flow Diagram — allocate()
=========================
::
    ┌─────────────┐
    │ POST        │
    │ /shorturls  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Validate url│──────▶ InvalidUrl
    │ & validity  │──────▶ InvalidValidity
    └──────┬──────┘
    CUSTOM CODE?
    ┌──────┴───────┐
    │ YES          │ NO
    ▼              ▼
┌──────────┐  ┌──────────────┐
│ format?  │  │ nanoid(7),   │
│ taken?   │  │ pre-check,   │
│          │  │ ≤ 6 attempts │
└────┬─────┘  └──────┬───────┘
     │               │ all taken ──▶ AllocationExhausted
     ▼               ▼
    ┌─────────────────┐
    │ insert_link()   │
    │ UNIQUE violated │──────▶ ShortcodeTaken
    └──────┬──────────┘
           ▼
    ┌─────────────┐
    │ Link        │
    └─────────────┘

Key Behaviours
===============
- Validation happens before any store mutation.
- The existence pre-check only saves a round trip; the store's unique
  constraint is what actually guarantees uniqueness, and a late violation
  surfaces as ``ShortcodeTaken`` exactly like a pre-check hit.
- Codes equal to a fixed route name count as taken.
- ``code_generator`` and ``clock`` are injectable for tests.

Classes:
    ShortcodeAllocator:  Creates links with a unique shortcode.

Functions:
    generate_shortcode():  Uniform random alphanumeric code via nanoid.
"""

import datetime
import logging
from collections.abc import Callable
from typing import Any

from nanoid import generate

from shorturls.enums import RequestStatus
from shorturls.errors import AllocationExhausted, ShortcodeTaken, ShortenerError, UniquenessViolation
from shorturls.metrics import LINKS_CREATED_TOTAL
from shorturls.models import Link
from shorturls.store import LinkStore
from shorturls.validation import RESERVED_SHORTCODES, ensure_valid_shortcode, parse_validity, validate_url

__all__ = ["ALPHABET", "ShortcodeAllocator", "generate_shortcode"]

ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"


def generate_shortcode(length: int = 7) -> str:
    assert isinstance(length, int) and length > 0, f"length must be a positive integer, got {length!r}"
    return generate(ALPHABET, length)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class ShortcodeAllocator:
    """Validates creation requests and persists the resulting link."""

    def __init__(
        self,
        store: LinkStore,
        code_length: int = 7,
        max_attempts: int = 6,
        default_validity_minutes: int = 30,
        code_generator: Callable[[int], str] = generate_shortcode,
        clock: Callable[[], datetime.datetime] = _utcnow,
        logger: logging.Logger | None = None,
    ):
        self._store = store
        self._logger = logger or logging.getLogger("shorturls.service")
        self._code_length = code_length
        self._max_attempts = max_attempts
        self._default_validity_minutes = default_validity_minutes
        self._code_generator = code_generator
        self._clock = clock

    async def allocate(self, url: Any, requested_code: Any = None, validity_minutes: Any = None) -> Link:
        """Create a link for ``url``.

        Args:
            url: Destination; must be an absolute http(s) URL.
            requested_code: Optional custom shortcode. ``None`` or ``""``
                means generate one.
            validity_minutes: Optional positive number of minutes; defaults
                to the configured validity.

        Returns:
            Link: The persisted link.

        Raises:
            InvalidUrl, InvalidValidity, InvalidShortcode: Bad input.
            ShortcodeTaken: The custom code already exists.
            AllocationExhausted: Every generated candidate collided.
        """
        try:
            link = await self._allocate(url, requested_code, validity_minutes)
        except ShortenerError as exc:
            LINKS_CREATED_TOTAL.labels(status=RequestStatus.from_status_code(exc.status_code)).inc()
            raise
        LINKS_CREATED_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        return link

    async def _allocate(self, url: Any, requested_code: Any, validity_minutes: Any) -> Link:
        original_url = validate_url(url)
        minutes = parse_validity(validity_minutes, self._default_validity_minutes)

        if requested_code is None or requested_code == "":
            shortcode = await self._generate_unique_code()
        else:
            shortcode = ensure_valid_shortcode(requested_code)
            if await self._is_taken(shortcode):
                raise ShortcodeTaken()

        created_at = self._clock()
        link = Link(
            shortcode=shortcode,
            original_url=original_url,
            created_at=created_at,
            expires_at=created_at + datetime.timedelta(minutes=minutes),
        )

        try:
            await self._store.insert_link(link)
        except UniquenessViolation as exc:
            self._logger.warning(f"Late shortcode collision on insert: {exc.shortcode}")
            raise ShortcodeTaken() from exc

        self._logger.info(f"Link created: {shortcode} -> {original_url} (expires {link.expires_at.isoformat()})")
        return link

    async def _generate_unique_code(self) -> str:
        for attempt in range(1, self._max_attempts + 1):
            candidate = self._code_generator(self._code_length)
            if not await self._is_taken(candidate):
                return candidate
            self._logger.debug(f"Generated shortcode {candidate} collided (attempt {attempt})")
        raise AllocationExhausted()

    async def _is_taken(self, shortcode: str) -> bool:
        if shortcode in RESERVED_SHORTCODES:
            return True
        return await self._store.shortcode_exists(shortcode)

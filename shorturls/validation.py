"""Input rules shared by creation, redirect and stats lookups."""

import re
from typing import Any
from urllib.parse import urlsplit

import validators

from shorturls.errors import InvalidShortcode, InvalidUrl, InvalidValidity

__all__ = [
    "SHORTCODE_PATTERN",
    "RESERVED_SHORTCODES",
    "MAX_VALIDITY_MINUTES",
    "is_valid_shortcode",
    "ensure_valid_shortcode",
    "validate_url",
    "parse_validity",
]

SHORTCODE_PATTERN = re.compile(r"[A-Za-z0-9]{4,20}")

# Paths served by fixed routes; a link under one of these could never be reached.
RESERVED_SHORTCODES = frozenset({"health", "metrics", "shorturls", "docs", "redoc"})

_ALLOWED_SCHEMES = ("http", "https")

# 100 years; keeps created_at + validity inside the datetime range
MAX_VALIDITY_MINUTES = 100 * 365 * 24 * 60

# Bounded digit count so int() never sees an oversized string
_VALIDITY_STRING = re.compile(r"\s*([+-]?\d{1,18})(?:\.0*)?\s*")


def is_valid_shortcode(value: Any) -> bool:
    return isinstance(value, str) and SHORTCODE_PATTERN.fullmatch(value) is not None


def ensure_valid_shortcode(value: Any) -> str:
    if not is_valid_shortcode(value):
        raise InvalidShortcode()
    return value


def validate_url(value: Any) -> str:
    """Return ``value`` if it is an absolute http(s) URL, else raise ``InvalidUrl``."""
    if not isinstance(value, str) or not value:
        raise InvalidUrl()
    if urlsplit(value).scheme.lower() not in _ALLOWED_SCHEMES:
        raise InvalidUrl()
    if not validators.url(value):
        raise InvalidUrl()
    return value


def parse_validity(value: Any, default: int) -> int:
    """Parse a validity window in minutes.

    Accepts integers, integral floats and decimal strings with an optional
    all-zero fraction (``"5"``, ``"5.0"``). ``None`` yields ``default``.
    Windows longer than ``MAX_VALIDITY_MINUTES`` are rejected.
    """
    if value is None:
        return default
    # bool is an int subclass; true/false are not durations
    if isinstance(value, bool):
        raise InvalidValidity()

    if isinstance(value, int):
        minutes = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise InvalidValidity()
        minutes = int(value)
    elif isinstance(value, str) and (match := _VALIDITY_STRING.fullmatch(value)):
        minutes = int(match.group(1))
    else:
        raise InvalidValidity()

    if not 0 < minutes <= MAX_VALIDITY_MINUTES:
        raise InvalidValidity()
    return minutes

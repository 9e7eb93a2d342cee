"""Shared enums for the URL shortener service.

This module defines the status values used as metric labels and log fields.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["RequestStatus", "CacheStatus"]


class RequestStatus(StrEnum):
    """Request outcome values for metrics and logging."""

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    ERROR = "error"

    @classmethod
    def from_status_code(cls, status_code: int) -> "RequestStatus":
        """Map an HTTP status code onto an outcome, falling back to ERROR."""
        return {
            400: cls.VALIDATION_ERROR,
            404: cls.NOT_FOUND,
            409: cls.CONFLICT,
            410: cls.EXPIRED,
        }.get(status_code, cls.SUCCESS if status_code < 400 else cls.ERROR)


class CacheStatus(StrEnum):
    """Cache status values for metrics."""

    HIT = "true"
    MISS = "false"

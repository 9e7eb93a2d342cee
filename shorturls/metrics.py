"""Prometheus counters for the shortener core.

HTTP-level metrics (latency, status codes) come from
``prometheus_fastapi_instrumentator`` in ``shorturls.main``; the counters
here track domain outcomes.
"""

from prometheus_client import Counter

__all__ = [
    "LINKS_CREATED_TOTAL",
    "REDIRECTS_TOTAL",
    "CLICKS_RECORDED_TOTAL",
    "CLICK_WRITES_FAILED_TOTAL",
    "CLICKS_DROPPED_TOTAL",
    "LINK_CACHE_LOOKUPS_TOTAL",
]

LINKS_CREATED_TOTAL = Counter(
    "shorturls_links_created_total",
    "Link creation attempts by outcome",
    ["status"],
)
REDIRECTS_TOTAL = Counter(
    "shorturls_redirects_total",
    "Redirect resolutions by outcome",
    ["status"],
)
CLICKS_RECORDED_TOTAL = Counter(
    "shorturls_clicks_recorded_total",
    "Click events written to the link store",
)
CLICK_WRITES_FAILED_TOTAL = Counter(
    "shorturls_click_writes_failed_total",
    "Click events whose store write failed",
)
CLICKS_DROPPED_TOTAL = Counter(
    "shorturls_clicks_dropped_total",
    "Click events dropped because the recorder queue was full",
)
LINK_CACHE_LOOKUPS_TOTAL = Counter(
    "shorturls_link_cache_lookups_total",
    "Link cache lookups on the redirect path",
    ["cache_hit"],
)

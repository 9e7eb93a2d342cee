"""Stats Aggregator — link summary plus click history for one shortcode."""

from shorturls.errors import LinkNotFound
from shorturls.schemas import ClickOut, LinkStats, format_timestamp
from shorturls.store import LinkStore
from shorturls.validation import ensure_valid_shortcode

__all__ = ["StatsAggregator"]


class StatsAggregator:
    def __init__(self, store: LinkStore, recent_limit: int = 200):
        self._store = store
        self._recent_limit = recent_limit

    async def get_stats(self, code: str) -> LinkStats:
        """Summarise a link.

        Raises:
            InvalidShortcode: ``code`` is not 4-20 alphanumerics.
            LinkNotFound: No link has this code.
        """
        ensure_valid_shortcode(code)

        link = await self._store.get_link(code)
        if link is None:
            raise LinkNotFound()

        total = await self._store.get_click_count(code)
        recent = await self._store.get_recent_clicks(code, self._recent_limit)

        return LinkStats(
            shortcode=link.shortcode,
            url=link.original_url,
            createdAt=format_timestamp(link.created_at),
            expiry=format_timestamp(link.expires_at),
            totalClicks=total,
            clicks=[ClickOut.from_click(click) for click in recent],
        )

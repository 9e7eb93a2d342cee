"""Link Store — durable storage for links and their click log.

Each operation opens its own ``AsyncSession`` from the injected factory, so
the store can be shared by concurrent request handlers and by the click
recorder's background worker without any locking on the caller's side.

Flow Diagram — insert_link()
============================
::
    ┌─────────────┐
    │ insert_link │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ INSERT INTO │
    │ links       │
    └──────┬──────┘
    UNIQUE OK?
    ┌──────┴──────┐
    │ YES         │ NO (IntegrityError)
    ▼             ▼
┌─────────┐  ┌──────────────────┐
│ COMMIT  │  │ ROLLBACK, raise  │
│ return  │  │ UniquenessViolation│
└─────────┘  └──────────────────┘

Key Behaviours
===============
- Uniqueness is decided by the database constraint inside the INSERT, so
  two concurrent inserts of one shortcode yield one success and one
  ``UniquenessViolation``.
- Clicks are append-only; recent clicks are ordered by insertion id,
  newest first.
- ``delete_link`` removes a link together with all of its clicks.

Classes:
    LinkStore:  Async repository over the ``links`` and ``clicks`` tables.
"""

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shorturls.errors import UniquenessViolation
from shorturls.models import Click, Link

__all__ = ["LinkStore"]


class LinkStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def insert_link(self, link: Link) -> Link:
        async with self._session_factory() as session:
            session.add(link)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise UniquenessViolation(link.shortcode) from exc
            return link

    async def get_link(self, shortcode: str) -> Link | None:
        async with self._session_factory() as session:
            result = await session.execute(select(Link).where(Link.shortcode == shortcode))
            return result.scalar_one_or_none()

    async def shortcode_exists(self, shortcode: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(select(Link.id).where(Link.shortcode == shortcode))
            return result.first() is not None

    async def insert_click(self, click: Click) -> Click:
        async with self._session_factory() as session:
            session.add(click)
            await session.commit()
            return click

    async def get_click_count(self, shortcode: str) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count(Click.id)).where(Click.shortcode == shortcode)
            )
            return int(result.scalar_one())

    async def get_recent_clicks(self, shortcode: str, limit: int) -> list[Click]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Click)
                .where(Click.shortcode == shortcode)
                .order_by(Click.id.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    async def delete_link(self, shortcode: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(delete(Link).where(Link.shortcode == shortcode))
            await session.commit()
            return result.rowcount > 0

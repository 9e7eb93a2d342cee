"""SQLAlchemy ORM models for the URL shortener.

This module defines the two persisted tables: links keyed by a unique
shortcode, and an append-only log of clicks referencing a link.

Data Model Layout
=================
::
    links table
    ├─ id (INTEGER PRIMARY KEY)
    ├─ shortcode (VARCHAR(20) UNIQUE, INDEXED)
    ├─ original_url (TEXT NOT NULL)
    ├─ created_at (TIMESTAMPTZ NOT NULL, UTC)
    └─ expires_at (TIMESTAMPTZ NOT NULL, UTC)

    clicks table
    ├─ id (INTEGER PRIMARY KEY, insertion order)
    ├─ shortcode (VARCHAR(20) → links.shortcode ON DELETE CASCADE, INDEXED)
    ├─ timestamp (TIMESTAMPTZ NOT NULL, UTC)
    ├─ referrer (TEXT)
    ├─ ip (VARCHAR(64))
    ├─ user_agent (TEXT)
    └─ country (VARCHAR(64))

Class Relationship Diagram
=========================
::
    Link 1 ──── * Click
         (cascade delete)

How to Use
===========
**Step 1 — Import**::
    from shorturls.models import Click, Link

**Step 2 — Build a link**::
    link = Link(shortcode="abc1234", original_url="https://example.com",
                created_at=now, expires_at=now + timedelta(minutes=30))

**Step 3 — Persist it through the store**::
    await store.insert_link(link)

Key Behaviours
===============
- The UNIQUE constraint on ``links.shortcode`` is the authoritative
  uniqueness guard; any pre-check is only an optimisation.
- Links are never updated; expiry is a function of the current time.
- Deleting a link deletes its clicks, both in the database (FK cascade)
  and in the ORM (relationship cascade).

Classes:
    Link:  A shortened-URL record.
    Click:  One recorded redirect occurrence.
"""

import datetime

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shorturls.database import Base, UTCDateTime

__all__ = ["Link", "Click"]


class Link(Base):
    __tablename__ = "links"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    shortcode: Mapped[str] = mapped_column(String(20), unique=True, index=True, nullable=False)
    original_url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime, nullable=False)
    expires_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime, nullable=False)

    clicks: Mapped[list["Click"]] = relationship(
        back_populates="link",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def is_expired(self, now: datetime.datetime) -> bool:
        return now > self.expires_at

    def __repr__(self) -> str:
        return f"<Link(id={self.id}, shortcode='{self.shortcode}', expires_at={self.expires_at})>"


class Click(Base):
    __tablename__ = "clicks"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    shortcode: Mapped[str] = mapped_column(
        String(20),
        ForeignKey("links.shortcode", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    timestamp: Mapped[datetime.datetime] = mapped_column(UTCDateTime, nullable=False)
    referrer: Mapped[str] = mapped_column(Text, default="", nullable=False)
    ip: Mapped[str] = mapped_column(String(64), default="Unknown", nullable=False)
    user_agent: Mapped[str] = mapped_column(Text, default="", nullable=False)
    country: Mapped[str] = mapped_column(String(64), default="Unknown", nullable=False)

    link: Mapped[Link] = relationship(back_populates="clicks")

    def __repr__(self) -> str:
        return f"<Click(id={self.id}, shortcode='{self.shortcode}', timestamp={self.timestamp})>"

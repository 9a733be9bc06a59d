"""Canonical, dialect-independent feed model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from unifeed.sniff import FeedType


@dataclass(frozen=True)
class Enclosure:
    """Media attached to an item."""

    url: str
    type: str | None = None
    length: int | None = None


@dataclass(frozen=True)
class Person:
    name: str | None = None
    email: str | None = None
    uri: str | None = None


@dataclass(frozen=True)
class Image:
    url: str
    title: str | None = None


@dataclass
class Item:
    """A single feed entry.

    Fields the source leaves out, or that fail to parse (dates, enclosure
    lengths), are None rather than errors.
    """

    title: str | None = None
    link: str | None = None
    description: str | None = None
    content: str | None = None
    guid: str | None = None
    published: str | None = None
    published_parsed: datetime | None = None
    updated: str | None = None
    updated_parsed: datetime | None = None
    authors: list[Person] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    image: Image | None = None
    enclosures: list[Enclosure] = field(default_factory=list)

    @property
    def body(self) -> str:
        """Full content when present, otherwise the summary/description."""
        return self.content or self.description or ""


@dataclass
class Feed:
    title: str | None = None
    link: str | None = None
    description: str | None = None
    feed_type: FeedType = FeedType.UNKNOWN
    feed_version: str | None = None
    feed_link: str | None = None
    language: str | None = None
    copyright: str | None = None
    generator: str | None = None
    published: str | None = None
    published_parsed: datetime | None = None
    updated: str | None = None
    updated_parsed: datetime | None = None
    authors: list[Person] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    image: Image | None = None
    items: list[Item] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def display_title(self) -> str:
        return self.title or ""

    def sort(self, *, reverse: bool = False) -> None:
        """Order items by publication time, oldest first.

        Undated items count as the earliest instant so they lead the list.
        The sort is stable: items with equal keys keep document order.
        """
        self.items.sort(key=item_sort_key, reverse=reverse)


def item_sort_key(item: Item) -> tuple[bool, timedelta]:
    """Undated items first, then by UTC instant.

    The instant is measured as a timedelta from ``datetime.min`` so year-1
    dates with a positive offset stay in range.
    """
    published = item.published_parsed
    if published is None:
        return (False, timedelta(0))
    offset = published.utcoffset() or timedelta(0)
    return (True, published.replace(tzinfo=None) - datetime.min - offset)

"""Mapping of dialect-native records onto the canonical Feed/Item model.

Field precedence, per dialect:

- Body: full content wins over summary. RSS ``content:encoded`` over
  ``description``, Atom ``content`` over ``summary`` (out-of-line content
  with ``src`` carries no body), JSON ``content_html`` over ``content_text``.
- Published date: RSS ``pubDate`` then ``dc:date``; Atom ``published``
  then ``updated``; JSON ``date_published``.
- Identifier: the explicit guid/id, else the item link, else a hash of
  title and body (see ``resolve_guid``).

Unparseable dates and enclosure lengths become None; they never fail the
item or the feed.
"""

from __future__ import annotations

import hashlib
import re
from typing import Any

import structlog

from unifeed.dates import DateStyle, parse_date
from unifeed.dialects.atom import AtomEntry, AtomFeed, AtomLink, AtomPerson, AtomText
from unifeed.dialects.json_feed import JsonAuthor, JsonFeed, JsonItem
from unifeed.dialects.rss import RssFeed, RssItem
from unifeed.models import Enclosure, Feed, Image, Item, Person
from unifeed.sniff import FeedType

logger = structlog.get_logger()

_RSS_PERSON_RE = re.compile(r"^\s*(?P<email>[^\s()]+@[^\s()]+)\s*\((?P<name>[^)]*)\)\s*$")
_JSON_FEED_VERSION_PREFIX = "https://jsonfeed.org/version/"


def normalize(native: Any) -> Feed:
    """Dispatch a native record to its dialect's normalizer."""
    if isinstance(native, RssFeed):
        return normalize_rss(native)
    if isinstance(native, AtomFeed):
        return normalize_atom(native)
    if isinstance(native, JsonFeed):
        return normalize_json(native)
    raise TypeError(f"Unsupported feed record: {type(native).__name__}")


def resolve_guid(explicit: str | None, link: str | None, title: str | None, body: str | None) -> str | None:
    """Pick a stable identifier for an item.

    Priority:
    1. Explicit guid/id from the document
    2. Item link
    3. Hash of title + body (same input always gives the same id)
    """
    if explicit:
        return explicit
    if link:
        return link
    if not title and not body:
        return None
    digest = hashlib.sha256(f"{title or ''}\n{body or ''}".encode()).hexdigest()[:16]
    return f"sha256:{digest}"


def parse_length(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    text = str(value).strip()
    if not text.isdigit():
        if text:
            logger.debug("Ignoring invalid enclosure length", value=text)
        return None
    return int(text)


# RSS


def normalize_rss(native: RssFeed) -> Feed:
    published = native.pub_date or native.dc_date
    updated = native.last_build_date or native.dc_date
    return Feed(
        title=native.title,
        link=native.link,
        description=native.description or native.itunes_summary,
        feed_type=FeedType.RSS,
        feed_version=native.version,
        feed_link=native.self_link,
        language=native.language or native.dc_language,
        copyright=native.copyright or native.dc_rights,
        generator=native.generator,
        published=published,
        published_parsed=parse_date(published, DateStyle.RFC822),
        updated=updated,
        updated_parsed=parse_date(updated, DateStyle.RFC822),
        authors=_rss_people(native.managing_editor, native.web_master, native.dc_creator, native.itunes_author),
        categories=list(native.categories),
        image=_rss_feed_image(native),
        items=[_normalize_rss_item(item) for item in native.items],
    )


def _normalize_rss_item(native: RssItem) -> Item:
    guid = native.guid
    link = native.link
    if not link and guid is not None and guid.is_permalink and guid.value.startswith(("http://", "https://")):
        link = guid.value
    link = link or native.about

    description = native.description or native.itunes_summary
    content = native.content_encoded
    published = native.pub_date or native.dc_date
    return Item(
        title=native.title,
        link=link,
        description=description,
        content=content,
        guid=resolve_guid(guid.value if guid else None, link, native.title, content or description),
        published=published,
        published_parsed=parse_date(published, DateStyle.RFC822),
        authors=_rss_people(native.author, native.dc_creator, native.itunes_author),
        categories=list(native.categories),
        image=Image(url=native.itunes_image) if native.itunes_image else None,
        enclosures=[
            Enclosure(url=enclosure.url, type=enclosure.type, length=parse_length(enclosure.length))
            for enclosure in native.enclosures
            if enclosure.url
        ],
    )


def _rss_feed_image(native: RssFeed) -> Image | None:
    if native.image is not None:
        return Image(url=native.image.url, title=native.image.title)
    if native.itunes_image:
        return Image(url=native.itunes_image)
    return None


def _rss_people(*values: str | None) -> list[Person]:
    people: list[Person] = []
    for value in values:
        if not value:
            continue
        match = _RSS_PERSON_RE.match(value)
        if match:
            person = Person(name=match.group("name").strip() or None, email=match.group("email"))
        elif "@" in value and " " not in value.strip():
            person = Person(email=value.strip())
        else:
            person = Person(name=value.strip())
        if person not in people:
            people.append(person)
    return people


# Atom


def normalize_atom(native: AtomFeed) -> Feed:
    published = native.published
    return Feed(
        title=_atom_value(native.title),
        link=_atom_link(native.links, "alternate"),
        description=_atom_value(native.subtitle),
        feed_type=FeedType.ATOM,
        feed_version=native.version,
        feed_link=_atom_link(native.links, "self"),
        language=native.language,
        copyright=_atom_value(native.rights),
        generator=native.generator,
        published=published,
        published_parsed=parse_date(published, DateStyle.RFC3339),
        updated=native.updated,
        updated_parsed=parse_date(native.updated, DateStyle.RFC3339),
        authors=[_atom_person(author) for author in native.authors],
        categories=list(native.categories),
        image=Image(url=native.logo or native.icon) if (native.logo or native.icon) else None,
        items=[_normalize_atom_entry(entry) for entry in native.entries],
    )


def _normalize_atom_entry(native: AtomEntry) -> Item:
    link = _atom_link(native.links, "alternate")
    title = _atom_value(native.title)
    description = _atom_value(native.summary)
    content = None
    if native.content is not None and not native.content.src:
        content = native.content.value

    published = native.published or native.updated
    return Item(
        title=title,
        link=link,
        description=description,
        content=content,
        guid=resolve_guid(native.id, link, title, content or description),
        published=published,
        published_parsed=parse_date(published, DateStyle.RFC3339),
        updated=native.updated,
        updated_parsed=parse_date(native.updated, DateStyle.RFC3339),
        authors=[_atom_person(author) for author in native.authors],
        categories=list(native.categories),
        enclosures=[
            Enclosure(url=attachment.href, type=attachment.type, length=parse_length(attachment.length))
            for attachment in native.links
            if attachment.rel == "enclosure"
        ],
    )


def _atom_value(text: AtomText | None) -> str | None:
    return text.value if text is not None else None


def _atom_link(links: list[AtomLink], rel: str) -> str | None:
    for link in links:
        if link.rel == rel:
            return link.href
    return None


def _atom_person(author: AtomPerson) -> Person:
    return Person(name=author.name, email=author.email, uri=author.uri)


# JSON Feed


def normalize_json(native: JsonFeed) -> Feed:
    icon = native.icon or native.favicon
    return Feed(
        title=native.title,
        link=native.home_page_url,
        description=native.description,
        feed_type=FeedType.JSON,
        feed_version=_json_version(native.version),
        feed_link=native.feed_url,
        language=native.language,
        authors=_json_people(native.authors, native.author),
        image=Image(url=icon) if icon else None,
        items=[_normalize_json_item(item) for item in native.items],
    )


def _normalize_json_item(native: JsonItem) -> Item:
    link = native.url or native.external_url
    content = native.content_html or native.content_text
    image = native.image or native.banner_image
    return Item(
        title=native.title,
        link=link,
        description=native.summary,
        content=content,
        guid=resolve_guid(native.id, link, native.title, content or native.summary),
        published=native.date_published,
        published_parsed=parse_date(native.date_published, DateStyle.RFC3339),
        updated=native.date_modified,
        updated_parsed=parse_date(native.date_modified, DateStyle.RFC3339),
        authors=_json_people(native.authors, native.author),
        categories=list(native.tags),
        image=Image(url=image) if image else None,
        enclosures=[
            Enclosure(url=attachment.url, type=attachment.mime_type, length=parse_length(attachment.size_in_bytes))
            for attachment in native.attachments
            if attachment.url
        ],
    )


def _json_version(version: str | None) -> str | None:
    if version and version.startswith(_JSON_FEED_VERSION_PREFIX):
        return version[len(_JSON_FEED_VERSION_PREFIX) :].strip("/") or None
    return version


def _json_people(authors: list[JsonAuthor], author: JsonAuthor | None) -> list[Person]:
    candidates = authors or ([author] if author is not None else [])
    return [Person(name=entry.name, uri=entry.url) for entry in candidates if entry.name or entry.url]

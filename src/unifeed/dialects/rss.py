"""RSS 0.9x / 1.0 (RDF) / 2.0 parser."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterator
from dataclasses import dataclass, field

import structlog

from unifeed.dialects.base import (
    attr,
    child_text,
    children,
    element_text,
    first_child,
    parse_xml,
    split_tag,
)
from unifeed.errors import FeedParseError
from unifeed.sniff import FeedType

logger = structlog.get_logger()

RSS090_NS = "http://my.netscape.com/rdf/simple/0.9/"
RSS10_NS = "http://purl.org/rss/1.0/"
RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
DC_NS = "http://purl.org/dc/elements/1.1/"
CONTENT_NS = "http://purl.org/rss/1.0/modules/content/"
ITUNES_NS = "http://www.itunes.com/dtds/podcast-1.0.dtd"
ATOM_NS = "http://www.w3.org/2005/Atom"

# RSS 2.0 has no namespace; a few 0.9x-era feeds use the Userland ones.
RSS_NAMESPACES = (
    "",
    RSS090_NS,
    RSS10_NS,
    "http://backend.userland.com/rss2",
    "http://backend.userland.com/rss",
)
_DC = (DC_NS,)
_ITUNES = (ITUNES_NS,)

_ROOT_NAMES = {"rss", "rdf", "channel"}


@dataclass
class RssEnclosure:
    url: str | None
    type: str | None
    length: str | None


@dataclass
class RssGuid:
    value: str
    is_permalink: bool = True


@dataclass
class RssImage:
    url: str
    title: str | None = None
    link: str | None = None


@dataclass
class RssItem:
    title: str | None = None
    link: str | None = None
    description: str | None = None
    content_encoded: str | None = None
    author: str | None = None
    dc_creator: str | None = None
    pub_date: str | None = None
    dc_date: str | None = None
    guid: RssGuid | None = None
    about: str | None = None
    categories: list[str] = field(default_factory=list)
    enclosures: list[RssEnclosure] = field(default_factory=list)
    itunes_author: str | None = None
    itunes_image: str | None = None
    itunes_summary: str | None = None


@dataclass
class RssFeed:
    version: str | None = None
    title: str | None = None
    link: str | None = None
    description: str | None = None
    language: str | None = None
    copyright: str | None = None
    managing_editor: str | None = None
    web_master: str | None = None
    generator: str | None = None
    pub_date: str | None = None
    last_build_date: str | None = None
    dc_date: str | None = None
    dc_creator: str | None = None
    dc_language: str | None = None
    dc_rights: str | None = None
    self_link: str | None = None
    categories: list[str] = field(default_factory=list)
    image: RssImage | None = None
    itunes_author: str | None = None
    itunes_image: str | None = None
    itunes_summary: str | None = None
    items: list[RssItem] = field(default_factory=list)


class RssParser:
    """Parses RSS-family documents into RssFeed records.

    Channel metadata and the item list are located independently: RSS 2.0
    nests items inside <channel>, RDF lists them as siblings of it.
    """

    @property
    def feed_type(self) -> FeedType:
        return FeedType.RSS

    def parse(self, data: bytes | str) -> RssFeed:
        root = parse_xml(data, FeedType.RSS)
        root_ns, root_name = split_tag(root.tag)
        if root_name.lower() not in _ROOT_NAMES:
            raise FeedParseError(f"Root element <{root_name}> is not an RSS feed", FeedType.RSS)

        channel = root if root_name.lower() == "channel" else _find_channel(root)
        feed = _parse_channel(channel) if channel is not None else RssFeed()
        feed.version = _detect_version(root, root_ns, root_name, channel)
        feed.image = _find_image(root, channel)
        feed.items = [_parse_item(element) for element in _iter_items(root)]

        logger.debug("Parsed RSS feed", version=feed.version, items=len(feed.items))
        return feed


def _find_channel(root: ET.Element) -> ET.Element | None:
    for element in root.iter():
        ns, local = split_tag(element.tag)
        if local == "channel" and ns in RSS_NAMESPACES:
            return element
    return None


def _iter_items(root: ET.Element) -> Iterator[ET.Element]:
    for element in root.iter():
        ns, local = split_tag(element.tag)
        if local == "item" and ns in RSS_NAMESPACES:
            yield element


def _detect_version(root: ET.Element, root_ns: str, root_name: str, channel: ET.Element | None) -> str | None:
    if root_name.lower() == "rss":
        return attr(root, "version")
    if root_name == "RDF" and root_ns == RDF_NS:
        channel_ns = split_tag(channel.tag)[0] if channel is not None else ""
        if channel_ns == RSS090_NS:
            return "0.90"
        return "1.0"
    return None


def _parse_channel(channel: ET.Element) -> RssFeed:
    return RssFeed(
        title=child_text(channel, RSS_NAMESPACES, "title"),
        link=child_text(channel, RSS_NAMESPACES, "link"),
        description=child_text(channel, RSS_NAMESPACES, "description"),
        language=child_text(channel, RSS_NAMESPACES, "language"),
        copyright=child_text(channel, RSS_NAMESPACES, "copyright"),
        managing_editor=child_text(channel, RSS_NAMESPACES, "managingEditor"),
        web_master=child_text(channel, RSS_NAMESPACES, "webMaster"),
        generator=child_text(channel, RSS_NAMESPACES, "generator"),
        pub_date=child_text(channel, RSS_NAMESPACES, "pubDate"),
        last_build_date=child_text(channel, RSS_NAMESPACES, "lastBuildDate"),
        dc_date=child_text(channel, _DC, "date"),
        dc_creator=child_text(channel, _DC, "creator"),
        dc_language=child_text(channel, _DC, "language"),
        dc_rights=child_text(channel, _DC, "rights"),
        self_link=_self_link(channel),
        categories=_categories(channel),
        itunes_author=child_text(channel, _ITUNES, "author"),
        itunes_image=_itunes_image(channel),
        itunes_summary=child_text(channel, _ITUNES, "summary"),
    )


def _parse_item(element: ET.Element) -> RssItem:
    return RssItem(
        title=child_text(element, RSS_NAMESPACES, "title"),
        link=child_text(element, RSS_NAMESPACES, "link"),
        description=child_text(element, RSS_NAMESPACES, "description"),
        content_encoded=child_text(element, (CONTENT_NS,), "encoded"),
        author=child_text(element, RSS_NAMESPACES, "author"),
        dc_creator=child_text(element, _DC, "creator"),
        pub_date=child_text(element, RSS_NAMESPACES, "pubDate"),
        dc_date=child_text(element, _DC, "date"),
        guid=_guid(element),
        about=attr(element, f"{{{RDF_NS}}}about"),
        categories=_categories(element),
        enclosures=[
            RssEnclosure(
                url=attr(enclosure, "url"),
                type=attr(enclosure, "type"),
                length=attr(enclosure, "length"),
            )
            for enclosure in children(element, RSS_NAMESPACES, "enclosure")
        ],
        itunes_author=child_text(element, _ITUNES, "author"),
        itunes_image=_itunes_image(element),
        itunes_summary=child_text(element, _ITUNES, "summary"),
    )


def _guid(element: ET.Element) -> RssGuid | None:
    guid = first_child(element, RSS_NAMESPACES, "guid")
    value = element_text(guid)
    if guid is None or value is None:
        return None
    is_permalink = (attr(guid, "isPermaLink") or "true").lower() != "false"
    return RssGuid(value=value, is_permalink=is_permalink)


def _categories(element: ET.Element) -> list[str]:
    values = [element_text(category) for category in children(element, RSS_NAMESPACES, "category")]
    values.extend(element_text(subject) for subject in children(element, _DC, "subject"))
    return [value for value in values if value]


def _itunes_image(element: ET.Element) -> str | None:
    image = first_child(element, _ITUNES, "image")
    if image is None:
        return None
    return attr(image, "href") or element_text(image)


def _self_link(channel: ET.Element) -> str | None:
    for link in children(channel, (ATOM_NS,), "link"):
        if attr(link, "rel") == "self":
            return attr(link, "href")
    return None


def _find_image(root: ET.Element, channel: ET.Element | None) -> RssImage | None:
    # RDF puts a bare <image rdf:resource=".."/> reference in the channel and
    # the real image element next to it.
    candidates = list(children(channel, RSS_NAMESPACES, "image")) if channel is not None else []
    if channel is not root:
        candidates.extend(children(root, RSS_NAMESPACES, "image"))
    for candidate in candidates:
        url = child_text(candidate, RSS_NAMESPACES, "url")
        if url:
            return RssImage(
                url=url,
                title=child_text(candidate, RSS_NAMESPACES, "title"),
                link=child_text(candidate, RSS_NAMESPACES, "link"),
            )
    return None

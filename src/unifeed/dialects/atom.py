"""Atom 0.3 / 1.0 parser."""

from __future__ import annotations

import base64
import binascii
import copy
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from urllib.parse import urljoin
from xml.sax.saxutils import escape

import structlog

from unifeed.config import settings
from unifeed.dialects.base import (
    XML_BASE,
    XML_NS,
    attr,
    child_text,
    children,
    element_text,
    first_child,
    local_name,
    parse_xml,
    split_tag,
)
from unifeed.errors import FeedParseError
from unifeed.sniff import FeedType

logger = structlog.get_logger()

ATOM10_NS = "http://www.w3.org/2005/Atom"
ATOM03_NS = "http://purl.org/atom/ns#"
ATOM_NAMESPACES = (ATOM10_NS, ATOM03_NS, "")
XML_LANG = f"{{{XML_NS}}}lang"

_TYPE_ALIASES = {
    "text/plain": "text",
    "text/html": "html",
    "application/xhtml+xml": "xhtml",
}


@dataclass
class AtomText:
    """A text construct (title, summary, content) after type decoding."""

    value: str | None
    type: str = "text"
    src: str | None = None


@dataclass
class AtomLink:
    href: str
    rel: str = "alternate"
    type: str | None = None
    length: str | None = None
    title: str | None = None


@dataclass
class AtomPerson:
    name: str | None = None
    email: str | None = None
    uri: str | None = None


@dataclass
class AtomEntry:
    id: str | None = None
    title: AtomText | None = None
    summary: AtomText | None = None
    content: AtomText | None = None
    published: str | None = None
    updated: str | None = None
    links: list[AtomLink] = field(default_factory=list)
    authors: list[AtomPerson] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)


@dataclass
class AtomFeed:
    version: str | None = None
    id: str | None = None
    title: AtomText | None = None
    subtitle: AtomText | None = None
    rights: AtomText | None = None
    generator: str | None = None
    language: str | None = None
    published: str | None = None
    updated: str | None = None
    icon: str | None = None
    logo: str | None = None
    links: list[AtomLink] = field(default_factory=list)
    authors: list[AtomPerson] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    entries: list[AtomEntry] = field(default_factory=list)


class AtomParser:
    """Parses Atom documents into AtomFeed records.

    Atom 0.3 element names (tagline, modified, issued, ...) are folded onto
    their 1.0 equivalents so both versions produce the same record shape.
    """

    @property
    def feed_type(self) -> FeedType:
        return FeedType.ATOM

    def parse(self, data: bytes | str) -> AtomFeed:
        root = parse_xml(data, FeedType.ATOM)
        ns, name = split_tag(root.tag)
        if name != "feed" or ns not in ATOM_NAMESPACES:
            raise FeedParseError(f"Root element <{name}> is not an Atom feed", FeedType.ATOM)

        base = attr(root, XML_BASE)
        feed = AtomFeed(
            version=_detect_version(root, ns),
            id=child_text(root, ATOM_NAMESPACES, "id"),
            title=_text(root, "title"),
            subtitle=_text(root, "subtitle") or _text(root, "tagline"),
            rights=_text(root, "rights") or _text(root, "copyright"),
            generator=child_text(root, ATOM_NAMESPACES, "generator"),
            language=attr(root, XML_LANG),
            published=_first_text(root, "published", "issued", "created"),
            updated=_first_text(root, "updated", "modified"),
            icon=_resolve(base, child_text(root, ATOM_NAMESPACES, "icon")),
            logo=_resolve(base, child_text(root, ATOM_NAMESPACES, "logo")),
            links=_links(root, base),
            authors=_authors(root),
            categories=_categories(root),
        )
        feed.entries = [_parse_entry(entry, base) for entry in children(root, ATOM_NAMESPACES, "entry")]

        logger.debug("Parsed Atom feed", version=feed.version, entries=len(feed.entries))
        return feed


def _detect_version(root: ET.Element, ns: str) -> str:
    if ns == ATOM10_NS:
        return "1.0"
    if ns == ATOM03_NS:
        return "0.3"
    return attr(root, "version") or "1.0"


def _parse_entry(element: ET.Element, feed_base: str | None) -> AtomEntry:
    base = _resolve(feed_base, attr(element, XML_BASE)) or feed_base
    content = _text(element, "content")
    if content is not None and content.src:
        content.src = _resolve(base, content.src)
    return AtomEntry(
        id=child_text(element, ATOM_NAMESPACES, "id"),
        title=_text(element, "title"),
        summary=_text(element, "summary"),
        content=content,
        published=_first_text(element, "published", "issued", "created"),
        updated=_first_text(element, "updated", "modified"),
        links=_links(element, base),
        authors=_authors(element),
        categories=_categories(element),
    )


def _first_text(element: ET.Element, *names: str) -> str | None:
    for name in names:
        value = child_text(element, ATOM_NAMESPACES, name)
        if value:
            return value
    return None


def _text(element: ET.Element, name: str) -> AtomText | None:
    node = first_child(element, ATOM_NAMESPACES, name)
    if node is None:
        return None

    raw_type = (attr(node, "type") or "text").lower()
    text_type = _TYPE_ALIASES.get(raw_type, raw_type)
    mode = (attr(node, "mode") or "").lower()
    src = attr(node, "src")

    if mode == "base64":
        value = _decode_base64(node)
    elif text_type == "xhtml" or mode == "xml":
        value = _inner_markup(node)
    else:
        value = element_text(node)
    return AtomText(value=value, type=text_type, src=src)


def _decode_base64(node: ET.Element) -> str | None:
    raw = element_text(node)
    if raw is None:
        return None
    try:
        return base64.b64decode(raw).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        logger.debug("Invalid base64 Atom content")
        return None


def _inner_markup(node: ET.Element) -> str | None:
    """Serialize inline markup without namespace prefixes.

    A single wrapping <div> (required by Atom 1.0 for xhtml) is dropped.
    Serialization recurses per level, so markup deeper than
    ``settings.max_markup_depth`` is rejected up front.
    """
    container = node
    kids = list(node)
    if len(kids) == 1 and local_name(kids[0].tag) == "div" and not (node.text or "").strip():
        container = kids[0]

    depth = _markup_depth(container)
    if depth > settings.max_markup_depth:
        logger.warning("Atom markup nested too deep", depth=depth, limit=settings.max_markup_depth)
        raise FeedParseError(
            f"Atom inline markup is nested {depth} levels deep (limit {settings.max_markup_depth})",
            FeedType.ATOM,
        )

    parts = [escape(container.text or "")]
    for child in container:
        parts.append(ET.tostring(_strip_namespaces(child), encoding="unicode"))
    markup = "".join(parts).strip()
    return markup or None


def _markup_depth(element: ET.Element) -> int:
    deepest = 0
    pending = [(element, 0)]
    while pending:
        node, depth = pending.pop()
        deepest = max(deepest, depth)
        pending.extend((child, depth + 1) for child in node)
    return deepest


def _strip_namespaces(element: ET.Element) -> ET.Element:
    clone = copy.deepcopy(element)
    for node in clone.iter():
        node.tag = local_name(node.tag)
        for key in [key for key in node.attrib if key.startswith("{")]:
            node.attrib[local_name(key)] = node.attrib.pop(key)
    return clone


def _resolve(base: str | None, href: str | None) -> str | None:
    if not href:
        return None
    if base:
        return urljoin(base, href)
    return href


def _links(element: ET.Element, base: str | None) -> list[AtomLink]:
    links: list[AtomLink] = []
    for node in children(element, ATOM_NAMESPACES, "link"):
        href = _resolve(base, attr(node, "href"))
        if not href:
            continue
        links.append(
            AtomLink(
                href=href,
                rel=attr(node, "rel") or "alternate",
                type=attr(node, "type"),
                length=attr(node, "length"),
                title=attr(node, "title"),
            )
        )
    return links


def _authors(element: ET.Element) -> list[AtomPerson]:
    authors: list[AtomPerson] = []
    for node in children(element, ATOM_NAMESPACES, "author"):
        person = AtomPerson(
            name=child_text(node, ATOM_NAMESPACES, "name"),
            email=child_text(node, ATOM_NAMESPACES, "email"),
            uri=child_text(node, ATOM_NAMESPACES, "uri") or child_text(node, ATOM_NAMESPACES, "url"),
        )
        if person.name or person.email or person.uri:
            authors.append(person)
    return authors


def _categories(element: ET.Element) -> list[str]:
    values = [
        attr(node, "term") or attr(node, "label") or element_text(node)
        for node in children(element, ATOM_NAMESPACES, "category")
    ]
    return [value for value in values if value]

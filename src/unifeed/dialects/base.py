"""Shared contract and XML helpers for dialect parsers."""

from __future__ import annotations

import codecs
import re
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Iterator
from typing import Any, Protocol

import structlog

from unifeed.errors import FeedParseError
from unifeed.sniff import FeedType, strip_preamble

logger = structlog.get_logger()

XML_NS = "http://www.w3.org/XML/1998/namespace"
XML_BASE = f"{{{XML_NS}}}base"

_DECLARATION_RE = re.compile(
    rb"<\?xml\s[^>]*?(?:encoding\s*=\s*[\x27\x22](?P<encoding>[A-Za-z][\w.\-]*)[\x27\x22][^>]*)?\?>"
)


class DialectParser(Protocol):
    """Parses one dialect into its own native record shape."""

    @property
    def feed_type(self) -> FeedType: ...

    def parse(self, data: bytes | str) -> Any: ...


def split_tag(tag: str) -> tuple[str, str]:
    """Split an ElementTree tag into (namespace, local name)."""
    if tag.startswith("{"):
        namespace, _, local = tag[1:].partition("}")
        return namespace, local
    return "", tag


def local_name(tag: str) -> str:
    return split_tag(tag)[1]


def parse_xml(data: bytes | str, feed_type: FeedType) -> ET.Element:
    """Build an element tree, turning syntax and encoding errors into FeedParseError.

    Expat decodes UTF-8 (and BOM-marked UTF-16) itself. Any other encoding
    named in the XML declaration is decoded here with Python's codec, since
    expat rejects multi-byte encodings such as EUC-JP or Shift_JIS.
    """
    content = strip_preamble(data)
    if not content:
        raise FeedParseError("Feed content is empty", feed_type)
    try:
        content = _decode_declared(content)
        return ET.fromstring(content)
    except ET.ParseError as exc:
        logger.warning("Feed parse error", feed_type=feed_type.value, error=str(exc))
        raise FeedParseError(f"Malformed {feed_type.value} document: {exc}", feed_type) from exc
    except (LookupError, ValueError) as exc:
        logger.warning("Feed encoding error", feed_type=feed_type.value, error=str(exc))
        raise FeedParseError(f"Undecodable {feed_type.value} document: {exc}", feed_type) from exc


def _decode_declared(content: bytes | str) -> bytes | str:
    if isinstance(content, str):
        return content
    match = _DECLARATION_RE.match(content)
    if match is None or match.group("encoding") is None:
        return content
    encoding = codecs.lookup(match.group("encoding").decode("ascii")).name
    if encoding == "utf-8" or encoding.startswith("utf-16"):
        return content
    return content[match.end() :].decode(encoding)


def element_text(element: ET.Element | None) -> str | None:
    """Stripped text content of an element (including nested text), or None."""
    if element is None:
        return None
    text = "".join(element.itertext()).strip()
    return text or None


def children(element: ET.Element, namespaces: Iterable[str], name: str) -> Iterator[ET.Element]:
    """Direct children with the given local name in any of the namespaces."""
    allowed = set(namespaces)
    for child in element:
        if not isinstance(child.tag, str):
            continue
        ns, local = split_tag(child.tag)
        if local == name and ns in allowed:
            yield child


def first_child(element: ET.Element, namespaces: Iterable[str], name: str) -> ET.Element | None:
    return next(children(element, namespaces, name), None)


def child_text(element: ET.Element, namespaces: Iterable[str], name: str) -> str | None:
    return element_text(first_child(element, namespaces, name))


def attr(element: ET.Element, name: str) -> str | None:
    value = element.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None

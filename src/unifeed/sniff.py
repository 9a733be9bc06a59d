"""Feed format detection from a bounded content prefix."""

from __future__ import annotations

import codecs
import re
from enum import Enum
from typing import BinaryIO

import structlog

from unifeed.config import settings

logger = structlog.get_logger()

FeedSource = bytes | bytearray | memoryview | str | BinaryIO


class FeedType(Enum):
    RSS = "rss"
    ATOM = "atom"
    JSON = "json"
    UNKNOWN = "unknown"


# Order matters: the UTF-32 LE mark starts with the UTF-16 LE mark.
_BOMS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)

_WHITESPACE = " \t\r\n"

_NAME_RE = re.compile(r"[A-Za-z_][\w.\-]*(?::[A-Za-z_][\w.\-]*)?")

_ROOT_TYPES = {
    "rss": FeedType.RSS,
    "rdf": FeedType.RSS,
    "channel": FeedType.RSS,
    "feed": FeedType.ATOM,
}


def strip_preamble(data: bytes | str) -> bytes | str:
    """Drop a byte-order mark and leading whitespace.

    UTF-8 input stays bytes so the XML declaration still drives decoding.
    UTF-16/32 input is decoded to str, since stripping whitespace bytes
    from a multi-byte encoding would corrupt it.
    """
    if isinstance(data, str):
        return data.lstrip("\ufeff").lstrip(_WHITESPACE)

    for bom, encoding in _BOMS:
        if data.startswith(bom):
            if encoding == "utf-8":
                data = data[len(bom) :]
                break
            return data.decode(encoding, errors="replace").lstrip(_WHITESPACE)
    return data.lstrip(_WHITESPACE.encode("ascii"))


def detect_feed_type(source: FeedSource) -> FeedType:
    """Classify content as RSS, Atom or JSON Feed without parsing it.

    Only the first ``settings.sniff_limit_bytes`` are inspected. Seekable
    streams are rewound to where they started; non-seekable streams are
    consumed, so callers must buffer the content themselves before sniffing.
    Never raises: anything unrecognizable (including empty input) is
    ``FeedType.UNKNOWN``.
    """
    limit = settings.sniff_limit_bytes
    try:
        prefix = _read_prefix(source, limit)
    except (OSError, ValueError) as exc:
        logger.warning("Feed sniff read failed", error=str(exc))
        return FeedType.UNKNOWN

    text = _decode_prefix(prefix)
    if not text:
        return FeedType.UNKNOWN
    if text[0] in "{[":
        return FeedType.JSON

    name = _first_element_name(text)
    if name is None:
        return FeedType.UNKNOWN
    local_name = name.rsplit(":", 1)[-1].lower()
    return _ROOT_TYPES.get(local_name, FeedType.UNKNOWN)


def _read_prefix(source: FeedSource, limit: int) -> bytes | str:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source[:limit])
    if isinstance(source, str):
        return source[:limit]

    seekable = getattr(source, "seekable", None)
    if callable(seekable) and seekable():
        position = source.tell()
        try:
            return source.read(limit)
        finally:
            source.seek(position)
    return source.read(limit)


def _decode_prefix(prefix: bytes | str) -> str:
    stripped = strip_preamble(prefix)
    if isinstance(stripped, str):
        return stripped
    # Markup tokens are ASCII, so a lossy decode is enough for single-byte
    # and UTF-8 compatible encodings.
    return stripped.decode("utf-8", errors="replace")


def _first_element_name(text: str) -> str | None:
    pos = 0
    while True:
        start = text.find("<", pos)
        if start == -1:
            return None

        if text.startswith("<!--", start):
            end = text.find("-->", start + 4)
            if end == -1:
                return None
            pos = end + 3
        elif text.startswith("<?", start):
            end = text.find("?>", start + 2)
            if end == -1:
                return None
            pos = end + 2
        elif text.startswith("<!", start):
            end = _declaration_end(text, start)
            if end == -1:
                return None
            pos = end + 1
        else:
            match = _NAME_RE.match(text, start + 1)
            if match:
                return match.group(0)
            pos = start + 1


def _declaration_end(text: str, start: int) -> int:
    """Index of the '>' closing a DOCTYPE, skipping any internal subset."""
    close = text.find(">", start)
    bracket = text.find("[", start)
    if bracket != -1 and (close == -1 or bracket < close):
        subset_end = text.find("]", bracket)
        if subset_end == -1:
            return -1
        return text.find(">", subset_end)
    return close

"""Universal feed parser: sniff, dispatch to a dialect parser, normalize."""

from __future__ import annotations

from collections.abc import Mapping

import structlog

from unifeed.config import settings
from unifeed.dialects.atom import AtomParser
from unifeed.dialects.base import DialectParser
from unifeed.dialects.json_feed import JsonFeedParser
from unifeed.dialects.rss import RssParser
from unifeed.errors import FeedTooLargeError, UnknownFeedTypeError
from unifeed.models import Feed
from unifeed.normalize import normalize
from unifeed.sniff import FeedSource, FeedType, detect_feed_type

logger = structlog.get_logger()


def read_source(source: FeedSource, limit: int | None = None) -> bytes | str:
    """Buffer the whole input once, enforcing the size cap."""
    if limit is None:
        limit = settings.max_input_bytes

    if isinstance(source, str):
        size = len(source.encode("utf-8", errors="replace"))
        data: bytes | str = source
    elif isinstance(source, (bytes, bytearray, memoryview)):
        data = bytes(source)
        size = len(data)
    else:
        data = source.read(limit + 1)
        size = len(data)

    if size > limit:
        raise FeedTooLargeError(size, limit)
    return data


def default_parsers() -> dict[FeedType, DialectParser]:
    return {
        FeedType.RSS: RssParser(),
        FeedType.ATOM: AtomParser(),
        FeedType.JSON: JsonFeedParser(),
    }


class FeedParser:
    """Detects a feed's dialect and returns the normalized Feed.

    Dialect parsers are stateless, so one instance can serve concurrent
    callers. Either a complete Feed is returned or an exception is raised:
    UnknownFeedTypeError when sniffing fails, FeedParseError for malformed
    content, FeedTooLargeError when the input exceeds the size cap.
    """

    def __init__(self, parsers: Mapping[FeedType, DialectParser] | None = None) -> None:
        self._parsers = dict(parsers) if parsers is not None else default_parsers()

    def parse(self, source: FeedSource, *, feed_type: FeedType | None = None) -> Feed:
        data = read_source(source)
        detected = feed_type if feed_type is not None else detect_feed_type(data)
        log = logger.bind(feed_type=detected.value, size=len(data), sniffed=feed_type is None)

        if detected is FeedType.UNKNOWN:
            log.info("Feed type not recognized")
            raise UnknownFeedTypeError()

        parser = self._parsers.get(detected)
        if parser is None:
            raise UnknownFeedTypeError(f"No parser registered for {detected.value} feeds")

        native = parser.parse(data)
        feed = normalize(native)
        log.debug("Feed normalized", version=feed.feed_version, items=len(feed.items))
        return feed

    def parse_string(self, text: str) -> Feed:
        return self.parse(text)

    def parse_rss(self, source: FeedSource) -> Feed:
        return self.parse(source, feed_type=FeedType.RSS)

    def parse_atom(self, source: FeedSource) -> Feed:
        return self.parse(source, feed_type=FeedType.ATOM)

    def parse_json(self, source: FeedSource) -> Feed:
        return self.parse(source, feed_type=FeedType.JSON)


_default_parser = FeedParser()


def parse(source: FeedSource, *, feed_type: FeedType | None = None) -> Feed:
    """Parse feed bytes, text or a binary stream into a Feed."""
    return _default_parser.parse(source, feed_type=feed_type)


def parse_string(text: str) -> Feed:
    return _default_parser.parse_string(text)


def parse_rss(source: FeedSource) -> Feed:
    return _default_parser.parse_rss(source)


def parse_atom(source: FeedSource) -> Feed:
    return _default_parser.parse_atom(source)


def parse_json(source: FeedSource) -> Feed:
    return _default_parser.parse_json(source)

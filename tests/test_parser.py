"""Tests for the universal parser façade."""

import codecs
import io
from concurrent.futures import ThreadPoolExecutor

import pytest

from unifeed.errors import FeedParseError, FeedTooLargeError, UnknownFeedTypeError
from unifeed.models import Enclosure
from unifeed.parser import FeedParser, parse, parse_atom, parse_json, parse_rss, parse_string
from unifeed.sniff import FeedType

SINGLE_ITEM_RSS = """<?xml version="1.0" encoding="UTF-8" ?>
<rss version="2.0">
  <channel>
    <title>Sample Podcast</title>
    <link>https://podcast.example.com/</link>
    <description>Sample description</description>
    <item>
      <title>Pilot</title>
      <description>The first episode</description>
      <enclosure url="https://podcast.example.com/pilot.mp3" type="audio/mpeg" length="123"/>
    </item>
  </channel>
</rss>
"""

SUMMARY_AND_CONTENT_ATOM = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Example</title>
  <entry>
    <id>urn:example:1</id>
    <title>Entry</title>
    <updated>2024-05-01T00:00:00Z</updated>
    <summary>The summary</summary>
    <content>The complete content</content>
  </entry>
</feed>
"""

MISSING_DATE_RSS = """<rss version="2.0"><channel><title>Dates</title>
<item><title>a</title><pubDate>Mon, 01 Jan 2024 00:00:00 GMT</pubDate></item>
<item><title>b</title></item>
<item><title>c</title><pubDate>Tue, 02 Jan 2024 00:00:00 GMT</pubDate></item>
<item><title>d</title><pubDate>not a date at all</pubDate></item>
</channel></rss>"""


class TestScenarios:
    def test_rss_enclosure(self):
        feed = parse_string(SINGLE_ITEM_RSS)

        assert feed.feed_type is FeedType.RSS
        assert feed.title == "Sample Podcast"
        assert len(feed.items) == 1
        assert feed.items[0].enclosures[0] == Enclosure("https://podcast.example.com/pilot.mp3", "audio/mpeg", 123)

    def test_atom_body_is_content(self):
        feed = parse_string(SUMMARY_AND_CONTENT_ATOM)

        assert feed.feed_type is FeedType.ATOM
        assert feed.items[0].body == "The complete content"
        assert feed.items[0].content == "The complete content"

    def test_missing_and_bad_dates_keep_items(self):
        feed = parse_string(MISSING_DATE_RSS)

        assert len(feed.items) == 4
        assert [item.published_parsed is not None for item in feed.items] == [True, False, True, False]
        assert feed.items[3].published == "not a date at all"

    def test_malformed_json(self):
        with pytest.raises(FeedParseError) as excinfo:
            parse(b'{"version": "https://jsonfeed.org/version/1", "items": [}')
        assert excinfo.value.feed_type is FeedType.JSON


class TestDispatch:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("rss_feed.xml", FeedType.RSS),
            ("rdf_feed.xml", FeedType.RSS),
            ("atom03_feed.xml", FeedType.ATOM),
            ("atom10_feed.xml", FeedType.ATOM),
            ("json10_feed.json", FeedType.JSON),
            ("json11_feed.json", FeedType.JSON),
        ],
    )
    def test_sample_feeds(self, load_feed, name, expected):
        feed = parse(load_feed(name))

        assert feed.feed_type is expected
        assert len(feed.items) > 0

    def test_unknown_type_fails_fast(self, load_feed):
        with pytest.raises(UnknownFeedTypeError):
            parse(load_feed("unknown_feed.xml"))

    def test_empty_input(self):
        with pytest.raises(UnknownFeedTypeError):
            parse(b"")

    def test_bom_and_whitespace_rss(self, rss_bytes):
        feed = parse(codecs.BOM_UTF8 + b"\n  \n" + rss_bytes)
        assert len(feed.items) == 3

    def test_utf16_atom(self, load_feed):
        text = load_feed("atom10_feed.xml").decode("utf-8").replace('encoding="utf-8"', 'encoding="utf-16"')
        feed = parse(text.encode("utf-16"))

        assert feed.title == "Compiler Notes"

    def test_binary_stream(self, rss_bytes):
        feed = parse(io.BytesIO(rss_bytes))
        assert feed.title == "Night Shift Radio"

    def test_rdf_items_outside_channel(self, load_feed):
        feed = parse(load_feed("rdf_feed.xml"))
        assert [item.title for item in feed.items] == ["Second note", "First note"]


class TestExplicitDialect:
    def test_parse_rss_bypasses_sniffing(self, rss_bytes):
        assert parse_rss(rss_bytes).feed_type is FeedType.RSS

    def test_parse_atom(self, atom_bytes):
        assert parse_atom(atom_bytes).feed_version == "1.0"

    def test_parse_json(self, load_feed):
        assert parse_json(load_feed("json11_feed.json")).feed_version == "1.1"

    def test_wrong_dialect_is_parse_error(self, rss_bytes, atom_bytes):
        with pytest.raises(FeedParseError):
            parse_atom(rss_bytes)
        with pytest.raises(FeedParseError):
            parse_json(rss_bytes)
        with pytest.raises(FeedParseError):
            parse_rss(atom_bytes)

    def test_feed_type_override(self, rss_bytes):
        assert parse(rss_bytes, feed_type=FeedType.RSS).feed_type is FeedType.RSS

    def test_unregistered_dialect(self, rss_bytes):
        parser = FeedParser(parsers={})
        with pytest.raises(UnknownFeedTypeError, match="No parser registered"):
            parser.parse(rss_bytes)


class TestLimitsAndDeterminism:
    def test_input_cap(self, monkeypatch, rss_bytes):
        from unifeed.config import settings

        monkeypatch.setattr(settings, "max_input_bytes", 100)
        with pytest.raises(FeedTooLargeError):
            parse(rss_bytes)

    def test_stream_input_cap(self, monkeypatch, rss_bytes):
        from unifeed.config import settings

        monkeypatch.setattr(settings, "max_input_bytes", 100)
        with pytest.raises(FeedTooLargeError):
            parse(io.BytesIO(rss_bytes))

    @pytest.mark.parametrize("name", ["rss_feed.xml", "rdf_feed.xml", "atom10_feed.xml", "json10_feed.json"])
    def test_reparse_is_equal(self, load_feed, name):
        data = load_feed(name)
        assert parse(data) == parse(data)

    def test_results_are_independent(self, rss_bytes):
        first = parse(rss_bytes)
        second = parse(rss_bytes)

        first.items[0].title = "changed"
        first.items.clear()

        assert second.items[0].title == "Episode 3: Tape Loops"

    def test_concurrent_parsing(self, load_feed):
        names = ["rss_feed.xml", "atom10_feed.xml", "json10_feed.json", "rdf_feed.xml"] * 8
        payloads = [load_feed(name) for name in names]

        with ThreadPoolExecutor(max_workers=8) as pool:
            feeds = list(pool.map(parse, payloads))

        for payload, feed in zip(payloads, feeds, strict=True):
            assert feed == parse(payload)

    def test_multibyte_declared_encoding(self):
        data = '<?xml version="1.0" encoding="GB2312"?><rss version="2.0"><channel><title>新闻</title></channel></rss>'
        feed = parse(data.encode("gb2312"))

        assert feed.feed_type is FeedType.RSS
        assert feed.title == "新闻"

    def test_deep_json_nesting_is_a_parse_error(self):
        with pytest.raises(FeedParseError):
            parse(b'{"items": ' + b"[" * 200000 + b"]" * 200000 + b"}")

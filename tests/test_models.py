"""Tests for the canonical model and item ordering."""

from datetime import UTC, datetime, timedelta, timezone

from unifeed.models import Feed, Item, item_sort_key


def _item(title: str, seconds: int | None) -> Item:
    published = datetime.fromtimestamp(seconds, tz=UTC) if seconds is not None else None
    return Item(title=title, published_parsed=published)


class TestFeedSort:
    def test_sorts_oldest_first(self):
        oldest = _item("oldest", 0)
        inbetween = _item("inbetween", 1)
        newest = _item("newest", 2)
        feed = Feed(items=[newest, oldest, inbetween])

        feed.sort()

        assert feed.items == [oldest, inbetween, newest]

    def test_every_initial_order(self):
        items = [_item("t0", 100), _item("t1", 200), _item("t2", 300)]
        orders = [
            [0, 1, 2],
            [0, 2, 1],
            [1, 0, 2],
            [1, 2, 0],
            [2, 0, 1],
            [2, 1, 0],
        ]
        for order in orders:
            feed = Feed(items=[items[index] for index in order])
            feed.sort()
            assert [item.title for item in feed.items] == ["t0", "t1", "t2"]

    def test_undated_items_first_in_document_order(self):
        dated = _item("dated", 10)
        undated_a = _item("undated-a", None)
        undated_b = _item("undated-b", None)
        feed = Feed(items=[dated, undated_a, undated_b])

        feed.sort()

        assert [item.title for item in feed.items] == ["undated-a", "undated-b", "dated"]

    def test_undated_before_pre_epoch_dates(self):
        ancient = Item(title="ancient", published_parsed=datetime(1901, 1, 1, tzinfo=UTC))
        undated = Item(title="undated")
        feed = Feed(items=[ancient, undated])

        feed.sort()

        assert [item.title for item in feed.items] == ["undated", "ancient"]

    def test_mixed_offsets_compare_by_instant(self):
        east = Item(title="east", published_parsed=datetime(2024, 1, 1, 9, 0, tzinfo=timezone(timedelta(hours=9))))
        utc = Item(title="utc", published_parsed=datetime(2024, 1, 1, 1, 0, tzinfo=UTC))
        feed = Feed(items=[utc, east])

        feed.sort()

        assert [item.title for item in feed.items] == ["east", "utc"]

    def test_reverse(self):
        feed = Feed(items=[_item("a", 1), _item("b", 2)])
        feed.sort(reverse=True)
        assert [item.title for item in feed.items] == ["b", "a"]


class TestFeedDefaults:
    def test_items_never_none(self):
        feed = Feed()
        assert feed.items == []
        assert len(feed) == 0

    def test_items_not_shared_between_feeds(self):
        first, second = Feed(), Feed()
        first.items.append(Item(title="only in first"))
        assert second.items == []

    def test_display_title_for_missing_title(self):
        assert Feed().display_title == ""

    def test_item_body_empty_when_missing(self):
        assert Item().body == ""


def test_item_sort_key_for_undated():
    assert item_sort_key(Item()) < item_sort_key(Item(published_parsed=datetime(1, 1, 1, tzinfo=UTC)))


def test_sort_handles_year_one_with_positive_offset():
    plus_one = Item(title="plus one", published_parsed=datetime(1, 1, 1, tzinfo=timezone(timedelta(hours=1))))
    utc = Item(title="utc", published_parsed=datetime(1, 1, 1, tzinfo=UTC))
    feed = Feed(items=[utc, Item(title="undated"), plus_one])

    feed.sort()

    assert [item.title for item in feed.items] == ["undated", "plus one", "utc"]

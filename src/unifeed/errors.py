"""Exception types raised by the feed parsing layer."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from unifeed.sniff import FeedType


class FeedError(RuntimeError):
    """Base class for feed ingestion failures."""


class UnknownFeedTypeError(FeedError):
    """Raised when the content does not look like any supported feed dialect."""

    def __init__(self, message: str = "Failed to detect feed type") -> None:
        super().__init__(message)


class FeedParseError(FeedError):
    """Raised when a dialect parser cannot build its records from the content."""

    def __init__(self, message: str, feed_type: FeedType | None = None) -> None:
        super().__init__(message)
        self.feed_type = feed_type


class FeedTooLargeError(FeedError):
    """Raised when the input exceeds the configured size cap."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Feed content exceeds {limit} bytes (got at least {size})")
        self.size = size
        self.limit = limit


class FetchError(FeedError):
    """Raised when feed content cannot be retrieved."""

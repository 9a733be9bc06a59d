"""Date parsing for the date formats feeds actually publish."""

from __future__ import annotations

from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from enum import Enum

import structlog
from dateutil.parser import parse as parse_datetime  # type: ignore[import-untyped]

logger = structlog.get_logger()


class DateStyle(Enum):
    RFC822 = "rfc822"
    RFC3339 = "rfc3339"


# Abbreviations seen in RSS pubDates that dateutil does not resolve on its own.
_TZINFOS = {
    "UT": 0,
    "UTC": 0,
    "GMT": 0,
    "Z": 0,
    "EST": -5 * 3600,
    "EDT": -4 * 3600,
    "CST": -6 * 3600,
    "CDT": -5 * 3600,
    "MST": -7 * 3600,
    "MDT": -6 * 3600,
    "PST": -8 * 3600,
    "PDT": -7 * 3600,
    "BST": 1 * 3600,
    "CET": 1 * 3600,
    "CEST": 2 * 3600,
}

_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def parse_date(value: str | None, style: DateStyle = DateStyle.RFC822) -> datetime | None:
    """Parse a feed date string into an aware datetime.

    The dialect's own format is tried first, then the other common one, then
    dateutil as a last resort. Naive results are taken as UTC. Returns None
    instead of raising when nothing matches.
    """
    if not value:
        return None
    text = value.strip()
    if not text:
        return None

    if style is DateStyle.RFC822:
        attempts = (_parse_rfc822, _parse_rfc3339, _parse_fallback)
    else:
        attempts = (_parse_rfc3339, _parse_rfc822, _parse_fallback)

    for attempt in attempts:
        parsed = attempt(text)
        if parsed is not None:
            return _ensure_aware(parsed)

    logger.debug("Unparseable feed date", value=text, style=style.value)
    return None


def _parse_rfc822(text: str) -> datetime | None:
    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return None


def _parse_rfc3339(text: str) -> datetime | None:
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00").replace("z", "+00:00"))
    except ValueError:
        return None


def _parse_fallback(text: str) -> datetime | None:
    # dateutil fills missing fields from `default`. Two defaults that yield
    # different results mean the string was not a complete date.
    try:
        first = parse_datetime(text, default=_DEFAULTS[0], tzinfos=_TZINFOS)
        second = parse_datetime(text, default=_DEFAULTS[1], tzinfos=_TZINFOS)
    except (ValueError, OverflowError):
        return None
    if first != second:
        return None
    return first


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value

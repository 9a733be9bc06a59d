"""JSON Feed 1.0 / 1.1 parser."""

from __future__ import annotations

import json
from typing import Annotated, Any

import structlog
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

from unifeed.errors import FeedParseError
from unifeed.sniff import FeedType, strip_preamble

logger = structlog.get_logger()


def _lenient_str(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _lenient_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _lenient_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _dicts_only(value: Any) -> list[Any]:
    return [entry for entry in _lenient_list(value) if isinstance(entry, dict)]


def _strings_only(value: Any) -> list[str]:
    return [entry for entry in (_lenient_str(v) for v in _lenient_list(value)) if entry]


OptionalStr = Annotated[str | None, BeforeValidator(_lenient_str)]
OptionalInt = Annotated[int | None, BeforeValidator(_lenient_int)]


class JsonAuthor(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: OptionalStr = None
    url: OptionalStr = None
    avatar: OptionalStr = None


def _author_or_none(value: Any) -> Any:
    return value if isinstance(value, dict) else None


OptionalAuthor = Annotated[JsonAuthor | None, BeforeValidator(_author_or_none)]
AuthorList = Annotated[list[JsonAuthor], BeforeValidator(_dicts_only)]


class JsonAttachment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: OptionalStr = None
    mime_type: OptionalStr = None
    title: OptionalStr = None
    size_in_bytes: OptionalInt = None
    duration_in_seconds: OptionalInt = None


class JsonItem(BaseModel):
    """A JSON Feed item; ids may be numbers in the wild and are kept as strings."""

    model_config = ConfigDict(extra="ignore")

    id: OptionalStr = None
    url: OptionalStr = None
    external_url: OptionalStr = None
    title: OptionalStr = None
    content_html: OptionalStr = None
    content_text: OptionalStr = None
    summary: OptionalStr = None
    image: OptionalStr = None
    banner_image: OptionalStr = None
    date_published: OptionalStr = None
    date_modified: OptionalStr = None
    language: OptionalStr = None
    author: OptionalAuthor = None
    authors: AuthorList = Field(default_factory=list)
    tags: Annotated[list[str], BeforeValidator(_strings_only)] = Field(default_factory=list)
    attachments: Annotated[list[JsonAttachment], BeforeValidator(_dicts_only)] = Field(default_factory=list)


class JsonFeed(BaseModel):
    model_config = ConfigDict(extra="ignore")

    version: OptionalStr = None
    title: OptionalStr = None
    home_page_url: OptionalStr = None
    feed_url: OptionalStr = None
    description: OptionalStr = None
    user_comment: OptionalStr = None
    next_url: OptionalStr = None
    icon: OptionalStr = None
    favicon: OptionalStr = None
    language: OptionalStr = None
    author: OptionalAuthor = None
    authors: AuthorList = Field(default_factory=list)
    items: list[JsonItem] = Field(default_factory=list)


class JsonFeedParser:
    """Parses JSON Feed documents into JsonFeed records.

    Unknown keys are ignored and mistyped optional fields drop to None, so
    newer JSON Feed versions still parse. Only non-JSON input, a non-object
    top level or a non-list ``items`` fail the parse.
    """

    @property
    def feed_type(self) -> FeedType:
        return FeedType.JSON

    def parse(self, data: bytes | str) -> JsonFeed:
        content = strip_preamble(data)
        if not content:
            raise FeedParseError("Feed content is empty", FeedType.JSON)
        try:
            payload = json.loads(content)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Feed parse error", feed_type=FeedType.JSON.value, error=str(exc))
            raise FeedParseError(f"Malformed json document: {exc}", FeedType.JSON) from exc
        except RecursionError as exc:
            logger.warning("Feed nesting too deep", feed_type=FeedType.JSON.value)
            raise FeedParseError("JSON document is nested too deeply", FeedType.JSON) from exc

        if not isinstance(payload, dict):
            raise FeedParseError("JSON Feed top level must be an object", FeedType.JSON)

        items = payload.get("items")
        if items is None:
            items = []
        if not isinstance(items, list):
            raise FeedParseError("JSON Feed 'items' must be a list", FeedType.JSON)

        kept = [item for item in items if isinstance(item, dict)]
        if len(kept) != len(items):
            logger.warning("Skipping non-object JSON Feed items", skipped=len(items) - len(kept))

        try:
            feed = JsonFeed.model_validate({**payload, "items": kept})
        except ValidationError as exc:
            raise FeedParseError(f"Invalid JSON Feed structure: {exc}", FeedType.JSON) from exc

        logger.debug("Parsed JSON feed", version=feed.version, items=len(feed.items))
        return feed

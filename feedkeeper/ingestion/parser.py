"""RSS/Atom parsing into source-ordered raw items."""
from __future__ import annotations

import calendar
import io
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, List, Optional

import feedparser

from feedkeeper.errors import ParseError

logger = logging.getLogger(__name__)

DEFAULT_FEED_TITLE = "Feed"


@dataclass(frozen=True)
class RawItem:
    """A syndication item prior to normalization.

    ``body`` is resolved once at parse time: the first ``content`` value when the
    item carries one, otherwise its ``summary``, otherwise an empty string.
    """

    title: Optional[str]
    published: Optional[datetime]
    links: List[str] = field(default_factory=list)
    body: str = ""


@dataclass(frozen=True)
class ParsedFeed:
    title: str
    items: List[RawItem]


def _parse_with_offset(raw: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 822 or ISO 8601 date string keeping the feed's own offset."""

    if not raw or not raw.strip():
        return None
    value: Optional[datetime] = None
    try:
        value = parsedate_to_datetime(raw.strip())
    except (TypeError, ValueError, IndexError):
        try:
            value = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    # Naive results (e.g. "-0000" zones) fall back to feedparser's UTC tuple.
    if value is None or value.tzinfo is None:
        return None
    return value


def _parse_datetime(entry: Any) -> Optional[datetime]:
    for key in ("published", "updated"):
        value = _parse_with_offset(entry.get(key))
        if value is not None:
            return value
        parsed = entry.get(f"{key}_parsed")
        if parsed:
            try:
                return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
            except (OverflowError, ValueError, OSError):
                return None
    return None


def _extract_links(entry: Any) -> List[str]:
    links: List[str] = []
    for link in entry.get("links") or []:
        href = link.get("href") if hasattr(link, "get") else None
        if href and href not in links:
            links.append(href)
    primary = entry.get("link")
    if primary and primary not in links:
        links.append(primary)
    return links


def _extract_body(entry: Any) -> str:
    for content in entry.get("content") or []:
        value = content.get("value") if hasattr(content, "get") else None
        if value:
            return value
    return entry.get("summary") or ""


def parse_feed(document: bytes) -> ParsedFeed:
    """Parse raw feed bytes, raising :class:`ParseError` for non-feed documents."""

    # A stream keeps feedparser from treating the body as a local path or URL.
    parsed = feedparser.parse(io.BytesIO(document))
    if not parsed.get("version"):
        reason = parsed.get("bozo_exception") or "unrecognised document format"
        raise ParseError(f"Unable to parse RSS feed: {reason}")

    if parsed.get("bozo"):
        logger.warning(
            "Feed parsing issues encountered: %s",
            parsed.get("bozo_exception"),
            extra={"event": "feed.parse_warning"},
        )

    feed_meta = parsed.get("feed") or {}
    title = (feed_meta.get("title") or "").strip() or DEFAULT_FEED_TITLE

    items = [
        RawItem(
            title=entry.get("title") or None,
            published=_parse_datetime(entry),
            links=_extract_links(entry),
            body=_extract_body(entry),
        )
        for entry in parsed.get("entries") or []
    ]
    return ParsedFeed(title=title, items=items)


__all__ = ["DEFAULT_FEED_TITLE", "ParsedFeed", "RawItem", "parse_feed"]

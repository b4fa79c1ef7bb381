"""Data model for retrieved feeds and their presentation projection."""
from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class ImageData:
    """Representative image embedded as base64 alongside its MIME type."""

    base64: str
    mime_type: str

    def decode(self) -> bytes:
        return base64.b64decode(self.base64, validate=True)


@dataclass(frozen=True)
class FeedEntry:
    """Normalized feed entry with HTML-free content."""

    title: str
    publish_date: datetime
    content: str = ""
    inline_content: str = ""
    link: str = ""
    image: Optional[ImageData] = None


@dataclass(frozen=True)
class FeedDocument:
    """A retrieved feed together with the metadata needed to reopen it offline."""

    title: str
    source_url: str
    retrieved_at: datetime
    entries: Tuple[FeedEntry, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DisplayEntry:
    title: str
    publish_date: datetime
    content: str
    link: str
    image_bytes: Optional[bytes] = None
    image_mime_type: Optional[str] = None

    @property
    def publish_date_display(self) -> str:
        return self.publish_date.astimezone().strftime("%A, %d %B %Y %H:%M")


def build_display_content(entry: FeedEntry) -> str:
    """Join the feed content and any inlined article text with a blank line."""

    parts = [part.strip() for part in (entry.content, entry.inline_content) if part and part.strip()]
    return "\n\n".join(parts)


def to_display(entry: FeedEntry) -> DisplayEntry:
    """Project ``entry`` into the shape rendered by a presentation layer."""

    image_bytes: Optional[bytes] = None
    mime_type: Optional[str] = None
    if entry.image is not None and entry.image.base64.strip():
        try:
            image_bytes = entry.image.decode()
            mime_type = entry.image.mime_type
        except (binascii.Error, ValueError):
            image_bytes = None

    return DisplayEntry(
        title=entry.title,
        publish_date=entry.publish_date,
        content=build_display_content(entry),
        link=entry.link,
        image_bytes=image_bytes,
        image_mime_type=mime_type,
    )


__all__ = [
    "DisplayEntry",
    "FeedDocument",
    "FeedEntry",
    "ImageData",
    "build_display_content",
    "to_display",
]

"""Per-item normalization and enrichment of parsed feed entries."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from feedkeeper.cancellation import CancellationToken
from feedkeeper.config.settings import FetchSettings
from feedkeeper.errors import OperationCancelled
from feedkeeper.ingestion.extractor import ArticleExtractor
from feedkeeper.ingestion.fetcher import RemoteFetcher
from feedkeeper.ingestion.images import download_image, first_image_url, resolve_image_url
from feedkeeper.ingestion.links import resolve_single_link
from feedkeeper.ingestion.parser import RawItem
from feedkeeper.ingestion.sanitizer import clean_text, decode_entities
from feedkeeper.models import FeedEntry, ImageData
from feedkeeper.telemetry import metrics

logger = logging.getLogger(__name__)

UNTITLED = "Untitled"
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def is_short_content(text: Optional[str], max_chars: int = 200, max_words: int = 40) -> bool:
    """Whether ``text`` is too terse to stand on its own without the linked article."""

    trimmed = (text or "").strip()
    if not trimmed or len(trimmed) <= max_chars:
        return True
    return len(trimmed.split()) <= max_words


def _is_missing_date(value: Optional[datetime]) -> bool:
    if value is None:
        return True
    if value.tzinfo is None:
        return value == datetime.min or value == EPOCH.replace(tzinfo=None)
    return value == EPOCH


class EntryBuilder:
    """Turn a :class:`RawItem` into an immutable :class:`FeedEntry`.

    Only cancellation escapes :meth:`build`; inline article and image failures
    leave the corresponding field empty.
    """

    def __init__(
        self,
        fetcher: RemoteFetcher,
        settings: Optional[FetchSettings] = None,
        extractor: Optional[ArticleExtractor] = None,
    ) -> None:
        self._fetcher = fetcher
        self._settings = settings or FetchSettings()
        self._extractor = extractor or ArticleExtractor(fetcher)

    def build(self, item: RawItem, cancel_token: Optional[CancellationToken] = None) -> FeedEntry:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        raw_content = item.body or ""
        content = clean_text(raw_content)
        link = item.links[0] if item.links else ""

        inline_content = self._attempt_inline(item, raw_content, content, cancel_token)
        image = self._attempt_image(raw_content, link, cancel_token)

        published = item.published
        if _is_missing_date(published):
            published = datetime.now(timezone.utc)

        return FeedEntry(
            title=decode_entities(item.title) or UNTITLED,
            publish_date=published,
            content=content,
            inline_content=inline_content,
            link=link,
            image=image,
        )

    def _attempt_inline(
        self,
        item: RawItem,
        raw_content: str,
        content: str,
        cancel_token: Optional[CancellationToken],
    ) -> str:
        if not self._settings.inline_articles:
            return ""
        if not is_short_content(content, self._settings.short_content_chars, self._settings.short_content_words):
            return ""

        target = resolve_single_link(item.links, raw_content, content)
        if target is None:
            logger.debug(
                "No unambiguous link to inline for %r",
                item.title,
                extra={"event": "entry.inline_skipped"},
            )
            metrics.record_enrichment("inline", "skipped")
            return ""

        try:
            article = self._extractor.extract(target, cancel_token)
        except OperationCancelled:
            raise
        except Exception as exc:
            logger.info(
                "Inline article unavailable for %s: %s",
                target,
                exc,
                extra={"event": "entry.inline_failed", "url": target},
            )
            metrics.record_enrichment("inline", "failure")
            return ""

        logger.info(
            "Inlined article text from %s",
            target,
            extra={"event": "entry.inlined", "url": target, "chars": len(article.text)},
        )
        metrics.record_enrichment("inline", "success")
        return article.text

    def _attempt_image(
        self,
        raw_content: str,
        link: str,
        cancel_token: Optional[CancellationToken],
    ) -> Optional[ImageData]:
        if not self._settings.embed_images:
            return None
        image_url = first_image_url(raw_content)
        if image_url is None:
            return None

        image_url = resolve_image_url(image_url, link)
        try:
            image = download_image(self._fetcher, image_url, cancel_token)
        except OperationCancelled:
            raise
        except Exception as exc:
            logger.info(
                "Image unavailable for %s: %s",
                image_url,
                exc,
                extra={"event": "entry.image_failed", "url": image_url},
            )
            metrics.record_enrichment("image", "failure")
            return None

        metrics.record_enrichment("image", "success")
        return image


__all__ = ["EntryBuilder", "UNTITLED", "is_short_content"]

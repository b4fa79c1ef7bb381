"""Inline article extraction from linked web pages."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from feedkeeper.cancellation import CancellationToken
from feedkeeper.errors import FeedKeeperError
from feedkeeper.ingestion.fetcher import RemoteFetcher
from feedkeeper.ingestion.sanitizer import clean_text

logger = logging.getLogger(__name__)

ARTICLE_RE = re.compile(r"<article[^>]*>(?P<region>.*?)</article>", re.IGNORECASE | re.DOTALL)
BODY_RE = re.compile(r"<body[^>]*>(?P<region>.*?)</body>", re.IGNORECASE | re.DOTALL)


class ExtractionError(FeedKeeperError):
    """Raised when a fetched page is unsuitable for inlining."""


@dataclass
class ExtractedArticle:
    """Plain-text main region of a fetched article page."""

    url: str
    text: str


def is_textual_media_type(media_type: Optional[str]) -> bool:
    # An absent Content-Type header is given the benefit of the doubt.
    if media_type is None:
        return True
    lowered = media_type.lower()
    return "html" in lowered or lowered.startswith("text")


def extract_main_region(page_html: Optional[str]) -> str:
    """Return the first ``<article>`` block, else the ``<body>``, else the whole page."""

    if not page_html:
        return ""
    for pattern in (ARTICLE_RE, BODY_RE):
        match = pattern.search(page_html)
        if match:
            return match.group("region")
    return page_html


class ArticleExtractor:
    """Fetch a linked page and reduce it to readable article text."""

    def __init__(self, fetcher: RemoteFetcher) -> None:
        self._fetcher = fetcher

    def extract(self, url: str, cancel_token: Optional[CancellationToken] = None) -> ExtractedArticle:
        """Fetch and extract article content from the provided URL.

        Network failures propagate as :class:`~feedkeeper.errors.NetworkError`;
        pages with a non-text media type or no readable text raise
        :class:`ExtractionError`.
        """

        result = self._fetcher.fetch(url, cancel_token)
        if not is_textual_media_type(result.content_type):
            raise ExtractionError(f"Unsupported content type {result.content_type!r} for {url}")

        text = clean_text(extract_main_region(result.text))
        if not text.strip():
            raise ExtractionError(f"No readable text found at {url}")

        logger.debug("Extracted %d characters from %s", len(text), url)
        return ExtractedArticle(url=url, text=text)


__all__ = [
    "ArticleExtractor",
    "ExtractedArticle",
    "ExtractionError",
    "extract_main_region",
    "is_textual_media_type",
]

"""Locate and embed the representative image of a feed entry."""
from __future__ import annotations

import base64
import html
import logging
import re
from typing import Optional
from urllib.parse import urljoin

from feedkeeper.cancellation import CancellationToken
from feedkeeper.ingestion.fetcher import RemoteFetcher
from feedkeeper.models import ImageData

logger = logging.getLogger(__name__)

IMG_SRC_RE = re.compile(r"""<img\b[^>]*?\ssrc\s*=\s*(["'])(?P<url>.*?)\1""", re.IGNORECASE | re.DOTALL)
DEFAULT_IMAGE_MIME_TYPE = "application/octet-stream"


def first_image_url(raw_html: Optional[str]) -> Optional[str]:
    """Return the ``src`` of the first ``<img>`` tag, or ``None``."""

    if not raw_html or not raw_html.strip():
        return None
    for match in IMG_SRC_RE.finditer(raw_html):
        url = html.unescape(match.group("url")).strip()
        if url:
            return url
    return None


def resolve_image_url(image_url: str, base_url: Optional[str]) -> str:
    # Feeds often reference images relative to the article page.
    if base_url:
        return urljoin(base_url, image_url)
    return image_url


def download_image(
    fetcher: RemoteFetcher,
    url: str,
    cancel_token: Optional[CancellationToken] = None,
) -> ImageData:
    result = fetcher.fetch(url, cancel_token)
    encoded = base64.b64encode(result.content).decode("ascii")
    return ImageData(base64=encoded, mime_type=result.content_type or DEFAULT_IMAGE_MIME_TYPE)


__all__ = ["DEFAULT_IMAGE_MIME_TYPE", "download_image", "first_image_url", "resolve_image_url"]

"""Heuristics for finding the single external page a feed entry refers to."""
from __future__ import annotations

import html
import re
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

ANCHOR_HREF_RE = re.compile(r"""<a\b[^>]*?\shref\s*=\s*(["'])(?P<url>.*?)\1""", re.IGNORECASE | re.DOTALL)
BARE_URL_RE = re.compile(r"""https?://[^\s"'<>]+""", re.IGNORECASE)
WEB_SCHEMES = ("http", "https")


def is_absolute_url(candidate: str, schemes: Optional[Tuple[str, ...]] = None) -> bool:
    try:
        parsed = urlparse(candidate)
    except ValueError:
        return False
    if schemes is not None and parsed.scheme.lower() not in schemes:
        return False
    return bool(parsed.scheme and parsed.netloc)


def extract_anchor_links(raw_html: Optional[str]) -> List[str]:
    """Return the ``href`` values of anchor tags in document order."""

    if not raw_html:
        return []
    return [html.unescape(match.group("url")) for match in ANCHOR_HREF_RE.finditer(raw_html)]


def extract_bare_urls(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return BARE_URL_RE.findall(text)


def resolve_single_link(
    item_links: Iterable[str],
    raw_html: Optional[str],
    clean_text: Optional[str],
) -> Optional[str]:
    """Return the only distinct absolute URL across all sources, or ``None``.

    Candidates come from the item's own http(s) links, anchor ``href`` values in
    ``raw_html`` and bare URLs in ``clean_text``. Comparison is case-insensitive
    after trimming; any ambiguity yields ``None``.
    """

    candidates: List[str] = []
    for link in item_links:
        if link and is_absolute_url(link.strip(), WEB_SCHEMES):
            candidates.append(link)
    candidates.extend(extract_anchor_links(raw_html))
    candidates.extend(extract_bare_urls(clean_text))

    distinct: Dict[str, str] = {}
    for candidate in candidates:
        trimmed = candidate.strip()
        if not is_absolute_url(trimmed):
            continue
        distinct.setdefault(trimmed.casefold(), trimmed)
        if len(distinct) > 1:
            return None

    if len(distinct) == 1:
        return next(iter(distinct.values()))
    return None


__all__ = [
    "extract_anchor_links",
    "extract_bare_urls",
    "is_absolute_url",
    "resolve_single_link",
]

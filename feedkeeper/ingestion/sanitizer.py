"""Best-effort conversion of HTML fragments into readable plain text.

The cleaner works on regular expressions rather than a real parser so that
malformed markup degrades to slightly noisier text instead of an exception.
"""
from __future__ import annotations

import html
import re
from typing import Optional

SCRIPT_RE = re.compile(r"<script.*?</script>", re.IGNORECASE | re.DOTALL)
BLOCK_BREAK_RE = re.compile(r"<(?:br|p|/p)\b[^>]*>", re.IGNORECASE)
TAG_RE = re.compile(r"<[^>]+>")
LINE_ENDING_RE = re.compile(r"\r\n?")
TRAILING_SPACE_RE = re.compile(r"[ \t\f\v\xa0]+\n")
BLANK_RUN_RE = re.compile(r"\n{3,}")
# Leftover brackets from decoded entities or broken tags, plus characters XML cannot carry.
STRAY_RE = re.compile("[<>\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def decode_entities(text: Optional[str]) -> str:
    return html.unescape(text) if text else ""


def clean_text(raw_html: Optional[str]) -> str:
    """Return ``raw_html`` as trimmed plain text with at most one blank line in a row."""

    if not raw_html or not raw_html.strip():
        return ""

    text = decode_entities(raw_html)
    text = SCRIPT_RE.sub("", text)
    text = BLOCK_BREAK_RE.sub("\n", text)
    text = TAG_RE.sub("", text)
    text = STRAY_RE.sub("", text)
    text = LINE_ENDING_RE.sub("\n", text)
    text = TRAILING_SPACE_RE.sub("\n", text).strip()
    return BLANK_RUN_RE.sub("\n\n", text)


__all__ = ["clean_text", "decode_entities"]

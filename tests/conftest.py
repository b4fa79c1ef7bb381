from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List, Optional, Union

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from feedkeeper.cancellation import CancellationToken
from feedkeeper.ingestion.fetcher import FetchResult
from feedkeeper.telemetry import metrics


class StubFetcher:
    """In-memory replacement for ``RemoteFetcher`` keyed by URL."""

    def __init__(self, responses: Optional[Dict[str, Union[FetchResult, Exception]]] = None) -> None:
        self.responses: Dict[str, Union[FetchResult, Exception]] = dict(responses or {})
        self.calls: List[str] = []

    def add(self, url: str, body: Union[str, bytes], content_type: Optional[str] = "text/html") -> None:
        content = body.encode("utf-8") if isinstance(body, str) else body
        self.responses[url] = FetchResult(url=url, content=content, content_type=content_type, charset="utf-8")

    def fetch(self, url: str, cancel_token: Optional[CancellationToken] = None) -> FetchResult:
        self.calls.append(url)
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        response = self.responses.get(url)
        if response is None:
            raise AssertionError(f"Unexpected fetch of {url}")
        if isinstance(response, Exception):
            raise response
        return response


def rss_document(items: str, title: str = "Example Feed") -> str:
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>{title}</title>
    <link>https://example.com/</link>
    <description>Example</description>
    {items}
  </channel>
</rss>"""


@pytest.fixture(autouse=True)
def _reset_metrics() -> None:
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture()
def stub_fetcher() -> StubFetcher:
    return StubFetcher()

"""HTTP retrieval of feed documents, article pages and images."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import requests

from feedkeeper.cancellation import CancellationToken
from feedkeeper.errors import HttpStatusError, NetworkError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResult:
    """Raw response body with its declared media type.

    ``content_type`` holds the bare, lower-cased media type (``text/html``) or
    ``None`` when the server did not send a ``Content-Type`` header.
    """

    url: str
    content: bytes
    content_type: Optional[str]
    charset: Optional[str] = None

    @property
    def text(self) -> str:
        if self.charset:
            try:
                return self.content.decode(self.charset, errors="replace")
            except LookupError:
                logger.debug("Unknown charset %s for %s", self.charset, self.url)
        return self.content.decode("utf-8", errors="replace")


def parse_content_type(header: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Split a ``Content-Type`` header into media type and charset."""

    if not header or not header.strip():
        return None, None
    media_type, _, params = header.partition(";")
    charset = None
    for param in params.split(";"):
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset" and value.strip():
            charset = value.strip().strip("\"'")
    return media_type.strip().lower() or None, charset


class RemoteFetcher:
    """Perform single-shot HTTP GET requests with a bounded timeout."""

    def __init__(
        self,
        timeout: float = 20,
        user_agent: str = "FeedKeeperBot/0.1",
        chunk_size: int = 65536,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._timeout = timeout
        self._chunk_size = chunk_size
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent})

    def fetch(self, url: str, cancel_token: Optional[CancellationToken] = None) -> FetchResult:
        """Download ``url`` and return its body; no retry is attempted."""

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        try:
            response = self._session.get(url, timeout=self._timeout, stream=True, allow_redirects=True)
        except requests.Timeout as exc:
            raise NetworkError(f"Timed out after {self._timeout}s fetching {url}", url=url) from exc
        except requests.RequestException as exc:
            raise NetworkError(f"Failed to fetch {url}: {exc}", url=url) from exc

        try:
            if not 200 <= response.status_code < 300:
                raise HttpStatusError(url, response.status_code, response.reason or "")
            content = self._read_body(url, response, cancel_token)
            media_type, charset = parse_content_type(response.headers.get("Content-Type"))
        finally:
            response.close()

        logger.debug("Fetched %s (%d bytes, %s)", url, len(content), media_type)
        return FetchResult(url=url, content=content, content_type=media_type, charset=charset)

    def _read_body(
        self,
        url: str,
        response: requests.Response,
        cancel_token: Optional[CancellationToken],
    ) -> bytes:
        chunks = []
        try:
            for chunk in response.iter_content(chunk_size=self._chunk_size):
                if cancel_token is not None:
                    cancel_token.raise_if_cancelled()
                if chunk:
                    chunks.append(chunk)
        except requests.Timeout as exc:
            raise NetworkError(f"Timed out reading {url}", url=url) from exc
        except requests.RequestException as exc:
            raise NetworkError(f"Failed while reading {url}: {exc}", url=url) from exc
        return b"".join(chunks)

    def close(self) -> None:
        self._session.close()


__all__ = ["FetchResult", "RemoteFetcher", "parse_content_type"]

"""Exception hierarchy shared across the feed pipeline."""
from __future__ import annotations

from typing import Optional


class FeedKeeperError(RuntimeError):
    """Base class for errors surfaced to callers of the feed pipeline."""


class NetworkError(FeedKeeperError):
    """Raised when a remote resource cannot be retrieved."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class HttpStatusError(NetworkError):
    """Raised when the remote server answers with a non-success status."""

    def __init__(self, url: str, status_code: int, reason: str = "") -> None:
        detail = f"{status_code} {reason}".strip()
        super().__init__(f"HTTP {detail} for {url}", url=url)
        self.status_code = status_code


class ParseError(FeedKeeperError):
    """Raised when downloaded bytes are not a usable RSS/Atom document."""


class FormatError(FeedKeeperError):
    """Raised when a persisted feed file is malformed."""


class StorageError(FeedKeeperError):
    """Raised when a feed file cannot be read or written."""


class OperationCancelled(FeedKeeperError):
    """Raised when the caller cancels an in-flight operation."""


__all__ = [
    "FeedKeeperError",
    "FormatError",
    "HttpStatusError",
    "NetworkError",
    "OperationCancelled",
    "ParseError",
    "StorageError",
]

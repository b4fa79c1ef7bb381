"""Operations offered to presentation shells: fetch, save and load feeds."""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from feedkeeper.cancellation import CancellationToken
from feedkeeper.config.settings import AppSettings
from feedkeeper.errors import NetworkError, OperationCancelled, ParseError
from feedkeeper.ingestion.builder import EntryBuilder
from feedkeeper.ingestion.fetcher import RemoteFetcher
from feedkeeper.ingestion.links import WEB_SCHEMES, is_absolute_url
from feedkeeper.ingestion.parser import ParsedFeed, RawItem, parse_feed
from feedkeeper.models import FeedDocument, FeedEntry
from feedkeeper.storage.codec import ReadSource, WriteTarget, load_document, save_document
from feedkeeper.telemetry import metrics

logger = logging.getLogger(__name__)


def assemble_feed(
    url: str,
    title: str,
    entries: Sequence[FeedEntry],
    retrieved_at: Optional[datetime] = None,
) -> FeedDocument:
    """Wrap built entries with feed-level metadata."""

    return FeedDocument(
        title=title,
        source_url=url,
        retrieved_at=retrieved_at or datetime.now(timezone.utc),
        entries=tuple(entries),
    )


class FeedService:
    """Fetch a feed, normalize a bounded number of its entries and persist the result.

    The service keeps no state between calls; callers own the returned
    :class:`FeedDocument` and are expected to run one fetch at a time.
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        fetcher: Optional[RemoteFetcher] = None,
        builder: Optional[EntryBuilder] = None,
    ) -> None:
        self._settings = settings or AppSettings()
        fetch_settings = self._settings.fetch
        self._fetcher = fetcher or RemoteFetcher(
            timeout=fetch_settings.request_timeout,
            user_agent=fetch_settings.user_agent,
            chunk_size=fetch_settings.chunk_size,
        )
        self._builder = builder or EntryBuilder(self._fetcher, fetch_settings)

    @property
    def settings(self) -> AppSettings:
        return self._settings

    def fetch_feed(
        self,
        url: str,
        max_entries: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> FeedDocument:
        """Download ``url`` and build up to ``max_entries`` normalized entries.

        Network and parse failures of the feed itself propagate; per-entry
        enrichment failures only leave fields empty.
        """

        url = (url or "").strip()
        if not is_absolute_url(url, WEB_SCHEMES):
            raise ValueError(f"Please enter a valid RSS feed URL (got {url!r})")
        count = self._settings.fetch.max_entries if max_entries is None else max_entries
        if count < 1:
            raise ValueError("max_entries must be at least 1")

        token = cancel_token or CancellationToken()
        start_time = time.perf_counter()
        status = "success"
        entries: List[FeedEntry] = []
        logger.info("Fetching feed %s", url, extra={"event": "feed.fetch", "url": url, "max_entries": count})
        try:
            result = self._fetcher.fetch(url, token)
            parsed: ParsedFeed = parse_feed(result.content)
            entries = self._build_entries(parsed.items[:count], token)
        except OperationCancelled:
            status = "cancelled"
            logger.info("Fetch of %s cancelled", url, extra={"event": "feed.fetch_cancelled", "url": url})
            raise
        except (NetworkError, ParseError) as exc:
            status = "error"
            logger.warning(
                "Unable to download feed %s: %s",
                url,
                exc,
                extra={"event": "feed.fetch_error", "url": url},
            )
            raise
        except Exception:
            status = "error"
            logger.exception(
                "Failed to build feed %s",
                url,
                extra={"event": "feed.fetch_error", "url": url},
            )
            raise
        finally:
            metrics.record_fetch(url, len(entries), time.perf_counter() - start_time, status)

        document = assemble_feed(url, parsed.title, entries)
        logger.info(
            "Loaded %d entries from %s",
            len(entries),
            document.title,
            extra={"event": "feed.fetched", "url": url, "count": len(entries)},
        )
        return document

    def _build_entries(self, items: Sequence[RawItem], token: CancellationToken) -> List[FeedEntry]:
        workers = min(self._settings.fetch.max_workers, len(items))
        if workers <= 1:
            entries = []
            for item in items:
                token.raise_if_cancelled()
                entries.append(self._builder.build(item, token))
            return entries

        results: List[Optional[FeedEntry]] = [None] * len(items)
        # Failures stop sibling builds without cancelling the caller's token.
        batch_token = token.child()
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="feedkeeper-entry")
        try:
            futures = [executor.submit(self._builder.build, item, batch_token) for item in items]
            # Collect in submission order so the document mirrors the source feed.
            for index, future in enumerate(futures):
                results[index] = future.result()
        except BaseException:
            batch_token.cancel()
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        executor.shutdown(wait=True)
        return [entry for entry in results if entry is not None]

    def save_feed(self, document: FeedDocument, target: WriteTarget) -> None:
        save_document(document, target)

    def load_feed(self, source: ReadSource) -> FeedDocument:
        return load_document(source)


__all__ = ["FeedService", "assemble_feed"]

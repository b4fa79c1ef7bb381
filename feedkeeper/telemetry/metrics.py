"""Prometheus metrics for feed retrieval and per-entry enrichment."""
from __future__ import annotations

import logging
import os
from collections import Counter as Tally
from dataclasses import dataclass
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

ENRICHMENT_KINDS = ("inline", "image")
ENRICHMENT_RESULTS = ("success", "skipped", "failure")


@dataclass
class FetchEvent:
    url: str
    entry_count: int
    duration_seconds: float
    status: str


class MetricsCollector:
    """Registry of counters describing feed fetches and entry enrichment."""

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self._registry = registry or CollectorRegistry()
        self._exporter_started = False

        self._fetches = Counter(
            "feedkeeper_feed_fetches_total",
            "Feed retrievals by outcome",
            labelnames=("status",),
            registry=self._registry,
        )
        self._fetch_entries = Counter(
            "feedkeeper_feed_entries_total",
            "Entries built from retrieved feeds",
            registry=self._registry,
        )
        self._fetch_duration = Histogram(
            "feedkeeper_feed_fetch_duration_seconds",
            "Duration of a full fetch-and-build operation in seconds",
            labelnames=("status",),
            buckets=(0.5, 1, 2, 5, 10, 30, 60, 120),
            registry=self._registry,
        )
        self._enrichment = Counter(
            "feedkeeper_enrichment_total",
            "Per-entry enrichment attempts",
            labelnames=("kind", "result"),
            registry=self._registry,
        )

        self.last_fetch: Optional[FetchEvent] = None
        self.enrichment_counts: Tally = Tally()

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def enable_exporter(self, port: int) -> bool:
        """Start the Prometheus HTTP exporter serving this collector's registry."""

        if self._exporter_started:
            return True
        start_http_server(port, registry=self._registry)
        self._exporter_started = True
        logger.info("Prometheus metrics exporter started", extra={"event": "metrics.started", "port": port})
        return True

    def record_fetch(self, url: str, entry_count: int, duration_seconds: float, status: str) -> None:
        self.last_fetch = FetchEvent(url, entry_count, duration_seconds, status)
        self._fetches.labels(status=status).inc()
        self._fetch_duration.labels(status=status).observe(duration_seconds)
        if entry_count:
            self._fetch_entries.inc(entry_count)

    def record_enrichment(self, kind: str, result: str) -> None:
        if kind not in ENRICHMENT_KINDS or result not in ENRICHMENT_RESULTS:
            raise ValueError(f"Unknown enrichment outcome {kind}/{result}")
        self.enrichment_counts[(kind, result)] += 1
        self._enrichment.labels(kind=kind, result=result).inc()

    def reset(self) -> None:
        """Reset cached inspection state (primarily for tests)."""

        self.last_fetch = None
        self.enrichment_counts.clear()


metrics = MetricsCollector()


def configure_metrics_from_env() -> None:
    """Start metrics exporter when ``FEEDKEEPER_METRICS_PORT`` is defined."""

    port_value = os.getenv("FEEDKEEPER_METRICS_PORT")
    if not port_value:
        return
    try:
        port = int(port_value)
    except ValueError:
        logger.warning(
            "Invalid FEEDKEEPER_METRICS_PORT value; expected integer",
            extra={"event": "metrics.invalid_port", "value": port_value},
        )
        return
    metrics.enable_exporter(port)


__all__ = ["configure_metrics_from_env", "metrics", "FetchEvent", "MetricsCollector"]

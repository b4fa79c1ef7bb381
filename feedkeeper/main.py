"""Command-line entrypoint for FeedKeeper."""
from __future__ import annotations

from feedkeeper.cli import app
from feedkeeper.telemetry import configure_logging, configure_metrics_from_env


def main() -> None:
    configure_logging()
    configure_metrics_from_env()
    app(prog_name="feedkeeper")


if __name__ == "__main__":
    main()

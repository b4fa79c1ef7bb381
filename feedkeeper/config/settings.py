"""Application settings management for FeedKeeper."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parent.parent.parent / "config" / "settings.yaml"
ENV_SETTINGS_PATH = "FEEDKEEPER_SETTINGS"
DEFAULT_FEED_URL = "https://feeds.bbci.co.uk/news/world/rss.xml"


@dataclass
class FetchSettings:
    """Network and enrichment behaviour for a single feed retrieval."""

    request_timeout: int = 20
    user_agent: str = "FeedKeeperBot/0.1"
    max_entries: int = 5
    short_content_chars: int = 200
    short_content_words: int = 40
    max_workers: int = 1
    inline_articles: bool = True
    embed_images: bool = True
    chunk_size: int = 65536


@dataclass
class AppSettings:
    """Top-level application settings loaded from YAML."""

    fetch: FetchSettings = field(default_factory=FetchSettings)
    default_feed_url: str = DEFAULT_FEED_URL


class SettingsError(RuntimeError):
    """Raised when there is an issue loading settings."""


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise SettingsError(f"Settings file not found at {path}")
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise SettingsError("Settings file must define a mapping at the root level")
    return data


def _positive_int(entry: Dict[str, Any], key: str, default: int) -> int:
    value = entry.get(key, default)
    try:
        return max(1, int(value))
    except (TypeError, ValueError) as exc:
        raise SettingsError(f"'{key}' must be an integer, got {value!r}") from exc


def _parse_fetch(entry: Dict[str, Any]) -> FetchSettings:
    if not isinstance(entry, dict):
        raise SettingsError("'fetch' must be a mapping of configuration values")

    defaults = FetchSettings()
    return FetchSettings(
        request_timeout=_positive_int(entry, "request_timeout", defaults.request_timeout),
        user_agent=str(entry.get("user_agent", defaults.user_agent)),
        max_entries=_positive_int(entry, "max_entries", defaults.max_entries),
        short_content_chars=_positive_int(entry, "short_content_chars", defaults.short_content_chars),
        short_content_words=_positive_int(entry, "short_content_words", defaults.short_content_words),
        max_workers=_positive_int(entry, "max_workers", defaults.max_workers),
        inline_articles=bool(entry.get("inline_articles", defaults.inline_articles)),
        embed_images=bool(entry.get("embed_images", defaults.embed_images)),
        chunk_size=_positive_int(entry, "chunk_size", defaults.chunk_size),
    )


def load_settings(path: Optional[Path] = None) -> AppSettings:
    """Load application settings from YAML into ``AppSettings``.

    ``path`` defaults to the value of the ``FEEDKEEPER_SETTINGS`` environment variable
    and falls back to ``config/settings.yaml`` relative to the project root. Only the
    fallback file may be absent, in which case built-in defaults are returned.
    """

    if path is None:
        env_path = os.environ.get(ENV_SETTINGS_PATH)
        if env_path:
            path = Path(env_path)
        elif not DEFAULT_SETTINGS_PATH.exists():
            return AppSettings()
        else:
            path = DEFAULT_SETTINGS_PATH

    data = _load_yaml(path)

    fetch_raw = data.get("fetch", {})
    fetch_settings = _parse_fetch(fetch_raw) if fetch_raw else FetchSettings()
    default_feed_url = str(data.get("default_feed_url", DEFAULT_FEED_URL))

    return AppSettings(fetch=fetch_settings, default_feed_url=default_feed_url)


__all__ = [
    "AppSettings",
    "FetchSettings",
    "SettingsError",
    "load_settings",
]

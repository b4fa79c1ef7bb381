"""Configuration loading for FeedKeeper."""

from .settings import AppSettings, FetchSettings, SettingsError, load_settings

__all__ = ["AppSettings", "FetchSettings", "SettingsError", "load_settings"]

"""FeedKeeper: download RSS/Atom feeds and keep them readable offline."""

__version__ = "0.1.0"

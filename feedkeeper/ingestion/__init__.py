"""Feed acquisition and normalization pipeline."""

from .builder import EntryBuilder, is_short_content
from .extractor import ArticleExtractor, ExtractedArticle, ExtractionError
from .fetcher import FetchResult, RemoteFetcher
from .parser import ParsedFeed, RawItem, parse_feed
from .sanitizer import clean_text

__all__ = [
    "ArticleExtractor",
    "EntryBuilder",
    "ExtractedArticle",
    "ExtractionError",
    "FetchResult",
    "ParsedFeed",
    "RawItem",
    "RemoteFetcher",
    "clean_text",
    "is_short_content",
    "parse_feed",
]

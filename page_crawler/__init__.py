"""
Page Crawler

Fetches one web document and extracts structured content from it.
- ArticleExtractor: articles with linked headings, their content and links
- PageStatsAnalyzer: count metrics and per-block word counts
- CacheAsideStore: read-through/write-through caching over a TTL store
- ExtractionService: fetch + extract behind the cache

Public API surface:
  Service           : ExtractionService, read_page, discover_page
  Extraction        : ArticleExtractor, PageStatsAnalyzer, DomPathBuilder
  Data models       : Page, Article, LinkItem, PageStats, CountItem
  Caching           : CacheAsideStore, RedisStore, FileStore, MemoryStore
  Configuration     : Settings, load_settings
  Error types       : CrawlerError, FetchError, ExtractionError, StoreError, ConfigError
"""

from .main import ExtractionService, read_page, discover_page, build_cache_key
from .extractor import ArticleExtractor
from .analyzer import PageStatsAnalyzer
from .dom_path import DomPathBuilder

from .schemas import Page, Article, LinkItem, PageStats, CountItem

from .cache import CacheAsideStore
from .store import (
    KeyValueStore,
    RedisStore,
    FileStore,
    MemoryStore,
    init_default_store,
    get_default_store,
    close_default_store,
)
from .fetcher import Fetcher, HttpFetcher

from .config import Settings, load_settings

from .exceptions import CrawlerError, FetchError, ExtractionError, StoreError, ConfigError

__version__ = "0.1.0"
__all__ = [
    "ExtractionService",
    "read_page",
    "discover_page",
    "build_cache_key",
    "ArticleExtractor",
    "PageStatsAnalyzer",
    "DomPathBuilder",
    "Page",
    "Article",
    "LinkItem",
    "PageStats",
    "CountItem",
    "CacheAsideStore",
    "KeyValueStore",
    "RedisStore",
    "FileStore",
    "MemoryStore",
    "init_default_store",
    "get_default_store",
    "close_default_store",
    "Fetcher",
    "HttpFetcher",
    "Settings",
    "load_settings",
    "CrawlerError",
    "FetchError",
    "ExtractionError",
    "StoreError",
    "ConfigError",
]

"""
Extraction service.

Composes the fetcher, the article extractor and the statistics analyzer
behind the cache-aside store:

  read_page(path, scheme, use_cache)
      → cache lookup "page:<path>"
      → miss: fetch scheme://path → articles + title + links → store for 24h

  discover_page(path, scheme)
      → fetch → PageStats (never cached)

Nothing in either path raises for fetch, extraction or store failures;
a missing document yields exists=False with empty fields.
"""

from typing import Optional

from .config import Settings, get_settings
from .schemas import Page, PageStats, empty_page
from .fetcher import Fetcher, HttpFetcher
from .extractor import ArticleExtractor, extract_title, extract_page_links
from .analyzer import PageStatsAnalyzer
from .store import KeyValueStore, get_default_store
from .cache import CacheAsideStore
from .logger import get_module_logger

logger = get_module_logger("main")

CACHE_KEY_PREFIX = "page:"

# Stored pages live for 24 hours
PAGE_TTL_MINUTES = 1440


def build_uri(path: str, scheme: str = "https") -> str:
    return f"{scheme}://{path}"


def build_cache_key(path: str, scheme: str = "https", with_scheme: bool = False) -> str:
    """
    Store key for a page.

    The default leaves the scheme out, so http://x and https://x share one
    entry; with_scheme=True keys them separately.
    """
    if with_scheme:
        return f"{CACHE_KEY_PREFIX}{scheme}://{path}"
    return CACHE_KEY_PREFIX + path


class ExtractionService:
    """
    Main orchestrator for page extraction.

    Collaborators can be injected; anything omitted is built from settings
    (the store defaults to the process-wide store).
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        fetcher: Optional[Fetcher] = None,
        store: Optional[KeyValueStore] = None
    ):
        self.settings = settings or get_settings()
        self.fetcher = fetcher or HttpFetcher(
            timeout=self.settings.fetch_timeout,
            retries=self.settings.fetch_retries,
            user_agent=self.settings.user_agent,
            parser=self.settings.html_parser,
        )
        self.extractor = ArticleExtractor(max_articles=self.settings.max_articles)
        self.analyzer = PageStatsAnalyzer(word_threshold=self.settings.block_word_threshold)
        self.pages = CacheAsideStore(store if store is not None else get_default_store(), Page)

        logger.info("ExtractionService initialized")

    def read_page(self, path: str, scheme: str = "https", use_cache: bool = True) -> tuple[Page, bool]:
        """
        Page for scheme://path, from the cache when allowed.

        Args:
            path: Host and path without scheme, e.g. "example.com/blog"
            scheme: "http" or "https"
            use_cache: False forces a fresh fetch (the result is still stored)

        Returns:
            (page, served_from_cache)
        """
        uri = build_uri(path, scheme)
        key = build_cache_key(path, scheme, with_scheme=self.settings.cache_key_with_scheme)
        return self.pages.get_or_compute(
            key,
            ttl_minutes=self.settings.cache_ttl_minutes,
            use_cache=use_cache,
            compute_fn=lambda: self.read_live_page(uri),
        )

    def read_live_page(self, uri: str) -> Page:
        """Fetch uri and extract its title, articles and links."""
        result = self.fetcher.fetch(uri)
        if not result.exists or result.document is None:
            return empty_page(uri)

        document = result.document
        batch = self.extractor.extract_batch(document)
        if batch.truncated:
            logger.warning(f"{uri}: {batch.dropped} article candidates not returned")

        page = Page(
            uri=uri,
            exists=True,
            cached=False,
            title=extract_title(document),
            articles=batch.articles,
            links=extract_page_links(document, uri),
        )
        logger.info(f"{uri}: {len(page.articles)} articles, {len(page.links)} links")
        return page

    def discover_page(self, path: str, scheme: str = "https") -> PageStats:
        return self.discover_live_page(build_uri(path, scheme))

    def discover_live_page(self, uri: str) -> PageStats:
        """Fetch uri and compute its statistics."""
        result = self.fetcher.fetch(uri)
        return self.analyzer.analyze(result.document, uri=uri, exists=result.exists)

    def close(self) -> None:
        self.fetcher.close()


def read_page(path: str, scheme: str = "https", use_cache: bool = True) -> tuple[Page, bool]:
    """Convenience function to read a page with default settings."""
    service = ExtractionService()
    try:
        return service.read_page(path, scheme=scheme, use_cache=use_cache)
    finally:
        service.close()


def discover_page(path: str, scheme: str = "https") -> PageStats:
    """Convenience function to compute page statistics with default settings."""
    service = ExtractionService()
    try:
        return service.discover_page(path, scheme=scheme)
    finally:
        service.close()

"""
Custom exceptions for the page crawler.

Severity by layer:
  - FetchError      → NON-FATAL: the page is reported with exists=False.
  - ExtractionError → PARTIAL RETURN: the failing candidate is skipped, the batch continues.
  - StoreError      → NON-FATAL: reads degrade to a cache miss, writes are best-effort.
  - ConfigError     → FAIL HARD at startup, before any request is served.
"""

from typing import Optional


class CrawlerError(Exception):
    """Base exception for all page crawler errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class FetchError(CrawlerError):
    """Raised by the transport when a document cannot be retrieved."""

    def __init__(
        self,
        message: str,
        uri: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None
    ):
        super().__init__(message, details)
        self.uri = uri
        self.status_code = status_code


class ExtractionError(CrawlerError):
    """
    Raised when a single article candidate cannot be processed.

    The extractor catches it, logs a warning and moves on to the next
    candidate.
    """

    def __init__(
        self,
        message: str,
        partial_result: Optional[dict] = None,
        details: Optional[dict] = None
    ):
        super().__init__(message, details)
        self.partial_result = partial_result


class StoreError(CrawlerError):
    """Raised by key-value store backends on connection or payload failures."""

    def __init__(
        self,
        message: str,
        backend: str,
        details: Optional[dict] = None
    ):
        super().__init__(message, details)
        self.backend = backend  # "redis", "file" or "memory"


class ConfigError(CrawlerError):
    """Raised when settings are invalid."""
    pass

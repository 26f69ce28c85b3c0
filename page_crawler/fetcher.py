"""
Document fetching.

Fetcher is the contract the extraction service depends on: fetch(uri)
returns a FetchResult whose exists flag is False for anything that did not
produce a usable document (transport errors, HTTP errors). It never raises
for those.

HttpFetcher issues a GET through a shared requests.Session, decodes the
body with the charset the page declares and parses it with BeautifulSoup.
"""

import re
import time
from abc import ABC, abstractmethod
from typing import Optional

import requests
from bs4 import BeautifulSoup

from .schemas import FetchResult
from .exceptions import FetchError
from .logger import get_module_logger

logger = get_module_logger("fetcher")

# Browsers silently remap these labels; decode the way they do
# https://encoding.spec.whatwg.org/#names-and-labels
WHATWG_CHARSET_MAP = {
    'iso-8859-1': 'windows-1252',
    'iso8859-1': 'windows-1252',
    'iso88591': 'windows-1252',
    'latin-1': 'windows-1252',
    'latin1': 'windows-1252',
    'us-ascii': 'windows-1252',
    'ascii': 'windows-1252',
    'iso-8859-9': 'windows-1254',
    'iso-8859-11': 'windows-874',
}

META_CHARSET_PATTERN = re.compile(r'<meta[^>]+charset=["\']?\s*([^\s"\';>]+)', re.IGNORECASE)


def detect_charset(raw_bytes: bytes) -> Optional[str]:
    """
    Charset declared by a <meta> tag in the first 2KB, WHATWG-mapped.

    Covers both <meta charset=...> and the http-equiv Content-Type form.
    Returns None when nothing is declared.
    """
    head = raw_bytes[:2048].decode('ascii', errors='ignore')
    m = META_CHARSET_PATTERN.search(head)
    if not m:
        return None
    charset = m.group(1).strip().lower()
    return WHATWG_CHARSET_MAP.get(charset, charset)


def decode_body(raw_bytes: bytes, http_encoding: Optional[str] = None) -> str:
    """Decode a response body: meta charset, then HTTP charset, then UTF-8."""
    for charset in (detect_charset(raw_bytes), http_encoding, 'utf-8'):
        if not charset:
            continue
        try:
            return raw_bytes.decode(WHATWG_CHARSET_MAP.get(charset.lower(), charset), errors='replace')
        except LookupError:
            logger.debug(f"Unknown charset {charset}, trying next")
    return raw_bytes.decode('utf-8', errors='replace')


def parse_document(html: str, parser: str = "html5lib") -> BeautifulSoup:
    return BeautifulSoup(html, parser)


class Fetcher(ABC):
    """Abstract base class for document fetchers."""

    @abstractmethod
    def fetch(self, uri: str) -> FetchResult:
        """
        Retrieve and parse the document at uri.

        Returns:
            FetchResult with exists=False (and no document) when the
            document is unavailable
        """
        pass

    def close(self) -> None:
        pass


class HttpFetcher(Fetcher):
    """HTTP fetcher built on requests with timeout and retry settings."""

    def __init__(
        self,
        timeout: float = 10.0,
        retries: int = 0,
        user_agent: str = "page-crawler/0.1",
        parser: str = "html5lib",
        session: Optional[requests.Session] = None
    ):
        self.timeout = timeout
        self.retries = retries
        self.parser = parser
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def _get(self, uri: str) -> requests.Response:
        """GET uri, retrying transport errors with linear backoff."""
        last_error: Optional[Exception] = None
        for attempt in range(self.retries + 1):
            try:
                resp = self.session.get(uri, timeout=self.timeout, allow_redirects=True)
            except requests.RequestException as e:
                last_error = e
                if attempt < self.retries:
                    time.sleep(0.5 * (attempt + 1))
                continue

            if resp.status_code >= 400:
                raise FetchError(
                    f"HTTP {resp.status_code} for {uri}",
                    uri=uri,
                    status_code=resp.status_code
                )
            return resp

        raise FetchError(
            f"{type(last_error).__name__}: {last_error}",
            uri=uri,
            details={"attempts": self.retries + 1}
        )

    def fetch(self, uri: str) -> FetchResult:
        try:
            resp = self._get(uri)
        except FetchError as e:
            logger.warning(f"Fetch failed for {uri}: {e.message}")
            return FetchResult(uri=uri, exists=False, status_code=e.status_code, error=e.message)

        # requests assumes ISO-8859-1 for text/* without a charset; only trust a declared one
        content_type = resp.headers.get('content-type', '')
        http_encoding = resp.encoding if 'charset' in content_type.lower() else None
        html = decode_body(resp.content, http_encoding)
        document = parse_document(html, self.parser)
        logger.info(f"Fetched {uri} ({resp.status_code}, {len(resp.content)} bytes)")
        return FetchResult(uri=uri, exists=True, document=document, status_code=resp.status_code)

    def close(self) -> None:
        self.session.close()

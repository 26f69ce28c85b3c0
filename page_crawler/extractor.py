"""
Article extraction.

Finds <article> candidates in a parsed document and turns each one with a
linked heading into an Article: title and permalink from the first
h1/h2/h3 and its anchor, sanitized inner markup as content, and the
candidate's anchors (unique by href) as links.

Input:  BeautifulSoup document (left untouched; a working copy is mutated)
Output: ArticleBatch / list of Article
"""

import copy
import re
from typing import Optional
from urllib.parse import urljoin, urlparse

from .schemas import Article, ArticleBatch, LinkItem
from .exceptions import ExtractionError
from .text_utils import add_unique_link
from .logger import get_module_logger

logger = get_module_logger("extractor")

# Elements searched as article candidates
CANDIDATE_TAGS = ['article']

# Removed from every candidate before serialization
NOISE_TAGS = ['img', 'svg', 'embed', 'iframe', 'object', 'style', 'script']

HEADING_TAGS = ['h1', 'h2', 'h3']

# Candidates past this many are dropped
MAX_ARTICLES = 100

HTML_COMMENT_PATTERN = re.compile(r'<!--.*?-->', re.DOTALL)

CONTENT_TRIM_CHARS = '\n\t '


class ArticleExtractor:
    """Extracts Article records from article-like elements."""

    def __init__(self, max_articles: int = MAX_ARTICLES):
        self.max_articles = max_articles

    def extract(self, document) -> list[Article]:
        """Extract articles from a document, in document order."""
        return self.extract_batch(document).articles

    def extract_batch(self, document) -> ArticleBatch:
        """
        Extract articles and report how many candidates were dropped.

        Args:
            document: parsed BeautifulSoup document

        Returns:
            ArticleBatch with the articles and truncation counts
        """
        working = copy.copy(document)
        candidates = working.find_all(CANDIDATE_TAGS)

        for candidate in candidates:
            for noise in candidate.find_all(NOISE_TAGS):
                noise.extract()

        dropped = max(0, len(candidates) - self.max_articles)
        if dropped:
            logger.warning(
                f"Found {len(candidates)} article candidates, "
                f"dropping {dropped} past the limit of {self.max_articles}"
            )

        articles = []
        for index, candidate in enumerate(candidates[:self.max_articles]):
            try:
                article = self._extract_candidate(candidate)
            except ExtractionError as e:
                logger.warning(f"Skipping candidate {index}: {e.message}")
                continue
            except Exception as e:
                logger.warning(f"Skipping candidate {index}: {type(e).__name__}: {e}")
                continue

            if article is not None:
                articles.append(article)

        logger.info(f"Extracted {len(articles)} articles from {len(candidates)} candidates")
        return ArticleBatch(articles=articles, candidates=len(candidates), dropped=dropped)

    def _extract_candidate(self, candidate) -> Optional[Article]:
        """Build an Article, or None when the candidate has no linked heading."""
        content = self._serialize(candidate)

        heading = candidate.find(HEADING_TAGS)
        if heading is None:
            return None

        anchor = heading.find('a')
        if anchor is None:
            return None

        uri = anchor.get('href', '')
        if not uri:
            logger.debug("Heading anchor without href, skipping candidate")
            return None

        return Article(
            title=heading.get_text(),
            uri=uri,
            content=content,
            links=self._collect_links(candidate),
        )

    def _serialize(self, candidate) -> str:
        """Inner markup with comments removed and surrounding whitespace trimmed."""
        try:
            html = candidate.decode_contents()
        except (AttributeError, TypeError, ValueError, RecursionError) as e:
            raise ExtractionError(
                message=f"Could not serialize <{candidate.name}>: {e}",
                details={"error": str(e)}
            )
        return HTML_COMMENT_PATTERN.sub('', html).strip(CONTENT_TRIM_CHARS)

    def _collect_links(self, candidate) -> list[LinkItem]:
        links: list[LinkItem] = []
        for anchor in candidate.find_all('a'):
            href = anchor.get('href')
            if href is None:
                continue
            add_unique_link(links, anchor.get_text(), href)
        return links


def extract_title(document) -> str:
    """Text of the document's <title>, or ""."""
    # An <svg><title> in the body is not the page title
    head = document.find('head')
    title = head.find('title') if head is not None else None
    if title is None:
        title = document.find('title')
    if title is None:
        return ""
    return title.get_text().strip()


def extract_page_links(document, base_uri: str) -> list[LinkItem]:
    """
    Every anchor in the document as a LinkItem keyed by its URL path.

    hrefs are resolved against base_uri first; anchors whose resolved path
    is empty are skipped and the first anchor for each path wins.
    """
    links: list[LinkItem] = []
    for anchor in document.find_all('a', href=True):
        try:
            path = urlparse(urljoin(base_uri, anchor['href'])).path
        except ValueError as e:
            logger.debug(f"Skipping unparsable href {anchor['href']!r}: {e}")
            continue
        if not path:
            continue
        add_unique_link(links, anchor.get_text().strip(), path)
    return links


def extract_articles(document, max_articles: int = MAX_ARTICLES) -> list[Article]:
    """Convenience function to extract articles from a document."""
    return ArticleExtractor(max_articles=max_articles).extract(document)

"""
Page statistics.

Emits count metrics for a whole document in a fixed order:

  links, articleTags, sectionTags, tableTags   (full document)
  words, numInnerLinks, wordsNotInLinks        (body, media/script/style removed)
  <breadcrumb path> → words                    (one per block over the threshold)

The breadcrumb entries make it easy to spot which container holds the
page's main text.
"""

import copy

from .schemas import PageStats
from .dom_path import DomPathBuilder
from .text_utils import count_node_words
from .logger import get_module_logger

logger = get_module_logger("analyzer")

# Removed from the body before any word counting
NOISE_TAGS = ['img', 'figure', 'object', 'iframe', 'svg', 'audio', 'video', 'script', 'style']

BLOCK_TAGS = ['div', 'article', 'section', 'aside']

# Blocks need strictly more words than this to be reported
BLOCK_WORD_THRESHOLD = 16


class PageStatsAnalyzer:
    """Computes PageStats for a parsed document."""

    def __init__(self, word_threshold: int = BLOCK_WORD_THRESHOLD,
                 path_builder: DomPathBuilder = None):
        self.word_threshold = word_threshold
        self.path_builder = path_builder or DomPathBuilder()

    def analyze(self, document, uri: str = "", exists: bool = True) -> PageStats:
        """
        Compute statistics for a document.

        Args:
            document: parsed BeautifulSoup document (not modified)
            uri: URI reported in the result
            exists: False when the fetch failed; counts stay empty

        Returns:
            PageStats with counts in emission order
        """
        stats = PageStats(uri=uri, exists=exists)
        if not exists or document is None:
            return stats

        stats.add_count_item("links", len(document.find_all('a', href=True)))
        stats.add_count_item("articleTags", len(document.find_all('article')))
        stats.add_count_item("sectionTags", len(document.find_all('section')))
        stats.add_count_item("tableTags", len(document.find_all('table')))

        working = copy.copy(document)
        body = working.find('body')
        if body is None:
            # html.parser keeps fragments without a body element
            body = working

        for noise in body.find_all(NOISE_TAGS):
            noise.extract()

        stats.add_count_item("words", count_node_words(body))

        anchors = body.find_all('a')
        stats.add_count_item("numInnerLinks", len(anchors))
        for anchor in anchors:
            anchor.extract()

        stats.add_count_item("wordsNotInLinks", count_node_words(body))

        reported = 0
        for block in body.find_all(BLOCK_TAGS):
            desc = self.path_builder.build(block)
            if desc.word_count > self.word_threshold:
                stats.add_count_item(desc.to_path(), desc.word_count)
                reported += 1

        logger.debug(f"{uri}: {len(stats.counts)} counts, {reported} text blocks")
        return stats


def analyze_page(document, uri: str = "", exists: bool = True) -> PageStats:
    """Convenience function to compute statistics for a document."""
    return PageStatsAnalyzer().analyze(document, uri=uri, exists=exists)

"""
Word counting and link de-duplication helpers.

Word counting quirk: text that is empty (or only whitespace) collapses to
"" and splitting "" on a space gives [""], so its word count is 1, not 0.
Block statistics and stored metrics depend on this, so it is kept.
"""

import re
from typing import Iterable

from .schemas import LinkItem

# Runs of two or more whitespace characters collapse to a single space
WHITESPACE_RUN_PATTERN = re.compile(r'\s\s+')


def remove_spaces(text: str) -> str:
    """Collapse whitespace runs, then trim surrounding spaces."""
    return WHITESPACE_RUN_PATTERN.sub(' ', text).strip(' ')


def extract_words(text: str) -> list[str]:
    return remove_spaces(text).split(' ')


def count_words(text: str) -> int:
    """Number of space-separated words in text ("" counts as 1)."""
    return len(extract_words(text))


def count_node_words(node) -> int:
    """Word count over the flattened text of a markup node."""
    return count_words(node.get_text())


def uri_in_links(links: Iterable[LinkItem], uri: str) -> bool:
    for link in links:
        if link.uri == uri:
            return True
    return False


def add_unique_link(links: list[LinkItem], title: str, uri: str) -> bool:
    """
    Append a link unless one with the same uri is already present.

    Returns:
        True if the link was appended
    """
    if uri_in_links(links, uri):
        return False
    links.append(LinkItem(title=title, uri=uri))
    return True

"""
Breadcrumb paths for markup elements.

A path reads like a CSS descendant selector built from the element's
ancestry, e.g. "div#main section.post div.entry-content". html and body
never appear in a path.

When the parent's own fragment carries neither an id nor a class (a bare
wrapper such as "div"), the grandparent's path is used instead. This skip
happens once per element; it is not repeated further up the chain, so
two bare wrappers in a row still leave the upper one in the path.

Paths are computed top-down over the ancestor chain, so arbitrarily deep
trees never grow the interpreter stack.
"""

from bs4 import BeautifulSoup

from .schemas import ClassesIdSet
from .text_utils import count_node_words

# Root wrappers excluded from every path
ROOT_TAGS = ("html", "body")


def extract_classes(node) -> list[str]:
    """Class attribute as an ordered list (empty if absent)."""
    value = node.get("class")
    if value is None:
        return []
    # bs4 already splits class on whitespace for most tree builders
    if isinstance(value, list):
        return list(value)
    return value.split(" ")


def extract_id(node) -> str:
    value = node.get("id")
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return value


def _is_informative(fragment: str) -> bool:
    return "." in fragment or "#" in fragment


class DomPathBuilder:
    """Builds ClassesIdSet descriptors and breadcrumb paths for elements."""

    def _ancestry(self, node) -> list:
        """Element chain from the outermost ancestor down to node."""
        chain = [node]
        parent = node.parent
        while parent is not None and not isinstance(parent, BeautifulSoup):
            chain.append(parent)
            parent = parent.parent
        chain.reverse()
        return chain

    def _describe(self, node) -> ClassesIdSet:
        return ClassesIdSet(
            tag_name=node.name,
            id=extract_id(node),
            classes=extract_classes(node),
        )

    def build(self, node) -> ClassesIdSet:
        """
        Describe node: tag, id, classes, word count and resolved parent path.

        Args:
            node: a bs4 Tag

        Returns:
            ClassesIdSet whose to_path() is the breadcrumb for node
        """
        chain = self._ancestry(node)
        fragments: list[str] = []
        paths: list[str] = []
        desc = None

        for i, elem in enumerate(chain):
            desc = self._describe(elem)
            desc.parent_path = self._resolve_parent_path(chain, fragments, paths, i)
            fragments.append(desc.fragment())
            paths.append(desc.to_path())

        desc.word_count = count_node_words(node)
        return desc

    def _resolve_parent_path(self, chain: list, fragments: list[str],
                             paths: list[str], index: int) -> str:
        if index == 0:
            return ""

        parent_path = ""
        if chain[index - 1].name not in ROOT_TAGS:
            parent_path = paths[index - 1]

        # Bare parent: use the grandparent's path (one level only)
        if not _is_informative(fragments[index - 1]) and index >= 2:
            if chain[index - 2].name not in ROOT_TAGS:
                parent_path = paths[index - 2]

        return parent_path

    def build_path(self, node) -> str:
        return self.build(node).to_path()


def build_path(node) -> str:
    """Convenience function to build the breadcrumb for one element."""
    return DomPathBuilder().build_path(node)

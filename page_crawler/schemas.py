"""
Pydantic schemas shared by the extraction, statistics and caching layers.

Page and PageStats are serialized to JSON for the CLI output and for the
cache store, so their field names and field order are part of the
persisted format:

  Page      → uri, exists, cached, title, articles[], links[]
  Article   → title, uri, content, links[]
  LinkItem  → title, uri
  PageStats → uri, exists, counts[], words[]
  CountItem → key, value
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class LinkItem(BaseModel):
    """An outbound link. Collections of links are unique by uri."""
    title: str = ""
    uri: str = ""


class Article(BaseModel):
    """An article-like block that has a linked heading."""
    title: str = ""
    uri: str = ""          # Permalink taken from the heading anchor
    content: str = ""      # Sanitized inner markup of the candidate
    links: list[LinkItem] = Field(default_factory=list)


class Page(BaseModel):
    """Extraction result for one document."""
    uri: str = ""
    exists: bool = False
    cached: bool = False   # Only ever set on a cache hit
    title: str = ""
    articles: list[Article] = Field(default_factory=list)
    links: list[LinkItem] = Field(default_factory=list)

    def mark_cached(self) -> None:
        self.cached = True


def empty_page(uri: str = "") -> Page:
    """A page for a document that could not be fetched."""
    return Page(uri=uri, exists=False, cached=False, title="", articles=[], links=[])


class CountItem(BaseModel):
    key: str
    value: int


class PageStats(BaseModel):
    """
    Ordered count metrics for one document.

    counts keeps emission order and is not unique by key. words is kept
    for output compatibility and is always empty.
    """
    uri: str = ""
    exists: bool = False
    counts: list[CountItem] = Field(default_factory=list)
    words: list[str] = Field(default_factory=list)

    def add_count_item(self, key: str, value: int) -> "PageStats":
        self.counts.append(CountItem(key=key, value=value))
        return self

    def set_words(self, words: list[str]) -> "PageStats":
        self.words = words
        return self


class ClassesIdSet(BaseModel):
    """Descriptor of one element used while building its breadcrumb path."""
    parent_path: str = ""
    tag_name: str
    id: str = ""
    classes: list[str] = Field(default_factory=list)
    word_count: int = 0

    def fragment(self) -> str:
        """tag + #id + .class1.class2 with no separators."""
        parts = [self.tag_name]
        if self.id:
            parts.append("#" + self.id)
        if self.classes:
            parts.append("." + ".".join(self.classes))
        return "".join(parts)

    def to_path(self) -> str:
        return " ".join([self.parent_path, self.fragment()]).strip(" ")


class ArticleBatch(BaseModel):
    """Articles found in a document, with the number of candidates dropped by the cap."""
    articles: list[Article] = Field(default_factory=list)
    candidates: int = 0
    dropped: int = 0

    @property
    def truncated(self) -> bool:
        return self.dropped > 0


class FetchResult(BaseModel):
    """
    Result of fetching one document.

    document is a parsed BeautifulSoup tree when exists is True and None
    otherwise.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    uri: str
    exists: bool
    document: Optional[Any] = None
    status_code: Optional[int] = None
    error: Optional[str] = None

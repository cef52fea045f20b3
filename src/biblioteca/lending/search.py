"""Document search strategies.

A strategy is any callable ``match(document, query) -> bool``. The query
handed to a strategy is already trimmed and lower-cased; ``search`` takes
care of that and of blank queries.
"""

from collections.abc import Iterable
from enum import Enum
from typing import Callable, Optional, Union

from ..catalog.models import Document

Matcher = Callable[[Document, str], bool]


def match_title(document: Document, query: str) -> bool:
    return query in document.title.lower()


def match_author(document: Document, query: str) -> bool:
    return query in document.author.lower()


def match_id(document: Document, query: str) -> bool:
    return document.id.lower() == query


def match_any(document: Document, query: str) -> bool:
    """Title, author or id contains the query."""
    return (
        match_title(document, query)
        or match_author(document, query)
        or query in document.id.lower()
    )


class SearchStrategy(str, Enum):
    """Built-in search strategies."""

    TITLE = "title"
    AUTHOR = "author"
    ID = "id"
    GLOBAL = "global"

    @property
    def matcher(self) -> Matcher:
        return MATCHERS[self]


MATCHERS: dict[SearchStrategy, Matcher] = {
    SearchStrategy.TITLE: match_title,
    SearchStrategy.AUTHOR: match_author,
    SearchStrategy.ID: match_id,
    SearchStrategy.GLOBAL: match_any,
}


def search(
    documents: Iterable[Document],
    query: Optional[str],
    strategy: Union[SearchStrategy, Matcher] = SearchStrategy.TITLE,
) -> list[Document]:
    """Filter documents with a strategy.

    Args:
        documents: Documents to scan
        query: Search text; blank or None yields no results
        strategy: Built-in strategy or custom matcher

    Returns:
        Matching documents in input order
    """
    if query is None or not query.strip():
        return []

    needle = query.strip().lower()
    matcher = strategy.matcher if isinstance(strategy, SearchStrategy) else strategy
    return [doc for doc in documents if matcher(doc, needle)]

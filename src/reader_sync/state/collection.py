"""In-memory collection of articles for the selected feed."""

from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from .interfaces import Article
from .observable import Observable


class ArticleCollection(Observable):
    """Articles in load order, keyed by id.

    The order is fixed by ``reset`` and never changes afterwards; articles
    are replaced in place as they are materialized or marked read.
    """

    def __init__(self):
        super().__init__()
        self._articles: List[Article] = []
        self._index: Dict[str, int] = {}

    @property
    def articles(self) -> Tuple[Article, ...]:
        return tuple(self._articles)

    def __len__(self) -> int:
        return len(self._articles)

    def __contains__(self, article_id: str) -> bool:
        return article_id in self._index

    def get(self, article_id: str) -> Optional[Article]:
        position = self._index.get(article_id)
        return self._articles[position] if position is not None else None

    def reset(self, ids: Iterable[str] = ()) -> None:
        """Replace contents with stubs for ``ids``, keeping the given order."""
        self._articles = []
        self._index = {}
        for article_id in ids:
            if article_id in self._index:
                continue
            self._index[article_id] = len(self._articles)
            self._articles.append(Article(id=article_id))
        self._notify()

    def clear(self) -> None:
        self.reset()

    def stubs(self, limit: int = None, exclude: Iterable[str] = ()) -> List[Article]:
        """Articles not yet fetched, in collection order."""
        excluded = set(exclude)
        found = [a for a in self._articles if not a.is_fetched and a.id not in excluded]
        return found if limit is None else found[:limit]

    def materialize(
        self,
        article_id: str,
        title: str,
        content: str,
        author: str,
        url: Optional[str],
        published_at: Optional[datetime],
    ) -> bool:
        """Fill in a stub's content. Returns False if the id is unknown."""
        position = self._index.get(article_id)
        if position is None:
            return False
        self._articles[position] = replace(
            self._articles[position],
            title=title,
            content=content,
            author=author,
            url=url,
            published_at=published_at,
            is_fetched=True,
        )
        self._notify()
        return True

    def set_read(self, article_id: str, is_read: bool) -> bool:
        """Set the read flag. Returns False if the id is unknown."""
        position = self._index.get(article_id)
        if position is None:
            return False
        self._articles[position] = replace(self._articles[position], is_read=is_read)
        self._notify()
        return True

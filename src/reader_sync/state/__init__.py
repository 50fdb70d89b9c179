"""Engine-owned state - feeds, articles and the session."""

from .interfaces import Article, Feed, Session, SessionStatus
from .observable import Observable
from .registry import SubscriptionRegistry
from .collection import ArticleCollection

__all__ = [
    "Article", "Feed", "Session", "SessionStatus",
    "Observable", "SubscriptionRegistry", "ArticleCollection",
]

"""In-memory registry of subscribed feeds."""

from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from .interfaces import Feed
from .observable import Observable


class SubscriptionRegistry(Observable):
    """Ordered collection of feeds keyed by id.

    Order is the order in which feeds were first seen. Ids are unique.
    """

    def __init__(self):
        super().__init__()
        self._feeds: List[Feed] = []
        self._index: Dict[str, int] = {}

    @property
    def feeds(self) -> Tuple[Feed, ...]:
        return tuple(self._feeds)

    def __len__(self) -> int:
        return len(self._feeds)

    def get(self, feed_id: str) -> Optional[Feed]:
        position = self._index.get(feed_id)
        return self._feeds[position] if position is not None else None

    def merge(self, feeds: Iterable[Feed]) -> int:
        """Merge feeds by id, returning how many were new.

        Known feeds get their title and icon refreshed but keep their unread
        count; new feeds are appended in arrival order.
        """
        added = 0
        for feed in feeds:
            position = self._index.get(feed.id)
            if position is None:
                self._index[feed.id] = len(self._feeds)
                self._feeds.append(feed)
                added += 1
            else:
                existing = self._feeds[position]
                self._feeds[position] = replace(existing, title=feed.title, icon_url=feed.icon_url)
        self._notify()
        return added

    def apply_unread_counts(self, counts: Dict[str, int]) -> int:
        """Set unread counts for feeds present in ``counts``.

        Feeds missing from ``counts`` keep their last known value.
        """
        updated = 0
        for feed_id, count in counts.items():
            position = self._index.get(feed_id)
            if position is None:
                continue
            self._feeds[position] = replace(self._feeds[position], unread_count=count)
            updated += 1
        self._notify()
        return updated

    def clear(self) -> None:
        self._feeds = []
        self._index = {}
        self._notify()

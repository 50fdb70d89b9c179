"""Domain types for feeds, articles and the session."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class SessionStatus(Enum):
    """Authentication state of the client."""
    UNKNOWN = 0
    UNAUTHENTICATED = 1
    AUTHENTICATED = 2


@dataclass(frozen=True)
class Session:
    """Authenticated identity. AUTHENTICATED iff a token is present."""
    token: Optional[str] = None
    status: SessionStatus = SessionStatus.UNKNOWN


@dataclass(frozen=True)
class Feed:
    """A subscribed feed with its last known unread count."""
    id: str
    title: str = ""
    icon_url: str = ""
    unread_count: int = 0


@dataclass(frozen=True)
class Article:
    """An article in the selected feed.

    A stub has only ``id`` set and ``is_fetched=False``; once content is
    fetched, title, content, author and published_at are populated.
    """
    id: str
    title: str = ""
    content: str = ""
    author: str = ""
    url: Optional[str] = None
    published_at: Optional[datetime] = None
    is_read: bool = False
    is_fetched: bool = False

    @property
    def is_stub(self) -> bool:
        return not self.is_fetched

    @property
    def published_at_ms(self) -> Optional[int]:
        """Publish time as milliseconds since the epoch."""
        if self.published_at is None:
            return None
        return int(round(self.published_at.timestamp() * 1000))

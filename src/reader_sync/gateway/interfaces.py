"""Interface definitions for the remote reader API."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


TRANSPORT_ERROR = -1

READ_TAG = "user/-/state/com.google/read"
ITEM_ID_PREFIX = "tag:google.com,2005:reader/item/"


class FailureKind(Enum):
    """Why a request did not produce usable data."""
    TRANSPORT = "transport"    # DNS, refused connection, timeout
    HTTP = "http"              # Non-200 status
    DATA_SHAPE = "data_shape"  # 200 but a required field is missing


@dataclass
class ApiResult:
    """Normalized outcome of one API call."""
    ok: bool
    data: Any = None
    status_code: int = 200
    failure: Optional[FailureKind] = None

    @classmethod
    def success(cls, data: Any = None) -> "ApiResult":
        return cls(ok=True, data=data)

    @classmethod
    def http_error(cls, status_code: int) -> "ApiResult":
        return cls(ok=False, status_code=status_code, failure=FailureKind.HTTP)

    @classmethod
    def transport_error(cls) -> "ApiResult":
        return cls(ok=False, status_code=TRANSPORT_ERROR, failure=FailureKind.TRANSPORT)

    @classmethod
    def data_shape_error(cls, status_code: int = 200) -> "ApiResult":
        return cls(ok=False, status_code=status_code, failure=FailureKind.DATA_SHAPE)


@dataclass
class SubscriptionRecord:
    """A subscription as listed by the server (namespaced id)."""
    id: str
    title: str = ""
    icon_url: str = ""


@dataclass
class UnreadCountRecord:
    """Unread count for one stream (namespaced id)."""
    id: str
    count: int = 0


@dataclass
class Link:
    """A link attached to an item."""
    rel: str
    href: str


@dataclass
class ArticleContentRecord:
    """Article body as returned by the contents endpoint."""
    id: str  # tag:google.com,2005:reader/item/<id>
    title: str = ""
    content: str = ""
    author: str = ""
    published_at_micros: Optional[int] = None
    links: List[Link] = field(default_factory=list)


@dataclass
class UserInfo:
    """Account details for the authenticated user."""
    user_id: str = ""
    user_name: str = ""
    email: str = ""


class GatewayInterface:
    """Interface for the remote reader API.

    Implementations never raise; every failure comes back as an ApiResult
    with ``ok=False``.
    """

    async def exchange_credentials(self, username: str, password: str) -> ApiResult:
        """Exchange credentials for an auth token (data: str)."""
        raise NotImplementedError

    async def list_subscriptions(self, token: str) -> ApiResult:
        """List subscriptions (data: List[SubscriptionRecord])."""
        raise NotImplementedError

    async def list_unread_counts(self, token: str) -> ApiResult:
        """List unread counts (data: List[UnreadCountRecord])."""
        raise NotImplementedError

    async def list_article_ids(
        self, token: str, feed_id: str, only_unread: bool = True, limit: int = 100
    ) -> ApiResult:
        """List article ids for a feed in server order (data: List[str])."""
        raise NotImplementedError

    async def fetch_article_contents(self, token: str, ids: List[str]) -> ApiResult:
        """Fetch article bodies (data: List[ArticleContentRecord])."""
        raise NotImplementedError

    async def set_read_state(self, token: str, article_id: str, is_read: bool) -> ApiResult:
        """Add or remove the read tag on an article."""
        raise NotImplementedError

    async def get_user_info(self, token: str) -> ApiResult:
        """Fetch account details (data: UserInfo)."""
        raise NotImplementedError


def bare_id(namespaced_id: str) -> str:
    """Return the part of an id after the last '/'."""
    return namespaced_id[namespaced_id.rfind("/") + 1:]

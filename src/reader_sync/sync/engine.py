"""Synchronization engine - keeps local feed and article state in step with the server."""

from datetime import datetime, timezone
from typing import Callable, FrozenSet, List, Optional, Set

import structlog

from .interfaces import LOGIN_FAILED_MESSAGE, REQUEST_FAILED_MESSAGE, Navigator, Route
from ..config.settings import settings
from ..gateway.interfaces import (
    ArticleContentRecord,
    FailureKind,
    GatewayInterface,
    SubscriptionRecord,
    UserInfo,
    bare_id,
)
from ..session.interfaces import TokenStoreInterface
from ..state.collection import ArticleCollection
from ..state.interfaces import Feed, Session, SessionStatus
from ..state.observable import Observable
from ..state.registry import SubscriptionRegistry

logger = structlog.get_logger()


class SyncEngine(Observable):
    """Owns the session, the feed registry and the article collection.

    All operations are coroutines run on a single event loop. Anything that
    happens after an ``await`` is checked against the selection and session
    generations first, so results of superseded calls are dropped instead of
    applied.

    Observers subscribed to the engine are notified when the session, the
    busy flags, the login error or the selected feed change; the registry
    and collection have their own subscribers.
    """

    def __init__(
        self,
        gateway: GatewayInterface,
        token_store: TokenStoreInterface,
        on_navigate: Navigator = None,
        batch_size: int = None,
        article_id_limit: int = None,
        only_unread: bool = None,
    ):
        super().__init__()
        self.gateway = gateway
        self.token_store = token_store
        self.on_navigate = on_navigate
        self.batch_size = settings.fetch_batch_size if batch_size is None else batch_size
        self.article_id_limit = settings.article_id_limit if article_id_limit is None else article_id_limit
        self.only_unread = settings.only_unread if only_unread is None else only_unread

        self.registry = SubscriptionRegistry()
        self.collection = ArticleCollection()

        self.login_error = ""
        self.selected_feed_id: Optional[str] = None
        self.current_feed_title = ""

        self._session = Session()
        self._in_flight: Set[str] = set()  # ids with a read-state change pending
        self._fetching: Set[str] = set()   # ids requested by a pending content batch
        self._selection = 0
        self._generation = 0
        self._updating_list = _BusyCounter(self._notify)
        self._loading_posts = _BusyCounter(self._notify)

    # State exposed to observers

    @property
    def session(self) -> Session:
        return self._session

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    @property
    def token(self) -> Optional[str]:
        return self._session.token

    @property
    def is_updating_list(self) -> bool:
        return bool(self._updating_list)

    @property
    def is_loading_posts(self) -> bool:
        return bool(self._loading_posts)

    @property
    def posts_being_edited(self) -> FrozenSet[str]:
        return frozenset(self._in_flight)

    # Session

    async def check_auth(self) -> SessionStatus:
        """Load the persisted token and set the session status from it."""
        self._load_session()
        return self._session.status

    async def login(self, username: str, password: str) -> bool:
        """Exchange credentials for a token and persist it."""
        result = await self.gateway.exchange_credentials(username, password)
        if not result.ok:
            if result.failure is FailureKind.TRANSPORT:
                self.login_error = REQUEST_FAILED_MESSAGE
            else:
                self.login_error = LOGIN_FAILED_MESSAGE
            logger.warning("login_failed", status=result.status_code)
            self._notify()
            return False

        token = result.data
        self.login_error = ""
        self.token_store.save(token)
        self._generation += 1
        self._set_session(Session(token=token, status=SessionStatus.AUTHENTICATED))
        logger.info("logged_in")
        self._navigate(Route.FEED_LIST)
        return True

    async def logout(self) -> None:
        """Forget the token and all synchronized state."""
        self.token_store.clear()
        self._generation += 1
        self._selection += 1
        self._fetching.clear()
        self.selected_feed_id = None
        self.current_feed_title = ""
        self.registry.clear()
        self.collection.clear()
        self._set_session(Session(status=SessionStatus.UNAUTHENTICATED))
        logger.info("logged_out")
        self._navigate(Route.LOGIN)

    async def load_user_info(self) -> Optional[UserInfo]:
        """Fetch account details for the current token."""
        token = self._require_token()
        if token is None:
            return None

        result = await self.gateway.get_user_info(token)
        if not result.ok:
            logger.warning("user_info_failed", status=result.status_code)
            return None
        return result.data

    # Subscriptions

    async def refresh_subscriptions(self) -> bool:
        """Merge the subscription list, then apply unread counts.

        Subscription metadata and unread counts are separate resources, so
        this takes two requests. A failed request stops the refresh and the
        registry keeps whatever was applied before it.
        """
        token = self._require_token()
        if token is None:
            return False

        generation = self._generation
        with self._updating_list:
            result = await self.gateway.list_subscriptions(token)
            if not result.ok:
                logger.warning("subscription_list_failed", status=result.status_code)
                return False
            if generation != self._generation:
                logger.info("stale_subscriptions_discarded")
                return False
            added = self.registry.merge(self._to_feed(record) for record in result.data)

            result = await self.gateway.list_unread_counts(token)
            if not result.ok:
                logger.warning("unread_counts_failed", status=result.status_code)
                return False
            if generation != self._generation:
                logger.info("stale_unread_counts_discarded")
                return False
            counts = {bare_id(record.id): record.count for record in result.data}
            updated = self.registry.apply_unread_counts(counts)

        logger.info(
            "subscriptions_refreshed",
            feeds=len(self.registry),
            added=added,
            counts_updated=updated,
        )
        return True

    # Articles

    async def select_feed(self, feed_id: str) -> bool:
        """Show a feed: list its article ids as stubs, then fetch the first batch."""
        token = self._require_token()
        if token is None:
            return False

        self._selection += 1
        selection = self._selection
        self._fetching.clear()
        self.selected_feed_id = feed_id
        feed = self.registry.get(feed_id)
        self.current_feed_title = feed.title if feed else ""
        self.collection.reset()
        self._notify()

        with self._loading_posts:
            result = await self.gateway.list_article_ids(
                token, feed_id, only_unread=self.only_unread, limit=self.article_id_limit
            )
        if not result.ok:
            logger.warning("article_ids_failed", feed=feed_id, status=result.status_code)
            return False
        if selection != self._selection:
            logger.info("stale_article_ids_discarded", feed=feed_id)
            return False

        self.collection.reset(result.data)
        logger.info("feed_selected", feed=feed_id, articles=len(self.collection))

        await self.fetch_batch()
        return True

    async def fetch_batch(self) -> int:
        """Fetch content for the next stubs. Returns how many were materialized."""
        pending = self.collection.stubs(limit=self.batch_size, exclude=self._fetching)
        if not pending:
            return 0

        token = self._require_token()
        if token is None:
            return 0

        selection = self._selection
        ids = [article.id for article in pending]
        self._fetching.update(ids)
        try:
            with self._loading_posts:
                result = await self.gateway.fetch_article_contents(token, ids)
        finally:
            if selection == self._selection:
                self._fetching.difference_update(ids)

        if not result.ok:
            logger.warning("article_contents_failed", requested=len(ids), status=result.status_code)
            return 0
        if selection != self._selection:
            logger.info("stale_batch_discarded", requested=len(ids))
            return 0

        materialized = self._apply_contents(result.data)
        logger.info(
            "batch_fetched",
            feed=self.selected_feed_id,
            requested=len(ids),
            materialized=materialized,
            remaining=len(self.collection.stubs()),
        )
        return materialized

    async def toggle_read(self, article_id: str, is_read: bool) -> bool:
        """Set an article's read state on the server, then locally.

        The local flag only changes after the server accepts the change. A
        second toggle for an id that is already in flight is rejected.
        Returns whether the change was committed.
        """
        if article_id in self._in_flight:
            logger.info("toggle_rejected_in_flight", article_id=article_id)
            return False
        if article_id not in self.collection:
            logger.warning("toggle_unknown_article", article_id=article_id)
            return False

        token = self._require_token()
        if token is None:
            return False

        self._in_flight.add(article_id)
        self._notify()
        try:
            result = await self.gateway.set_read_state(token, article_id, is_read)
            if not result.ok:
                logger.warning("read_state_failed", article_id=article_id, status=result.status_code)
                return False
            if not self.collection.set_read(article_id, is_read):
                logger.info("read_state_for_removed_article", article_id=article_id)
                return False
            logger.debug("read_state_changed", article_id=article_id, is_read=is_read)
            return True
        finally:
            self._in_flight.discard(article_id)
            self._notify()

    # Helpers

    def _apply_contents(self, records: List[ArticleContentRecord]) -> int:
        materialized = 0
        for record in records:
            article_id = bare_id(record.id)
            article = self.collection.get(article_id)
            if article is None:
                logger.warning("content_without_stub", article_id=article_id)
                continue
            if article.is_fetched:
                continue

            self.collection.materialize(
                article_id,
                title=record.title,
                content=record.content,
                author=record.author,
                url=_alternate_url(record),
                published_at=_published_at(record.published_at_micros),
            )
            materialized += 1
        return materialized

    def _to_feed(self, record: SubscriptionRecord) -> Feed:
        return Feed(
            id=bare_id(record.id),
            title=record.title,
            icon_url=_absolute_url(record.icon_url),
        )

    def _load_session(self) -> None:
        token = self.token_store.load()
        if token:
            self._set_session(Session(token=token, status=SessionStatus.AUTHENTICATED))
        else:
            self._set_session(Session(status=SessionStatus.UNAUTHENTICATED))

    def _require_token(self) -> Optional[str]:
        """Check auth; ask the UI for the login screen if there is no token."""
        self._load_session()
        if self._session.status is SessionStatus.AUTHENTICATED:
            return self._session.token
        logger.info("not_authenticated")
        self._navigate(Route.LOGIN)
        return None

    def _set_session(self, session: Session) -> None:
        if session != self._session:
            self._session = session
            self._notify()

    def _navigate(self, route: Route) -> None:
        if self.on_navigate:
            self.on_navigate(route)


class _BusyCounter:
    """Count of pending operations behind one busy flag.

    Overlapping operations each hold the flag, so it clears only when the
    last one finishes.
    """

    def __init__(self, on_change: Callable[[], None]):
        self.count = 0
        self.on_change = on_change

    def __bool__(self) -> bool:
        return self.count > 0

    def __enter__(self):
        self.count += 1
        self.on_change()
        return self

    def __exit__(self, *args):
        self.count -= 1
        self.on_change()


def _alternate_url(record: ArticleContentRecord) -> Optional[str]:
    """href of the first 'alternate' link."""
    for link in record.links:
        if link.rel == "alternate":
            return link.href
    return None


def _published_at(micros: Optional[int]) -> Optional[datetime]:
    """Convert a microsecond timestamp via the millisecond epoch."""
    if micros is None:
        return None
    millis = micros // 1000
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def _absolute_url(url: str) -> str:
    # Icons are listed protocol-relative
    if url.startswith("//"):
        return "https:" + url
    return url

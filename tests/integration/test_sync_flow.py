"""Integration tests: engine, gateway and token store against a fake API server."""

import pytest

# Add src to path
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from reader_sync.gateway.client import OldReaderGateway
from reader_sync.gateway.interfaces import ITEM_ID_PREFIX, READ_TAG
from reader_sync.session.store import TokenStore
from reader_sync.state.interfaces import SessionStatus
from reader_sync.sync.engine import SyncEngine
from reader_sync.sync.interfaces import LOGIN_FAILED_MESSAGE, Route

from fakes import VALID_PASSWORD, VALID_TOKEN, VALID_USER


@pytest.mark.asyncio
class TestSyncFlow:
    """End-to-end flows over HTTP."""

    async def test_login_refresh_read_toggle(self, gateway, temp_db, api_requests):
        """Should log in, list feeds, load a feed and mark an article read."""
        routes = []
        engine = SyncEngine(gateway, TokenStore(temp_db), on_navigate=routes.append)
        assert await engine.check_auth() is SessionStatus.UNAUTHENTICATED

        assert await engine.login(VALID_USER, VALID_PASSWORD) is True
        assert routes == [Route.FEED_LIST]

        assert await engine.refresh_subscriptions() is True
        feeds = engine.registry.feeds
        assert [f.id for f in feeds] == ["a", "b"]
        assert feeds[0].unread_count == 3
        assert feeds[1].unread_count == 0
        assert feeds[0].icon_url == "https://x/y.png"

        assert await engine.select_feed("a") is True
        assert engine.current_feed_title == "Feed A"
        articles = engine.collection.articles
        assert [a.id for a in articles] == ["1", "2", "3"]
        assert all(a.is_fetched for a in articles)
        assert articles[0].url == "https://example.com/1"

        assert await engine.toggle_read("2", True) is True
        assert engine.collection.get("2").is_read is True
        assert api_requests[-1] == ("edit-tag", {"a": READ_TAG, "i": ITEM_ID_PREFIX + "2"})

    async def test_bad_credentials(self, gateway, temp_db):
        """Rejected credentials set the login error."""
        engine = SyncEngine(gateway, TokenStore(temp_db))
        await engine.check_auth()

        assert await engine.login(VALID_USER, "wrong") is False
        assert engine.login_error == LOGIN_FAILED_MESSAGE
        assert engine.status is SessionStatus.UNAUTHENTICATED

    async def test_token_survives_restart(self, api_server, temp_db):
        """A token stored by one process is used by the next."""
        base_url = str(api_server.make_url("/"))

        async with OldReaderGateway(base_url=base_url) as gateway:
            await SyncEngine(gateway, TokenStore(temp_db)).login(VALID_USER, VALID_PASSWORD)

        async with OldReaderGateway(base_url=base_url) as gateway:
            engine = SyncEngine(gateway, TokenStore(temp_db))
            assert await engine.check_auth() is SessionStatus.AUTHENTICATED
            assert engine.token == VALID_TOKEN
            assert await engine.refresh_subscriptions() is True

    async def test_rejected_token_keeps_state(self, gateway, temp_db):
        """A token the server rejects leaves local state untouched."""
        store = TokenStore(temp_db)
        store.save("expired")
        engine = SyncEngine(gateway, store)

        assert await engine.refresh_subscriptions() is False
        assert len(engine.registry) == 0
        assert engine.is_updating_list is False

    async def test_read_articles_listed_when_filter_off(self, gateway, temp_db):
        """Turning off the unread filter lists read articles too."""
        store = TokenStore(temp_db)
        store.save(VALID_TOKEN)
        engine = SyncEngine(gateway, store, only_unread=False)

        await engine.select_feed("a")

        assert [a.id for a in engine.collection.articles] == ["1", "2", "3", "0"]

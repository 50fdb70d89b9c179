"""Test doubles for the remote API: a scripted gateway and a fake HTTP server."""

import asyncio
from typing import Dict, List

from aiohttp import web

from reader_sync.gateway.interfaces import (
    ApiResult,
    ArticleContentRecord,
    GatewayInterface,
    ITEM_ID_PREFIX,
    Link,
    UserInfo,
)


VALID_USER = "reader@example.com"
VALID_PASSWORD = "secret"
VALID_TOKEN = "tok-123"

# 2024-01-01T12:00:00Z
SAMPLE_MICROS = 1704110400_000000


def content_record(article_id: str, link: bool = True) -> ArticleContentRecord:
    """Content record as the gateway returns it, with a namespaced id."""
    return ArticleContentRecord(
        id=ITEM_ID_PREFIX + article_id,
        title=f"Title {article_id}",
        content=f"<p>Body {article_id}</p>",
        author=f"Author {article_id}",
        published_at_micros=SAMPLE_MICROS,
        links=[Link(rel="alternate", href=f"https://example.com/{article_id}")] if link else [],
    )


class FakeGateway(GatewayInterface):
    """Scripted gateway. Calls can be held until released by the test."""

    def __init__(self):
        self.login_result = ApiResult.success(VALID_TOKEN)
        self.subscriptions_result = ApiResult.success([])
        self.unread_counts_result = ApiResult.success([])
        self.article_ids: Dict[str, ApiResult] = {}
        self.contents_result = None  # None: generate a record per requested id
        self.read_state_result = ApiResult.success()
        self.user_info_result = ApiResult.success(UserInfo("1", "reader", VALID_USER))
        self.calls: List[tuple] = []
        self._gates: Dict[str, asyncio.Event] = {}
        self._entered: Dict[str, asyncio.Event] = {}

    def hold(self, name: str) -> None:
        """Block calls named ``name`` until ``release(name)``."""
        self._gates[name] = asyncio.Event()
        self._entered[name] = asyncio.Event()

    def release(self, name: str) -> None:
        self._gates.pop(name).set()

    async def wait_entered(self, name: str) -> None:
        await self._entered[name].wait()

    async def _checkpoint(self, name: str) -> None:
        gate = self._gates.get(name)
        if gate is not None:
            self._entered[name].set()
            await gate.wait()

    async def exchange_credentials(self, username, password):
        self.calls.append(("exchange_credentials", username))
        await self._checkpoint("login")
        return self.login_result

    async def list_subscriptions(self, token):
        self.calls.append(("list_subscriptions", token))
        await self._checkpoint("subscriptions")
        return self.subscriptions_result

    async def list_unread_counts(self, token):
        self.calls.append(("list_unread_counts", token))
        await self._checkpoint("unread_counts")
        return self.unread_counts_result

    async def list_article_ids(self, token, feed_id, only_unread=True, limit=100):
        self.calls.append(("list_article_ids", feed_id, only_unread, limit))
        await self._checkpoint(f"ids:{feed_id}")
        return self.article_ids.get(feed_id, ApiResult.success([]))

    async def fetch_article_contents(self, token, ids):
        self.calls.append(("fetch_article_contents", list(ids)))
        await self._checkpoint(f"contents:{ids[0]}")
        await self._checkpoint("contents")
        if self.contents_result is not None:
            return self.contents_result
        return ApiResult.success([content_record(i) for i in ids])

    async def set_read_state(self, token, article_id, is_read):
        self.calls.append(("set_read_state", article_id, is_read))
        await self._checkpoint(f"read:{article_id}")
        return self.read_state_result

    async def get_user_info(self, token):
        self.calls.append(("get_user_info", token))
        return self.user_info_result

    def called(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]


# In-process stand-in for the remote API

API_REQUESTS = web.AppKey("api_requests", list)

FEED_ITEMS = {
    "a": [("1", False), ("2", False), ("3", False), ("0", True)],
    "b": [("7", False)],
}


def _authorized(request: web.Request) -> bool:
    return request.headers.get("Authorization") == f"GoogleLogin auth={VALID_TOKEN}"


def build_api_app() -> web.Application:
    """Minimal Google Reader style API with fixed data."""
    app = web.Application()
    app[API_REQUESTS] = []

    async def client_login(request):
        body = await request.json()
        app[API_REQUESTS].append(("login", body))
        if body.get("Email") == VALID_USER and body.get("Passwd") == VALID_PASSWORD:
            return web.json_response({"SID": "none", "LSID": "none", "Auth": VALID_TOKEN})
        return web.Response(status=403, text="Error=BadAuthentication")

    async def subscription_list(request):
        if not _authorized(request):
            return web.Response(status=401)
        return web.json_response({"subscriptions": [
            {"id": "feed/a", "title": "Feed A", "iconUrl": "//x/y.png", "categories": []},
            {"id": "feed/b", "title": "Feed B"},
        ]})

    async def unread_count(request):
        if not _authorized(request):
            return web.Response(status=401)
        return web.json_response({"max": 1000, "unreadcounts": [
            {"id": "feed/a", "count": 3, "newestItemTimestampUsec": "0"},
            {"id": "user/-/state/com.google/reading-list", "count": 4},
        ]})

    async def item_ids(request):
        if not _authorized(request):
            return web.Response(status=401)
        app[API_REQUESTS].append(("ids", dict(request.query)))
        feed_id = request.query["s"].split("/", 1)[1]
        only_unread = "xt" in request.query
        limit = int(request.query["n"])
        refs = [
            {"id": item_id, "directStreamIds": [], "timestampUsec": "0"}
            for item_id, is_read in FEED_ITEMS.get(feed_id, [])
            if not (only_unread and is_read)
        ]
        return web.json_response({"itemRefs": refs[:limit]})

    async def item_contents(request):
        if not _authorized(request):
            return web.Response(status=401)
        requested = request.query.getall("i", [])
        app[API_REQUESTS].append(("contents", requested))
        items = []
        for namespaced in requested:
            item_id = namespaced.rsplit("/", 1)[1]
            items.append({
                "id": namespaced,
                "title": f"Title {item_id}",
                "timestampUsec": str(SAMPLE_MICROS),
                "published": SAMPLE_MICROS // 1_000_000,
                "alternate": [{"href": f"https://example.com/{item_id}", "type": "text/html"}],
                "summary": {"content": f"<p>Body {item_id}</p>"},
                "author": f"Author {item_id}",
            })
        return web.json_response({"direction": "ltr", "items": items})

    async def edit_tag(request):
        if not _authorized(request):
            return web.Response(status=401)
        form = await request.post()
        app[API_REQUESTS].append(("edit-tag", dict(form)))
        return web.Response(text="OK")

    async def user_info(request):
        if not _authorized(request):
            return web.Response(status=401)
        return web.json_response({
            "userId": "42", "userName": "reader", "userEmail": VALID_USER,
        })

    app.router.add_post("/reader/api/0/accounts/ClientLogin", client_login)
    app.router.add_get("/reader/api/0/subscription/list", subscription_list)
    app.router.add_get("/reader/api/0/unread-count", unread_count)
    app.router.add_get("/reader/api/0/stream/items/ids", item_ids)
    app.router.add_get("/reader/api/0/stream/items/contents", item_contents)
    app.router.add_post("/reader/api/0/edit-tag", edit_tag)
    app.router.add_get("/reader/api/0/user-info", user_info)
    return app



def build_canned_app(responses: Dict[str, tuple]) -> web.Application:
    """Server answering each API path with a fixed body, whatever the request.

    Keys are paths below /reader/api/0, e.g. "/subscription/list". Values
    are (body, content_type) pairs; a dict or list body is sent as JSON.
    """
    app = web.Application()

    def handler(body, content_type):
        async def respond(request):
            if isinstance(body, (dict, list)):
                return web.json_response(body)
            return web.Response(text=body, content_type=content_type)
        return respond

    for path, (body, content_type) in responses.items():
        app.router.add_route("*", f"/reader/api/0{path}", handler(body, content_type))
    return app

"""Async client for The Old Reader's Google Reader compatible API."""

import asyncio
from typing import Any, List, Optional, Tuple

import aiohttp
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .interfaces import (
    ApiResult,
    ArticleContentRecord,
    GatewayInterface,
    ITEM_ID_PREFIX,
    Link,
    READ_TAG,
    SubscriptionRecord,
    UnreadCountRecord,
    UserInfo,
)
from ..config.settings import settings

logger = structlog.get_logger()

API_PATH = "/reader/api/0"

TRANSPORT_EXCEPTIONS = (aiohttp.ClientError, asyncio.TimeoutError)

Params = List[Tuple[str, str]]


class OldReaderGateway(GatewayInterface):
    """Stateless translation of sync intents into HTTP calls.

    Use as an async context manager; the underlying aiohttp session is
    opened on enter and closed on exit.
    """

    def __init__(
        self,
        base_url: str = None,
        client_name: str = None,
        timeout_seconds: int = None,
        max_attempts: int = None,
    ):
        self.base_url = (base_url if base_url is not None else settings.base_url).rstrip("/")
        self.client_name = client_name or settings.client_name
        self.timeout_seconds = settings.request_timeout_seconds if timeout_seconds is None else timeout_seconds
        self.max_attempts = max(1, settings.request_max_attempts if max_attempts is None else max_attempts)
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            headers={"Accept": "application/json"},
        )
        return self

    async def __aexit__(self, *args):
        if self.session:
            await self.session.close()
            self.session = None

    # Operations

    async def exchange_credentials(self, username: str, password: str) -> ApiResult:
        body = {
            "client": self.client_name,
            "accountType": "HOSTED_OR_GOOGLE",
            "service": "reader",
            "Email": username,
            "Passwd": password,
            "output": "json",
        }
        result = await self._post("", "/accounts/ClientLogin", json_body=body, parse_json=True)
        if not result.ok:
            return result

        token = result.data.get("Auth") if isinstance(result.data, dict) else None
        if not token:
            logger.warning("login_response_without_token")
            return ApiResult.data_shape_error()
        return ApiResult.success(token)

    async def list_subscriptions(self, token: str) -> ApiResult:
        result = await self._get(token, "/subscription/list")
        if not result.ok:
            return result

        records = [
            SubscriptionRecord(
                id=str(sub["id"]),
                title=_text_field(sub, "title"),
                icon_url=_text_field(sub, "iconUrl"),
            )
            for sub in _list_field(result.data, "subscriptions")
            if isinstance(sub, dict) and sub.get("id")
        ]
        return ApiResult.success(records)

    async def list_unread_counts(self, token: str) -> ApiResult:
        result = await self._get(token, "/unread-count")
        if not result.ok:
            return result

        records = []
        for entry in _list_field(result.data, "unreadcounts"):
            if not isinstance(entry, dict) or not entry.get("id"):
                continue
            try:
                count = max(0, int(entry.get("count") or 0))
            except (TypeError, ValueError):
                continue
            records.append(UnreadCountRecord(id=str(entry["id"]), count=count))
        return ApiResult.success(records)

    async def list_article_ids(
        self, token: str, feed_id: str, only_unread: bool = True, limit: int = 100
    ) -> ApiResult:
        params: Params = [("s", f"feed/{feed_id}"), ("n", str(limit))]
        if only_unread:
            params.append(("xt", READ_TAG))

        result = await self._get(token, "/stream/items/ids", params)
        if not result.ok:
            return result

        ids = [
            str(ref["id"])
            for ref in _list_field(result.data, "itemRefs")
            if isinstance(ref, dict) and ref.get("id")
        ]
        return ApiResult.success(ids)

    async def fetch_article_contents(self, token: str, ids: List[str]) -> ApiResult:
        if not ids:
            return ApiResult.success([])

        params: Params = [("i", ITEM_ID_PREFIX + article_id) for article_id in ids]
        result = await self._get(token, "/stream/items/contents", params)
        if not result.ok:
            return result

        records = [
            self._parse_item(item)
            for item in _list_field(result.data, "items")
            if isinstance(item, dict) and item.get("id")
        ]
        return ApiResult.success(records)

    async def set_read_state(self, token: str, article_id: str, is_read: bool) -> ApiResult:
        # Marking read adds the tag, marking unread removes it
        form = {
            "a" if is_read else "r": READ_TAG,
            "i": ITEM_ID_PREFIX + article_id,
        }
        return await self._post(token, "/edit-tag", form_body=form)

    async def get_user_info(self, token: str) -> ApiResult:
        result = await self._get(token, "/user-info")
        if not result.ok:
            return result

        data = result.data if isinstance(result.data, dict) else {}
        return ApiResult.success(UserInfo(
            user_id=str(data.get("userId") or ""),
            user_name=_text_field(data, "userName"),
            email=_text_field(data, "userEmail"),
        ))

    # Parsing

    def _parse_item(self, item: dict) -> ArticleContentRecord:
        """Parse a contents-endpoint item, treating missing fields as empty."""
        summary = item.get("summary") or item.get("content") or {}
        content = summary.get("content", "") if isinstance(summary, dict) else ""

        links = []
        for rel in ("alternate", "canonical"):
            for link in _list_field(item, rel):
                if isinstance(link, dict) and isinstance(link.get("href"), str) and link["href"]:
                    links.append(Link(rel=rel, href=link["href"]))

        return ArticleContentRecord(
            id=str(item["id"]),
            title=_text_field(item, "title"),
            content=content if isinstance(content, str) else "",
            author=_text_field(item, "author"),
            published_at_micros=_timestamp_micros(item),
            links=links,
        )

    # Transport

    async def _get(self, token: str, path: str, params: Params = None) -> ApiResult:
        query: Params = [("output", "json")] + list(params or [])
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                retry=retry_if_exception_type(TRANSPORT_EXCEPTIONS),
                reraise=True,
            ):
                with attempt:
                    return await self._send("GET", token, path, params=query, parse_json=True)
        except TRANSPORT_EXCEPTIONS as e:
            logger.warning("api_transport_failed", method="GET", path=path, error=str(e))
            return ApiResult.transport_error()

    async def _post(
        self,
        token: str,
        path: str,
        json_body: dict = None,
        form_body: dict = None,
        parse_json: bool = False,
    ) -> ApiResult:
        try:
            return await self._send(
                "POST", token, path,
                json_body=json_body, form_body=form_body, parse_json=parse_json,
            )
        except TRANSPORT_EXCEPTIONS as e:
            logger.warning("api_transport_failed", method="POST", path=path, error=str(e))
            return ApiResult.transport_error()

    async def _send(
        self,
        method: str,
        token: str,
        path: str,
        params: Params = None,
        json_body: dict = None,
        form_body: dict = None,
        parse_json: bool = False,
    ) -> ApiResult:
        """Issue one request. Transport exceptions propagate to the caller."""
        if self.session is None:
            raise RuntimeError("OldReaderGateway must be used with 'async with'")

        headers = {}
        if token:
            headers["Authorization"] = f"GoogleLogin auth={token}"

        url = f"{self.base_url}{API_PATH}{path}"
        async with self.session.request(
            method, url, params=params, json=json_body, data=form_body, headers=headers
        ) as response:
            if response.status != 200:
                logger.warning("api_request_failed", method=method, path=path, status=response.status)
                return ApiResult.http_error(response.status)

            if not parse_json:
                await response.read()
                return ApiResult.success()

            try:
                data = await response.json(content_type=None)
            except ValueError:
                logger.warning("api_response_not_json", method=method, path=path)
                return ApiResult.data_shape_error()

        logger.debug("api_request_ok", method=method, path=path)
        return ApiResult.success(data)


def _list_field(data: Any, key: str) -> list:
    """Get a list field from a response body, or [] if absent or malformed."""
    if not isinstance(data, dict):
        return []
    value = data.get(key)
    return value if isinstance(value, list) else []


def _text_field(data: dict, key: str) -> str:
    """Get a string field, or "" if absent or not a string."""
    value = data.get(key)
    return value if isinstance(value, str) else ""


def _timestamp_micros(item: dict) -> Optional[int]:
    """Item timestamp in microseconds; falls back to 'published' (seconds)."""
    for key, scale in (("timestampUsec", 1), ("published", 1_000_000)):
        value = item.get(key)
        if value in (None, ""):
            continue
        try:
            return int(value) * scale
        except (TypeError, ValueError):
            continue
    return None

"""Remote API gateway - The Old Reader over HTTP."""

from .interfaces import (
    ApiResult, FailureKind, TRANSPORT_ERROR, SubscriptionRecord, UnreadCountRecord,
    ArticleContentRecord, Link, UserInfo, GatewayInterface, bare_id,
)
from .client import OldReaderGateway

__all__ = [
    "ApiResult", "FailureKind", "TRANSPORT_ERROR", "SubscriptionRecord",
    "UnreadCountRecord", "ArticleContentRecord", "Link", "UserInfo",
    "GatewayInterface", "bare_id", "OldReaderGateway",
]

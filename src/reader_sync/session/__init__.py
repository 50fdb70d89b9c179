"""Persisted session state - auth token and device id."""

from .interfaces import TokenStoreInterface, AUTH_TOKEN_KEY, DEVICE_ID_KEY
from .store import TokenStore

__all__ = ["TokenStoreInterface", "TokenStore", "AUTH_TOKEN_KEY", "DEVICE_ID_KEY"]

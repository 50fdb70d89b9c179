"""Synchronization engine."""

from .interfaces import Route, Navigator, LOGIN_FAILED_MESSAGE, REQUEST_FAILED_MESSAGE
from .engine import SyncEngine

__all__ = ["SyncEngine", "Route", "Navigator", "LOGIN_FAILED_MESSAGE", "REQUEST_FAILED_MESSAGE"]

"""Signals the sync engine emits for the UI layer."""

from enum import Enum
from typing import Callable


class Route(Enum):
    """Screens the engine may ask the UI to show."""
    FEED_LIST = "/blogs"
    LOGIN = "/login"


Navigator = Callable[[Route], None]

LOGIN_FAILED_MESSAGE = "Could not log in, bad username or password?"
REQUEST_FAILED_MESSAGE = "Request failed, please try again."

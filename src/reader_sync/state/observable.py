"""Synchronous change notification for engine-owned state."""

from typing import Callable, List

import structlog

logger = structlog.get_logger()

Listener = Callable[[], None]


class Observable:
    """Keeps a list of listeners and calls them after each mutation."""

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as e:
                logger.error("observer_failed", source=type(self).__name__, error=str(e))

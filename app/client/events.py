from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable

from app.utils.logging import get_logger


logger = get_logger(__name__)

# Broadcast by whoever writes the session in this process.
AUTH_CHANGE = "authChange"
# Raised when the session was changed by another process sharing the storage.
STORAGE = "storage"

Listener = Callable[[str, Any], None]


class EventBus:
    """Synchronous in-process broadcast.

    ``dispatch`` calls every listener of the event before returning, in
    registration order. A failing listener is logged and does not stop the rest.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def add_listener(self, event: str, listener: Listener) -> None:
        if listener not in self._listeners[event]:
            self._listeners[event].append(listener)

    def remove_listener(self, event: str, listener: Listener) -> None:
        try:
            self._listeners[event].remove(listener)
        except ValueError:
            pass

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def dispatch(self, event: str, detail: Any = None) -> None:
        for listener in list(self._listeners.get(event, ())):
            try:
                listener(event, detail)
            except Exception:
                logger.exception("event listener failed", event_name=event)


__all__ = ["AUTH_CHANGE", "STORAGE", "EventBus", "Listener"]

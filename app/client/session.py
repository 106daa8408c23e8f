"""Client session cache and the observable store built on it.

The cache is the only writer: ``save`` and ``clear`` touch storage and then
broadcast ``authChange`` on the bus so observers in this process refresh
straight away. Changes made by another process arrive as a ``storage``
event instead: ``check_external_change`` compares the persistent file with
the last version this cache wrote or saw and, when it differs, calls
``notify_external_change``. Call it when the app regains focus or from a
file watcher. Storage itself never announces writes to the process that
made them.
"""
from __future__ import annotations

import json
from typing import Any, Callable

from pydantic import BaseModel, ValidationError as SchemaError

from app.client.events import AUTH_CHANGE, STORAGE, EventBus
from app.client.storage import FileStorage, MemoryStorage, Storage
from app.utils.config import settings
from app.utils.logging import get_logger


logger = get_logger(__name__)

TOKEN_KEY = "auth.token"
USER_KEY = "auth.user"


class UserProfile(BaseModel):
    email: str
    name: str | None = None
    id: str | None = None


class SessionRecord(BaseModel):
    token: str
    user: UserProfile | None = None


class SessionCache:
    def __init__(self, persistent: Storage, bus: EventBus, volatile: Storage | None = None) -> None:
        self.persistent = persistent
        self.volatile = volatile or MemoryStorage()
        self.bus = bus
        self._seen_version = self._persistent_version()

    def save(self, token: str, user: UserProfile | dict | None, remember: bool = True) -> None:
        """Store token and profile, then broadcast ``authChange``.

        With ``remember`` the session goes to persistent storage; otherwise it
        is kept for this process only and any persisted copy is dropped.
        """
        if isinstance(user, dict):
            user = UserProfile(**user)
        target, other = (self.persistent, self.volatile) if remember else (self.volatile, self.persistent)

        other.remove_item(TOKEN_KEY)
        other.remove_item(USER_KEY)
        target.set_item(TOKEN_KEY, token)
        if user is not None:
            target.set_item(USER_KEY, user.model_dump_json(exclude_none=True))
        else:
            target.remove_item(USER_KEY)

        self._seen_version = self._persistent_version()
        logger.debug("session saved", remember=remember)
        self.bus.dispatch(AUTH_CHANGE)

    def clear(self) -> None:
        for storage in (self.volatile, self.persistent):
            storage.remove_item(TOKEN_KEY)
            storage.remove_item(USER_KEY)
        self._seen_version = self._persistent_version()
        logger.debug("session cleared")
        self.bus.dispatch(AUTH_CHANGE)

    def read(self) -> SessionRecord | None:
        for storage in (self.volatile, self.persistent):
            token = storage.get_item(TOKEN_KEY)
            if token:
                return SessionRecord(token=token, user=self._read_user(storage))
        return None

    @staticmethod
    def _read_user(storage: Storage) -> UserProfile | None:
        raw = storage.get_item(USER_KEY)
        if not raw:
            return None
        try:
            return UserProfile(**json.loads(raw))
        except (json.JSONDecodeError, TypeError, SchemaError):
            return None

    def notify_external_change(self, key: str | None = None) -> None:
        """Entry point for the cross-process signal (e.g. a file watcher)."""
        if key is None or key in (TOKEN_KEY, USER_KEY):
            self.bus.dispatch(STORAGE, key)

    def _persistent_version(self) -> Any:
        version = getattr(self.persistent, "version", None)
        return version() if version is not None else None

    def check_external_change(self) -> bool:
        """Raise the ``storage`` signal if another process rewrote the session file."""
        current = self._persistent_version()
        if current == self._seen_version:
            return False
        self._seen_version = current
        logger.debug("session changed externally")
        self.notify_external_change()
        return True


Subscriber = Callable[[SessionRecord | None], None]


class SessionStore:
    """Observable view of the current session.

    Starts from what the cache holds, refreshes on either channel, and
    forwards every refresh to its subscribers. ``close`` detaches it.
    """

    def __init__(self, cache: SessionCache) -> None:
        self.cache = cache
        self.current: SessionRecord | None = cache.read()
        self._subscribers: list[Subscriber] = []
        self._closed = False
        cache.bus.add_listener(AUTH_CHANGE, self._on_change)
        cache.bus.add_listener(STORAGE, self._on_change)

    @property
    def is_authenticated(self) -> bool:
        return self.current is not None

    def _on_change(self, event: str, detail: Any = None) -> None:
        self.current = self.cache.read()
        for subscriber in list(self._subscribers):
            subscriber(self.current)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def display_label(self, fallback_email: str | None = None) -> str | None:
        user = self.current.user if self.current else None
        if user is not None:
            return user.name or user.email
        return fallback_email

    def close(self) -> None:
        if self._closed:
            return
        self.cache.bus.remove_listener(AUTH_CHANGE, self._on_change)
        self.cache.bus.remove_listener(STORAGE, self._on_change)
        self._subscribers.clear()
        self._closed = True

    def __enter__(self) -> "SessionStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def create_session_cache(bus: EventBus | None = None) -> SessionCache:
    """Session cache persisted to ``settings.session_file``."""
    return SessionCache(persistent=FileStorage(settings.session_file), bus=bus or EventBus())


__all__ = [
    "TOKEN_KEY",
    "USER_KEY",
    "UserProfile",
    "SessionRecord",
    "SessionCache",
    "SessionStore",
    "create_session_cache",
]

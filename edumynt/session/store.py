"""Client-side session container.

The store owns the current session and a list of listeners. Sessions are
persisted as JSON under STORAGE_KEY in a pluggable storage (memory or a JSON
file); anything that fails to decode is discarded.
"""
import json
from enum import Enum
from pathlib import Path
from typing import Callable

import structlog
from pydantic import ValidationError

from ..application.errors import DecodeError
from ..interfaces.http.schemas import SessionOut

logger = structlog.get_logger(__name__)

STORAGE_KEY = "edumynt-auth-token"


class AuthChangeEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


Listener = Callable[[AuthChangeEvent, SessionOut | None], None]


class MemorySessionStorage:
    def __init__(self):
        self._items: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)


class FileSessionStorage:
    """Key/value entries kept in a single JSON file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("session_storage_unreadable", path=str(self.path), error=str(e))
            return {}

    def _write(self, items: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(items), encoding="utf-8")

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        items = self._read()
        items[key] = value
        self._write(items)

    def remove(self, key: str) -> None:
        items = self._read()
        if items.pop(key, None) is not None:
            self._write(items)


def decode_session(raw: str | dict) -> SessionOut:
    try:
        if isinstance(raw, str):
            return SessionOut.model_validate_json(raw)
        return SessionOut.model_validate(raw)
    except ValidationError as e:
        raise DecodeError(f"Invalid session payload: {e.error_count()} error(s)") from e


class SessionStore:
    def __init__(self, storage=None):
        self.storage = storage or MemorySessionStorage()
        self._session: SessionOut | None = None
        self._restored = False
        self._listeners: list[Listener] = []

    def get_session(self) -> SessionOut | None:
        if self._session is None and not self._restored:
            self._restored = True
            raw = self.storage.get(STORAGE_KEY)
            if raw:
                try:
                    self._session = decode_session(raw)
                except DecodeError as e:
                    logger.warning("stored_session_discarded", error=str(e))
                    self.storage.remove(STORAGE_KEY)
        return self._session

    def set_session(self, session: SessionOut, event: AuthChangeEvent = AuthChangeEvent.SIGNED_IN) -> None:
        self._session = session
        self._restored = True
        self.storage.set(STORAGE_KEY, session.model_dump_json())
        self._notify(event, session)

    def clear(self) -> None:
        self._session = None
        self._restored = True
        self.storage.remove(STORAGE_KEY)
        self._notify(AuthChangeEvent.SIGNED_OUT, None)

    def on_auth_state_change(self, listener: Listener) -> Callable[[], None]:
        """Registers a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _notify(self, event: AuthChangeEvent, session: SessionOut | None) -> None:
        for listener in list(self._listeners):
            listener(event, session)

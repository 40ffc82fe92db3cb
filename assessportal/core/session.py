"""
Session store for the locally cached authenticated identity.

The session lives under a single well-known key in a key/value storage
backend. Absence and unreadable payloads both mean "not logged in".
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

import structlog
from assessportal.domain.models import Session

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class SessionMissingError(Exception):
    """Raised when an operation needs a session and none is stored."""


class SessionStorage(Protocol):
    """Minimal key/value storage (allows swapping the backing medium)."""

    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class MemoryStorage:
    """Process-local storage; lives as long as the object does."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage:
    """JSON file holding a key -> string map, so a session survives between commands."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read(self) -> dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning("session_storage_unreadable", path=str(self.path), error=str(exc))
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(key): str(value) for key, value in data.items()}

    def _write(self, items: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(items), encoding="utf-8")

    def get_item(self, key: str) -> str | None:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read()
        items[key] = value
        self._write(items)

    def remove_item(self, key: str) -> None:
        items = self._read()
        if key in items:
            del items[key]
            self._write(items)


class SessionStore:
    """Reads and writes the cached session; the only writer is login/reset/logout."""

    def __init__(
        self,
        storage: SessionStorage | None = None,
        *,
        key: str = "user",
        clock: Clock = utc_now,
    ) -> None:
        self.storage = storage if storage is not None else MemoryStorage()
        self.key = key
        self.clock = clock

    def load(self) -> Session | None:
        raw = self.storage.get_item(self.key)
        if raw is None:
            return None

        try:
            payload = json.loads(raw)
            return Session.from_payload(payload)
        except (ValueError, TypeError, KeyError) as exc:
            logger.warning("session_unreadable", key=self.key, error=str(exc))
            return None

    def save(self, session: Session) -> None:
        self.storage.set_item(self.key, json.dumps(session.to_payload()))
        logger.info("session_saved", user_id=session.id, role=session.role)

    def session_from_user(self, payload: dict[str, Any]) -> Session:
        """Build a session from a backend user payload, stamped with the store's clock."""
        session = Session.from_payload(payload)
        session.logged_in_at = self.clock()
        return session

    def complete_password_reset(self, pending: Session | None = None) -> Session:
        """Clear the first-login flag and persist.

        ``pending`` is the identity held back during a first login; without
        it the stored session is updated.
        """
        session = pending if pending is not None else self.load()
        if session is None:
            raise SessionMissingError("No active session")

        updated = replace(session, is_first_login=False)
        self.save(updated)
        return updated

    def clear(self) -> None:
        self.storage.remove_item(self.key)
        logger.info("session_cleared", key=self.key)

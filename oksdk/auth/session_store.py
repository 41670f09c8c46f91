from __future__ import annotations

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from ..constants import PARAMETER_NAME_ACCESS_TOKEN, PARAMETER_NAME_REFRESH_TOKEN
from ..errors import NotAuthenticatedError, SessionStorageError


class SessionStore(ABC):
    """Key/value settings storage used to persist the token pair."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        raise NotImplementedError

    def flush(self) -> None:
        """Commit pending writes. Stores that write through need not override."""


class MemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class FileSessionStore(SessionStore):
    """JSON file store. Writes are buffered until ``flush``."""

    def __init__(self, path: str | Path = ".ok_session.json") -> None:
        self._path = Path(path)
        self._values: dict[str, str] | None = None

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        self._load()[key] = value

    def delete(self, key: str) -> None:
        self._load().pop(key, None)

    def flush(self) -> None:
        self._write_all(self._load())

    def _load(self) -> dict[str, str]:
        if self._values is None:
            self._values = self._read_all()
        return self._values

    def _read_all(self) -> dict[str, str]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}

        settings = json.loads(text)
        if not isinstance(settings, dict):
            raise ValueError(f"{self._path} must hold a JSON object of settings.")
        for key, value in settings.items():
            if not isinstance(value, str):
                raise ValueError(f"Setting {key!r} in {self._path} is not a string.")
        return settings

    def _write_all(self, settings: dict[str, str]) -> None:
        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)

        # Replace the file in one step so a crash never leaves half a token pair.
        fd, staged = tempfile.mkstemp(prefix=f"{self._path.name}.", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(json.dumps(settings, indent=2, sort_keys=True))
            os.replace(staged, self._path)
        except BaseException:
            Path(staged).unlink(missing_ok=True)
            raise


def session_keys(prefix: str) -> tuple[str, str]:
    return prefix + PARAMETER_NAME_ACCESS_TOKEN, prefix + PARAMETER_NAME_REFRESH_TOKEN


class Session:
    """Access/refresh token pair. Either both are set or neither is."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._access_token: str | None = None
        self._refresh_token: str | None = None

    @property
    def access_token(self) -> str | None:
        with self._lock:
            return self._access_token

    @property
    def refresh_token(self) -> str | None:
        with self._lock:
            return self._refresh_token

    @property
    def is_authenticated(self) -> bool:
        with self._lock:
            return self._access_token is not None

    def snapshot(self) -> tuple[str | None, str | None]:
        with self._lock:
            return self._access_token, self._refresh_token

    def require_access_token(self) -> str:
        with self._lock:
            if self._access_token is None:
                raise NotAuthenticatedError("No access token; authorize first.")
            return self._access_token

    def require_refresh_token(self) -> str:
        with self._lock:
            if self._refresh_token is None:
                raise NotAuthenticatedError("No refresh token; authorize first.")
            return self._refresh_token

    def set_tokens(self, access_token: str, refresh_token: str) -> None:
        if not access_token or not refresh_token:
            raise ValueError("Both access_token and refresh_token are required.")
        with self._lock:
            self._access_token = access_token
            self._refresh_token = refresh_token

    def update_access_token(self, access_token: str) -> None:
        if not access_token:
            raise ValueError("access_token cannot be empty.")
        with self._lock:
            if self._refresh_token is None:
                raise NotAuthenticatedError("Cannot update access token of an empty session.")
            self._access_token = access_token

    def clear(self) -> None:
        with self._lock:
            self._access_token = None
            self._refresh_token = None


def save_session(store: SessionStore, prefix: str, session: Session) -> None:
    access_token, refresh_token = session.snapshot()
    access_key, refresh_key = session_keys(prefix)
    try:
        if access_token is None or refresh_token is None:
            store.delete(access_key)
            store.delete(refresh_key)
        else:
            store.set(access_key, access_token)
            store.set(refresh_key, refresh_token)
        store.flush()
    except Exception as error:
        raise SessionStorageError(f"Failed to save session: {error}") from error


def load_session(store: SessionStore, prefix: str, session: Session) -> bool:
    access_key, refresh_key = session_keys(prefix)
    try:
        access_token = store.get(access_key)
        refresh_token = store.get(refresh_key)
    except Exception as error:
        raise SessionStorageError(f"Failed to load session: {error}") from error

    if not access_token or not refresh_token:
        return False
    session.set_tokens(access_token, refresh_token)
    return True


def clear_session(store: SessionStore, prefix: str, session: Session) -> None:
    session.clear()
    access_key, refresh_key = session_keys(prefix)
    try:
        store.delete(access_key)
        store.delete(refresh_key)
        store.flush()
    except Exception as error:
        raise SessionStorageError(f"Failed to clear session: {error}") from error

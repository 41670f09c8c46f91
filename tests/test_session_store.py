import pytest

from oksdk.auth.session_store import (
    FileSessionStore,
    MemorySessionStore,
    Session,
    SessionStore,
    clear_session,
    load_session,
    save_session,
)
from oksdk.errors import NotAuthenticatedError, SessionStorageError


class _BrokenStore(SessionStore):
    def get(self, key: str) -> str | None:
        raise OSError("disk gone")

    def set(self, key: str, value: str) -> None:
        raise OSError("disk gone")

    def delete(self, key: str) -> None:
        raise OSError("disk gone")


def _authenticated_session() -> Session:
    session = Session()
    session.set_tokens("access", "refresh")
    return session


def test_memory_store_set_get_delete() -> None:
    store = MemorySessionStore()

    store.set("key", "value")
    assert store.get("key") == "value"

    store.delete("key")
    assert store.get("key") is None


def test_memory_store_delete_missing() -> None:
    store = MemorySessionStore()

    store.delete("missing")

    assert store.get("missing") is None


def test_file_store_persists_after_flush(tmp_path) -> None:
    path = tmp_path / "session.json"
    first = FileSessionStore(path)
    first.set("key", "value")

    assert not path.exists()

    first.flush()

    assert FileSessionStore(path).get("key") == "value"


def test_file_store_missing_file(tmp_path) -> None:
    store = FileSessionStore(tmp_path / "missing.json")

    assert store.get("key") is None


def test_file_store_rejects_non_object(tmp_path) -> None:
    path = tmp_path / "session.json"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(ValueError, match="JSON object"):
        FileSessionStore(path).get("key")


def test_file_store_rejects_non_string_values(tmp_path) -> None:
    path = tmp_path / "session.json"
    path.write_text('{"OK_SDK_access_token": 42}', encoding="utf-8")

    with pytest.raises(ValueError, match="not a string"):
        FileSessionStore(path).get("OK_SDK_access_token")


def test_load_session_wraps_malformed_file(tmp_path) -> None:
    path = tmp_path / "session.json"
    path.write_text('{"OK_SDK_access_token": ["a"], "OK_SDK_refresh_token": "r"}', encoding="utf-8")
    session = Session()

    with pytest.raises(SessionStorageError):
        load_session(FileSessionStore(path), "OK_SDK_", session)

    assert session.snapshot() == (None, None)


def test_file_store_flush_leaves_no_staging_files(tmp_path) -> None:
    path = tmp_path / "nested" / "session.json"
    store = FileSessionStore(path)
    store.set("key", "value")

    store.flush()

    assert [entry.name for entry in path.parent.iterdir()] == ["session.json"]


def test_session_starts_empty() -> None:
    session = Session()

    assert session.snapshot() == (None, None)
    assert session.is_authenticated is False


def test_session_set_tokens_requires_both() -> None:
    session = Session()

    with pytest.raises(ValueError):
        session.set_tokens("access", "")

    assert session.snapshot() == (None, None)


def test_session_update_access_token_keeps_refresh() -> None:
    session = _authenticated_session()

    session.update_access_token("access-2")

    assert session.snapshot() == ("access-2", "refresh")


def test_session_update_access_token_requires_session() -> None:
    session = Session()

    with pytest.raises(NotAuthenticatedError):
        session.update_access_token("access")

    assert session.snapshot() == (None, None)


def test_session_require_tokens() -> None:
    session = Session()

    with pytest.raises(NotAuthenticatedError):
        session.require_access_token()
    with pytest.raises(NotAuthenticatedError):
        session.require_refresh_token()


def test_save_and_load_session(tmp_path) -> None:
    path = tmp_path / "session.json"
    save_session(FileSessionStore(path), "OK_SDK_", _authenticated_session())

    restored = Session()
    loaded = load_session(FileSessionStore(path), "OK_SDK_", restored)

    assert loaded is True
    assert restored.snapshot() == ("access", "refresh")


def test_save_session_uses_prefixed_keys() -> None:
    store = MemorySessionStore()

    save_session(store, "APP_", _authenticated_session())

    assert store.get("APP_access_token") == "access"
    assert store.get("APP_refresh_token") == "refresh"


def test_load_session_requires_both_keys() -> None:
    store = MemorySessionStore()
    store.set("OK_SDK_access_token", "access")
    session = Session()

    assert load_session(store, "OK_SDK_", session) is False
    assert session.snapshot() == (None, None)


def test_clear_session_removes_tokens_and_keys() -> None:
    store = MemorySessionStore()
    session = _authenticated_session()
    save_session(store, "OK_SDK_", session)

    clear_session(store, "OK_SDK_", session)

    assert session.snapshot() == (None, None)
    assert store.get("OK_SDK_access_token") is None
    assert store.get("OK_SDK_refresh_token") is None


def test_storage_failures_raise_session_storage_error() -> None:
    store = _BrokenStore()

    with pytest.raises(SessionStorageError):
        save_session(store, "OK_SDK_", _authenticated_session())
    with pytest.raises(SessionStorageError):
        load_session(store, "OK_SDK_", Session())
    with pytest.raises(SessionStorageError):
        clear_session(store, "OK_SDK_", Session())

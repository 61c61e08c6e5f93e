"""Tests for the persisted session list."""

from datetime import datetime, timedelta

import pytest

from chatrelay.backend.exception import SessionStoreError
from chatrelay.backend.runtime.session_store import SessionStore


BASE_TIME = datetime(2026, 1, 1, 12, 0, 0)


def at(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


def test_empty_store(store):
    assert store.list_sessions() == []
    assert store.get("missing") is None


def test_append_returns_entry(store):
    entry = store.append("s1", "first session", saved_at=at(0))

    assert entry.session_id == "s1"
    assert entry.title == "first session"
    assert entry.saved_at == at(0)
    assert entry.model_dump()["saved_at"] == at(0).isoformat()


def test_most_recent_first(store):
    store.append("s1", "one", saved_at=at(0))
    store.append("s2", "two", saved_at=at(2))
    store.append("s3", "three", saved_at=at(1))

    assert [e.session_id for e in store.list_sessions()] == ["s2", "s3", "s1"]


def test_latest_save_wins_per_session(store):
    store.append("s1", "old title", saved_at=at(0))
    store.append("s2", "two", saved_at=at(1))
    store.append("s1", "new title", saved_at=at(2))

    entries = store.list_sessions()

    assert [e.session_id for e in entries] == ["s1", "s2"]
    assert entries[0].title == "new title"
    assert store.get("s1").title == "new title"


def test_list_is_capped(store):
    for i in range(8):
        store.append(f"s{i}", f"session {i}", saved_at=at(i))

    entries = store.list_sessions()

    assert len(entries) == 5
    assert entries[0].session_id == "s7"
    assert len(store.list_sessions(limit=2)) == 2
    # Older entries stay resumable until pruned
    assert store.get("s0") is not None


def test_prune_drops_old_sessions(store):
    for i in range(7):
        store.append(f"s{i}", f"session {i}", saved_at=at(i))
    store.append("s6", "again", saved_at=at(10))

    deleted = store.prune(keep=3)

    assert deleted == 4
    assert [e.session_id for e in store.list_sessions()] == ["s6", "s5", "s4"]
    assert store.get("s0") is None


def test_reads_are_repeatable(store):
    store.append("s1", "one", saved_at=at(0))

    assert store.list_sessions() == store.list_sessions()


def test_survives_reopen(tmp_path):
    url = f"sqlite:///{tmp_path / 'nested' / 'dir' / 'sessions.db'}"
    first = SessionStore(url)
    first.create_tables()
    first.append("s1", "persisted")
    first.dispose()

    second = SessionStore(url)
    second.create_tables()
    try:
        assert second.get("s1").title == "persisted"
    finally:
        second.dispose()


def test_missing_table_raises_store_error(tmp_path):
    store = SessionStore(f"sqlite:///{tmp_path / 'empty.db'}")
    try:
        with pytest.raises(SessionStoreError) as exc_info:
            store.list_sessions()
        assert exc_info.value.code == "SESSION_STORE_ERROR"
    finally:
        store.dispose()

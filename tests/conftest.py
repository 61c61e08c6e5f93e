"""Shared fixtures: a scriptable fake assistant and an isolated instance"""

from __future__ import annotations

import os

import pytest

from chatrelay.backend.config import INSTANCE_PATH_ENV, Settings
from chatrelay.backend.runtime.session import ChatSession
from chatrelay.backend.runtime.session_store import SessionStore

from .fakes import FakeAssistant, ProgressRecorder


@pytest.fixture(autouse=True)
def isolated_instance(tmp_path, monkeypatch):
    """Point the instance path at tmp_path and drop CHATRELAY_* overrides"""
    for key in list(os.environ):
        if key.startswith("CHATRELAY_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv(INSTANCE_PATH_ENV, str(tmp_path))
    return tmp_path


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        instance_path=tmp_path,
        working_dir=tmp_path,
        preempt_grace_seconds=0.01,
    )


@pytest.fixture
def store(tmp_path):
    store = SessionStore(f"sqlite:///{tmp_path / 'data' / 'sessions.db'}", max_entries=5)
    store.create_tables()
    yield store
    store.dispose()


@pytest.fixture
def assistant() -> FakeAssistant:
    return FakeAssistant()


@pytest.fixture
def session(settings, assistant, store) -> ChatSession:
    return ChatSession(settings=settings, assistant=assistant, store=store)


@pytest.fixture
def recorder() -> ProgressRecorder:
    return ProgressRecorder()

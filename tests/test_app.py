"""Tests for logging setup and the application factory."""

import logging

import pytest

from chatrelay.backend.app import create_chat_session
from chatrelay.backend.logging import ProjectOnlyFilter, setup_logging, teardown_logging

from .fakes import FakeAssistant, result_event


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield root
    teardown_logging()
    root.setLevel(level)


def test_project_only_filter():
    log_filter = ProjectOnlyFilter()

    def record(name):
        return logging.LogRecord(name, logging.DEBUG, __file__, 1, "msg", None, None)

    assert log_filter.filter(record("chatrelay.backend.runtime.session"))
    assert not log_filter.filter(record("sqlalchemy.engine"))


def test_setup_logging_writes_files(tmp_path, restore_root_logger):
    setup_logging(tmp_path)

    logging.getLogger("chatrelay.test").debug("project debug line")
    logging.getLogger("other.library").debug("foreign debug line")
    logging.getLogger("chatrelay.test").error("project error line")
    for handler in restore_root_logger.handlers:
        handler.flush()

    debug_log = (tmp_path / "logs" / "debug.log").read_text()
    assert "project debug line" in debug_log
    assert "foreign debug line" not in debug_log
    assert "project error line" in (tmp_path / "logs" / "error.log").read_text()
    assert "project debug line" not in (tmp_path / "logs" / "info.log").read_text()


def test_setup_logging_twice_replaces_own_handlers(tmp_path, restore_root_logger):
    foreign = logging.NullHandler()
    restore_root_logger.addHandler(foreign)
    try:
        setup_logging(tmp_path / "first")
        count = len(restore_root_logger.handlers)

        logs_dir = setup_logging(tmp_path / "second")

        assert logs_dir == tmp_path / "second" / "logs"
        assert len(restore_root_logger.handlers) == count
        assert foreign in restore_root_logger.handlers

        teardown_logging()
        assert foreign in restore_root_logger.handlers
        assert not any(
            isinstance(h, logging.FileHandler) and "second" in h.baseFilename
            for h in restore_root_logger.handlers
        )
    finally:
        restore_root_logger.removeHandler(foreign)


def test_sql_echo_is_quieted(tmp_path, restore_root_logger):
    setup_logging(tmp_path)

    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


async def test_create_chat_session(tmp_path, restore_root_logger):
    assistant = FakeAssistant()
    assistant.script(result_event(session_id="sess-app"))

    session = create_chat_session(tmp_path, assistant=assistant, default_model="haiku")
    try:
        assert session.current_model == "haiku"
        assert (tmp_path / "data" / "chatrelay.db").exists()

        async def on_progress(event, state):
            pass

        result = await session.send_message_streaming("hello", "alice", on_progress)
        assert result.model == "haiku"

        await session.shutdown()
        assert [e.session_id for e in session.get_session_list()] == ["sess-app"]
    finally:
        session.store.dispose()


def test_create_without_logging_setup(tmp_path, restore_root_logger):
    before = list(restore_root_logger.handlers)

    session = create_chat_session(tmp_path, assistant=FakeAssistant(), configure_logging=False)
    session.store.dispose()

    assert restore_root_logger.handlers == before

"""Tests for per-query streaming state and artifact cleanup."""

import logging

from chatrelay.backend.runtime.streaming import StreamingState


async def test_cleanup_removes_in_creation_order():
    state = StreamingState()
    for handle in (11, 12, 13):
        state.add_artifact(handle)
    removed_handles = []

    async def remover(handle):
        removed_handles.append(handle)

    removed = await state.cleanup(remover)

    assert removed == 3
    assert removed_handles == [11, 12, 13]
    assert state.artifacts == []


async def test_cleanup_skips_failures(caplog):
    state = StreamingState()
    for handle in ("a", "b", "c"):
        state.add_artifact(handle)
    attempted = []

    async def remover(handle):
        attempted.append(handle)
        if handle == "b":
            raise RuntimeError("message already deleted")

    with caplog.at_level(logging.DEBUG, logger="chatrelay"):
        removed = await state.cleanup(remover)

    assert removed == 2
    assert attempted == ["a", "b", "c"]
    assert state.artifacts == []
    assert "cleanup incomplete" in caplog.text


async def test_cleanup_of_empty_state():
    async def remover(handle):
        raise AssertionError("nothing to remove")

    assert await StreamingState().cleanup(remover) == 0


def test_artifacts_is_a_copy():
    state = StreamingState()
    state.add_artifact("x")

    state.artifacts.append("y")

    assert state.artifacts == ["x"]


def test_remove_artifact():
    state = StreamingState()
    state.add_artifact("x")

    assert state.remove_artifact("x") is True
    assert state.remove_artifact("x") is False
    assert state.artifacts == []


def test_text_accumulates():
    state = StreamingState()
    state.append_text("Hello ")
    state.append_text("world")

    assert state.text == "Hello world"

"""Fake assistant, progress recorder and event builders for tests"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Any, AsyncIterator, List, Optional

from chatrelay.backend.enum import ProgressEventType
from chatrelay.backend.runtime.assistant import AssistantProcess, AssistantQuery
from chatrelay.backend.runtime.streaming import StreamingState
from chatrelay.backend.schema.event import ProgressEvent, Usage


_END = object()


def init_event(session_id: str = "sess-1") -> ProgressEvent:
    return ProgressEvent(type=ProgressEventType.SESSION_INIT, session_id=session_id)


def text_event(text: str) -> ProgressEvent:
    return ProgressEvent(type=ProgressEventType.TEXT, text=text)


def tool_start(name: str, tool_use_id: str) -> ProgressEvent:
    return ProgressEvent(
        type=ProgressEventType.TOOL_START,
        tool_name=name,
        tool_input={},
        tool_use_id=tool_use_id,
    )


def tool_end(name: str, tool_use_id: str) -> ProgressEvent:
    return ProgressEvent(type=ProgressEventType.TOOL_END, tool_name=name, tool_use_id=tool_use_id)


def result_event(
    text: str = "done",
    input_tokens: int = 10,
    output_tokens: int = 5,
    cache_read: int = 0,
    cache_write: int = 0,
    session_id: Optional[str] = "sess-1",
    cost_usd: float = 0.01,
) -> ProgressEvent:
    return ProgressEvent(
        type=ProgressEventType.RESULT,
        text=text,
        session_id=session_id,
        usage=Usage(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cache_read_input_tokens=cache_read,
            cache_creation_input_tokens=cache_write,
        ),
        cost_usd=cost_usd,
    )


class FakeQuery(AssistantQuery):
    """Query fed from a queue; events can be pushed while it is being consumed"""

    def __init__(self, prompt: str, model: str, resume_session_id: Optional[str],
                 script: List[Any], honor_cancel: bool = True):
        self.prompt = prompt
        self.model = model
        self.resume_session_id = resume_session_id
        self.honor_cancel = honor_cancel
        self.cancelled = False
        self.closed = False
        self._queue: asyncio.Queue = asyncio.Queue()
        for item in script:
            self._queue.put_nowait(item)

    def push(self, item: Any) -> None:
        """Push a ProgressEvent or an exception to raise"""
        self._queue.put_nowait(item)

    def end(self) -> None:
        """End the stream without a result"""
        self._queue.put_nowait(_END)

    async def events(self) -> AsyncIterator[ProgressEvent]:
        while True:
            item = await self._queue.get()
            if item is _END:
                return
            if isinstance(item, BaseException):
                raise item
            yield item
            if item.type == ProgressEventType.RESULT:
                return

    async def cancel(self) -> None:
        self.cancelled = True
        if self.honor_cancel:
            self.end()

    async def close(self) -> None:
        self.closed = True


class FakeAssistant(AssistantProcess):
    """Hands out FakeQuery objects; unscripted queries block until pushed to"""

    def __init__(self):
        self.queries: List[FakeQuery] = []
        self._scripts: deque = deque()
        self.honor_cancel = True

    def script(self, *items: Any) -> None:
        """Queue the items the next opened query will emit"""
        self._scripts.append(list(items))

    async def open_query(self, prompt, model, resume_session_id=None):
        script = self._scripts.popleft() if self._scripts else []
        query = FakeQuery(prompt, model, resume_session_id, script, self.honor_cancel)
        self.queries.append(query)
        return query


class ProgressRecorder:
    """Progress callback recording events; creates an artifact per tool start"""

    def __init__(self, fail_on: Optional[ProgressEventType] = None):
        self.events: List[ProgressEvent] = []
        self.fail_on = fail_on

    async def __call__(self, event: ProgressEvent, state: StreamingState) -> None:
        self.events.append(event)
        if event.type == ProgressEventType.TOOL_START:
            state.add_artifact(f"tool-msg-{event.tool_use_id}")
        if self.fail_on is not None and event.type == self.fail_on:
            raise RuntimeError("chat edit failed")


async def wait_for(predicate, attempts: int = 400) -> None:
    """Let other tasks run until predicate() holds"""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0.005)
    raise AssertionError("condition not reached")

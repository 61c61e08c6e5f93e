"""Assistant process boundary and the Claude Agent SDK implementation"""
import json
import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator, Dict, Iterator, Optional

from claude_agent_sdk import (
    ClaudeSDKClient,
    ClaudeAgentOptions,
    AssistantMessage,
    UserMessage,
    SystemMessage,
    ResultMessage,
    TextBlock,
    ThinkingBlock,
    ToolUseBlock,
    ToolResultBlock,
)

from ..config import Settings
from ..enum import ProgressEventType
from ..exception import AssistantError
from ..schema.event import ProgressEvent, Usage

logger = logging.getLogger(__name__)


class AssistantQuery(ABC):
    """
    One in-flight query against the assistant process.

    events() yields the query's progress events and ends after the RESULT
    event. cancel() may be called from another task while events() is being
    iterated; it only signals the process and does not wait. close()
    releases the underlying process and is always called by the
    orchestrator, whatever the outcome.
    """

    @abstractmethod
    def events(self) -> AsyncIterator[ProgressEvent]:
        pass

    @abstractmethod
    async def cancel(self) -> None:
        pass

    @abstractmethod
    async def close(self) -> None:
        pass


class AssistantProcess(ABC):
    """Factory of assistant queries"""

    @abstractmethod
    async def open_query(
        self,
        prompt: str,
        model: str,
        resume_session_id: Optional[str] = None
    ) -> AssistantQuery:
        """
        Start a query.

        Args:
            prompt: User prompt
            model: Model identifier for this query
            resume_session_id: Continue this assistant session (None starts a new one)
        """
        pass


class ClaudeQuery(AssistantQuery):
    """Query running on a dedicated ClaudeSDKClient"""

    def __init__(self, client: ClaudeSDKClient, prompt: str):
        self._client = client
        self._prompt = prompt
        self._connected = False
        self._cancelled = False
        # tool_use_id -> tool name, to label tool results
        self._tool_names: Dict[str, str] = {}

    async def connect(self) -> None:
        await self._client.connect()
        self._connected = True

    async def events(self) -> AsyncIterator[ProgressEvent]:
        await self._client.query(self._prompt)

        async for message in self._client.receive_response():
            for event in self._translate(message):
                yield event

    async def cancel(self) -> None:
        self._cancelled = True
        if not self._connected:
            return
        try:
            await self._client.interrupt()
            logger.info("Claude query interrupted")
        except Exception as e:
            logger.error(f"Error interrupting Claude query: {e}", exc_info=True)

    async def close(self) -> None:
        if not self._connected:
            return
        try:
            await self._client.disconnect()
            logger.debug("Claude SDK client disconnected")
        except Exception as e:
            logger.error(f"Error disconnecting Claude SDK: {e}", exc_info=True)
        self._connected = False

    def _translate(self, message) -> Iterator[ProgressEvent]:
        """Map one SDK message to zero or more progress events"""
        if isinstance(message, SystemMessage):
            if message.subtype == "init":
                session_id = message.data.get("session_id")
                if session_id:
                    yield ProgressEvent(
                        type=ProgressEventType.SESSION_INIT,
                        session_id=session_id
                    )
            else:
                logger.debug(
                    f"System message received: {json.dumps(message.data, ensure_ascii=False, default=str)}"
                )

        elif isinstance(message, AssistantMessage):
            for block in message.content:
                if isinstance(block, TextBlock):
                    yield ProgressEvent(type=ProgressEventType.TEXT, text=block.text)
                elif isinstance(block, ThinkingBlock):
                    yield ProgressEvent(type=ProgressEventType.THINKING, text=block.thinking)
                elif isinstance(block, ToolUseBlock):
                    self._tool_names[block.id] = block.name
                    yield ProgressEvent(
                        type=ProgressEventType.TOOL_START,
                        tool_name=block.name,
                        tool_input=block.input,
                        tool_use_id=block.id
                    )

        elif isinstance(message, UserMessage):
            if isinstance(message.content, list):
                for block in message.content:
                    if isinstance(block, ToolResultBlock):
                        yield ProgressEvent(
                            type=ProgressEventType.TOOL_END,
                            tool_name=self._tool_names.pop(block.tool_use_id, None),
                            tool_use_id=block.tool_use_id,
                            is_error=bool(block.is_error)
                        )

        elif isinstance(message, ResultMessage):
            if message.is_error and not self._cancelled:
                raise AssistantError(
                    message.result or f"Assistant query failed ({message.subtype})"
                )
            yield ProgressEvent(
                type=ProgressEventType.RESULT,
                text=message.result or "",
                session_id=message.session_id,
                usage=Usage.from_dict(message.usage),
                cost_usd=message.total_cost_usd or 0.0,
                duration_ms=message.duration_ms,
                num_turns=message.num_turns,
                is_error=message.is_error
            )


class ClaudeAssistant(AssistantProcess):
    """
    Assistant process backed by Claude Code through the Claude Agent SDK.

    Every query gets its own client resumed on the session id, so a
    cancelled query still draining can never mix its messages into the
    stream of the query that preempted it.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def build_options(
        self,
        model: str,
        resume_session_id: Optional[str] = None
    ) -> ClaudeAgentOptions:
        options = dict(
            model=model,
            cwd=str(self.settings.working_dir),
            permission_mode=self.settings.permission_mode,
            setting_sources=["user", "project"],
            resume=resume_session_id,
        )
        if self.settings.system_prompt_append:
            options["system_prompt"] = {
                "type": "preset",
                "preset": "claude_code",
                "append": self.settings.system_prompt_append
            }
        if self.settings.max_thinking_tokens:
            options["max_thinking_tokens"] = self.settings.max_thinking_tokens
        return ClaudeAgentOptions(**options)

    async def open_query(
        self,
        prompt: str,
        model: str,
        resume_session_id: Optional[str] = None
    ) -> AssistantQuery:
        logger.debug(
            f"Opening Claude query: model={model}, resume={resume_session_id}, "
            f"prompt_length={len(prompt)}"
        )
        query = ClaudeQuery(
            ClaudeSDKClient(self.build_options(model, resume_session_id)),
            prompt
        )
        await query.connect()
        return query

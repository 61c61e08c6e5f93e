"""Runtime layer for chatrelay

Provides the session orchestrator and its building blocks.
"""
from .assistant import AssistantProcess, AssistantQuery, ClaudeAssistant
from .interrupt import InterruptCoordinator
from .session import ChatSession, ProgressCallback, RECAP_PROMPT
from .session_store import SessionStore
from .streaming import StreamingState
from .usage import UsageAccumulator

__all__ = [
    "AssistantProcess",
    "AssistantQuery",
    "ClaudeAssistant",
    "ChatSession",
    "InterruptCoordinator",
    "ProgressCallback",
    "RECAP_PROMPT",
    "SessionStore",
    "StreamingState",
    "UsageAccumulator",
]

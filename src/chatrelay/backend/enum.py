"""Enumeration types for backend"""
from enum import Enum


class LLMModel(str, Enum):
    """LLM model enumeration

    Defines the Claude model aliases understood by the assistant process.
    The set actually accepted at runtime comes from settings.available_models.
    """
    SONNET = "sonnet"
    OPUS = "opus"
    HAIKU = "haiku"


class ProgressEventType(str, Enum):
    """Progress event type enumeration

    Defines the discrete units of incremental output emitted while a query runs.

    SESSION_INIT: Assistant reported the session id it is running under
    TEXT: Partial assistant text
    THINKING: Assistant reasoning block
    TOOL_START: A tool started running
    TOOL_END: A tool finished running
    RESULT: Final answer with usage totals (always the last event of a query)
    """
    SESSION_INIT = "session_init"
    TEXT = "text"
    THINKING = "thinking"
    TOOL_START = "tool_start"
    TOOL_END = "tool_end"
    RESULT = "result"


class RuntimeStatus(str, Enum):
    """Runtime status enumeration

    IDLE: No query is executing
    BUSY: A query is executing

    Runtime lifecycle: IDLE ⇄ BUSY
    """
    IDLE = "idle"
    BUSY = "busy"


class QueryOutcome(str, Enum):
    """How a query ended"""
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

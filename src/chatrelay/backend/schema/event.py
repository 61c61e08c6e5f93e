"""Progress event and query result schemas"""

from typing import Any, Optional
from pydantic import BaseModel, Field

from ..enum import ProgressEventType


class Usage(BaseModel):
    """Token usage reported by the assistant for one query (or a running total)"""
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_input_tokens: int = 0
    cache_creation_input_tokens: int = 0

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "Usage":
        """Build from the assistant's raw usage dict, ignoring unknown keys and nulls"""
        data = data or {}
        return cls(**{
            name: int(data.get(name) or 0)
            for name in cls.model_fields
        })

    @property
    def context_tokens(self) -> int:
        """Tokens occupying the context window (input plus cache)"""
        return (
            self.input_tokens
            + self.cache_read_input_tokens
            + self.cache_creation_input_tokens
        )


class ProgressEvent(BaseModel):
    """One unit of incremental output emitted while a query runs

    Which optional fields are set depends on type:
    - SESSION_INIT: session_id
    - TEXT / THINKING: text
    - TOOL_START: tool_name, tool_input, tool_use_id
    - TOOL_END: tool_name, tool_use_id, is_error
    - RESULT: text, session_id, usage, cost_usd, is_error
    """
    type: ProgressEventType
    text: Optional[str] = None
    tool_name: Optional[str] = None
    tool_input: Optional[dict[str, Any]] = None
    tool_use_id: Optional[str] = None
    is_error: bool = False
    session_id: Optional[str] = None
    usage: Optional[Usage] = None
    cost_usd: Optional[float] = None
    duration_ms: Optional[int] = None
    num_turns: Optional[int] = None


class QueryResult(BaseModel):
    """Final result of a completed query"""
    text: str = ""
    session_id: Optional[str] = None
    model: str
    usage: Usage = Field(default_factory=Usage)
    cost_usd: float = 0.0
    duration_ms: Optional[int] = None
    num_turns: Optional[int] = None

"""Session list and status schemas"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, field_serializer

from ..enum import RuntimeStatus
from .event import Usage


class SavedSessionInfo(BaseModel):
    """Read-only view of a resumable session list entry"""
    model_config = ConfigDict(from_attributes=True)

    session_id: str
    saved_at: datetime
    title: str

    @field_serializer('saved_at')
    def serialize_saved_at(self, value: datetime) -> str:
        return value.isoformat()


class SessionStatusInfo(BaseModel):
    """Snapshot of the session record for status-style handlers"""
    is_active: bool
    session_id: Optional[str] = None
    runtime_status: RuntimeStatus
    current_model: str
    default_model: str

    session_start_time: Optional[datetime] = None
    session_duration_seconds: Optional[int] = None
    query_started: Optional[datetime] = None
    query_elapsed_seconds: Optional[int] = None
    last_activity: Optional[datetime] = None

    current_tool: Optional[str] = None
    last_tool: Optional[str] = None

    total_queries: int = 0
    total_usage: Usage
    total_cost_usd: float = 0.0
    last_usage: Optional[Usage] = None

    last_error: Optional[str] = None
    last_error_time: Optional[datetime] = None
    last_message: Optional[str] = None

"""
Schema package for orchestrator data exchanged with callers.
"""

from .event import Usage, ProgressEvent, QueryResult
from .session import SavedSessionInfo, SessionStatusInfo

__all__ = [
    "Usage",
    "ProgressEvent",
    "QueryResult",
    "SavedSessionInfo",
    "SessionStatusInfo",
]

"""Custom exceptions for chatrelay"""
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .runtime.streaming import StreamingState


class RelayException(Exception):
    """Base exception for all chatrelay errors

    All custom exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message
        code: Error code for caller-side error handling
    """

    def __init__(self, message: str, code: str):
        """Initialize relay exception

        Args:
            message: Human-readable error message
            code: Error code (e.g., "QUERY_FAILED", "CONFIG_ERROR")
        """
        self.message = message
        self.code = code
        super().__init__(message)


class ConfigError(RelayException):
    """Configuration error

    Examples:
        - Default model not among the available models
        - Empty model list
    """

    def __init__(self, message: str):
        super().__init__(message, "CONFIG_ERROR")


class SessionStoreError(RelayException):
    """Session list persistence error

    Examples:
        - Database file cannot be created
        - Write of a saved session failed
    """

    def __init__(self, message: str):
        super().__init__(message, "SESSION_STORE_ERROR")


class AssistantError(RelayException):
    """The assistant process reported a failed query

    Examples:
        - Result message flagged as an error
        - Assistant process exited unexpectedly
    """

    def __init__(self, message: str):
        super().__init__(message, "ASSISTANT_ERROR")


# ==================== Query Outcome Exceptions ====================


class QueryException(RelayException):
    """Base exception for queries that did not complete normally

    Carries the query's streaming state so the caller can remove any
    progress artifacts it created while the query ran.
    """

    def __init__(
        self,
        message: str,
        code: str,
        streaming_state: Optional['StreamingState'] = None
    ):
        super().__init__(message, code)
        self.streaming_state = streaming_state


class QueryCancelledError(QueryException):
    """Query ended by an explicit stop or by preemption

    Use ChatSession.consume_interrupt_flag() to tell the two apart.
    """

    def __init__(self, message: str, streaming_state: Optional['StreamingState'] = None):
        super().__init__(message, "QUERY_CANCELLED", streaming_state)


class QueryFailedError(QueryException):
    """Query failed in the assistant process or in the progress callback

    The original exception is chained as __cause__.
    """

    def __init__(self, message: str, streaming_state: Optional['StreamingState'] = None):
        super().__init__(message, "QUERY_FAILED", streaming_state)


class NothingToRetryError(RelayException):
    """No previously submitted message is available for retry"""

    def __init__(self, message: str):
        super().__init__(message, "NOTHING_TO_RETRY")


class QueryAlreadyRunningError(RelayException):
    """A query is running and the operation refuses to preempt it

    Examples:
        - Retry requested while a query is in flight
    """

    def __init__(self, message: str):
        super().__init__(message, "QUERY_ALREADY_RUNNING")

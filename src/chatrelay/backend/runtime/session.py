"""Single conversational session with the assistant and its query orchestration"""
import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Tuple

from ..config import Settings
from ..enum import ProgressEventType, QueryOutcome, RuntimeStatus
from ..exception import (
    AssistantError,
    NothingToRetryError,
    QueryAlreadyRunningError,
    QueryCancelledError,
    QueryFailedError,
)
from ..schema.event import ProgressEvent, QueryResult, Usage
from ..schema.session import SavedSessionInfo, SessionStatusInfo
from .assistant import AssistantProcess, AssistantQuery
from .interrupt import InterruptCoordinator
from .session_store import SessionStore
from .streaming import StreamingState
from .usage import UsageAccumulator

logger = logging.getLogger(__name__)


ProgressCallback = Callable[[ProgressEvent, StreamingState], Awaitable[None]]

RECAP_PROMPT = (
    "Please write a very concise recap of where we are in this conversation, "
    "to refresh my memory. Max 2-3 sentences."
)


class _QueryRun:
    """Bookkeeping for one send_message_streaming call"""

    def __init__(self, run_id: int, prompt: str, model: str):
        self.run_id = run_id
        self.prompt = prompt
        self.model = model
        self.state = StreamingState()
        self.query: Optional[AssistantQuery] = None
        self.cancel_requested = False
        self.result_event: Optional[ProgressEvent] = None


class ChatSession:
    """
    The single live session with the assistant.

    Owns the session record (identity, timestamps, counters, most-recent
    values) and executes at most one query at a time. A new query preempts
    the running one instead of queueing behind it.

    Concurrency model:
    - Everything runs on one asyncio event loop, no locks
    - Preemption handshake: signal cancel, mark the interrupt flag, sleep a
      short grace period, then start the new query
    - Each query is a run; only the current run may clear is_running, so a
      preempted query finishing late cannot clobber its successor

    Query outcomes:
    - Completed: QueryResult returned, usage recorded
    - Cancelled (stop or preemption): QueryCancelledError, no usage recorded;
      consume_interrupt_flag() tells preemption (True) from stop (False)
    - Failed: QueryFailedError, last_error recorded

    Both exceptions carry the query's StreamingState for artifact cleanup.
    """

    def __init__(
        self,
        settings: Settings,
        assistant: AssistantProcess,
        store: SessionStore
    ):
        """
        Initialize the session (no active session yet).

        Args:
            settings: Loaded settings (models, grace period, title length)
            assistant: Assistant process used for every query
            store: Session list persistence
        """
        self.settings = settings
        self.assistant = assistant
        self.store = store

        self.current_model = settings.default_model

        self._interrupt = InterruptCoordinator()
        self._usage = UsageAccumulator()

        self._current_run: Optional[_QueryRun] = None
        self._run_counter = 0
        self._stop_requested = False

        self._reset_record()

        logger.info(
            f"ChatSession created: model={self.current_model}, "
            f"available_models={settings.available_models}"
        )

    def _reset_record(self) -> None:
        """Back to "no active session"; current_model is kept"""
        self.session_id: Optional[str] = None
        self.is_active = False
        self.title: Optional[str] = None

        self.session_start_time: Optional[datetime] = None
        self.query_started: Optional[datetime] = None
        self.last_activity: Optional[datetime] = None

        self.last_message: Optional[str] = None
        self.last_usage: Optional[Usage] = None
        self.last_error: Optional[str] = None
        self.last_error_time: Optional[datetime] = None
        self.current_tool: Optional[str] = None
        self.last_tool: Optional[str] = None

        self._usage.reset()

    # ========== Read-only Views ==========

    @property
    def is_running(self) -> bool:
        return self._current_run is not None

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    @property
    def total_queries(self) -> int:
        return self._usage.query_count

    @property
    def total_usage(self) -> Usage:
        return self._usage.snapshot()

    @property
    def total_cost_usd(self) -> float:
        return self._usage.cost_usd

    # ========== Query Execution ==========

    async def send_message_streaming(
        self,
        prompt: str,
        username: str,
        on_progress: ProgressCallback,
        user_id: Optional[int] = None
    ) -> QueryResult:
        """
        Run one query, preempting any query in progress.

        Every progress event is awaited through on_progress before the next
        one is read. The callback is not retried or throttled, and any
        exception it raises fails the query.

        Args:
            prompt: User prompt
            username: Requester name (logging only)
            on_progress: Coroutine function receiving (event, streaming_state)
            user_id: Requester id (logging only)

        Returns:
            QueryResult of the completed query

        Raises:
            QueryCancelledError: Query stopped or preempted by a newer one
            QueryFailedError: Assistant or callback failure
        """
        await self._preempt_running_query()

        if self._stop_requested:
            logger.warning("Clearing stale stop request before starting a new query")
            self._stop_requested = False

        self._run_counter += 1
        run = _QueryRun(self._run_counter, prompt, self.current_model)

        if not self.is_active:
            self._activate(prompt)

        now = datetime.now()
        self._current_run = run
        self.query_started = now
        self.last_activity = now
        self.last_message = prompt
        self.current_tool = None

        logger.info(
            f"Query started: run={run.run_id}, user={username}({user_id}), "
            f"model={run.model}, session_id={self.session_id}, "
            f"prompt_length={len(prompt)}"
        )

        try:
            await self._execute(run, on_progress)
        except asyncio.CancelledError:
            # Caller task cancelled: the run must not outlive it
            logger.info(f"Query task cancelled by caller: run={run.run_id}")
            self._finish_run(run, QueryOutcome.CANCELLED)
            await self._cancel_run(run)
            raise
        except Exception as e:
            if run.cancel_requested:
                self._finish_run(run, QueryOutcome.CANCELLED)
                raise QueryCancelledError("Query cancelled", run.state) from e
            self._record_error(run, e)
            self._finish_run(run, QueryOutcome.FAILED)
            raise QueryFailedError(f"Query failed: {e}", run.state) from e
        finally:
            await self._close_query(run)

        if run.cancel_requested:
            self._finish_run(run, QueryOutcome.CANCELLED)
            raise QueryCancelledError("Query cancelled", run.state)

        return self._complete(run)

    async def _preempt_running_query(self) -> None:
        """Cancel whatever is running and give the cancellation time to settle"""
        preempted: Optional[_QueryRun] = None
        # A run started by another caller during our grace sleep is preempted too
        while self._current_run is not None and self._current_run is not preempted:
            preempted = self._current_run
            logger.info(f"Interrupting running query for new message: run={preempted.run_id}")
            # Flag first: the preempted handler may run as soon as cancel() yields
            self._interrupt.mark_interrupted()
            await self._cancel_run(preempted)
            await asyncio.sleep(self.settings.preempt_grace_seconds)
            self.clear_stop_requested()

    async def _execute(self, run: _QueryRun, on_progress: ProgressCallback) -> None:
        run.query = await self.assistant.open_query(
            run.prompt,
            run.model,
            resume_session_id=self.session_id
        )

        if run.cancel_requested:
            # Stop arrived while the query was being opened
            await run.query.cancel()
            return

        async for event in run.query.events():
            if run.cancel_requested:
                logger.debug(f"Dropping events of cancelled query: run={run.run_id}")
                break

            self._apply_event(run, event)
            await on_progress(event, run.state)

            if event.type == ProgressEventType.RESULT:
                break

        if run.result_event is None and not run.cancel_requested:
            raise AssistantError("Assistant finished without a result")

    def _apply_event(self, run: _QueryRun, event: ProgressEvent) -> None:
        """Update the session record from one progress event"""
        self.last_activity = datetime.now()

        if event.type == ProgressEventType.SESSION_INIT:
            self._adopt_session_id(event.session_id)

        elif event.type == ProgressEventType.TEXT:
            if event.text:
                run.state.append_text(event.text)

        elif event.type == ProgressEventType.TOOL_START:
            self.current_tool = event.tool_name
            run.state.tool_count += 1
            logger.debug(f"Tool started: run={run.run_id}, tool={event.tool_name}")

        elif event.type == ProgressEventType.TOOL_END:
            self.last_tool = event.tool_name or self.current_tool
            self.current_tool = None

        elif event.type == ProgressEventType.RESULT:
            self._adopt_session_id(event.session_id)
            run.result_event = event

    def _adopt_session_id(self, session_id: Optional[str]) -> None:
        if not session_id or session_id == self.session_id:
            return
        if self.session_id:
            logger.warning(f"Assistant switched session: {self.session_id} -> {session_id}")
        else:
            logger.info(f"Session id assigned: session_id={session_id}")
        self.session_id = session_id

    def _complete(self, run: _QueryRun) -> QueryResult:
        event = run.result_event
        usage = event.usage or Usage()
        cost_usd = event.cost_usd or 0.0

        self._usage.add(usage, cost_usd)
        self.last_usage = usage

        result = QueryResult(
            text=event.text or run.state.text,
            session_id=self.session_id,
            model=run.model,
            usage=usage,
            cost_usd=cost_usd,
            duration_ms=event.duration_ms,
            num_turns=event.num_turns
        )
        self._finish_run(run, QueryOutcome.COMPLETED)
        return result

    def _record_error(self, run: _QueryRun, error: Exception) -> None:
        self.last_error = str(error)[:200] or type(error).__name__
        self.last_error_time = datetime.now()
        logger.error(
            f"Query failed: run={run.run_id}, session_id={self.session_id}, error={error}",
            exc_info=True
        )

    def _finish_run(self, run: _QueryRun, outcome: QueryOutcome) -> None:
        """Clear is_running, unless a newer run has already taken over"""
        if self._current_run is run:
            self._current_run = None
            if self.current_tool:
                self.last_tool = self.current_tool
                self.current_tool = None

        logger.info(
            f"Query finished: run={run.run_id}, outcome={outcome.value}, "
            f"total_queries={self.total_queries}"
        )

    async def _close_query(self, run: _QueryRun) -> None:
        if run.query is None:
            return
        try:
            await run.query.close()
        except Exception as e:
            logger.error(f"Error closing assistant query: run={run.run_id}, error={e}", exc_info=True)

    async def _cancel_run(self, run: _QueryRun) -> None:
        run.cancel_requested = True
        if run.query is not None:
            await run.query.cancel()

    # ========== Stop / Interrupt ==========

    async def stop(self) -> bool:
        """
        Signal cancellation of the running query.

        Does not wait for the query to end; is_running flips once the
        assistant acknowledges the cancellation.

        Returns:
            False if nothing was running (no state changed), True otherwise
        """
        run = self._current_run
        if run is None:
            return False

        self._stop_requested = True
        await self._cancel_run(run)
        logger.info(f"Stop requested: run={run.run_id}")
        return True

    def clear_stop_requested(self) -> None:
        """Forget a processed stop request so it is not misread for a later query"""
        self._stop_requested = False

    def consume_interrupt_flag(self) -> bool:
        """True once if the last cancelled query was preempted by a newer message"""
        return self._interrupt.consume_and_reset()

    # ========== Session Lifecycle ==========

    def _activate(self, prompt: str) -> None:
        now = datetime.now()
        self.is_active = True
        self.session_start_time = now
        self.title = self._make_title(prompt)
        logger.info(f"New session activated: title={self.title!r}")

    def _make_title(self, prompt: str) -> str:
        title = " ".join(prompt.split())
        limit = self.settings.session_title_length
        if len(title) > limit:
            title = title[:max(limit - 3, 1)] + "..."
        return title

    async def kill(self) -> None:
        """
        Clear the session back to "no active session".

        A running query is cancelled and detached; it will not record usage
        into the cleared session. Stop and interrupt flags are cleared too;
        the session list is not touched.
        """
        run = self._current_run
        if run is not None:
            await self._cancel_run(run)
            self._current_run = None

        old_session_id = self.session_id
        self._reset_record()
        self._stop_requested = False
        self._interrupt.consume_and_reset()
        logger.info(f"Session cleared: session_id={old_session_id}")

    async def end_session(self) -> Optional[SavedSessionInfo]:
        """
        Save the active session to the session list, then kill() it.

        Returns:
            The saved entry, or None if there was no session id to save
        """
        entry = None
        if self.is_active and self.session_id:
            entry = self.store.append(self.session_id, self.title or "")
        await self.kill()
        return entry

    async def shutdown(self) -> None:
        """Process shutdown: keep the session resumable after restart"""
        logger.info("ChatSession shutting down")
        await self.end_session()

    def set_model(self, name: str) -> Tuple[bool, str]:
        """
        Select the model for the next query.

        Never affects a running query.

        Returns:
            (success, message)
        """
        name = name.strip()
        available = self.settings.available_models
        if name not in available:
            return False, f"Unknown model '{name}'. Available: {', '.join(available)}"

        old_model = self.current_model
        self.current_model = name
        logger.info(f"Model switched: {old_model} -> {name}")
        return True, f"Model switched to {name}"

    def resume_session(self, session_id: str) -> Tuple[bool, str]:
        """
        Restore session identity from the session list.

        Cumulative counters start from zero: only identifying metadata is
        persisted.

        Returns:
            (success, message); the message includes the session title on success
        """
        if self.is_active:
            return False, "A session is already active"

        entry = self.store.get(session_id)
        if entry is None:
            return False, f"Session {session_id} not found"

        now = datetime.now()
        self._reset_record()
        self.session_id = entry.session_id
        self.title = entry.title
        self.is_active = True
        self.session_start_time = now
        self.last_activity = now

        logger.info(f"Session resumed: session_id={entry.session_id}, title={entry.title!r}")
        return True, f"Resumed session: {entry.title}"

    def get_session_list(self) -> List[SavedSessionInfo]:
        """Resumable sessions, most recent first"""
        return self.store.list_sessions()

    # ========== Convenience ==========

    async def retry(
        self,
        username: str,
        on_progress: ProgressCallback,
        user_id: Optional[int] = None
    ) -> QueryResult:
        """
        Resubmit the last message.

        Raises:
            NothingToRetryError: No message was submitted in this session
            QueryAlreadyRunningError: A query is running (stop it first)
        """
        if not self.last_message:
            raise NothingToRetryError("No message to retry")
        if self.is_running:
            raise QueryAlreadyRunningError("A query is already running")
        return await self.send_message_streaming(
            self.last_message, username, on_progress, user_id=user_id
        )

    def get_status(self) -> SessionStatusInfo:
        now = datetime.now()
        run = self._current_run
        return SessionStatusInfo(
            is_active=self.is_active,
            session_id=self.session_id,
            runtime_status=RuntimeStatus.BUSY if run else RuntimeStatus.IDLE,
            current_model=self.current_model,
            default_model=self.settings.default_model,
            session_start_time=self.session_start_time,
            session_duration_seconds=(
                int((now - self.session_start_time).total_seconds())
                if self.is_active and self.session_start_time else None
            ),
            query_started=self.query_started,
            query_elapsed_seconds=(
                int((now - self.query_started).total_seconds())
                if run and self.query_started else None
            ),
            last_activity=self.last_activity,
            current_tool=self.current_tool,
            last_tool=self.last_tool,
            total_queries=self.total_queries,
            total_usage=self.total_usage,
            total_cost_usd=self.total_cost_usd,
            last_usage=self.last_usage,
            last_error=self.last_error,
            last_error_time=self.last_error_time,
            last_message=self.last_message,
        )

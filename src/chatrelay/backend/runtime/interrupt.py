"""Interrupt flag hand-off between a preempting query and the preempted one"""
import logging

logger = logging.getLogger(__name__)


class InterruptCoordinator:
    """
    One-shot flag telling a cancelled query why it was cancelled.

    The flag is set when a running query is terminated because a newer
    message preempted it, as opposed to an explicit stop. The preempted
    query's error handler reads it with consume_and_reset(): true means a
    newer request is already in flight and no "stopped" notice is needed.

    Reading clears the flag, so two reads for the same termination return
    True then False.
    """

    def __init__(self):
        self._interrupt_pending = False

    @property
    def pending(self) -> bool:
        """Peek at the flag without consuming it"""
        return self._interrupt_pending

    def mark_interrupted(self) -> None:
        self._interrupt_pending = True
        logger.debug("Interrupt flag set")

    def consume_and_reset(self) -> bool:
        """Return the flag and clear it in the same step"""
        was_interrupted = self._interrupt_pending
        self._interrupt_pending = False
        if was_interrupted:
            logger.debug("Interrupt flag consumed")
        return was_interrupted

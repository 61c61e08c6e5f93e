"""Cumulative token usage counters for the active session"""
import logging

from ..schema.event import Usage

logger = logging.getLogger(__name__)


class UsageAccumulator:
    """
    Running totals of token usage and cost across completed queries.

    Plain counters with no concurrency of their own; only the orchestrator
    mutates them, once per completed query.
    """

    def __init__(self):
        self.reset()

    def add(self, usage: Usage, cost_usd: float = 0.0) -> None:
        """Sum one completed query's usage into the totals"""
        self.input_tokens += usage.input_tokens
        self.output_tokens += usage.output_tokens
        self.cache_read_tokens += usage.cache_read_input_tokens
        self.cache_creation_tokens += usage.cache_creation_input_tokens
        self.cost_usd += cost_usd
        self.query_count += 1

        logger.debug(
            f"Usage accumulated: queries={self.query_count}, "
            f"input={self.input_tokens}, output={self.output_tokens}, "
            f"cost={self.cost_usd:.4f}"
        )

    def snapshot(self) -> Usage:
        """Current totals as a Usage value (detached from the accumulator)"""
        return Usage(
            input_tokens=self.input_tokens,
            output_tokens=self.output_tokens,
            cache_read_input_tokens=self.cache_read_tokens,
            cache_creation_input_tokens=self.cache_creation_tokens,
        )

    def reset(self) -> None:
        self.input_tokens = 0
        self.output_tokens = 0
        self.cache_read_tokens = 0
        self.cache_creation_tokens = 0
        self.cost_usd = 0.0
        self.query_count = 0

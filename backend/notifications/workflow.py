"""
Traffic Notifier Workflow

Fetch -> Resolve -> (Generate -> Dispatch | skip) -> done.

Each stage runs under the same RetryPolicy. Stage outputs are journaled per run
id, so invoking the workflow again with the same id resumes after the last
completed stage instead of repeating it, and a finished run id just returns its
recorded result. Concurrent calls with one run id wait for each other.
"""

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional
from uuid import uuid4

from .delay_resolver import TrafficDelayResolver
from .dispatcher import NotificationDispatcher
from .message_generator import TrafficMessageGenerator
from .models import (
    DelayResolution,
    NotificationOutcome,
    Notified,
    NotNotified,
    PipelineResult,
    RouteComparison,
    RouteQuery,
)
from .retry import RetryPolicy
from .traffic_details import TrafficDetailsFetcher

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    FETCHING = "fetching"
    RESOLVING = "resolving"
    GENERATING = "generating"
    DISPATCHING = "dispatching"
    SKIPPED = "skipped"
    DONE = "done"


@dataclass
class RunJournal:
    """Per-run record of completed stage outputs."""
    outputs: Dict[str, Any] = field(default_factory=dict)
    states: List[str] = field(default_factory=list)
    result: Optional[PipelineResult] = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    def enter(self, state: PipelineState) -> None:
        if state.value not in self.states:
            self.states.append(state.value)


class TrafficNotifierWorkflow:
    """Runs the delay notification pipeline for one route query at a time."""

    WORKFLOW_NAME = "trafficNotifierWorkflow"
    MAX_JOURNALS = 1000

    def __init__(
        self,
        fetcher: TrafficDetailsFetcher,
        generator: TrafficMessageGenerator,
        dispatcher: NotificationDispatcher,
        retry_policy: Optional[RetryPolicy] = None,
        default_threshold_minutes: float = TrafficDelayResolver.DEFAULT_THRESHOLD_MINUTES,
    ):
        self.fetcher = fetcher
        self.generator = generator
        self.dispatcher = dispatcher
        self.retry_policy = retry_policy or RetryPolicy()
        self.default_threshold_minutes = default_threshold_minutes
        self._journals: "OrderedDict[str, RunJournal]" = OrderedDict()

    @classmethod
    def new_run_id(cls) -> str:
        return f"workflow-{cls.WORKFLOW_NAME}-{uuid4().hex}"

    def journal(self, run_id: str) -> Optional[RunJournal]:
        return self._journals.get(run_id)

    def _open_journal(self, run_id: str) -> RunJournal:
        journal = self._journals.get(run_id)
        if journal is None:
            journal = RunJournal()
            self._journals[run_id] = journal
            while len(self._journals) > self.MAX_JOURNALS:
                self._journals.popitem(last=False)
        return journal

    async def _step(
        self,
        journal: RunJournal,
        run_id: str,
        state: PipelineState,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
    ) -> Any:
        journal.enter(state)
        if state.value in journal.outputs:
            logger.info(f"[{run_id}] {state.value}: reusing recorded output")
            return journal.outputs[state.value]
        logger.info(f"[{run_id}] {state.value}")
        output = await self.retry_policy.run(state.value, func, *args)
        journal.outputs[state.value] = output
        return output

    @staticmethod
    async def _resolve(comparison: RouteComparison, threshold_minutes: float) -> DelayResolution:
        return TrafficDelayResolver.resolve(comparison, threshold_minutes)

    async def run(
        self,
        query: RouteQuery,
        threshold_minutes: Optional[float] = None,
        run_id: Optional[str] = None,
    ) -> PipelineResult:
        """
        Run the pipeline once.

        Args:
            query: Route to check
            threshold_minutes: Notify when the delay is strictly above this
                (defaults to ``default_threshold_minutes``)
            run_id: Stable identifier for deduplication and resume

        Returns:
            PipelineResult

        Raises:
            TrafficNotifierError: Terminal failure; ``stage`` names where it happened
        """
        run_id = run_id or self.new_run_id()
        if threshold_minutes is None:
            threshold_minutes = self.default_threshold_minutes

        journal = self._open_journal(run_id)
        # one execution per run id at a time; later callers see the recorded stages
        async with journal.lock:
            if journal.result is not None:
                logger.info(f"[{run_id}] already completed, returning recorded result")
                return journal.result
            return await self._execute(journal, run_id, query, threshold_minutes)

    async def _execute(
        self,
        journal: RunJournal,
        run_id: str,
        query: RouteQuery,
        threshold_minutes: float,
    ) -> PipelineResult:
        comparison = await self._step(
            journal, run_id, PipelineState.FETCHING, self.fetcher.fetch, query
        )
        resolution = await self._step(
            journal, run_id, PipelineState.RESOLVING, self._resolve, comparison, threshold_minutes
        )

        outcome: NotificationOutcome
        if resolution.delay_exceeds_threshold:
            logger.info(
                f"[{run_id}] Traffic delay of {resolution.delay_minutes} min exceeds "
                f"{threshold_minutes} min threshold, notifying stakeholders"
            )
            message = await self._step(
                journal, run_id, PipelineState.GENERATING, self.generator.generate, resolution
            )
            sent = await self._step(
                journal, run_id, PipelineState.DISPATCHING, self.dispatcher.dispatch, message
            )
            outcome = Notified(message=message, sent=sent)
        else:
            journal.enter(PipelineState.SKIPPED)
            logger.info(
                f"[{run_id}] Traffic delay of {resolution.delay_minutes} min is within "
                f"{threshold_minutes} min threshold, no action required"
            )
            outcome = NotNotified()

        journal.enter(PipelineState.DONE)
        result = PipelineResult(
            run_id=run_id,
            comparison=comparison,
            resolution=resolution,
            outcome=outcome,
            states=tuple(journal.states),
        )
        journal.result = result
        return result

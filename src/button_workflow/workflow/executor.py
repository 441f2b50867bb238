"""Sequential execution of a workflow.

A run walks the actions in list order, dispatching each one and then holding a
fixed delay before the next, so every state update an action makes is visible
to the rendering surface before the following action starts.

Each run has its own small state machine (idle -> running -> idle). The
executor itself does not prevent overlapping runs; a caller that wants that
must disable the trigger while a run is in progress.

An action whose handler raises is recorded as failed and the run moves on to
the next action after the usual delay. Only `refreshPage` ends a run early.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

from .dispatcher import DispatchOutcome, ExecutionContext, dispatch
from .document import Action, Workflow
from .schema import ActionKind

logger = logging.getLogger(__name__)

DEFAULT_ACTION_DELAY_SECONDS = 0.2

Sleep = Callable[[float], Awaitable[None]]
DispatchFn = Callable[[Action, ExecutionContext], Awaitable[DispatchOutcome]]


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


ALLOWED_TRANSITIONS: dict[RunState, set[RunState]] = {
    RunState.IDLE: {RunState.RUNNING},
    RunState.RUNNING: {RunState.IDLE},
}


class IllegalTransitionError(ValueError):
    pass


def transition(*, current: RunState, to: RunState) -> RunState:
    allowed = ALLOWED_TRANSITIONS.get(current, set())
    if to not in allowed:
        raise IllegalTransitionError(f"Illegal transition: {current.value} -> {to.value}")
    return to


@dataclass(frozen=True, slots=True)
class StepResult:
    index: int
    action_id: str
    kind: ActionKind
    outcome: DispatchOutcome

    def to_json(self) -> dict[str, object]:
        return {
            "index": self.index,
            "action_id": self.action_id,
            "kind": self.kind.value,
            "outcome": self.outcome.value,
        }


@dataclass
class RunReport:
    steps: list[StepResult] = field(default_factory=list)

    @property
    def terminated(self) -> bool:
        return any(s.outcome is DispatchOutcome.TERMINATED for s in self.steps)

    @property
    def dispatched_ids(self) -> list[str]:
        return [s.action_id for s in self.steps]


class ExecutionRun:
    """One pass over a workflow, triggered by a single user event."""

    def __init__(
        self,
        workflow: Workflow,
        context: ExecutionContext,
        *,
        delay_seconds: float,
        sleep: Sleep,
        dispatch_fn: DispatchFn,
    ) -> None:
        self.workflow = workflow
        self.context = context
        self._delay_seconds = delay_seconds
        self._sleep = sleep
        self._dispatch = dispatch_fn
        self.state = RunState.IDLE

    async def steps(self) -> AsyncIterator[StepResult]:
        """Dispatch actions one at a time, yielding each result as it resolves.

        A consumer that stops iterating early must close the generator (for
        example with `contextlib.aclosing`) for the run to return to idle.
        """

        self.state = transition(current=self.state, to=RunState.RUNNING)
        try:
            for index, action in enumerate(self.workflow.actions):
                logger.debug(
                    "Dispatching action",
                    extra={"index": index, "action_id": action.id, "kind": action.kind.value},
                )
                try:
                    outcome = await self._dispatch(action, self.context)
                except Exception:
                    # One broken action never takes the rest of the run down.
                    logger.warning(
                        "Action failed",
                        exc_info=True,
                        extra={"index": index, "action_id": action.id, "kind": action.kind.value},
                    )
                    outcome = DispatchOutcome.FAILED
                yield StepResult(
                    index=index, action_id=action.id, kind=action.kind, outcome=outcome
                )
                if outcome is DispatchOutcome.TERMINATED:
                    # The host is restarting; nothing after this runs.
                    break
                await self._sleep(self._delay_seconds)
        finally:
            self.state = transition(current=self.state, to=RunState.IDLE)


class SequentialExecutor:
    def __init__(
        self,
        *,
        delay_seconds: float = DEFAULT_ACTION_DELAY_SECONDS,
        sleep: Sleep = asyncio.sleep,
        dispatch_fn: DispatchFn = dispatch,
    ) -> None:
        self.delay_seconds = delay_seconds
        self._sleep = sleep
        self._dispatch = dispatch_fn

    def start(self, workflow: Workflow, context: ExecutionContext) -> ExecutionRun:
        return ExecutionRun(
            workflow,
            context,
            delay_seconds=self.delay_seconds,
            sleep=self._sleep,
            dispatch_fn=self._dispatch,
        )

    async def run(self, workflow: Workflow, context: ExecutionContext) -> RunReport:
        report = RunReport()
        logger.info("Run started", extra={"actions": len(workflow.actions)})
        async with contextlib.aclosing(self.start(workflow, context).steps()) as steps:
            async for step in steps:
                report.steps.append(step)
        logger.info(
            "Run finished",
            extra={"dispatched": len(report.steps), "terminated": report.terminated},
        )
        return report

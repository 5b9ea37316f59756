"""
Orchestration router.

An explicit finite-state machine over WorkflowState. ``route`` is a pure
transition function; ``Router.run`` applies it after every step until the
terminal state is reached. Worker errors are never caught here.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from contentflow.errors import RouterLoopError
from contentflow.status import WorkflowPhase

from .state import Step, WorkflowState
from .tools import ToolRegistry, tool_arguments

logger = logging.getLogger(__name__)

# (step, thunk) -> output. Lets the caller wrap each step (retries, timing).
StepRunner = Callable[[Step, Callable[[], Any]], Any]
# Called after a step's output has been applied to the state.
StepHook = Callable[[WorkflowState, Step, Any], None]


def route(state: WorkflowState) -> Optional[Step]:
    """Next step for the given state, or None when the run is done.

    A saved item ends the run regardless of which step produced it.
    """
    if state.saved_item is not None:
        return None
    if state.fetched is None:
        return Step.FETCH
    if state.cleaned is None:
        return Step.CLEAN
    if state.summary is None:
        return Step.SUMMARIZE
    return Step.STORE


def phase(state: WorkflowState) -> WorkflowPhase:
    return state.phase


def _run_directly(step: Step, fn: Callable[[], Any]) -> Any:
    return fn()


class Router:
    """Dispatches workflow steps to tools until a summary is saved."""

    def __init__(
        self,
        tools: ToolRegistry,
        *,
        step_runner: Optional[StepRunner] = None,
        on_step: Optional[StepHook] = None,
        max_steps: int = 8,
    ) -> None:
        self.tools = tools
        self.step_runner = step_runner or _run_directly
        self.on_step = on_step
        self.max_steps = max_steps

    def run(self, state: WorkflowState) -> WorkflowState:
        """Drive ``state`` to the terminal phase.

        Raises:
            RouterLoopError: a step did not advance the state, or the step
                budget ran out
            PipelineError: whatever a worker raised, unchanged
        """
        steps_taken = 0
        while True:
            step = route(state)
            if step is None:
                logger.debug(
                    "Router reached terminal state",
                    extra={"content_id": state.reference.content_id, "steps": steps_taken},
                )
                return state

            if steps_taken >= self.max_steps:
                raise RouterLoopError(
                    f"Router exceeded {self.max_steps} steps without saving a summary",
                    stage=step.value,
                )

            tool = self.tools.for_step(step)
            arguments = tool_arguments(step, state)
            logger.info(
                "Dispatching step",
                extra={
                    "content_id": state.reference.content_id,
                    "step": step.value,
                    "tool": tool.name,
                    "phase": state.phase.value,
                },
            )

            output = self.step_runner(step, lambda: tool.invoke(arguments))
            if output is None:
                raise RouterLoopError(
                    f"Tool {tool.name} returned no output", stage=step.value
                )

            state.apply(step, output)
            steps_taken += 1
            if self.on_step is not None:
                self.on_step(state, step, output)

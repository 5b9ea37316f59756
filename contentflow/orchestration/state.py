"""Workflow state accumulated by the router during one run."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from contentflow.models import (
    CleanedContent,
    ContentReference,
    FetchedContent,
    StoreResult,
    Summary,
)
from contentflow.status import WorkflowPhase


class Step(str, Enum):
    """Workers the router can dispatch to, in pipeline order."""

    FETCH = "fetch"
    CLEAN = "clean"
    SUMMARIZE = "summarize"
    STORE = "store"


# Step -> WorkflowState attribute holding its output
STEP_OUTPUTS: Dict[Step, str] = {
    Step.FETCH: "fetched",
    Step.CLEAN: "cleaned",
    Step.SUMMARIZE: "summary",
    Step.STORE: "saved_item",
}

_OUTPUT_MODELS = {
    Step.FETCH: FetchedContent,
    Step.CLEAN: CleanedContent,
    Step.SUMMARIZE: Summary,
    Step.STORE: StoreResult,
}


@dataclass
class WorkflowState:
    """Typed state for one workflow run.

    ``fetched`` is the router's "content present" signal and ``saved_item``
    its terminal signal. ``cleaned`` and ``summary`` let a resumed run skip
    steps whose output is already known.
    """

    reference: ContentReference
    instruction: str = ""
    fetched: Optional[FetchedContent] = None
    cleaned: Optional[CleanedContent] = None
    summary: Optional[Summary] = None
    saved_item: Optional[StoreResult] = None
    history: List[Step] = field(default_factory=list)

    @property
    def phase(self) -> WorkflowPhase:
        if self.saved_item is not None:
            return WorkflowPhase.SAVED
        if self.fetched is not None:
            return WorkflowPhase.CONTENT_READY
        return WorkflowPhase.START

    def output_of(self, step: Step) -> Any:
        return getattr(self, STEP_OUTPUTS[step])

    def apply(self, step: Step, output: Any) -> None:
        """Record a step's output and append it to the history."""
        setattr(self, STEP_OUTPUTS[step], output)
        self.history.append(step)

    def completed_steps(self) -> List[Step]:
        return [step for step in Step if self.output_of(step) is not None]


def dump_step_output(step: Step, output: Any) -> Dict[str, Any]:
    """Serialize a step output for a checkpoint."""
    return output.model_dump(mode="json", by_alias=True)


def load_step_output(step: Step, data: Dict[str, Any]) -> Any:
    """Rebuild a step output from its checkpointed form."""
    return _OUTPUT_MODELS[step].model_validate(data)

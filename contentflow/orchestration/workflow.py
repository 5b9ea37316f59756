"""
Workflow entry point.

Runs the router for one ContentReference and returns the saved item. Step
outputs are checkpointed so a retried run resumes after its last completed
step; failures are classified into a WorkflowError for the caller.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from pydantic import ValidationError

from contentflow.cms.sanity_store import SanityContentStore
from contentflow.config import PipelineSettings, get_settings
from contentflow.errors import NotFoundError, PipelineError, StorageError, WorkflowError
from contentflow.models import ContentReference, StoreResult
from contentflow.status import Events, FailureKind
from contentflow.summarization.service import create_summary_service
from contentflow.workers.cleaner import ContentCleaner
from contentflow.workers.fetcher import ContentFetcher
from contentflow.workers.storage import SummaryStorage

from .checkpoints import CheckpointStore, RedisCheckpointStore
from .retry import RetryPolicy, is_retryable, run_with_retry
from .router import Router, route
from .state import STEP_OUTPUTS, Step, WorkflowState, dump_step_output, load_step_output
from .tools import ToolRegistry, build_tools

logger = logging.getLogger(__name__)


def build_instruction(reference: ContentReference) -> str:
    """Natural-language instruction describing the expected tool sequence."""
    content_type = reference.content_type.value
    return (
        "Please process this content for summarization:\n\n"
        f"Content ID: {reference.content_id}\n"
        f"Content Type: {content_type}\n"
        f"Slug: {reference.slug}\n\n"
        "Step 1: Use the content_fetcher_tool with these parameters:\n"
        f'- contentType: "{content_type}"\n'
        f'- slug: "{reference.slug}"\n'
        f'- contentId: "{reference.content_id}"\n\n'
        "Step 2: Use the content_cleaner_tool to clean the fetched content\n\n"
        "Step 3: Create a comprehensive summary following the JSON format "
        "specified in your system prompt\n\n"
        "Step 4: Use the storage_tool to save the summary and link it to the "
        "original content"
    )


def classify_failure(exc: BaseException, state: WorkflowState) -> FailureKind:
    """How far the run got before ``exc`` stopped it."""
    if isinstance(exc, NotFoundError):
        return FailureKind.NOT_FOUND
    if isinstance(exc, StorageError) and exc.summary_written:
        return FailureKind.PERSISTED_NOT_LINKED
    if state.summary is not None:
        return FailureKind.GENERATED_NOT_PERSISTED
    return FailureKind.NOT_GENERATED


class SummarizationWorkflow:
    """Fetch, clean, summarize and store one content document."""

    def __init__(
        self,
        tools: ToolRegistry,
        *,
        checkpoints: Optional[CheckpointStore] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        max_steps: int = 8,
    ):
        self.tools = tools
        self.checkpoints = checkpoints
        self.retry_policy = retry_policy or RetryPolicy()
        self.sleep = sleep
        self.max_steps = max_steps

    @classmethod
    def from_settings(cls, settings: Optional[PipelineSettings] = None) -> "SummarizationWorkflow":
        """Build a workflow wired to the configured CMS, LLM providers and Redis."""
        settings = settings or get_settings()
        store = SanityContentStore(settings.sanity)
        tools = build_tools(
            fetcher=ContentFetcher(store),
            cleaner=ContentCleaner(),
            summarizer=create_summary_service(settings.summarization),
            storage=SummaryStorage(store),
        )
        checkpoints = RedisCheckpointStore.from_settings(settings) if settings.enable_checkpoints else None
        return cls(
            tools,
            checkpoints=checkpoints,
            retry_policy=RetryPolicy.from_settings(settings.retry),
        )

    def run(self, reference: ContentReference, run_id: Optional[str] = None) -> StoreResult:
        """Run the workflow to completion and return the saved item.

        Args:
            reference: Content to summarize
            run_id: Identifies this run for checkpointing (the task id)

        Raises:
            WorkflowError: the run failed; ``failure_kind`` says how far it got
        """
        state = WorkflowState(reference=reference, instruction=build_instruction(reference))
        self._restore(state, run_id)

        log_extra = {
            "content_id": reference.content_id,
            "content_type": reference.content_type.value,
            "slug": reference.slug,
            "run_id": run_id,
        }
        logger.info(
            "Summarization workflow started",
            extra={**log_extra, "event": Events.PROCESSING_STARTED,
                   "resumed_steps": [s.value for s in state.completed_steps()]},
        )

        router = Router(
            self.tools,
            step_runner=self._run_step,
            on_step=lambda s, step, output: self._checkpoint(s, step, output, run_id),
            max_steps=self.max_steps,
        )

        try:
            router.run(state)
        except Exception as e:
            failure_kind = classify_failure(e, state)
            stage = _failed_stage(e, state)
            logger.error(
                f"Summarization workflow failed: {e}",
                exc_info=not isinstance(e, PipelineError),
                extra={
                    **log_extra,
                    "event": Events.PROCESSING_FAILED,
                    "failure_kind": failure_kind.value,
                    "stage": stage,
                },
            )
            raise WorkflowError(
                str(e),
                failure_kind,
                reference.content_id,
                stage=stage,
                retryable=is_retryable(e),
            ) from e

        if self.checkpoints is not None:
            self._clear(reference.content_id, run_id)

        logger.info(
            "Summarization workflow completed",
            extra={
                **log_extra,
                "event": Events.PROCESSING_COMPLETED,
                "summary_id": state.saved_item.summary_id,
                "steps": [s.value for s in state.history],
            },
        )
        return state.saved_item

    def _run_step(self, step: Step, fn: Callable[[], Any]) -> Any:
        return run_with_retry(fn, self.retry_policy, label=step.value, sleep=self.sleep)

    def _restore(self, state: WorkflowState, run_id: Optional[str]) -> None:
        if self.checkpoints is None:
            return
        content_id = state.reference.content_id
        try:
            saved = self.checkpoints.load(content_id, run_id)
        except Exception:
            logger.warning(
                "Could not load checkpoints; starting from scratch",
                exc_info=True,
                extra={"content_id": content_id, "run_id": run_id},
            )
            return

        # Resume only from a contiguous prefix of completed steps
        for step in Step:
            if step not in saved:
                break
            try:
                output = load_step_output(step, saved[step])
            except ValidationError:
                logger.warning(
                    "Discarding invalid checkpoint",
                    extra={"content_id": content_id, "step": step.value},
                )
                break
            setattr(state, STEP_OUTPUTS[step], output)

    def _checkpoint(self, state: WorkflowState, step: Step, output: Any, run_id: Optional[str]) -> None:
        if self.checkpoints is None:
            return
        try:
            self.checkpoints.save(state.reference.content_id, step, dump_step_output(step, output), run_id)
        except Exception:
            logger.warning(
                "Could not save checkpoint",
                exc_info=True,
                extra={"content_id": state.reference.content_id, "step": step.value},
            )

    def _clear(self, content_id: str, run_id: Optional[str]) -> None:
        try:
            self.checkpoints.clear(content_id, run_id)
        except Exception:
            logger.warning(
                "Could not clear checkpoints",
                exc_info=True,
                extra={"content_id": content_id, "run_id": run_id},
            )


def _failed_stage(exc: BaseException, state: WorkflowState) -> Optional[str]:
    if isinstance(exc, PipelineError) and exc.stage:
        return exc.stage
    step = route(state)
    return step.value if step is not None else None

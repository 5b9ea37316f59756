"""
Celery tasks for the contentflow pipeline.

``summarize_content`` is the durable event consumer: one task per
summarization event, retried with backoff on retryable failures. Checkpoints
are keyed by the task id, which Celery keeps across retries, so a retried
task resumes after its last completed step.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from celery import Task
from celery.utils.time import get_exponential_backoff_interval
from kombu.exceptions import KombuError
from pydantic import ValidationError

from contentflow.celery_config import SUMMARIZE_TASK, celery_app
from contentflow.errors import UnsupportedTypeError, WorkflowError
from contentflow.models import ContentReference
from contentflow.orchestration.workflow import SummarizationWorkflow
from contentflow.status import Events, FailureKind, SummarizationTaskResult, TaskStatus
from contentflow.workers.fetcher import resolve_content_type

logger = logging.getLogger(__name__)


@lru_cache
def get_workflow() -> SummarizationWorkflow:
    """Process-wide workflow built from settings."""
    return SummarizationWorkflow.from_settings()


class SummarizationTask(Task):
    """Base class for summarization tasks."""

    retry_backoff = 2
    retry_backoff_max = 300
    retry_jitter = True
    max_retries = 3

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        """Handle task failure."""
        extra: Dict[str, Any] = {"task_id": task_id, "kwargs": kwargs}
        if isinstance(exc, WorkflowError):
            extra.update(exc.to_dict())
        logger.error(
            f"Summarization task failed: {exc}",
            exc_info=not isinstance(exc, WorkflowError),
            extra=extra,
        )

    def backoff_countdown(self) -> int:
        return get_exponential_backoff_interval(
            factor=self.retry_backoff,
            retries=self.request.retries,
            maximum=self.retry_backoff_max,
            full_jitter=self.retry_jitter,
        )


@celery_app.task(base=SummarizationTask, bind=True, name=SUMMARIZE_TASK)
def summarize_content(
    self,
    content_id: str,
    content_type: str,
    slug: str,
) -> dict:
    """
    Fetch, summarize and store one content document.

    Args:
        content_id: Id of the content document
        content_type: article, interview or publication
        slug: Slug of the content document

    Returns:
        Task result dictionary; ``result`` holds the saved item
    """
    try:
        reference = ContentReference(
            content_id=content_id,
            content_type=resolve_content_type(content_type),
            slug=slug,
        )
    except (UnsupportedTypeError, ValidationError) as e:
        # A malformed event can never succeed
        raise WorkflowError(
            f"Invalid summarization event: {e}",
            FailureKind.NOT_GENERATED,
            content_id or "",
            stage="fetch",
            retryable=False,
        ) from e

    started_at = datetime.now(timezone.utc)

    logger.info(
        "Starting content summarization",
        extra={
            "task_id": self.request.id,
            "content_id": content_id,
            "content_type": content_type,
            "slug": slug,
            "retries": self.request.retries,
        },
    )

    try:
        saved_item = get_workflow().run(reference, run_id=self.request.id)
    except WorkflowError as e:
        if e.retryable and self.request.retries < self.max_retries:
            countdown = self.backoff_countdown()
            logger.warning(
                f"Retrying content summarization in {countdown}s",
                extra={"task_id": self.request.id, **e.to_dict()},
            )
            raise self.retry(exc=e, countdown=countdown)
        raise

    return SummarizationTaskResult(
        task_id=self.request.id,
        status=TaskStatus.SUCCESS,
        started_at=started_at,
        completed_at=datetime.now(timezone.utc),
        result=saved_item.model_dump(by_alias=True),
        retries=self.request.retries,
        content_id=content_id,
        summary_id=saved_item.summary_id,
    ).to_dict()


def trigger_content_summarization(
    reference: ContentReference,
    user_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Enqueue a summarization run.

    Args:
        reference: Content to summarize
        user_id: Requesting user, recorded in logs only

    Returns:
        ``{success, eventId, message}``, or ``{success, error, message}``
        when the broker is unreachable
    """
    try:
        result = summarize_content.apply_async(
            kwargs={
                "content_id": reference.content_id,
                "content_type": reference.content_type.value,
                "slug": reference.slug,
            },
        )
    except KombuError as e:
        logger.error(
            "Failed to trigger summarization workflow",
            exc_info=True,
            extra={"content_id": reference.content_id, "user_id": user_id},
        )
        return {
            "success": False,
            "error": str(e),
            "message": "Failed to start summarization workflow",
        }

    logger.info(
        "Summarization workflow triggered",
        extra={
            "event": Events.SUMMARIZE_REQUESTED,
            "event_id": result.id,
            "content_id": reference.content_id,
            "user_id": user_id,
        },
    )
    return {
        "success": True,
        "eventId": result.id,
        "message": "Summarization workflow started successfully",
    }

"""
Celery configuration for the contentflow pipeline.

The summarize task is the durable consumer of summarization events: it is
acknowledged only after it finishes and re-queued if its worker dies.
"""

from __future__ import annotations

from typing import Any

from celery import Celery
from kombu import Exchange, Queue

from contentflow.config import get_settings
from contentflow.errors import WorkflowError

SUMMARIZE_TASK = "contentflow.tasks.summarize_content"

_settings = get_settings()

# Create Celery application
celery_app = Celery(
    "contentflow",
    broker=_settings.effective_celery_broker_url,
    backend=_settings.effective_celery_result_backend,
)

default_exchange = Exchange("default", type="direct")
summarization_exchange = Exchange("summarization", type="direct")

celery_app.conf.task_queues = (
    Queue("default", default_exchange, routing_key="default"),
    Queue("summarization", summarization_exchange, routing_key="summarization"),
)
celery_app.conf.task_default_queue = "default"

celery_app.conf.task_routes = {
    SUMMARIZE_TASK: {"queue": "summarization"},
}

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    result_expires=86400,  # 24 hours
    result_extended=True,

    # Ack after completion; a crashed run is redelivered and resumes from checkpoints
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    worker_prefetch_multiplier=1,
    worker_concurrency=_settings.celery_concurrency,

    task_default_retry_delay=60,
    task_max_retries=3,

    task_track_started=True,
    task_send_sent_event=True,
    worker_send_task_events=True,
)


def configure_for_worker(worker_type: str) -> None:
    """
    Configure Celery for a specific worker type.

    Args:
        worker_type: 'summarization' or 'default'
    """
    if worker_type == "summarization":
        # LLM calls dominate; bounded by max_tokens and per-request timeouts
        celery_app.conf.update(
            task_time_limit=300,  # 5 minutes
            task_soft_time_limit=270,  # 4.5 minutes
        )
    elif worker_type == "default":
        celery_app.conf.update(
            task_time_limit=120,
            task_soft_time_limit=100,
        )
    else:
        raise ValueError(f"Unknown worker type: {worker_type}")


def get_task_info(task_id: str) -> dict[str, Any]:
    """
    Get information about a Celery task.

    Args:
        task_id: The Celery task ID

    Returns:
        Dictionary with task status and result
    """
    from celery.result import AsyncResult

    result = AsyncResult(task_id, app=celery_app)

    info: dict[str, Any] = {
        "task_id": task_id,
        "status": result.status,
        "ready": result.ready(),
        "successful": result.successful() if result.ready() else None,
    }

    if result.failed():
        exc = result.result
        info["error"] = str(exc)
        if isinstance(exc, WorkflowError):
            info["failure_kind"] = exc.failure_kind.value
        info["traceback"] = result.traceback
    elif result.ready():
        info["result"] = result.result

    return info

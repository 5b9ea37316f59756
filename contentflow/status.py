"""
Status tracking for the summarization pipeline.

Provides enums and data structures describing task state, router phases,
failure classification and the event names the pipeline emits.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class TaskStatus(str, Enum):
    """Task execution status."""

    PENDING = "pending"
    STARTED = "started"
    SUCCESS = "success"
    FAILED = "failed"
    RETRY = "retry"
    REVOKED = "revoked"

    @classmethod
    def from_celery(cls, state: str) -> "TaskStatus":
        """Map a Celery task state name onto a TaskStatus."""
        mapping = {
            "PENDING": cls.PENDING,
            "RECEIVED": cls.PENDING,
            "STARTED": cls.STARTED,
            "SUCCESS": cls.SUCCESS,
            "FAILURE": cls.FAILED,
            "RETRY": cls.RETRY,
            "REVOKED": cls.REVOKED,
        }
        return mapping.get(state.upper(), cls.PENDING)


class SummaryStatus(str, Enum):
    """Status stored on a persisted summary document."""

    COMPLETED = "completed"


class WorkflowPhase(str, Enum):
    """Router phase derived from workflow state."""

    START = "start"
    CONTENT_READY = "content_ready"
    SAVED = "saved"


class FailureKind(str, Enum):
    """How far a failed run got before it stopped.

    Lets callers tell "never generated" apart from "generated but not
    persisted".
    """

    NOT_FOUND = "not_found"
    NOT_GENERATED = "not_generated"
    GENERATED_NOT_PERSISTED = "generated_not_persisted"
    PERSISTED_NOT_LINKED = "persisted_not_linked"


class Events:
    """Event names used to trigger and report on the pipeline."""

    SUMMARIZE_REQUESTED = "content.summarize.requested"
    PROCESSING_STARTED = "content.processing.started"
    PROCESSING_COMPLETED = "content.processing.completed"
    PROCESSING_FAILED = "content.processing.failed"


@dataclass
class TaskResult:
    """Result of a task execution."""

    task_id: str
    status: TaskStatus
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    result: Optional[Any] = None
    error: Optional[str] = None
    retries: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "task_id": self.task_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "result": self.result,
            "error": self.error,
            "retries": self.retries,
        }


@dataclass
class SummarizationTaskResult(TaskResult):
    """Result of a summarize_content task."""

    content_id: str = ""
    summary_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        base = super().to_dict()
        base.update({
            "content_id": self.content_id,
            "summary_id": self.summary_id,
        })
        return base

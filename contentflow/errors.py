"""
Error taxonomy for the summarization pipeline.

Workers raise these; the router lets them through untouched and the
workflow entry point classifies them into a ``FailureKind``.
"""

from __future__ import annotations

from typing import Optional

from contentflow.status import FailureKind


class PipelineError(Exception):
    """Base class for pipeline failures.

    ``retryable`` tells the retry combinator and the Celery task whether
    running the same step again can succeed.
    """

    retryable: bool = False

    def __init__(self, message: str, *, stage: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage


def is_retryable(exc: BaseException) -> bool:
    """Pipeline errors say for themselves; anything else is treated as transient."""
    if isinstance(exc, PipelineError):
        return exc.retryable
    return isinstance(exc, Exception)


class NotFoundError(PipelineError):
    """The content store holds no document for the given type and slug."""

    def __init__(self, content_type: str, slug: str) -> None:
        super().__init__(
            f"Content not found for {content_type} with slug: {slug}",
            stage="fetch",
        )
        self.content_type = content_type
        self.slug = slug


class UnsupportedTypeError(PipelineError):
    """Content kind outside article/interview/publication."""

    def __init__(self, content_type: object) -> None:
        super().__init__(f"Unsupported content type: {content_type}", stage="fetch")
        self.content_type = content_type


class CleaningError(PipelineError):
    """Fetched content does not have the shape the cleaner expects."""


class ContentShapeError(CleaningError):
    """Document returned by the store failed validation at the fetch boundary."""


class SchemaValidationError(PipelineError):
    """A summary does not match the Summary contract."""

    def __init__(self, message: str, *, raw: Optional[str] = None, stage: str = "summarize") -> None:
        super().__init__(message, stage=stage)
        self.raw = raw


class ContentStoreError(PipelineError):
    """The content store API rejected a request or could not be reached."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class ProviderError(PipelineError):
    """Every configured LLM provider failed to return output."""

    retryable = True

    def __init__(self, message: str) -> None:
        super().__init__(message, stage="summarize")


class StorageError(PipelineError):
    """A write to the content store failed.

    ``summary_written`` is True when the summary document was created but the
    back-reference patch on the original content failed. ``retryable`` follows
    the underlying store error; a rejected write (auth, bad request) is final.
    """

    def __init__(
        self,
        message: str,
        *,
        summary_id: Optional[str] = None,
        summary_written: bool = False,
        retryable: bool = True,
    ) -> None:
        super().__init__(message, stage="store")
        self.summary_id = summary_id
        self.summary_written = summary_written
        self.retryable = retryable


class ToolArgumentError(PipelineError):
    """Arguments handed to a tool do not match its parameter model."""


class RouterLoopError(PipelineError):
    """A step ran without advancing workflow state."""


class WorkflowError(PipelineError):
    """Failure of one workflow run, as reported to the caller.

    All constructor arguments are kept in ``args`` so a result backend can
    rebuild the exception from its serialized form.
    """

    def __init__(
        self,
        message: str,
        failure_kind: FailureKind | str,
        content_id: str,
        stage: Optional[str] = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message, stage=stage)
        self.failure_kind = FailureKind(failure_kind)
        self.content_id = content_id
        self.retryable = retryable
        self.args = (message, self.failure_kind.value, content_id, stage, retryable)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict:
        return {
            "content_id": self.content_id,
            "failure_kind": self.failure_kind.value,
            "stage": self.stage,
            "error": self.message,
            "retryable": self.retryable,
        }

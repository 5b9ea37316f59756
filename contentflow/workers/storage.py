"""
Storage worker.

Persists a validated summary as its own document and links it back to the
original content. The summary upsert uses a deterministic id, so running
the store step twice for the same content leaves exactly one summary.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError

from contentflow.cms.content_store import ContentStoreProvider
from contentflow.cms.queries import SUMMARY_BY_CONTENT_ID
from contentflow.errors import StorageError, is_retryable
from contentflow.models import (
    ContentType,
    StoreResult,
    Summary,
    SummaryDocument,
    summary_document_id,
)
from contentflow.summarization.response_parser import validate_summary

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SummaryStorage:
    """Writes summaries to the content store."""

    def __init__(
        self,
        store: ContentStoreProvider,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.clock = clock or _utcnow

    def store_summary(
        self,
        content_id: str,
        content_type: Union[ContentType, str],
        slug: str,
        summary: Union[Summary, Mapping[str, Any]],
    ) -> StoreResult:
        """
        Upsert the summary document, then patch the content with a reference.

        Args:
            content_id: Id of the original content document
            content_type: Kind of the original content
            slug: Slug of the original content
            summary: Summary to persist; validated again before any write

        Returns:
            StoreResult. ``success`` is False when either write failed;
            ``summary_written`` tells the two failure points apart.

        Raises:
            SchemaValidationError: summary does not match the contract
                (nothing is written)
        """
        summary = validate_summary(summary, stage="store")
        summary_id = summary_document_id(content_id)
        now = self.clock().isoformat()

        document = SummaryDocument.build(
            content_id=content_id,
            content_type=ContentType(content_type),
            slug=slug,
            summary=summary,
            generated_at=now,
        )

        try:
            self.store.create_or_replace(document.to_document())
        except Exception as e:
            error = StorageError(
                f"Failed to write summary {summary_id}: {e}",
                summary_id=summary_id,
                retryable=is_retryable(e),
            )
            logger.error(
                str(error),
                exc_info=True,
                extra={"content_id": content_id, "summary_id": summary_id},
            )
            return StoreResult(
                success=False,
                summary_id=summary_id,
                message=error.message,
                retryable=error.retryable,
            )

        logger.info(
            "Summary document written",
            extra={"content_id": content_id, "summary_id": summary_id},
        )

        try:
            self.store.patch(
                content_id,
                {
                    "aiSummary": {"_type": "reference", "_ref": summary_id},
                    "hasAISummary": True,
                    "summaryUpdatedAt": now,
                },
            )
        except Exception as e:
            error = StorageError(
                f"Summary {summary_id} written but linking content {content_id} failed: {e}",
                summary_id=summary_id,
                summary_written=True,
                retryable=is_retryable(e),
            )
            logger.error(
                str(error),
                exc_info=True,
                extra={"content_id": content_id, "summary_id": summary_id},
            )
            return StoreResult(
                success=False,
                summary_id=summary_id,
                message=error.message,
                summary_written=True,
                retryable=error.retryable,
            )

        logger.info(
            "Content linked to summary",
            extra={"content_id": content_id, "summary_id": summary_id},
        )
        return StoreResult(
            success=True,
            summary_id=summary_id,
            message="Summary successfully stored and linked to content",
            summary_written=True,
            content_linked=True,
        )

    def get_summary(self, content_id: str) -> Optional[SummaryDocument]:
        """Load the stored summary for a content document, if any."""
        document = self.store.fetch(SUMMARY_BY_CONTENT_ID, {"contentId": content_id})
        if not document:
            return None
        try:
            return SummaryDocument.model_validate(document)
        except ValidationError:
            logger.warning(
                "Stored summary document is malformed",
                exc_info=True,
                extra={"content_id": content_id},
            )
            return None

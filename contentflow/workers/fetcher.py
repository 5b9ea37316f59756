"""Content fetcher: reads one document from the content store."""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from contentflow.cms.content_store import ContentStoreProvider
from contentflow.cms.queries import QUERY_BY_CONTENT_TYPE
from contentflow.errors import ContentShapeError, NotFoundError, UnsupportedTypeError
from contentflow.models import (
    ContentMetadata,
    ContentType,
    FetchedContent,
    raw_content_adapter,
)

logger = logging.getLogger(__name__)


def resolve_content_type(content_type: ContentType | str) -> ContentType:
    """Coerce a content kind, rejecting anything outside the known three."""
    if isinstance(content_type, ContentType):
        return content_type
    try:
        return ContentType(content_type)
    except ValueError:
        raise UnsupportedTypeError(content_type) from None


class ContentFetcher:
    """Retrieves raw content by type and slug. Read-only."""

    def __init__(self, store: ContentStoreProvider) -> None:
        self.store = store

    def fetch(
        self,
        content_type: ContentType | str,
        slug: str,
        content_id: Optional[str] = None,
    ) -> FetchedContent:
        """Fetch a document and extract its metadata.

        Args:
            content_type: article, interview or publication
            slug: Slug of the document
            content_id: Optional document id, only used for consistency logging

        Raises:
            UnsupportedTypeError: content_type is not a known kind
            NotFoundError: the store has no document for this type/slug
            ContentShapeError: the document failed validation
        """
        kind = resolve_content_type(content_type)
        if not slug or not slug.strip():
            raise ValueError("Slug is required")

        query = QUERY_BY_CONTENT_TYPE.get(kind)
        if query is None:
            raise UnsupportedTypeError(kind)

        logger.info(
            "Fetching content",
            extra={"content_type": kind.value, "slug": slug, "content_id": content_id},
        )
        document = self.store.fetch(query, {"slug": slug})
        if not document:
            raise NotFoundError(kind.value, slug)
        if not isinstance(document, dict):
            raise ContentShapeError(
                f"Expected a document object for {kind.value} '{slug}', "
                f"got {type(document).__name__}",
                stage="fetch",
            )

        document = dict(document)
        document.setdefault("_type", kind.value)
        if document["_type"] != kind.value:
            raise ContentShapeError(
                f"Document for slug '{slug}' is a {document['_type']}, not a {kind.value}",
                stage="fetch",
            )

        try:
            content = raw_content_adapter.validate_python(document)
        except ValidationError as e:
            raise ContentShapeError(
                f"Invalid {kind.value} document '{slug}': {e.error_count()} validation error(s)",
                stage="fetch",
            ) from e

        if content_id and content.id != content_id:
            logger.warning(
                "Fetched document id differs from requested content id",
                extra={"content_id": content_id, "document_id": content.id, "slug": slug},
            )

        metadata = ContentMetadata(
            type=kind,
            id=content.id,
            title=content.title,
            slug=(content.slug.current if content.slug and content.slug.current else slug),
            published_at=content.published_at,
            sectors=content.sectors,
            regions=content.regions,
            tags=content.tags,
        )
        return FetchedContent(content=content, metadata=metadata)

"""Content cleaner: rich text to flat text plus taxonomy."""
from __future__ import annotations

import logging
import re
from typing import Any, List, Mapping, Optional

from pydantic import ValidationError

from contentflow.errors import CleaningError
from contentflow.models import (
    CleanedContent,
    CleanedInterviewee,
    CleanedMetadata,
    ContentType,
    FetchedContent,
    InterviewContent,
    TaxonomyRef,
)

from .fetcher import resolve_content_type

logger = logging.getLogger(__name__)

_INLINE_WS = re.compile(r"[^\S\n]+")
_BLANK_RUNS = re.compile(r"\n{3,}")


def normalize_whitespace(text: str) -> str:
    """Collapse space runs to one space and blank-line runs to one blank line."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [_INLINE_WS.sub(" ", line).strip() for line in text.split("\n")]
    return _BLANK_RUNS.sub("\n\n", "\n".join(lines)).strip()


def portable_text_to_plain(blocks: Any) -> str:
    """Flatten Portable Text blocks into paragraphs separated by a blank line.

    Only ``block`` blocks contribute text (the concatenation of their
    children's ``text``). Images, embeds and anything unrecognised contribute
    nothing. A body that is not a list yields an empty string.
    """
    if blocks is None:
        return ""
    if isinstance(blocks, str):
        return normalize_whitespace(blocks)
    if not isinstance(blocks, list):
        logger.warning(
            "Body is not block-structured; using empty body",
            extra={"body_type": type(blocks).__name__},
        )
        return ""

    paragraphs: List[str] = []
    for block in blocks:
        if not isinstance(block, Mapping):
            logger.warning("Skipping malformed body block", extra={"block_type": type(block).__name__})
            continue
        paragraphs.append(_block_text(block))

    return normalize_whitespace("\n\n".join(paragraphs))


def _block_text(block: Mapping[str, Any]) -> str:
    if block.get("_type") != "block":
        return ""
    children = block.get("children")
    if not isinstance(children, list):
        return ""
    return "".join(
        child.get("text") or ""
        for child in children
        if isinstance(child, Mapping) and isinstance(child.get("text"), (str, type(None)))
    )


def _titles(refs: List[TaxonomyRef]) -> List[str]:
    return [ref.title for ref in refs if ref.title]


class ContentCleaner:
    """Normalizes fetched content for prompting. Pure and deterministic."""

    def clean(
        self,
        content_type: ContentType | str,
        slug: str,
        fetched: FetchedContent | Mapping[str, Any],
    ) -> CleanedContent:
        """Clean fetched content.

        Args:
            content_type: Kind the workflow asked for
            slug: Slug of the document (for logging)
            fetched: Fetcher output, model or its dict form

        Raises:
            CleaningError: the fetched payload is not fetcher output, or its
                kind disagrees with ``content_type``
        """
        kind = resolve_content_type(content_type)
        fetched = self._coerce(fetched, slug)

        content = fetched.content
        if content.kind != kind.value:
            raise CleaningError(
                f"Fetched {content.kind} content cannot be cleaned as {kind.value}",
                stage="clean",
            )

        interviewee: Optional[CleanedInterviewee] = None
        if isinstance(content, InterviewContent) and content.interviewee is not None:
            interviewee = self._project_interviewee(content)

        meta = fetched.metadata
        cleaned = CleanedContent(
            title=(content.title or "").strip(),
            dek=normalize_whitespace(content.dek or ""),
            body=portable_text_to_plain(content.body),
            interviewee=interviewee,
            metadata=CleanedMetadata(
                type=meta.type,
                sectors=_titles(meta.sectors),
                regions=_titles(meta.regions),
                tags=_titles(meta.tags),
                published_at=meta.published_at,
            ),
        )

        logger.debug(
            "Cleaned content",
            extra={"slug": slug, "content_type": kind.value, "body_chars": len(cleaned.body)},
        )
        return cleaned

    def _coerce(self, fetched: FetchedContent | Mapping[str, Any], slug: str) -> FetchedContent:
        if isinstance(fetched, FetchedContent):
            return fetched
        if not isinstance(fetched, Mapping):
            raise CleaningError(
                f"Expected fetched content for '{slug}', got {type(fetched).__name__}",
                stage="clean",
            )
        try:
            return FetchedContent.model_validate(dict(fetched))
        except ValidationError as e:
            raise CleaningError(
                f"Malformed fetched content for '{slug}': {e.error_count()} validation error(s)",
                stage="clean",
            ) from e

    def _project_interviewee(self, content: InterviewContent) -> CleanedInterviewee:
        # Position at the time of the interview wins over the current one
        person = content.interviewee
        current_org = person.organization.name if person.organization else None
        org_at_time = content.organization_at_time.name if content.organization_at_time else None

        bio_text = portable_text_to_plain(person.bio) if person.bio else ""

        return CleanedInterviewee(
            name=person.name or "",
            role=content.role_at_time or person.role or "",
            organization=org_at_time or current_org or "",
            bio=bio_text,
        )

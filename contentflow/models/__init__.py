"""
Pydantic models for the contentflow pipeline.

These models define the documents read from and written to the content
store, the values passed between workers, and the API request/response
shapes. Field names are snake_case; aliases carry the CMS / wire names.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    field_validator,
)

from contentflow.status import SummaryStatus, TaskStatus

SUMMARY_ID_PREFIX = "ai-summary-"
SUMMARY_DOCUMENT_TYPE = "aiSummary"


class ContentType(str, Enum):
    """Kinds of content the pipeline can summarize."""

    ARTICLE = "article"
    INTERVIEW = "interview"
    PUBLICATION = "publication"


class _CMSModel(BaseModel):
    """Base for documents coming from the content store."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ==================== Workflow Input ====================

def _strip_not_blank(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


NonBlankStr = Annotated[str, AfterValidator(_strip_not_blank)]


class ContentReference(BaseModel):
    """Identifies one unit of work. Immutable once a run starts."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    content_id: NonBlankStr = Field(alias="contentId")
    content_type: ContentType = Field(alias="contentType")
    slug: NonBlankStr


# ==================== Raw Content ====================

class TaxonomyRef(_CMSModel):
    """Expanded reference to a sector, region or tag."""

    id: Optional[str] = Field(default=None, alias="_id")
    title: Optional[str] = None


class Slug(_CMSModel):
    current: Optional[str] = None


class Organization(_CMSModel):
    id: Optional[str] = Field(default=None, alias="_id")
    name: Optional[str] = None


class Interviewee(_CMSModel):
    id: Optional[str] = Field(default=None, alias="_id")
    name: Optional[str] = None
    role: Optional[str] = None
    organization: Optional[Organization] = None
    bio: Optional[Any] = None


class _RawContentBase(_CMSModel):
    id: str = Field(alias="_id")
    title: Optional[str] = None
    slug: Optional[Slug] = None
    dek: Optional[str] = None
    # Portable Text; left loose so the cleaner can degrade on bad shapes
    body: Optional[Any] = None
    published_at: Optional[str] = Field(default=None, alias="publishedAt")
    sectors: List[TaxonomyRef] = Field(default_factory=list)
    regions: List[TaxonomyRef] = Field(default_factory=list)
    tags: List[TaxonomyRef] = Field(default_factory=list)

    @field_validator("slug", mode="before")
    @classmethod
    def _coerce_slug(cls, v):
        if isinstance(v, str):
            return {"current": v}
        return v

    @field_validator("sectors", "regions", "tags", mode="before")
    @classmethod
    def _drop_dangling_refs(cls, v):
        # Dereferencing a deleted document yields null
        if v is None:
            return []
        return [item for item in v if item is not None]


class ArticleContent(_RawContentBase):
    kind: Literal["article"] = Field(default="article", alias="_type")


class InterviewContent(_RawContentBase):
    kind: Literal["interview"] = Field(default="interview", alias="_type")
    interviewee: Optional[Interviewee] = None
    role_at_time: Optional[str] = Field(default=None, alias="roleAtTime")
    organization_at_time: Optional[Organization] = Field(
        default=None, alias="organizationAtTime"
    )


class PublicationContent(_RawContentBase):
    kind: Literal["publication"] = Field(default="publication", alias="_type")


def _content_kind(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        return value.get("_type", value.get("kind"))
    return getattr(value, "kind", None)


RawContent = Annotated[
    Union[
        Annotated[ArticleContent, Tag("article")],
        Annotated[InterviewContent, Tag("interview")],
        Annotated[PublicationContent, Tag("publication")],
    ],
    Discriminator(_content_kind),
]

raw_content_adapter: TypeAdapter[RawContent] = TypeAdapter(RawContent)


class ContentMetadata(_CMSModel):
    """Metadata extracted alongside fetched content."""

    type: ContentType
    id: str
    title: Optional[str] = None
    slug: str
    published_at: Optional[str] = Field(default=None, alias="publishedAt")
    sectors: List[TaxonomyRef] = Field(default_factory=list)
    regions: List[TaxonomyRef] = Field(default_factory=list)
    tags: List[TaxonomyRef] = Field(default_factory=list)


class FetchedContent(_CMSModel):
    """Output of the content fetcher."""

    content: RawContent
    metadata: ContentMetadata


# ==================== Cleaned Content ====================

class CleanedInterviewee(BaseModel):
    name: str = ""
    role: str = ""
    organization: str = ""
    bio: str = ""


class CleanedMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: ContentType
    sectors: List[str] = Field(default_factory=list)
    regions: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    published_at: Optional[str] = Field(default=None, alias="publishedAt")


class CleanedContent(BaseModel):
    """Flat text plus taxonomy, ready for prompting."""

    title: str = ""
    dek: str = ""
    body: str = ""
    interviewee: Optional[CleanedInterviewee] = None
    metadata: CleanedMetadata


# ==================== Summary ====================

class Summary(BaseModel):
    """Structured summary contract produced by the LLM."""

    model_config = ConfigDict(extra="forbid", strict=True)

    short_summary: str = Field(alias="shortSummary")
    medium_summary: str = Field(alias="mediumSummary")
    key_points: List[str] = Field(alias="keyPoints", min_length=1)
    tags: List[str]
    sentiment: Optional[str] = None
    topics: Optional[List[str]] = None

    @field_validator("short_summary", "medium_summary")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("key_points")
    @classmethod
    def _points_not_blank(cls, v: List[str]) -> List[str]:
        points = [p.strip() for p in v if p.strip()]
        if not points:
            raise ValueError("must contain at least one non-blank point")
        return points


def summary_document_id(content_id: str) -> str:
    """Deterministic summary document id for a content document."""
    if not content_id:
        raise ValueError("content_id must not be empty")
    return f"{SUMMARY_ID_PREFIX}{content_id}"


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SummaryDocument(_CMSModel):
    """Persisted summary, upserted under a deterministic id."""

    id: str = Field(alias="_id")
    type: Literal["aiSummary"] = Field(default=SUMMARY_DOCUMENT_TYPE, alias="_type")
    content_id: str = Field(alias="contentId")
    content_type: ContentType = Field(alias="contentType")
    slug: str
    short_summary: str = Field(alias="shortSummary")
    medium_summary: str = Field(alias="mediumSummary")
    key_points: List[str] = Field(default_factory=list, alias="keyPoints")
    ai_generated_tags: List[str] = Field(default_factory=list, alias="aiGeneratedTags")
    sentiment: Optional[str] = None
    topics: Optional[List[str]] = None
    generated_at: str = Field(default_factory=_utcnow_iso, alias="generatedAt")
    status: SummaryStatus = SummaryStatus.COMPLETED

    @classmethod
    def build(
        cls,
        *,
        content_id: str,
        content_type: ContentType,
        slug: str,
        summary: Summary,
        generated_at: Optional[str] = None,
    ) -> "SummaryDocument":
        return cls(
            id=summary_document_id(content_id),
            content_id=content_id,
            content_type=content_type,
            slug=slug,
            short_summary=summary.short_summary,
            medium_summary=summary.medium_summary,
            key_points=list(summary.key_points),
            ai_generated_tags=list(summary.tags),
            sentiment=summary.sentiment,
            topics=list(summary.topics) if summary.topics is not None else None,
            generated_at=generated_at or _utcnow_iso(),
        )

    def to_document(self) -> dict[str, Any]:
        """Serialize with CMS field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class StoreResult(BaseModel):
    """Outcome of the storage worker; the workflow's ``savedItem``."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    summary_id: Optional[str] = Field(default=None, alias="summaryId")
    message: str = ""
    summary_written: bool = Field(default=False, alias="summaryWritten")
    content_linked: bool = Field(default=False, alias="contentLinked")
    # Only meaningful on failure: whether repeating the write can succeed
    retryable: bool = True


# ==================== API Models ====================

class SummarizeRequest(BaseModel):
    """Request to summarize one content document."""

    model_config = ConfigDict(populate_by_name=True)

    content_id: NonBlankStr = Field(alias="contentId")
    content_type: ContentType = Field(alias="contentType")
    slug: NonBlankStr
    user_id: Optional[str] = Field(default=None, alias="userId")

    def to_reference(self) -> ContentReference:
        return ContentReference(
            content_id=self.content_id,
            content_type=self.content_type,
            slug=self.slug,
        )


class SummarizeResponse(BaseModel):
    success: bool
    message: str
    event_id: Optional[str] = Field(default=None, serialization_alias="eventId")
    error: Optional[str] = None


class SummarizeStatusResponse(BaseModel):
    success: bool = True
    task_id: str = Field(serialization_alias="taskId")
    status: TaskStatus
    summary_id: Optional[str] = Field(default=None, serialization_alias="summaryId")
    failure_kind: Optional[str] = Field(default=None, serialization_alias="failureKind")
    error: Optional[str] = None


class FormattedSummary(BaseModel):
    """Summary fields as served to display clients."""

    short_summary: str = Field(serialization_alias="shortSummary")
    medium_summary: str = Field(serialization_alias="mediumSummary")
    key_points: List[str] = Field(default_factory=list, serialization_alias="keyPoints")
    tags: List[str] = Field(default_factory=list)
    sentiment: str = "neutral"
    topics: List[str] = Field(default_factory=list)
    generated_at: Optional[str] = Field(default=None, serialization_alias="generatedAt")

    @classmethod
    def from_document(cls, doc: SummaryDocument) -> "FormattedSummary":
        return cls(
            short_summary=doc.short_summary,
            medium_summary=doc.medium_summary,
            key_points=doc.key_points or [],
            tags=doc.ai_generated_tags or [],
            sentiment=doc.sentiment or "neutral",
            topics=doc.topics or [],
            generated_at=doc.generated_at,
        )


class SummaryResponse(BaseModel):
    success: bool = True
    summary: FormattedSummary


__all__ = [
    "SUMMARY_ID_PREFIX",
    "SUMMARY_DOCUMENT_TYPE",
    "ContentType",
    "ContentReference",
    "TaxonomyRef",
    "Slug",
    "Organization",
    "Interviewee",
    "ArticleContent",
    "InterviewContent",
    "PublicationContent",
    "RawContent",
    "raw_content_adapter",
    "ContentMetadata",
    "FetchedContent",
    "CleanedInterviewee",
    "CleanedMetadata",
    "CleanedContent",
    "Summary",
    "summary_document_id",
    "SummaryDocument",
    "StoreResult",
    "SummarizeRequest",
    "SummarizeResponse",
    "SummarizeStatusResponse",
    "FormattedSummary",
    "SummaryResponse",
]

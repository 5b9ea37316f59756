"""Unit tests for the content fetcher."""
import pytest

from contentflow.cms.queries import ARTICLE_BY_SLUG, INTERVIEW_BY_SLUG
from contentflow.errors import (
    CleaningError,
    ContentShapeError,
    ContentStoreError,
    NotFoundError,
    UnsupportedTypeError,
)
from contentflow.models import ArticleContent, ContentType, InterviewContent
from contentflow.workers.fetcher import ContentFetcher


def test_fetch_article(content_store):
    fetched = ContentFetcher(content_store).fetch("article", "oil-price-2024", "art-123")

    assert isinstance(fetched.content, ArticleContent)
    assert fetched.metadata.type is ContentType.ARTICLE
    assert fetched.metadata.id == "art-123"
    assert fetched.metadata.slug == "oil-price-2024"
    assert [s.title for s in fetched.metadata.sectors] == ["Energy"]
    assert content_store.queries == [(ARTICLE_BY_SLUG, {"slug": "oil-price-2024"})]


def test_fetch_interview_uses_interview_query(content_store):
    fetched = ContentFetcher(content_store).fetch(ContentType.INTERVIEW, "grid-talk")

    assert isinstance(fetched.content, InterviewContent)
    assert fetched.content.role_at_time == "CTO"
    assert content_store.queries[0][0] == INTERVIEW_BY_SLUG


def test_missing_document_is_not_found(content_store):
    with pytest.raises(NotFoundError) as exc_info:
        ContentFetcher(content_store).fetch("article", "does-not-exist")

    assert exc_info.value.retryable is False
    assert exc_info.value.stage == "fetch"
    assert "does-not-exist" in str(exc_info.value)


def test_unsupported_type(content_store):
    with pytest.raises(UnsupportedTypeError):
        ContentFetcher(content_store).fetch("podcast", "x")
    assert content_store.queries == []


def test_empty_slug(content_store):
    with pytest.raises(ValueError):
        ContentFetcher(content_store).fetch("article", "  ")


def test_malformed_document_rejected_at_boundary(content_store):
    content_store.use_fetch_result = True
    content_store.fetch_result = {"_type": "article", "title": "no id"}

    with pytest.raises(ContentShapeError) as exc_info:
        ContentFetcher(content_store).fetch("article", "oil-price-2024")
    assert isinstance(exc_info.value, CleaningError)


def test_document_of_other_kind_rejected(content_store):
    content_store.use_fetch_result = True
    content_store.fetch_result = {"_id": "x", "_type": "publication", "title": "T"}

    with pytest.raises(ContentShapeError):
        ContentFetcher(content_store).fetch("article", "oil-price-2024")


def test_missing_type_defaults_to_requested_kind(content_store):
    content_store.use_fetch_result = True
    content_store.fetch_result = {"_id": "p-1", "title": "Annual report", "slug": "annual"}

    fetched = ContentFetcher(content_store).fetch("publication", "annual")
    assert fetched.content.kind == "publication"
    assert fetched.metadata.slug == "annual"


def test_dangling_taxonomy_references_dropped(content_store):
    content_store.use_fetch_result = True
    content_store.fetch_result = {
        "_id": "art-9",
        "_type": "article",
        "sectors": [None, {"_id": "s", "title": "Energy"}],
        "tags": None,
    }

    fetched = ContentFetcher(content_store).fetch("article", "whatever")
    assert [s.title for s in fetched.metadata.sectors] == ["Energy"]
    assert fetched.metadata.tags == []
    assert fetched.metadata.slug == "whatever"


def test_store_errors_propagate(content_store):
    content_store.fail_fetch = 1
    with pytest.raises(ContentStoreError) as exc_info:
        ContentFetcher(content_store).fetch("article", "oil-price-2024")
    assert exc_info.value.retryable is True

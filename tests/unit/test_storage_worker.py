"""Unit tests for the storage worker."""
from datetime import datetime, timezone

import pytest

from contentflow.errors import ContentStoreError, SchemaValidationError
from contentflow.models import ContentType, Summary, summary_document_id
from contentflow.workers.storage import SummaryStorage

from fakes.providers import summary_payload

FIXED_NOW = datetime(2024, 3, 2, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def storage(content_store):
    return SummaryStorage(content_store, clock=lambda: FIXED_NOW)


def test_summary_id_is_deterministic():
    assert summary_document_id("art-123") == "ai-summary-art-123"
    assert summary_document_id("art-123") == summary_document_id("art-123")
    assert summary_document_id("art-1") != summary_document_id("art-12")
    with pytest.raises(ValueError):
        summary_document_id("")


def test_store_creates_and_links(storage, content_store):
    result = storage.store_summary("art-123", ContentType.ARTICLE, "oil-price-2024", summary_payload())

    assert result.success is True
    assert result.summary_id == "ai-summary-art-123"
    assert result.summary_written and result.content_linked

    doc = content_store.get("ai-summary-art-123")
    assert doc["_type"] == "aiSummary"
    assert doc["contentId"] == "art-123"
    assert doc["contentType"] == "article"
    assert doc["aiGeneratedTags"] == ["Energy", "Oil"]
    assert doc["status"] == "completed"
    assert doc["generatedAt"] == FIXED_NOW.isoformat()

    article = content_store.get("art-123")
    assert article["hasAISummary"] is True
    assert article["aiSummary"] == {"_type": "reference", "_ref": "ai-summary-art-123"}
    assert article["summaryUpdatedAt"] == FIXED_NOW.isoformat()


def test_store_twice_leaves_one_summary(storage, content_store):
    storage.store_summary("art-123", "article", "oil-price-2024", summary_payload())
    storage.store_summary(
        "art-123", "article", "oil-price-2024", summary_payload(shortSummary="Revised.")
    )

    summaries = content_store.summary_documents()
    assert len(summaries) == 1
    assert summaries[0]["shortSummary"] == "Revised."


def test_accepts_summary_model(storage):
    summary = Summary.model_validate(summary_payload())
    assert storage.store_summary("art-123", "article", "oil-price-2024", summary).success


def test_invalid_summary_writes_nothing(storage, content_store):
    with pytest.raises(SchemaValidationError) as exc_info:
        storage.store_summary("art-123", "article", "oil-price-2024", {"shortSummary": "x"})

    assert exc_info.value.stage == "store"
    assert content_store.writes == []


def test_create_failure_reported(storage, content_store):
    content_store.fail_create = 1

    result = storage.store_summary("art-123", "article", "oil-price-2024", summary_payload())

    assert result.success is False
    assert result.summary_written is False
    assert "Simulated create failure" in result.message
    assert content_store.writes == []


def test_patch_failure_leaves_unlinked_summary(storage, content_store):
    content_store.fail_patch = 1

    result = storage.store_summary("art-123", "article", "oil-price-2024", summary_payload())

    assert result.success is False
    assert result.summary_written is True
    assert result.content_linked is False
    assert content_store.get("ai-summary-art-123") is not None
    assert "hasAISummary" not in content_store.get("art-123")


def test_rejected_write_is_not_retryable(storage, content_store, monkeypatch):
    def reject(document):
        raise ContentStoreError("Unauthorized", status_code=401, retryable=False)

    monkeypatch.setattr(content_store, "create_or_replace", reject)

    result = storage.store_summary("art-123", "article", "oil-price-2024", summary_payload())

    assert result.success is False
    assert result.retryable is False
    assert "Unauthorized" in result.message


def test_unavailable_store_is_retryable(storage, content_store):
    content_store.fail_create = 1

    result = storage.store_summary("art-123", "article", "oil-price-2024", summary_payload())

    assert result.success is False
    assert result.retryable is True


def test_patch_of_missing_content_is_not_retryable(storage, content_store):
    result = storage.store_summary("art-999", "article", "oil-price-2024", summary_payload())

    assert result.success is False
    assert result.summary_written is True
    assert result.retryable is False
    assert content_store.get("ai-summary-art-999") is not None


def test_get_summary(storage):
    assert storage.get_summary("art-123") is None

    storage.store_summary("art-123", "article", "oil-price-2024", summary_payload(sentiment=None))
    document = storage.get_summary("art-123")

    assert document.id == "ai-summary-art-123"
    assert document.sentiment is None
    assert document.key_points == ["Supply tightened", "Demand recovered"]

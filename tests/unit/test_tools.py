"""Unit tests for the tool contracts."""
import pytest

from contentflow.errors import ContentStoreError, StorageError, ToolArgumentError
from contentflow.models import FetchedContent, StoreResult
from contentflow.orchestration.state import Step
from contentflow.orchestration.tools import build_tools
from contentflow.summarization.service import SummaryService
from contentflow.workers.cleaner import ContentCleaner
from contentflow.workers.fetcher import ContentFetcher
from contentflow.workers.storage import SummaryStorage

from fakes.providers import FakeProvider, summary_payload


@pytest.fixture
def registry(content_store):
    return build_tools(
        fetcher=ContentFetcher(content_store),
        cleaner=ContentCleaner(),
        summarizer=SummaryService(FakeProvider()),
        storage=SummaryStorage(content_store),
    )


def test_tool_names_and_steps(registry):
    assert registry.names() == [
        "content_fetcher_tool",
        "content_cleaner_tool",
        "summarizer_tool",
        "storage_tool",
    ]
    assert registry.for_step(Step.STORE).name == "storage_tool"
    with pytest.raises(KeyError):
        registry.get("publisher_tool")


def test_openai_schema(registry):
    schemas = registry.as_openai_tools()
    fetch = schemas[0]

    assert fetch["type"] == "function"
    assert fetch["function"]["name"] == "content_fetcher_tool"
    params = fetch["function"]["parameters"]
    assert set(params["required"]) == {"contentType", "slug"}
    assert "contentId" in params["properties"]


def test_fetch_tool(registry):
    result = registry.get("content_fetcher_tool").invoke(
        {"contentType": "article", "slug": "oil-price-2024", "contentId": "art-123"}
    )
    assert isinstance(result, FetchedContent)


def test_invalid_arguments(registry):
    with pytest.raises(ToolArgumentError):
        registry.get("content_fetcher_tool").invoke({"contentType": "podcast", "slug": "x"})
    with pytest.raises(ToolArgumentError):
        registry.get("content_fetcher_tool").invoke({"slug": "x", "unexpected": 1})


def test_storage_tool_success(registry):
    result = registry.get("storage_tool").invoke({
        "contentId": "art-123",
        "contentType": "article",
        "slug": "oil-price-2024",
        "summary": summary_payload(),
    })
    assert isinstance(result, StoreResult)
    assert result.summary_id == "ai-summary-art-123"


def test_storage_tool_raises_on_failed_write(registry, content_store):
    content_store.fail_patch = 1

    with pytest.raises(StorageError) as exc_info:
        registry.get("storage_tool").invoke({
            "contentId": "art-123",
            "contentType": "article",
            "slug": "oil-price-2024",
            "summary": summary_payload(),
        })

    assert exc_info.value.summary_written is True
    assert exc_info.value.summary_id == "ai-summary-art-123"


def test_storage_tool_keeps_store_retryability(registry, content_store, monkeypatch):
    def reject(document):
        raise ContentStoreError("Bad request", status_code=400, retryable=False)

    monkeypatch.setattr(content_store, "create_or_replace", reject)

    with pytest.raises(StorageError) as exc_info:
        registry.get("storage_tool").invoke({
            "contentId": "art-123",
            "contentType": "article",
            "slug": "oil-price-2024",
            "summary": summary_payload(),
        })

    assert exc_info.value.retryable is False
    assert exc_info.value.summary_written is False

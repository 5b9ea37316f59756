"""Unit tests for the Sanity HTTP content store."""
import json

import httpx
import pytest

from contentflow.cms.queries import ARTICLE_BY_SLUG
from contentflow.cms.sanity_store import SanityContentStore
from contentflow.config import SanitySettings
from contentflow.errors import ContentStoreError


@pytest.fixture
def settings():
    return SanitySettings(
        project_id="proj1",
        dataset="production",
        api_version="2024-01-01",
        api_token="tok",
        use_cdn=True,
    )


def make_store(settings, handler):
    requests = []

    def _handle(request):
        requests.append(request)
        return handler(request)

    return SanityContentStore(settings, transport=httpx.MockTransport(_handle)), requests


def test_requires_project():
    with pytest.raises(ValueError):
        SanityContentStore(SanitySettings(project_id=""))


def test_fetch_sends_groq_and_params(settings):
    store, requests = make_store(
        settings, lambda r: httpx.Response(200, json={"result": {"_id": "art-123"}})
    )

    assert store.fetch(ARTICLE_BY_SLUG, {"slug": "oil-price-2024"}) == {"_id": "art-123"}

    request = requests[0]
    assert request.method == "GET"
    assert request.url.host == "proj1.apicdn.sanity.io"
    assert request.url.path == "/v2024-01-01/data/query/production"
    assert request.url.params["query"] == ARTICLE_BY_SLUG
    assert request.url.params["$slug"] == '"oil-price-2024"'
    assert request.headers["Authorization"] == "Bearer tok"


def test_fetch_no_match_returns_none(settings):
    store, _ = make_store(settings, lambda r: httpx.Response(200, json={"result": None}))
    assert store.fetch(ARTICLE_BY_SLUG, {"slug": "missing"}) is None


def test_create_or_replace(settings):
    store, requests = make_store(
        settings,
        lambda r: httpx.Response(
            200,
            json={
                "transactionId": "tx1",
                "results": [{"id": "ai-summary-art-123", "operation": "create",
                             "document": {"_id": "ai-summary-art-123", "_type": "aiSummary"}}],
            },
        ),
    )

    doc = store.create_or_replace({"_id": "ai-summary-art-123", "_type": "aiSummary"})

    assert doc["_id"] == "ai-summary-art-123"
    request = requests[0]
    # Writes never go through the CDN
    assert request.url.host == "proj1.api.sanity.io"
    assert request.url.path == "/v2024-01-01/data/mutate/production"
    body = json.loads(request.content)
    assert body == {"mutations": [{"createOrReplace": {"_id": "ai-summary-art-123", "_type": "aiSummary"}}]}


def test_create_requires_id(settings):
    store, requests = make_store(settings, lambda r: httpx.Response(200, json={}))
    with pytest.raises(ValueError):
        store.create_or_replace({"_type": "aiSummary"})
    assert requests == []


def test_patch(settings):
    store, requests = make_store(
        settings, lambda r: httpx.Response(200, json={"results": [{"id": "art-123", "operation": "update"}]})
    )

    doc = store.patch("art-123", {"hasAISummary": True})

    assert doc == {"_id": "art-123"}
    body = json.loads(requests[0].content)
    assert body == {"mutations": [{"patch": {"id": "art-123", "set": {"hasAISummary": True}}}]}


@pytest.mark.parametrize("status, retryable", [(500, True), (503, True), (429, True), (400, False), (403, False)])
def test_http_errors_mapped(settings, status, retryable):
    store, _ = make_store(
        settings,
        lambda r: httpx.Response(status, json={"error": {"description": "nope"}}),
    )

    with pytest.raises(ContentStoreError) as exc_info:
        store.patch("art-123", {"hasAISummary": True})

    assert exc_info.value.status_code == status
    assert exc_info.value.retryable is retryable
    assert "nope" in exc_info.value.message


def test_transport_error_is_retryable(settings):
    def fail(request):
        raise httpx.ConnectError("connection refused", request=request)

    store, _ = make_store(settings, fail)
    with pytest.raises(ContentStoreError) as exc_info:
        store.fetch(ARTICLE_BY_SLUG, {"slug": "x"})
    assert exc_info.value.retryable is True


def test_empty_mutation_result(settings):
    store, _ = make_store(settings, lambda r: httpx.Response(200, json={"results": []}))
    with pytest.raises(ContentStoreError) as exc_info:
        store.patch("art-123", {})
    assert exc_info.value.retryable is False

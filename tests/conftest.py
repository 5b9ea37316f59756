from __future__ import annotations

from typing import Any, Dict, Generator

import pytest


def _block(text: str, key: str) -> Dict[str, Any]:
    return {
        "_type": "block",
        "_key": key,
        "style": "normal",
        "children": [{"_type": "span", "_key": f"{key}-s", "text": text, "marks": []}],
    }


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep settings from leaking between tests through the lru_cache."""
    from contentflow.config import get_settings

    monkeypatch.setenv("SANITY_PROJECT_ID", "testproj")
    monkeypatch.setenv("SANITY_DATASET", "test")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def article_doc() -> Dict[str, Any]:
    """The art-123 article: three paragraphs, sector Energy."""
    return {
        "_id": "art-123",
        "_type": "article",
        "title": "Oil Price 2024",
        "slug": {"current": "oil-price-2024"},
        "dek": "Where crude is heading",
        "publishedAt": "2024-03-01T00:00:00Z",
        "body": [
            _block("Oil prices rose in the first quarter.", "b1"),
            _block("OPEC kept output  cuts in place.", "b2"),
            _block("Analysts expect demand to recover.", "b3"),
        ],
        "sectors": [{"_id": "sec-energy", "title": "Energy"}],
        "regions": [{"_id": "reg-mena", "title": "MENA"}],
        "tags": [{"_id": "tag-oil", "title": "Oil"}],
    }


@pytest.fixture
def interview_doc() -> Dict[str, Any]:
    return {
        "_id": "int-7",
        "_type": "interview",
        "title": "A conversation on grids",
        "slug": {"current": "grid-talk"},
        "body": [_block("We need more transmission.", "b1")],
        "interviewee": {
            "_id": "person-1",
            "name": "Dana Reyes",
            "role": "CEO",
            "organization": {"_id": "org-now", "name": "NewCo"},
            "bio": [_block("Engineer turned executive.", "bio1")],
        },
        "roleAtTime": "CTO",
        "organizationAtTime": {"_id": "org-then", "name": "OldCo"},
        "sectors": [{"_id": "sec-power", "title": "Power"}],
        "regions": [],
        "tags": None,
    }


@pytest.fixture
def content_store(article_doc, interview_doc):
    """
    Provide InMemoryContentStore seeded with one article and one interview.

    Example:
        def test_fetch(content_store):
            content_store.fail_fetch = 1
    """
    from fakes.content_store import InMemoryContentStore

    return InMemoryContentStore([article_doc, interview_doc])


@pytest.fixture
def fake_provider():
    """FakeProvider tagging summaries with the prompt's sectors."""
    from fakes.providers import FakeProvider, taxonomy_echo_responder

    return FakeProvider(responder=taxonomy_echo_responder)


@pytest.fixture
def checkpoint_store():
    from fakes.checkpoints import InMemoryCheckpointStore

    return InMemoryCheckpointStore()


@pytest.fixture
def make_workflow(content_store, checkpoint_store):
    """
    Build a SummarizationWorkflow over fakes.

    Example:
        workflow = make_workflow(FakeProvider([...]))
    """
    from contentflow.orchestration.retry import RetryPolicy
    from contentflow.orchestration.tools import build_tools
    from contentflow.orchestration.workflow import SummarizationWorkflow
    from contentflow.summarization.service import SummaryService
    from contentflow.workers.cleaner import ContentCleaner
    from contentflow.workers.fetcher import ContentFetcher
    from contentflow.workers.storage import SummaryStorage

    def _make(provider, *, store=None, checkpoints=checkpoint_store, max_attempts=3):
        store = store or content_store
        tools = build_tools(
            fetcher=ContentFetcher(store),
            cleaner=ContentCleaner(),
            summarizer=SummaryService(provider, max_attempts=max_attempts),
            storage=SummaryStorage(store),
        )
        return SummarizationWorkflow(
            tools,
            checkpoints=checkpoints,
            retry_policy=RetryPolicy(max_attempts=3, backoff_base=0.01, jitter=False),
            sleep=lambda _: None,
        )

    return _make

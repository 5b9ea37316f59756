"""
Fake implementations for testing.

Fakes over mocks: each fake implements the same interface as the real
component with simplified in-memory logic.

Key fakes:
- InMemoryContentStore: CMS without HTTP
- FakeProvider: LLM provider with scripted responses
- InMemoryCheckpointStore: step checkpoints without Redis
"""

from fakes.checkpoints import InMemoryCheckpointStore
from fakes.content_store import InMemoryContentStore
from fakes.providers import FakeProvider, summary_payload, taxonomy_echo_responder

__all__ = [
    "InMemoryCheckpointStore",
    "InMemoryContentStore",
    "FakeProvider",
    "summary_payload",
    "taxonomy_echo_responder",
]

"""
Content Store Abstraction Layer

Read and write interface the pipeline needs from the CMS. Both writes are
atomic per document; nothing here is atomic across documents.
Implementations: SanityContentStore (HTTP), InMemoryContentStore (tests).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional


class ContentStoreProvider(ABC):
    """Abstract base class for content store providers."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider name for identification and logging."""
        pass

    @abstractmethod
    def fetch(self, query: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Run a read query and return its result.

        Args:
            query: GROQ query
            params: Query parameters, referenced as ``$name`` in the query

        Returns:
            Decoded result; None when a single-document query matches nothing
        """
        pass

    @abstractmethod
    def create_or_replace(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Create a document, or replace it entirely if its ``_id`` exists.

        Args:
            document: Document with an explicit ``_id`` and ``_type``

        Returns:
            The stored document (at least ``_id``)
        """
        pass

    @abstractmethod
    def patch(self, document_id: str, set_fields: Dict[str, Any]) -> Dict[str, Any]:
        """Set fields on an existing document.

        Args:
            document_id: Target document id
            set_fields: Fields to set

        Returns:
            The patched document (at least ``_id``)
        """
        pass

    def close(self) -> None:
        """Release underlying resources."""

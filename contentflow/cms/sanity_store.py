"""
Sanity content store over the HTTP API.

Reads use the GROQ query endpoint, writes use the mutate endpoint. Each
mutate request carries a single mutation, so each write is atomic on its
own document only.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from contentflow.config import SanitySettings
from contentflow.errors import ContentStoreError

from .content_store import ContentStoreProvider

logger = logging.getLogger(__name__)


class SanityContentStore(ContentStoreProvider):
    """Content store backed by a Sanity project dataset."""

    def __init__(
        self,
        settings: SanitySettings,
        *,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialize the store.

        Args:
            settings: Project, dataset, API version and token
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        if not settings.is_configured():
            raise ValueError("SANITY_PROJECT_ID is required for SanityContentStore")

        self.settings = settings
        headers = {"Accept": "application/json"}
        token = settings.api_token.get_secret_value()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.Client(
            headers=headers,
            timeout=settings.timeout,
            transport=transport,
        )

    @property
    def provider_name(self) -> str:
        return "sanity"

    def fetch(self, query: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        url = f"{self.settings.base_url()}/data/query/{self.settings.dataset}"
        query_params = {"query": query}
        for name, value in (params or {}).items():
            query_params[f"${name}"] = json.dumps(value)

        payload = self._request("GET", url, params=query_params)
        return payload.get("result")

    def create_or_replace(self, document: Dict[str, Any]) -> Dict[str, Any]:
        if not document.get("_id"):
            raise ValueError("createOrReplace requires an explicit _id")
        return self._mutate({"createOrReplace": document}, document["_id"])

    def patch(self, document_id: str, set_fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._mutate({"patch": {"id": document_id, "set": set_fields}}, document_id)

    def close(self) -> None:
        self._client.close()

    def _mutate(self, mutation: Dict[str, Any], document_id: str) -> Dict[str, Any]:
        url = f"{self.settings.base_url(cdn=False)}/data/mutate/{self.settings.dataset}"
        payload = self._request(
            "POST",
            url,
            params={"returnIds": "true", "returnDocuments": "true"},
            json={"mutations": [mutation]},
        )

        results: List[Dict[str, Any]] = payload.get("results") or []
        if not results:
            raise ContentStoreError(
                f"Mutation returned no results for document {document_id}",
                retryable=False,
            )

        first = results[0]
        document = first.get("document") or {"_id": first.get("id", document_id)}
        logger.debug(
            "Mutation committed",
            extra={
                "document_id": document.get("_id"),
                "operation": first.get("operation"),
                "transaction_id": payload.get("transactionId"),
            },
        )
        return document

    def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise ContentStoreError(
                f"Sanity API returned {status}: {_error_detail(e.response)}",
                status_code=status,
                retryable=status >= 500 or status == 429,
            ) from e
        except httpx.HTTPError as e:
            raise ContentStoreError(f"Sanity API request failed: {e}") from e

        return response.json()


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("description") or error.get("type") or str(error)
    return str(error or body)[:200]

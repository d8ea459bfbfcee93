"""
Elasticsearch-backed audit store.

Talks to the Elasticsearch REST API directly: index creation with the
scale-down mapping, document appends and index flushes.
"""

from typing import Any

import httpx

from config.settings import AuditSettings
from scaledown.core.errors import AuditStoreError
from scaledown.utils.logging import get_logger

from .base import AuditStore

logger = get_logger(__name__)

INDEX_EXISTS_ERROR = "resource_already_exists_exception"


class SearchAuditStore(AuditStore):
    """
    Audit store writing one document per scale-down to Elasticsearch.

    Documents are always created, never updated; the index is an event log.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the search audit store.

        Args:
            url: Elasticsearch base URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.url = url
        self.timeout = timeout
        self._transport = transport

        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: AuditSettings) -> "SearchAuditStore":
        return cls(url=settings.url, timeout=settings.timeout)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = await self._get_client()
        try:
            return await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise AuditStoreError(f"{method} {path} failed: {e}") from e

    @staticmethod
    def _error_type(response: httpx.Response) -> str | None:
        try:
            error = response.json().get("error")
        except (ValueError, AttributeError):
            return None
        if isinstance(error, dict):
            return error.get("type")
        return None

    async def create_index(self, index_name: str, mapping: dict[str, Any]) -> None:
        response = await self._request("PUT", f"/{index_name}", json=mapping)

        if response.is_success:
            logger.info("Created audit index", index=index_name)
            return
        if response.status_code == 400 and self._error_type(response) == INDEX_EXISTS_ERROR:
            logger.info("Audit index already exists", index=index_name)
            return

        raise AuditStoreError(
            f"Index creation failed for {index_name}: {response.status_code} {response.text}"
        )

    async def append(
        self,
        index_name: str,
        document_type: str,
        document: dict[str, Any],
    ) -> None:
        response = await self._request(
            "POST",
            f"/{index_name}/_doc",
            json={"doc_type": document_type, **document},
        )
        if not response.is_success:
            raise AuditStoreError(
                f"Append to {index_name} failed: {response.status_code} {response.text}"
            )

    async def flush(self, index_name: str) -> None:
        response = await self._request("POST", f"/{index_name}/_flush")
        if not response.is_success:
            raise AuditStoreError(
                f"Flush of {index_name} failed: {response.status_code} {response.text}"
            )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

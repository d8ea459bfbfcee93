"""
Thanos monitoring client.

Queries the Prometheus-compatible Thanos API for the reclaimable VM count
each cloud reports for a platform.
"""

from typing import Any

import httpx

from config.settings import ThanosSettings
from scaledown.core.errors import MonitoringError
from scaledown.core.models import UtilizationSample
from scaledown.utils.logging import get_logger

from .base import MonitoringClient

logger = get_logger(__name__)


class ThanosClient(MonitoringClient):
    """
    Monitoring client backed by the Thanos query API.

    One instant query per platform; every vector element is one cloud.
    """

    def __init__(
        self,
        thanos_url: str,
        reclaim_metric: str = "oneops_cloud_reclaim_vms",
        ns_path_label: str = "nsPath",
        cloud_label: str = "cloud",
        query_timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize Thanos client.

        Args:
            thanos_url: Thanos query frontend URL
            reclaim_metric: Metric holding the per-cloud reclaimable VM count
            ns_path_label: Label carrying the manifest namespace path
            cloud_label: Label carrying the cloud name
            query_timeout: Timeout for Thanos queries
            transport: Optional httpx transport (used by tests)
        """
        self.thanos_url = thanos_url
        self.reclaim_metric = reclaim_metric
        self.ns_path_label = ns_path_label
        self.cloud_label = cloud_label
        self.query_timeout = query_timeout
        self._transport = transport

        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: ThanosSettings) -> "ThanosClient":
        return cls(
            thanos_url=settings.url,
            reclaim_metric=settings.reclaim_metric,
            ns_path_label=settings.ns_path_label,
            cloud_label=settings.cloud_label,
            query_timeout=settings.query_timeout,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.thanos_url,
                timeout=self.query_timeout,
                transport=self._transport,
            )
        return self._client

    def build_query(self, manifest_path: str) -> str:
        """Build the PromQL selector for a platform's manifest path."""
        escaped = manifest_path.replace("\\", "\\\\").replace('"', '\\"')
        return f'{self.reclaim_metric}{{{self.ns_path_label}="{escaped}"}}'

    async def _query_instant(self, query: str) -> dict[str, Any]:
        """
        Execute an instant query against Thanos.

        Raises:
            MonitoringError: On HTTP errors or failed queries
        """
        client = await self._get_client()

        try:
            response = await client.get("/api/v1/query", params={"query": query})
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise MonitoringError(f"Thanos query failed: {e}") from e

        if not isinstance(data, dict):
            raise MonitoringError(f"Unexpected Thanos response body: {data!r}")

        if data.get("status") != "success":
            error = data.get("error", "Unknown error")
            raise MonitoringError(f"Thanos query failed: {error}")

        result = data.get("data")
        if not isinstance(result, dict):
            raise MonitoringError(f"Unexpected Thanos query data: {result!r}")
        return result

    def _parse_samples(self, data: dict[str, Any]) -> list[UtilizationSample]:
        results = data.get("result")
        if not isinstance(results, list):
            raise MonitoringError(f"Unexpected Thanos query result: {results!r}")

        samples = []
        for result in results:
            try:
                cloud_id = result["metric"][self.cloud_label]
                _, raw_value = result["value"]
                samples.append(
                    UtilizationSample(
                        cloud_id=cloud_id,
                        reclaimable_vm_count=int(float(raw_value)),
                    )
                )
            except (KeyError, TypeError, ValueError, OverflowError) as e:
                raise MonitoringError(f"Malformed Thanos result {result!r}: {e}") from e
        return samples

    async def get_stats(self, manifest_path: str) -> list[UtilizationSample]:
        data = await self._query_instant(self.build_query(manifest_path))
        samples = self._parse_samples(data)

        logger.debug(
            "Fetched cloud stats",
            manifest_path=manifest_path,
            clouds=len(samples),
        )
        return samples

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

"""
Collaborator interfaces for the scale-down engine.

Responsibilities:
- Define the monitoring, deployment and audit-store contracts
- Provide in-memory implementations for tests and dry runs
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from scaledown.core.errors import AuditStoreError, DeploymentError, MonitoringError
from scaledown.core.models import DeploymentHandle, UtilizationSample
from scaledown.utils.logging import get_logger

logger = get_logger(__name__)


class MonitoringClient(ABC):
    """Source of per-cloud reclaimable capacity for a platform."""

    @abstractmethod
    async def get_stats(self, manifest_path: str) -> list[UtilizationSample]:
        """
        Fetch utilization samples for a platform.

        Args:
            manifest_path: Manifest namespace path of the platform

        Returns:
            One sample per cloud backing the platform, in backend order

        Raises:
            MonitoringError: If the stats cannot be fetched
        """

    async def close(self) -> None:
        """Release client resources."""


class DeploymentClient(ABC):
    """Backend that turns a scale-down request into a deployment."""

    @abstractmethod
    async def submit_scale_down(
        self,
        platform_id: int,
        count: int,
        acting_identity: str,
    ) -> DeploymentHandle | None:
        """
        Submit a scale-down deployment.

        Args:
            platform_id: Platform to shrink
            count: Number of compute instances to remove per cloud
            acting_identity: User the deployment is submitted as

        Returns:
            Deployment handle, or None if nothing was deployed

        Raises:
            DeploymentError: If the submission fails
        """

    async def close(self) -> None:
        """Release client resources."""


class AuditStore(ABC):
    """Append-only document store for scale-down audit records."""

    @abstractmethod
    async def create_index(self, index_name: str, mapping: dict[str, Any]) -> None:
        """Create an index; an existing index counts as success."""

    @abstractmethod
    async def append(
        self,
        index_name: str,
        document_type: str,
        document: dict[str, Any],
    ) -> None:
        """Append a new document to an index."""

    @abstractmethod
    async def flush(self, index_name: str) -> None:
        """Flush pending writes of an index."""

    async def close(self) -> None:
        """Release client resources."""


# =============================================================================
# In-memory implementations
# =============================================================================


class MockMonitoringClient(MonitoringClient):
    """
    Monitoring client serving canned samples keyed by manifest path.

    Paths without canned samples return an empty list.
    """

    def __init__(
        self,
        stats: dict[str, Iterable[UtilizationSample]] | None = None,
    ) -> None:
        self._stats = {path: list(samples) for path, samples in (stats or {}).items()}
        self._failing_paths: set[str] = set()
        self.requested_paths: list[str] = []

    def set_stats(self, manifest_path: str, samples: Iterable[UtilizationSample]) -> None:
        """Set samples returned for a manifest path."""
        self._stats[manifest_path] = list(samples)

    def set_should_fail(self, manifest_path: str) -> None:
        """Make fetches for a manifest path fail."""
        self._failing_paths.add(manifest_path)

    async def get_stats(self, manifest_path: str) -> list[UtilizationSample]:
        self.requested_paths.append(manifest_path)
        if manifest_path in self._failing_paths:
            raise MonitoringError(f"Mock stats failure for {manifest_path}")
        return list(self._stats.get(manifest_path, []))


class MockDeploymentClient(DeploymentClient):
    """
    Deployment client that hands out increasing deployment ids.

    Individual platforms can be configured to get a fixed handle, no
    handle at all, or a submission error.
    """

    _UNSET = object()

    def __init__(self, first_deployment_id: int = 1) -> None:
        self._next_id = first_deployment_id
        self._responses: dict[int, Any] = {}
        self._failing: set[int] = set()
        self.submissions: list[dict[str, Any]] = []

    def set_response(self, platform_id: int, handle: DeploymentHandle | None) -> None:
        """Fix the handle returned for a platform (None for no deployment)."""
        self._responses[platform_id] = handle

    def set_should_fail(self, platform_id: int) -> None:
        """Make submissions for a platform raise DeploymentError."""
        self._failing.add(platform_id)

    async def submit_scale_down(
        self,
        platform_id: int,
        count: int,
        acting_identity: str,
    ) -> DeploymentHandle | None:
        self.submissions.append(
            {
                "platform_id": platform_id,
                "count": count,
                "acting_identity": acting_identity,
            }
        )
        if platform_id in self._failing:
            raise DeploymentError(f"Mock deployment failure for platform {platform_id}")

        response = self._responses.get(platform_id, self._UNSET)
        if response is not self._UNSET:
            return response

        handle = DeploymentHandle(deployment_id=self._next_id)
        self._next_id += 1
        logger.debug(
            "Mock scale down submitted",
            platform_id=platform_id,
            count=count,
            deployment_id=handle.deployment_id,
        )
        return handle


class InMemoryAuditStore(AuditStore):
    """Audit store keeping documents in memory, grouped by index."""

    def __init__(self) -> None:
        self.indices: dict[str, dict[str, Any]] = {}
        self.documents: dict[str, list[dict[str, Any]]] = {}
        self.flushes: list[str] = []
        self._fail_operations: set[str] = set()

    def set_should_fail(self, operation: str) -> None:
        """Make an operation (``create_index``, ``append``, ``flush``) fail."""
        self._fail_operations.add(operation)

    def clear_failures(self) -> None:
        """Make all operations succeed again."""
        self._fail_operations.clear()

    def _check(self, operation: str) -> None:
        if operation in self._fail_operations:
            raise AuditStoreError(f"Mock audit store failure on {operation}")

    async def create_index(self, index_name: str, mapping: dict[str, Any]) -> None:
        self._check("create_index")
        self.indices.setdefault(index_name, mapping)
        self.documents.setdefault(index_name, [])

    async def append(
        self,
        index_name: str,
        document_type: str,
        document: dict[str, Any],
    ) -> None:
        self._check("append")
        self.documents.setdefault(index_name, []).append(
            {"doc_type": document_type, **document}
        )

    async def flush(self, index_name: str) -> None:
        self._check("flush")
        self.flushes.append(index_name)

    def get_documents(self, index_name: str) -> list[dict[str, Any]]:
        """Get documents appended to an index."""
        return list(self.documents.get(index_name, []))

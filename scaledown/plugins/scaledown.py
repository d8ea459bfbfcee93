"""
Scale-down crawler plugin.

Responsibilities:
- Read configuration once and wire the collaborators
- Provision the audit index at startup when auditing is enabled
- Process each crawled environment through the EnvironmentProcessor
- Flush the audit index and close clients at cleanup
"""

import json
from collections.abc import Mapping
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Any

from config.settings import AppSettings, get_settings
from scaledown.clients.base import AuditStore, DeploymentClient, MonitoringClient
from scaledown.clients.oneops import OneOpsClient
from scaledown.clients.search import SearchAuditStore
from scaledown.clients.thanos import ThanosClient
from scaledown.core.errors import AuditStoreError, IndexProvisioningError
from scaledown.core.models import EngineConfig, Environment, Organization
from scaledown.execution.coordinator import ActionCoordinator
from scaledown.monitoring.metrics import ScaleDownMetrics
from scaledown.processing.environment import EnvironmentProcessor, PlatformOutcome
from scaledown.utils.logging import get_logger

from .base import CrawlerPlugin

logger = get_logger(__name__)

PLUGIN_NAME = "OneOps-ScaleDown"
INDEX_MAPPING_PATH = Path(__file__).resolve().parent.parent / "resources" / "scale_down_index_mapping.json"


def load_index_mapping(path: Path = INDEX_MAPPING_PATH) -> dict[str, Any]:
    """Load the audit index mapping."""
    return json.loads(path.read_text(encoding="utf-8"))


class ScaleDownPlugin(CrawlerPlugin):
    """
    Crawler plugin that shrinks platforms with idle capacity on every cloud.

    A disabled plugin wires no collaborators and ignores environments.
    """

    def __init__(
        self,
        config: EngineConfig,
        monitoring_client: MonitoringClient | None = None,
        deployment_client: DeploymentClient | None = None,
        audit_store: AuditStore | None = None,
        metrics: ScaleDownMetrics | None = None,
    ) -> None:
        """
        Initialize the plugin.

        Args:
            config: Engine configuration
            monitoring_client: Source of per-cloud utilization stats
            deployment_client: Backend submitting scale-down deployments
            audit_store: Audit store, required when auditing is enabled
            metrics: Optional metrics exporter
        """
        super().__init__(PLUGIN_NAME)
        self.config = config
        self._monitoring_client = monitoring_client
        self._deployment_client = deployment_client
        self._audit_store = audit_store
        self._metrics = metrics
        self._processor: EnvironmentProcessor | None = None
        self._initialized = False

        logger.info(
            "Scale down plugin configured",
            enabled=config.plugin_enabled,
            audit_enabled=config.audit_enabled,
            index=config.index_name,
        )

        if not config.plugin_enabled:
            return

        if monitoring_client is None or deployment_client is None:
            raise ValueError("Monitoring and deployment clients are required when the plugin is enabled")

        coordinator = ActionCoordinator(
            deployment_client=deployment_client,
            config=config,
            audit_store=audit_store,
        )
        self._processor = EnvironmentProcessor(
            monitoring_client=monitoring_client,
            coordinator=coordinator,
            config=config,
            metrics=metrics,
        )

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings | None = None,
        metrics: ScaleDownMetrics | None = None,
    ) -> "ScaleDownPlugin":
        """Create a plugin wired to the HTTP collaborators from settings."""
        settings = settings or get_settings()
        config = EngineConfig.from_settings(settings)

        if not config.plugin_enabled:
            return cls(config, metrics=metrics)

        return cls(
            config,
            monitoring_client=ThanosClient.from_settings(settings.thanos),
            deployment_client=OneOpsClient.from_settings(settings.oneops),
            audit_store=SearchAuditStore.from_settings(settings.audit) if config.audit_enabled else None,
            metrics=metrics,
        )

    @property
    def is_enabled(self) -> bool:
        return self.config.plugin_enabled

    async def init(self) -> None:
        """
        Provision the audit index.

        Raises:
            IndexProvisioningError: If auditing is enabled and the index
                cannot be created
        """
        if self.is_enabled and self.config.audit_enabled:
            try:
                await self._audit_store.create_index(self.config.index_name, load_index_mapping())
            except AuditStoreError as e:
                logger.error("Error while creating audit index", index=self.config.index_name, error=str(e))
                raise IndexProvisioningError(
                    f"Error while trying to create audit index {self.config.index_name} for {self.name}"
                ) from e

        self._initialized = True

    async def process_environment(
        self,
        environment: Environment,
        organizations: Mapping[str, Organization],
    ) -> list[PlatformOutcome]:
        """
        Process one crawled environment; a disabled plugin does nothing.

        The audit index is provisioned first if ``init()`` has not succeeded yet.

        Raises:
            IndexProvisioningError: If the audit index cannot be created
        """
        if self._processor is None:
            logger.debug("Plugin disabled, skipping environment", environment_id=environment.id)
            return []
        if not self._initialized:
            await self.init()
        return await self._processor.process(environment, organizations)

    async def cleanup(self) -> None:
        """Flush the audit index and close clients; never raises on flush errors."""
        if self.is_enabled and self.config.audit_enabled:
            try:
                await self._audit_store.flush(self.config.index_name)
            except AuditStoreError as e:
                logger.error("Error in audit index flush", index=self.config.index_name, error=str(e))

        # Every client is closed even if an earlier close raises.
        async with AsyncExitStack() as stack:
            for client in (self._monitoring_client, self._deployment_client, self._audit_store):
                if client is not None:
                    stack.push_async_callback(client.close)

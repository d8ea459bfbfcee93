"""
Action Coordinator for platform scale-down.

Responsibilities:
- Submit scale-down deployments for decisions that act
- Validate the returned deployment handle
- Append an audit record attesting each validated deployment
- Report per-platform failures as result values
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from scaledown.clients.base import AuditStore, DeploymentClient
from scaledown.core.errors import AuditStoreError, DeploymentError
from scaledown.core.models import (
    EngineConfig,
    Platform,
    ScaleDownDecision,
    ScaleDownRecord,
    UtilizationSample,
)
from scaledown.utils.logging import get_logger

logger = get_logger(__name__)


class ActionStatus(str, Enum):
    """Status of a coordinated scale-down action."""

    SKIPPED = "skipped"
    COMPLETED = "completed"
    DEPLOYMENT_FAILED = "deployment_failed"
    AUDIT_WRITE_FAILED = "audit_write_failed"


class ActionError(str, Enum):
    """Failure kinds of a scale-down action."""

    DEPLOYMENT_FAILED = "deployment_failed"
    AUDIT_WRITE_FAILED = "audit_write_failed"


@dataclass
class ActionResult:
    """Result of executing one platform's decision."""

    platform_id: int
    status: ActionStatus
    started_at: datetime
    completed_at: datetime | None = None
    deployment_id: int | None = None
    audited: bool = False
    error: ActionError | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        """Check if the action completed without error."""
        return self.error is None

    @property
    def deployment_submitted(self) -> bool:
        """Check if a validated deployment exists for this action."""
        return self.deployment_id is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "platform_id": self.platform_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "deployment_id": self.deployment_id,
            "audited": self.audited,
            "error": self.error.value if self.error else None,
            "error_message": self.error_message,
            "is_success": self.is_success,
            "metadata": self.metadata,
        }


class ActionCoordinator:
    """
    Executes scale-down decisions against the deployment backend.

    The deployment is always submitted and validated before the audit
    record is written; an audit failure never undoes a deployment.
    """

    def __init__(
        self,
        deployment_client: DeploymentClient,
        config: EngineConfig,
        audit_store: AuditStore | None = None,
    ) -> None:
        """
        Initialize coordinator.

        Args:
            deployment_client: Backend that submits scale-down deployments
            config: Engine configuration
            audit_store: Audit store, required when auditing is enabled
        """
        if config.audit_enabled and audit_store is None:
            raise ValueError("An audit store is required when auditing is enabled")

        self._deployment_client = deployment_client
        self._audit_store = audit_store
        self._config = config

    async def execute(
        self,
        decision: ScaleDownDecision,
        platform: Platform,
        samples: Sequence[UtilizationSample],
        acting_identity: str,
    ) -> ActionResult:
        """
        Execute a decision for a platform.

        Args:
            decision: Decision produced by the decision engine
            platform: Platform the decision is about
            samples: Utilization samples the decision was based on
            acting_identity: User the deployment is submitted as

        Returns:
            ActionResult describing what happened
        """
        started_at = datetime.now(UTC)

        if not decision.act:
            return ActionResult(
                platform_id=platform.id,
                status=ActionStatus.SKIPPED,
                started_at=started_at,
                completed_at=datetime.now(UTC),
            )

        logger.warning(
            "Doing actual scale down for platform",
            platform_id=platform.id,
            scale_by_count=decision.scale_by_count,
            acting_identity=acting_identity,
        )

        try:
            handle = await self._deployment_client.submit_scale_down(
                platform.id,
                decision.scale_by_count,
                acting_identity,
            )
        except DeploymentError as e:
            return self._deployment_failed(platform, started_at, str(e))

        if handle is None or not handle.is_valid:
            return self._deployment_failed(
                platform,
                started_at,
                "Deployment id not valid or deployment not submitted for platform: "
                f"{platform.path}",
            )

        logger.info(
            "Deployment submitted for platform",
            platform_id=platform.id,
            platform_path=platform.path,
            deployment_id=handle.deployment_id,
        )

        result = ActionResult(
            platform_id=platform.id,
            status=ActionStatus.COMPLETED,
            started_at=started_at,
            deployment_id=handle.deployment_id,
        )

        if self._config.audit_enabled:
            record = ScaleDownRecord(
                platform=platform,
                samples=list(samples),
                potential_reclaim_count=decision.potential_reclaim_total,
                deployment_id=handle.deployment_id,
            )
            try:
                await self._audit_store.append(
                    self._config.index_name,
                    self._config.document_type,
                    record.to_dict(),
                )
                result.audited = True
            except AuditStoreError as e:
                logger.error(
                    "Audit record not written for submitted deployment",
                    platform_id=platform.id,
                    deployment_id=handle.deployment_id,
                    index=self._config.index_name,
                    error=str(e),
                )
                result.status = ActionStatus.AUDIT_WRITE_FAILED
                result.error = ActionError.AUDIT_WRITE_FAILED
                result.error_message = str(e)

        result.completed_at = datetime.now(UTC)
        return result

    def _deployment_failed(
        self,
        platform: Platform,
        started_at: datetime,
        message: str,
    ) -> ActionResult:
        logger.error(
            "Scale down deployment failed",
            platform_id=platform.id,
            platform_path=platform.path,
            error=message,
        )
        return ActionResult(
            platform_id=platform.id,
            status=ActionStatus.DEPLOYMENT_FAILED,
            started_at=started_at,
            completed_at=datetime.now(UTC),
            error=ActionError.DEPLOYMENT_FAILED,
            error_message=message,
        )

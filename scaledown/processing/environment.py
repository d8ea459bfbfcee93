"""
Environment Processor for the scale-down crawler plugin.

Responsibilities:
- Walk the platforms of a crawled environment
- Fetch per-cloud utilization stats for each platform
- Drive aggregation, decision and execution per platform
- Keep every platform's failure isolated from the others
"""

import asyncio
import time
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from scaledown.clients.base import MonitoringClient
from scaledown.core.errors import MonitoringError
from scaledown.core.models import (
    EngineConfig,
    Environment,
    Organization,
    Platform,
    PlatformContext,
    ScaleDownDecision,
)
from scaledown.decision.aggregator import aggregate, is_uneven
from scaledown.decision.engine import ScaleDownDecisionEngine
from scaledown.execution.coordinator import ActionCoordinator, ActionResult, ActionStatus
from scaledown.monitoring.metrics import ScaleDownMetrics
from scaledown.utils.logging import get_logger, log_context

logger = get_logger(__name__)


class PlatformStatus(str, Enum):
    """Outcome of processing one platform in a crawl pass."""

    NO_STATS = "no_stats"
    NOT_ELIGIBLE = "not_eligible"
    DRY_RUN = "dry_run"
    SCALED_DOWN = "scaled_down"
    FETCH_FAILED = "fetch_failed"
    DEPLOYMENT_FAILED = "deployment_failed"
    AUDIT_WRITE_FAILED = "audit_write_failed"


FAILED_STATUSES = frozenset(
    {
        PlatformStatus.FETCH_FAILED,
        PlatformStatus.DEPLOYMENT_FAILED,
        PlatformStatus.AUDIT_WRITE_FAILED,
    }
)

_ACTION_STATUS_MAP = {
    ActionStatus.COMPLETED: PlatformStatus.SCALED_DOWN,
    ActionStatus.DEPLOYMENT_FAILED: PlatformStatus.DEPLOYMENT_FAILED,
    ActionStatus.AUDIT_WRITE_FAILED: PlatformStatus.AUDIT_WRITE_FAILED,
}


@dataclass
class PlatformOutcome:
    """Per-platform result of a crawl pass."""

    platform_id: int
    platform_path: str
    status: PlatformStatus
    decision: ScaleDownDecision | None = None
    action: ActionResult | None = None
    error_message: str | None = None

    @property
    def is_failure(self) -> bool:
        return self.status in FAILED_STATUSES

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "platform_id": self.platform_id,
            "platform_path": self.platform_path,
            "status": self.status.value,
            "decision": self.decision.to_dict() if self.decision else None,
            "action": self.action.to_dict() if self.action else None,
            "error_message": self.error_message,
            "is_failure": self.is_failure,
        }


class EnvironmentProcessor:
    """
    Runs the scale-down pipeline over every platform of an environment.

    Holds no per-platform state between platforms, so platforms may be
    processed concurrently when ``max_concurrent_platforms`` is above one.
    """

    def __init__(
        self,
        monitoring_client: MonitoringClient,
        coordinator: ActionCoordinator,
        config: EngineConfig,
        decision_engine: ScaleDownDecisionEngine | None = None,
        metrics: ScaleDownMetrics | None = None,
    ) -> None:
        """
        Initialize environment processor.

        Args:
            monitoring_client: Source of per-cloud utilization samples
            coordinator: Executes decisions that act
            config: Engine configuration
            decision_engine: Decision engine (a default one if None)
            metrics: Optional metrics exporter
        """
        self._monitoring_client = monitoring_client
        self._coordinator = coordinator
        self._config = config
        self._decision_engine = decision_engine or ScaleDownDecisionEngine()
        self._metrics = metrics

    async def process(
        self,
        environment: Environment,
        organizations: Mapping[str, Organization] | None = None,
    ) -> list[PlatformOutcome]:
        """
        Process every platform of a crawled environment.

        Args:
            environment: Crawled environment
            organizations: Organization lookup table keyed by name

        Returns:
            One PlatformOutcome per platform
        """
        started = time.monotonic()
        org_name = environment.path.strip("/").split("/")[0] if environment.path else None
        organization = (organizations or {}).get(org_name) if org_name else None

        logger.info(
            "Got environment",
            environment_id=environment.id,
            environment_path=environment.full_path,
            organization=organization.name if organization else org_name,
            total_platforms=len(environment.platforms),
        )

        platforms = list(environment.platforms.values())
        with log_context(environment_id=environment.id):
            if self._config.max_concurrent_platforms > 1 and len(platforms) > 1:
                semaphore = asyncio.Semaphore(self._config.max_concurrent_platforms)

                async def bounded(platform: Platform) -> PlatformOutcome:
                    async with semaphore:
                        return await self.process_platform(platform)

                outcomes = list(await asyncio.gather(*(bounded(p) for p in platforms)))
            else:
                outcomes = [await self.process_platform(p) for p in platforms]

        duration = time.monotonic() - started
        if self._metrics:
            self._metrics.record_environment(duration)

        by_status = Counter(o.status.value for o in outcomes)
        logger.info(
            "Environment processed",
            environment_id=environment.id,
            environment_path=environment.full_path,
            duration_seconds=round(duration, 3),
            failures=sum(1 for o in outcomes if o.is_failure),
            **by_status,
        )
        return outcomes

    async def process_platform(self, platform: Platform) -> PlatformOutcome:
        """Fetch stats, decide and execute for one platform."""
        with log_context(platform_id=platform.id):
            logger.info("Processing platform", platform_path=platform.path)
            outcome = await self._process_platform(platform)

            if outcome.is_failure:
                logger.error(
                    "Error while processing platform",
                    platform_path=platform.path,
                    status=outcome.status.value,
                    error=outcome.error_message,
                )

        if self._metrics:
            scaled_by = (
                outcome.decision.scale_by_count
                if outcome.action is not None and outcome.action.deployment_submitted
                else 0
            )
            self._metrics.record_platform(outcome.status.value, scaled_by=scaled_by)
        return outcome

    async def _process_platform(self, platform: Platform) -> PlatformOutcome:
        context = PlatformContext.for_platform(platform)

        try:
            samples = await self._monitoring_client.get_stats(context.manifest_path)
        except MonitoringError as e:
            return PlatformOutcome(
                platform_id=platform.id,
                platform_path=platform.path,
                status=PlatformStatus.FETCH_FAILED,
                error_message=str(e),
            )

        context = PlatformContext.for_platform(platform, samples)
        if not context.samples:
            logger.info("Platform has no cloud stats to process", platform_path=platform.path)
            return PlatformOutcome(
                platform_id=platform.id,
                platform_path=platform.path,
                status=PlatformStatus.NO_STATS,
            )

        logger.info(
            "Processing cloud stats",
            manifest_path=context.manifest_path,
            cloud_stats=[s.to_dict() for s in context.samples],
        )
        if is_uneven(context.samples):
            logger.info(
                "The reclaim count is not even for this platform, using min of all",
                platform_path=platform.path,
            )

        scale_by_count, potential_reclaim_total = aggregate(context.samples)
        decision = self._decision_engine.decide(
            platform,
            scale_by_count,
            potential_reclaim_total,
            self._config,
        )

        if scale_by_count == 0:
            return PlatformOutcome(
                platform_id=platform.id,
                platform_path=platform.path,
                status=PlatformStatus.NOT_ELIGIBLE,
                decision=decision,
            )
        if not decision.act:
            return PlatformOutcome(
                platform_id=platform.id,
                platform_path=platform.path,
                status=PlatformStatus.DRY_RUN,
                decision=decision,
            )

        action = await self._coordinator.execute(
            decision,
            platform,
            context.samples,
            self._config.acting_identity,
        )
        return PlatformOutcome(
            platform_id=platform.id,
            platform_path=platform.path,
            status=_ACTION_STATUS_MAP[action.status],
            decision=decision,
            action=action,
            error_message=action.error_message,
        )

"""
Decision Engine for platform scale-down.

Responsibilities:
- Turn a platform's consensus reclaim count into a decision
- Apply the per-platform ``scaleDownEnabled`` gate (fail closed)
- Distinguish "not eligible" from "eligible but dry-run"
"""

from scaledown.core.models import EngineConfig, Platform, ScaleDownDecision
from scaledown.utils.logging import get_logger

logger = get_logger(__name__)


class ScaleDownDecisionEngine:
    """
    Gates scale-down actions behind configuration.

    Stateless; a single instance can be shared across platforms and
    environments.
    """

    def decide(
        self,
        platform: Platform,
        scale_by_count: int,
        potential_reclaim_total: int,
        config: EngineConfig,
    ) -> ScaleDownDecision:
        """
        Decide whether a platform should be scaled down.

        Args:
            platform: Platform being processed
            scale_by_count: Consensus reclaim count from the aggregator
            potential_reclaim_total: Informational reclaim total
            config: Engine configuration

        Returns:
            ScaleDownDecision with ``act`` set only when eligible and enabled
        """
        if scale_by_count <= 0:
            return ScaleDownDecision(
                platform_id=platform.id,
                scale_by_count=0,
                potential_reclaim_total=potential_reclaim_total,
                act=False,
            )

        enabled = config.scale_down_enabled(platform)
        if not enabled:
            logger.info(
                "Platform eligible for scale down, execution disabled (dry-run)",
                platform_id=platform.id,
                platform_path=platform.path,
                scale_by_count=scale_by_count,
                potential_reclaim_total=potential_reclaim_total,
            )
        else:
            logger.info(
                "Will scale down platform",
                platform_id=platform.id,
                platform_path=platform.path,
                scale_by_count=scale_by_count,
            )

        return ScaleDownDecision(
            platform_id=platform.id,
            scale_by_count=scale_by_count,
            potential_reclaim_total=potential_reclaim_total,
            act=enabled,
        )

"""
Prometheus metrics for the scale-down engine.

Responsibilities:
- Count processed environments and platforms by outcome
- Track deployments submitted and audit writes
- Expose metrics for Prometheus scraping
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

from scaledown.utils.logging import get_logger

logger = get_logger(__name__)


class ScaleDownMetrics:
    """
    Prometheus metrics for crawl passes of the scale-down plugin.

    Uses its own registry so several instances can coexist (tests, multiple
    plugin instances in one process).
    """

    def __init__(
        self,
        registry: CollectorRegistry | None = None,
        prefix: str = "oo_scaledown",
    ) -> None:
        """
        Initialize metrics.

        Args:
            registry: Prometheus registry (a fresh one if None)
            prefix: Prefix for all metric names
        """
        self._registry = registry or CollectorRegistry()
        self._prefix = prefix

        self.environments_processed_total = Counter(
            self._metric_name("environments_processed_total"),
            "Total number of environments processed",
            registry=self._registry,
        )

        self.environment_processing_seconds = Histogram(
            self._metric_name("environment_processing_seconds"),
            "Time taken to process one environment",
            buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
            registry=self._registry,
        )

        self.platforms_processed_total = Counter(
            self._metric_name("platforms_processed_total"),
            "Total number of platforms processed by outcome",
            ["status"],
            registry=self._registry,
        )

        self.instances_reclaimed_total = Counter(
            self._metric_name("instances_reclaimed_total"),
            "Compute instances removed per cloud by submitted scale downs",
            registry=self._registry,
        )

        logger.info("Metrics initialized", prefix=prefix)

    def _metric_name(self, name: str) -> str:
        """Generate full metric name with prefix."""
        return f"{self._prefix}_{name}"

    def record_environment(self, duration_seconds: float) -> None:
        """Record a processed environment."""
        self.environments_processed_total.inc()
        self.environment_processing_seconds.observe(duration_seconds)

    def record_platform(self, status: str, scaled_by: int = 0) -> None:
        """Record a processed platform and, if scaled, its reclaim count."""
        self.platforms_processed_total.labels(status=status).inc()
        if scaled_by > 0:
            self.instances_reclaimed_total.inc(scaled_by)

    def generate_metrics(self) -> bytes:
        """Generate Prometheus exposition output."""
        return generate_latest(self._registry)

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST

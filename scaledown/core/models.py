"""
Domain types for the scale-down engine.

Covers the host object graph handed over by the crawler (organizations,
environments, platforms), the per-cloud utilization samples returned by
the monitoring backend, and the decision/audit values produced while a
platform is processed.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from config.settings import AppSettings

SCALE_DOWN_ENABLED_KEY = "scaleDownEnabled"
DEFAULT_ACTING_IDENTITY = "OneOps-ScaleDown"


def parse_bool(value: Any) -> bool:
    """Parse a config flag; only a case-insensitive ``"true"`` is true."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).lower() == "true"


def derive_manifest_path(platform_path: str) -> str:
    """Map a platform's bom namespace path onto its manifest namespace path."""
    return platform_path.replace("/bom/", "/manifest/")


# =============================================================================
# Host object graph
# =============================================================================


@dataclass
class Organization:
    """An organization known to the crawler."""

    name: str
    full_name: str | None = None
    owner: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Organization":
        """Create from dictionary."""
        return cls(
            name=data["name"],
            full_name=data.get("full_name"),
            owner=data.get("owner"),
            metadata=data.get("metadata", {}),
        )


@dataclass
class Platform:
    """A platform inside an environment, deployed across one or more clouds."""

    id: int
    name: str
    path: str
    custom_configs: dict[str, Any] | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "custom_configs": self.custom_configs,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Platform":
        """Create from dictionary."""
        return cls(
            id=int(data["id"]),
            name=data["name"],
            path=data["path"],
            custom_configs=data.get("custom_configs"),
            metadata=data.get("metadata", {}),
        )


@dataclass
class Environment:
    """A crawled environment and its platforms keyed by platform id."""

    id: int
    name: str
    path: str
    platforms: dict[int, Platform] = field(default_factory=dict)

    @property
    def full_path(self) -> str:
        return f"{self.path}/{self.name}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Environment":
        """Create from dictionary; ``platforms`` may be a list or an id mapping."""
        raw_platforms = data.get("platforms", [])
        if isinstance(raw_platforms, Mapping):
            raw_platforms = list(raw_platforms.values())
        platforms = [Platform.from_dict(p) for p in raw_platforms]
        return cls(
            id=int(data["id"]),
            name=data["name"],
            path=data["path"],
            platforms={p.id: p for p in platforms},
        )


# =============================================================================
# Monitoring and decision values
# =============================================================================


@dataclass(frozen=True)
class UtilizationSample:
    """Reclaimable capacity reported by one cloud backing a platform."""

    cloud_id: str
    reclaimable_vm_count: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "cloud": self.cloud_id,
            "reclaim_vms": self.reclaimable_vm_count,
        }


@dataclass(frozen=True)
class PlatformContext:
    """Everything one platform's processing pass works on."""

    platform_id: int
    platform_path: str
    manifest_path: str
    samples: tuple[UtilizationSample, ...] = ()

    @classmethod
    def for_platform(
        cls,
        platform: Platform,
        samples: Sequence[UtilizationSample] = (),
    ) -> "PlatformContext":
        return cls(
            platform_id=platform.id,
            platform_path=platform.path,
            manifest_path=derive_manifest_path(platform.path),
            samples=tuple(samples),
        )


@dataclass(frozen=True)
class ScaleDownDecision:
    """Outcome of gating a platform's consensus reclaim count."""

    platform_id: int
    scale_by_count: int
    potential_reclaim_total: int
    act: bool

    def __post_init__(self) -> None:
        if self.scale_by_count < 0:
            raise ValueError(f"scale_by_count must not be negative: {self.scale_by_count}")
        if self.act and self.scale_by_count == 0:
            raise ValueError("A decision to act needs a positive scale_by_count")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "platform_id": self.platform_id,
            "scale_by_count": self.scale_by_count,
            "potential_reclaim_total": self.potential_reclaim_total,
            "act": self.act,
        }


@dataclass(frozen=True)
class DeploymentHandle:
    """Handle returned by the deployment backend for a submitted deployment."""

    deployment_id: int

    @property
    def is_valid(self) -> bool:
        return self.deployment_id > 0


@dataclass
class ScaleDownRecord:
    """Append-only audit document for one executed scale-down."""

    platform: Platform
    samples: list[UtilizationSample]
    potential_reclaim_count: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    deployment_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "platform": self.platform.to_dict(),
            "samples": [s.to_dict() for s in self.samples],
            "potential_reclaim_count": self.potential_reclaim_count,
            "deployment_id": self.deployment_id,
            "timestamp": self.timestamp.isoformat(),
        }


# =============================================================================
# Engine configuration
# =============================================================================


@dataclass(frozen=True)
class EngineConfig:
    """Immutable engine configuration, built once per plugin instance."""

    plugin_enabled: bool = False
    audit_enabled: bool = False
    index_name: str = "ooscaledown"
    document_type: str = "platform"
    acting_identity: str = DEFAULT_ACTING_IDENTITY
    custom_configs: Mapping[str, Any] | None = None
    max_concurrent_platforms: int = 1

    def scale_down_enabled(self, platform: Platform) -> bool:
        """
        Resolve the ``scaleDownEnabled`` flag for a platform.

        The platform's own custom configs win over the plugin-level ones.
        A missing map or key means disabled.
        """
        for configs in (platform.custom_configs, self.custom_configs):
            if configs is not None and SCALE_DOWN_ENABLED_KEY in configs:
                return parse_bool(configs[SCALE_DOWN_ENABLED_KEY])
        return False

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "EngineConfig":
        """Build the engine config from application settings."""
        plugin_config = settings.scaledown.plugin_config
        custom_configs = plugin_config.custom_configs
        return cls(
            plugin_enabled=plugin_config.enabled,
            audit_enabled=settings.audit.enabled,
            index_name=settings.audit.index_name,
            document_type=settings.audit.document_type,
            acting_identity=settings.scaledown.acting_user,
            custom_configs=dict(custom_configs) if custom_configs is not None else None,
            max_concurrent_platforms=settings.scaledown.max_concurrent_platforms,
        )

"""
Core types and errors for the scale-down engine.
"""

from scaledown.core.errors import (
    AuditStoreError,
    CollaboratorError,
    DeploymentError,
    IndexProvisioningError,
    MonitoringError,
    ScaleDownError,
)
from scaledown.core.models import (
    DeploymentHandle,
    EngineConfig,
    Environment,
    Organization,
    Platform,
    PlatformContext,
    ScaleDownDecision,
    ScaleDownRecord,
    UtilizationSample,
    derive_manifest_path,
    parse_bool,
)

__all__ = [
    # Errors
    "AuditStoreError",
    "CollaboratorError",
    "DeploymentError",
    "IndexProvisioningError",
    "MonitoringError",
    "ScaleDownError",
    # Models
    "DeploymentHandle",
    "EngineConfig",
    "Environment",
    "Organization",
    "Platform",
    "PlatformContext",
    "ScaleDownDecision",
    "ScaleDownRecord",
    "UtilizationSample",
    "derive_manifest_path",
    "parse_bool",
]

"""
Per-environment processing for the scale-down crawler plugin.
"""

from scaledown.processing.environment import (
    EnvironmentProcessor,
    PlatformOutcome,
    PlatformStatus,
)

__all__ = [
    "EnvironmentProcessor",
    "PlatformOutcome",
    "PlatformStatus",
]

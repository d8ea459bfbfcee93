"""
Execution layer for platform scale-down.

Submits scale-down deployments and records audit entries for them.
"""

from scaledown.execution.coordinator import (
    ActionCoordinator,
    ActionError,
    ActionResult,
    ActionStatus,
)

__all__ = [
    "ActionCoordinator",
    "ActionError",
    "ActionResult",
    "ActionStatus",
]

"""
Monitoring for the scale-down engine.
"""

from scaledown.monitoring.metrics import ScaleDownMetrics

__all__ = [
    "ScaleDownMetrics",
]

"""
Decision module for platform scale-down.

This module provides:
- Aggregator: consensus reclaim count across a platform's clouds
- Decision Engine: configuration gating of scale-down actions
"""

from .aggregator import ReclaimAggregate, aggregate, is_uneven
from .engine import ScaleDownDecisionEngine

__all__ = [
    # Aggregator
    "ReclaimAggregate",
    "aggregate",
    "is_uneven",
    # Decision Engine
    "ScaleDownDecisionEngine",
]

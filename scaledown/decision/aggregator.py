"""
Cross-cloud aggregation of reclaimable capacity.

A platform is only shrunk by an amount every eligible cloud can absorb on
its own, so the consensus reclaim count is the minimum positive per-cloud
count.
"""

from collections.abc import Iterable
from typing import NamedTuple

from scaledown.core.models import UtilizationSample


class ReclaimAggregate(NamedTuple):
    """Consensus reclaim count plus the informational reclaim total."""

    scale_by_count: int
    potential_reclaim_total: int


def aggregate(samples: Iterable[UtilizationSample]) -> ReclaimAggregate:
    """
    Fold per-cloud samples into a conservative scale-down magnitude.

    Only clouds with a positive reclaimable count take part. After each
    eligible cloud the running minimum is added to the reclaim total, so
    the total depends on sample order and must only be used for audit.

    Args:
        samples: Per-cloud utilization samples, in monitoring order

    Returns:
        ReclaimAggregate, ``(0, 0)`` when no cloud is eligible
    """
    scale_by_count = 0
    potential_reclaim_total = 0

    for sample in samples:
        count = sample.reclaimable_vm_count
        if count <= 0:
            continue
        if scale_by_count == 0 or count < scale_by_count:
            scale_by_count = count
        potential_reclaim_total += scale_by_count

    return ReclaimAggregate(scale_by_count, potential_reclaim_total)


def is_uneven(samples: Iterable[UtilizationSample]) -> bool:
    """Check whether a later eligible cloud lowers the running minimum."""
    running_min = 0
    for sample in samples:
        count = sample.reclaimable_vm_count
        if count <= 0:
            continue
        if running_min and count < running_min:
            return True
        if running_min == 0:
            running_min = count
    return False

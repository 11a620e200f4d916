"""Partition subsystem: dynamic partitioning with first/best fit.

Re-exports public symbols so callers can write::

    from memsim.partition import allocate, free, initialize
"""

from memsim.partition.allocator import (
    AllocationOutcome,
    BestFitPolicy,
    FirstFitPolicy,
    FreeOutcome,
    PartitionAlgorithm,
    PartitionState,
    PlacementPolicy,
    allocate,
    free,
    initialize,
    placement_policy,
)
from memsim.partition.regions import (
    FreeExtent,
    JobId,
    MemoryRegion,
    check_tiling,
    coalesce,
    free_extents,
)

__all__ = [
    "AllocationOutcome",
    "BestFitPolicy",
    "FirstFitPolicy",
    "FreeExtent",
    "FreeOutcome",
    "JobId",
    "MemoryRegion",
    "PartitionAlgorithm",
    "PartitionState",
    "PlacementPolicy",
    "allocate",
    "check_tiling",
    "coalesce",
    "free",
    "free_extents",
    "initialize",
    "placement_policy",
]

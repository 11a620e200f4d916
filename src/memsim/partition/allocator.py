"""Partition allocator: first-fit and best-fit placement.

The allocator is a set of pure functions over an immutable
``PartitionState``.  Each call returns a *new* state and an outcome
flag; the caller's previous state is never touched, so a driver can
keep every intermediate state for replay.

Placement policies (Strategy pattern, like the page replacement
policies):
    - **First fit**: take the free extent with the lowest address.
      Fast, but small leftovers pile up at the bottom of memory.
    - **Best fit**: take the smallest extent that is large enough,
      ties broken by address.  Keeps big holes intact for big jobs,
      at the price of many tiny unusable slivers.

Recoverable conditions are outcomes, not exceptions:
    - ``INSUFFICIENT_SPACE``: no free extent is large enough.
    - ``ALREADY_ALLOCATED``: the job must be freed before reallocating.
    - ``UNKNOWN_JOB``: freeing a job that holds nothing.

Only malformed construction inputs (non-positive sizes) raise
``ValueError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from functools import cached_property
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol

from memsim.partition.regions import (
    FreeExtent,
    JobId,
    MemoryRegion,
    check_tiling,
    coalesce,
    free_extents,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


class PartitionAlgorithm(StrEnum):
    """Placement algorithm for ``allocate``."""

    FIRST_FIT = "ff"
    BEST_FIT = "bf"


class AllocationOutcome(StrEnum):
    """Result flag of ``allocate``."""

    ALLOCATED = "allocated"
    INSUFFICIENT_SPACE = "insufficient_space"
    ALREADY_ALLOCATED = "already_allocated"


class FreeOutcome(StrEnum):
    """Result flag of ``free``."""

    FREED = "freed"
    UNKNOWN_JOB = "unknown_job"


@dataclass(frozen=True)
class PartitionState:
    """An immutable snapshot of partitioned memory.

    Attributes:
        regions: Regions in address order, tiling ``[0, total_size)``.
        allocations: Read-only mapping of job id to its region.
        total_size: Size of the whole address space.

    """

    regions: tuple[MemoryRegion, ...]
    allocations: Mapping[JobId, MemoryRegion] = field(
        default_factory=lambda: MappingProxyType({})
    )
    total_size: int = 0

    def __post_init__(self) -> None:
        """Freeze the allocation table behind a read-only proxy."""
        object.__setattr__(self, "allocations", MappingProxyType(dict(self.allocations)))

    @cached_property
    def free_extents(self) -> tuple[FreeExtent, ...]:
        """Return the maximal free holes, derived from the regions."""
        return free_extents(self.regions)

    @property
    def free_total(self) -> int:
        """Return the number of unallocated units."""
        return sum(extent.size for extent in self.free_extents)

    @property
    def allocated_total(self) -> int:
        """Return the number of units owned by jobs."""
        return self.total_size - self.free_total

    @property
    def largest_free(self) -> int:
        """Return the size of the largest hole (0 when memory is full)."""
        return max((extent.size for extent in self.free_extents), default=0)

    @property
    def utilization(self) -> float:
        """Return the allocated fraction of memory."""
        return self.allocated_total / self.total_size

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation."""
        return {
            "total_size": self.total_size,
            "regions": [region.as_dict() for region in self.regions],
            "free_extents": [extent.as_dict() for extent in self.free_extents],
            "allocations": {
                str(job_id): region.as_dict() for job_id, region in self.allocations.items()
            },
        }


# ---------------------------------------------------------------------------
# Placement Policy Protocol (Strategy pattern)
# ---------------------------------------------------------------------------


class PlacementPolicy(Protocol):
    """Interface for choosing the free extent that receives a request."""

    def choose(self, extents: Sequence[FreeExtent], size: int) -> FreeExtent | None:
        """Return the extent to carve from, or None if nothing fits."""
        ...


class FirstFitPolicy:
    """First fit: the lowest-addressed extent that is large enough."""

    def choose(self, extents: Sequence[FreeExtent], size: int) -> FreeExtent | None:
        """Return the first fitting extent in address order."""
        fitting = [extent for extent in extents if extent.size >= size]
        return min(fitting, key=lambda extent: extent.start, default=None)


class BestFitPolicy:
    """Best fit: the smallest extent that is large enough."""

    def choose(self, extents: Sequence[FreeExtent], size: int) -> FreeExtent | None:
        """Return the tightest fitting extent, ties broken by address."""
        fitting = [extent for extent in extents if extent.size >= size]
        return min(fitting, key=lambda extent: (extent.size, extent.start), default=None)


_POLICIES: dict[PartitionAlgorithm, PlacementPolicy] = {
    PartitionAlgorithm.FIRST_FIT: FirstFitPolicy(),
    PartitionAlgorithm.BEST_FIT: BestFitPolicy(),
}


def placement_policy(algorithm: PartitionAlgorithm | str) -> PlacementPolicy:
    """Return the placement policy for an algorithm name.

    Raises:
        ValueError: If the algorithm is not ``ff`` or ``bf``.

    """
    return _POLICIES[PartitionAlgorithm(algorithm)]


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def initialize(total_size: int) -> PartitionState:
    """Create a memory with a single free region ``[0, total_size)``.

    Raises:
        ValueError: If total_size is not positive.

    """
    if total_size <= 0:
        msg = f"Total memory size must be positive, got {total_size}"
        raise ValueError(msg)
    return PartitionState(regions=(MemoryRegion(start=0, size=total_size),), total_size=total_size)


def _verified(state: PartitionState) -> PartitionState:
    """Check the layout invariants of a freshly built state."""
    check_tiling(state.regions, state.total_size)
    for job_id, region in state.allocations.items():
        assert region in state.regions and region.owner == job_id, (  # noqa: S101
            f"allocation for job {job_id} does not match the region list"
        )
    return state


def allocate(
    state: PartitionState,
    algorithm: PartitionAlgorithm | str,
    job_id: JobId,
    size: int,
) -> tuple[PartitionState, AllocationOutcome]:
    """Place a job into a free extent chosen by the given algorithm.

    The chosen free region is split into an owned region at its low end
    and, when anything is left over, a free remainder.

    Args:
        state: The current memory layout.
        algorithm: ``ff`` (first fit) or ``bf`` (best fit).
        job_id: The job requesting memory.
        size: Number of units requested.

    Returns:
        The new state and the outcome.  On any outcome other than
        ``ALLOCATED`` the returned state is the input state.

    Raises:
        ValueError: If size is not positive or the algorithm is unknown.

    """
    if size <= 0:
        msg = f"Request size must be positive, got {size}"
        raise ValueError(msg)
    policy = placement_policy(algorithm)
    if job_id in state.allocations:
        return state, AllocationOutcome.ALREADY_ALLOCATED

    extent = policy.choose(state.free_extents, size)
    if extent is None:
        return state, AllocationOutcome.INSUFFICIENT_SPACE

    owned = MemoryRegion(start=extent.start, size=size, owner=job_id)
    regions: list[MemoryRegion] = []
    for region in state.regions:
        if region.is_free and region.start == extent.start:
            # Coalesced layouts hold exactly one free region per extent.
            assert region.end == extent.end  # noqa: S101
            regions.append(owned)
            if size < region.size:
                regions.append(MemoryRegion(start=owned.end, size=region.size - size))
        else:
            regions.append(region)

    new_state = PartitionState(
        regions=tuple(regions),
        allocations={**state.allocations, job_id: owned},
        total_size=state.total_size,
    )
    return _verified(new_state), AllocationOutcome.ALLOCATED


def free(state: PartitionState, job_id: JobId) -> tuple[PartitionState, FreeOutcome]:
    """Release a job's region and merge it with neighbouring holes.

    Args:
        state: The current memory layout.
        job_id: The job whose memory to release.

    Returns:
        The new state and the outcome.  ``UNKNOWN_JOB`` returns the
        input state unchanged.

    """
    owned = state.allocations.get(job_id)
    if owned is None:
        return state, FreeOutcome.UNKNOWN_JOB

    regions = coalesce(region.released() if region == owned else region for region in state.regions)
    allocations = {other: region for other, region in state.allocations.items() if other != job_id}
    new_state = PartitionState(
        regions=regions,
        allocations=allocations,
        total_size=state.total_size,
    )
    return _verified(new_state), FreeOutcome.FREED

"""Memory regions: the layout of a partitioned address space.

Dynamic partitioning carves one contiguous address range into
variable-size **regions**.  Each region is either owned by a job or
free.  The region list is the single source of truth for the layout:

    [0 ........ 130)[130 .. 190)[190 ......... 640)
       job 1           free         free

Two adjacent free regions describe the same hole twice, so after every
release the list is **coalesced**: runs of free regions collapse into
one.  The maximal holes are also exposed as **free extents**, a derived
view the placement policies search.

Invariant (checked after every operation):
    Regions sorted by ``start`` are contiguous and exactly tile
    ``[0, total_size)``: no gap, no overlap, no zero-size region.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

JobId: TypeAlias = int


@dataclass(frozen=True)
class MemoryRegion:
    """A contiguous slice of memory, either owned by a job or free.

    Attributes:
        start: First address of the region.
        size: Number of units in the region.
        owner: The job holding the region, or None when free.

    """

    start: int
    size: int
    owner: JobId | None = None

    @property
    def end(self) -> int:
        """Return the first address past the region."""
        return self.start + self.size

    @property
    def is_free(self) -> bool:
        """Return True if no job owns the region."""
        return self.owner is None

    def released(self) -> MemoryRegion:
        """Return a free copy of this region."""
        return replace(self, owner=None)

    def as_dict(self) -> dict[str, int | None]:
        """Return a JSON-friendly representation."""
        return {"start": self.start, "size": self.size, "owner": self.owner}

    def __str__(self) -> str:
        """Format as ``[start, end) owner``."""
        label = "free" if self.owner is None else f"job {self.owner}"
        return f"[{self.start}, {self.end}) {label}"


@dataclass(frozen=True)
class FreeExtent:
    """A maximal free hole ``[start, end)``."""

    start: int
    end: int

    @property
    def size(self) -> int:
        """Return the number of free units in the hole."""
        return self.end - self.start

    def as_dict(self) -> dict[str, int]:
        """Return a JSON-friendly representation."""
        return {"start": self.start, "end": self.end}

    def __str__(self) -> str:
        """Format as ``start-end``."""
        return f"{self.start}-{self.end}"


def coalesce(regions: Iterable[MemoryRegion]) -> tuple[MemoryRegion, ...]:
    """Merge every run of adjacent free regions into a single region.

    Owned regions pass through untouched.  Running this twice gives the
    same result as running it once.

    Args:
        regions: Regions in address order.

    Returns:
        The coalesced region list.

    """
    merged: list[MemoryRegion] = []
    for region in regions:
        previous = merged[-1] if merged else None
        if (
            previous is not None
            and previous.is_free
            and region.is_free
            and previous.end == region.start
        ):
            merged[-1] = MemoryRegion(start=previous.start, size=previous.size + region.size)
        else:
            merged.append(region)
    return tuple(merged)


def free_extents(regions: Iterable[MemoryRegion]) -> tuple[FreeExtent, ...]:
    """Derive the maximal free holes from a region list in one pass.

    An open candidate extent grows while adjacent free regions continue
    and is flushed on an owned region or an address gap.

    Args:
        regions: Regions in address order.

    Returns:
        Free extents in address order.

    """
    extents: list[FreeExtent] = []
    open_start: int | None = None
    open_end = 0
    for region in regions:
        if region.is_free and open_start is not None and region.start == open_end:
            open_end = region.end
            continue
        if open_start is not None:
            extents.append(FreeExtent(start=open_start, end=open_end))
            open_start = None
        if region.is_free:
            open_start, open_end = region.start, region.end
    if open_start is not None:
        extents.append(FreeExtent(start=open_start, end=open_end))
    return tuple(extents)


def check_tiling(regions: Sequence[MemoryRegion], total_size: int) -> None:
    """Assert that the regions exactly tile ``[0, total_size)``.

    A failure here is a bug in the allocator, never a user error.
    """
    cursor = 0
    for region in regions:
        assert region.size > 0, f"zero-size region at {region.start}"  # noqa: S101
        assert region.start == cursor, f"gap or overlap at {cursor}"  # noqa: S101
        cursor = region.end
    assert cursor == total_size, f"regions end at {cursor}, not {total_size}"  # noqa: S101

"""Page replacement simulator: replay an address stream against frames.

The simulator walks an address sequence once, one reference per
discrete time step, and records what happened at every step:

    address → page (address // page_size)
    page resident?   → hit, frames unchanged
    page missing?    → fault: fill the lowest empty frame, or evict the
                       victim chosen by the replacement policy

The result is a **trace**: an immutable tuple of ``SimulationStep``
records, each carrying its own snapshot of the frame array.  A display
can jump to any step without re-simulating, and nothing a caller does
to one step can leak into another.

Aggregates (fault count, fault rate) are a fold over the finished
trace, not part of the per-step algorithm.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from memsim.paging.policies import ReplacementAlgorithm, make_policy

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

DEFAULT_PAGE_SIZE = 10
DEFAULT_FRAME_COUNT = 4


@dataclass(frozen=True)
class SimulationStep:
    """One reference in a page replacement trace.

    Attributes:
        index: Discrete time of the reference (0-based).
        address: The instruction address referenced.
        page: The page holding that address.
        frames: Frame contents after the step (page or None per frame).
        faulted: True if the page was not resident.
        evicted_page: The page replaced to make room, if any.
        evicted_frame: The frame the evicted page occupied, if any.
        loaded_frame: The frame that received the page on a fault.

    """

    index: int
    address: int
    page: int
    frames: tuple[int | None, ...]
    faulted: bool
    evicted_page: int | None = None
    evicted_frame: int | None = None
    loaded_frame: int | None = None

    def frame_of(self, page: int) -> int | None:
        """Return the frame holding a page after this step, or None if on disk."""
        if page in self.frames:
            return self.frames.index(page)
        return None

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation."""
        return {
            "index": self.index,
            "address": self.address,
            "page": self.page,
            "frames": list(self.frames),
            "faulted": self.faulted,
            "evicted_page": self.evicted_page,
            "evicted_frame": self.evicted_frame,
            "loaded_frame": self.loaded_frame,
        }


def run(
    addresses: Iterable[int],
    frame_count: int = DEFAULT_FRAME_COUNT,
    algorithm: ReplacementAlgorithm | str = ReplacementAlgorithm.FIFO,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> tuple[SimulationStep, ...]:
    """Simulate demand paging over an address sequence.

    Args:
        addresses: Instruction addresses in reference order.
        frame_count: Number of physical frames.
        algorithm: ``fifo`` or ``lru``.
        page_size: Addresses per page.

    Returns:
        The full trace, one step per address.

    Raises:
        ValueError: If frame_count or page_size is not positive, an
            address is negative, or the algorithm is unknown.

    """
    if frame_count <= 0:
        msg = f"Frame count must be positive, got {frame_count}"
        raise ValueError(msg)
    if page_size <= 0:
        msg = f"Page size must be positive, got {page_size}"
        raise ValueError(msg)

    policy = make_policy(algorithm)
    frames: list[int | None] = [None] * frame_count
    trace: list[SimulationStep] = []

    for time, address in enumerate(addresses):
        if address < 0:
            msg = f"Address must not be negative, got {address} at step {time}"
            raise ValueError(msg)
        page = address // page_size
        policy.record_reference(page, time)

        if page in frames:
            trace.append(
                SimulationStep(
                    index=time,
                    address=address,
                    page=page,
                    frames=tuple(frames),
                    faulted=False,
                )
            )
            continue

        evicted_page: int | None = None
        evicted_frame: int | None = None
        if None in frames:
            target = frames.index(None)
        else:
            target = policy.select_victim(frames)
            evicted_page, evicted_frame = frames[target], target
            assert evicted_page is not None  # noqa: S101
            policy.remove_page(evicted_page)

        frames[target] = page
        policy.add_page(page)
        trace.append(
            SimulationStep(
                index=time,
                address=address,
                page=page,
                frames=tuple(frames),
                faulted=True,
                evicted_page=evicted_page,
                evicted_frame=evicted_frame,
                loaded_frame=target,
            )
        )

    return tuple(trace)


def fault_count(trace: Iterable[SimulationStep]) -> int:
    """Return the number of faulting steps in a trace."""
    return sum(1 for step in trace if step.faulted)


def hit_count(trace: Sequence[SimulationStep]) -> int:
    """Return the number of steps whose page was already resident."""
    return len(trace) - fault_count(trace)


def fault_rate(trace: Sequence[SimulationStep], precision: int = 2) -> float:
    """Return faults as a percentage of all steps.

    Args:
        trace: A finished simulation trace.
        precision: Decimal places to round the percentage to.

    Returns:
        ``round(100 * faults / steps, precision)``, or 0.0 for an
        empty trace.

    """
    if not trace:
        return 0.0
    return round(100 * fault_count(trace) / len(trace), precision)

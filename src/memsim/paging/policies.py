"""Page replacement policies: who gets evicted when frames run out.

When every frame holds a page and a new page is referenced, one
resident page must go.  The policy decides which.

Replacement Policies (Strategy pattern):
    - **FIFO**: evict the page that was *loaded* earliest, no matter
      how often it has been used since.  A plain queue.  Suffers from
      Belady's anomaly (more frames can mean more faults).
    - **LRU**: evict the page whose most recent *reference* lies
      furthest in the past.  Keeps a ``page -> time`` map and scans the
      frames in ascending order, keeping the first minimum found, so
      ties always resolve to the lowest frame.

Policies only keep bookkeeping; the simulator owns the frame array and
asks the policy for a victim frame.
"""

from collections import deque
from collections.abc import Sequence
from enum import StrEnum
from typing import Protocol


class ReplacementAlgorithm(StrEnum):
    """Page replacement algorithm for the simulator."""

    FIFO = "fifo"
    LRU = "lru"


# ---------------------------------------------------------------------------
# Replacement Policy Protocol (Strategy pattern)
# ---------------------------------------------------------------------------


class ReplacementPolicy(Protocol):
    """Interface for page replacement algorithms."""

    def record_reference(self, page: int, time: int) -> None:
        """Record that a page was referenced at a discrete time."""
        ...

    def add_page(self, page: int) -> None:
        """Record that a page was loaded into a frame."""
        ...

    def remove_page(self, page: int) -> None:
        """Record that a page was evicted from its frame."""
        ...

    def select_victim(self, frames: Sequence[int | None]) -> int:
        """Choose the frame whose page to evict.

        Returns:
            The index of the victim frame.

        Raises:
            IndexError: If no resident page is available to evict.

        """
        ...


# ---------------------------------------------------------------------------
# FIFO Policy
# ---------------------------------------------------------------------------


class FIFOPolicy:
    """First In, First Out: evict the earliest loaded page."""

    def __init__(self) -> None:
        """Create an empty FIFO policy."""
        self._queue: deque[int] = deque()

    @property
    def load_order(self) -> list[int]:
        """Return resident pages, oldest load first."""
        return list(self._queue)

    def record_reference(self, page: int, time: int) -> None:
        """FIFO ignores references: order is purely by load time."""

    def add_page(self, page: int) -> None:
        """Append a newly loaded page to the back of the queue."""
        self._queue.append(page)

    def remove_page(self, page: int) -> None:
        """Drop an evicted page from the queue."""
        self._queue.remove(page)

    def select_victim(self, frames: Sequence[int | None]) -> int:
        """Return the frame holding the head of the load queue.

        Raises:
            IndexError: If no pages are tracked.

        """
        if not self._queue:
            msg = "No pages to evict"
            raise IndexError(msg)
        return list(frames).index(self._queue[0])


# ---------------------------------------------------------------------------
# LRU Policy
# ---------------------------------------------------------------------------


class LRUPolicy:
    """Least Recently Used: evict the page referenced longest ago."""

    def __init__(self) -> None:
        """Create an empty LRU policy."""
        self._last_used: dict[int, int] = {}

    def last_reference(self, page: int) -> int | None:
        """Return the time a page was last referenced, if ever."""
        return self._last_used.get(page)

    def record_reference(self, page: int, time: int) -> None:
        """Stamp the page with the time of this reference."""
        self._last_used[page] = time

    def add_page(self, page: int) -> None:
        """Loading needs no extra bookkeeping; the reference already counted."""

    def remove_page(self, page: int) -> None:
        """Eviction keeps the history; only resident pages are compared."""

    def select_victim(self, frames: Sequence[int | None]) -> int:
        """Return the frame whose page has the oldest reference time.

        Raises:
            IndexError: If every frame is empty.

        """
        victim: int | None = None
        oldest = 0
        for index, page in enumerate(frames):
            if page is None:
                continue
            used = self._last_used.get(page, -1)
            if victim is None or used < oldest:
                victim, oldest = index, used
        if victim is None:
            msg = "No pages to evict"
            raise IndexError(msg)
        return victim


def make_policy(algorithm: ReplacementAlgorithm | str) -> FIFOPolicy | LRUPolicy:
    """Create a fresh policy for an algorithm name.

    Raises:
        ValueError: If the algorithm is not ``fifo`` or ``lru``.

    """
    if ReplacementAlgorithm(algorithm) is ReplacementAlgorithm.FIFO:
        return FIFOPolicy()
    return LRUPolicy()

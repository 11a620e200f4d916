"""Paging subsystem: reference generation and page replacement.

Re-exports public symbols so callers can write::

    from memsim.paging import generate_addresses, run
"""

from memsim.paging.generator import DEFAULT_SEQUENCE_LENGTH, generate_addresses
from memsim.paging.policies import (
    FIFOPolicy,
    LRUPolicy,
    ReplacementAlgorithm,
    ReplacementPolicy,
    make_policy,
)
from memsim.paging.simulator import (
    DEFAULT_FRAME_COUNT,
    DEFAULT_PAGE_SIZE,
    SimulationStep,
    fault_count,
    fault_rate,
    hit_count,
    run,
)

__all__ = [
    "DEFAULT_FRAME_COUNT",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_SEQUENCE_LENGTH",
    "FIFOPolicy",
    "LRUPolicy",
    "ReplacementAlgorithm",
    "ReplacementPolicy",
    "SimulationStep",
    "fault_count",
    "fault_rate",
    "generate_addresses",
    "hit_count",
    "make_policy",
    "run",
]

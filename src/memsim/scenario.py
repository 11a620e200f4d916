"""Scenarios and sessions: step-by-step drivers for both simulators.

The simulators themselves are pure functions.  A display needs more:
a script to follow, a cursor that moves forward (and back), and a
narration of what each step did.  This module provides that layer.

Key ideas:
    - **Scripts are data**: a partition scenario is a tuple of
      ``PartitionStep`` values; the reference scenario is
      ``REFERENCE_SCRIPT``.
    - **Replay once, scrub freely**: a session computes the whole run
      up front.  Every record carries its own immutable state, so
      moving the cursor never re-simulates.
    - **Narrate on first visit**: the first time the cursor reaches a
      step, one line is appended to the session's ``Logger``, tagged
      with the step's 0-based index.  Scrubbing back and forth does not
      duplicate lines, and a reset only drops the session's own lines
      from a shared logger.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, TypeAlias

from memsim.logging import Logger, LogLevel
from memsim.paging.generator import DEFAULT_SEQUENCE_LENGTH, generate_addresses
from memsim.paging.policies import ReplacementAlgorithm
from memsim.paging.simulator import (
    DEFAULT_FRAME_COUNT,
    DEFAULT_PAGE_SIZE,
    SimulationStep,
    fault_count,
    fault_rate,
    run,
)
from memsim.partition.allocator import (
    AllocationOutcome,
    FreeOutcome,
    PartitionAlgorithm,
    PartitionState,
    allocate,
    free,
    initialize,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from memsim.config import SimulatorConfig

DEFAULT_TOTAL_MEMORY = 640

Outcome: TypeAlias = AllocationOutcome | FreeOutcome


class StepKind(StrEnum):
    """The operation a partition script step performs."""

    ALLOCATE = "allocate"
    FREE = "free"


@dataclass(frozen=True)
class PartitionStep:
    """One line of a partition script.

    Attributes:
        kind: Allocate or free.
        job_id: The job the step concerns.
        size: Units requested (allocate steps only).

    """

    kind: StepKind
    job_id: int
    size: int | None = None

    def __post_init__(self) -> None:
        """Reject allocate steps without a size.

        Raises:
            ValueError: If an allocate step has no size.

        """
        if self.kind is StepKind.ALLOCATE and self.size is None:
            msg = f"Allocate step for job {self.job_id} needs a size"
            raise ValueError(msg)

    def __str__(self) -> str:
        """Format as ``allocate job 1 (130)`` or ``free job 2``."""
        if self.kind is StepKind.ALLOCATE:
            return f"allocate job {self.job_id} ({self.size})"
        return f"free job {self.job_id}"


REFERENCE_SCRIPT: tuple[PartitionStep, ...] = (
    PartitionStep(StepKind.ALLOCATE, 1, 130),
    PartitionStep(StepKind.ALLOCATE, 2, 60),
    PartitionStep(StepKind.ALLOCATE, 3, 100),
    PartitionStep(StepKind.FREE, 2),
    PartitionStep(StepKind.ALLOCATE, 4, 200),
    PartitionStep(StepKind.FREE, 3),
    PartitionStep(StepKind.FREE, 1),
    PartitionStep(StepKind.ALLOCATE, 5, 140),
    PartitionStep(StepKind.ALLOCATE, 6, 60),
    PartitionStep(StepKind.ALLOCATE, 7, 50),
    PartitionStep(StepKind.FREE, 6),
)


@dataclass(frozen=True)
class PartitionRecord:
    """The result of executing one script step."""

    step: PartitionStep
    state: PartitionState
    outcome: Outcome

    @property
    def succeeded(self) -> bool:
        """Return True if the step allocated or freed memory."""
        return self.outcome in (AllocationOutcome.ALLOCATED, FreeOutcome.FREED)


def execute_step(
    state: PartitionState,
    algorithm: PartitionAlgorithm | str,
    step: PartitionStep,
) -> tuple[PartitionState, Outcome]:
    """Apply one script step to a state."""
    if step.kind is StepKind.ALLOCATE:
        assert step.size is not None  # noqa: S101
        return allocate(state, algorithm, step.job_id, step.size)
    return free(state, step.job_id)


def replay(
    script: Sequence[PartitionStep] = REFERENCE_SCRIPT,
    algorithm: PartitionAlgorithm | str = PartitionAlgorithm.FIRST_FIT,
    total_size: int = DEFAULT_TOTAL_MEMORY,
) -> tuple[PartitionRecord, ...]:
    """Run a whole script from a fresh memory and keep every state."""
    state = initialize(total_size)
    records: list[PartitionRecord] = []
    for step in script:
        state, outcome = execute_step(state, algorithm, step)
        records.append(PartitionRecord(step=step, state=state, outcome=outcome))
    return tuple(records)


# -- Narration ----------------------------------------------------------------


def describe_partition_step(record: PartitionRecord) -> str:
    """Return one line of narration for a partition step."""
    step = record.step
    if step.kind is StepKind.ALLOCATE:
        request = f"Job {step.job_id} requests {step.size}"
        if record.outcome is AllocationOutcome.ALLOCATED:
            region = record.state.allocations[step.job_id]
            return f"{request} - allocated {region.start}-{region.end}"
        if record.outcome is AllocationOutcome.ALREADY_ALLOCATED:
            return f"{request} - failed, job already holds memory"
        return f"{request} - failed, no free extent is large enough"
    if record.outcome is FreeOutcome.FREED:
        return f"Job {step.job_id} releases its memory"
    return f"Job {step.job_id} release ignored - unknown job"


def describe_simulation_step(step: SimulationStep) -> str:
    """Return one line of narration for a page reference."""
    line = f"Instruction #{step.index}: address {step.address} -> page {step.page}"
    if not step.faulted:
        return f"{line} - hit"
    if step.evicted_page is None:
        return f"{line} - page fault, loaded into free frame {step.loaded_frame}"
    return f"{line} - page fault, replaced page {step.evicted_page} (frame {step.evicted_frame})"


# -- Sessions -----------------------------------------------------------------


class PartitionSession:
    """A cursor over a replayed partition script.

    Position 0 is the initial memory; position ``n`` is the memory after
    the first ``n`` steps.
    """

    SOURCE = "partition"

    def __init__(
        self,
        *,
        algorithm: PartitionAlgorithm | str = PartitionAlgorithm.FIRST_FIT,
        total_size: int = DEFAULT_TOTAL_MEMORY,
        script: Sequence[PartitionStep] = REFERENCE_SCRIPT,
        logger: Logger | None = None,
    ) -> None:
        """Create a session and replay the script.

        Raises:
            ValueError: If total_size is not positive or the algorithm
                is unknown.

        """
        self._total_size = total_size
        self._script = tuple(script)
        self._logger = logger if logger is not None else Logger()
        self._initial = initialize(total_size)
        self.reset(algorithm=algorithm)

    @classmethod
    def from_config(cls, config: SimulatorConfig) -> PartitionSession:
        """Create a reference-script session sized by a configuration."""
        return cls(algorithm=config.partition_algorithm, total_size=config.total_memory)

    @property
    def algorithm(self) -> PartitionAlgorithm:
        """Return the placement algorithm in use."""
        return self._algorithm

    @property
    def script(self) -> tuple[PartitionStep, ...]:
        """Return the scenario script."""
        return self._script

    @property
    def records(self) -> tuple[PartitionRecord, ...]:
        """Return the full replay."""
        return self._records

    @property
    def logger(self) -> Logger:
        """Return the narration log."""
        return self._logger

    @property
    def position(self) -> int:
        """Return the number of steps executed so far."""
        return self._position

    @property
    def finished(self) -> bool:
        """Return True once every script step has been executed."""
        return self._position >= len(self._records)

    @property
    def state(self) -> PartitionState:
        """Return the memory at the current position."""
        if self._position == 0:
            return self._initial
        return self._records[self._position - 1].state

    def reset(self, *, algorithm: PartitionAlgorithm | str | None = None) -> None:
        """Rewind to the initial memory, optionally switching algorithm."""
        if algorithm is not None:
            self._algorithm = PartitionAlgorithm(algorithm)
        self._records = replay(self._script, self._algorithm, self._total_size)
        self._position = 0
        self._narrated = 0
        self._logger.discard(self.SOURCE)
        self._logger.log(
            LogLevel.INFO,
            f"Initial state: {self._total_size} units free ({self._algorithm.name})",
            source=self.SOURCE,
        )

    def step(self) -> PartitionRecord | None:
        """Execute the next script step, or return None when finished."""
        if self.finished:
            return None
        self.seek(self._position + 1)
        return self._records[self._position - 1]

    def run_all(self) -> list[PartitionRecord]:
        """Execute every remaining step and return their records."""
        start = self._position
        self.seek(len(self._records))
        return list(self._records[start:])

    def seek(self, position: int) -> PartitionState:
        """Move the cursor to any position, forward or backward.

        Raises:
            ValueError: If position is outside ``[0, len(script)]``.

        """
        if not 0 <= position <= len(self._records):
            msg = f"Position {position} outside 0..{len(self._records)}"
            raise ValueError(msg)
        self._position = position
        while self._narrated < position:
            index = self._narrated
            record = self._records[index]
            level = LogLevel.INFO if record.succeeded else LogLevel.WARNING
            self._narrated += 1
            self._logger.log(
                level,
                describe_partition_step(record),
                source=self.SOURCE,
                step=index,
            )
        return self.state


class PagingSession:
    """A cursor over a page replacement trace.

    Position 0 is before the first reference; position ``n`` shows the
    frames after the first ``n`` references.
    """

    SOURCE = "paging"

    def __init__(
        self,
        *,
        algorithm: ReplacementAlgorithm | str = ReplacementAlgorithm.FIFO,
        frame_count: int = DEFAULT_FRAME_COUNT,
        page_size: int = DEFAULT_PAGE_SIZE,
        addresses: Sequence[int] | None = None,
        length: int = DEFAULT_SEQUENCE_LENGTH,
        rng: random.Random | None = None,
        logger: Logger | None = None,
    ) -> None:
        """Create a session, generating addresses when none are given.

        Raises:
            ValueError: If a size is not positive or the algorithm is
                unknown.

        """
        self._frame_count = frame_count
        self._page_size = page_size
        self._length = length
        self._rng = rng if rng is not None else random.Random()  # noqa: S311
        self._addresses = (
            tuple(addresses)
            if addresses is not None
            else tuple(generate_addresses(length, rng=self._rng))
        )
        self._logger = logger if logger is not None else Logger()
        self.reset(algorithm=algorithm)

    @classmethod
    def from_config(cls, config: SimulatorConfig) -> PagingSession:
        """Create a session sized and seeded by a configuration."""
        return cls(
            algorithm=config.replacement_algorithm,
            frame_count=config.frame_count,
            page_size=config.page_size,
            length=config.sequence_length,
            rng=random.Random(config.seed),  # noqa: S311
        )

    @property
    def algorithm(self) -> ReplacementAlgorithm:
        """Return the replacement algorithm in use."""
        return self._algorithm

    @property
    def frame_count(self) -> int:
        """Return the number of frames."""
        return self._frame_count

    @property
    def addresses(self) -> tuple[int, ...]:
        """Return the address sequence being replayed."""
        return self._addresses

    @property
    def trace(self) -> tuple[SimulationStep, ...]:
        """Return the full trace."""
        return self._trace

    @property
    def logger(self) -> Logger:
        """Return the narration log."""
        return self._logger

    @property
    def position(self) -> int:
        """Return the number of references shown so far."""
        return self._position

    @property
    def finished(self) -> bool:
        """Return True once every reference has been shown."""
        return self._position >= len(self._trace)

    @property
    def current(self) -> SimulationStep | None:
        """Return the most recently shown step, or None at the start."""
        if self._position == 0:
            return None
        return self._trace[self._position - 1]

    @property
    def faults_so_far(self) -> int:
        """Return the number of faults up to the current position."""
        return fault_count(self._trace[: self._position])

    @property
    def fault_count(self) -> int:
        """Return the number of faults in the whole trace."""
        return fault_count(self._trace)

    @property
    def fault_rate(self) -> float:
        """Return the fault percentage of the whole trace."""
        return fault_rate(self._trace)

    def reset(
        self,
        *,
        algorithm: ReplacementAlgorithm | str | None = None,
        regenerate: bool = False,
    ) -> None:
        """Rewind to the start, optionally switching algorithm or addresses."""
        if algorithm is not None:
            self._algorithm = ReplacementAlgorithm(algorithm)
        if regenerate:
            self._addresses = tuple(generate_addresses(self._length, rng=self._rng))
        self._trace = run(
            self._addresses, self._frame_count, self._algorithm, page_size=self._page_size
        )
        self._position = 0
        self._narrated = 0
        self._logger.discard(self.SOURCE)
        self._logger.log(
            LogLevel.INFO,
            f"{len(self._addresses)} references, {self._frame_count} frames, "
            f"page size {self._page_size} ({self._algorithm.name})",
            source=self.SOURCE,
        )

    def advance(self) -> SimulationStep | None:
        """Show the next reference, or return None when finished."""
        if self.finished:
            return None
        self.seek(self._position + 1)
        return self.current

    def run_all(self) -> list[SimulationStep]:
        """Show every remaining reference and return their steps."""
        start = self._position
        self.seek(len(self._trace))
        return list(self._trace[start:])

    def seek(self, position: int) -> SimulationStep | None:
        """Move the cursor to any position, forward or backward.

        Raises:
            ValueError: If position is outside ``[0, len(trace)]``.

        """
        if not 0 <= position <= len(self._trace):
            msg = f"Position {position} outside 0..{len(self._trace)}"
            raise ValueError(msg)
        self._position = position
        while self._narrated < position:
            step = self._trace[self._narrated]
            level = LogLevel.WARNING if step.evicted_page is not None else LogLevel.INFO
            self._narrated += 1
            self._logger.log(
                level,
                describe_simulation_step(step),
                source=self.SOURCE,
                step=step.index,
            )
        return self.current

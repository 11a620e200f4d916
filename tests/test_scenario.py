"""Tests for scenario replay, sessions, and narration.

Sessions are the drivers a display talks to: they replay a scenario
once and let the caller move a cursor forward and backward, narrating
each step the first time it is reached.
"""

import random

import pytest

from memsim.config import SimulatorConfig
from memsim.logging import Logger, LogLevel
from memsim.paging.policies import ReplacementAlgorithm
from memsim.paging.simulator import SimulationStep
from memsim.partition.allocator import (
    AllocationOutcome,
    FreeOutcome,
    PartitionAlgorithm,
    initialize,
)
from memsim.scenario import (
    REFERENCE_SCRIPT,
    PagingSession,
    PartitionRecord,
    PartitionSession,
    PartitionStep,
    StepKind,
    describe_partition_step,
    describe_simulation_step,
    execute_step,
    replay,
)

STEPS = len(REFERENCE_SCRIPT)


class TestPartitionStep:
    """Verify script step values."""

    def test_allocate_requires_size(self) -> None:
        """An allocate step without a size is malformed."""
        with pytest.raises(ValueError, match="size"):
            PartitionStep(StepKind.ALLOCATE, 1)

    def test_str(self) -> None:
        """Steps have a readable form."""
        assert str(PartitionStep(StepKind.ALLOCATE, 1, 130)) == "allocate job 1 (130)"
        assert str(PartitionStep(StepKind.FREE, 2)) == "free job 2"


class TestExecuteStep:
    """Verify dispatch of one script step."""

    def test_allocate_step(self) -> None:
        """Allocate steps call the allocator."""
        _, outcome = execute_step(
            initialize(100), "ff", PartitionStep(StepKind.ALLOCATE, 1, 10)
        )
        assert outcome is AllocationOutcome.ALLOCATED

    def test_free_step(self) -> None:
        """Free steps call the release path."""
        _, outcome = execute_step(initialize(100), "ff", PartitionStep(StepKind.FREE, 1))
        assert outcome is FreeOutcome.UNKNOWN_JOB

    def test_failed_allocation_is_recorded(self) -> None:
        """A too-large request shows up as a failed record."""
        script = (PartitionStep(StepKind.ALLOCATE, 1, 500),)
        (record,) = replay(script, "ff", 100)
        assert record.outcome is AllocationOutcome.INSUFFICIENT_SPACE
        assert not record.succeeded


class TestNarration:
    """Verify the human-readable step descriptions."""

    def test_allocation_line(self) -> None:
        """Successful allocations name the placed range."""
        record = replay(REFERENCE_SCRIPT[:1])[0]
        assert describe_partition_step(record) == "Job 1 requests 130 - allocated 0-130"

    def test_failed_allocation_line(self) -> None:
        """Failed allocations say why."""
        state = initialize(100)
        record = PartitionRecord(
            step=PartitionStep(StepKind.ALLOCATE, 1, 500),
            state=state,
            outcome=AllocationOutcome.INSUFFICIENT_SPACE,
        )
        assert "failed" in describe_partition_step(record)

    def test_release_lines(self) -> None:
        """Known and unknown releases read differently."""
        state = initialize(100)
        freed = PartitionRecord(PartitionStep(StepKind.FREE, 2), state, FreeOutcome.FREED)
        unknown = PartitionRecord(PartitionStep(StepKind.FREE, 9), state, FreeOutcome.UNKNOWN_JOB)
        assert describe_partition_step(freed) == "Job 2 releases its memory"
        assert "unknown job" in describe_partition_step(unknown)

    def test_paging_lines(self) -> None:
        """Hits, cold faults and replacements read differently."""
        hit = SimulationStep(index=3, address=42, page=4, frames=(4,), faulted=False)
        cold = SimulationStep(
            index=0, address=42, page=4, frames=(4, None), faulted=True, loaded_frame=0
        )
        swap = SimulationStep(
            index=5,
            address=70,
            page=7,
            frames=(7,),
            faulted=True,
            evicted_page=4,
            evicted_frame=0,
            loaded_frame=0,
        )
        assert describe_simulation_step(hit).endswith("- hit")
        assert "free frame 0" in describe_simulation_step(cold)
        assert "replaced page 4 (frame 0)" in describe_simulation_step(swap)


class TestPartitionSession:
    """Verify the partition cursor."""

    def test_starts_at_initial_memory(self) -> None:
        """Position 0 is the untouched memory."""
        session = PartitionSession()
        assert session.position == 0
        assert session.state == initialize(640)
        assert not session.finished

    def test_step_advances(self) -> None:
        """Each step moves the cursor by one."""
        session = PartitionSession()
        record = session.step()
        assert record is not None
        assert record.step == REFERENCE_SCRIPT[0]
        assert session.position == 1
        assert session.state is record.state

    def test_run_all_finishes(self) -> None:
        """Running all steps reaches the end of the script."""
        session = PartitionSession()
        session.step()
        remaining = session.run_all()
        assert len(remaining) == STEPS - 1
        assert session.finished
        assert session.step() is None

    def test_seek_backward_and_forward(self) -> None:
        """The cursor can scrub to any earlier or later position."""
        session = PartitionSession()
        session.run_all()
        assert session.seek(0) == initialize(640)
        assert session.seek(4) is session.records[3].state

    def test_seek_out_of_range_raises(self) -> None:
        """Positions outside the script are rejected."""
        session = PartitionSession()
        with pytest.raises(ValueError, match="outside"):
            session.seek(STEPS + 1)

    def test_narration_written_once(self) -> None:
        """Scrubbing back and forward does not duplicate narration."""
        session = PartitionSession()
        session.seek(3)
        session.seek(1)
        session.seek(3)
        # Initial line plus one per step reached.
        assert len(session.logger) == 1 + 3

    def test_reset_switches_algorithm(self) -> None:
        """Reset rewinds and can switch the placement algorithm."""
        session = PartitionSession()
        session.run_all()
        session.reset(algorithm="bf")
        assert session.algorithm is PartitionAlgorithm.BEST_FIT
        assert session.position == 0
        assert len(session.logger) == 1

    def test_failures_logged_as_warnings(self) -> None:
        """Failed steps are narrated at WARNING level."""
        script = (
            PartitionStep(StepKind.ALLOCATE, 1, 80),
            PartitionStep(StepKind.ALLOCATE, 2, 80),
        )
        session = PartitionSession(total_size=100, script=script)
        session.run_all()
        warnings = session.logger.filter(min_level=LogLevel.WARNING)
        assert len(warnings) == 1
        assert warnings[0].step == len(script) - 1

    def test_shared_logger(self) -> None:
        """A caller-supplied logger receives the narration."""
        logger = Logger()
        PartitionSession(logger=logger).step()
        assert [entry.source for entry in logger.entries] == ["partition", "partition"]

    def test_reset_keeps_other_sources(self) -> None:
        """Sessions sharing a logger never erase each other's lines."""
        logger = Logger()
        partition = PartitionSession(logger=logger)
        partition.seek(3)
        paging = PagingSession(addresses=[0, 10], frame_count=2, logger=logger)
        partition.seek(5)
        assert len(logger.filter(source="partition")) == 1 + 5
        assert len(logger.filter(source="paging")) == 1

        paging.reset()
        assert len(logger.filter(source="partition")) == 1 + 5
        partition.reset()
        assert len(logger.filter(source="partition")) == 1
        assert len(logger.filter(source="paging")) == 1

    def test_steps_numbered_like_paging(self) -> None:
        """Both simulators tag their first step with index 0."""
        logger = Logger()
        PartitionSession(logger=logger).step()
        PagingSession(addresses=[0], frame_count=1, logger=logger).advance()
        firsts = [entry.step for entry in logger.entries if entry.step is not None]
        assert firsts == [0, 0]

    def test_from_config(self) -> None:
        """Sessions take their size and algorithm from a config."""
        config = SimulatorConfig(total_memory=1000, partition_algorithm="bf")
        session = PartitionSession.from_config(config)
        assert session.algorithm is PartitionAlgorithm.BEST_FIT
        assert session.state.total_size == 1000


class TestPagingSession:
    """Verify the paging cursor."""

    def test_uses_given_addresses(self) -> None:
        """An explicit address list is replayed as given."""
        session = PagingSession(addresses=[0, 10, 20], frame_count=2)
        assert session.addresses == (0, 10, 20)
        assert len(session.trace) == 3

    def test_generates_when_no_addresses(self) -> None:
        """Without addresses, a reference stream is generated."""
        session = PagingSession(rng=random.Random(1))
        expected_length = 320
        assert len(session.addresses) == expected_length

    def test_advance_and_current(self) -> None:
        """Advancing shows the next step."""
        session = PagingSession(addresses=[0, 10], frame_count=2)
        assert session.current is None
        step = session.advance()
        assert step is session.trace[0]
        assert session.current is step

    def test_advance_past_end_returns_none(self) -> None:
        """There is nothing after the last reference."""
        session = PagingSession(addresses=[0], frame_count=1)
        session.run_all()
        assert session.finished
        assert session.advance() is None

    def test_faults_so_far(self) -> None:
        """Faults are counted up to the cursor."""
        session = PagingSession(addresses=[0, 5, 10], frame_count=2)
        session.seek(2)
        assert session.faults_so_far == 1
        assert session.fault_count == 2

    def test_fault_rate(self) -> None:
        """The whole-trace fault rate is exposed."""
        session = PagingSession(addresses=[0, 5, 10, 15], frame_count=2)
        assert session.fault_rate == pytest.approx(50.0)

    def test_reset_keeps_addresses_unless_regenerated(self) -> None:
        """Switching algorithm replays the same stream."""
        session = PagingSession(rng=random.Random(4))
        before = session.addresses
        session.reset(algorithm="lru")
        assert session.addresses == before
        assert session.algorithm is ReplacementAlgorithm.LRU
        session.reset(regenerate=True)
        assert session.addresses != before

    def test_evictions_logged_as_warnings(self) -> None:
        """Replacements are narrated at WARNING level."""
        session = PagingSession(addresses=[0, 10, 20], frame_count=2)
        session.run_all()
        warnings = session.logger.filter(min_level=LogLevel.WARNING, source="paging")
        assert len(warnings) == 1
        assert warnings[0].step == 2

    def test_seek_out_of_range_raises(self) -> None:
        """Positions outside the trace are rejected."""
        session = PagingSession(addresses=[0], frame_count=1)
        with pytest.raises(ValueError, match="outside"):
            session.seek(-1)

    def test_from_config_is_seeded(self) -> None:
        """Two sessions from the same seeded config see the same stream."""
        config = SimulatorConfig(seed=123, replacement_algorithm="lru")
        first = PagingSession.from_config(config)
        second = PagingSession.from_config(config)
        assert first.addresses == second.addresses
        assert first.trace == second.trace
        assert first.algorithm is ReplacementAlgorithm.LRU

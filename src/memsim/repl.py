"""Interactive console for stepping through both simulators.

The console is a thin driver: it owns one ``PartitionSession`` and one
``PagingSession``, turns typed commands into cursor moves, and renders
the state the sessions return.

Design choices:
    - **Returns strings, not prints.**  ``Console.execute()`` is fully
      testable; ``run()`` is the thin I/O loop around it.
    - **Command dispatch via a dict.**  Adding a command means writing a
      method and adding one dict entry.
    - **Bad input never kills the loop.**  ``ValueError`` from the
      simulators becomes an ``Error:`` line.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, TypeAlias

from memsim.config import ConfigError, SimulatorConfig, load_config
from memsim.scenario import (
    PagingSession,
    PartitionSession,
    describe_partition_step,
    describe_simulation_step,
)

if TYPE_CHECKING:
    from memsim.partition.allocator import PartitionState

_Handler: TypeAlias = Callable[[list[str]], str]

_BANNER_WIDTH = 38


def format_banner(config: SimulatorConfig) -> str:
    """Return the startup banner describing the loaded scenario."""
    border = "=" * _BANNER_WIDTH
    return (
        f"\n  {border}\n         memsim v0.1.0\n  Partitioning & page replacement\n  {border}\n\n"
        f"  Memory: {config.total_memory} units ({config.partition_algorithm.name})\n"
        f"  Paging: {config.sequence_length} addresses, {config.page_count} pages, "
        f"{config.frame_count} frames ({config.replacement_algorithm.name})\n"
        "\nType 'help' for commands, 'exit' to quit.\n"
    )


def render_memory(state: PartitionState) -> str:
    """Render regions, free extents, and the allocation table."""
    lines = [str(region) for region in state.regions]
    free = ", ".join(str(extent) for extent in state.free_extents) or "none"
    lines.append(f"Free extents: {free}")
    for job_id, region in sorted(state.allocations.items()):
        lines.append(f"Job {job_id}: {region.start}-{region.end} ({region.size})")
    lines.append(f"Utilization: {state.utilization:.0%}")
    return "\n".join(lines)


class Console:
    """Command interpreter over a partition and a paging session."""

    EXIT_SENTINEL = "__EXIT__"

    def __init__(self, *, config: SimulatorConfig | None = None) -> None:
        """Create a console with fresh sessions for the given config."""
        self._config = config if config is not None else SimulatorConfig()
        self._partition = PartitionSession.from_config(self._config)
        self._paging = PagingSession.from_config(self._config)
        self._commands: dict[str, _Handler] = {
            "help": self._cmd_help,
            "partition": self._cmd_partition,
            "step": self._cmd_step,
            "back": self._cmd_back,
            "run": self._cmd_run,
            "memory": self._cmd_memory,
            "paging": self._cmd_paging,
            "regen": self._cmd_regen,
            "next": self._cmd_next,
            "prev": self._cmd_prev,
            "frames": self._cmd_frames,
            "stats": self._cmd_stats,
            "log": self._cmd_log,
            "exit": self._cmd_exit,
        }

    @property
    def partition(self) -> PartitionSession:
        """Return the partition session."""
        return self._partition

    @property
    def paging(self) -> PagingSession:
        """Return the paging session."""
        return self._paging

    def execute(self, command: str) -> str:
        """Parse and execute a command string.

        Returns:
            The command output, or ``EXIT_SENTINEL`` for ``exit``.

        """
        parts = command.split()
        if not parts:
            return ""
        name, args = parts[0], parts[1:]
        handler = self._commands.get(name)
        if handler is None:
            return f"Unknown command: {name}"
        try:
            return handler(args)
        except ValueError as e:
            return f"Error: {e}"

    def _cmd_help(self, _args: list[str]) -> str:
        return "Available commands: " + ", ".join(sorted(self._commands))

    # -- Partitioning ---------------------------------------------------------

    def _cmd_partition(self, args: list[str]) -> str:
        self._partition.reset(algorithm=args[0] if args else None)
        return f"Partition scenario reset ({self._partition.algorithm.name})"

    def _cmd_step(self, _args: list[str]) -> str:
        record = self._partition.step()
        if record is None:
            return "Scenario finished."
        return describe_partition_step(record)

    def _cmd_back(self, _args: list[str]) -> str:
        position = max(self._partition.position - 1, 0)
        state = self._partition.seek(position)
        return f"Step {position}/{len(self._partition.script)}\n{render_memory(state)}"

    def _cmd_run(self, _args: list[str]) -> str:
        records = self._partition.run_all()
        if not records:
            return "Scenario finished."
        return "\n".join(describe_partition_step(record) for record in records)

    def _cmd_memory(self, _args: list[str]) -> str:
        return render_memory(self._partition.state)

    # -- Paging ---------------------------------------------------------------

    def _cmd_paging(self, args: list[str]) -> str:
        self._paging.reset(algorithm=args[0] if args else None)
        return f"Paging simulation reset ({self._paging.algorithm.name})"

    def _cmd_regen(self, _args: list[str]) -> str:
        self._paging.reset(regenerate=True)
        return f"Generated {len(self._paging.addresses)} new addresses"

    def _cmd_next(self, args: list[str]) -> str:
        count = int(args[0]) if args else 1
        if count <= 0:
            msg = f"count must be positive, got {count}"
            raise ValueError(msg)
        lines: list[str] = []
        for _ in range(count):
            step = self._paging.advance()
            if step is None:
                lines.append("Trace finished.")
                break
            lines.append(describe_simulation_step(step))
        return "\n".join(lines)

    def _cmd_prev(self, _args: list[str]) -> str:
        self._paging.seek(max(self._paging.position - 1, 0))
        return self._cmd_frames([])

    def _cmd_frames(self, _args: list[str]) -> str:
        step = self._paging.current
        if step is None:
            return "Frames: " + " | ".join(["-"] * self._paging.frame_count)
        cells = ["-" if page is None else str(page) for page in step.frames]
        return f"Step {step.index}: page {step.page}\nFrames: " + " | ".join(cells)

    def _cmd_stats(self, _args: list[str]) -> str:
        session = self._paging
        return (
            f"Faults so far: {session.faults_so_far}/{session.position}\n"
            f"Total faults: {session.fault_count}/{len(session.trace)}\n"
            f"Fault rate: {session.fault_rate}%"
        )

    def _cmd_log(self, args: list[str]) -> str:
        if args and args[0] == "paging":
            return "\n".join(self._paging.logger.lines())
        return "\n".join(self._partition.logger.lines())

    def _cmd_exit(self, _args: list[str]) -> str:
        return self.EXIT_SENTINEL


def run(config_path: Path | None = None) -> None:
    """Run the interactive console.

    Loads the configuration, prints the banner, and loops until
    ``exit``, Ctrl+D, or Ctrl+C.

    Raises:
        ConfigError: If the config file cannot be loaded.
    """
    config = load_config(config_path)
    console = Console(config=config)
    print(format_banner(config))  # noqa: T201

    try:
        while True:
            try:
                command = input("memsim $ ")
            except EOFError:
                print()  # noqa: T201
                break

            result = console.execute(command)
            if result == Console.EXIT_SENTINEL:
                break
            if result:
                print(result)  # noqa: T201

    except KeyboardInterrupt:
        print("\nInterrupted.")  # noqa: T201


def main() -> None:
    """Console entry point: ``memsim [config.json]``."""
    args = sys.argv[1:]
    try:
        run(Path(args[0]) if args else None)
    except ConfigError as e:
        raise SystemExit(f"Error: {e}") from e

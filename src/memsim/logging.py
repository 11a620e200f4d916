"""Narration log: a human-readable record of a simulation run.

Every step a driver takes (an allocation, a release, a page reference)
produces one line of narration: what was requested and what happened.
The log keeps those lines as structured entries so a display can show
the whole history, or only the failures, or only the paging events.

- **LogLevel**: severity levels ordered for filtering (DEBUG < ERROR).
- **LogEntry**: a single structured record (level, message, source, step).
- **Logger**: an append-only log with filtering and clearing.

Design choices:
    - **IntEnum for levels** so they compare naturally with ``<``.
    - **Frozen dataclass for entries**: log records should be immutable.
    - **Filter returns a list, not a generator**: the log is small and
      callers usually iterate more than once.
"""

from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Severity levels for log entries."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        message: A human-readable description of what happened.
        source: The simulator that produced the event ("partition", "paging").
        step: The scenario step the event belongs to, if any.

    """

    level: LogLevel
    message: str
    source: str
    step: int | None = None

    def __str__(self) -> str:
        """Format as ``[LEVEL] source#step: message``."""
        where = self.source if self.step is None else f"{self.source}#{self.step}"
        return f"[{self.level.name}] {where}: {self.message}"


class Logger:
    """Append-only log buffer with filtering."""

    def __init__(self) -> None:
        """Create an empty logger."""
        self._entries: list[LogEntry] = []

    @property
    def entries(self) -> list[LogEntry]:
        """Return all log entries in chronological order."""
        return list(self._entries)

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        step: int | None = None,
    ) -> None:
        """Append a new entry to the log.

        Args:
            level: Severity of the event.
            message: Human-readable event description.
            source: Simulator that generated the event.
            step: Scenario step the event belongs to.

        """
        self._entries.append(LogEntry(level=level, message=message, source=source, step=step))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
    ) -> list[LogEntry]:
        """Return entries matching the given criteria.

        Args:
            min_level: If set, only return entries at or above this level.
            source: If set, only return entries from this source.

        Returns:
            A filtered list of log entries.

        """
        result = self._entries
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if source is not None:
            result = [e for e in result if e.source == source]
        return result if result is not self._entries else list(result)

    def lines(self) -> list[str]:
        """Return every entry formatted for display."""
        return [str(entry) for entry in self._entries]

    def clear(self) -> None:
        """Remove all log entries."""
        self._entries.clear()

    def discard(self, source: str) -> None:
        """Remove the entries of one source, keeping everyone else's."""
        self._entries = [e for e in self._entries if e.source != source]

    def __len__(self) -> int:
        """Return the number of entries."""
        return len(self._entries)

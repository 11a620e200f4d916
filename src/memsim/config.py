"""Simulator configuration: the reference scenario and its overrides.

Both simulators ship with one built-in scenario:

- **Partitioning**: 640 units of memory, replayed with first fit.
- **Paging**: 320 instruction addresses, page size 10 (32 pages),
  4 frames, replayed with FIFO.

``SimulatorConfig`` bundles those numbers.  A JSON file can override
any of them::

    {"total_memory": 1024, "frame_count": 3, "replacement": "lru"}

Missing keys fall back to the defaults; a file that cannot be read,
parsed, or validated raises ``ConfigError``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any

from memsim.paging.policies import ReplacementAlgorithm
from memsim.partition.allocator import PartitionAlgorithm

if TYPE_CHECKING:
    from pathlib import Path


class ConfigError(ValueError):
    """Raise when a configuration file is unreadable or invalid."""


@dataclass(frozen=True)
class SimulatorConfig:
    """Sizes and default algorithms for both simulators.

    Attributes:
        total_memory: Size of the partitioned address space.
        frame_count: Number of physical frames for paging.
        page_size: Addresses per page.
        sequence_length: Number of generated addresses (also the
            virtual address space size).
        partition_algorithm: Default placement algorithm.
        replacement_algorithm: Default page replacement algorithm.
        seed: Seed for the address generator; None means unseeded.

    """

    total_memory: int = 640
    frame_count: int = 4
    page_size: int = 10
    sequence_length: int = 320
    partition_algorithm: PartitionAlgorithm = PartitionAlgorithm.FIRST_FIT
    replacement_algorithm: ReplacementAlgorithm = ReplacementAlgorithm.FIFO
    seed: int | None = None

    def __post_init__(self) -> None:
        """Validate sizes and normalise algorithm names.

        Raises:
            ConfigError: If a size is not positive or an algorithm is unknown.

        """
        for name in ("total_memory", "frame_count", "page_size", "sequence_length"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                msg = f"{name} must be a positive integer, got {value!r}"
                raise ConfigError(msg)
        if self.seed is not None and (
            isinstance(self.seed, bool) or not isinstance(self.seed, int)
        ):
            msg = f"seed must be an integer or null, got {self.seed!r}"
            raise ConfigError(msg)
        try:
            object.__setattr__(
                self, "partition_algorithm", PartitionAlgorithm(self.partition_algorithm)
            )
            object.__setattr__(
                self, "replacement_algorithm", ReplacementAlgorithm(self.replacement_algorithm)
            )
        except ValueError as e:
            msg = f"Unknown algorithm: {e}"
            raise ConfigError(msg) from e

    @property
    def page_count(self) -> int:
        """Return the number of distinct pages in the address space."""
        return -(-self.sequence_length // self.page_size)

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["page_count"] = self.page_count
        return data


_FILE_KEYS = {
    "total_memory": "total_memory",
    "frame_count": "frame_count",
    "page_size": "page_size",
    "sequence_length": "sequence_length",
    "partition": "partition_algorithm",
    "replacement": "replacement_algorithm",
    "seed": "seed",
}


def load_config(path: Path | None = None) -> SimulatorConfig:
    """Load a configuration from a JSON file, or return the defaults.

    Args:
        path: JSON file with any of the keys ``total_memory``,
            ``frame_count``, ``page_size``, ``sequence_length``,
            ``partition``, ``replacement`` and ``seed``.

    Raises:
        ConfigError: If the file cannot be read or holds invalid values.

    """
    if path is None:
        return SimulatorConfig()
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Cannot load config: {e}"
        raise ConfigError(msg) from e
    if not isinstance(data, dict):
        msg = f"Config must be a JSON object, got {type(data).__name__}"
        raise ConfigError(msg)
    unknown = sorted(set(data) - set(_FILE_KEYS))
    if unknown:
        msg = f"Unknown config keys: {', '.join(unknown)}"
        raise ConfigError(msg)
    return SimulatorConfig(**{_FILE_KEYS[key]: value for key, value in data.items()})

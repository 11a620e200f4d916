"""memsim: partition allocation and page replacement simulators."""

__version__ = "0.1.0"

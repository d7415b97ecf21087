"""Centralized constants for grid storage and automaton runs.

Consuming modules should import from this module rather than defining
their own inline literals.
"""

from __future__ import annotations

DEFAULT_CHUNK_SIZE = 16
"""Default chunk extent (cells per axis)."""

DEFAULT_DIMS = 2
"""Default number of grid axes."""

SUPPORTED_DIMS: tuple[int, ...] = (2, 3)
"""Axis counts accepted by chunks and grids."""

NUM_STEPS = 100
"""Default number of generations for a run."""

SNAPSHOT_FLUSH_THRESHOLD = 4_096
"""Flush buffered snapshot rows to Parquet once this many chunk rows are held."""

CHUNK_SCHEMA_VERSION = 1
"""Version tag written into serialized grid metadata."""

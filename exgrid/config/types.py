"""Configuration dataclasses for automaton runs."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from exgrid.config.constants import NUM_STEPS

__all__ = [
    "RunConfig",
    "RunResult",
]


@dataclass(frozen=True)
class RunConfig:
    """Knobs for driving an automaton over several generations.

    An interval of 0 disables the corresponding periodic action.
    """

    steps: int = NUM_STEPS
    clean_up_interval: int = 0
    snapshot_interval: int = 0
    reuse_scratch: bool = True

    def __post_init__(self) -> None:
        if self.steps < 1:
            raise ValueError("steps must be >= 1")
        if self.clean_up_interval < 0:
            raise ValueError("clean_up_interval must be >= 0")
        if self.snapshot_interval < 0:
            raise ValueError("snapshot_interval must be >= 0")


@dataclass(frozen=True)
class RunResult:
    """Summary of one completed run."""

    generation: int
    chunk_count: int
    live_cells: int
    chunks_removed: int
    snapshots_written: int
    snapshot_path: Path | None

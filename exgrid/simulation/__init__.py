"""Simulation layer: multi-generation run driver and Parquet snapshot persistence."""

from exgrid.simulation.engine import run_automata
from exgrid.simulation.persistence import flush_snapshot_columns

__all__ = [
    "flush_snapshot_columns",
    "run_automata",
]

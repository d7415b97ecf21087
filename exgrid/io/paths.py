"""Path construction helpers for run output directories."""

from __future__ import annotations

from pathlib import Path


def snapshots_dir(out_dir: Path) -> Path:
    """Return path to the snapshots subdirectory within an output directory."""
    return out_dir / "snapshots"


def snapshot_path(out_dir: Path) -> Path:
    """Return path to the per-generation snapshot Parquet file."""
    return snapshots_dir(out_dir) / "grid_snapshots.parquet"

"""Tests for the multi-generation run driver (run_automata)."""

from __future__ import annotations

from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from exgrid.config.types import RunConfig
from exgrid.domain.automata import Automata
from exgrid.domain.grid import ExGrid
from exgrid.domain.rules import GLIDER, LifeRules, place_pattern
from exgrid.io.serialization import load_grid, snapshot_generations
from exgrid.simulation.engine import run_automata
from exgrid.simulation.persistence import flush_snapshot_columns


def _glider(chunk_size: int = 4) -> Automata[bool]:
    grid: ExGrid[bool] = ExGrid(chunk_size, bool)
    place_pattern(grid, GLIDER, (1, 1))
    return Automata(LifeRules(), grid)


class TestRunAutomata:
    def test_advances_generations(self) -> None:
        automata = _glider()
        result = run_automata(automata, RunConfig(steps=8))
        assert result.generation == 8
        assert result.live_cells == 5
        assert result.snapshots_written == 0
        assert result.snapshot_path is None

    def test_scratch_reuse_matches_fresh_allocation(self) -> None:
        reused = _glider()
        fresh = _glider()
        run_automata(reused, RunConfig(steps=12, reuse_scratch=True))
        run_automata(fresh, RunConfig(steps=12, reuse_scratch=False))
        assert reused.state == fresh.state

    def test_periodic_clean_up(self) -> None:
        automata = _glider()
        result = run_automata(automata, RunConfig(steps=40, clean_up_interval=1))
        assert result.chunks_removed > 0
        assert result.chunk_count <= 4
        assert result.live_cells == 5

    def test_snapshots_written(self, tmp_path: Path) -> None:
        automata = _glider()
        result = run_automata(
            automata,
            RunConfig(steps=8, snapshot_interval=4),
            out_dir=tmp_path,
            value_type=pa.bool_(),
        )
        expected = tmp_path / "snapshots" / "grid_snapshots.parquet"
        assert result.snapshot_path == expected
        assert result.snapshots_written == 3
        assert snapshot_generations(expected) == [0, 4, 8]
        assert load_grid(expected, default_factory=bool) == automata.state

    def test_initial_snapshot_restores_start(self, tmp_path: Path) -> None:
        automata = _glider()
        start = automata.state.copy()
        run_automata(
            automata,
            RunConfig(steps=3, snapshot_interval=2),
            out_dir=tmp_path,
            value_type=pa.bool_(),
        )
        path = tmp_path / "snapshots" / "grid_snapshots.parquet"
        assert load_grid(path, default_factory=bool, generation=0) == start

    def test_snapshot_value_type_inferred_from_cells(self, tmp_path: Path) -> None:
        automata = _glider()
        result = run_automata(automata, RunConfig(steps=2, snapshot_interval=1), out_dir=tmp_path)
        assert result.snapshot_path is not None
        table = pq.read_table(result.snapshot_path)
        assert table.schema.field("cells").type == pa.list_(pa.bool_())
        assert load_grid(result.snapshot_path, default_factory=bool) == automata.state

    def test_snapshot_interval_requires_out_dir(self) -> None:
        with pytest.raises(ValueError, match="out_dir"):
            run_automata(_glider(), RunConfig(steps=2, snapshot_interval=1))


class TestFlushSnapshotColumns:
    def test_empty_buffers_do_not_create_writer(self, tmp_path: Path) -> None:
        columns: dict[str, list] = {"generation": [], "chunk": [], "cells": []}
        schema = pa.schema([("generation", pa.int64())])
        assert flush_snapshot_columns(columns, tmp_path / "x.parquet", None, schema) is None
        assert not (tmp_path / "x.parquet").exists()

    def test_flush_clears_buffers(self, tmp_path: Path) -> None:
        schema = pa.schema(
            [
                ("generation", pa.int64()),
                ("chunk", pa.list_(pa.int64())),
                ("cells", pa.list_(pa.int64())),
            ]
        )
        columns: dict[str, list] = {"generation": [0], "chunk": [[0, 0]], "cells": [[1, 2, 3, 4]]}
        path = tmp_path / "deep" / "snap.parquet"
        writer = flush_snapshot_columns(columns, path, None, schema)
        assert writer is not None
        writer.close()
        assert all(not values for values in columns.values())
        assert pq.read_table(path).num_rows == 1

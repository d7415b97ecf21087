"""Tests for exgrid.io serialization helpers."""

from __future__ import annotations

from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from exgrid.domain.grid import ExGrid, ExGridSparse
from exgrid.io.paths import snapshot_path, snapshots_dir
from exgrid.io.schemas import META_SCHEMA_VERSION, chunk_schema, read_grid_metadata
from exgrid.io.serialization import (
    grid_from_table,
    grid_to_table,
    infer_value_type,
    load_grid,
    save_grid,
    snapshot_generations,
)


def _dense_grid() -> ExGrid[int]:
    grid: ExGrid[int] = ExGrid(4)
    grid[(-1, -1)] = 3
    grid[(9, 2)] = 5
    return grid


class TestSchema:
    def test_metadata_round_trip(self) -> None:
        schema = chunk_schema(pa.float64(), chunk_size=8, dims=3, sparse=True)
        assert read_grid_metadata(schema) == (8, 3, True)
        assert schema.field("cells").type == pa.list_(pa.float64())

    def test_missing_metadata(self) -> None:
        schema = pa.schema([("generation", pa.int64())])
        with pytest.raises(ValueError, match="missing grid metadata"):
            read_grid_metadata(schema)

    def test_version_mismatch(self) -> None:
        schema = chunk_schema(pa.int64(), chunk_size=4, dims=2, sparse=False)
        metadata = dict(schema.metadata)
        metadata[META_SCHEMA_VERSION] = b"999"
        with pytest.raises(ValueError, match="schema version"):
            read_grid_metadata(schema.with_metadata(metadata))


class TestTables:
    def test_one_row_per_chunk(self) -> None:
        table = grid_to_table(_dense_grid())
        assert table.num_rows == 2
        assert sorted(table["chunk"].to_pylist()) == [[-1, -1], [2, 0]]
        assert all(len(cells) == 16 for cells in table["cells"].to_pylist())

    def test_dense_round_trip(self) -> None:
        grid = _dense_grid()
        assert grid_from_table(grid_to_table(grid)) == grid

    def test_sparse_round_trip_keeps_vacancies(self) -> None:
        grid: ExGridSparse[float] = ExGridSparse(2, dims=3)
        grid[(0, 0, 0)] = 1.5
        grid[(-3, 1, 0)] = 2.5
        restored = grid_from_table(grid_to_table(grid, pa.float64()))
        assert isinstance(restored, ExGridSparse)
        assert restored == grid
        assert restored.get((1, 0, 0)) is None

    def test_default_factory_applies_to_dense(self) -> None:
        restored = grid_from_table(grid_to_table(_dense_grid()), default_factory=lambda: -1)
        assert isinstance(restored, ExGrid)
        assert restored.get((100, 100)) == -1

    def test_empty_grid(self) -> None:
        table = grid_to_table(ExGrid(4))
        assert table.num_rows == 0
        assert grid_from_table(table).chunk_count == 0

    def test_selects_generation(self) -> None:
        first = _dense_grid()
        second = first.copy()
        second[(0, 0)] = 42
        table = pa.concat_tables(
            [grid_to_table(first, generation=0), grid_to_table(second, generation=1)]
        )
        assert grid_from_table(table, generation=0) == first
        assert grid_from_table(table) == second

    def test_missing_generation_rejected(self) -> None:
        table = grid_to_table(_dense_grid(), generation=2)
        with pytest.raises(ValueError, match="generation 7 not found"):
            grid_from_table(table, generation=7)

    def test_value_type_inferred_for_dense_grid(self) -> None:
        grid: ExGrid[bool] = ExGrid(2, bool)
        grid[(0, 0)] = True
        assert infer_value_type(grid) == pa.bool_()
        restored = grid_from_table(grid_to_table(grid), default_factory=bool)
        assert restored == grid

    def test_value_type_inferred_for_sparse_grid(self) -> None:
        grid: ExGridSparse[float] = ExGridSparse(2)
        assert infer_value_type(grid) == pa.int64()
        grid[(1, 1)] = 0.5
        assert infer_value_type(grid) == pa.float64()
        assert grid_to_table(grid).schema.field("cells").type == pa.list_(pa.float64())

    def test_duplicate_chunk_rejected(self) -> None:
        table = grid_to_table(_dense_grid())
        with pytest.raises(ValueError, match="duplicate chunk"):
            grid_from_table(pa.concat_tables([table, table]))


class TestParquet:
    def test_save_and_load(self, tmp_path: Path) -> None:
        path = save_grid(_dense_grid(), tmp_path / "nested" / "grid.parquet", generation=7)
        assert path.exists()
        assert load_grid(path) == _dense_grid()
        assert snapshot_generations(path) == [7]

    def test_metadata_survives_parquet(self, tmp_path: Path) -> None:
        grid: ExGridSparse[int] = ExGridSparse(5)
        grid[(1, 1)] = 1
        path = save_grid(grid, tmp_path / "sparse.parquet")
        assert read_grid_metadata(pq.read_schema(path)) == (5, 2, True)

    def test_paths(self, tmp_path: Path) -> None:
        assert snapshots_dir(tmp_path) == tmp_path / "snapshots"
        assert snapshot_path(tmp_path).name == "grid_snapshots.parquet"

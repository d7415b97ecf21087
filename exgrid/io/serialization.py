"""Grid <-> Arrow table <-> Parquet conversion.

Round-tripping a grid reproduces the same set of chunk coordinates and the
same flat cell sequence in every chunk; row order is not significant.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.compute as pc
import pyarrow.parquet as pq

from exgrid.domain.chunk import Chunk, ChunkSparse
from exgrid.domain.grid import ExGrid, ExGridSparse
from exgrid.io.schemas import chunk_schema, read_grid_metadata

AnyGrid = ExGrid[Any] | ExGridSparse[Any]


def grid_schema(grid: AnyGrid, value_type: pa.DataType) -> pa.Schema:
    return chunk_schema(
        value_type,
        chunk_size=grid.chunk_size,
        dims=grid.dims,
        sparse=isinstance(grid, ExGridSparse),
    )


def infer_value_type(grid: AnyGrid) -> pa.DataType:
    """Arrow type of *grid*'s cells.

    A dense grid is typed from its default value, a sparse grid from its
    first occupied cell; a sparse grid with no occupied cell falls back to
    ``int64``.
    """
    if isinstance(grid, ExGrid):
        return pa.infer_type([grid.default_factory()])
    for _pos, value in grid.cells():
        return pa.infer_type([value])
    return pa.int64()


def grid_columns(grid: AnyGrid, generation: int = 0) -> dict[str, list[Any]]:
    """Column buffers holding one row per chunk of *grid*."""
    columns: dict[str, list[Any]] = {"generation": [], "chunk": [], "cells": []}
    append_grid_rows(columns, grid, generation)
    return columns


def append_grid_rows(columns: dict[str, list[Any]], grid: AnyGrid, generation: int) -> int:
    """Append one row per chunk of *grid* to *columns*; return the row count."""
    rows = 0
    for chunk_pos, chunk in grid.chunks():
        columns["generation"].append(generation)
        columns["chunk"].append(list(chunk_pos))
        columns["cells"].append(chunk.to_list())
        rows += 1
    return rows


def grid_to_table(
    grid: AnyGrid, value_type: pa.DataType | None = None, generation: int = 0
) -> pa.Table:
    """Serialize *grid* to a table of chunk rows.

    *value_type* defaults to :func:`infer_value_type`.
    """
    schema = grid_schema(grid, infer_value_type(grid) if value_type is None else value_type)
    return pa.Table.from_pydict(grid_columns(grid, generation), schema=schema)


def grid_from_table(
    table: pa.Table,
    default_factory: Callable[[], Any] = int,
    generation: int | None = None,
) -> AnyGrid:
    """Rebuild a grid from chunk rows.

    Only rows of *generation* are used; ``None`` selects the latest
    generation present. *default_factory* applies to dense grids only.
    """
    chunk_size, dims, sparse = read_grid_metadata(table.schema)
    grid: AnyGrid = (
        ExGridSparse(chunk_size, dims=dims)
        if sparse
        else ExGrid(chunk_size, default_factory, dims=dims)
    )
    if table.num_rows == 0:
        return grid
    if generation is None:
        generation = pc.max(table["generation"]).as_py()
    table = table.filter(pc.equal(table["generation"], generation))
    if table.num_rows == 0:
        raise ValueError(f"generation {generation} not found in table")

    for chunk_pos, cells in zip(
        table["chunk"].to_pylist(), table["cells"].to_pylist(), strict=True
    ):
        key = tuple(chunk_pos)
        if grid.contains_chunk(key):
            raise ValueError(f"duplicate chunk {key} in generation {generation}")
        if sparse:
            grid.insert_chunk(key, ChunkSparse(chunk_size, cells, dims))
        else:
            grid.insert_chunk(key, Chunk(chunk_size, cells, dims))
    return grid


def save_grid(
    grid: AnyGrid,
    path: Path,
    value_type: pa.DataType | None = None,
    generation: int = 0,
) -> Path:
    """Write *grid* to a Parquet file at *path*."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    pq.write_table(grid_to_table(grid, value_type, generation), path)
    return path


def load_grid(
    path: Path,
    default_factory: Callable[[], Any] = int,
    generation: int | None = None,
) -> AnyGrid:
    """Read a grid written by :func:`save_grid` or a run's snapshot file."""
    return grid_from_table(pq.read_table(Path(path)), default_factory, generation)


def snapshot_generations(path: Path) -> list[int]:
    """Sorted distinct generations stored in a Parquet grid file."""
    table = pq.read_table(Path(path), columns=["generation"])
    return sorted(set(table["generation"].to_pylist()))

"""Serialization of grids to Arrow tables and Parquet files."""

from exgrid.io.schemas import chunk_schema, read_grid_metadata
from exgrid.io.serialization import (
    grid_columns,
    grid_from_table,
    grid_to_table,
    infer_value_type,
    load_grid,
    save_grid,
    snapshot_generations,
)

__all__ = [
    "chunk_schema",
    "grid_columns",
    "grid_from_table",
    "grid_to_table",
    "infer_value_type",
    "load_grid",
    "read_grid_metadata",
    "save_grid",
    "snapshot_generations",
]

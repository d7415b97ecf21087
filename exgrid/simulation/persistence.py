"""Parquet persistence helpers for grid snapshot streams."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq


def flush_snapshot_columns(
    columns: dict[str, list[Any]],
    snapshot_path: Path,
    writer: pq.ParquetWriter | None,
    schema: pa.Schema,
) -> pq.ParquetWriter | None:
    """Write accumulated chunk rows to Parquet and clear in-memory buffers."""
    if not columns["generation"]:
        return writer
    table = pa.Table.from_pydict(columns, schema=schema)
    if writer is None:
        snapshot_path.parent.mkdir(parents=True, exist_ok=True)
        writer = pq.ParquetWriter(snapshot_path, schema)
    writer.write_table(table)
    for values in columns.values():
        values.clear()
    return writer

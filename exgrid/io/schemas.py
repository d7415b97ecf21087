"""Arrow schema for serialized grids.

One row per chunk. ``chunk`` holds the chunk coordinate and ``cells`` the
chunk's flat row-major cell sequence; a null entry is a vacant sparse cell.
Grid shape travels in the schema metadata so a table can be loaded without
out-of-band information.
"""

from __future__ import annotations

import pyarrow as pa

from exgrid.config.constants import CHUNK_SCHEMA_VERSION

META_CHUNK_SIZE = b"exgrid.chunk_size"
META_DIMS = b"exgrid.dims"
META_SPARSE = b"exgrid.sparse"
META_SCHEMA_VERSION = b"exgrid.schema_version"

REQUIRED_METADATA = (META_CHUNK_SIZE, META_DIMS, META_SPARSE, META_SCHEMA_VERSION)


def chunk_schema(
    value_type: pa.DataType,
    *,
    chunk_size: int,
    dims: int,
    sparse: bool,
) -> pa.Schema:
    """Schema for chunk rows whose cells have Arrow type *value_type*."""
    return pa.schema(
        [
            ("generation", pa.int64()),
            ("chunk", pa.list_(pa.int64())),
            ("cells", pa.list_(value_type)),
        ],
        metadata={
            META_CHUNK_SIZE: str(chunk_size).encode(),
            META_DIMS: str(dims).encode(),
            META_SPARSE: b"1" if sparse else b"0",
            META_SCHEMA_VERSION: str(CHUNK_SCHEMA_VERSION).encode(),
        },
    )


def read_grid_metadata(schema: pa.Schema) -> tuple[int, int, bool]:
    """Return ``(chunk_size, dims, sparse)`` recorded in *schema*."""
    metadata = schema.metadata or {}
    missing = [key.decode() for key in REQUIRED_METADATA if key not in metadata]
    if missing:
        raise ValueError(f"table is missing grid metadata: {', '.join(missing)}")
    version = int(metadata[META_SCHEMA_VERSION])
    if version != CHUNK_SCHEMA_VERSION:
        raise ValueError(
            f"unsupported grid schema version {version}; expected {CHUNK_SCHEMA_VERSION}"
        )
    return (
        int(metadata[META_CHUNK_SIZE]),
        int(metadata[META_DIMS]),
        metadata[META_SPARSE] == b"1",
    )

"""Configuration layer: constants and typed config dataclasses."""

from exgrid.config.constants import (
    CHUNK_SCHEMA_VERSION,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_DIMS,
    NUM_STEPS,
    SNAPSHOT_FLUSH_THRESHOLD,
    SUPPORTED_DIMS,
)
from exgrid.config.types import RunConfig, RunResult

__all__ = [
    "CHUNK_SCHEMA_VERSION",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_DIMS",
    "NUM_STEPS",
    "RunConfig",
    "RunResult",
    "SNAPSHOT_FLUSH_THRESHOLD",
    "SUPPORTED_DIMS",
]

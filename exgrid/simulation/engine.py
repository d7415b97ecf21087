"""Run driver: step an automaton for many generations with optional cleanup and snapshots."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq
from loguru import logger

from exgrid.config.constants import SNAPSHOT_FLUSH_THRESHOLD
from exgrid.config.types import RunConfig, RunResult
from exgrid.domain.automata import Automata
from exgrid.io.paths import snapshot_path
from exgrid.io.serialization import append_grid_rows, grid_schema, infer_value_type
from exgrid.simulation.persistence import flush_snapshot_columns


def run_automata(
    automata: Automata[Any],
    config: RunConfig | None = None,
    out_dir: Path | None = None,
    value_type: pa.DataType | None = None,
) -> RunResult:
    """Advance *automata* ``config.steps`` generations.

    Every ``clean_up_interval`` generations exhausted chunks are removed.
    Every ``snapshot_interval`` generations the live grid is appended to
    ``<out_dir>/snapshots/grid_snapshots.parquet`` (the starting generation
    is recorded too). *value_type* is the Arrow type of the cells and is
    inferred from the grid when omitted.
    """
    run_config = config or RunConfig()
    if run_config.snapshot_interval and out_dir is None:
        raise ValueError("snapshot_interval requires out_dir")

    snapshot_file = (
        snapshot_path(Path(out_dir))
        if run_config.snapshot_interval and out_dir is not None
        else None
    )
    schema = grid_schema(
        automata.state,
        infer_value_type(automata.state) if value_type is None else value_type,
    )
    columns: dict[str, list[Any]] = {"generation": [], "chunk": [], "cells": []}
    writer: pq.ParquetWriter | None = None
    snapshots_written = 0
    chunks_removed = 0

    def snapshot() -> None:
        nonlocal writer, snapshots_written
        rows = append_grid_rows(columns, automata.state, automata.generation)
        snapshots_written += 1
        logger.debug("snapshot of generation {} ({} chunks)", automata.generation, rows)
        if snapshot_file is not None and len(columns["generation"]) >= SNAPSHOT_FLUSH_THRESHOLD:
            writer = flush_snapshot_columns(columns, snapshot_file, writer, schema)

    logger.info(
        "Starting run of {} steps at generation {} with {} chunks",
        run_config.steps,
        automata.generation,
        automata.state.chunk_count,
    )
    scratch = automata.state.empty_like() if run_config.reuse_scratch else None
    try:
        if snapshot_file is not None:
            snapshot()
        for _ in range(run_config.steps):
            if scratch is not None:
                scratch = automata.step_scratch(scratch)
            else:
                automata.step()
            generation = automata.generation
            if run_config.clean_up_interval and generation % run_config.clean_up_interval == 0:
                chunks_removed += automata.clean_up()
            if snapshot_file is not None and generation % run_config.snapshot_interval == 0:
                snapshot()
        if snapshot_file is not None:
            writer = flush_snapshot_columns(columns, snapshot_file, writer, schema)
    finally:
        if writer is not None:
            writer.close()

    result = RunResult(
        generation=automata.generation,
        chunk_count=automata.state.chunk_count,
        live_cells=automata.live_cells(),
        chunks_removed=chunks_removed,
        snapshots_written=snapshots_written,
        snapshot_path=snapshot_file if writer is not None else None,
    )
    logger.info(
        "Finished run at generation {}: {} chunks, {} live cells, {} chunks removed",
        result.generation,
        result.chunk_count,
        result.live_cells,
        result.chunks_removed,
    )
    return result

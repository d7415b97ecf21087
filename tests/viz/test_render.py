"""Tests for exgrid.viz.render helpers."""

from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import numpy as np  # noqa: E402
import pytest  # noqa: E402

from exgrid.domain.grid import ExGrid, ExGridSparse  # noqa: E402
from exgrid.viz.render import (  # noqa: E402
    grid_extent,
    grid_window_array,
    render_filmstrip,
    render_grid,
)


def _grid() -> ExGrid[int]:
    grid: ExGrid[int] = ExGrid(4)
    grid[(-1, -1)] = 2
    grid[(4, 0)] = 5
    return grid


class TestGridWindowArray:
    def test_default_window_is_extent(self) -> None:
        array = grid_window_array(_grid())
        assert grid_extent(_grid()) == ((-4, -4), (7, 3))
        assert array.shape == (8, 12)
        assert array[3, 3] == 2.0
        assert array[4, 8] == 5.0

    def test_explicit_window_clips(self) -> None:
        array = grid_window_array(_grid(), ((-1, -1), (0, 0)))
        assert np.array_equal(array, [[2.0, 0.0], [0.0, 0.0]])

    def test_missing_chunks_use_fill(self) -> None:
        array = grid_window_array(_grid(), ((-8, 0), (-5, 0)), fill=-1.0)
        assert np.all(array == -1.0)

    def test_sparse_vacancies_use_fill(self) -> None:
        grid: ExGridSparse[int] = ExGridSparse(2)
        grid[(1, 1)] = 4
        array = grid_window_array(grid)
        assert np.array_equal(array, [[0.0, 0.0], [0.0, 4.0]])

    def test_empty_grid_needs_window(self) -> None:
        with pytest.raises(ValueError, match="empty grid"):
            grid_window_array(ExGrid(4))

    def test_three_axes_rejected(self) -> None:
        with pytest.raises(ValueError, match="2D"):
            grid_window_array(ExGrid(4, dims=3))


class TestRender:
    def test_render_grid_writes_png(self, tmp_path: Path) -> None:
        output = render_grid(_grid(), tmp_path / "out" / "grid.png", title="g0")
        assert output.exists()
        assert output.stat().st_size > 0

    def test_render_filmstrip(self, tmp_path: Path) -> None:
        shifted = _grid()
        shifted[(20, 20)] = 1
        output = render_filmstrip([_grid(), shifted], tmp_path / "strip.png", labels=["a", "b"])
        assert output.exists()

    def test_filmstrip_label_mismatch(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="labels"):
            render_filmstrip([_grid()], tmp_path / "strip.png", labels=["a", "b"])

    def test_filmstrip_requires_grids(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            render_filmstrip([], tmp_path / "strip.png")

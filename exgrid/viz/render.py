"""Matplotlib-based rendering of 2D grid windows."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import matplotlib.pyplot as plt
import numpy as np

from exgrid.domain.coords import Bounds
from exgrid.domain.grid import ExGrid, ExGridSparse

AnyGrid = ExGrid[Any] | ExGridSparse[Any]

CHUNK_BORDER_COLOR = "#d04a4a"
EMPTY_FILL = 0.0


def _require_2d(grid: AnyGrid) -> None:
    if grid.dims != 2:
        raise ValueError("only 2D grids can be rendered")


def grid_extent(grid: AnyGrid) -> Bounds | None:
    """Inclusive cell box covering every chunk of *grid*."""
    if isinstance(grid, ExGridSparse):
        return grid.naive_bounds()
    return grid.bounds()


def _union(bounds: Sequence[Bounds]) -> Bounds:
    lower = tuple(min(axis) for axis in zip(*(b[0] for b in bounds)))
    upper = tuple(max(axis) for axis in zip(*(b[1] for b in bounds)))
    return lower, upper


def grid_window_array(
    grid: AnyGrid,
    window: Bounds | None = None,
    fill: float | None = None,
) -> np.ndarray:
    """Return an ``(H, W)`` float array of the cells inside *window*.

    *window* is an inclusive ``((x0, y0), (x1, y1))`` box and defaults to the
    grid's extent. Cells outside any chunk, and vacant sparse cells, take
    *fill*; for a dense grid *fill* defaults to its default value.
    """
    _require_2d(grid)
    if window is None:
        window = grid_extent(grid)
        if window is None:
            raise ValueError("cannot infer a window for an empty grid; pass one explicitly")
    (x0, y0), (x1, y1) = window
    if x1 < x0 or y1 < y0:
        raise ValueError(f"window is inverted: {window}")
    if fill is None:
        fill = float(grid.default_factory()) if isinstance(grid, ExGrid) else EMPTY_FILL

    array = np.full((y1 - y0 + 1, x1 - x0 + 1), fill, dtype=float)
    size = grid.chunk_size
    for (cx, cy), chunk in grid.chunks():
        left, top = cx * size, cy * size
        if left > x1 or top > y1 or left + size <= x0 or top + size <= y0:
            continue
        for (lx, ly), value in chunk.cells():
            x, y = left + lx, top + ly
            if x0 <= x <= x1 and y0 <= y <= y1:
                array[y - y0, x - x0] = float(value)
    return array


def _draw_chunk_borders(ax: plt.Axes, window: Bounds, chunk_size: int) -> None:
    (x0, y0), (x1, y1) = window
    first_x = -(-x0 // chunk_size) * chunk_size
    for x in range(first_x, x1 + 1, chunk_size):
        ax.axvline(x - x0 - 0.5, color=CHUNK_BORDER_COLOR, linewidth=0.6)
    first_y = -(-y0 // chunk_size) * chunk_size
    for y in range(first_y, y1 + 1, chunk_size):
        ax.axhline(y - y0 - 0.5, color=CHUNK_BORDER_COLOR, linewidth=0.6)


def _draw_window(
    ax: plt.Axes,
    grid: AnyGrid,
    window: Bounds,
    cmap: str,
    show_chunk_borders: bool,
) -> None:
    array = grid_window_array(grid, window)
    ax.imshow(array, cmap=cmap, origin="upper", aspect="equal", interpolation="nearest")
    if show_chunk_borders:
        _draw_chunk_borders(ax, window, grid.chunk_size)
    ax.set_xticks([])
    ax.set_yticks([])


def render_grid(
    grid: AnyGrid,
    output_path: Path,
    window: Bounds | None = None,
    title: str | None = None,
    cmap: str = "viridis",
    show_chunk_borders: bool = True,
) -> Path:
    """Render *grid* (or *window* of it) to a PNG at *output_path*."""
    _require_2d(grid)
    if window is None:
        window = grid_extent(grid)
        if window is None:
            raise ValueError("cannot render an empty grid without an explicit window")
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(6, 6))
    _draw_window(ax, grid, window, cmap, show_chunk_borders)
    if title is not None:
        ax.set_title(title)
    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path


def render_filmstrip(
    grids: Sequence[AnyGrid],
    output_path: Path,
    labels: Sequence[str] | None = None,
    cmap: str = "viridis",
    show_chunk_borders: bool = True,
) -> Path:
    """Render several grids side by side over the union of their extents."""
    if not grids:
        raise ValueError("grids must not be empty")
    if labels is not None and len(labels) != len(grids):
        raise ValueError("labels must match grids in length")
    extents = [extent for extent in (grid_extent(grid) for grid in grids) if extent is not None]
    if not extents:
        raise ValueError("cannot render a filmstrip of empty grids")
    window = _union(extents)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fig, axes = plt.subplots(1, len(grids), figsize=(3 * len(grids), 3), squeeze=False)
    for i, grid in enumerate(grids):
        ax = axes[0][i]
        _draw_window(ax, grid, window, cmap, show_chunk_borders)
        if labels is not None:
            ax.set_title(labels[i], fontsize=9)
    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path

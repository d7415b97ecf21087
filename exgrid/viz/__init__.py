"""Visualization layer: matplotlib renderers for 2D grid windows."""

from exgrid.viz.render import (
    grid_extent,
    grid_window_array,
    render_filmstrip,
    render_grid,
)

__all__ = [
    "grid_extent",
    "grid_window_array",
    "render_filmstrip",
    "render_grid",
]

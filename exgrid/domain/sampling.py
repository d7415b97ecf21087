"""Linear interpolation helpers shared by chunks and grids."""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from typing import Any

MISSING: Any = object()
"""Returned by a fetch function when a contributing cell has no value."""


def lerp(start: Any, end: Any, factor: float) -> Any:
    """Interpolate from *start* to *end* by *factor* in ``[0, 1]``.

    Cell types may provide their own ``lerp(end, factor)`` method; otherwise
    they need ``+`` and scalar ``*``.
    """
    custom = getattr(start, "lerp", None)
    if callable(custom):
        return custom(end, factor)
    return start * (1.0 - factor) + end * factor


def multilinear(position: Sequence[float], fetch: Callable[[tuple[int, ...]], Any]) -> Any:
    """Interpolate the integer lattice around *position*.

    *fetch* maps an integer corner to its value, or to :data:`MISSING`. Axes
    with a zero fractional part do not read their upper corner, so at most
    ``2 ** len(position)`` corners are fetched. Returns :data:`MISSING` if
    any fetched corner is missing.
    """
    base = tuple(math.floor(p) for p in position)
    weights = tuple(p - b for p, b in zip(position, base, strict=True))
    return _blend(base, weights, len(base) - 1, fetch)


def _blend(
    corner: tuple[int, ...],
    weights: tuple[float, ...],
    axis: int,
    fetch: Callable[[tuple[int, ...]], Any],
) -> Any:
    if axis < 0:
        return fetch(corner)
    low = _blend(corner, weights, axis - 1, fetch)
    if low is MISSING:
        return MISSING
    factor = weights[axis]
    if factor == 0:
        return low
    upper = corner[:axis] + (corner[axis] + 1,) + corner[axis + 1 :]
    high = _blend(upper, weights, axis - 1, fetch)
    if high is MISSING:
        return MISSING
    return lerp(low, high, factor)

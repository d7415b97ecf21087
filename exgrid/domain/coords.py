"""Coordinate maths for the chunk tiling.

Global positions are unbounded integer tuples. A global position splits into
the coordinate of the chunk that owns it and a local offset inside that
chunk, using Euclidean floor division so negative coordinates tile without
gaps: with ``size=4``, ``-1`` lands in chunk ``-1`` at offset ``3``.

Every other module goes through :func:`decompose` and :func:`compose`; the
flat row-major index of a local offset is defined only by
:func:`local_to_index` and :func:`index_to_local`.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TypeAlias

from exgrid.config.constants import SUPPORTED_DIMS

GlobalPos: TypeAlias = tuple[int, ...]
ChunkPos: TypeAlias = tuple[int, ...]
LocalPos: TypeAlias = tuple[int, ...]
Bounds: TypeAlias = tuple[tuple[int, ...], tuple[int, ...]]


def check_size(size: int) -> None:
    """Raise if *size* cannot be a chunk extent."""
    if size <= 0:
        raise ValueError(f"chunk size must be >= 1, got {size}")


def check_dims(dims: int) -> None:
    """Raise if *dims* is not a supported axis count."""
    if dims not in SUPPORTED_DIMS:
        raise ValueError(f"dims must be one of {SUPPORTED_DIMS}, got {dims}")


def decompose(pos: Iterable[int], size: int) -> tuple[ChunkPos, LocalPos]:
    """Split a global position into ``(chunk, local)``."""
    check_size(size)
    chunk: list[int] = []
    local: list[int] = []
    for p in pos:
        c, offset = divmod(p, size)
        chunk.append(c)
        local.append(offset)
    return tuple(chunk), tuple(local)


def compose(chunk: Iterable[int], local: Iterable[int], size: int) -> GlobalPos:
    """Inverse of :func:`decompose`: ``chunk * size + local`` per axis."""
    check_size(size)
    return tuple(c * size + offset for c, offset in zip(chunk, local, strict=True))


def check_local(local: LocalPos, size: int, dims: int) -> None:
    """Raise :exc:`IndexError` unless *local* lies inside a chunk."""
    if len(local) != dims:
        raise IndexError(f"expected a {dims}-axis local position, got {local!r}")
    for offset in local:
        if not 0 <= offset < size:
            raise IndexError(
                f"index out of bounds: the size is {size} but the position is {local!r}"
            )


def local_to_index(local: LocalPos, size: int, dims: int) -> int:
    """Row-major flat index of *local* (x varies fastest)."""
    check_local(local, size, dims)
    index = 0
    for offset in reversed(local):
        index = index * size + offset
    return index


def index_to_local(index: int, size: int, dims: int) -> LocalPos:
    """Local position stored at flat *index*."""
    local: list[int] = []
    for _ in range(dims):
        index, offset = divmod(index, size)
        local.append(offset)
    return tuple(local)


def offset(pos: tuple[int, ...], delta: tuple[int, ...]) -> tuple[int, ...]:
    return tuple(a + b for a, b in zip(pos, delta, strict=True))


def chunks_bounds(chunk_positions: Iterable[ChunkPos]) -> Bounds | None:
    """Per-axis ``(min, max)`` over *chunk_positions*, or ``None`` when empty."""
    lower: tuple[int, ...] | None = None
    upper: tuple[int, ...] | None = None
    for pos in chunk_positions:
        if lower is None or upper is None:
            lower, upper = pos, pos
            continue
        lower = tuple(min(a, b) for a, b in zip(lower, pos, strict=True))
        upper = tuple(max(a, b) for a, b in zip(upper, pos, strict=True))
    if lower is None or upper is None:
        return None
    return lower, upper


def cell_bounds(bounds: Bounds, size: int) -> Bounds:
    """Widen chunk-granularity *bounds* to the inclusive cell box they cover."""
    lower, upper = bounds
    dims = len(lower)
    return compose(lower, (0,) * dims, size), compose(upper, (size - 1,) * dims, size)

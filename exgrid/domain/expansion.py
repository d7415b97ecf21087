"""Neighbour-direction sets telling the automaton which chunks to materialize.

North is ``(0, -1)`` and east is ``(1, 0)``: y grows southwards, matching
the row-major layout of a chunk where row 0 is its northern edge.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, fields
from typing import Any, TypeVar

from exgrid.domain.chunk import Chunk
from exgrid.domain.coords import ChunkPos, offset

T = TypeVar("T")

# Order in which Expansion8 visits its neighbours.
DIRECTIONS_8: tuple[tuple[str, tuple[int, int]], ...] = (
    ("nn", (0, -1)),
    ("ne", (1, -1)),
    ("ee", (1, 0)),
    ("se", (1, 1)),
    ("ss", (0, 1)),
    ("sw", (-1, 1)),
    ("ww", (-1, 0)),
    ("nw", (-1, -1)),
)

DIRECTIONS_4: tuple[tuple[str, tuple[int, int]], ...] = (
    ("north", (0, -1)),
    ("east", (1, 0)),
    ("south", (0, 1)),
    ("west", (-1, 0)),
)


@dataclass(frozen=True)
class Expansion4:
    """Cardinal neighbour flags."""

    north: bool = False
    south: bool = False
    east: bool = False
    west: bool = False

    @classmethod
    def all(cls) -> Expansion4:
        return cls(north=True, south=True, east=True, west=True)

    def to_expansion8(self) -> Expansion8:
        return Expansion8.from_expansion4(self)

    def neighbors(self, origin: ChunkPos) -> Iterator[ChunkPos]:
        for name, delta in DIRECTIONS_4:
            if getattr(self, name):
                yield offset(origin, delta)

    def apply(self, origin: ChunkPos, fn: Callable[[ChunkPos], Any]) -> None:
        for pos in self.neighbors(origin):
            fn(pos)

    def apply_with_center(self, origin: ChunkPos, fn: Callable[[ChunkPos], Any]) -> None:
        fn(origin)
        self.apply(origin, fn)

    def __or__(self, other: Expansion4) -> Expansion4:
        if not isinstance(other, Expansion4):
            return NotImplemented
        return Expansion4(
            north=self.north or other.north,
            south=self.south or other.south,
            east=self.east or other.east,
            west=self.west or other.west,
        )

    def __bool__(self) -> bool:
        return self.north or self.south or self.east or self.west


@dataclass(frozen=True)
class Expansion8:
    """Cardinal and diagonal neighbour flags."""

    nn: bool = False
    ne: bool = False
    ee: bool = False
    se: bool = False
    ss: bool = False
    sw: bool = False
    ww: bool = False
    nw: bool = False

    @classmethod
    def all(cls) -> Expansion8:
        return cls(*(True for _ in fields(cls)))

    @classmethod
    def from_expansion4(cls, expansion: Expansion4) -> Expansion8:
        """Upgrade a cardinal set; a diagonal is set when both adjacent cardinals are."""
        return cls(
            nn=expansion.north,
            ss=expansion.south,
            ee=expansion.east,
            ww=expansion.west,
            ne=expansion.north and expansion.east,
            se=expansion.south and expansion.east,
            sw=expansion.south and expansion.west,
            nw=expansion.north and expansion.west,
        )

    def neighbors(self, origin: ChunkPos) -> Iterator[ChunkPos]:
        """Flagged neighbour coordinates in nn, ne, ee, se, ss, sw, ww, nw order."""
        for name, delta in DIRECTIONS_8:
            if getattr(self, name):
                yield offset(origin, delta)

    def apply(self, origin: ChunkPos, fn: Callable[[ChunkPos], Any]) -> None:
        """Call ``fn`` once per flagged neighbour of *origin*."""
        for pos in self.neighbors(origin):
            fn(pos)

    def apply_with_center(self, origin: ChunkPos, fn: Callable[[ChunkPos], Any]) -> None:
        """Call ``fn(origin)``, then ``fn`` on each flagged neighbour."""
        fn(origin)
        self.apply(origin, fn)

    def __or__(self, other: Expansion8 | Expansion4) -> Expansion8:
        if isinstance(other, Expansion4):
            other = other.to_expansion8()
        if not isinstance(other, Expansion8):
            return NotImplemented
        return Expansion8(
            *(getattr(self, f.name) or getattr(other, f.name) for f in fields(self))
        )

    def __bool__(self) -> bool:
        return any(getattr(self, f.name) for f in fields(self))


def as_expansion8(expansion: Expansion8 | Expansion4) -> Expansion8:
    """Normalize whatever a rule returned into an :class:`Expansion8`."""
    if isinstance(expansion, Expansion8):
        return expansion
    if isinstance(expansion, Expansion4):
        return expansion.to_expansion8()
    raise TypeError(f"expected Expansion4 or Expansion8, got {type(expansion).__name__}")


def border_expansion(chunk: Chunk[T], empty_cell: Callable[[T], bool]) -> Expansion4:
    """Flag every edge of a 2D *chunk* holding a cell that is not empty.

    Upgrade with :meth:`Expansion4.to_expansion8` to also grow diagonally
    from corners.
    """
    if chunk.dims != 2:
        raise ValueError("border expansion is only defined for 2D chunks")
    last = chunk.size - 1

    def occupied(cells: list[T]) -> bool:
        return any(not empty_cell(cell) for cell in cells)

    return Expansion4(
        north=occupied(chunk.horizontal_slice(0)),
        south=occupied(chunk.horizontal_slice(last)),
        east=occupied(chunk.vertical_slice(last)),
        west=occupied(chunk.vertical_slice(0)),
    )

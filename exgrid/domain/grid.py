"""Effectively infinite grids backed by a map of chunks.

A grid maps chunk coordinates to chunks and exposes a cell-level API in
global coordinates. Reads never allocate: a cell inside a missing chunk
reads as ``default_factory()`` on :class:`ExGrid` and as ``None`` on
:class:`ExGridSparse`. Writes create the owning chunk on demand, at most
one chunk per call.

Iteration follows the backing map's order composed with each chunk's
row-major order; no caller should rely on a particular global order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Mapping, MutableMapping, Sequence
from typing import Any, Generic, TypeVar

from exgrid.config.constants import DEFAULT_CHUNK_SIZE, DEFAULT_DIMS
from exgrid.domain.chunk import Chunk, ChunkSparse
from exgrid.domain.coords import (
    Bounds,
    ChunkPos,
    GlobalPos,
    LocalPos,
    cell_bounds,
    check_dims,
    check_size,
    chunks_bounds,
    compose,
    decompose,
)
from exgrid.domain.sampling import MISSING, multilinear

T = TypeVar("T")
C = TypeVar("C", bound="Chunk[Any] | ChunkSparse[Any]")

MapFactory = Callable[[], MutableMapping[ChunkPos, Any]]


class ChunkEntry(Generic[C]):
    """Handle on one chunk slot that allocates only when asked to."""

    __slots__ = ("_grid", "_key")

    def __init__(self, grid: _ChunkGrid[C], key: ChunkPos) -> None:
        self._grid = grid
        self._key = key

    @property
    def key(self) -> ChunkPos:
        return self._key

    @property
    def is_vacant(self) -> bool:
        return self._key not in self._grid._chunks

    def get(self) -> C | None:
        return self._grid._chunks.get(self._key)

    def insert(self, chunk: C) -> C | None:
        """Store *chunk* in the slot, returning the chunk it replaced."""
        return self._grid.insert_chunk(self._key, chunk)

    def or_insert_with(self, factory: Callable[[], C]) -> C:
        chunks = self._grid._chunks
        if self._key not in chunks:
            self._grid.insert_chunk(self._key, factory())
        return chunks[self._key]

    def or_insert(self, chunk: C) -> C:
        return self.or_insert_with(lambda: chunk)

    def or_default(self) -> C:
        return self.or_insert_with(self._grid._new_chunk)


class CellEntry(Generic[T]):
    """Handle on one cell that defers chunk creation until a value is committed.

    A dense cell is occupied when its chunk exists; a sparse cell when it
    holds a value.
    """

    __slots__ = ("_grid", "_pos")

    def __init__(self, grid: _ChunkGrid[Any], pos: GlobalPos) -> None:
        self._grid = grid
        self._pos = pos

    @property
    def position(self) -> GlobalPos:
        return self._pos

    @property
    def is_occupied(self) -> bool:
        return self._grid._lookup(self._pos) is not MISSING

    def get(self) -> T | None:
        value = self._grid._lookup(self._pos)
        return None if value is MISSING else value

    def set(self, value: T) -> T | None:
        """Commit *value*, returning the previous one."""
        return self._grid._commit(self._pos, value)

    def or_insert_with(self, factory: Callable[[], T]) -> T:
        value = self._grid._lookup(self._pos)
        if value is MISSING:
            value = factory()
            self._grid._commit(self._pos, value)
        return value

    def or_insert(self, value: T) -> T:
        return self.or_insert_with(lambda: value)

    def and_modify(self, fn: Callable[[T], T]) -> CellEntry[T]:
        """Replace an occupied value with ``fn(value)``; vacant entries are left alone."""
        value = self._grid._lookup(self._pos)
        if value is not MISSING:
            self._grid._commit(self._pos, fn(value))
        return self


class _ChunkGrid(ABC, Generic[C]):
    """Chunk-map bookkeeping shared by the dense and sparse grids."""

    def __init__(
        self,
        chunk_size: int,
        dims: int,
        chunks: Mapping[ChunkPos, C] | None,
        map_factory: MapFactory,
    ) -> None:
        check_size(chunk_size)
        check_dims(dims)
        self._chunk_size = chunk_size
        self._dims = dims
        self._map_factory = map_factory
        self._chunks: MutableMapping[ChunkPos, C] = map_factory()
        if chunks is not None:
            for pos, chunk in chunks.items():
                self.insert_chunk(pos, chunk)

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def dims(self) -> int:
        return self._dims

    @property
    def chunk_count(self) -> int:
        return len(self._chunks)

    # -- coordinates ---------------------------------------------------------

    def _check_pos(self, pos: Sequence[int]) -> tuple[int, ...]:
        pos = tuple(pos)
        if len(pos) != self._dims:
            raise ValueError(f"expected a {self._dims}-axis position, got {pos!r}")
        return pos

    def decompose(self, pos: Sequence[int]) -> tuple[ChunkPos, LocalPos]:
        return decompose(self._check_pos(pos), self._chunk_size)

    def compose(self, chunk: Sequence[int], local: Sequence[int]) -> GlobalPos:
        return compose(chunk, local, self._chunk_size)

    # -- chunk access --------------------------------------------------------

    @abstractmethod
    def _new_chunk(self) -> C:
        """Fresh chunk of the grid's shape."""

    @abstractmethod
    def _check_chunk(self, chunk: C) -> None:
        """Raise unless *chunk* can be stored in this grid."""

    def clear(self) -> None:
        self._chunks.clear()

    def get_chunk(self, pos: Sequence[int]) -> C | None:
        return self._chunks.get(self._check_pos(pos))

    def contains_chunk(self, pos: Sequence[int]) -> bool:
        return self._check_pos(pos) in self._chunks

    def get_chunk_entry(self, pos: Sequence[int]) -> ChunkEntry[C]:
        return ChunkEntry(self, self._check_pos(pos))

    def get_chunk_default(self, pos: Sequence[int]) -> C:
        """Chunk at *pos*, allocating a fresh one if absent."""
        return self.get_chunk_entry(pos).or_default()

    def insert_chunk(self, pos: Sequence[int], chunk: C) -> C | None:
        """Store *chunk* at *pos*, returning the chunk it replaced."""
        key = self._check_pos(pos)
        self._check_chunk(chunk)
        previous = self._chunks.get(key)
        self._chunks[key] = chunk
        return previous

    def remove_chunk(self, pos: Sequence[int]) -> C | None:
        return self._chunks.pop(self._check_pos(pos), None)

    def retain(self, keep: Callable[[ChunkPos, C], bool]) -> int:
        """Drop every chunk for which ``keep(pos, chunk)`` is false; return the count."""
        doomed = [pos for pos, chunk in self._chunks.items() if not keep(pos, chunk)]
        for pos in doomed:
            del self._chunks[pos]
        return len(doomed)

    def chunks(self) -> Iterator[tuple[ChunkPos, C]]:
        return iter(self._chunks.items())

    def chunk_positions(self) -> Iterator[ChunkPos]:
        return iter(self._chunks.keys())

    def chunks_bounds(self) -> Bounds | None:
        """``(min, max)`` chunk coordinates over all chunks, or ``None`` if empty."""
        return chunks_bounds(self._chunks.keys())

    # -- cells ---------------------------------------------------------------

    @abstractmethod
    def _lookup(self, pos: Sequence[int]) -> Any:
        """Stored value at *pos*, or :data:`MISSING`; never allocates."""

    @abstractmethod
    def _commit(self, pos: Sequence[int], value: Any) -> Any:
        """Store *value* at *pos*, returning the previous value."""

    def __iter__(self) -> Iterator[Any]:
        for chunk in self._chunks.values():
            yield from chunk

    def cells(self) -> Iterator[tuple[GlobalPos, Any]]:
        """``(global position, value)`` for every stored cell."""
        size = self._chunk_size
        for chunk_pos, chunk in self._chunks.items():
            for local, value in chunk.cells():
                yield compose(chunk_pos, local, size), value

    def try_sample(self, position: Sequence[float]) -> Any | None:
        """Interpolate around *position*; ``None`` if any contributing cell has no value."""
        result = multilinear(self._check_sample_pos(position), self._lookup)
        return None if result is MISSING else result

    def _check_sample_pos(self, position: Sequence[float]) -> tuple[float, ...]:
        position = tuple(position)
        if len(position) != self._dims:
            raise ValueError(f"expected a {self._dims}-axis position, got {position!r}")
        return position

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return (
            self._chunk_size == other._chunk_size
            and self._dims == other._dims
            and dict(self._chunks) == dict(other._chunks)
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(chunk_size={self._chunk_size}, dims={self._dims}, "
            f"chunks={len(self._chunks)})"
        )


class ExGrid(_ChunkGrid[Chunk[T]], Generic[T]):
    """Dense infinite grid: every cell has a value, missing chunks read as default."""

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        default_factory: Callable[[], T] = int,  # type: ignore[assignment]
        *,
        dims: int = DEFAULT_DIMS,
        chunks: Mapping[ChunkPos, Chunk[T]] | None = None,
        map_factory: MapFactory = dict,
    ) -> None:
        self._default_factory = default_factory
        super().__init__(chunk_size, dims, chunks, map_factory)

    @property
    def default_factory(self) -> Callable[[], T]:
        return self._default_factory

    def _new_chunk(self) -> Chunk[T]:
        return Chunk.new(self._chunk_size, self._default_factory, self._dims)

    def _check_chunk(self, chunk: Chunk[T]) -> None:
        if not isinstance(chunk, Chunk):
            raise TypeError(f"ExGrid stores Chunk instances, got {type(chunk).__name__}")
        if chunk.size != self._chunk_size or chunk.dims != self._dims:
            raise ValueError(
                f"chunk shape ({chunk.size}, {chunk.dims}D) does not match grid "
                f"({self._chunk_size}, {self._dims}D)"
            )

    def _lookup(self, pos: Sequence[int]) -> Any:
        chunk_pos, local = decompose(pos, self._chunk_size)
        chunk = self._chunks.get(chunk_pos)
        return MISSING if chunk is None else chunk[local]

    def _commit(self, pos: Sequence[int], value: T) -> T:
        return self.insert_default(pos, value)

    def get(self, pos: Sequence[int]) -> T:
        """Value at *pos*; a missing chunk reads as ``default_factory()`` without allocating."""
        value = self._lookup(self._check_pos(pos))
        return self._default_factory() if value is MISSING else value

    def try_get(self, pos: Sequence[int]) -> T | None:
        """Value at *pos*, or ``None`` when its chunk does not exist."""
        value = self._lookup(self._check_pos(pos))
        return None if value is MISSING else value

    def get_mut_default(self, pos: Sequence[int]) -> T:
        """Value at *pos*, creating the owning chunk if necessary."""
        chunk_pos, local = self.decompose(pos)
        return self.get_chunk_default(chunk_pos)[local]

    def insert_default(self, pos: Sequence[int], value: T) -> T:
        """Set *pos* to *value*, creating the chunk if necessary; return the previous value."""
        chunk_pos, local = self.decompose(pos)
        return self.get_chunk_default(chunk_pos).replace(local, value)

    def update(self, pos: Sequence[int], fn: Callable[[T], T]) -> T:
        """Replace the value at *pos* with ``fn(value)`` and return the new value."""
        chunk_pos, local = self.decompose(pos)
        chunk = self.get_chunk_default(chunk_pos)
        value = fn(chunk[local])
        chunk[local] = value
        return value

    def __getitem__(self, pos: Sequence[int]) -> T:
        return self.get(pos)

    def __setitem__(self, pos: Sequence[int], value: T) -> None:
        self.insert_default(pos, value)

    def entry(self, pos: Sequence[int]) -> CellEntry[T]:
        return CellEntry(self, self._check_pos(pos))

    def bounds(self) -> Bounds | None:
        """Inclusive cell box covering every chunk, or ``None`` if empty."""
        bounds = self.chunks_bounds()
        return None if bounds is None else cell_bounds(bounds, self._chunk_size)

    def sample_or_default(self, position: Sequence[float]) -> Any:
        """Interpolate around *position*, reading missing chunks as default."""
        return multilinear(self._check_sample_pos(position), self.get)

    def sample_insert_default(self, position: Sequence[float]) -> Any:
        """Interpolate around *position*, allocating any missing contributing chunk."""
        return multilinear(self._check_sample_pos(position), self.get_mut_default)

    def empty_like(self) -> ExGrid[T]:
        """Grid with the same shape, default and map type, but no chunks."""
        return ExGrid(
            self._chunk_size,
            self._default_factory,
            dims=self._dims,
            map_factory=self._map_factory,
        )

    def copy(self) -> ExGrid[T]:
        grid = self.empty_like()
        for pos, chunk in self._chunks.items():
            grid._chunks[pos] = chunk.copy()
        return grid


class ExGridSparse(_ChunkGrid[ChunkSparse[T]], Generic[T]):
    """Sparse infinite grid: cells may be vacant, missing chunks read as ``None``."""

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        *,
        dims: int = DEFAULT_DIMS,
        chunks: Mapping[ChunkPos, ChunkSparse[T]] | None = None,
        map_factory: MapFactory = dict,
    ) -> None:
        super().__init__(chunk_size, dims, chunks, map_factory)

    def _new_chunk(self) -> ChunkSparse[T]:
        return ChunkSparse.new(self._chunk_size, self._dims)

    def _check_chunk(self, chunk: ChunkSparse[T]) -> None:
        if not isinstance(chunk, ChunkSparse):
            raise TypeError(f"ExGridSparse stores ChunkSparse instances, got {type(chunk).__name__}")
        if chunk.size != self._chunk_size or chunk.dims != self._dims:
            raise ValueError(
                f"chunk shape ({chunk.size}, {chunk.dims}D) does not match grid "
                f"({self._chunk_size}, {self._dims}D)"
            )

    def _lookup(self, pos: Sequence[int]) -> Any:
        chunk_pos, local = decompose(pos, self._chunk_size)
        chunk = self._chunks.get(chunk_pos)
        if chunk is None:
            return MISSING
        value = chunk[local]
        return MISSING if value is None else value

    def _commit(self, pos: Sequence[int], value: T) -> T | None:
        return self.insert(pos, value)

    def get(self, pos: Sequence[int]) -> T | None:
        """Value at *pos*, or ``None`` if vacant or its chunk does not exist."""
        value = self._lookup(self._check_pos(pos))
        return None if value is MISSING else value

    def insert(self, pos: Sequence[int], value: T) -> T | None:
        """Set *pos* to *value*, creating the chunk if necessary; return the previous value."""
        if value is None:
            raise ValueError("use remove() to vacate a cell")
        chunk_pos, local = self.decompose(pos)
        return self.get_chunk_default(chunk_pos).replace(local, value)

    def remove(self, pos: Sequence[int]) -> T | None:
        """Vacate *pos* without allocating, returning the value it held."""
        chunk_pos, local = self.decompose(pos)
        chunk = self._chunks.get(chunk_pos)
        return None if chunk is None else chunk.remove(local)

    def __getitem__(self, pos: Sequence[int]) -> T | None:
        return self.get(pos)

    def __setitem__(self, pos: Sequence[int], value: T) -> None:
        self.insert(pos, value)

    def entry(self, pos: Sequence[int]) -> CellEntry[T]:
        return CellEntry(self, self._check_pos(pos))

    def clean_up(self) -> int:
        """Drop chunks with no occupied cell; return how many were dropped."""
        return self.retain(lambda _pos, chunk: not chunk.is_all_vacant())

    def is_all_vacant(self) -> bool:
        return all(chunk.is_all_vacant() for chunk in self._chunks.values())

    def is_all_occupied(self) -> bool:
        return bool(self._chunks) and all(
            chunk.is_all_occupied() for chunk in self._chunks.values()
        )

    def naive_bounds(self) -> Bounds | None:
        """Cell box covering every chunk; may include vacant border cells."""
        bounds = self.chunks_bounds()
        return None if bounds is None else cell_bounds(bounds, self._chunk_size)

    def empty_like(self) -> ExGridSparse[T]:
        return ExGridSparse(self._chunk_size, dims=self._dims, map_factory=self._map_factory)

    def copy(self) -> ExGridSparse[T]:
        grid = self.empty_like()
        for pos, chunk in self._chunks.items():
            grid._chunks[pos] = chunk.copy()
        return grid

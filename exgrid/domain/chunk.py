"""Fixed-extent dense tiles: the unit of allocation in a grid.

A chunk owns exactly ``size ** dims`` cells in a flat row-major buffer
(x varies fastest). :class:`ChunkSparse` wraps a chunk of optional cells
where ``None`` marks a vacant slot.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import Any, Generic, TypeVar

import numpy as np

from exgrid.config.constants import DEFAULT_DIMS
from exgrid.domain.coords import (
    LocalPos,
    check_dims,
    check_size,
    index_to_local,
    local_to_index,
)
from exgrid.domain.sampling import MISSING, multilinear

T = TypeVar("T")
U = TypeVar("U")


class Chunk(Generic[T]):
    """Dense ``size ** dims`` tile of cells."""

    __slots__ = ("_size", "_dims", "_cells")

    def __init__(self, size: int, cells: Iterable[T], dims: int = DEFAULT_DIMS) -> None:
        check_size(size)
        check_dims(dims)
        buffer = list(cells)
        if len(buffer) != size**dims:
            raise ValueError(
                f"a chunk of size {size} in {dims}D holds {size**dims} cells, got {len(buffer)}"
            )
        self._size = size
        self._dims = dims
        self._cells = buffer

    @classmethod
    def new(
        cls, size: int, default_factory: Callable[[], T], dims: int = DEFAULT_DIMS
    ) -> Chunk[T]:
        """Chunk with every cell set to ``default_factory()``."""
        check_size(size)
        check_dims(dims)
        return cls(size, (default_factory() for _ in range(size**dims)), dims)

    @classmethod
    def init(
        cls, size: int, fn: Callable[[LocalPos], T], dims: int = DEFAULT_DIMS
    ) -> Chunk[T]:
        """Chunk with every cell set to ``fn(local)``, visited in row-major order."""
        check_size(size)
        check_dims(dims)
        return cls(size, (fn(index_to_local(i, size, dims)) for i in range(size**dims)), dims)

    @property
    def size(self) -> int:
        return self._size

    @property
    def dims(self) -> int:
        return self._dims

    def __len__(self) -> int:
        return len(self._cells)

    def _index(self, local: Sequence[int]) -> int:
        return local_to_index(tuple(local), self._size, self._dims)

    def __getitem__(self, local: Sequence[int]) -> T:
        return self._cells[self._index(local)]

    def __setitem__(self, local: Sequence[int], value: T) -> None:
        self._cells[self._index(local)] = value

    def get(self, local: Sequence[int]) -> T:
        return self[local]

    def replace(self, local: Sequence[int], value: T) -> T:
        """Store *value* at *local* and return what was there."""
        index = self._index(local)
        previous = self._cells[index]
        self._cells[index] = value
        return previous

    def __iter__(self) -> Iterator[T]:
        return iter(self._cells)

    def positions(self) -> Iterator[LocalPos]:
        """Local positions in storage order."""
        for i in range(len(self._cells)):
            yield index_to_local(i, self._size, self._dims)

    def cells(self) -> Iterator[tuple[LocalPos, T]]:
        """``(local, value)`` pairs in storage order."""
        for i, value in enumerate(self._cells):
            yield index_to_local(i, self._size, self._dims), value

    def map(self, fn: Callable[[T], U]) -> Chunk[U]:
        return Chunk(self._size, (fn(value) for value in self._cells), self._dims)

    def to_list(self) -> list[T]:
        """Copy of the flat row-major cell buffer."""
        return list(self._cells)

    def to_array(self, dtype: Any = None) -> np.ndarray:
        """Cells as an array indexed ``[y, x]`` (``[z, y, x]`` in 3D)."""
        return np.asarray(self._cells, dtype=dtype).reshape((self._size,) * self._dims)

    def horizontal_slice(self, y: int) -> list[T]:
        """Row ``y`` of a 2D chunk, west to east."""
        self._require_2d()
        if not 0 <= y < self._size:
            raise IndexError(f"index out of bounds: the size is {self._size} but the y-index is {y}")
        start = y * self._size
        return self._cells[start : start + self._size]

    def vertical_slice(self, x: int) -> list[T]:
        """Column ``x`` of a 2D chunk, north to south."""
        self._require_2d()
        if not 0 <= x < self._size:
            raise IndexError(f"index out of bounds: the size is {self._size} but the x-index is {x}")
        return self._cells[x :: self._size]

    def sample(self, position: Sequence[float]) -> Any:
        """Multilinear interpolation of the cells surrounding *position*.

        Each coordinate must lie in ``[0, size)``. Upper neighbours past the
        last cell reuse the edge cell.
        """
        check_sample_position(position, self._size, self._dims)
        last = self._size - 1
        return multilinear(position, lambda corner: self[tuple(min(c, last) for c in corner)])

    def copy(self) -> Chunk[T]:
        return Chunk(self._size, self._cells, self._dims)

    def _require_2d(self) -> None:
        if self._dims != 2:
            raise ValueError("slices are only defined for 2D chunks")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Chunk):
            return NotImplemented
        return (
            self._size == other._size
            and self._dims == other._dims
            and self._cells == other._cells
        )

    def __repr__(self) -> str:
        return f"Chunk(size={self._size}, dims={self._dims})"


class ChunkSparse(Generic[T]):
    """Tile whose cells may be vacant (``None``)."""

    __slots__ = ("_inner",)

    def __init__(
        self,
        size: int,
        cells: Iterable[T | None] | None = None,
        dims: int = DEFAULT_DIMS,
    ) -> None:
        check_size(size)
        check_dims(dims)
        if cells is None:
            cells = [None] * size**dims
        self._inner: Chunk[T | None] = Chunk(size, cells, dims)

    @classmethod
    def new(cls, size: int, dims: int = DEFAULT_DIMS) -> ChunkSparse[T]:
        """Chunk with every cell vacant."""
        return cls(size, None, dims)

    @classmethod
    def init(
        cls, size: int, fn: Callable[[LocalPos], T | None], dims: int = DEFAULT_DIMS
    ) -> ChunkSparse[T]:
        return cls.from_chunk(Chunk.init(size, fn, dims))

    @classmethod
    def from_chunk(cls, chunk: Chunk[T | None]) -> ChunkSparse[T]:
        sparse: ChunkSparse[T] = cls.__new__(cls)
        sparse._inner = chunk
        return sparse

    @property
    def size(self) -> int:
        return self._inner.size

    @property
    def dims(self) -> int:
        return self._inner.dims

    def as_chunk(self) -> Chunk[T | None]:
        return self._inner

    def __getitem__(self, local: Sequence[int]) -> T | None:
        return self._inner[local]

    def __setitem__(self, local: Sequence[int], value: T | None) -> None:
        self._inner[local] = value

    def get(self, local: Sequence[int]) -> T | None:
        return self._inner[local]

    def replace(self, local: Sequence[int], value: T | None) -> T | None:
        return self._inner.replace(local, value)

    def remove(self, local: Sequence[int]) -> T | None:
        """Vacate *local*, returning the value it held."""
        return self._inner.replace(local, None)

    def is_all_vacant(self) -> bool:
        """True if every cell is vacant."""
        return all(cell is None for cell in self._inner)

    def is_all_occupied(self) -> bool:
        """True if no cell is vacant."""
        return all(cell is not None for cell in self._inner)

    def count_occupied(self) -> int:
        return sum(1 for cell in self._inner if cell is not None)

    def __iter__(self) -> Iterator[T]:
        """Occupied values only."""
        return (cell for cell in self._inner if cell is not None)

    def cells(self) -> Iterator[tuple[LocalPos, T]]:
        """``(local, value)`` for occupied cells only."""
        return ((local, cell) for local, cell in self._inner.cells() if cell is not None)

    def map(self, fn: Callable[[T | None], U | None]) -> ChunkSparse[U]:
        return ChunkSparse.from_chunk(self._inner.map(fn))

    def map_sparse(self, fn: Callable[[T], U]) -> ChunkSparse[U]:
        """Map occupied cells, leaving vacant cells vacant."""
        return self.map(lambda cell: None if cell is None else fn(cell))

    def map_dense(self, fn: Callable[[T | None], U]) -> Chunk[U]:
        """Map every slot, vacant or not, into a dense chunk."""
        return self._inner.map(fn)

    def to_list(self) -> list[T | None]:
        return self._inner.to_list()

    def horizontal_slice(self, y: int) -> list[T | None]:
        return self._inner.horizontal_slice(y)

    def vertical_slice(self, x: int) -> list[T | None]:
        return self._inner.vertical_slice(x)

    def sample(self, position: Sequence[float]) -> Any | None:
        """Like :meth:`Chunk.sample`, but ``None`` if any contributing cell is vacant."""
        check_sample_position(position, self.size, self.dims)
        last = self.size - 1

        def fetch(corner: tuple[int, ...]) -> Any:
            cell = self._inner[tuple(min(c, last) for c in corner)]
            return MISSING if cell is None else cell

        result = multilinear(position, fetch)
        return None if result is MISSING else result

    def copy(self) -> ChunkSparse[T]:
        return ChunkSparse.from_chunk(self._inner.copy())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChunkSparse):
            return NotImplemented
        return self._inner == other._inner

    def __repr__(self) -> str:
        return f"ChunkSparse(size={self.size}, dims={self.dims})"


def check_sample_position(position: Sequence[float], size: int, dims: int) -> None:
    """Raise :exc:`ValueError` unless *position* lies in ``[0, size)`` on every axis."""
    if len(position) != dims:
        raise ValueError(f"expected a {dims}-axis sample position, got {tuple(position)!r}")
    for p in position:
        if not 0 <= p < size:
            raise ValueError(
                f"position out of bounds: the size is {size} but the position is {tuple(position)!r}"
            )

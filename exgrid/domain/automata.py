"""Double-buffered cellular-automaton engine over an infinite dense grid.

Each step reads only the previous generation: new chunks are built in a
scratch grid and swapped in once every live chunk has been processed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Generic, TypeVar

from loguru import logger

from exgrid.config.constants import DEFAULT_CHUNK_SIZE
from exgrid.domain.chunk import Chunk
from exgrid.domain.coords import ChunkPos, GlobalPos, compose
from exgrid.domain.expansion import Expansion4, Expansion8, as_expansion8
from exgrid.domain.grid import ExGrid

T = TypeVar("T")


class AutomataRules(ABC, Generic[T]):
    """Rule object consulted by :class:`Automata` once per chunk and per cell."""

    @abstractmethod
    def expansion(self, chunk: Chunk[T]) -> Expansion8 | Expansion4:
        """Neighbour chunks that must exist in the next generation.

        Without expansion a pattern can never cross into an unallocated chunk.
        """

    @abstractmethod
    def simulate(self, pos: GlobalPos, grid: ExGrid[T]) -> T:
        """Value of the cell at *pos* in the next generation, given the previous *grid*."""

    def step_completed(self, grid: ExGrid[T]) -> None:
        """Called once after every step with the new generation."""

    def empty_cell(self, cell: T) -> bool:
        """Whether *cell* counts as empty for :meth:`Automata.clean_up`.

        Nothing is empty by default, so cleanup keeps every chunk.
        """
        return False


class Automata(Generic[T]):
    """A rule object paired with exactly one live grid."""

    def __init__(
        self,
        rules: AutomataRules[T],
        state: ExGrid[T] | None = None,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        default_factory: Callable[[], T] = int,  # type: ignore[assignment]
    ) -> None:
        if state is None:
            state = ExGrid(chunk_size, default_factory)
        if state.dims != 2:
            raise ValueError("automata run on 2D grids only")
        self._rules = rules
        self._state = state
        self._generation = 0

    @property
    def rules(self) -> AutomataRules[T]:
        return self._rules

    @property
    def state(self) -> ExGrid[T]:
        return self._state

    @state.setter
    def state(self, grid: ExGrid[T]) -> None:
        if grid.dims != 2:
            raise ValueError("automata run on 2D grids only")
        self._state = grid

    @property
    def generation(self) -> int:
        """Number of steps taken since construction."""
        return self._generation

    def step(self) -> None:
        """Advance one generation into a freshly allocated grid."""
        self.step_scratch(self._state.empty_like())

    def step_scratch(self, scratch: ExGrid[T]) -> ExGrid[T]:
        """Advance one generation, building it in *scratch*.

        *scratch* is cleared first. It must not be the live grid and must share
        its shape and default_factory. Returns the previous generation's grid,
        which can be passed back in as the next scratch buffer.
        """
        previous = self._state
        if scratch is previous:
            raise ValueError("scratch grid must not be the live grid")
        if scratch.chunk_size != previous.chunk_size or scratch.dims != previous.dims:
            raise ValueError("scratch grid shape does not match the live grid")
        if scratch.default_factory is not previous.default_factory:
            raise ValueError("scratch grid default_factory does not match the live grid")
        scratch.clear()

        size = previous.chunk_size
        rules = self._rules

        def materialize(chunk_pos: ChunkPos) -> None:
            entry = scratch.get_chunk_entry(chunk_pos)
            if entry.is_vacant:
                entry.insert(
                    Chunk.init(
                        size,
                        lambda local: rules.simulate(compose(chunk_pos, local, size), previous),
                    )
                )

        for chunk_pos, chunk in previous.chunks():
            as_expansion8(rules.expansion(chunk)).apply_with_center(chunk_pos, materialize)

        self._state = scratch
        self._generation += 1
        logger.debug(
            "generation {}: {} -> {} chunks",
            self._generation,
            previous.chunk_count,
            scratch.chunk_count,
        )
        rules.step_completed(scratch)
        return previous

    def clean_up(self) -> int:
        """Remove chunks whose cells are all empty per the rules; return the count."""
        empty_cell = self._rules.empty_cell
        removed = self._state.retain(
            lambda _pos, chunk: any(not empty_cell(cell) for cell in chunk)
        )
        if removed:
            logger.debug("clean_up removed {} chunks at generation {}", removed, self._generation)
        return removed

    def live_cells(self) -> int:
        """Count of cells the rules do not consider empty."""
        empty_cell = self._rules.empty_cell
        return sum(1 for cell in self._state if not empty_cell(cell))

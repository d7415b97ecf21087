"""Tests for exgrid.domain.automata module."""

from __future__ import annotations

import pytest

from exgrid.domain.automata import Automata, AutomataRules
from exgrid.domain.chunk import Chunk
from exgrid.domain.coords import GlobalPos
from exgrid.domain.expansion import Expansion4, Expansion8
from exgrid.domain.grid import ExGrid


class ShiftEast(AutomataRules[int]):
    """Every cell takes the value of its western neighbour."""

    def __init__(self) -> None:
        self.completed: list[int] = []

    def expansion(self, chunk: Chunk[int]) -> Expansion4:
        return Expansion4(east=any(chunk.vertical_slice(chunk.size - 1)))

    def simulate(self, pos: GlobalPos, grid: ExGrid[int]) -> int:
        x, y = pos
        return grid.get((x - 1, y))

    def step_completed(self, grid: ExGrid[int]) -> None:
        self.completed.append(grid.chunk_count)

    def empty_cell(self, cell: int) -> bool:
        return cell == 0


class Frozen(AutomataRules[int]):
    """Keeps every cell as is and relies on the default hooks."""

    def expansion(self, chunk: Chunk[int]) -> Expansion8:
        return Expansion8()

    def simulate(self, pos: GlobalPos, grid: ExGrid[int]) -> int:
        return grid.get(pos)


def _shift_automata() -> Automata[int]:
    grid: ExGrid[int] = ExGrid(4)
    grid[(0, 0)] = 7
    return Automata(ShiftEast(), grid)


class TestAutomataStep:
    def test_reads_previous_generation_only(self) -> None:
        automata = _shift_automata()
        automata.step()
        assert automata.state[(1, 0)] == 7
        assert automata.state[(0, 0)] == 0
        assert automata.state[(2, 0)] == 0

    def test_crosses_chunk_boundary_through_expansion(self) -> None:
        automata = _shift_automata()
        for _ in range(5):
            automata.step()
        assert automata.state[(5, 0)] == 7
        assert automata.state.contains_chunk((1, 0))
        assert automata.generation == 5

    def test_expansion_allocates_neighbours(self) -> None:
        automata = _shift_automata()
        for _ in range(3):
            automata.step()
        assert list(automata.state.chunk_positions()) == [(0, 0)]
        automata.step()
        assert sorted(automata.state.chunk_positions()) == [(0, 0), (1, 0)]

    def test_step_completed_sees_new_generation(self) -> None:
        automata = _shift_automata()
        automata.step()
        automata.step()
        assert automata.rules.completed == [1, 1]  # type: ignore[attr-defined]

    def test_empty_automata_stays_empty(self) -> None:
        automata: Automata[int] = Automata(ShiftEast(), chunk_size=4)
        automata.step()
        assert automata.state.chunk_count == 0
        assert automata.generation == 1


class GrowNorth(AutomataRules[int]):
    """Copies every cell and always requests the northern neighbour."""

    def expansion(self, chunk: Chunk[int]) -> Expansion4:
        return Expansion4(north=True)

    def simulate(self, pos: GlobalPos, grid: ExGrid[int]) -> int:
        return grid.get(pos)


class TestAutomataExpansion:
    def test_north_neighbour_materialized(self) -> None:
        grid: ExGrid[int] = ExGrid(4)
        grid[(1, 1)] = 1
        automata = Automata(GrowNorth(), grid)
        automata.step()
        assert sorted(automata.state.chunk_positions()) == [(0, -1), (0, 0)]
        assert all(cell == 0 for cell in automata.state.get_chunk((0, -1)))
        assert automata.state[(1, 1)] == 1


class TestAutomataScratch:
    def test_returns_previous_grid(self) -> None:
        automata = _shift_automata()
        first = automata.state
        scratch: ExGrid[int] = ExGrid(4)
        previous = automata.step_scratch(scratch)
        assert previous is first
        assert automata.state is scratch

    def test_ping_pong_matches_fresh_steps(self) -> None:
        fresh = _shift_automata()
        reused = _shift_automata()
        scratch = reused.state.empty_like()
        for _ in range(6):
            fresh.step()
            scratch = reused.step_scratch(scratch)
        assert reused.state == fresh.state

    def test_stale_scratch_contents_discarded(self) -> None:
        automata = _shift_automata()
        scratch: ExGrid[int] = ExGrid(4)
        scratch[(-20, -20)] = 99
        automata.step_scratch(scratch)
        assert not automata.state.contains_chunk((-5, -5))

    def test_live_grid_as_scratch_rejected(self) -> None:
        automata = _shift_automata()
        with pytest.raises(ValueError, match="live grid"):
            automata.step_scratch(automata.state)

    def test_mismatched_scratch_rejected(self) -> None:
        automata = _shift_automata()
        with pytest.raises(ValueError, match="shape"):
            automata.step_scratch(ExGrid(8))

    def test_scratch_with_other_default_rejected(self) -> None:
        automata = _shift_automata()
        with pytest.raises(ValueError, match="default_factory"):
            automata.step_scratch(ExGrid(4, lambda: 5))
        assert automata.generation == 0
        assert automata.state[(9, 9)] == 0


class TestAutomataCleanUp:
    def test_removes_empty_chunks(self) -> None:
        automata = _shift_automata()
        for _ in range(4):
            automata.step()
        assert automata.state.chunk_count == 2
        assert automata.clean_up() == 1
        assert list(automata.state.chunk_positions()) == [(1, 0)]
        assert automata.state[(4, 0)] == 7

    def test_default_empty_cell_keeps_everything(self) -> None:
        grid: ExGrid[int] = ExGrid(4)
        grid.get_chunk_default((3, 3))
        automata = Automata(Frozen(), grid)
        assert automata.clean_up() == 0
        assert automata.state.chunk_count == 1

    def test_default_step_completed_is_noop(self) -> None:
        grid: ExGrid[int] = ExGrid(4)
        grid[(1, 1)] = 3
        automata = Automata(Frozen(), grid)
        automata.step()
        assert automata.state == grid
        assert automata.state is not grid

    def test_live_cells(self) -> None:
        automata = _shift_automata()
        assert automata.live_cells() == 1


class TestAutomataValidation:
    def test_three_axis_grid_rejected(self) -> None:
        with pytest.raises(ValueError, match="2D"):
            Automata(Frozen(), ExGrid(4, dims=3))

    def test_state_setter_rejects_three_axes(self) -> None:
        automata = Automata(Frozen(), chunk_size=4)
        with pytest.raises(ValueError):
            automata.state = ExGrid(4, dims=3)

    def test_rules_must_implement_abstract_methods(self) -> None:
        with pytest.raises(TypeError):
            AutomataRules()  # type: ignore[abstract]

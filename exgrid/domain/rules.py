"""Life-like totalistic rules for the automaton engine.

A rule is written as a rulestring such as ``B3/S23``: a dead cell is born
with a live-neighbour count listed after ``B`` and a live cell survives with
a count listed after ``S``. Neighbours are the eight Moore cells.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from exgrid.domain.automata import AutomataRules
from exgrid.domain.chunk import Chunk
from exgrid.domain.coords import GlobalPos
from exgrid.domain.expansion import Expansion8, border_expansion
from exgrid.domain.grid import ExGrid

CONWAY_RULESTRING = "B3/S23"

MOORE_OFFSETS: tuple[tuple[int, int], ...] = tuple(
    (dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dx, dy) != (0, 0)
)

_RULESTRING_RE = re.compile(r"^B([0-8]*)/S([0-8]*)$", re.IGNORECASE)


def parse_rulestring(rulestring: str) -> tuple[frozenset[int], frozenset[int]]:
    """Return ``(birth, survival)`` neighbour counts for a ``B.../S...`` rulestring."""
    match = _RULESTRING_RE.match(rulestring.strip())
    if match is None:
        raise ValueError(f"invalid rulestring: {rulestring!r}")
    birth = frozenset(int(ch) for ch in match.group(1))
    survival = frozenset(int(ch) for ch in match.group(2))
    return birth, survival


class LifeRules(AutomataRules[bool]):
    """Life-like automaton over boolean cells."""

    def __init__(
        self,
        birth: Iterable[int] = (3,),
        survival: Iterable[int] = (2, 3),
    ) -> None:
        self.birth = frozenset(birth)
        self.survival = frozenset(survival)
        if 0 in self.birth:
            # B0 would light up the infinite empty plane.
            raise ValueError("birth on 0 neighbours is not supported")
        for count in self.birth | self.survival:
            if not 0 <= count <= 8:
                raise ValueError(f"neighbour counts must be in [0, 8], got {count}")
        self.population_history: list[int] = []

    @classmethod
    def from_rulestring(cls, rulestring: str) -> LifeRules:
        birth, survival = parse_rulestring(rulestring)
        return cls(birth=birth, survival=survival)

    @property
    def rulestring(self) -> str:
        birth = "".join(str(n) for n in sorted(self.birth))
        survival = "".join(str(n) for n in sorted(self.survival))
        return f"B{birth}/S{survival}"

    def expansion(self, chunk: Chunk[bool]) -> Expansion8:
        return border_expansion(chunk, self.empty_cell).to_expansion8()

    def simulate(self, pos: GlobalPos, grid: ExGrid[bool]) -> bool:
        x, y = pos
        neighbours = sum(1 for dx, dy in MOORE_OFFSETS if grid.get((x + dx, y + dy)))
        if grid.get(pos):
            return neighbours in self.survival
        return neighbours in self.birth

    def empty_cell(self, cell: bool) -> bool:
        return not cell

    def step_completed(self, grid: ExGrid[bool]) -> None:
        self.population_history.append(sum(1 for cell in grid if cell))


def place_pattern(
    grid: ExGrid[bool], cells: Iterable[tuple[int, int]], origin: tuple[int, int] = (0, 0)
) -> None:
    """Set each ``(x, y)`` in *cells*, shifted by *origin*, alive."""
    ox, oy = origin
    for x, y in cells:
        grid.insert_default((ox + x, oy + y), True)


GLIDER: tuple[tuple[int, int], ...] = ((1, 0), (2, 1), (0, 2), (1, 2), (2, 2))
"""South-east travelling glider."""

BLINKER: tuple[tuple[int, int], ...] = ((0, 1), (1, 1), (2, 1))
"""Period-2 oscillator, horizontal phase."""

BLOCK: tuple[tuple[int, int], ...] = ((0, 0), (1, 0), (0, 1), (1, 1))
"""Still life."""

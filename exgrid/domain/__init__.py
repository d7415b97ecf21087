"""Domain layer: chunks, infinite grids, expansion sets, and the automaton engine."""

from exgrid.domain.automata import Automata, AutomataRules
from exgrid.domain.chunk import Chunk, ChunkSparse
from exgrid.domain.coords import (
    Bounds,
    ChunkPos,
    GlobalPos,
    LocalPos,
    compose,
    decompose,
    index_to_local,
    local_to_index,
)
from exgrid.domain.expansion import (
    Expansion4,
    Expansion8,
    as_expansion8,
    border_expansion,
)
from exgrid.domain.grid import CellEntry, ChunkEntry, ExGrid, ExGridSparse
from exgrid.domain.rules import (
    BLINKER,
    BLOCK,
    CONWAY_RULESTRING,
    GLIDER,
    LifeRules,
    parse_rulestring,
    place_pattern,
)

__all__ = [
    "BLINKER",
    "BLOCK",
    "Automata",
    "AutomataRules",
    "Bounds",
    "CONWAY_RULESTRING",
    "CellEntry",
    "Chunk",
    "ChunkEntry",
    "ChunkPos",
    "ChunkSparse",
    "ExGrid",
    "ExGridSparse",
    "Expansion4",
    "Expansion8",
    "GLIDER",
    "GlobalPos",
    "LifeRules",
    "LocalPos",
    "as_expansion8",
    "border_expansion",
    "compose",
    "decompose",
    "index_to_local",
    "local_to_index",
    "parse_rulestring",
    "place_pattern",
]

# src/core/types.py
#!/usr/bin/env python3
from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Optional, Dict, Any, Protocol, Tuple


class Position(NamedTuple):
    col: int
    row: int


Cell = Tuple[int, int]  # (col, row); Position is a drop-in


class Direction(Enum):
    # (dx, dy, wall bit)
    NORTH = (0, -1, 1)
    EAST = (1, 0, 2)
    SOUTH = (0, 1, 4)
    WEST = (-1, 0, 8)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]

    @property
    def bit(self) -> int:
        return self.value[2]

    @property
    def opposite(self) -> "Direction":
        return _OPPOSITE[self]


_OPPOSITE = {
    Direction.NORTH: Direction.SOUTH,
    Direction.SOUTH: Direction.NORTH,
    Direction.EAST: Direction.WEST,
    Direction.WEST: Direction.EAST,
}

# expansion order used by the search
SEARCH_ORDER = (Direction.NORTH, Direction.SOUTH, Direction.EAST, Direction.WEST)


class GridModel(Protocol):
    """Anything the search can walk: a fixed extent plus a passage predicate."""

    width: int
    height: int

    def is_open(self, pos: Position, direction: Direction) -> bool: ...


# -------------------- trace --------------------

@dataclass
class CellTrace:
    g: int
    h: int
    f: int
    in_frontier: bool = True
    finalized: bool = False
    in_final_path: bool = False
    times_opened: int = 1


@dataclass(frozen=True)
class TraceEvent:
    seq: int
    kind: str                     # "open" | "update" | "close" | "path"
    position: Position
    g: int
    h: int
    f: int


@dataclass
class SearchTrace:
    """
    Per-cell scoring state recorded while a search runs.

    Written only by the search engine, read by whoever visualizes it.
    `events` keeps the write order so the search can be replayed.
    """
    cells: Dict[Position, CellTrace] = field(default_factory=dict)
    events: List[TraceEvent] = field(default_factory=list)

    def __contains__(self, pos) -> bool:
        return pos in self.cells

    def __len__(self) -> int:
        return len(self.cells)

    def get(self, pos) -> Optional[CellTrace]:
        return self.cells.get(pos)

    def frontier(self) -> List[Position]:
        return [p for p, c in self.cells.items() if c.in_frontier]

    def closed(self) -> List[Position]:
        return [p for p, c in self.cells.items() if c.finalized]

    def final_path(self) -> List[Position]:
        return [p for p, c in self.cells.items() if c.in_final_path]

    # -------------------- writers (engine only) --------------------

    def _log(self, kind: str, pos: Position, entry: CellTrace) -> None:
        self.events.append(TraceEvent(len(self.events), kind, pos, entry.g, entry.h, entry.f))

    def record_open(self, pos: Position, g: int, h: int) -> None:
        entry = self.cells.get(pos)
        if entry is None:
            entry = CellTrace(g=g, h=h, f=g + h)
            self.cells[pos] = entry
            self._log("open", pos, entry)
            return
        # better g for a cell we have already seen
        entry.g, entry.h, entry.f = g, h, g + h
        entry.times_opened += 1
        self._log("update", pos, entry)

    def record_close(self, pos: Position) -> None:
        entry = self.cells[pos]
        entry.in_frontier = False
        entry.finalized = True
        self._log("close", pos, entry)

    def mark_path(self, path: List[Position]) -> None:
        for pos in path:
            entry = self.cells[pos]
            entry.in_final_path = True
            self._log("path", pos, entry)


@dataclass
class SearchResult:
    path: List[Position] = field(default_factory=list)
    trace: Optional[SearchTrace] = None
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def found(self) -> bool:
        return bool(self.path)


@dataclass
class StepResult:
    status: str                   # "idle" | "running" | "done" | "no_path"
    opened: List[Cell] = field(default_factory=list)
    closed: List[Cell] = field(default_factory=list)
    current: Optional[Cell] = None
    path: Optional[List[Cell]] = None
    metrics: Dict[str, Any] = field(default_factory=dict)

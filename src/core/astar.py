#!/usr/bin/env python3
"""
A* over a maze grid model. Runs to completion in one call.

Edge cost is 1 per carved passage; heuristic is Manhattan distance, which is
admissible and consistent on a 4-connected unit-cost grid.

Tie-breaking in the PQ:
- (f, h, -g, seq, cell): lower f, then lower h, then deeper g, then FIFO by seq.

Stale heap entries (no decrease-key) are skipped on pop by comparing the
popped g with the g table.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple, List, Optional
import heapq
import logging
from math import inf

from src.core.types import (
    Cell,
    GridModel,
    Position,
    SEARCH_ORDER,
    SearchResult,
    SearchTrace,
)

log = logging.getLogger(__name__)


def manhattan(a: Cell, b: Cell) -> int:
    (ax, ay), (bx, by) = a, b
    return abs(ax - bx) + abs(ay - by)


@dataclass
class AStarSearch:
    grid: GridModel
    start: Position
    goal: Position
    trace: bool = True
    name: str = "A*"

    # Internal state, rebuilt on every run()
    open_pq: List[Tuple[int, int, int, int, Position]] = field(default_factory=list)  # (f, h, -g, seq, cell)
    g: Dict[Position, int] = field(default_factory=dict)
    parent: Dict[Position, Position] = field(default_factory=dict)
    closed_set: set = field(default_factory=set)
    popped_count: int = 0
    stale_count: int = 0
    seq: int = 0
    _trace: Optional[SearchTrace] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        self.start = Position(*self.start)
        self.goal = Position(*self.goal)
        for label, c in (("start", self.start), ("goal", self.goal)):
            if not (0 <= c.col < self.grid.width and 0 <= c.row < self.grid.height):
                raise ValueError(
                    f"{label} {tuple(c)} outside {self.grid.width}x{self.grid.height} grid"
                )

    # -------------------- helpers --------------------

    def _bump(self) -> int:
        self.seq += 1
        return self.seq

    def _h(self, c: Position) -> int:
        return manhattan(c, self.goal)

    def _neighbors4(self, c: Position) -> List[Position]:
        """Open, in-bounds neighbours of c in N, S, E, W order."""
        x, y = c
        out: List[Position] = []
        for d in SEARCH_ORDER:
            nx, ny = x + d.dx, y + d.dy
            if not (0 <= nx < self.grid.width and 0 <= ny < self.grid.height):
                continue
            if self.grid.is_open(c, d):
                out.append(Position(nx, ny))
        return out

    def _push(self, c: Position) -> None:
        h = self._h(c)
        g = self.g[c]
        heapq.heappush(self.open_pq, (g + h, h, -g, self._bump(), c))
        if self._trace is not None:
            self._trace.record_open(c, g, h)

    def _reconstruct_path(self, end: Position) -> List[Position]:
        path: List[Position] = [end]
        cur = end
        while cur in self.parent:
            cur = self.parent[cur]
            path.append(cur)
        path.reverse()
        return path

    # -------------------- main loop --------------------

    def run(self) -> SearchResult:
        self.open_pq.clear()
        self.g.clear()
        self.parent.clear()
        self.closed_set.clear()
        self.popped_count = 0
        self.stale_count = 0
        self.seq = 0
        self._trace = SearchTrace() if self.trace else None

        log.debug("%s: %s -> %s on %dx%d grid", self.name, tuple(self.start), tuple(self.goal),
                  self.grid.width, self.grid.height)

        self.g[self.start] = 0
        self._push(self.start)

        path: List[Position] = []
        while self.open_pq:
            _, _, neg_g_u, _, u = heapq.heappop(self.open_pq)

            # Ignore stale pops
            if -neg_g_u != self.g.get(u, inf):
                self.stale_count += 1
                continue

            self.popped_count += 1
            self.closed_set.add(u)
            if self._trace is not None:
                self._trace.record_close(u)

            if u == self.goal:
                path = self._reconstruct_path(u)
                if self._trace is not None:
                    self._trace.mark_path(path)
                break

            for v in self._neighbors4(u):
                alt = self.g[u] + 1
                if alt < self.g.get(v, inf):
                    self.g[v] = alt
                    self.parent[v] = u
                    self._push(v)

        if path:
            log.debug("%s: path of %d cells after %d pops", self.name, len(path), self.popped_count)
        else:
            log.info("%s: goal %s unreachable from %s (%d cells explored)",
                     self.name, tuple(self.goal), tuple(self.start), self.popped_count)

        return SearchResult(path=path, trace=self._trace, metrics=self._metrics(path))

    # -------------------- metrics --------------------

    def _metrics(self, path: List[Position]) -> dict:
        return {
            "algo": self.name,
            "popped": self.popped_count,
            "open_size": len(set(c for *_, c in self.open_pq) - self.closed_set),
            "closed_count": len(self.closed_set),
            "path_len": len(path),
            "total_cost": self.g[self.goal] if path else None,
            "pushes": self.seq,
            "stale_skipped": self.stale_count,
        }


def find_path(grid: GridModel, start, goal, *, trace: bool = True) -> SearchResult:
    """
    Shortest path from start to goal through the grid's open passages.

    Returns a SearchResult whose path runs start..goal inclusive, [start] when
    start == goal, and [] when the goal cannot be reached. trace=False skips
    the per-cell bookkeeping; the path is the same either way.

    Raises ValueError if start or goal lies outside the grid.
    """
    return AStarSearch(grid, start, goal, trace=trace).run()

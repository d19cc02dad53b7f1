# src/core/maze.py
#!/usr/bin/env python3
"""
Maze grid model: one wall bitmask per cell.

Bits: 1=North, 2=East, 4=South, 8=West. A set bit means the wall stands.
cells is indexed [row][col], same as the workshop map files.

Also holds the JSON map loader and the demo maze source used by the viewer.
"""

import json
import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from src.core.types import Direction, Position

log = logging.getLogger(__name__)

ALL_WALLS = 15


@dataclass
class Maze:
    width: int
    height: int
    cells: List[List[int]] = field(default_factory=list)   # [row][col]

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise ValueError(f"maze extent must be >= 1, got {self.width}x{self.height}")
        if not self.cells:
            self.cells = [[ALL_WALLS] * self.width for _ in range(self.height)]
        elif len(self.cells) != self.height or any(len(r) != self.width for r in self.cells):
            raise ValueError("cells size mismatch")

    # -------------------- queries --------------------

    def in_bounds(self, c) -> bool:
        x, y = c
        return 0 <= x < self.width and 0 <= y < self.height

    def neighbor(self, c, direction: Direction) -> Optional[Position]:
        x, y = c
        n = Position(x + direction.dx, y + direction.dy)
        return n if self.in_bounds(n) else None

    def is_open(self, c, direction: Direction) -> bool:
        """True if a passage leads out of c that way. Never raises."""
        if not self.in_bounds(c) or self.neighbor(c, direction) is None:
            return False
        x, y = c
        return not self.cells[y][x] & direction.bit

    def open_directions(self, c) -> List[Direction]:
        return [d for d in Direction if self.is_open(c, d)]

    # -------------------- mutation --------------------

    def carve(self, c, direction: Direction) -> Position:
        """Knock down the wall between c and its neighbour, on both sides."""
        if not self.in_bounds(c):
            raise ValueError(f"cell {tuple(c)} outside {self.width}x{self.height} maze")
        n = self.neighbor(c, direction)
        if n is None:
            raise ValueError(f"cannot carve {direction.name} from {tuple(c)}: leaves the grid")
        x, y = c
        self.cells[y][x] &= ~direction.bit
        self.cells[n.row][n.col] &= ~direction.opposite.bit
        return n

    # -------------------- builders --------------------

    @classmethod
    def fully_open(cls, width: int, height: int) -> "Maze":
        maze = cls(width, height)
        for y in range(height):
            for x in range(width):
                if x + 1 < width:
                    maze.carve((x, y), Direction.EAST)
                if y + 1 < height:
                    maze.carve((x, y), Direction.SOUTH)
        return maze

    @classmethod
    def generate(cls, width: int, height: int, seed: Optional[int] = None) -> "Maze":
        """Perfect maze from a seeded depth-first backtracker."""
        rng = random.Random(seed)
        maze = cls(width, height)
        start = Position(rng.randrange(width), rng.randrange(height))
        seen = {start}
        stack = [start]
        while stack:
            cur = stack[-1]
            options = []
            for d in Direction:
                n = maze.neighbor(cur, d)
                if n is not None and n not in seen:
                    options.append(d)
            if not options:
                stack.pop()
                continue
            d = rng.choice(options)
            n = maze.carve(cur, d)
            seen.add(n)
            stack.append(n)
        log.debug("generated %dx%d maze (seed=%s)", width, height, seed)
        return maze


# -------------------- map files --------------------

@dataclass
class MazeMap:
    maze: Maze
    start: Position
    goal: Position


def _endpoint(data: Dict[str, Any], key: str, default) -> Position:
    raw = data.get(key, default)
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise ValueError(f"{key} must be a [col, row] pair, got {raw!r}")
    return Position(int(raw[0]), int(raw[1]))


def maze_from_dict(data: Dict[str, Any]) -> MazeMap:
    try:
        width = int(data["width"])
        height = int(data["height"])
        rows = data["cells"]
        if not isinstance(rows, list) or not all(isinstance(r, list) for r in rows):
            raise ValueError("cells must be a list of rows")
        cells = [[int(v) for v in row] for row in rows]
        start = _endpoint(data, "start", (0, 0))
        goal = _endpoint(data, "goal", (width - 1, height - 1))
    except (KeyError, TypeError, ValueError) as ex:
        raise ValueError(f"malformed map: {ex}") from ex
    maze = Maze(width, height, cells)
    if not maze.in_bounds(start):
        raise ValueError("start out of bounds")
    if not maze.in_bounds(goal):
        raise ValueError("goal out of bounds")
    for y in range(height):
        for x in range(width):
            for d in (Direction.EAST, Direction.SOUTH):
                n = maze.neighbor((x, y), d)
                if n is None:
                    continue
                if bool(cells[y][x] & d.bit) != bool(cells[n.row][n.col] & d.opposite.bit):
                    raise ValueError(f"asymmetric wall between {(x, y)} and {tuple(n)}")
    return MazeMap(maze, start, goal)


def maze_to_dict(maze: Maze, start, goal) -> Dict[str, Any]:
    return {
        "width": maze.width,
        "height": maze.height,
        "start": list(start),
        "goal": list(goal),
        "cells": [list(row) for row in maze.cells],
    }


def load_maze(path: Union[str, Path]) -> MazeMap:
    with open(path, "r") as f:
        data = json.load(f)
    return maze_from_dict(data)


def save_maze(maze_map: MazeMap, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(maze_to_dict(maze_map.maze, maze_map.start, maze_map.goal), f, indent=2)
    log.info("saved %dx%d maze to %s", maze_map.maze.width, maze_map.maze.height, path)
    return path

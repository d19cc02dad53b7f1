"""
Tests for the maze grid model and map files.

Run: python -m pytest tests/test_maze.py -v
"""

import json
from pathlib import Path

import pytest

from src.core.astar import find_path
from src.core.maze import Maze, MazeMap, load_maze, maze_from_dict, maze_to_dict, save_maze
from src.core.types import Direction, Position

MAPS_DIR = Path(__file__).resolve().parents[1] / "maps"


class TestMaze:
    def test_new_maze_is_walled(self):
        maze = Maze(3, 2)
        for y in range(2):
            for x in range(3):
                assert maze.open_directions((x, y)) == []

    @pytest.mark.parametrize("w,h", [(0, 3), (3, 0), (-1, 2)])
    def test_bad_extent(self, w, h):
        with pytest.raises(ValueError):
            Maze(w, h)

    def test_cells_size_mismatch(self):
        with pytest.raises(ValueError):
            Maze(2, 2, [[15, 15]])

    def test_carve_is_symmetric(self):
        maze = Maze(3, 3)
        n = maze.carve((1, 1), Direction.NORTH)
        assert n == (1, 0)
        assert maze.is_open((1, 1), Direction.NORTH)
        assert maze.is_open((1, 0), Direction.SOUTH)
        assert not maze.is_open((1, 1), Direction.EAST)

    def test_carve_off_grid(self):
        maze = Maze(2, 2)
        with pytest.raises(ValueError):
            maze.carve((0, 0), Direction.WEST)
        with pytest.raises(ValueError):
            maze.carve((5, 5), Direction.EAST)

    def test_is_open_out_of_bounds_is_false(self):
        maze = Maze.fully_open(2, 2)
        assert not maze.is_open((0, 0), Direction.NORTH)
        assert not maze.is_open((1, 1), Direction.EAST)
        assert not maze.is_open((7, 0), Direction.WEST)
        assert not maze.is_open((-1, 0), Direction.EAST)

    def test_fully_open(self):
        maze = Maze.fully_open(3, 3)
        assert set(maze.open_directions((1, 1))) == set(Direction)
        assert set(maze.open_directions((0, 0))) == {Direction.SOUTH, Direction.EAST}

    def test_neighbor(self):
        maze = Maze(3, 3)
        assert maze.neighbor((0, 0), Direction.EAST) == Position(1, 0)
        assert maze.neighbor((0, 0), Direction.NORTH) is None

    def test_direction_opposites(self):
        for d in Direction:
            assert d.opposite.opposite is d
            assert (d.dx + d.opposite.dx, d.dy + d.opposite.dy) == (0, 0)


class TestGenerate:
    @pytest.mark.parametrize("w,h,seed", [(1, 1, 0), (5, 1, 1), (8, 6, 2), (12, 9, 3)])
    def test_perfect_maze(self, w, h, seed):
        """Spanning tree: w*h - 1 passages and every cell reachable."""
        maze = Maze.generate(w, h, seed=seed)
        passages = sum(
            maze.is_open((x, y), d)
            for y in range(h) for x in range(w)
            for d in (Direction.EAST, Direction.SOUTH)
        )
        assert passages == w * h - 1
        for y in range(h):
            for x in range(w):
                assert find_path(maze, (0, 0), (x, y), trace=False).found

    def test_seed_is_reproducible(self):
        assert Maze.generate(7, 5, seed=42).cells == Maze.generate(7, 5, seed=42).cells


class TestMapFiles:
    def test_load_sample_map(self):
        maze_map = load_maze(MAPS_DIR / "serpentine.json")
        assert (maze_map.maze.width, maze_map.maze.height) == (4, 3)
        assert maze_map.start == (0, 0)
        assert maze_map.goal == (3, 2)
        result = find_path(maze_map.maze, maze_map.start, maze_map.goal)
        assert len(result.path) == 12

    def test_dict_round_trip(self, tmp_path):
        maze = Maze.generate(5, 4, seed=7)
        path = tmp_path / "m.json"
        path.write_text(json.dumps(maze_to_dict(maze, (0, 0), (4, 3))))
        loaded = load_maze(path)
        assert loaded.maze.cells == maze.cells
        assert loaded.goal == (4, 3)

    def test_default_endpoints(self):
        maze_map = maze_from_dict({"width": 2, "height": 2, "cells": [[15, 15], [15, 15]]})
        assert maze_map.start == (0, 0)
        assert maze_map.goal == (1, 1)

    def test_asymmetric_walls(self):
        # (0,0) says east is open, (1,0) says west is walled
        data = {"width": 2, "height": 1, "cells": [[13, 15]]}
        with pytest.raises(ValueError, match="asymmetric"):
            maze_from_dict(data)

    def test_goal_out_of_bounds(self):
        data = {"width": 2, "height": 1, "cells": [[15, 15]], "goal": [2, 0]}
        with pytest.raises(ValueError, match="goal"):
            maze_from_dict(data)

    def test_size_mismatch(self):
        data = {"width": 3, "height": 1, "cells": [[15, 15]]}
        with pytest.raises(ValueError):
            maze_from_dict(data)

    @pytest.mark.parametrize("data", [
        {"width": 2, "height": 1, "cells": [[15, 15]], "start": [0]},
        {"width": 2, "height": 1, "cells": [[15, 15]], "goal": None},
        {"width": 2, "height": 1, "cells": [15, 15]},
        {"width": 2, "height": 1},
        {"width": "wide", "height": 1, "cells": [[15, 15]]},
    ])
    def test_malformed_map(self, data):
        """Bad shapes and types surface as ValueError, never TypeError."""
        with pytest.raises(ValueError, match="malformed map"):
            maze_from_dict(data)

    def test_load_rejects_non_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(ValueError):
            load_maze(path)

    def test_save_maze(self, tmp_path):
        """Saved maps load back to the same maze and endpoints."""
        maze_map = MazeMap(Maze.generate(6, 4, seed=5), Position(0, 0), Position(5, 3))
        path = save_maze(maze_map, tmp_path / "saved" / "maze_5.json")
        assert path.exists()
        loaded = load_maze(path)
        assert loaded.maze.cells == maze_map.maze.cells
        assert (loaded.start, loaded.goal) == (maze_map.start, maze_map.goal)

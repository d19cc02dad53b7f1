#!/usr/bin/env python3
"""
Replays a finished search one expansion at a time.

Implements the step API the viewer drives:
- reset() - step() -> StepResult

Each step() consumes trace events up to and including the next "close",
so one step == one node taken off the frontier. Nothing is re-searched.
"""

from typing import Dict, List, Set, Tuple

from src.core.types import Position, SearchResult, StepResult


class TraceReplay:
    def __init__(self, result: SearchResult, name: str = "A*"):
        if result.trace is None:
            raise ValueError("cannot replay a search that ran with trace=False")
        self.result = result
        self.name = name
        self.reset()

    def reset(self) -> None:
        self.cursor = 0
        self.popped = 0
        self.open_set: Set[Position] = set()
        self.closed_set: Set[Position] = set()
        self.scores: Dict[Position, Tuple[int, int, int]] = {}  # (f, g, h)
        self.finished = False

    @property
    def events(self):
        return self.result.trace.events

    def scores_at_cursor(self) -> Dict[Position, Tuple[int, int, int]]:
        """f/g/h known for each cell up to the current replay position."""
        return dict(self.scores)

    def step(self) -> StepResult:
        if self.finished:
            return self._final()

        opened: List[Position] = []
        closed: List[Position] = []
        current = None
        while self.cursor < len(self.events):
            ev = self.events[self.cursor]
            if ev.kind == "path":
                break
            self.cursor += 1
            self.scores[ev.position] = (ev.f, ev.g, ev.h)
            if ev.kind == "open":
                self.open_set.add(ev.position)
                opened.append(ev.position)
            elif ev.kind == "close":
                self.open_set.discard(ev.position)
                self.closed_set.add(ev.position)
                closed.append(ev.position)
                current = ev.position
                self.popped += 1
                break

        if current is None:
            # no expansions left; remaining events (if any) are the path marks
            self.cursor = len(self.events)
            self.finished = True
            return self._final()

        return StepResult(status="running", opened=opened, closed=closed, current=current,
                          metrics=self.metrics())

    def _final(self) -> StepResult:
        path = list(self.result.path)
        if not path:
            return StepResult(status="no_path", metrics=self.metrics())
        return StepResult(status="done", path=path, current=path[-1],
                          metrics=self.metrics(path_len=len(path)))

    def metrics(self, path_len: int = 0) -> dict:
        return {
            "algo": self.name,
            "popped": self.popped,
            "open_size": len(self.open_set),
            "closed_count": len(self.closed_set),
            "path_len": path_len,
            "total_cost": path_len - 1 if path_len else None,
        }

# src/app/viewer.py
#!/usr/bin/env python3
"""
Maze Pathfinder Viewer: maze + A* replay + score overlay

- Keyboard:
    [SPACE]      -> run/pause replay
    [N]          -> single step
    [R]          -> reset replay
    [G]          -> new maze (new seed) + new search
    [H]          -> toggle f/g/h overlay
    [S]          -> save the current maze as JSON
    [+]/[-]      -> steps/sec
    [Q]/[ESC]    -> quit

Config (env, overridden by --key=value):
- MAZE_WIDTH / --width, MAZE_HEIGHT / --height, MAZE_SEED / --seed
- MAZE_MAP / --map         load a JSON map instead of generating
- MAZE_SAVE_DIR / --save-dir  where [S] writes maps (default maps/)
- MAZE_LOG_LEVEL / --log-level
"""

# --- bootstrap import path so `from src...` works when run as a script ---
import sys, os, time, random, logging
from pathlib import Path
_REPO_ROOT = Path(__file__).resolve().parents[2]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))
# -------------------------------------------------------------------------

from typing import List, Tuple, Optional
import pygame

from src.core.types import Cell, Direction, Position, SearchResult
from src.core.maze import Maze, MazeMap, load_maze, save_maze
from src.core.astar import find_path
from src.core.replay import TraceReplay

log = logging.getLogger(__name__)


# ---------- Config resolution ----------
def resolve_option(key: str, env: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(env, default)
    for arg in sys.argv:
        if arg.startswith(f"--{key}="):
            value = arg.split("=", 1)[1]
    return value

def _int_option(key: str, env: str, default: Optional[int]) -> Optional[int]:
    raw = resolve_option(key, env)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        print(f"Ignoring non-integer {key}={raw!r}")
        return default

MAZE_W    = max(1, _int_option("width",  "MAZE_WIDTH",  20))
MAZE_H    = max(1, _int_option("height", "MAZE_HEIGHT", 15))
MAZE_SEED = _int_option("seed", "MAZE_SEED", None)
MAP_PATH  = resolve_option("map", "MAZE_MAP")
SAVE_DIR  = Path(resolve_option("save-dir", "MAZE_SAVE_DIR", str(_REPO_ROOT / "maps")))
LOG_LEVEL = (resolve_option("log-level", "MAZE_LOG_LEVEL", "WARNING") or "WARNING").upper()

# ---------- Layout ----------
WINDOW_W, WINDOW_H = 800, 600
WINDOW_TITLE = "Maze Generator"
PANEL_W = 240            # right band: metrics + buttons
GRID_MARGIN = 16
OVERLAY_MIN_CELL = 30    # below this the f/g/h text is unreadable
FONT_NAME = None  # default pygame font

# Colors
WHITE       = (255,255,255)
BLUE        = ( 70,130,180)
RED         = (220, 50, 47)
FLOOR       = (200,200,200)
WALL        = ( 20, 22, 28)
NEON_CYAN_A = (0,150,255,110)
NEON_MAG_A  = (255,0,120,90)
NEON_MINT   = (0,255,200)
MARKER      = (255,210,0)

CARD_BG     = (24,28,36,220)
CARD_HI     = (255,255,255,18)
TEXT_LIGHT  = (230,235,240)
TEXT_DARK   = ( 30, 34, 42)
ACCENT_GOLD = (255,210,0)


# ---------- Maze source ----------
def make_map(width: int, height: int, seed: Optional[int]) -> MazeMap:
    """Generated maze from top-left to bottom-right."""
    maze = Maze.generate(width, height, seed=seed)
    return MazeMap(maze, Position(0, 0), Position(width - 1, height - 1))


# ---------- Simple UI Button ----------
class UIButton:
    def __init__(self, label: str, rect: pygame.Rect, callback, *, togglable: bool = False):
        self.label = label
        self.rect = rect
        self.callback = callback
        self.hover = False
        self.togglable = togglable
        self.active = False

    def set_active(self, value: bool):
        self.active = bool(value)

    def draw(self, screen: pygame.Surface, font: pygame.font.Font):
        base = pygame.Surface(self.rect.size, pygame.SRCALPHA)
        if self.active and self.togglable:
            bg = (58, 86, 160, 235)
        elif self.hover:
            bg = (46, 50, 60, 230)
        else:
            bg = (36, 40, 48, 220)
        pygame.draw.rect(base, bg, base.get_rect(), border_radius=10)
        screen.blit(base, self.rect.topleft)

        if self.active and self.togglable:
            pygame.draw.rect(screen, (120, 170, 255, 255), self.rect, width=2, border_radius=10)

        text = font.render(self.label, True, (235,238,242))
        screen.blit(text, text.get_rect(center=self.rect.center))

    def handle_mouse(self, event: pygame.event.Event):
        if event.type == pygame.MOUSEMOTION:
            self.hover = self.rect.collidepoint(event.pos)
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self.rect.collidepoint(event.pos):
                self.callback()


# ---------- Viewer ----------
class Viewer:
    def __init__(self, maze_map: MazeMap, seed: Optional[int] = None, fixed_map: bool = False):
        pygame.init()
        self.font_small = pygame.font.Font(FONT_NAME, 14)
        self.font = pygame.font.Font(FONT_NAME, 18)
        self.font_big = pygame.font.Font(FONT_NAME, 22)

        self.screen = pygame.display.set_mode((WINDOW_W, WINDOW_H), pygame.RESIZABLE)
        pygame.display.set_caption(WINDOW_TITLE)

        self._buttons: list[UIButton] = []
        self.fixed_map = fixed_map
        self.seed = seed

        self.running = False
        self.clock = pygame.time.Clock()
        self.steps_per_sec = 8
        self.show_scores = False
        self.state = "Idle"

        self.open_set: set[Cell] = set()
        self.closed_set: set[Cell] = set()
        self.path: List[Cell] = []
        self._marker_idx = 0
        self._last_step_t = 0.0

        self._load(maze_map)
        self._layout(*self.screen.get_size())

    # ---------- search lifecycle ----------
    def _load(self, maze_map: MazeMap):
        """New maze => new search. Old path and trace are dropped together."""
        self.map = maze_map
        self.result: SearchResult = find_path(maze_map.maze, maze_map.start, maze_map.goal)
        self.replay = TraceReplay(self.result)
        log.info("maze %dx%d seed=%s: path_len=%d popped=%d",
                 maze_map.maze.width, maze_map.maze.height, self.seed,
                 self.result.metrics["path_len"], self.result.metrics["popped"])
        self._reset()

    def _regenerate(self):
        if self.fixed_map:
            return
        self.seed = random.randrange(1 << 30)
        self._load(make_map(self.map.maze.width, self.map.maze.height, self.seed))
        pygame.display.set_caption(f"{WINDOW_TITLE} (seed {self.seed})")
        self._layout(*self.screen.get_size())

    def _reset(self):
        self.running = False
        self.state = "Idle"
        self.replay.reset()
        self.open_set.clear()
        self.closed_set.clear()
        self.path = []
        self._marker_idx = 0
        self._last_metrics = self.replay.metrics()
        self._refresh_active_states()

    # ---------- layout ----------
    def _layout(self, win_w: int, win_h: int):
        """Compute integer cell_size that fits window and center the grid."""
        maze = self.map.maze
        avail_w = max(1, win_w - PANEL_W - 2 * GRID_MARGIN)
        avail_h = max(1, win_h - 2 * GRID_MARGIN)
        self.cell_size = int(max(6, min(avail_w // maze.width, avail_h // maze.height)))

        plate_w = maze.width * self.cell_size + 2 * GRID_MARGIN
        plate_h = maze.height * self.cell_size + 2 * GRID_MARGIN
        left_x = max(0, (win_w - PANEL_W - plate_w) // 2)
        top_y  = max(0, (win_h - plate_h) // 2)

        self.canvas_rect = pygame.Rect(left_x, top_y, plate_w, plate_h)
        self._grid_origin = (left_x + GRID_MARGIN, top_y + GRID_MARGIN)
        self._right_band = pygame.Rect(win_w - PANEL_W, 0, PANEL_W, win_h)
        self._build_buttons()

    def run(self):
        while True:
            self._handle_events()
            if self.running:
                self._tick()
            self._draw()
            self.clock.tick(60)

    def _tick(self):
        t0 = time.time()
        if t0 - self._last_step_t < 1.0 / max(1, self.steps_per_sec):
            return
        self._last_step_t = t0
        if self.state == "Done":
            # marker walks the path one cell per tick
            if self._marker_idx < len(self.path) - 1:
                self._marker_idx += 1
            else:
                self.running = False
                self._refresh_active_states()
            return
        self._do_step()

    def _do_step(self):
        res = self.replay.step()
        for c in res.opened: self.open_set.add(c)
        for c in res.closed:
            self.open_set.discard(c)
            self.closed_set.add(c)
        if res.path is not None: self.path = res.path
        if res.status == "done":
            self.state = "Done"
        elif res.status == "no_path":
            self.state = "No path"; self.running = False
        elif res.status in ("running","idle"):
            self.state = "Running" if self.running else "Paused"
        if res.metrics:
            self._last_metrics = res.metrics
        self._refresh_active_states()

    def _handle_events(self):
        for e in pygame.event.get():
            if e.type == pygame.QUIT:
                pygame.quit(); sys.exit(0)
            elif e.type == pygame.KEYDOWN:
                if e.key in (pygame.K_ESCAPE, pygame.K_q):
                    pygame.quit(); sys.exit(0)
                elif e.key == pygame.K_SPACE:
                    self._toggle_run()
                elif e.key == pygame.K_r:
                    self._reset()
                elif e.key == pygame.K_n:
                    self._step_once()
                elif e.key == pygame.K_g:
                    self._regenerate()
                elif e.key == pygame.K_h:
                    self._toggle_scores()
                elif e.key == pygame.K_s:
                    self._save()
                elif e.key in (pygame.K_PLUS, pygame.K_EQUALS):
                    self._bump_speed(+1)
                elif e.key in (pygame.K_MINUS, pygame.K_UNDERSCORE):
                    self._bump_speed(-1)
            elif e.type == pygame.VIDEORESIZE:
                self.screen = pygame.display.set_mode((max(480, e.w), max(360, e.h)), pygame.RESIZABLE)
                self._layout(*self.screen.get_size())
            elif e.type in (pygame.MOUSEMOTION, pygame.MOUSEBUTTONDOWN):
                for b in self._buttons:
                    b.handle_mouse(e)

    def _step_once(self):
        if self.state not in ("Done", "No path"):
            self._do_step()

    def _toggle_run(self):
        if self.state == "No path":
            return
        if self.state == "Done" and self._marker_idx >= len(self.path) - 1:
            self._marker_idx = 0
        self.running = not self.running
        if self.state != "Done":
            self.state = "Running" if self.running else "Paused"
        self._refresh_active_states()

    def _save(self):
        name = f"maze_{self.seed}.json" if self.seed is not None else "maze_saved.json"
        try:
            path = save_maze(self.map, SAVE_DIR / name)
        except OSError as ex:
            print(f"Failed to save maze: {ex}")
            return
        pygame.display.set_caption(f"{WINDOW_TITLE} (saved {path.name})")

    def _toggle_scores(self):
        self.show_scores = not self.show_scores
        self._refresh_active_states()

    def _bump_speed(self, dv: int):
        self.steps_per_sec = int(max(1, min(60, self.steps_per_sec + dv)))

    # ---------- drawing ----------
    def _draw(self):
        self._draw_backdrop()
        self._draw_grid()
        self._draw_metrics_and_buttons()
        pygame.display.flip()

    def _draw_backdrop(self):
        w, h = self.screen.get_size()
        top = (24, 26, 32); bot = (36, 40, 48)
        for y in range(h):
            t = y / max(1, h-1)
            c = tuple(int(top[i] + (bot[i]-top[i]) * t) for i in range(3))
            pygame.draw.line(self.screen, c, (0, y), (w, y))

    def _cell_rect(self, cell) -> pygame.Rect:
        cs = self.cell_size
        ox, oy = self._grid_origin
        col, row = cell
        return pygame.Rect(ox + col*cs, oy + row*cs, cs, cs)

    def _draw_grid(self):
        maze = self.map.maze
        cs = self.cell_size
        wall_w = max(1, cs // 10)

        for row in range(maze.height):
            for col in range(maze.width):
                pygame.draw.rect(self.screen, FLOOR, self._cell_rect((col, row)))

        # overlays
        tint = pygame.Surface((cs, cs), pygame.SRCALPHA)
        tint.fill(NEON_MAG_A)
        for c in self.closed_set:
            self.screen.blit(tint, self._cell_rect(c).topleft)
        tint = pygame.Surface((cs, cs), pygame.SRCALPHA)
        tint.fill(NEON_CYAN_A)
        for c in self.open_set:
            self.screen.blit(tint, self._cell_rect(c).topleft)

        # walls
        for row in range(maze.height):
            for col in range(maze.width):
                r = self._cell_rect((col, row))
                if not maze.is_open((col, row), Direction.NORTH):
                    pygame.draw.line(self.screen, WALL, r.topleft, r.topright, wall_w)
                if not maze.is_open((col, row), Direction.WEST):
                    pygame.draw.line(self.screen, WALL, r.topleft, r.bottomleft, wall_w)
                if not maze.is_open((col, row), Direction.SOUTH):
                    pygame.draw.line(self.screen, WALL, r.bottomleft, r.bottomright, wall_w)
                if not maze.is_open((col, row), Direction.EAST):
                    pygame.draw.line(self.screen, WALL, r.topright, r.bottomright, wall_w)

        if self.show_scores and cs >= OVERLAY_MIN_CELL:
            self._draw_scores()

        # path
        if len(self.path) >= 2:
            pts = [self._cell_rect(c).center for c in self.path]
            pygame.draw.lines(self.screen, NEON_MINT, False, pts, max(2, cs // 6))

        self._draw_badge(self.map.start, BLUE, "S")
        self._draw_badge(self.map.goal,  RED,  "G")

        if self.state == "Done" and self.path:
            cx, cy = self._cell_rect(self.path[self._marker_idx]).center
            pygame.draw.circle(self.screen, MARKER, (cx, cy), max(3, cs // 4))

    def _draw_scores(self):
        for cell, (f, g, h) in self.replay.scores_at_cursor().items():
            r = self._cell_rect(cell).inflate(-4, -4)
            ft = self.font_small.render(str(f), True, TEXT_DARK)
            gt = self.font_small.render(str(g), True, TEXT_DARK)
            ht = self.font_small.render(str(h), True, TEXT_DARK)
            self.screen.blit(ft, ft.get_rect(topleft=r.topleft))
            self.screen.blit(gt, gt.get_rect(bottomleft=r.bottomleft))
            self.screen.blit(ht, ht.get_rect(bottomright=r.bottomright))

    def _draw_badge(self, cell, color: Tuple[int,int,int], label: str):
        cx, cy = self._cell_rect(cell).center
        pygame.draw.circle(self.screen, color, (cx, cy), max(4, self.cell_size//2 - 3))
        if self.cell_size >= 18:
            txt = self.font_small.render(label, True, WHITE)
            self.screen.blit(txt, txt.get_rect(center=(cx, cy)))

    # ---------- buttons + metrics ----------
    def _build_buttons(self):
        self._buttons.clear()
        rb = self._right_band
        x = rb.x + 16
        y = rb.y + 230  # leaves space for metrics card above
        w = max(160, rb.width - 32)
        h = 34
        gap = 8

        def add(label, cb, *, togglable=False, store_as: Optional[str] = None):
            btn = UIButton(label, pygame.Rect(x, y, w, h), cb, togglable=togglable)
            self._buttons.append(btn)
            if store_as:
                setattr(self, store_as, btn)

        add("Run / Pause", self._toggle_run, togglable=True, store_as="btn_run"); y += h + gap
        add("Step Once", self._step_once); y += h + gap
        add("Reset", self._reset); y += h + gap
        if not self.fixed_map:
            add("New Maze", self._regenerate); y += h + gap
        add("Save Maze", self._save); y += h + gap
        add("Scores f/g/h", self._toggle_scores, togglable=True, store_as="btn_scores"); y += h + gap

        half = (w - 8) // 2
        self._buttons.append(UIButton("Speed -", pygame.Rect(x, y, half, h), lambda: self._bump_speed(-1)))
        self._buttons.append(UIButton("Speed +", pygame.Rect(x + half + 8, y, half, h), lambda: self._bump_speed(+1)))

        self._refresh_active_states()

    def _refresh_active_states(self):
        if hasattr(self, "btn_run"):
            self.btn_run.set_active(self.running)
        if hasattr(self, "btn_scores"):
            self.btn_scores.set_active(self.show_scores)

    def _draw_metrics_and_buttons(self):
        rb = self._right_band

        card = pygame.Surface((rb.width - 20, 210), pygame.SRCALPHA)
        pygame.draw.rect(card, CARD_BG, card.get_rect(), border_radius=14)
        hi = pygame.Surface((card.get_width(), 24), pygame.SRCALPHA)
        pygame.draw.rect(hi, CARD_HI, hi.get_rect(), border_radius=14)
        card.blit(hi, (0,0))
        self.screen.blit(card, (rb.x + 10, rb.y + 10))

        x0 = rb.x + 24
        y0 = rb.y + 18

        def line(text, big=False, color=TEXT_LIGHT):
            nonlocal y0
            f = self.font_big if big else self.font
            surf = f.render(text, True, color)
            self.screen.blit(surf, (x0, y0))
            y0 += surf.get_height() + 6

        line("Metrics", big=True, color=ACCENT_GOLD)
        m = self._last_metrics
        line(f"Popped: {m.get('popped', 0)}")
        line(f"Open: {m.get('open_size', 0)}")
        line(f"Closed: {m.get('closed_count', 0)}")
        line(f"Path Len: {m.get('path_len', 0)}")
        line(f"State: {self.state}")
        line(f"Seed: {self.seed if self.seed is not None else '-'}")
        line(f"Speed: {self.steps_per_sec} steps/s")

        for b in self._buttons:
            b.draw(self.screen, self.font)


# ---------- main ----------
def main():
    logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.WARNING),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if MAP_PATH:
        try:
            maze_map = load_maze(MAP_PATH)
        except (OSError, ValueError) as ex:
            print(f"Failed to load map {MAP_PATH}: {ex}")
            sys.exit(1)
        Viewer(maze_map, fixed_map=True).run()
        return

    seed = MAZE_SEED if MAZE_SEED is not None else random.randrange(1 << 30)
    Viewer(make_map(MAZE_W, MAZE_H, seed), seed=seed).run()

if __name__ == "__main__":
    main()

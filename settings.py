"""Game configuration: difficulty presets, board sizing, saved preferences."""

import json
import logging
import math
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
SCORES_PATH = os.path.join(BASE_DIR, "leaderboard.csv")
LOCAL_BEST_PATH = os.path.join(BASE_DIR, "local_best.json")
PREFERENCES_PATH = os.path.join(BASE_DIR, "preferences.json")
EVENTS_PATH = os.path.join(BASE_DIR, "events.csv")
ANALYTICS_LOG_PATH = os.path.join(BASE_DIR, "analytic.csv")
ANALYTICS_REPORTS_DIR = os.path.join(BASE_DIR, "analytics_reports")

DEFAULT_ROWS = 16
DEFAULT_COLS = 16
MIN_SIDE = 5
CELL_SIZE = 32
HEADER_HEIGHT = 64
FRAME_EXTRA = 4

# first click plus its eight neighbours never hold a mine
FORBIDDEN_ZONE_SIZE = 9
LEADERBOARD_SIZE = 10

RANKED_DIFFICULTIES = ("easy", "normal", "hard")
CUSTOM = "custom"
DEFAULT_DIFFICULTY = "normal"
DIFFICULTY_DENSITY = {
    "easy": 0.10,
    "normal": 0.15,
    "hard": 0.20,
}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class BoardConfig:
    rows: int
    cols: int
    mines: int

    @property
    def total_cells(self) -> int:
        return self.rows * self.cols


def mines_for_difficulty(total_cells: int, difficulty: str) -> int:
    try:
        density = DIFFICULTY_DENSITY[difficulty]
    except KeyError:
        raise ConfigError(f"Unknown difficulty: {difficulty!r}") from None
    return max(1, math.floor(total_cells * density))


def max_playable_mines(rows: int, cols: int) -> int:
    return rows * cols - FORBIDDEN_ZONE_SIZE


def validate_dimensions(rows: int, cols: int):
    if rows <= 0 or cols <= 0:
        raise ConfigError("Rows and columns must be positive.")


def config_for_difficulty(rows: int, cols: int, difficulty: str) -> BoardConfig:
    validate_dimensions(rows, cols)
    if rows < MIN_SIDE or cols < MIN_SIDE:
        raise ConfigError(f"Ranked boards need at least {MIN_SIDE} rows and columns.")
    mines = mines_for_difficulty(rows * cols, difficulty)
    if mines > max_playable_mines(rows, cols):
        raise ConfigError(f"A {rows}x{cols} board cannot hold {mines} mines.")
    return BoardConfig(rows, cols, mines)


def custom_config(rows: int, cols: int, mines: int) -> BoardConfig:
    validate_dimensions(rows, cols)
    limit = max_playable_mines(rows, cols)
    if limit < 1:
        raise ConfigError(f"A {rows}x{cols} board is too small to hold any mines.")
    if mines <= 0:
        raise ConfigError("Mines must be positive.")
    if mines > limit:
        raise ConfigError(f"Mines must be at most {limit} on a {rows}x{cols} board.")
    return BoardConfig(rows, cols, mines)


def fit_board_size(available_width: int, available_height: int, cell_size: int = CELL_SIZE):
    """Rows and columns of ``cell_size`` tiles that fit the given pixel area below the header."""
    width = max(1, available_width)
    height = max(1, available_height - HEADER_HEIGHT)
    cols = max(MIN_SIDE, (width - FRAME_EXTRA) // cell_size)
    rows = max(MIN_SIDE, (height - FRAME_EXTRA) // cell_size - 1)
    return rows, cols


def format_seconds(total) -> str:
    clamped = max(0, int(total))
    minutes, seconds = divmod(clamped, 60)
    if minutes <= 0:
        return f"{seconds}s"
    return f"{minutes}m {seconds}s"


class Preferences:
    """Selected difficulty and player name, kept in a small JSON file."""

    def __init__(self, path: str):
        self.path = path
        self.difficulty = DEFAULT_DIFFICULTY
        self.player_name = ""
        self.load()

    def load(self):
        try:
            with open(self.path, encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable preferences %s: %s", self.path, exc)
            return
        if not isinstance(data, dict):
            return
        if data.get("difficulty") in RANKED_DIFFICULTIES:
            self.difficulty = data["difficulty"]
        name = data.get("player_name")
        if isinstance(name, str):
            self.player_name = name.strip()[:40]

    def save(self):
        payload = {"difficulty": self.difficulty, "player_name": self.player_name}
        try:
            with open(self.path, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2)
        except OSError as exc:
            logger.warning("Could not save preferences to %s: %s", self.path, exc)


def configure_logging(level=logging.INFO):
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

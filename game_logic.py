import abc
import enum
import logging
import random
from dataclasses import dataclass

import reveal
from board import create_empty_board, place_mines, resize_board
from settings import (
    CUSTOM,
    RANKED_DIFFICULTIES,
    BoardConfig,
    config_for_difficulty,
    custom_config,
    max_playable_mines,
)

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    WON = "won"
    LOST = "lost"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.WON, SessionState.LOST)


@dataclass(frozen=True)
class GameOutcome:
    won: bool
    elapsed_seconds: int
    difficulty: str
    config: BoardConfig


@dataclass(frozen=True)
class CellView:
    is_revealed: bool
    is_flagged: bool
    is_mine: bool
    neighbor_mines: int


@dataclass(frozen=True)
class BoardSnapshot:
    rows: int
    cols: int
    cells: tuple
    flags_remaining: int
    elapsed_seconds: int
    game_over: bool
    is_win: bool
    state: SessionState

    def cell(self, r: int, c: int) -> CellView:
        return self.cells[r][c]


class Clock(abc.ABC):
    """One-second ticker owned by a game session."""

    @abc.abstractmethod
    def start(self, callback):
        """Call ``callback`` once a second until stopped; no-op if already running."""

    @abc.abstractmethod
    def stop(self):
        """Cancel the ticker; no-op if not running."""

    @property
    @abc.abstractmethod
    def running(self) -> bool:
        ...


class ManualClock(Clock):
    """Clock that only ticks when ``advance`` is called, for headless play and replays."""

    def __init__(self):
        self._callback = None
        self.starts = 0
        self.stops = 0

    def start(self, callback):
        if self._callback is not None:
            return
        self._callback = callback
        self.starts += 1

    def stop(self):
        if self._callback is None:
            return
        self._callback = None
        self.stops += 1

    @property
    def running(self) -> bool:
        return self._callback is not None

    def advance(self, seconds: int = 1):
        for _ in range(seconds):
            if self._callback is None:
                break
            self._callback()


class GameSession:
    def __init__(self, config: BoardConfig, difficulty: str = CUSTOM, clock: Clock = None, rng=None):
        self.clock = clock or ManualClock()
        self.rng = rng or random.Random()
        self._listeners = []
        self.on_reset(config, difficulty)

    @property
    def is_first_click(self) -> bool:
        return self.state is SessionState.NOT_STARTED

    @property
    def game_over(self) -> bool:
        return self.state.is_terminal

    @property
    def is_win(self) -> bool:
        return self.state is SessionState.WON

    @property
    def flags_remaining(self) -> int:
        return self.mines - self.flags_placed

    def add_listener(self, callback):
        """Register ``callback(outcome)``, called once when a game ends."""
        self._listeners.append(callback)

    def on_reset(self, config: BoardConfig = None, difficulty: str = None):
        self.clock.stop()
        if config is not None:
            self.config = config
        if difficulty is not None:
            self.difficulty = difficulty
        self.mines = self.config.mines
        self.board = create_empty_board(self.config.rows, self.config.cols)
        self.state = SessionState.NOT_STARTED
        self.flags_placed = 0
        self.elapsed_seconds = 0
        self._outcome_reported = False

    def on_reveal(self, r: int, c: int):
        if self.game_over or not self.board.in_bounds(r, c):
            return
        cell = self.board.cell(r, c)
        if cell.is_revealed or cell.is_flagged:
            return

        working = self.board.copy()
        if self.is_first_click:
            self.mines = place_mines(working, self.config.mines, r, c, self.rng)
            self.state = SessionState.IN_PROGRESS
            self.clock.start(self._tick)
            logger.debug("Placed %d mines on %dx%d board, safe cell (%d, %d)",
                         self.mines, working.rows, working.cols, r, c)

        revealed = reveal.reveal_single(working, r, c)
        self._commit(working, revealed)

    def on_chord(self, r: int, c: int):
        if self.state is not SessionState.IN_PROGRESS or not self.board.in_bounds(r, c):
            return
        working = self.board.copy()
        revealed = reveal.chord_reveal(working, r, c)
        if revealed:
            self._commit(working, revealed)

    def on_toggle_flag(self, r: int, c: int):
        if self.game_over or not self.board.in_bounds(r, c):
            return
        delta = reveal.toggle_flag(self.board, r, c)
        self.flags_placed += delta

    def on_resize(self, rows: int, cols: int):
        """Change the board size, keeping the overlapping region of a game in progress.

        Raises ``ConfigError`` before touching the game when the size cannot
        hold a playable board for the current difficulty.
        """
        if (rows, cols) == (self.config.rows, self.config.cols):
            return
        fresh = self._config_for_size(rows, cols)
        if self.state is not SessionState.IN_PROGRESS:
            self.on_reset(fresh)
            return

        resized = resize_board(self.board, rows, cols)
        mines = reveal.count_mines(resized)
        if mines == 0:
            logger.info("Resize to %dx%d dropped every mine, starting a new game", rows, cols)
            self.on_reset(fresh)
            return

        self.board = resized
        self.mines = mines
        self.flags_placed = reveal.count_flags(self.board)
        self.config = BoardConfig(rows, cols, self.mines)
        logger.info("Resized game in progress to %dx%d, %d mines kept", rows, cols, self.mines)
        self._check_win()

    def snapshot(self) -> BoardSnapshot:
        cells = []
        for row in self.board.grid:
            views = []
            for cell in row:
                views.append(CellView(
                    is_revealed=cell.is_revealed,
                    is_flagged=cell.is_flagged,
                    is_mine=cell.is_mine if cell.is_revealed else False,
                    neighbor_mines=cell.neighbor_mines if cell.is_revealed else 0,
                ))
            cells.append(tuple(views))
        return BoardSnapshot(
            rows=self.board.rows,
            cols=self.board.cols,
            cells=tuple(cells),
            flags_remaining=self.flags_remaining,
            elapsed_seconds=self.elapsed_seconds,
            game_over=self.game_over,
            is_win=self.is_win,
            state=self.state,
        )

    def _config_for_size(self, rows, cols):
        if self.difficulty in RANKED_DIFFICULTIES:
            return config_for_difficulty(rows, cols, self.difficulty)
        return custom_config(rows, cols, min(self.config.mines, max_playable_mines(rows, cols)))

    def _tick(self):
        if self.state is SessionState.IN_PROGRESS:
            self.elapsed_seconds += 1

    def _commit(self, working, revealed):
        self.board = working
        if reveal.hit_mine(working, revealed):
            reveal.reveal_all_mines(self.board)
            self._finish(SessionState.LOST)
            return
        self._check_win()

    def _check_win(self):
        if self.state is not SessionState.IN_PROGRESS:
            return
        safe_cells = self.board.total_cells - self.mines
        if reveal.count_revealed_safe(self.board) != safe_cells:
            return
        self.flags_placed = reveal.flag_all_mines(self.board)
        self._finish(SessionState.WON)

    def _finish(self, state: SessionState):
        self.state = state
        self.clock.stop()
        if self._outcome_reported:
            return
        self._outcome_reported = True
        outcome = GameOutcome(
            won=state is SessionState.WON,
            elapsed_seconds=self.elapsed_seconds,
            difficulty=self.difficulty,
            config=self.config,
        )
        logger.info("Game %s after %ds (%s)", "won" if outcome.won else "lost",
                    outcome.elapsed_seconds, outcome.difficulty)
        for listener in list(self._listeners):
            listener(outcome)

"""Board model and safe-start mine placement."""

import random

from grid_utils import in_bounds, neighbors

MINE = -1


class Cell:
    __slots__ = ("is_mine", "is_revealed", "is_flagged", "neighbor_mines")

    def __init__(self, is_mine=False, is_revealed=False, is_flagged=False, neighbor_mines=0):
        self.is_mine: bool = is_mine
        self.is_revealed: bool = is_revealed
        self.is_flagged: bool = is_flagged
        self.neighbor_mines: int = neighbor_mines

    def copy(self):
        return Cell(self.is_mine, self.is_revealed, self.is_flagged, self.neighbor_mines)

    def __eq__(self, other):
        if not isinstance(other, Cell):
            return NotImplemented
        return (
            self.is_mine == other.is_mine
            and self.is_revealed == other.is_revealed
            and self.is_flagged == other.is_flagged
            and self.neighbor_mines == other.neighbor_mines
        )

    def __repr__(self):
        return (
            f"Cell(is_mine={self.is_mine}, is_revealed={self.is_revealed}, "
            f"is_flagged={self.is_flagged}, neighbor_mines={self.neighbor_mines})"
        )


class Board:
    def __init__(self, rows: int, cols: int, grid=None):
        if rows < 1 or cols < 1:
            raise ValueError(f"board needs at least one row and column, got {rows}x{cols}")
        self.rows = rows
        self.cols = cols
        if grid is None:
            grid = [[Cell() for _ in range(cols)] for _ in range(rows)]
        elif len(grid) != rows or any(len(row) != cols for row in grid):
            raise ValueError("grid rows must all have length cols")
        self.grid = grid

    @property
    def total_cells(self) -> int:
        return self.rows * self.cols

    def cell(self, r: int, c: int) -> Cell:
        return self.grid[r][c]

    def in_bounds(self, r: int, c: int) -> bool:
        return in_bounds(self.rows, self.cols, r, c)

    def neighbors(self, r: int, c: int):
        return neighbors(self.rows, self.cols, r, c)

    def coords(self):
        for r in range(self.rows):
            for c in range(self.cols):
                yield r, c

    def cells(self):
        for row in self.grid:
            yield from row

    def copy(self):
        return Board(self.rows, self.cols, [[cell.copy() for cell in row] for row in self.grid])

    def __eq__(self, other):
        if not isinstance(other, Board):
            return NotImplemented
        return self.rows == other.rows and self.cols == other.cols and self.grid == other.grid

    def __repr__(self):
        return f"Board(rows={self.rows}, cols={self.cols})"


def create_empty_board(rows: int, cols: int) -> Board:
    return Board(rows, cols)


def forbidden_zone(rows: int, cols: int, first_r: int, first_c: int):
    zone = {(first_r, first_c)}
    zone.update(neighbors(rows, cols, first_r, first_c))
    return zone


def recompute_neighbor_counts(board: Board):
    for r, c in board.coords():
        cell = board.cell(r, c)
        if cell.is_mine:
            cell.neighbor_mines = MINE
            continue
        cell.neighbor_mines = sum(1 for nr, nc in board.neighbors(r, c) if board.cell(nr, nc).is_mine)


def place_mines(board: Board, mines: int, first_r: int, first_c: int, rng=None) -> int:
    """Lay mines outside the first click's 3x3 zone and return how many were placed.

    Mine counts larger than the cells left outside the zone are clamped
    silently. Flags already on the board are left untouched.
    """
    rng = rng or random.Random()
    forbidden = {r * board.cols + c for r, c in forbidden_zone(board.rows, board.cols, first_r, first_c)}
    available = [idx for idx in range(board.total_cells) if idx not in forbidden]

    to_place = max(0, min(mines, len(available)))
    for k in range(to_place):
        j = rng.randrange(k, len(available))
        available[k], available[j] = available[j], available[k]

    for cell in board.cells():
        cell.is_mine = False
    for idx in available[:to_place]:
        board.cell(idx // board.cols, idx % board.cols).is_mine = True

    recompute_neighbor_counts(board)
    return to_place


def generate_board(rows: int, cols: int, mines: int, first_r: int, first_c: int, rng=None) -> Board:
    board = create_empty_board(rows, cols)
    place_mines(board, mines, first_r, first_c, rng)
    return board


def resize_board(board: Board, rows: int, cols: int) -> Board:
    """Copy the overlapping region of ``board`` into a new ``rows x cols`` board."""
    resized = create_empty_board(rows, cols)
    for r in range(min(board.rows, rows)):
        for c in range(min(board.cols, cols)):
            src = board.cell(r, c)
            resized.grid[r][c] = Cell(src.is_mine, src.is_revealed, src.is_flagged)
    recompute_neighbor_counts(resized)
    return resized

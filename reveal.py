"""Reveal engine: single, flood and chord reveals plus flag bookkeeping.

Every function acts on the board it is given and reports what it changed.
Out-of-range coordinates are treated as no-ops.
"""

from board import Board


def flood_reveal(board: Board, r: int, c: int):
    revealed = set()
    if not board.in_bounds(r, c):
        return revealed

    stack = [(r, c)]
    while stack:
        cr, cc = stack.pop()
        cell = board.cell(cr, cc)
        if cell.is_revealed or cell.is_flagged:
            continue
        cell.is_revealed = True
        revealed.add((cr, cc))

        if not cell.is_mine and cell.neighbor_mines == 0:
            for nr, nc in board.neighbors(cr, cc):
                ncell = board.cell(nr, nc)
                if not ncell.is_revealed and not ncell.is_flagged:
                    stack.append((nr, nc))
    return revealed


def reveal_single(board: Board, r: int, c: int):
    if not board.in_bounds(r, c):
        return set()
    cell = board.cell(r, c)
    if cell.is_revealed or cell.is_flagged:
        return set()

    if not cell.is_mine and cell.neighbor_mines == 0:
        return flood_reveal(board, r, c)

    cell.is_revealed = True
    return {(r, c)}


def count_flagged_neighbors(board: Board, r: int, c: int) -> int:
    return sum(1 for nr, nc in board.neighbors(r, c) if board.cell(nr, nc).is_flagged)


def chord_reveal(board: Board, r: int, c: int):
    """Open every hidden, unflagged neighbour of a revealed number.

    Only runs when the number of flagged neighbours matches the cell's
    count exactly. All eligible neighbours are processed even when one of
    them is a mine, so the caller sees the full set of opened cells.
    """
    if not board.in_bounds(r, c):
        return set()
    base = board.cell(r, c)
    if not base.is_revealed or base.neighbor_mines <= 0:
        return set()
    if count_flagged_neighbors(board, r, c) != base.neighbor_mines:
        return set()

    revealed = set()
    for nr, nc in board.neighbors(r, c):
        ncell = board.cell(nr, nc)
        if ncell.is_revealed or ncell.is_flagged:
            continue
        if ncell.is_mine:
            ncell.is_revealed = True
            revealed.add((nr, nc))
        elif ncell.neighbor_mines == 0:
            revealed |= flood_reveal(board, nr, nc)
        else:
            ncell.is_revealed = True
            revealed.add((nr, nc))
    return revealed


def toggle_flag(board: Board, r: int, c: int) -> int:
    if not board.in_bounds(r, c):
        return 0
    cell = board.cell(r, c)
    if cell.is_revealed:
        return 0
    cell.is_flagged = not cell.is_flagged
    return 1 if cell.is_flagged else -1


def hit_mine(board: Board, coords) -> bool:
    return any(board.cell(r, c).is_mine for r, c in coords)


def count_mines(board: Board) -> int:
    return sum(1 for cell in board.cells() if cell.is_mine)


def count_flags(board: Board) -> int:
    return sum(1 for cell in board.cells() if cell.is_flagged)


def count_revealed_safe(board: Board) -> int:
    return sum(1 for cell in board.cells() if cell.is_revealed and not cell.is_mine)


def reveal_all_mines(board: Board):
    for cell in board.cells():
        if cell.is_mine:
            cell.is_revealed = True


def flag_all_mines(board: Board) -> int:
    flagged = 0
    for cell in board.cells():
        if cell.is_mine:
            cell.is_flagged = True
            flagged += 1
    return flagged

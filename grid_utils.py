"""Coordinate helpers shared by the board generator and the reveal engine."""


def in_bounds(rows: int, cols: int, r: int, c: int) -> bool:
    return 0 <= r < rows and 0 <= c < cols


def neighbors(rows: int, cols: int, r: int, c: int):
    """Return the in-bounds cells of the 3x3 block around (r, c), row-major, without the centre."""
    neighbors_list = []
    for dr in (-1, 0, 1):
        for dc in (-1, 0, 1):
            if dr == 0 and dc == 0:
                continue
            nr, nc = r + dr, c + dc
            if in_bounds(rows, cols, nr, nc):
                neighbors_list.append((nr, nc))
    return neighbors_list

import random

import pytest

from board import Board, Cell, recompute_neighbor_counts
from game_logic import ManualClock


class FirstPickRandom:
    """randrange stand-in that always keeps the lowest index, so mines fill cells in row-major order."""

    def randrange(self, start, stop=None):
        return start


def board_from_rows(*rows):
    """Build a board from strings where '*' marks a mine."""
    grid = [[Cell(is_mine=ch == "*") for ch in row] for row in rows]
    board = Board(len(rows), len(rows[0]), grid)
    recompute_neighbor_counts(board)
    return board


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def first_pick_rng():
    return FirstPickRandom()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def make_board():
    return board_from_rows

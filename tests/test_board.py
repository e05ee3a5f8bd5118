import random

import pytest

from board import (
    MINE,
    Board,
    create_empty_board,
    forbidden_zone,
    generate_board,
    place_mines,
    resize_board,
)


def mine_coords(board):
    return {(r, c) for r, c in board.coords() if board.cell(r, c).is_mine}


@pytest.mark.parametrize("seed", range(25))
def test_first_click_zone_never_holds_a_mine(seed):
    board = generate_board(9, 9, 10, 4, 4, random.Random(seed))

    assert len(mine_coords(board)) == 10
    for r in range(3, 6):
        for c in range(3, 6):
            assert not board.cell(r, c).is_mine


def test_neighbor_counts_are_exact(rng):
    board = generate_board(12, 15, 40, 0, 0, rng)
    mines = mine_coords(board)

    for r, c in board.coords():
        cell = board.cell(r, c)
        if cell.is_mine:
            assert cell.neighbor_mines == MINE
        else:
            expected = sum(1 for n in board.neighbors(r, c) if n in mines)
            assert cell.neighbor_mines == expected


def test_same_seed_gives_same_layout():
    a = generate_board(10, 10, 20, 5, 5, random.Random(7))
    b = generate_board(10, 10, 20, 5, 5, random.Random(7))
    assert a == b


def test_excess_mines_are_clamped_without_error():
    board = generate_board(4, 4, 100, 0, 0, random.Random(1))
    assert len(mine_coords(board)) == 16 - 4

    tiny = generate_board(3, 3, 5, 1, 1, random.Random(1))
    assert mine_coords(tiny) == set()


def test_forbidden_zone_size_depends_on_position():
    assert len(forbidden_zone(9, 9, 0, 0)) == 4
    assert len(forbidden_zone(9, 9, 0, 4)) == 6
    assert len(forbidden_zone(9, 9, 4, 4)) == 9


def test_place_mines_fills_lowest_free_indices_with_first_pick(first_pick_rng):
    board = create_empty_board(5, 5)
    placed = place_mines(board, 4, 4, 4, first_pick_rng)

    assert placed == 4
    assert mine_coords(board) == {(0, 0), (0, 1), (0, 2), (0, 3)}
    assert board.cell(0, 4).neighbor_mines == 1
    assert board.cell(1, 1).neighbor_mines == 3


def test_place_mines_keeps_existing_flags(rng):
    board = create_empty_board(6, 6)
    board.cell(0, 5).is_flagged = True
    place_mines(board, 5, 5, 0, rng)
    assert board.cell(0, 5).is_flagged


def test_copy_is_independent(rng):
    board = generate_board(5, 5, 3, 2, 2, rng)
    clone = board.copy()
    clone.cell(0, 0).is_revealed = True
    assert not board.cell(0, 0).is_revealed
    assert clone != board


def test_resize_keeps_overlap_and_recounts(make_board):
    board = make_board(
        "*..",
        "...",
        "..*",
    )
    board.cell(0, 1).is_flagged = True

    smaller = resize_board(board, 2, 2)
    assert smaller.rows == 2 and smaller.cols == 2
    assert smaller.cell(0, 0).is_mine
    assert smaller.cell(0, 1).is_flagged
    # the mine at (2, 2) is gone, so (1, 1) only sees (0, 0)
    assert smaller.cell(1, 1).neighbor_mines == 1

    larger = resize_board(board, 4, 4)
    assert larger.cell(3, 3).neighbor_mines == 1
    assert not larger.cell(3, 3).is_mine


def test_board_rejects_empty_dimensions():
    with pytest.raises(ValueError):
        Board(0, 3)

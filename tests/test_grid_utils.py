from grid_utils import in_bounds, neighbors


def test_in_bounds_edges():
    assert in_bounds(3, 4, 0, 0)
    assert in_bounds(3, 4, 2, 3)
    assert not in_bounds(3, 4, 3, 0)
    assert not in_bounds(3, 4, 0, 4)
    assert not in_bounds(3, 4, -1, 2)


def test_neighbors_centre_is_row_major():
    assert neighbors(3, 3, 1, 1) == [
        (0, 0), (0, 1), (0, 2),
        (1, 0), (1, 2),
        (2, 0), (2, 1), (2, 2),
    ]


def test_neighbors_are_clipped_at_corners_and_edges():
    assert neighbors(3, 3, 0, 0) == [(0, 1), (1, 0), (1, 1)]
    assert len(neighbors(3, 3, 0, 1)) == 5
    assert neighbors(1, 1, 0, 0) == []

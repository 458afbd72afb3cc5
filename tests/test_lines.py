import numpy as np

from tetrocube.game import FragmentPiece, LineAxis, LineDescriptor, PieceKind, ScoreKeeper, ScoringRules
from tetrocube.game.lines import clear_lines, find_complete_lines
from tetrocube.game.placement import rotate_piece

from helpers import add_piece, fill_row


def test_full_row_clears_and_scores(grid):
    fill_row(grid, 3)
    lines = find_complete_lines(grid)
    assert lines == [LineDescriptor(LineAxis.ROW, 3)]

    result = clear_lines(grid, lines)
    assert result.cells_cleared == 7
    assert len(result.removed_ids) == 7
    assert not np.any(grid.grid[3])
    assert grid.pieces == {}

    keeper = ScoreKeeper(ScoringRules())
    keeper.apply(result.cells_cleared * keeper.rules.clear_reward_per_cell)
    assert keeper.score == 27


def test_no_lines_on_partial_board(grid):
    fill_row(grid, 0, range(6))
    assert find_complete_lines(grid) == []


def test_row_and_column_share_intersection(grid):
    for row in range(7):
        add_piece(grid, PieceKind.SINGLE, 0, row)
    fill_row(grid, 6, range(1, 7))
    lines = find_complete_lines(grid)
    assert lines == [LineDescriptor(LineAxis.ROW, 6), LineDescriptor(LineAxis.COL, 0)]
    result = clear_lines(grid, lines)
    assert result.cells_cleared == 13
    assert grid.occupied_count() == 0


def test_partial_clear_leaves_fragment_that_falls(grid):
    square = add_piece(grid, PieceKind.O, 0, 5)
    fill_row(grid, 6, range(2, 7))
    result = clear_lines(grid, find_complete_lines(grid))

    assert result.cells_cleared == 7
    assert square.id in result.removed_ids
    assert len(result.fragments) == 1
    fragment = result.fragments[0]
    assert isinstance(fragment, FragmentPiece)
    assert (fragment.x, fragment.y) == (0, 6)
    assert fragment.cells == ((0, 0), (0, 1))
    assert grid.grid[6, 0] == grid.grid[6, 1] == fragment.id
    assert not np.any(grid.grid[5])


def test_cut_piece_splits_into_islands(grid):
    add_piece(grid, PieceKind.I, 0, 2, rotation=1)
    fill_row(grid, 3, range(1, 7))
    result = clear_lines(grid, find_complete_lines(grid))

    assert sorted(len(f.cells) for f in result.fragments) == [1, 2]
    assert len(grid.pieces) == 2
    assert grid.grid[2, 0] == 0
    # The upper island drops onto the lower one
    assert all(grid.grid[row, 0] != 0 for row in (3, 4, 5))


def test_gravity_only_moves_pieces_above(grid):
    fill_row(grid, 5)
    above = add_piece(grid, PieceKind.O, 3, 2)
    below = add_piece(grid, PieceKind.SINGLE, 0, 6)
    result = clear_lines(grid, find_complete_lines(grid))

    assert above.y == 3
    assert below.y == 6
    assert above.id in result.shifted_ids
    assert below.id not in result.shifted_ids
    assert grid.cells_of(above.id) == [(3, 3), (3, 4), (4, 3), (4, 4)]


def test_two_rows_drop_each_piece_once_per_row_below(grid):
    fill_row(grid, 2)
    fill_row(grid, 5)
    top = add_piece(grid, PieceKind.SINGLE, 0, 0)
    middle = add_piece(grid, PieceKind.O, 3, 3)
    result = clear_lines(grid, find_complete_lines(grid))

    assert result.cells_cleared == 14
    assert top.y == 2
    assert middle.y == 4
    assert grid.grid[2, 0] == top.id
    assert grid.cells_of(middle.id) == [(4, 3), (4, 4), (5, 3), (5, 4)]
    assert grid.occupied_count() == 5


def test_column_clear_does_not_drop(grid):
    for row in range(7):
        add_piece(grid, PieceKind.SINGLE, 6, row)
    other = add_piece(grid, PieceKind.O, 0, 0)
    result = clear_lines(grid, find_complete_lines(grid))
    assert result.cells_cleared == 7
    assert result.shifted_ids == []
    assert (other.x, other.y) == (0, 0)


def test_gravity_forgets_rotation_anchor(grid):
    piece = add_piece(grid, PieceKind.T, 2, 1)
    assert rotate_piece(grid, piece)
    assert piece.cycle_anchor == (2, 1)

    fill_row(grid, 6)
    clear_lines(grid, find_complete_lines(grid))
    assert piece.cycle_anchor is None
    assert (piece.x, piece.y) == (3, 2)

    for _ in range(3):
        assert rotate_piece(grid, piece)
    # No snap back above the row it fell from
    assert piece.rotation == 0
    assert (piece.x, piece.y) == (2, 2)
    assert grid.cells_of(piece.id) == [(2, 3), (3, 2), (3, 3), (3, 4)]

import logging

import numpy as np

from tetrocube.game import PieceColor, PieceKind, TemplatePiece
from tetrocube.game.repair import repair, split_disconnected, validate

from helpers import add_fragment, add_piece


def test_consistent_board_has_no_issues(grid):
    add_piece(grid, PieceKind.T, 0, 0)
    add_piece(grid, PieceKind.SINGLE, 5, 5)
    report = validate(grid)
    assert not report.has_issues
    assert report.grid_cell_count == report.piece_cell_count == 5


def test_orphan_cells_are_removed(grid, caplog):
    piece = add_piece(grid, PieceKind.SINGLE, 3, 3)
    grid.grid[0, 0] = 99
    report = validate(grid)
    assert report.orphan_ids == [99]
    assert report.has_issues

    with caplog.at_level(logging.WARNING, logger="tetrocube.game.repair"):
        assert repair(grid) == 1
    assert grid.grid[0, 0] == 0
    assert grid.grid[3, 3] == piece.id
    assert "orphan" in caplog.text
    assert not validate(grid).has_issues


def test_missing_cells_are_restored(grid):
    piece = add_piece(grid, PieceKind.O, 2, 2)
    grid.grid[2:4, 2:4] = 0
    assert validate(grid).ghost_ids == [piece.id]
    assert repair(grid) == 0
    assert grid.cells_of(piece.id) == [(2, 2), (2, 3), (3, 2), (3, 3)]


def test_off_board_ghost_is_dropped(grid):
    ghost = TemplatePiece(id=grid.next_id(), kind=PieceKind.SINGLE, x=10, y=10)
    grid.pieces[ghost.id] = ghost
    report = validate(grid)
    assert report.ghost_ids == [ghost.id]
    assert report.piece_cell_count == 0
    repair(grid)
    assert ghost.id not in grid.pieces


def test_repair_is_idempotent(grid):
    add_piece(grid, PieceKind.L, 1, 1)
    grid.grid[6, 6] = 77
    repair(grid)
    before = grid.grid.copy()
    assert repair(grid) == 0
    assert np.array_equal(grid.grid, before)


def test_split_disconnected_fragments(grid):
    add_fragment(grid, PieceColor.CORAL, [(0, 0), (0, 2), (1, 2)])
    add_piece(grid, PieceKind.O, 4, 4)
    assert split_disconnected(grid) == 1
    sizes = sorted(len(p.cells) for p in grid.pieces.values() if hasattr(p, "cells"))
    assert sizes == [1, 2]
    assert not validate(grid).has_issues

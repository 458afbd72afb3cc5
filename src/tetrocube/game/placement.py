from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional, Tuple

from .grid import GameGrid
from .pieces import FragmentPiece, Piece, PieceKind, TemplatePiece, cells_at, shape_for, shape_offsets

logger = logging.getLogger(__name__)


# Wall-kick candidates (dx, dy) over {0, +-1, +-2}^2, nearest first
KICK_OFFSETS: Tuple[Tuple[int, int], ...] = tuple(
    sorted(
        ((dx, dy) for dx in (0, -1, 1, -2, 2) for dy in (0, -1, 1, -2, 2)),
        key=lambda d: (abs(d[0]) + abs(d[1]), abs(d[1])),
    )
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _centroid(cells: Iterable[Tuple[int, int]]) -> Tuple[float, float]:
    cells = list(cells)
    n = float(len(cells))
    return sum(r for r, _ in cells) / n, sum(c for _, c in cells) / n


def check_step(dx: int, dy: int) -> None:
    if dx not in (-1, 0, 1) or dy not in (-1, 0, 1) or (dx == 0) == (dy == 0):
        raise ValueError(f"Move must be a single step along one axis, got ({dx}, {dy})")


def can_move(grid: GameGrid, piece: Piece, dx: int, dy: int) -> bool:
    """Whether a one-cell move would succeed. Does not touch the grid."""
    check_step(dx, dy)
    for row, col in cells_at(piece, piece.x + dx, piece.y + dy):
        if not grid.is_inside(row, col):
            return False
        if grid.grid[row, col] not in (0, piece.id):
            return False
    return True


def move_piece(grid: GameGrid, piece: Piece, dx: int, dy: int) -> bool:
    """Translate a piece by one cell. Returns False and leaves it in place if blocked."""
    check_step(dx, dy)
    moved = grid.move_by(piece, dx, dy)
    if moved and isinstance(piece, TemplatePiece):
        # A translation mid-cycle invalidates the pre-cycle origin
        piece.cycle_anchor = None
    return moved


def rotation_target(grid: GameGrid, piece: Piece) -> Optional[Tuple[int, int]]:
    """Origin the next clockwise rotation would land on, or None if it cannot rotate.

    The rotated shape is aligned so its centroid lands on the old world
    centroid (rounded to the nearest cell); if that spot is blocked the
    KICK_OFFSETS are tried in order. The grid is left as it was.
    """
    if isinstance(piece, FragmentPiece):
        return None

    old_row, old_col = _centroid(cells_at(piece, piece.x, piece.y))
    offsets = shape_offsets(shape_for(piece.kind, (piece.rotation + 1) % 4))
    local_row, local_col = _centroid(offsets)
    base_x = _round_half_up(old_col - local_col)
    base_y = _round_half_up(old_row - local_row)

    grid.clear(piece)
    try:
        for dx, dy in KICK_OFFSETS:
            x, y = base_x + dx, base_y + dy
            if grid.can_place_cells((y + r, x + c) for r, c in offsets):
                return x, y
        return None
    finally:
        grid.place(piece)


def rotate_piece(grid: GameGrid, piece: Piece) -> bool:
    """Rotate a template piece clockwise about its centroid, with wall kicks.

    Completing a full cycle back to rotation 0 snaps the piece to its
    pre-cycle origin when that spot is free.
    """
    target = rotation_target(grid, piece)
    if target is None:
        return False

    grid.clear(piece)
    if piece.rotation == 0:
        piece.cycle_anchor = (piece.x, piece.y)
    piece.rotation = (piece.rotation + 1) % 4
    piece.x, piece.y = target
    if piece.rotation == 0 and piece.cycle_anchor is not None:
        anchor_x, anchor_y = piece.cycle_anchor
        if (anchor_x, anchor_y) != target and grid.can_place(piece, anchor_x, anchor_y):
            piece.x, piece.y = anchor_x, anchor_y
        piece.cycle_anchor = None
    grid.place(piece)
    logger.debug("Rotated piece %d to r=%d at (%d, %d)", piece.id, piece.rotation, piece.x, piece.y)
    return True


def shift_all(grid: GameGrid, dx: int, dy: int) -> bool:
    """Move every piece one cell in a direction where its own target is free.

    Leading pieces move first so trailing pieces can follow into vacated cells.
    """
    check_step(dx, dy)
    if dx:
        order = sorted(grid.pieces.values(), key=lambda p: p.x, reverse=dx > 0)
    else:
        order = sorted(grid.pieces.values(), key=lambda p: p.y, reverse=dy > 0)
    moved = False
    for piece in order:
        if move_piece(grid, piece, dx, dy):
            moved = True
    return moved


def legal_positions(grid: GameGrid, kind: PieceKind, rotation: int = 0) -> List[Tuple[int, int]]:
    """All (x, y) origins where a template piece of this kind/rotation fits."""
    offsets = shape_offsets(shape_for(kind, rotation))
    positions: List[Tuple[int, int]] = []
    for y in range(grid.height):
        for x in range(grid.width):
            if grid.can_place_cells((y + r, x + c) for r, c in offsets):
                positions.append((x, y))
    return positions


def can_place_any(grid: GameGrid, kinds: Optional[Iterable[PieceKind]] = None) -> bool:
    for kind in kinds if kinds is not None else PieceKind:
        for rotation in range(4):
            if legal_positions(grid, kind, rotation):
                return True
    return False

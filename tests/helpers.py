from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from tetrocube.game import FragmentPiece, GameGrid, PieceColor, PieceKind, TemplatePiece


def add_piece(grid: GameGrid, kind: PieceKind, x: int, y: int, rotation: int = 0) -> TemplatePiece:
    """Put a catalog piece on the board, failing loudly if the spot is taken."""
    piece = TemplatePiece(id=grid.next_id(), kind=kind, x=x, y=y, rotation=rotation)
    assert grid.can_place(piece, x, y), f"{kind.name} does not fit at ({x}, {y})"
    grid.add(piece)
    return piece


def add_fragment(grid: GameGrid, color: PieceColor, cells: Iterable[Tuple[int, int]]) -> FragmentPiece:
    cells = list(cells)
    min_row = min(r for r, _ in cells)
    min_col = min(c for _, c in cells)
    fragment = FragmentPiece(
        id=grid.next_id(),
        x=min_col,
        y=min_row,
        color=color,
        cells=tuple((r - min_row, c - min_col) for r, c in cells),
    )
    grid.add(fragment)
    return fragment


def fill_row(grid: GameGrid, row: int, cols: Optional[Iterable[int]] = None) -> List[TemplatePiece]:
    cols = range(grid.width) if cols is None else cols
    return [add_piece(grid, PieceKind.SINGLE, col, row) for col in cols]

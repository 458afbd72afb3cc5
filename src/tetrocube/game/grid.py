from __future__ import annotations

from typing import Dict, Iterable, List, Optional

import numpy as np

from .pieces import Cell, Piece, cells_at


class GameGrid:
    """Occupancy grid plus the live pieces that own its cells.

    The grid uses 0 for empty cells and the owning piece id for filled cells.
    Every non-zero cell belongs to exactly one tracked piece, and every cell a
    piece claims holds that piece's id. All mutation goes through this class.
    """

    def __init__(self, width: int, height: int) -> None:
        self.width = int(width)
        self.height = int(height)
        self.grid = np.zeros((self.height, self.width), dtype=np.int32)
        # Insertion-ordered; iteration order drives merge-group discovery
        self.pieces: Dict[int, Piece] = {}
        self._next_id = 1

    def reset(self) -> None:
        self.grid.fill(0)
        self.pieces.clear()
        self._next_id = 1

    def next_id(self) -> int:
        piece_id = self._next_id
        self._next_id += 1
        return piece_id

    def is_inside(self, row: int, col: int) -> bool:
        return 0 <= row < self.height and 0 <= col < self.width

    def can_place_cells(self, cells: Iterable[Cell]) -> bool:
        for row, col in cells:
            if not self.is_inside(row, col):
                return False
            if self.grid[row, col] != 0:
                return False
        return True

    def can_place(self, piece: Piece, x: int, y: int) -> bool:
        return self.can_place_cells(cells_at(piece, x, y))

    def place(self, piece: Piece) -> None:
        for row, col in cells_at(piece, piece.x, piece.y):
            if self.is_inside(row, col):
                self.grid[row, col] = piece.id

    def clear(self, piece: Piece) -> None:
        # Only erase cells still holding this piece's id
        for row, col in cells_at(piece, piece.x, piece.y):
            if self.is_inside(row, col) and self.grid[row, col] == piece.id:
                self.grid[row, col] = 0

    def add(self, piece: Piece) -> None:
        self.pieces[piece.id] = piece
        self.place(piece)

    def remove(self, piece: Piece) -> None:
        self.clear(piece)
        self.pieces.pop(piece.id, None)

    def replace(self, old: Iterable[Piece], new: Iterable[Piece]) -> None:
        """Swap a set of pieces for another in one step."""
        for piece in old:
            self.remove(piece)
        for piece in new:
            self.add(piece)

    def move_by(self, piece: Piece, dx: int, dy: int) -> bool:
        self.clear(piece)
        new_x = piece.x + dx
        new_y = piece.y + dy
        if self.can_place(piece, new_x, new_y):
            piece.x = new_x
            piece.y = new_y
            self.place(piece)
            return True
        self.place(piece)
        return False

    def get(self, piece_id: int) -> Optional[Piece]:
        return self.pieces.get(int(piece_id))

    def piece_at(self, row: int, col: int) -> Optional[Piece]:
        if not self.is_inside(row, col):
            return None
        piece_id = int(self.grid[row, col])
        if piece_id == 0:
            return None
        return self.pieces.get(piece_id)

    def cells_of(self, piece_id: int) -> List[Cell]:
        rows, cols = np.nonzero(self.grid == piece_id)
        return [(int(r), int(c)) for r, c in zip(rows, cols)]

    def occupied_count(self) -> int:
        return int(np.count_nonzero(self.grid))

    def snapshot(self) -> np.ndarray:
        state = self.grid.copy()
        state.flags.writeable = False
        return state

    def color_map(self) -> np.ndarray:
        """Grid of piece colors (0 for empty), for observers and renderers."""
        colors = np.zeros_like(self.grid, dtype=np.int8)
        for piece in self.pieces.values():
            colors[self.grid == piece.id] = int(piece.color)
        return colors

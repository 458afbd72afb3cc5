from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Optional, Set, Tuple, Union

import numpy as np


Cell = Tuple[int, int]  # (row, col)
Shape = np.ndarray


class PieceKind(IntEnum):
    I = 1
    O = 2
    T = 3
    S = 4
    Z = 5
    L = 6
    J = 7
    I3 = 8
    L2 = 9
    SINGLE = 10


class PieceColor(IntEnum):
    """Fusion palette. Several kinds share a color; color decides fusion."""

    SAND = 1
    AMBER = 2
    CORAL = 3
    GOLD = 4


BASE_SHAPES: Dict[PieceKind, Shape] = {
    PieceKind.I: np.array([[1, 1, 1, 1]], dtype=np.int8),
    PieceKind.O: np.array([[1, 1], [1, 1]], dtype=np.int8),
    PieceKind.T: np.array([[0, 1, 0], [1, 1, 1]], dtype=np.int8),
    PieceKind.S: np.array([[0, 1, 1], [1, 1, 0]], dtype=np.int8),
    PieceKind.Z: np.array([[1, 1, 0], [0, 1, 1]], dtype=np.int8),
    PieceKind.L: np.array([[1, 0, 0], [1, 1, 1]], dtype=np.int8),
    PieceKind.J: np.array([[0, 0, 1], [1, 1, 1]], dtype=np.int8),
    PieceKind.I3: np.array([[1, 1, 1]], dtype=np.int8),
    PieceKind.L2: np.array([[1, 0], [1, 1]], dtype=np.int8),
    PieceKind.SINGLE: np.array([[1]], dtype=np.int8),
}

KIND_COLORS: Dict[PieceKind, PieceColor] = {
    PieceKind.I: PieceColor.SAND,
    PieceKind.O: PieceColor.SAND,
    PieceKind.T: PieceColor.AMBER,
    PieceKind.S: PieceColor.AMBER,
    PieceKind.Z: PieceColor.CORAL,
    PieceKind.L: PieceColor.CORAL,
    PieceKind.J: PieceColor.GOLD,
    PieceKind.I3: PieceColor.GOLD,
    PieceKind.L2: PieceColor.GOLD,
    PieceKind.SINGLE: PieceColor.GOLD,
}

SPAWN_WEIGHTS: Dict[PieceKind, float] = {
    PieceKind.SINGLE: 0.10,
    PieceKind.L2: 0.10,
    PieceKind.I3: 0.10,
    PieceKind.O: 0.15,
    PieceKind.T: 0.15,
    PieceKind.I: 0.15,
    PieceKind.S: 0.10,
    PieceKind.L: 0.07,
    PieceKind.J: 0.05,
    PieceKind.Z: 0.03,
}


def rotate_shape(shape: Shape) -> Shape:
    """Rotate a shape matrix 90 degrees clockwise.

    ``rotated[c][rows - 1 - r] == shape[r][c]`` for every cell.
    """
    return np.rot90(shape, 1, axes=(1, 0)).copy()


def shape_for(kind: PieceKind, rotation: int = 0) -> Shape:
    shape = BASE_SHAPES[kind]
    for _ in range(rotation % 4):
        shape = rotate_shape(shape)
    return shape


def shape_offsets(shape: Shape) -> List[Cell]:
    rows, cols = np.nonzero(shape)
    return [(int(r), int(c)) for r, c in zip(rows, cols)]


@dataclass
class TemplatePiece:
    """Catalog piece: kind + rotation state, anchored at the bounding-box top-left."""

    id: int
    kind: PieceKind
    x: int
    y: int
    rotation: int = 0
    color: Optional[PieceColor] = None
    # Origin recorded when a rotation cycle starts at rotation 0
    cycle_anchor: Optional[Tuple[int, int]] = None

    def __post_init__(self) -> None:
        self.kind = PieceKind(self.kind)
        self.rotation %= 4
        if self.color is None:
            self.color = KIND_COLORS[self.kind]

    def shape(self, rotation: Optional[int] = None) -> Shape:
        return shape_for(self.kind, self.rotation if rotation is None else rotation)


@dataclass
class FragmentPiece:
    """Irregular piece produced by fusion or partial clears. Never rotates."""

    id: int
    x: int
    y: int
    color: PieceColor
    cells: Tuple[Cell, ...]

    def __post_init__(self) -> None:
        self.cells = tuple((int(r), int(c)) for r, c in self.cells)


Piece = Union[TemplatePiece, FragmentPiece]


def relative_cells(piece: Piece) -> List[Cell]:
    if isinstance(piece, TemplatePiece):
        return shape_offsets(piece.shape())
    if isinstance(piece, FragmentPiece):
        return list(piece.cells)
    raise TypeError(f"Unknown piece variant: {type(piece).__name__}")


def cells_at(piece: Piece, x: int, y: int) -> List[Cell]:
    """Absolute (row, col) cells the piece would cover with its origin at (x, y)."""
    return [(y + r, x + c) for r, c in relative_cells(piece)]


def occupied_cells(piece: Piece) -> Set[Cell]:
    return set(cells_at(piece, piece.x, piece.y))


def cell_count(piece: Piece) -> int:
    return len(relative_cells(piece))
